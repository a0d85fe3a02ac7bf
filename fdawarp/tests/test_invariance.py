import numpy as np
from hypothesis import given, settings, strategies as st

from fdawarp.dp_align import optimum_reparam
from fdawarp.warping import is_warp, sqrt_mean_inverse, warp_f_gamma


def arrays(min_size=8, max_size=20):
    return st.lists(
        st.floats(min_value=-3, max_value=3, allow_nan=False, allow_infinity=False),
        min_size=min_size,
        max_size=max_size,
    ).map(np.array)


def increments():
    return st.lists(st.floats(min_value=0.01, max_value=5.0), min_size=10, max_size=30).map(np.array)


@settings(max_examples=25, deadline=None)
@given(arrays(), arrays())
def test_optimal_warp_is_a_warp(x, y):
    n = min(len(x), len(y))
    time = np.linspace(0, 1, n)
    gam = optimum_reparam(x[:n], time, y[:n], time)
    assert gam.shape == (n,)
    assert is_warp(gam)


@settings(max_examples=25, deadline=None)
@given(arrays(), st.floats(min_value=0.0, max_value=10.0))
def test_self_alignment_is_identity(x, lam):
    time = np.linspace(0, 1, len(x))
    gam = optimum_reparam(x, time, x, time, lam=lam)
    assert np.allclose(gam, time, atol=1e-12)


@settings(max_examples=25, deadline=None)
@given(st.lists(increments(), min_size=1, max_size=4))
def test_inverse_mean_is_a_warp(incs):
    n = min(len(i) for i in incs)
    gams = []
    for inc in incs:
        g = np.concatenate(([0.0], np.cumsum(inc[: n - 1])))
        gams.append(g / g[-1])
    gamI, gamI_dev = sqrt_mean_inverse(np.column_stack(gams))
    assert is_warp(gamI, atol=1e-9)
    assert np.all(gamI_dev >= -1e-9)


@settings(max_examples=25, deadline=None)
@given(arrays(min_size=5), st.floats(min_value=-2.0, max_value=2.0))
def test_warping_preserves_range(f, a):
    time = np.linspace(0, 1, len(f))
    gam = time if abs(a) < 1e-6 else (np.exp(a * time) - 1) / (np.exp(a) - 1)
    warped = warp_f_gamma(time, f, gam)
    assert warped[0] == f[0]
    assert np.isclose(warped[-1], f[-1])
    assert warped.min() >= f.min() - 1e-12 and warped.max() <= f.max() + 1e-12
