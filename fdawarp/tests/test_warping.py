import numpy as np

from fdawarp.warping import (
    exp_map,
    identity_warp,
    inv_exp_map,
    invert_gamma,
    is_warp,
    l2_norm,
    resample,
    sqrt_mean_inverse,
    to_time_domain,
    warp_f_gamma,
    warp_q_gamma,
)


def _exp_warp(t: np.ndarray, a: float) -> np.ndarray:
    return (np.exp(a * t) - 1) / (np.exp(a) - 1)


def test_resample_clamps_outside_domain():
    src = np.linspace(0, 1, 5)
    out = resample(src * 2, src, np.array([-1.0, 0.5, 2.0]))
    assert np.allclose(out, [0.0, 1.0, 2.0])


def test_l2_norm_of_constant():
    assert np.isclose(l2_norm(np.full(11, 3.0)), 3.0)
    assert np.isclose(l2_norm(np.ones(11), np.linspace(0, 4, 11)), 2.0)


def test_invert_gamma_composes_to_identity():
    t = identity_warp(201)
    gam = _exp_warp(t, 1.0)
    gam_inv = invert_gamma(gam)
    assert is_warp(gam_inv)
    assert np.allclose(np.interp(gam_inv, t, gam), t, atol=1e-3)
    assert np.allclose(invert_gamma(t), t)


def test_warp_f_gamma_on_shifted_domain():
    time = np.linspace(2.0, 4.0, 81)
    f = time**2
    gam = _exp_warp(identity_warp(81), 0.5)
    warped = warp_f_gamma(time, f, gam)
    expected = (2.0 + 2.0 * gam) ** 2
    assert np.allclose(warped, expected, atol=1e-3)


def test_identity_acts_trivially_on_srsf():
    time = np.linspace(0, 1, 50)
    q = np.cos(3 * time)
    assert np.allclose(warp_q_gamma(time, q, identity_warp(50)), q)


def test_warp_action_preserves_srsf_norm():
    time = np.linspace(0, 1, 401)
    q = np.sin(2 * np.pi * time) + 0.5
    gam = _exp_warp(time, 1.5)
    warped = warp_q_gamma(time, q, gam)
    assert np.isclose(l2_norm(warped, time), l2_norm(q, time), rtol=1e-2)


def test_to_time_domain_fixes_endpoints():
    time = np.linspace(-3, 3, 21)
    gams = np.column_stack([_exp_warp(identity_warp(21), a) for a in (-1.0, 0.3, 2.0)])
    out = to_time_domain(gams, time)
    assert np.all(out[0] == -3) and np.all(out[-1] == 3)
    assert np.all(np.diff(out, axis=0) > 0)


def test_exp_and_inverse_exp_are_consistent():
    n = 101
    psi1 = np.ones(n)
    gam = _exp_warp(identity_warp(n), 1.0)
    psi2 = np.sqrt(np.gradient(gam, 1.0 / (n - 1)))
    psi2 /= l2_norm(psi2)
    v, theta = inv_exp_map(psi1, psi2)
    assert theta > 0
    assert np.allclose(exp_map(psi1, v), psi2, atol=1e-6)
    zero, same = inv_exp_map(psi1, psi1)
    assert same < 1e-6
    assert np.allclose(zero, 0.0, atol=1e-6)


def test_sqrt_mean_inverse_of_identity_warps():
    t = identity_warp(60)
    gamI, gamI_dev = sqrt_mean_inverse(np.column_stack([t, t, t]))
    assert np.allclose(gamI, t, atol=1e-8)
    assert np.allclose(gamI_dev, 1.0, atol=1e-6)


def test_sqrt_mean_inverse_of_single_warp_is_its_inverse():
    t = identity_warp(101)
    gam = _exp_warp(t, 1.2)
    gamI, _ = sqrt_mean_inverse(gam)
    assert np.allclose(gamI, invert_gamma(gam), atol=1e-6)


def test_sqrt_mean_inverse_centers_symmetric_warps():
    t = identity_warp(101)
    gams = np.column_stack([_exp_warp(t, 1.0), _exp_warp(t, -1.0)])
    gamI, _ = sqrt_mean_inverse(gams)
    assert is_warp(gamI)
    # after composing with the inverse mean, the mean warp is the identity
    centered = np.column_stack([np.interp(gamI, t, gams[:, k]) for k in range(2)])
    recentered, _ = sqrt_mean_inverse(centered)
    assert np.abs(recentered - t).max() < 0.01


def test_is_warp_rejects_bad_curves():
    t = identity_warp(10)
    assert is_warp(t)
    assert not is_warp(t[::-1])
    assert not is_warp(t * 0.5)
    assert not is_warp(np.array([0.0, 0.6, 0.4, 1.0]))
