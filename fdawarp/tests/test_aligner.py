import numpy as np
import pytest
from joblib import Parallel

from fdawarp import ElasticAligner, time_warping
from fdawarp.benchmarks.distortions import gaussian_mixture
from fdawarp.result import AlignmentState
from fdawarp.template import MatchResult, MeanUpdate, MedianUpdate, tangent
from fdawarp.transforms import f_to_srsf
from fdawarp.warping import EPS, integrate, is_warp


@pytest.fixture(scope="module")
def mixture():
    return gaussian_mixture(n_points=41, n_functions=5, seed=2)


@pytest.fixture(scope="module")
def mixture_result(mixture):
    return ElasticAligner(max_iter=5).align(mixture.data, mixture.time)


def test_result_shapes(mixture, mixture_result):
    n, m = mixture.data.shape
    res = mixture_result
    for name in ("f0", "fn", "q0", "qn", "gam"):
        assert getattr(res, name).shape == (n, m)
    for name in ("fmean", "mqn", "gamI", "time"):
        assert getattr(res, name).shape == (n,)
    assert np.array_equal(res.f0, mixture.data)
    assert res.method == "mean" and res.omethod == "DP"


def test_warps_are_monotone_with_fixed_endpoints(mixture, mixture_result):
    time = mixture.time
    unit = lambda g: (g - time[0]) / (time[-1] - time[0])  # noqa: E731
    for k in range(mixture_result.gam.shape[1]):
        assert is_warp(unit(mixture_result.gam[:, k]))
    assert is_warp(unit(mixture_result.gamI))


def test_convergence_trace(mixture_result):
    res = mixture_result
    assert len(res.qun) == len(res.ds) == res.n_iter + 1
    assert res.n_iter <= 5
    assert np.all(res.qun >= 0)
    assert np.isinf(res.ds[0])
    assert np.all(np.isfinite(res.ds[1:])) and np.all(res.ds[1:] >= 0)
    if res.state is AlignmentState.CONVERGED:
        assert res.qun[-1] < 1e-4
    else:
        assert res.state is AlignmentState.MAX_ITER_EXCEEDED
        assert res.n_iter == 5


def test_variances_are_non_negative(mixture_result):
    res = mixture_result
    assert res.orig_var >= 0 and res.amp_var >= 0 and res.phase_var >= 0
    assert res.amp_var < res.orig_var


def test_iteration_cap_still_returns_result(mixture):
    res = ElasticAligner(max_iter=1).align(mixture.data, mixture.time)
    assert res.state is AlignmentState.MAX_ITER_EXCEEDED
    assert not res.converged
    assert res.n_iter == 1
    assert len(res.qun) == 2
    assert np.all(np.isfinite(res.fn))


def test_parallel_matches_sequential(mixture):
    seq = ElasticAligner(max_iter=2).align(mixture.data, mixture.time)
    par = ElasticAligner(max_iter=2, parallel=True, n_jobs=2).align(mixture.data, mixture.time)
    assert np.allclose(seq.fn, par.fn)
    assert np.allclose(seq.gam, par.gam)
    assert np.allclose(seq.qun, par.qun)


def test_mean_update_is_pointwise_mean_of_warped_functions(mixture):
    time, f = mixture.time, mixture.data
    aligner = ElasticAligner(lam=0.0)
    q = f_to_srsf(f, time)
    mq = q[:, 0]
    with Parallel(n_jobs=1) as pool:
        match = aligner._match(pool, mq, float(f[0, 0]), q, f, time)
    rule = MeanUpdate()
    mq_new, mf_new = rule.update(time, mq, match, f[0, :])
    assert np.allclose(mq_new, match.q_warped.mean(axis=1))
    assert np.allclose(mf_new, match.f_warped.mean(axis=1))
    expected = sum(integrate(time, (mq - match.q_warped[:, k]) ** 2) for k in range(f.shape[1]))
    assert np.isclose(rule.cost(time, mq, match, 0.0), expected)


def test_median_step_follows_normalized_tangents():
    time = np.linspace(0, 1, 11)
    mq = np.zeros(11)
    q_warped = np.column_stack([np.full(11, 1.0), np.full(11, -2.0), np.full(11, 4.0)])
    pairs = [tangent(time, q_warped[:, k], mq) for k in range(3)]
    vtil = np.column_stack([p[0] for p in pairs])
    dtil = np.array([p[1] for p in pairs])
    assert np.allclose(dtil, [1.0, 0.5, 0.25])
    match = MatchResult(
        gam=np.tile(time[:, None], 3),
        gam_dev=np.ones((11, 3)),
        f_warped=q_warped.copy(),
        q_warped=q_warped,
        vtil=vtil,
        dtil=dtil,
    )
    mq_new, _ = MedianUpdate(step=0.3).update(time, mq, match, np.zeros(3))
    # unit tangents +1, -1, +1 weighted by 1 / sum(1 / d)
    assert np.allclose(mq_new, 0.3 * 1.0 / 1.75)
    assert np.isclose(MedianUpdate().cost(time, mq, match, 0.0), np.sqrt(21.0))


def test_tangent_on_template_is_floored():
    time = np.linspace(0, 1, 5)
    v, dinv = tangent(time, np.ones(5), np.ones(5))
    assert not np.any(v)
    assert dinv == 1.0 / EPS


def test_solver_failure_names_the_function(monkeypatch, mixture):
    calls = {"n": 0}

    def broken(*args, **kwargs):
        calls["n"] += 1
        raise FloatingPointError("lattice overflow")

    monkeypatch.setattr("fdawarp.aligner.optimum_reparam", broken)
    with pytest.raises(RuntimeError, match="function 0") as excinfo:
        ElasticAligner().align(mixture.data, mixture.time)
    assert isinstance(excinfo.value.__cause__, FloatingPointError)
    assert calls["n"] == 1


@pytest.mark.parametrize(
    "f,time",
    [
        (np.zeros(10), np.linspace(0, 1, 10)),
        (np.zeros((10, 1)), np.linspace(0, 1, 10)),
        (np.zeros((3, 4)), np.linspace(0, 1, 3)),
        (np.zeros((10, 3)), np.linspace(0, 1, 9)),
        (np.zeros((10, 3)), np.linspace(1, 0, 10)),
        (np.full((10, 3), np.nan), np.linspace(0, 1, 10)),
        (np.zeros((5, 3)), np.array([0.0, 0.1, 0.2, 0.5, 1.0])),
    ],
)
def test_invalid_inputs_raise(f, time):
    with pytest.raises(ValueError):
        ElasticAligner().align(f, time)


def test_time_warping_wrapper(mixture):
    res = time_warping(mixture.data, mixture.time, method="median", max_iter=2)
    assert res.method == "median"
    assert res.fn.shape == mixture.data.shape


def test_smoothing_keeps_original_data(mixture):
    res = ElasticAligner(smooth_data=True, sparam=5, max_iter=2).align(mixture.data, mixture.time)
    assert np.array_equal(res.f0, mixture.data)
    assert np.all(np.isfinite(res.fn))


def test_median_update_anchors_at_median_of_first_values():
    time = np.linspace(0, 1, 11)
    mq = np.ones(11)
    q_warped = np.column_stack([np.full(11, 2.0), np.full(11, 0.5), np.full(11, 1.5)])
    pairs = [tangent(time, q_warped[:, k], mq) for k in range(3)]
    match = MatchResult(
        gam=np.tile(time[:, None], 3),
        gam_dev=np.ones((11, 3)),
        f_warped=q_warped.copy(),
        q_warped=q_warped,
        vtil=np.column_stack([p[0] for p in pairs]),
        dtil=np.array([p[1] for p in pairs]),
    )
    f_first = np.array([0.0, 1.0, 8.0])
    assert np.median(f_first) != np.mean(f_first)
    _, mf_new = MedianUpdate().update(time, mq, match, f_first)
    assert mf_new[0] == np.median(f_first)
    _, mf_mean = MeanUpdate().update(time, mq, match, f_first)
    assert np.allclose(mf_mean, match.f_warped.mean(axis=1))


@pytest.mark.parametrize("method,anchor", [("mean", np.mean), ("median", np.median)])
def test_template_function_anchor_matches_method(mixture, method, anchor):
    # vertical offsets leave the SRSFs alone but split mean and median of f[0, :]
    f = mixture.data + np.array([0.0, 0.1, 0.2, 0.3, 3.0])
    assert not np.isclose(np.mean(f[0, :]), np.median(f[0, :]))
    res = ElasticAligner(method=method, max_iter=2).align(f, mixture.time)
    assert np.isclose(res.fmean[0], anchor(f[0, :]))
