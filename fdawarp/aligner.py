"""Group-wise elastic alignment of functional data in SRSF space."""

from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np
from joblib import Parallel, delayed

from .config import AlignmentConfig, AlignmentMethod
from .dp_align import inverse_mean_warp, optimum_reparam
from .result import AlignmentResult, AlignmentState
from .stats import template_function, variance_decomposition
from .template import MatchResult, initialize_template, tangent, update_rule
from .transforms import f_to_srsf, smooth_data
from .warping import (
    to_time_domain,
    warp_derivative,
    warp_f_gamma,
    warp_q_gamma,
)

logger = logging.getLogger(__name__)

CONVERGENCE_TOL = 1e-4


def _match_one(k, mq, mf0, q_k, f_k, time, config, full):
    try:
        gam = optimum_reparam(
            mq,
            time,
            q_k,
            time,
            lam=config.lam,
            method=config.omethod,
            weight=0.0,
            f1o=mf0,
            f2o=float(f_k[0]),
            grid_dim=config.grid_dim,
            use_numba=config.numba,
        )
    except Exception as exc:
        raise RuntimeError(f"warp solver failed on function {k}") from exc
    if not full:
        return (gam,)
    gam_dev = warp_derivative(gam)
    f_temp = warp_f_gamma(time, f_k, gam)
    q_temp = f_to_srsf(f_temp, time)
    vtil, dtil = tangent(time, q_temp, mq)
    return gam, gam_dev, f_temp, q_temp, vtil, dtil


def _relative_change(new: np.ndarray, old: np.ndarray) -> float:
    denom = np.linalg.norm(old)
    diff = np.linalg.norm(new - old)
    return float(diff / denom) if denom > 0 else float(diff)


def _check_inputs(f: np.ndarray, time: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    f = np.asarray(f, dtype=float)
    time = np.asarray(time, dtype=float)
    if f.ndim != 2:
        raise ValueError("f must be an (N, M) array with one function per column")
    if time.ndim != 1 or time.shape[0] != f.shape[0]:
        raise ValueError("time must be 1D with one entry per row of f")
    if f.shape[0] < 4:
        raise ValueError("at least 4 sample points are required")
    if f.shape[1] < 2:
        raise ValueError("at least 2 functions are required")
    step = np.diff(time)
    if np.any(step <= 0):
        raise ValueError("time must be strictly increasing")
    if not np.allclose(step, step.mean(), rtol=1e-6, atol=0.0):
        raise ValueError("time must be evenly spaced")
    if not np.all(np.isfinite(f)):
        raise ValueError("f contains non-finite values")
    return f, time


class ElasticAligner:
    """Karcher mean/median template estimation and alignment of M functions.

    Keyword arguments are the fields of :class:`fdawarp.config.AlignmentConfig`;
    a ready-made config can be passed instead.
    """

    def __init__(self, config: AlignmentConfig | None = None, **kwargs) -> None:
        if config is None:
            config = AlignmentConfig(**kwargs)
        elif kwargs:
            config = AlignmentConfig.from_mapping({**config.to_dict(), **kwargs})
        self.config = config
        self.rule = update_rule(config.method)

    def _parallel(self) -> Parallel:
        n_jobs = self.config.n_jobs if self.config.parallel else 1
        return Parallel(n_jobs=n_jobs)

    def _match(self, pool: Parallel, mq, mf0, q, f, time, full=True):
        out = pool(
            delayed(_match_one)(k, mq, mf0, q[:, k], f[:, k], time, self.config, full)
            for k in range(q.shape[1])
        )
        if not full:
            return np.column_stack([o[0] for o in out])
        gam, gam_dev, f_temp, q_temp, vtil, dtil = zip(*out)
        return MatchResult(
            gam=np.column_stack(gam),
            gam_dev=np.column_stack(gam_dev),
            f_warped=np.column_stack(f_temp),
            q_warped=np.column_stack(q_temp),
            vtil=np.column_stack(vtil),
            dtil=np.asarray(dtil, dtype=float),
        )

    def align(self, f: np.ndarray, time: np.ndarray) -> AlignmentResult:
        """Align the columns of ``f`` sampled on ``time``."""

        f, time = _check_inputs(f, time)
        cfg = self.config
        rule = self.rule
        n_funcs = f.shape[1]
        logger.info("lambda = %5.1f", cfg.lam)

        f0 = f.copy()
        if cfg.smooth_data:
            f = smooth_data(f, cfg.sparam)
        q = f_to_srsf(f, time, cfg.smooth_data)
        q[~np.isfinite(q)] = 0.0

        with self._parallel() as pool:
            logger.info("Initializing...")

            def solve(mq, mf0):
                gams = self._match(pool, mq, mf0, q, f, time, full=False)
                return [gams[:, k] for k in range(n_funcs)]

            def center(gams):
                return inverse_mean_warp(gams, cfg.omethod)

            mq, mf, min_ind = initialize_template(q, f, time, solve, center)

            label = "mean" if rule.method is AlignmentMethod.MEAN else "median"
            logger.info("Computing Karcher %s of %d functions in SRSF space...", label, n_funcs)
            qun: List[float] = [_relative_change(mq, q[:, min_ind])]
            ds: List[float] = [float("inf")]
            state = AlignmentState.RUNNING
            f_first = f[0, :]

            r = 0
            while state is AlignmentState.RUNNING:
                r += 1
                logger.debug("updating step: r=%d", r)
                match = self._match(pool, mq, float(mf[0]), q, f, time)
                ds.append(rule.cost(time, mq, match, cfg.lam))
                mq_new, mf = rule.update(time, mq, match, f_first)
                qun.append(_relative_change(mq_new, mq))
                mq = mq_new
                logger.debug("r=%d cost=%.6g qun=%.3g", r, ds[-1], qun[-1])
                if qun[-1] < CONVERGENCE_TOL:
                    state = AlignmentState.CONVERGED
                elif r >= cfg.max_iter:
                    state = AlignmentState.MAX_ITER_EXCEEDED

            if state is AlignmentState.CONVERGED:
                logger.info("converged after %d iterations", r)
            else:
                logger.warning("maximal number of iterations is reached (%d)", cfg.max_iter)

            # one last matching pass against the final template, then centering.
            # fn, qn and gam come from this pass, not from the last loop round.
            final = self._match(pool, mq, float(mf[0]), q, f, time)

        gamI, _ = center(final.gam)
        mqn = warp_q_gamma(time, mq, gamI)
        qn = np.column_stack([warp_q_gamma(time, final.q_warped[:, k], gamI) for k in range(n_funcs)])
        fn = np.column_stack([warp_f_gamma(time, final.f_warped[:, k], gamI) for k in range(n_funcs)])
        gam = np.column_stack([warp_f_gamma(time, final.gam[:, k], gamI) for k in range(n_funcs)])

        fmean = template_function(mqn, time, rule.anchor(f0[0, :]))
        orig_var, amp_var, phase_var = variance_decomposition(time, f, fn, fmean, gam)

        return AlignmentResult(
            time=time,
            f0=f0,
            fn=fn,
            q0=q,
            qn=qn,
            fmean=fmean,
            mqn=mqn,
            gam=to_time_domain(gam, time),
            gamI=to_time_domain(gamI, time),
            orig_var=orig_var,
            amp_var=amp_var,
            phase_var=phase_var,
            qun=np.asarray(qun),
            ds=np.asarray(ds),
            lam=cfg.lam,
            method=rule.method.value,
            omethod=cfg.omethod,
            state=state,
            n_iter=r,
        )


def time_warping(f: np.ndarray, time: np.ndarray, **kwargs) -> AlignmentResult:
    """Convenience wrapper: ``ElasticAligner(**kwargs).align(f, time)``."""

    return ElasticAligner(**kwargs).align(f, time)


__all__ = ["ElasticAligner", "time_warping", "CONVERGENCE_TOL"]
