"""Template initialization and the Karcher mean / median update rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

import numpy as np

from .config import AlignmentMethod
from .transforms import f_to_srsf, srsf_to_f
from .warping import EPS, integrate, sqrt_mean_inverse, warp_f_gamma

logger = logging.getLogger(__name__)

MEDIAN_STEP = 0.3


@dataclass
class MatchResult:
    """Per-function output of one matching pass, stacked column-wise."""

    gam: np.ndarray
    gam_dev: np.ndarray
    f_warped: np.ndarray
    q_warped: np.ndarray
    vtil: np.ndarray
    dtil: np.ndarray


def initialize_template(
    q: np.ndarray,
    f: np.ndarray,
    time: np.ndarray,
    solve: Callable[[np.ndarray, float], Sequence[np.ndarray]],
    center: Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]] = sqrt_mean_inverse,
) -> Tuple[np.ndarray, np.ndarray, int]:
    """Pick the medoid SRSF as template and remove the bias of that choice.

    ``solve(mq, mf0)`` must return one unit warp per function aligning each
    SRSF to ``mq``; ``center(gams)`` returns the inverse mean warp and its
    derivative.

    Returns
    -------
    mq, mf, min_ind:
        Initial template SRSF and function, and the medoid index.
    """

    mnq = q.mean(axis=1)
    dqq = np.sqrt(np.sum((q - mnq[:, None]) ** 2, axis=0))
    min_ind = int(np.argmin(dqq))
    mq = q[:, min_ind]
    mf = f[:, min_ind]
    logger.debug("medoid template: function %d", min_ind)

    gams = np.column_stack(solve(mq, float(mf[0])))
    gamI, _ = center(gams)
    mf = warp_f_gamma(time, mf, gamI)
    mq = f_to_srsf(mf, time)
    mq[~np.isfinite(mq)] = 0.0
    return mq, mf, min_ind


def _real_cost(value: complex | float) -> float:
    if np.iscomplexobj(value):
        return float(np.abs(value))
    return float(value)


def _penalty(time: np.ndarray, gam_dev: np.ndarray) -> complex | float:
    tmp = (1 - np.emath.sqrt(gam_dev)) ** 2
    return np.sum(integrate(time, tmp, axis=0))


class MeanUpdate:
    """Karcher mean: average the warped SRSFs and functions."""

    method = AlignmentMethod.MEAN

    def cost(self, time: np.ndarray, mq: np.ndarray, match: MatchResult, lam: float) -> float:
        data = np.sum(integrate(time, (mq[:, None] - match.q_warped) ** 2, axis=0))
        return _real_cost(data + lam * _penalty(time, match.gam_dev))

    def update(self, time: np.ndarray, mq: np.ndarray, match: MatchResult, f_first: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        return match.q_warped.mean(axis=1), match.f_warped.mean(axis=1)

    @staticmethod
    def anchor(values: np.ndarray) -> float:
        return float(np.mean(values))


class MedianUpdate:
    """Karcher median: one descent step along the normalized tangent directions."""

    method = AlignmentMethod.MEDIAN

    def __init__(self, step: float = MEDIAN_STEP) -> None:
        self.step = float(step)

    def cost(self, time: np.ndarray, mq: np.ndarray, match: MatchResult, lam: float) -> float:
        data = np.sum(integrate(time, (match.q_warped - mq[:, None]) ** 2, axis=0))
        return _real_cost(np.emath.sqrt(data) + lam * _penalty(time, match.gam_dev))

    def update(self, time: np.ndarray, mq: np.ndarray, match: MatchResult, f_first: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        total = float(np.sum(match.dtil))
        vbar = match.vtil.sum(axis=1) / total if total > 0 else np.zeros_like(mq)
        mq_new = mq + self.step * vbar
        mf_new = srsf_to_f(mq_new, time, self.anchor(f_first))
        return mq_new, mf_new

    @staticmethod
    def anchor(values: np.ndarray) -> float:
        return float(np.median(values))


def tangent(time: np.ndarray, q_warped: np.ndarray, mq: np.ndarray) -> Tuple[np.ndarray, float]:
    """Unit tangent ``v / ||v||`` from the template to a warped SRSF and ``1 / ||v||``.

    The norm is floored at machine epsilon so that a function sitting on the
    template pins the median in place.
    """

    v = q_warped - mq
    d = float(np.sqrt(max(integrate(time, v * v), 0.0)))
    d = max(d, EPS)
    return v / d, 1.0 / d


def update_rule(method: AlignmentMethod | str) -> MeanUpdate | MedianUpdate:
    method = AlignmentMethod.parse(method)
    if method is AlignmentMethod.MEAN:
        return MeanUpdate()
    return MedianUpdate()


__all__ = [
    "MatchResult",
    "MeanUpdate",
    "MedianUpdate",
    "initialize_template",
    "tangent",
    "update_rule",
    "MEDIAN_STEP",
]
