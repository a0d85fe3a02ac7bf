"""Numerical primitives on sampled curves and warping functions.

Warps are handled on the unit interval: ``gam[0] == 0`` and ``gam[-1] == 1``,
sampled on the same grid as the curves they act on. A unit warp acts on a
curve sampled on ``time`` by evaluating the curve at ``t0 + (tN - t0) * gam``.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from scipy.integrate import cumulative_trapezoid, trapezoid

EPS = np.finfo(np.double).eps


def resample(curve: np.ndarray, source_time: np.ndarray, target_time: np.ndarray) -> np.ndarray:
    """Piecewise-linear resampling; values outside the source domain are clamped."""

    return np.interp(target_time, source_time, curve)


def integrate(time: np.ndarray, values: np.ndarray, axis: int = 0) -> np.ndarray | float:
    return trapezoid(values, time, axis=axis)


def cumulative_integrate(time: np.ndarray, values: np.ndarray, axis: int = 0) -> np.ndarray:
    return cumulative_trapezoid(values, time, axis=axis, initial=0)


def l2_norm(values: np.ndarray, time: np.ndarray | None = None) -> float:
    """L2 norm of a sampled curve (trapezoidal rule, unit interval by default)."""

    values = np.asarray(values, dtype=float)
    if time is None:
        time = np.linspace(0, 1, values.shape[0])
    return float(np.sqrt(max(integrate(time, values * values), 0.0)))


def warp_time(gam: np.ndarray, time: np.ndarray) -> np.ndarray:
    """Map a unit warp onto the time domain of ``time``."""

    return (time[-1] - time[0]) * gam + time[0]


def to_time_domain(gam: np.ndarray, time: np.ndarray) -> np.ndarray:
    """Unit warp(s) to time-domain warp(s) with exact endpoints.

    ``gam`` may be one warp or an ``(N, M)`` array of warps, one per column.
    """

    out = warp_time(np.asarray(gam, dtype=float), time)
    out[0, ...] = time[0]
    out[-1, ...] = time[-1]
    return out


def warp_derivative(gam: np.ndarray) -> np.ndarray:
    gam = np.asarray(gam, dtype=float)
    return np.gradient(gam, 1.0 / (gam.shape[0] - 1), axis=0)


def warp_f_gamma(time: np.ndarray, f: np.ndarray, gam: np.ndarray) -> np.ndarray:
    """Reparameterize a function by a unit warp: ``f o gam``."""

    return resample(f, time, warp_time(gam, time))


def warp_q_gamma(time: np.ndarray, q: np.ndarray, gam: np.ndarray) -> np.ndarray:
    """Group action on an SRSF: ``(q o gam) * sqrt(gam')``."""

    gam_dev = warp_derivative(gam)
    return resample(q, time, warp_time(gam, time)) * np.sqrt(np.abs(gam_dev))


def identity_warp(n: int) -> np.ndarray:
    return np.linspace(0, 1, n)


def invert_gamma(gam: np.ndarray) -> np.ndarray:
    """Group inverse of a unit warp, renormalized to ``[0, 1]``."""

    gam = np.asarray(gam, dtype=float)
    x = identity_warp(gam.shape[0])
    gam_inv = np.interp(x, gam, x)
    span = gam_inv[-1] - gam_inv[0]
    if span <= 0:
        return x
    return (gam_inv - gam_inv[0]) / span


def _inner_product(psi1: np.ndarray, psi2: np.ndarray) -> float:
    t = np.linspace(0, 1, psi1.shape[0])
    return float(trapezoid(psi1 * psi2, t))


def exp_map(psi: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Exponential map on the Hilbert sphere at ``psi``."""

    v_norm = l2_norm(v)
    if v_norm < EPS:
        return psi.copy()
    return np.cos(v_norm) * psi + np.sin(v_norm) * v / v_norm


def inv_exp_map(mu: np.ndarray, psi: np.ndarray) -> Tuple[np.ndarray, float]:
    """Shooting vector from ``mu`` to ``psi`` and the arc length between them."""

    theta = float(np.arccos(np.clip(_inner_product(mu, psi), -1.0, 1.0)))
    if theta < 1e-10:
        return np.zeros_like(mu), theta
    return theta / np.sin(theta) * (psi - np.cos(theta) * mu), theta


def sqrt_mean_inverse(gams: np.ndarray, max_iter: int = 20, step: float = 0.3, tol: float = 1e-8) -> Tuple[np.ndarray, np.ndarray]:
    """Inverse of the Karcher mean of a set of unit warps.

    Parameters
    ----------
    gams:
        ``(N, K)`` array, one unit warp per column.

    Returns
    -------
    gamI, gamI_dev:
        The inverse mean warp and its derivative on the unit grid.
    """

    gams = np.asarray(gams, dtype=float)
    if gams.ndim == 1:
        gams = gams[:, None]
    n_points, n_warps = gams.shape
    dT = 1.0 / (n_points - 1)
    psi = np.sqrt(np.abs(np.diff(gams, axis=0)) / dT + EPS).T

    # medoid start
    mnpsi = psi.mean(axis=0)
    dqq = np.sqrt(np.sum((psi - mnpsi) ** 2, axis=1))
    mu = psi[int(np.argmin(dqq))].copy()

    def _mean_shooting(mu: np.ndarray) -> np.ndarray:
        vec = np.stack([inv_exp_map(mu, psi[k])[0] for k in range(n_warps)])
        return vec.mean(axis=0)

    vbar = _mean_shooting(mu)
    itr = 0
    while l2_norm(vbar) > tol and itr < max_iter - 1:
        mu = exp_map(mu, step * vbar)
        vbar = _mean_shooting(mu)
        itr += 1

    gam_mu = np.concatenate(([0.0], np.cumsum(mu * mu))) * dT
    span = gam_mu[-1] - gam_mu[0]
    gam_mu = (gam_mu - gam_mu[0]) / span
    gamI = invert_gamma(gam_mu)
    return gamI, warp_derivative(gamI)


def is_warp(gam: np.ndarray, lower: float = 0.0, upper: float = 1.0, atol: float = 1e-12) -> bool:
    """True if ``gam`` is non-decreasing with the given fixed endpoints."""

    gam = np.asarray(gam, dtype=float)
    if gam.ndim != 1 or gam.shape[0] < 2:
        return False
    return bool(
        abs(gam[0] - lower) <= atol
        and abs(gam[-1] - upper) <= atol
        and np.all(np.diff(gam) >= -atol)
    )


__all__ = [
    "EPS",
    "resample",
    "integrate",
    "cumulative_integrate",
    "l2_norm",
    "warp_time",
    "to_time_domain",
    "warp_derivative",
    "warp_f_gamma",
    "warp_q_gamma",
    "identity_warp",
    "invert_gamma",
    "exp_map",
    "inv_exp_map",
    "sqrt_mean_inverse",
    "is_warp",
]
