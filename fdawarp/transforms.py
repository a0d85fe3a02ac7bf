"""Function transformation helpers: smoothing and the SRSF representation."""

from __future__ import annotations

from typing import Tuple

import numpy as np
from scipy.interpolate import UnivariateSpline

from .warping import EPS, cumulative_integrate


def _as_columns(f: np.ndarray) -> Tuple[np.ndarray, bool]:
    arr = np.asarray(f, dtype=float)
    if arr.ndim == 1:
        return arr[:, None], True
    if arr.ndim != 2:
        raise ValueError("expected a 1D function or an (N, M) array of functions")
    return arr, False


def smooth_data(f: np.ndarray, sparam: int = 25) -> np.ndarray:
    """Return a copy of ``f`` after ``sparam`` passes of a [1, 2, 1]/4 box filter.

    Each column is one function; the first and last samples are left untouched.
    """

    arr, squeeze = _as_columns(f)
    out = arr.copy()
    for _ in range(int(sparam)):
        out[1:-1] = (out[:-2] + 2 * out[1:-1] + out[2:]) / 4
    return out[:, 0] if squeeze else out


def gradient_spline(time: np.ndarray, f: np.ndarray, smooth: bool = False) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Fit a cubic spline to each function and return values and derivatives.

    Returns
    -------
    f0, g, g2:
        Spline values, first and second derivative at ``time``.
    """

    time = np.asarray(time, dtype=float)
    arr, squeeze = _as_columns(f)
    f0 = np.zeros_like(arr)
    g = np.zeros_like(arr)
    g2 = np.zeros_like(arr)
    for k in range(arr.shape[1]):
        spar = time.shape[0] * (0.025 * np.abs(arr[:, k]).max()) ** 2 if smooth else 0
        spline = UnivariateSpline(time, arr[:, k], k=3, s=spar)
        f0[:, k] = spline(time)
        g[:, k] = spline(time, 1)
        g2[:, k] = spline(time, 2)
    if squeeze:
        return f0[:, 0], g[:, 0], g2[:, 0]
    return f0, g, g2


def f_to_srsf(f: np.ndarray, time: np.ndarray, smooth: bool = False) -> np.ndarray:
    """Square-root slope function ``q = f' / sqrt(|f'|)``.

    Flat functions map to a numerically zero SRSF rather than raising.
    """

    _, g, _ = gradient_spline(time, f, smooth)
    return g / np.sqrt(np.abs(g) + EPS)


def srsf_to_f(q: np.ndarray, time: np.ndarray, f0: float | np.ndarray = 0.0) -> np.ndarray:
    """Reconstruct a function from its SRSF and its initial value."""

    q = np.asarray(q, dtype=float)
    return f0 + cumulative_integrate(np.asarray(time, dtype=float), q * np.abs(q))


__all__ = ["smooth_data", "gradient_spline", "f_to_srsf", "srsf_to_f"]
