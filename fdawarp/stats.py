"""Phase/amplitude variance decomposition of an aligned function set."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .transforms import srsf_to_f
from .warping import integrate, warp_f_gamma


def template_function(mqn: np.ndarray, time: np.ndarray, anchor: float) -> np.ndarray:
    """Template function from its SRSF, starting at ``anchor``."""

    return srsf_to_f(mqn, time, anchor)


def _integrated_variance(time: np.ndarray, f: np.ndarray) -> float:
    var = np.var(f, axis=1, ddof=1)
    return max(float(integrate(time, var)), 0.0)


def variance_decomposition(
    time: np.ndarray,
    f: np.ndarray,
    fn: np.ndarray,
    fmean: np.ndarray,
    gam: np.ndarray,
) -> Tuple[float, float, float]:
    """Return ``(orig_var, amp_var, phase_var)``.

    ``gam`` holds one unit warp per column. The phase variance is the
    integrated variance of the template pushed through each warp.
    """

    fgam = np.column_stack([warp_f_gamma(time, fmean, gam[:, k]) for k in range(gam.shape[1])])
    return (
        _integrated_variance(time, f),
        _integrated_variance(time, fn),
        _integrated_variance(time, fgam),
    )


__all__ = ["template_function", "variance_decomposition"]
