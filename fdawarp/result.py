"""Result artifact of a group-wise alignment run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

import numpy as np


class AlignmentState(str, Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    MAX_ITER_EXCEEDED = "max_iter_exceeded"


@dataclass
class AlignmentResult:
    """Aligned functions, template and phase/amplitude statistics.

    Attributes
    ----------
    time:
        Sample grid of length N.
    f0, fn:
        Original and aligned functions, shape ``(N, M)``.
    q0, qn:
        Original and aligned SRSFs, shape ``(N, M)``.
    fmean, mqn:
        Template function and template SRSF (Karcher mean or median).
    gam:
        Warping functions in time-domain units, shape ``(N, M)``.
    gamI:
        Centering warp in time-domain units.
    orig_var, amp_var, phase_var:
        Original, amplitude and phase variance.
    qun, ds:
        Relative template change and cost per recorded round; entry 0 belongs
        to the initialization.
    """

    time: np.ndarray
    f0: np.ndarray
    fn: np.ndarray
    q0: np.ndarray
    qn: np.ndarray
    fmean: np.ndarray
    mqn: np.ndarray
    gam: np.ndarray
    gamI: np.ndarray
    orig_var: float
    amp_var: float
    phase_var: float
    qun: np.ndarray
    ds: np.ndarray
    lam: float
    method: str
    omethod: str
    state: AlignmentState
    n_iter: int

    ARRAY_FIELDS = ("time", "f0", "fn", "q0", "qn", "fmean", "mqn", "gam", "gamI", "qun", "ds")

    @property
    def converged(self) -> bool:
        return self.state is AlignmentState.CONVERGED

    def to_dict(self) -> Dict[str, object]:
        """JSON-ready summary without the function arrays."""

        return {
            "n_points": int(self.fn.shape[0]),
            "n_functions": int(self.fn.shape[1]),
            "orig_var": float(self.orig_var),
            "amp_var": float(self.amp_var),
            "phase_var": float(self.phase_var),
            "qun": [float(v) for v in self.qun],
            "ds": [float(v) if np.isfinite(v) else None for v in self.ds],
            "lam": float(self.lam),
            "method": self.method,
            "omethod": self.omethod,
            "state": self.state.value,
            "n_iter": int(self.n_iter),
        }


__all__ = ["AlignmentResult", "AlignmentState"]
