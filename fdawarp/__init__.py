"""Elastic group-wise alignment of functional data.

Functions are registered in the square-root slope function (SRSF)
representation: each function is warped onto a Karcher mean or median
template and the total variability is split into amplitude and phase parts.
"""

from .aligner import ElasticAligner, time_warping
from .config import AlignmentConfig, AlignmentMethod
from .result import AlignmentResult, AlignmentState

__all__ = [
    "ElasticAligner",
    "time_warping",
    "AlignmentConfig",
    "AlignmentMethod",
    "AlignmentResult",
    "AlignmentState",
]
