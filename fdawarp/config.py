"""Configuration surface for group-wise elastic alignment."""

from __future__ import annotations

import pathlib
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping

import yaml

WARP_SOLVERS = {"DP", "fdasrsf"}


class AlignmentMethod(str, Enum):
    """Statistic used for the template: Karcher mean or Karcher median."""

    MEAN = "mean"
    MEDIAN = "median"

    @classmethod
    def parse(cls, value: "str | AlignmentMethod") -> "AlignmentMethod":
        """Resolve ``value`` to a method, accepting unique prefixes (``"med"``)."""

        if isinstance(value, AlignmentMethod):
            return value
        key = str(value).strip().lower()
        matches = [m for m in cls if m.value.startswith(key)] if key else []
        exact = [m for m in matches if m.value == key]
        if exact:
            return exact[0]
        if len(matches) != 1:
            raise ValueError(f"invalid method selection: {value!r}")
        return matches[0]


@dataclass
class AlignmentConfig:
    """Options recognized by :class:`fdawarp.aligner.ElasticAligner`.

    Attributes
    ----------
    lam:
        Elasticity weight of the warp roughness penalty (``>= 0``).
    method:
        ``"mean"`` or ``"median"``.
    smooth_data:
        Box-filter the functions before encoding them.
    sparam:
        Number of box-filter passes.
    parallel:
        Run the matching step on joblib workers.
    n_jobs:
        Worker count used when ``parallel`` is set.
    omethod:
        Warp solver backend, ``"DP"`` or ``"fdasrsf"``.
    max_iter:
        Iteration cap of the template estimation loop.
    grid_dim:
        Neighborhood size of the DP lattice.
    numba:
        Use the compiled DP kernel.
    """

    lam: float = 0.0
    method: AlignmentMethod = AlignmentMethod.MEAN
    smooth_data: bool = False
    sparam: int = 25
    parallel: bool = False
    n_jobs: int = -1
    omethod: str = "DP"
    max_iter: int = 20
    grid_dim: int = 7
    numba: bool = True

    def __post_init__(self) -> None:
        self.method = AlignmentMethod.parse(self.method)
        self.lam = float(self.lam)
        if not self.lam >= 0.0:
            raise ValueError(f"lam must be non-negative, got {self.lam}")
        if self.omethod not in WARP_SOLVERS:
            raise ValueError(f"Unknown warp solver '{self.omethod}' (available: {sorted(WARP_SOLVERS)})")
        self.max_iter = int(self.max_iter)
        if self.max_iter < 1:
            raise ValueError("max_iter must be at least 1")
        self.sparam = int(self.sparam)
        if self.sparam < 0:
            raise ValueError("sparam must be non-negative")
        self.grid_dim = int(self.grid_dim)
        if self.grid_dim < 1:
            raise ValueError("grid_dim must be at least 1")
        self.n_jobs = int(self.n_jobs)
        self.smooth_data = bool(self.smooth_data)
        self.parallel = bool(self.parallel)
        self.numba = bool(self.numba)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AlignmentConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")
        return cls(**dict(data))

    @classmethod
    def from_yaml(cls, path: str | pathlib.Path) -> "AlignmentConfig":
        with open(path, "r", encoding="utf8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        return cls.from_mapping(data)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["method"] = self.method.value
        return data


__all__ = ["AlignmentConfig", "AlignmentMethod", "WARP_SOLVERS"]
