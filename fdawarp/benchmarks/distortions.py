"""Synthetic function sets with known phase and amplitude variability."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List

import numpy as np

from ..warping import warp_f_gamma


@dataclass
class Distortion:
    name: str
    params: Dict[str, object]
    time: np.ndarray
    data: np.ndarray
    warps: np.ndarray | None = field(default=None, repr=False)

    def to_record(self) -> Dict[str, object]:
        rec = {"name": self.name, "params": self.params}
        rec["n_points"] = int(self.data.shape[0])
        rec["n_functions"] = int(self.data.shape[1])
        return rec


def bump(time: np.ndarray, center: float, width: float = 0.1, height: float = 1.0) -> np.ndarray:
    return height * np.exp(-((time - center) ** 2) / (2 * width**2))


def random_warp(time: np.ndarray, rng: np.random.Generator, strength: float = 1.0) -> np.ndarray:
    """Smooth unit warp ``(exp(a t) - 1) / (exp(a) - 1)`` with ``a ~ N(0, strength)``."""

    t = (time - time[0]) / (time[-1] - time[0])
    a = rng.normal(0.0, strength)
    if abs(a) < 1e-8:
        return t.copy()
    return (np.exp(a * t) - 1) / (np.exp(a) - 1)


def shifted_bumps(
    n_points: int = 50,
    shifts: List[float] | None = None,
    center: float = 0.5,
    width: float = 0.1,
) -> Distortion:
    """Copies of one bump shifted in time; pure phase variability."""

    if shifts is None:
        shifts = [-0.05, 0.05]
    time = np.linspace(0, 1, n_points)
    data = np.column_stack([bump(time, center + s, width) for s in shifts])
    return Distortion("shifted_bumps", {"shifts": list(shifts), "width": width}, time, data)


def gaussian_mixture(
    n_points: int = 101,
    n_functions: int = 20,
    warp_strength: float = 1.0,
    amp_sd: float = 0.1,
    seed: int | None = None,
) -> Distortion:
    """Two-peak functions with random heights composed with random warps."""

    rng = np.random.default_rng(seed)
    time = np.linspace(-3, 3, n_points)
    base = []
    warps = []
    for _ in range(n_functions):
        z1, z2 = rng.normal(1.0, amp_sd, size=2)
        g = z1 * np.exp(-((time - 1.5) ** 2) / 2) + z2 * np.exp(-((time + 1.5) ** 2) / 2)
        gam = random_warp(time, rng, warp_strength)
        base.append(warp_f_gamma(time, g, gam))
        warps.append(gam)
    params = {"warp_strength": warp_strength, "amp_sd": amp_sd, "seed": seed}
    return Distortion("gaussian_mixture", params, time, np.column_stack(base), np.column_stack(warps))


def with_outlier(
    n_points: int = 60,
    n_functions: int = 7,
    outlier_height: float = 4.0,
    seed: int | None = None,
) -> Distortion:
    """Slightly shifted unit bumps plus one tall, wide outlier in the last column."""

    rng = np.random.default_rng(seed)
    time = np.linspace(0, 1, n_points)
    shifts = rng.uniform(-0.03, 0.03, size=n_functions)
    cols = [bump(time, 0.5 + s, 0.1) for s in shifts]
    cols.append(bump(time, 0.5, 0.15, outlier_height))
    params = {"outlier_height": outlier_height, "seed": seed}
    return Distortion("with_outlier", params, time, np.column_stack(cols))


GENERATORS: Dict[str, Callable[..., Distortion]] = {
    "bumps": shifted_bumps,
    "gaussians": gaussian_mixture,
    "outlier": with_outlier,
}


def generate(kind: str, **params) -> Distortion:
    if kind not in GENERATORS:
        raise ValueError(f"Unknown synthetic data kind '{kind}' (available: {sorted(GENERATORS)})")
    return GENERATORS[kind](**params)


__all__ = [
    "Distortion",
    "GENERATORS",
    "bump",
    "random_warp",
    "shifted_bumps",
    "gaussian_mixture",
    "with_outlier",
    "generate",
]
