"""Loading and saving function sets and alignment results."""

from __future__ import annotations

import json
import pathlib
from typing import Tuple

import numpy as np
import pandas as pd

from .result import AlignmentResult, AlignmentState


def load_functions_from_csv(path: str | pathlib.Path, time_column: str = "time") -> Tuple[np.ndarray, np.ndarray]:
    """Load a wide CSV: one time column, one column per function.

    Column lookup is case-insensitive; falls back to the first column when no
    column carries the requested name.
    """

    df = pd.read_csv(path)
    if df.shape[1] < 2:
        raise ValueError(f"CSV {path} needs a time column and at least one function column")
    col = time_column
    if col not in df.columns:
        lowered = {c.lower(): c for c in df.columns}
        col = lowered.get(time_column.lower(), df.columns[0])
    time = df[col].to_numpy(dtype=float)
    f = df.drop(columns=[col]).to_numpy(dtype=float)
    return time, f


def save_functions_to_csv(
    path: str | pathlib.Path,
    time: np.ndarray,
    f: np.ndarray,
    names: list[str] | None = None,
) -> pathlib.Path:
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    f = np.asarray(f, dtype=float)
    if names is None:
        names = [f"f{k}" for k in range(f.shape[1])]
    df = pd.DataFrame(f, columns=names)
    df.insert(0, "time", np.asarray(time, dtype=float))
    df.to_csv(path, index=False)
    return path


def save_result(result: AlignmentResult, path: str | pathlib.Path) -> pathlib.Path:
    """Write the result arrays to ``.npz`` and a JSON summary next to it."""

    path = pathlib.Path(path).with_suffix(".npz")
    path.parent.mkdir(parents=True, exist_ok=True)
    arrays = {name: np.asarray(getattr(result, name)) for name in AlignmentResult.ARRAY_FIELDS}
    np.savez_compressed(path, **arrays)
    with open(path.with_suffix(".json"), "w", encoding="utf8") as fh:
        json.dump(result.to_dict(), fh, indent=2)
    return path


def load_result(path: str | pathlib.Path) -> AlignmentResult:
    path = pathlib.Path(path).with_suffix(".npz")
    with open(path.with_suffix(".json"), "r", encoding="utf8") as fh:
        meta = json.load(fh)
    with np.load(path) as data:
        arrays = {name: data[name] for name in AlignmentResult.ARRAY_FIELDS}
    return AlignmentResult(
        **arrays,
        orig_var=meta["orig_var"],
        amp_var=meta["amp_var"],
        phase_var=meta["phase_var"],
        lam=meta["lam"],
        method=meta["method"],
        omethod=meta["omethod"],
        state=AlignmentState(meta["state"]),
        n_iter=meta["n_iter"],
    )


__all__ = [
    "load_functions_from_csv",
    "save_functions_to_csv",
    "save_result",
    "load_result",
]
