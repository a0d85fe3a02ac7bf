"""Visualization utilities for alignment results."""

from __future__ import annotations

import pathlib
from typing import Dict, List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .result import AlignmentResult

plt.rcParams.update({"figure.autolayout": True})


def _ensure_parent(path: pathlib.Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _mean_band(ax, time: np.ndarray, f: np.ndarray, title: str) -> None:
    mean = f.mean(axis=1)
    std = f.std(axis=1, ddof=1)
    ax.plot(time, mean, color="C0", label="mean")
    ax.plot(time, mean + std, color="C3", linestyle="--", label="mean + std")
    ax.plot(time, mean - std, color="C2", linestyle="--", label="mean - std")
    ax.set_title(title)
    ax.legend(fontsize="small")


def plot_alignment(result: AlignmentResult, outpath: str | pathlib.Path) -> Dict[str, str]:
    """Create function, warp and mean +/- std plots for an alignment."""

    outpath = pathlib.Path(outpath)
    _ensure_parent(outpath)
    base = outpath.stem
    functions_path = outpath.with_name(f"{base}_functions.png")
    stats_path = outpath.with_name(f"{base}_stats.png")
    time = result.time

    fig, axes = plt.subplots(1, 3, figsize=(14, 4))
    axes[0].plot(time, result.f0)
    axes[0].set_title("Original data")
    axes[1].plot(time, result.gam)
    axes[1].plot(time, time, color="k", linestyle=":")
    axes[1].set_aspect("equal")
    axes[1].set_title("Warping functions")
    axes[2].plot(time, result.fn)
    axes[2].plot(time, result.fmean, color="k", linewidth=2, label=f"Karcher {result.method}")
    axes[2].set_title(f"Warped data (lambda = {result.lam:.1f})")
    axes[2].legend(fontsize="small")
    fig.savefig(functions_path)
    plt.close(fig)

    fig, axes = plt.subplots(1, 2, figsize=(10, 4))
    _mean_band(axes[0], time, result.f0, "Original data: mean +/- std")
    _mean_band(axes[1], time, result.fn, "Warped data: mean +/- std")
    fig.savefig(stats_path)
    plt.close(fig)

    return {"functions": str(functions_path), "stats": str(stats_path)}


def plot_benchmarks(summary: pd.DataFrame, out_dir: str | pathlib.Path) -> List[str]:
    out_dir = pathlib.Path(out_dir)
    _ensure_parent(out_dir / "dummy")
    paths: List[str] = []
    if {"scenario", "method", "amp_ratio"} <= set(summary.columns):
        fig, ax = plt.subplots(figsize=(8, 4))
        summary.pivot_table(index="scenario", columns="method", values="amp_ratio").plot.bar(ax=ax)
        ax.set_ylabel("amp.var / orig.var")
        fig.savefig(out_dir / "amp_ratio_bar.png")
        plt.close(fig)
        paths.append(str(out_dir / "amp_ratio_bar.png"))
    if "runtime_ms" in summary.columns and "method" in summary.columns:
        fig, ax = plt.subplots(figsize=(8, 4))
        summary.boxplot(column="runtime_ms", by="method", ax=ax)
        ax.set_ylabel("Runtime (ms)")
        fig.suptitle("")
        ax.set_title("Runtime distribution")
        fig.savefig(out_dir / "runtime_box.png")
        plt.close(fig)
        paths.append(str(out_dir / "runtime_box.png"))
    return paths


__all__ = ["plot_alignment", "plot_benchmarks"]
