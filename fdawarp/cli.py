"""Command line interface for fdawarp."""

from __future__ import annotations

import argparse
import logging
from typing import Any, Dict

from .aligner import ElasticAligner
from .benchmarks.distortions import generate
from .benchmarks.run_benchmarks import run_benchmark
from .config import WARP_SOLVERS, AlignmentConfig
from .io import load_functions_from_csv, save_functions_to_csv, save_result
from .viz import plot_alignment


def _config_from_args(args: argparse.Namespace) -> AlignmentConfig:
    options: Dict[str, Any] = {}
    if args.config:
        options.update(AlignmentConfig.from_yaml(args.config).to_dict())
    overrides = {
        "method": args.method,
        "lam": args.lam,
        "max_iter": args.max_iter,
        "omethod": args.omethod,
        "sparam": args.sparam,
        "n_jobs": args.n_jobs,
    }
    options.update({k: v for k, v in overrides.items() if v is not None})
    if args.smooth:
        options["smooth_data"] = True
    if args.parallel:
        options["parallel"] = True
    if args.no_numba:
        options["numba"] = False
    return AlignmentConfig.from_mapping(options)


def cmd_align(args: argparse.Namespace) -> None:
    config = _config_from_args(args)
    time, f = load_functions_from_csv(args.file, time_column=args.time_column)
    result = ElasticAligner(config).align(f, time)
    out_path = save_result(result, args.out)
    if args.plot:
        plot_alignment(result, out_path)
    print(
        f"{result.method} alignment {result.state.value} after {result.n_iter} iterations: "
        f"orig.var={result.orig_var:.6f} amp.var={result.amp_var:.6f} phase.var={result.phase_var:.6f}"
    )
    print(f"Result written to {out_path}")


def cmd_simulate(args: argparse.Namespace) -> None:
    params: Dict[str, Any] = {"n_points": args.n_points}
    if args.kind != "bumps":
        params["seed"] = args.seed
        if args.n_functions is not None:
            params["n_functions"] = args.n_functions
    distortion = generate(args.kind, **params)
    out_path = save_functions_to_csv(args.out, distortion.time, distortion.data)
    print(f"{distortion.data.shape[1]} functions written to {out_path}")


def cmd_bench(args: argparse.Namespace) -> None:
    result = run_benchmark(args.config, args.out, numba=not args.no_numba, max_iter=args.max_iter)
    print(f"Benchmark metrics written to {result['metrics']}")


def main() -> None:  # pragma: no cover
    parser = argparse.ArgumentParser(prog="fdawarp", description="Elastic group-wise alignment of functional data")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-q", "--quiet", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p_align = sub.add_parser("align", help="Align the functions of a CSV file")
    p_align.add_argument("--file", required=True, help="CSV with a time column and one column per function")
    p_align.add_argument("--out", required=True, help="Output .npz path (a .json summary is written next to it)")
    p_align.add_argument("--time-column", default="time")
    p_align.add_argument("--config", default=None, help="YAML file with alignment options")
    p_align.add_argument("--method", default=None, help="mean or median")
    p_align.add_argument("--lam", type=float, default=None)
    p_align.add_argument("--max-iter", type=int, default=None)
    p_align.add_argument("--omethod", choices=sorted(WARP_SOLVERS), default=None)
    p_align.add_argument("--smooth", action="store_true")
    p_align.add_argument("--sparam", type=int, default=None)
    p_align.add_argument("--parallel", action="store_true")
    p_align.add_argument("--n-jobs", type=int, default=None)
    p_align.add_argument("--no-numba", action="store_true")
    p_align.add_argument("--plot", action="store_true")
    p_align.set_defaults(func=cmd_align)

    p_sim = sub.add_parser("simulate", help="Write a synthetic function set to CSV")
    p_sim.add_argument("--out", required=True)
    p_sim.add_argument("--kind", choices=["bumps", "gaussians", "outlier"], default="gaussians")
    p_sim.add_argument("--n-points", type=int, default=101)
    p_sim.add_argument("--n-functions", type=int, default=None)
    p_sim.add_argument("--seed", type=int, default=0)
    p_sim.set_defaults(func=cmd_simulate)

    p_bench = sub.add_parser("bench", help="Run benchmark suite")
    p_bench.add_argument("--config", required=True)
    p_bench.add_argument("--out", required=True)
    p_bench.add_argument("--max-iter", type=int, default=None)
    p_bench.add_argument("--no-numba", action="store_true")
    p_bench.set_defaults(func=cmd_bench)

    args = parser.parse_args()
    level = logging.WARNING if args.quiet else logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    args.func(args)


if __name__ == "__main__":  # pragma: no cover
    main()
