"""
Runner script for the cascade simulator.

Loads the epidemic definitions and their bounds, loads the contact graph,
then runs every epidemic ``samples`` times on a thread pool.

Outputs
-------
* ``<trace>-<maxdepth|maxsize>.trace`` -- one ``t P C F`` line per
  successful transmission attempt (``--trace``).
* Status lines per trial, to a file or stdout (``--status``).
* Per-trial results CSV (``--results-csv``).

Usage
-----
    python runner.py -p 0.3 -g graph.txt -t 10 [-s 5] [-n 4] [-e] [-o out/run]
    python runner.py --config run.json [--threads 8]

Progress goes to stderr.  Configuration and input errors stop the run before
any simulation starts.
"""

from __future__ import annotations

import argparse
import csv
import sys
import time
from pathlib import Path

from numpy.random import default_rng

from .conditions import (
    apply_bound_list,
    apply_global_bound,
    load_bounds,
    load_initial_conditions,
    trivial_condition,
    validate_conditions,
)
from .config import (
    ConfigDict,
    bound_source,
    build_seed_sequence,
    merge_cli_overrides,
    read_config_file,
    stop_criterion,
    validate_config,
)
from .graph import load_graph
from .metrics import cascade_summary
from .orchestrator import RESULT_FIELDS, TrialResult, run_trials
from .sinks import open_status_sink, open_trace_sink, trace_output_path
from .utils import log


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Simple epidemic cascade simulation: SIR spreading where "
        "infected nodes recover after one time step."
    )
    parser.add_argument("--config", help="JSON run configuration (CLI options override it).")
    parser.add_argument("-p", "--probability", type=float, help="Spreading probability in (0, 1].")
    parser.add_argument("-g", "--graph", help="Edge-list graph file (default: stdin).")
    parser.add_argument(
        "--directed", action="store_true", default=None,
        help="Read edges as arcs u -> v.",
    )
    parser.add_argument("-i", "--initial-conditions", help="Initial-conditions list file.")
    parser.add_argument(
        "--random-infected", action="store_true", default=None,
        help="Draw the infected nodes of each epidemic randomly from its count.",
    )

    bounds = parser.add_mutually_exclusive_group()
    bounds.add_argument("-t", "--max-time", type=int, help="Global maximum epidemic time.")
    bounds.add_argument("-a", "--max-time-list", help="Per-epidemic maximum time list.")
    bounds.add_argument("-b", "--max-infected-list", help="Per-epidemic maximum infected list.")

    parser.add_argument("-s", "--samples", type=int, help="Sample epidemics per initial condition.")
    parser.add_argument("-n", "--threads", type=int, help="Number of worker threads.")
    parser.add_argument(
        "-e", "--status", nargs="?", const="-",
        help="Per-trial status output (no value: stdout).",
    )
    parser.add_argument("-o", "--trace", help="Spreading trace output prefix.")
    parser.add_argument("--seed", type=int, help="Master random seed (default: OS entropy).")
    parser.add_argument("--results-csv", help="Write one row per trial to this CSV file.")
    return parser


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def build_config(args: argparse.Namespace) -> ConfigDict:
    """Merge the optional config file with command-line options and validate."""
    cfg = read_config_file(args.config) if args.config else {}
    overrides = {k: v for k, v in vars(args).items() if k != "config"}
    return validate_config(merge_cli_overrides(cfg, overrides))


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


def _write_csv(path: Path, fieldnames: list[str], rows: list[dict]) -> None:
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def _load_inputs(cfg: ConfigDict, seed_seq):
    """Load the graph and the bounded epidemic definitions.

    Returns
    -------
    graph, conditions
    """
    criterion = stop_criterion(cfg)

    def _graph():
        log(f"[Load] graph {cfg.get('graph') or '<stdin>'} ...")
        source = cfg.get("graph") or sys.stdin
        if source == "-":
            source = sys.stdin
        g = load_graph(source, directed=cfg["directed"])
        log(f"[Load]   graph with {g.n} nodes, {g.m} links.")
        return g

    graph = None
    if cfg["random_infected"]:
        graph = _graph()

    log(f"[Load] list of epidemics {cfg.get('initial_conditions') or ''} ...")
    if not cfg.get("initial_conditions"):
        log("[Load]   no list of initial conditions given; using 1 epidemic with 1 infected node.")
        conditions = [trivial_condition()]
    elif cfg["random_infected"]:
        ic_rng = default_rng(seed_seq.spawn(1)[0])
        conditions = load_initial_conditions(cfg["initial_conditions"], n=graph.n, rng=ic_rng)
    else:
        conditions = load_initial_conditions(cfg["initial_conditions"])

    log(f"[Load] bounds ({bound_source(cfg)}) for epidemics ...")
    if cfg.get("max_time") is not None:
        apply_global_bound(conditions, cfg["max_time"], criterion)
    else:
        list_path = cfg.get("max_time_list") or cfg.get("max_infected_list")
        apply_bound_list(conditions, load_bounds(list_path), criterion)
    log(f"[Load]   loaded {len(conditions)} epidemics.")

    if graph is None:
        graph = _graph()

    validate_conditions(conditions, graph.n)
    return graph, conditions


def _print_summary(results: list[TrialResult], elapsed: float, cfg: ConfigDict) -> None:
    summary = cascade_summary(results)
    sep = "-" * 58
    err = sys.stderr
    print(sep, file=err)
    print("  Epidemic Cascade Simulation", file=err)
    print(sep, file=err)
    print(f"  Nodes               : {results[0].n_nodes}", file=err)
    print(f"  Trials              : {summary['trials']}", file=err)
    print(f"  p                   : {cfg['probability']}", file=err)
    print(f"  Elapsed             : {elapsed:.2f}s", file=err)
    print(file=err)
    print("  Final infected fraction", file=err)
    print(f"    Mean  : {summary['mean_final_fraction']:.4f}", file=err)
    print(f"    Std   : {summary['std_final_fraction']:.4f}", file=err)
    print(f"    Min   : {summary['min_final_fraction']:.4f}", file=err)
    print(f"    Max   : {summary['max_final_fraction']:.4f}", file=err)
    print(f"    95% CI: [{summary['ci_low']:.4f}, {summary['ci_high']:.4f}]", file=err)
    print(f"  Mean cascade links  : {summary['mean_cascade_links']:.2f}", file=err)
    print(f"  Mean end time       : {summary['mean_end_time']:.2f}", file=err)
    print(f"  Trace events        : {summary['total_events']}", file=err)
    print(sep, file=err)


def run(cfg: ConfigDict) -> list[TrialResult]:
    """Execute a validated configuration end to end."""
    seed_seq = build_seed_sequence(cfg)
    criterion = stop_criterion(cfg)
    log(f"[Run] {cfg['threads']} thread(s), seed entropy {seed_seq.entropy}")

    graph, conditions = _load_inputs(cfg, seed_seq)

    trace = status = None
    try:
        if cfg.get("trace"):
            trace = open_trace_sink(cfg["trace"], criterion)
            log(f"[Run] trace output: {trace_output_path(cfg['trace'], criterion)}")
        if cfg.get("status"):
            status = open_status_sink(cfg["status"])

        t0 = time.perf_counter()
        results = run_trials(
            cfg["probability"], graph, conditions,
            samples=cfg["samples"],
            threads=cfg["threads"],
            seed=seed_seq,
            trace=trace,
            status=status,
        )
        elapsed = time.perf_counter() - t0
    finally:
        if trace is not None:
            trace.close()
        if status is not None:
            status.close()

    if cfg.get("results_csv"):
        _write_csv(
            Path(cfg["results_csv"]), RESULT_FIELDS, [r.to_record() for r in results]
        )
        log(f"[Run] wrote {cfg['results_csv']}")

    _print_summary(results, elapsed, cfg)
    return results


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    print("SIMPLE EPIDEMIC CASCADE SIMULATION:\n", file=sys.stderr)
    try:
        cfg = build_config(args)
        run(cfg)
    except (ValueError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    log("Done.")


if __name__ == "__main__":
    main()
