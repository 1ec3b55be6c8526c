#!/usr/bin/env python3
"""
p2p_format.py -- P2P network file request format converter
============================================================
Convert a spreading trace into lists of file requests.

Input records are spreading events ``t P C F`` (time, provider, client,
epidemic id), as written by the simulator.  Each epidemic is read as a file
being shared: every client that received file F at time t is turned into one
request line listing all providers it contacted::

    t C F P1 ... Pn

Records are ordered by time, client, file and provider, numerically.

Usage examples
--------------
python3 -m epicascade.p2p_format run-maxdepth.trace -o run.requests
epicascade-p2p < run-maxsize.trace > run.requests
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import IO

import pandas as pd


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TRACE_COLUMNS = ["time", "provider", "client", "file"]
SORT_ORDER = ["time", "client", "file", "provider"]
GROUP_KEYS = ["time", "client", "file"]


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def read_trace(stream: IO[str] | str | Path) -> pd.DataFrame:
    """Load a trace into a DataFrame with integer columns ``TRACE_COLUMNS``.

    Raises
    ------
    ValueError
        If a line does not hold exactly four integers.
    """
    try:
        df = pd.read_csv(stream, sep=r"\s+", header=None, comment="#")
    except pd.errors.EmptyDataError:
        return pd.DataFrame({c: pd.Series(dtype="int64") for c in TRACE_COLUMNS})
    except pd.errors.ParserError as exc:
        raise ValueError(f"trace lines must hold four fields: t P C F ({exc}).") from exc

    if df.shape[1] != len(TRACE_COLUMNS) or df.isna().any().any():
        raise ValueError("trace lines must hold four fields: t P C F.")
    df.columns = TRACE_COLUMNS
    try:
        return df.astype("int64")
    except (TypeError, ValueError) as exc:
        raise ValueError(f"trace fields must be integers: {exc}") from exc


def to_requests(trace: pd.DataFrame) -> pd.DataFrame:
    """Group spreading events into file requests.

    Returns
    -------
    pd.DataFrame
        Columns ``time``, ``client``, ``file`` and ``providers`` (list of int),
        one row per distinct (time, client, file), in sorted order.
    """
    ordered = trace.sort_values(SORT_ORDER, kind="mergesort")
    grouped = ordered.groupby(GROUP_KEYS, sort=False)["provider"].agg(list)
    return grouped.rename("providers").reset_index()


def write_requests(requests: pd.DataFrame, out: IO[str]) -> int:
    """Write request rows as ``t C F P1 ... Pn`` lines; returns the line count."""
    for row in requests.itertuples(index=False):
        providers = " ".join(str(p) for p in row.providers)
        out.write(f"{row.time} {row.client} {row.file} {providers}\n")
    return len(requests)


def convert_trace(source: IO[str] | str | Path, out: IO[str]) -> int:
    """Convert a trace read from ``source`` and write requests to ``out``."""
    return write_requests(to_requests(read_trace(source)), out)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Converts lists of spreading events { t P C F } to lists "
        "of file requests in the format { t C F P1 ... Pn }."
    )
    parser.add_argument("trace", nargs="?", help="Trace file (default: stdin).")
    parser.add_argument("-o", "--output", help="Output file (default: stdout).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    print("P2P NETWORK FILE REQUEST FORMAT CONVERTER\n", file=sys.stderr)

    if args.trace and not Path(args.trace).exists():
        print(f"ERROR: trace file not found: {args.trace}", file=sys.stderr)
        sys.exit(1)
    source = args.trace if args.trace else sys.stdin

    try:
        if args.output:
            with open(args.output, "w") as out:
                count = convert_trace(source, out)
        else:
            count = convert_trace(source, sys.stdout)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"  [p2p_format] wrote {count} request line(s).", file=sys.stderr)


if __name__ == "__main__":
    main()
