"""End-to-end tests for the command-line runner."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from epicascade.runner import main

RING = "0 1\n1 2\n2 3\n3 0\n"


@pytest.fixture
def ring_inputs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Path("ring.edges").write_text(RING, encoding="utf-8")
    Path("ic.txt").write_text("2\n5 1 0\n6 1 2\n", encoding="utf-8")
    Path("sizes.txt").write_text("6 4\n5 4\n", encoding="utf-8")
    return tmp_path


def test_size_bounded_run_writes_trace_status_and_csv(ring_inputs):
    main([
        "-p", "1.0", "-g", "ring.edges", "-i", "ic.txt", "-b", "sizes.txt",
        "-o", "out/run", "-e", "status.txt", "--results-csv", "out/trials.csv",
        "-n", "2", "--seed", "3",
    ])

    trace = Path("out/run-maxsize.trace").read_text(encoding="utf-8").splitlines()
    assert sorted(line for line in trace if line.endswith(" 5")) == sorted([
        "1 0 1 5", "1 0 3 5", "2 1 0 5", "2 1 2 5",
    ])
    assert sorted(line for line in trace if line.endswith(" 6")) == sorted([
        "1 2 1 6", "1 2 3 6", "2 1 0 6",
    ])

    status = Path("status.txt").read_text(encoding="utf-8").splitlines()
    assert "Epidemic 5 #1: stopped at t = 2 with 4 / 4 ( 100.00% ) infected nodes and 3 links" in status
    assert len(status) == 4

    with open("out/trials.csv", newline="") as fh:
        rows = list(csv.DictReader(fh))
    assert [row["epidemic_id"] for row in rows] == ["5", "6"]
    assert all(row["end_infected"] == "4" for row in rows)


def test_global_time_bound_with_trivial_condition(ring_inputs, capsys):
    main(["-p", "1.0", "-g", "ring.edges", "-t", "1", "-e", "-s", "2", "--seed", "1"])
    out = capsys.readouterr()
    assert "Epidemic 0 #2: stopped at t = 1 with 3 / 4 ( 75.00% ) infected nodes and 2 links" in out.out
    assert "Done." in out.err


def test_config_file_with_cli_override(ring_inputs):
    Path("run.json").write_text(json.dumps({
        "probability": 0.5, "graph": "ring.edges", "max_time": 2, "seed": 8,
        "trace": "cfg",
    }), encoding="utf-8")
    main(["--config", "run.json", "-p", "1.0"])
    lines = Path("cfg-maxdepth.trace").read_text(encoding="utf-8").splitlines()
    # p=1.0 from the command line: node 0 serves at t=1, nodes 1 and 3 at t=2
    assert len(lines) == 6


def test_random_infected_conditions(ring_inputs):
    Path("counts.txt").write_text("1\n9 3\n", encoding="utf-8")
    main([
        "-p", "1.0", "-g", "ring.edges", "-i", "counts.txt", "--random-infected",
        "-t", "5", "--results-csv", "r.csv", "--seed", "4",
    ])
    with open("r.csv", newline="") as fh:
        row = next(csv.DictReader(fh))
    assert row["start_infected"] == "3"
    assert row["end_infected"] == "4"


@pytest.mark.parametrize("argv", [
    ["-p", "0", "-g", "ring.edges", "-t", "3"],
    ["-p", "0.5", "-g", "ring.edges"],
    ["-p", "0.5", "-g", "missing.edges", "-t", "3"],
    ["-p", "0.5", "-g", "ring.edges", "-i", "ic.txt", "-a", "bad.txt"],
    ["-p", "0.5", "-g", "ring.edges", "-i", "ic.txt", "-t", "3", "-o", "never"],
])
def test_fatal_errors_exit_before_simulating(ring_inputs, capsys, argv):
    if "bad.txt" in argv:
        Path("bad.txt").write_text("5 3\n7 3\n", encoding="utf-8")
    if "never" in argv:
        Path("ic.txt").write_text("1\n0 4 0 1 2 3\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(argv)
    assert exc.value.code == 1
    assert "ERROR:" in capsys.readouterr().err
    assert not list(Path(".").glob("*.trace"))
