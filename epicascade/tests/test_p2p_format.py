"""Unit tests for the trace to file-request converter."""

from __future__ import annotations

import io

import pytest

from epicascade.p2p_format import convert_trace, main, read_trace, to_requests


TRACE = """\
2 5 3 0
1 0 1 0
2 4 3 0
1 0 2 0
2 5 3 1
1 7 1 0
"""


def test_groups_providers_per_request():
    out = io.StringIO()
    count = convert_trace(io.StringIO(TRACE), out)
    assert count == 4
    assert out.getvalue().splitlines() == [
        "1 1 0 0 7",
        "1 2 0 0",
        "2 3 0 4 5",
        "2 3 1 5",
    ]


def test_request_columns():
    requests = to_requests(read_trace(io.StringIO(TRACE)))
    assert list(requests.columns) == ["time", "client", "file", "providers"]
    assert requests["providers"].tolist()[0] == [0, 7]


def test_empty_trace_gives_no_requests():
    out = io.StringIO()
    assert convert_trace(io.StringIO(""), out) == 0
    assert out.getvalue() == ""


def test_short_line_raises():
    with pytest.raises(ValueError):
        read_trace(io.StringIO("1 0 1\n"))


def test_long_line_raises():
    with pytest.raises(ValueError):
        convert_trace(io.StringIO("1 0 1 0 9\n1 0 3 0 9\n"), io.StringIO())


def test_wide_row_after_valid_rows_raises():
    with pytest.raises(ValueError):
        read_trace(io.StringIO("1 0 1 0\n1 0 3 0 9\n"))


def test_cli_writes_output_file(tmp_path, capsys):
    src = tmp_path / "run-maxsize.trace"
    src.write_text(TRACE, encoding="utf-8")
    dst = tmp_path / "run.requests"
    main([str(src), "-o", str(dst)])
    assert dst.read_text(encoding="utf-8").splitlines()[2] == "2 3 0 4 5"
    assert "wrote 4 request line(s)" in capsys.readouterr().err


def test_cli_missing_trace_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "missing.trace")])
    assert exc.value.code == 1
