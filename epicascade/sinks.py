"""
Output sinks shared by all worker threads.

Each sink serialises writes with its own lock so that every record reaches
the stream as one whole line.  Lines from different workers may interleave;
characters within a line never do.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import IO

from .conditions import StopCriterion


class LineSink:
    """Mutex-guarded line writer.

    Parameters
    ----------
    stream : text stream
        Destination.
    owned : bool, optional
        Close ``stream`` in :meth:`close`.  Standard streams are never owned.
    flush_lines : bool, optional
        Flush after every line (default).  Otherwise the stream is flushed
        only in :meth:`flush` and :meth:`close`.
    """

    def __init__(self, stream: IO[str], owned: bool = False, flush_lines: bool = True) -> None:
        self.stream = stream
        self.owned = owned
        self.flush_lines = flush_lines
        self._lock = threading.Lock()

    def write_line(self, text: str) -> None:
        with self._lock:
            self.stream.write(text + "\n")
            if self.flush_lines:
                self.stream.flush()

    def flush(self) -> None:
        with self._lock:
            if not self.stream.closed:
                self.stream.flush()

    def close(self) -> None:
        with self._lock:
            if self.stream.closed:
                return
            self.stream.flush()
            if self.owned:
                self.stream.close()

    def __enter__(self) -> "LineSink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class TraceSink(LineSink):
    """Writes spreading events as ``time provider client epidemic_id``.

    Records are buffered by the stream; see :meth:`LineSink.flush`.
    """

    def __init__(self, stream: IO[str], owned: bool = False, flush_lines: bool = False) -> None:
        super().__init__(stream, owned=owned, flush_lines=flush_lines)

    def emit(self, time: int, provider: int, client: int, epidemic_id: int) -> None:
        self.write_line(f"{time} {provider} {client} {epidemic_id}")


class TraceBuffer:
    """In-memory trace sink collecting ``(time, provider, client, epidemic_id)`` tuples."""

    def __init__(self) -> None:
        self.records: list[tuple[int, int, int, int]] = []
        self._lock = threading.Lock()

    def emit(self, time: int, provider: int, client: int, epidemic_id: int) -> None:
        with self._lock:
            self.records.append((time, provider, client, epidemic_id))

    def for_epidemic(self, epidemic_id: int) -> list[tuple[int, int, int, int]]:
        with self._lock:
            return [r for r in self.records if r[3] == epidemic_id]

    def __len__(self) -> int:
        return len(self.records)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def trace_output_path(prefix: str | Path, criterion: StopCriterion) -> Path:
    """``<prefix>-<criterion description>.trace``"""
    return Path(f"{prefix}-{criterion.description}.trace")


def open_trace_sink(prefix: str | Path, criterion: StopCriterion) -> TraceSink:
    path = trace_output_path(prefix, criterion)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    return TraceSink(path.open("w"), owned=True)


def open_status_sink(target: str | Path) -> LineSink:
    """Open the per-trial status sink; ``"-"`` selects stdout."""
    if str(target) == "-":
        return LineSink(sys.stdout)
    path = Path(target)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    return LineSink(path.open("w"), owned=True)
