"""
Epidemic definitions: initial infected sets, stop bounds and their file formats.

Initial-condition list (whitespace separated tokens)::

    <number of epidemics>
    <epidemic id> <N> [<node 1> ... <node N>]
    ...

In random mode only ``<epidemic id> <N>`` is read per record and the N
infected nodes are drawn uniformly without replacement.

Bound list, one record per epidemic::

    <epidemic id> <bound>
"""

from __future__ import annotations

import enum
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Iterator, Sequence

import numpy as np
from numpy.random import Generator


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class StopCriterion(enum.Enum):
    """How an epidemic's bound is interpreted."""

    MAX_TIME = "maxdepth"
    MAX_INFECTED = "maxsize"

    @property
    def description(self) -> str:
        return self.value


@dataclass
class InitialCondition:
    """One epidemic definition, consumed by every trial run for it.

    Attributes
    ----------
    id : int
        Epidemic id; key used to match bound records.
    infected : np.ndarray, dtype int64
        Distinct ids of the nodes infected at time 1.
    bound : int or None
        Stop bound, interpreted according to ``stop_criterion``.
    stop_criterion : StopCriterion or None
    """

    id: int
    infected: np.ndarray = field(repr=False)
    bound: int | None = None
    stop_criterion: StopCriterion | None = None

    @property
    def num_infected(self) -> int:
        return int(self.infected.shape[0])

    def release(self) -> None:
        """Drop the infected-set storage once all trials have run."""
        self.infected = np.empty(0, dtype=np.int64)


def trivial_condition() -> InitialCondition:
    """One epidemic (id 0) starting from node 0 alone."""
    return InitialCondition(id=0, infected=np.zeros(1, dtype=np.int64))


def infect_randomly(num_infected: int, n: int, rng: Generator) -> np.ndarray:
    """Pick ``num_infected`` distinct node ids from ``0 .. n-1``, sorted."""
    if not (0 < num_infected < n):
        raise ValueError(
            f"num_infected must be in [1, {n - 1}] for a graph of {n} nodes; "
            f"got {num_infected}."
        )
    picked = rng.choice(n, size=num_infected, replace=False)
    return np.sort(picked).astype(np.int64)


# ---------------------------------------------------------------------------
# Token parsing
# ---------------------------------------------------------------------------


def _int_tokens(stream: IO[str], what: str) -> Iterator[int]:
    for lineno, line in enumerate(stream, start=1):
        for token in line.split():
            try:
                yield int(token)
            except ValueError:
                raise ValueError(
                    f"{what}: expected an integer on line {lineno}, got {token!r}."
                ) from None


def _next(tokens: Iterator[int], what: str, record: str) -> int:
    try:
        return next(tokens)
    except StopIteration:
        raise ValueError(f"{what}: truncated input while reading {record}.") from None


def _open(path: str | Path, what: str) -> IO[str]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{what} file not found: {path}")
    return path.open("r")


# ---------------------------------------------------------------------------
# Initial conditions
# ---------------------------------------------------------------------------


def read_initial_conditions(
    stream: IO[str],
    n: int | None = None,
    rng: Generator | None = None,
) -> list[InitialCondition]:
    """Parse an initial-condition list.

    Parameters
    ----------
    stream : text stream
    n : int or None, optional
        Node count.  When given, infected ids are not read but drawn with
        :func:`infect_randomly` using ``rng``.
    rng : Generator or None
        Required in random mode.

    Raises
    ------
    ValueError
        On malformed counts, truncated records or duplicate epidemic ids.
    """
    what = "initial conditions"
    if n is not None and rng is None:
        raise ValueError("random initial conditions need a Generator.")

    tokens = _int_tokens(stream, what)
    epidemics = _next(tokens, what, "the number of epidemics")
    if epidemics <= 0:
        raise ValueError(f"{what}: number of epidemics must be > 0; got {epidemics}.")

    conditions: list[InitialCondition] = []
    seen: set[int] = set()
    for j in range(epidemics):
        record = f"epidemic record {j + 1} of {epidemics}"
        eid = _next(tokens, what, record)
        num_infected = _next(tokens, what, record)
        if num_infected <= 0:
            raise ValueError(
                f"{what}: epidemic {eid} must have > 0 infected nodes; got {num_infected}."
            )
        if eid in seen:
            raise ValueError(f"{what}: duplicate epidemic id {eid}.")
        seen.add(eid)

        if n is not None:
            infected = infect_randomly(num_infected, n, rng)
        else:
            infected = np.array(
                [_next(tokens, what, record) for _ in range(num_infected)],
                dtype=np.int64,
            )
        conditions.append(InitialCondition(id=eid, infected=infected))
    return conditions


def load_initial_conditions(
    path: str | Path,
    n: int | None = None,
    rng: Generator | None = None,
) -> list[InitialCondition]:
    """Load an initial-condition list from ``path``; see :func:`read_initial_conditions`."""
    with _open(path, "Initial conditions") as fh:
        return read_initial_conditions(fh, n=n, rng=rng)


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------


def apply_global_bound(
    conditions: Sequence[InitialCondition],
    bound: int,
    criterion: StopCriterion,
) -> None:
    """Give every epidemic the same bound and stop criterion."""
    for ic in conditions:
        ic.bound = int(bound)
        ic.stop_criterion = criterion


def read_bounds(stream: IO[str]) -> list[tuple[int, int]]:
    """Parse ``<epidemic id> <bound>`` records."""
    what = "bound list"
    tokens = _int_tokens(stream, what)
    records: list[tuple[int, int]] = []
    for eid in tokens:
        bound = _next(tokens, what, f"the bound of epidemic {eid}")
        records.append((eid, bound))
    return records


def load_bounds(path: str | Path) -> list[tuple[int, int]]:
    with _open(path, "Bound list") as fh:
        return read_bounds(fh)


def apply_bound_list(
    conditions: Sequence[InitialCondition],
    records: Sequence[tuple[int, int]],
    criterion: StopCriterion,
) -> None:
    """Assign per-epidemic bounds matched one-to-one by epidemic id.

    Raises
    ------
    ValueError
        If the record count differs from the number of epidemics, an id is
        repeated, or an id has no matching epidemic.
    """
    if len(records) != len(conditions):
        raise ValueError(
            f"bound list has {len(records)} record(s) for {len(conditions)} epidemic(s)."
        )
    by_id = {ic.id: ic for ic in conditions}
    assigned: set[int] = set()
    for eid, bound in records:
        if eid in assigned:
            raise ValueError(f"bound list: duplicate epidemic id {eid}.")
        if eid not in by_id:
            raise ValueError(f"bound list: epidemic id {eid} has no initial condition.")
        assigned.add(eid)
        by_id[eid].bound = int(bound)
        by_id[eid].stop_criterion = criterion


# ---------------------------------------------------------------------------
# Validation against the graph
# ---------------------------------------------------------------------------


def validate_conditions(conditions: Sequence[InitialCondition], n: int) -> None:
    """Check every epidemic against a graph of ``n`` nodes before any trial runs.

    Raises
    ------
    ValueError
        If an epidemic has no infected nodes (or was already released), an
        infected id is out of range or repeated, an epidemic infects ``n`` or
        more nodes, a bound is missing or not positive, or a size bound does
        not exceed the initial infections.
    """
    for ic in conditions:
        infected = ic.infected
        if infected.shape[0] == 0:
            raise ValueError(f"epidemic {ic.id}: no initial infections.")
        if infected.shape[0] >= n:
            raise ValueError(
                f"epidemic {ic.id}: {infected.shape[0]} initial infections for a "
                f"graph of {n} nodes; need strictly fewer."
            )
        if infected.shape[0] and (infected.min() < 0 or infected.max() >= n):
            raise ValueError(
                f"epidemic {ic.id}: infected node ids must lie in [0, {n - 1}]."
            )
        if np.unique(infected).shape[0] != infected.shape[0]:
            raise ValueError(f"epidemic {ic.id}: infected node ids are not distinct.")
        if ic.bound is None or ic.stop_criterion is None:
            raise ValueError(f"epidemic {ic.id}: no bound assigned.")
        if ic.bound <= 0:
            raise ValueError(f"epidemic {ic.id}: bound must be > 0; got {ic.bound}.")
        # the size check only fires on a new infection
        if ic.stop_criterion is StopCriterion.MAX_INFECTED and ic.bound <= infected.shape[0]:
            raise ValueError(
                f"epidemic {ic.id}: size bound {ic.bound} must exceed the "
                f"{infected.shape[0]} initial infections."
            )
        if ic.stop_criterion is StopCriterion.MAX_INFECTED and ic.bound > n:
            warnings.warn(
                f"epidemic {ic.id}: size bound {ic.bound} exceeds the {n} graph "
                f"nodes and can never be reached.",
                UserWarning,
                stacklevel=2,
            )
