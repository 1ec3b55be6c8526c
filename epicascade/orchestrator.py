"""
Trial orchestration: many independent epidemics over one shared graph.

For every initial condition the orchestrator runs ``samples`` sequential
trials, each on a fresh :class:`~epicascade.engine.CascadeEngine` with its
own random stream.  Initial conditions are the unit of parallel work: each
is submitted as one task to a thread pool, and idle workers pick up the next
pending condition, which balances epidemics of very different durations.

Design principles
-----------------
* No global RNG state: every epidemic owns a SeedSequence child of the
  master seed, and every trial a Generator spawned from it.  Results do not
  depend on the thread count.
* The graph is read-only and shared; engine state never leaves its trial.
* Trace and status output go through lock-guarded sinks.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Sequence

from numpy.random import SeedSequence

from .conditions import InitialCondition
from .engine import CascadeEngine, TraceSinkLike
from .graph import ContactGraph
from .sinks import LineSink
from .utils import log, make_trial_rngs, spawn_epidemic_seeds


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrialResult:
    """Immutable summary of one trial.

    Attributes
    ----------
    epidemic_id : int
    trial : int
        1-based trial index within the epidemic.
    start_time, start_infected : int
        State right after seeding.
    end_time, end_infected : int
        State when the trial stopped.
    cascade_links : int
    events : int
        Trace records produced by the trial.
    n_nodes : int
    """

    epidemic_id: int
    trial: int
    start_time: int
    start_infected: int
    end_time: int
    end_infected: int
    cascade_links: int
    events: int
    n_nodes: int

    @property
    def start_fraction(self) -> float:
        return self.start_infected / self.n_nodes

    @property
    def end_fraction(self) -> float:
        return self.end_infected / self.n_nodes

    def to_record(self) -> dict:
        """Return a flat dict suitable for ``csv.DictWriter``."""
        record = asdict(self)
        record["end_fraction"] = round(self.end_fraction, 6)
        return record


RESULT_FIELDS = [
    "epidemic_id", "trial", "start_time", "start_infected", "end_time",
    "end_infected", "cascade_links", "events", "n_nodes", "end_fraction",
]


# ---------------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------------


def format_start_line(epidemic_id: int, trial: int, t: int, infected: int, n: int) -> str:
    return (
        f"Epidemic {epidemic_id} #{trial}: started at t = {t} with "
        f"{infected} / {n} ( {100.0 * infected / n:.2f}% ) infected nodes"
    )


def format_stop_line(
    epidemic_id: int, trial: int, t: int, infected: int, n: int, links: int
) -> str:
    return (
        f"Epidemic {epidemic_id} #{trial}: stopped at t = {t} with "
        f"{infected} / {n} ( {100.0 * infected / n:.2f}% ) infected nodes "
        f"and {links} links"
    )


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------


def run_epidemic(
    p: float,
    graph: ContactGraph,
    condition: InitialCondition,
    samples: int,
    seed: int | SeedSequence,
    trace: TraceSinkLike | None = None,
    status: LineSink | None = None,
) -> list[TrialResult]:
    """Run ``samples`` independent trials of one epidemic, sequentially.

    The condition's infected set is released once all trials are done.
    """
    if samples < 1:
        raise ValueError(f"samples must be >= 1; got {samples}.")

    n = graph.n
    results: list[TrialResult] = []
    for trial, rng in enumerate(make_trial_rngs(seed, samples), start=1):
        engine = CascadeEngine(p, graph, condition, rng, trace=trace)
        start_time = engine.state.time
        start_infected = engine.state.infected_count
        if status is not None:
            status.write_line(
                format_start_line(condition.id, trial, start_time, start_infected, n)
            )

        state = engine.run()

        if status is not None:
            status.write_line(
                format_stop_line(
                    condition.id, trial, state.time, state.infected_count, n,
                    state.cascade_links,
                )
            )
        results.append(
            TrialResult(
                epidemic_id=condition.id,
                trial=trial,
                start_time=start_time,
                start_infected=start_infected,
                end_time=state.time,
                end_infected=state.infected_count,
                cascade_links=state.cascade_links,
                events=state.events,
                n_nodes=n,
            )
        )

    condition.release()
    return results


def run_trials(
    p: float,
    graph: ContactGraph,
    conditions: Sequence[InitialCondition],
    samples: int = 1,
    threads: int = 1,
    seed: int | SeedSequence | None = None,
    trace: TraceSinkLike | None = None,
    status: LineSink | None = None,
) -> list[TrialResult]:
    """Run every epidemic on a pool of ``threads`` workers.

    Parameters
    ----------
    p : float
        Transmission probability.
    graph : ContactGraph
        Shared contact graph.
    conditions : sequence of InitialCondition
        Epidemics with their bounds already assigned.
    samples : int, optional
        Trials per epidemic (default 1).
    threads : int, optional
        Worker threads (default 1).
    seed : int, SeedSequence or None, optional
        Master seed; ``None`` draws fresh OS entropy.
    trace, status : optional
        Shared sinks for spreading events and per-trial status lines.

    Returns
    -------
    list of TrialResult
        Ordered by epidemic (input order), then trial.

    Raises
    ------
    ValueError
        If ``samples`` or ``threads`` is below 1, or an epidemic has no
        bound or no initial infections left.  Any exception raised inside
        a worker is re-raised here.
    """
    if samples < 1:
        raise ValueError(f"samples must be >= 1; got {samples}.")
    if threads < 1:
        raise ValueError(f"threads must be >= 1; got {threads}.")
    for condition in conditions:
        if condition.bound is None or condition.stop_criterion is None:
            raise ValueError(f"epidemic {condition.id} has no bound assigned.")
        if condition.num_infected == 0:
            raise ValueError(
                f"epidemic {condition.id} has no initial infections (already run?)."
            )

    epidemic_seeds = spawn_epidemic_seeds(seed, len(conditions))

    def _task(condition: InitialCondition, epidemic_seed: SeedSequence) -> list[TrialResult]:
        log(
            f"[Run] epidemic {condition.id} with p = {p:f} upto "
            f"{condition.stop_criterion.description} = {condition.bound}"
        )
        return run_epidemic(
            p, graph, condition, samples, epidemic_seed, trace=trace, status=status
        )

    with ThreadPoolExecutor(max_workers=threads, thread_name_prefix="epidemic") as ex:
        futures = [
            ex.submit(_task, condition, epidemic_seed)
            for condition, epidemic_seed in zip(conditions, epidemic_seeds)
        ]
        results: list[TrialResult] = []
        for fut in futures:
            results.extend(fut.result())
    return results
