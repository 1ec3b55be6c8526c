"""
Discrete-time SIR cascade engine.

An infected node stays infectious for exactly one time step: when it is
popped from the active set it tests each of its neighbours once, then it is
spent (recovered).  Providers are served in the order they were infected.

State encoding
--------------
``infected_at[v] == 0``  node ``v`` was never infected
``infected_at[v] == t``  node ``v`` was infected at time step ``t`` (>= 1)

Update rule
-----------
For provider ``u`` infected at ``t`` and each client ``v`` in ``links[u]``:

    draw x ~ U[0, 1);  the attempt succeeds if x <= p

    successful, v uninfected   ->  infected_at[v] = t + 1, push v,
                                   one more cascade link, trace record
    successful, v infected     ->  trace record; a cascade link only when
                                   infected_at[v] == t + 1

Stop criteria
-------------
``MAX_TIME``      a provider with ``infected_at > bound`` is never served;
                  popping one ends the trial.
``MAX_INFECTED``  the trial ends right after the record of the infection
                  that brings the infected count to ``bound``.  Remaining
                  neighbours of that provider are not tested.

Without an early stop the trial ends when the active set runs dry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np
from numpy.random import Generator

from .active_set import ActiveSet
from .conditions import InitialCondition, StopCriterion
from .graph import ContactGraph


class TraceSinkLike(Protocol):
    def emit(self, time: int, provider: int, client: int, epidemic_id: int) -> None:
        ...


# ---------------------------------------------------------------------------
# Per-trial state
# ---------------------------------------------------------------------------


@dataclass
class CascadeState:
    """Mutable state of one running epidemic, owned by a single trial.

    Attributes
    ----------
    time : int
        Time step of the last provider that infected a new node (starts at 1).
    infected_at : np.ndarray, shape (n,), dtype int64
        Infection time per node, 0 if never infected.  Set once, never changed.
    infected_count : int
        Number of nodes with ``infected_at != 0``.
    cascade_links : int
        Successful transmissions whose client was infected at provider time + 1.
    events : int
        Trace records produced, realized infections and attempts alike.
    active : ActiveSet
        Infected nodes that have not yet acted as providers.
    """

    time: int
    infected_at: np.ndarray
    infected_count: int
    cascade_links: int
    events: int
    active: ActiveSet

    def infected_nodes(self) -> np.ndarray:
        return np.flatnonzero(self.infected_at)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class CascadeEngine:
    """Drive one epidemic instance from its seeds to its stop condition.

    Parameters
    ----------
    p : float
        Transmission probability per attempt, in [0, 1].
    graph : ContactGraph
        Shared, read-only contact graph.
    condition : InitialCondition
        Infected seeds, bound and stop criterion.
    rng : Generator
        Random stream owned by this trial.
    trace : object with ``emit(time, provider, client, epidemic_id)``, optional
        Receives one record per successful transmission attempt.

    Raises
    ------
    ValueError
        If ``p`` is outside [0, 1] or the condition has no bound.
    """

    def __init__(
        self,
        p: float,
        graph: ContactGraph,
        condition: InitialCondition,
        rng: Generator,
        trace: TraceSinkLike | None = None,
    ) -> None:
        if not (0.0 <= p <= 1.0):
            raise ValueError(f"p must be in [0, 1]; got {p}.")
        if condition.bound is None or condition.stop_criterion is None:
            raise ValueError(f"epidemic {condition.id} has no bound assigned.")

        self.p = float(p)
        self.graph = graph
        self.epidemic_id = condition.id
        self.bound = int(condition.bound)
        self.stop_criterion = condition.stop_criterion
        self.rng = rng
        self.trace = trace

        infected_at = np.zeros(graph.n, dtype=np.int64)
        active = ActiveSet(graph.n)
        for node in condition.infected.tolist():
            active.push(node)
            infected_at[node] = 1

        self.state = CascadeState(
            time=1,
            infected_at=infected_at,
            infected_count=condition.num_infected,
            cascade_links=0,
            events=0,
            active=active,
        )

    def _emit(self, t: int, provider: int, client: int) -> None:
        self.state.events += 1
        if self.trace is not None:
            self.trace.emit(t, provider, client, self.epidemic_id)

    def run(self) -> CascadeState:
        """Run the epidemic to completion and return its final state."""
        state = self.state
        infected_at = state.infected_at
        active = state.active
        links = self.graph.links
        p = self.p
        max_time = self.stop_criterion is StopCriterion.MAX_TIME
        max_infected = self.stop_criterion is StopCriterion.MAX_INFECTED

        while not active.is_empty():
            provider = active.pop()
            t = int(infected_at[provider])
            if max_time and self.bound < t:
                break

            clients = links[provider]
            draws = self.rng.random(clients.shape[0])
            for client, x in zip(clients.tolist(), draws.tolist()):
                if x > p:
                    continue
                if infected_at[client] == 0:
                    infected_at[client] = t + 1
                    active.push(client)
                    state.infected_count += 1
                    state.cascade_links += 1
                    state.time = t
                    self._emit(t, provider, client)
                    if max_infected and state.infected_count == self.bound:
                        return state
                else:
                    if infected_at[client] == t + 1:
                        state.cascade_links += 1
                    self._emit(t, provider, client)

        return state


def run_cascade(
    p: float,
    graph: ContactGraph,
    condition: InitialCondition,
    rng: Generator,
    trace: TraceSinkLike | None = None,
) -> CascadeState:
    """Build a :class:`CascadeEngine` and run it; returns the final state."""
    return CascadeEngine(p, graph, condition, rng, trace=trace).run()
