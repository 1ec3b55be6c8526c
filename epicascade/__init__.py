"""
epicascade — Discrete-Time SIR Cascade Simulator
=================================================

Simulates stochastic epidemic cascades over a fixed contact network.  Every
infected node is infectious for exactly one time step, tests each neighbour
once with a global transmission probability, and then recovers.  A trial
stops when its time bound or infected-count bound is reached, or when no
infectious node is left.  The product is the complete trace of successful
transmission attempts, including those aimed at already-infected nodes.

Many initial conditions (and many trials per condition) run concurrently on a
thread pool over one shared, read-only graph.  Each trial owns a random
stream spawned from a single master seed.

Quick start
-----------
>>> import numpy as np
>>> from epicascade.graph import graph_from_edges
>>> from epicascade.conditions import InitialCondition, StopCriterion
>>> from epicascade.engine import run_cascade
>>> g = graph_from_edges(4, [(0, 1), (1, 2), (2, 3), (3, 0)])
>>> ic = InitialCondition(id=0, infected=np.array([0]), bound=4,
...                       stop_criterion=StopCriterion.MAX_INFECTED)
>>> state = run_cascade(1.0, g, ic, np.random.default_rng(42))
>>> state.infected_count
4
"""

from .active_set import ActiveSet
from .conditions import (
    InitialCondition,
    StopCriterion,
    trivial_condition,
    infect_randomly,
    load_initial_conditions,
    load_bounds,
    apply_global_bound,
    apply_bound_list,
    validate_conditions,
)
from .engine import CascadeEngine, CascadeState, run_cascade
from .graph import ContactGraph, graph_from_edges, graph_from_networkx, load_graph
from .metrics import cascade_summary
from .orchestrator import TrialResult, run_epidemic, run_trials
from .sinks import LineSink, TraceSink, TraceBuffer, trace_output_path
from .utils import confidence_interval, make_trial_rngs, spawn_epidemic_seeds

__all__ = [
    # active set
    "ActiveSet",
    # conditions
    "InitialCondition", "StopCriterion", "trivial_condition", "infect_randomly",
    "load_initial_conditions", "load_bounds", "apply_global_bound",
    "apply_bound_list", "validate_conditions",
    # engine
    "CascadeEngine", "CascadeState", "run_cascade",
    # graph
    "ContactGraph", "graph_from_edges", "graph_from_networkx", "load_graph",
    # metrics
    "cascade_summary",
    # orchestration
    "TrialResult", "run_epidemic", "run_trials",
    # sinks
    "LineSink", "TraceSink", "TraceBuffer", "trace_output_path",
    # utils
    "confidence_interval", "make_trial_rngs", "spawn_epidemic_seeds",
]
