"""
Shared utilities for the cascade simulator.

Centralises helpers that would otherwise be duplicated across modules.
Currently provides:
  - confidence_interval()  : t-distribution CI for a sample mean
  - SeedSequence-based RNG spawning for epidemics and their trials
  - tstamp() / log()       : timestamped, thread-safe progress lines on stderr
"""

from __future__ import annotations

import sys
import threading
import time

import numpy as np
from numpy.random import Generator, SeedSequence, default_rng
import scipy.stats as stats


# ---------------------------------------------------------------------------
# Confidence interval
# ---------------------------------------------------------------------------


def confidence_interval(
    samples: np.ndarray,
    confidence: float = 0.95,
) -> tuple[float, float]:
    """Compute a confidence interval for the population mean via t-distribution.

    Parameters
    ----------
    samples : np.ndarray, shape (m,)
        Sample array.  With m < 2 the interval collapses onto the mean.
    confidence : float, optional
        Confidence level in (0, 1).  Default 0.95.

    Returns
    -------
    (ci_low, ci_high) : tuple of float
        Lower and upper bounds.

    Raises
    ------
    ValueError
        If samples is empty or confidence is not in (0, 1).
    """
    m = len(samples)
    if m == 0:
        raise ValueError("Need at least 1 sample for CI computation.")
    if not (0 < confidence < 1):
        raise ValueError(f"confidence must be in (0, 1); got {confidence}.")
    mean = float(np.mean(samples))
    if m < 2:
        return mean, mean
    se = float(stats.sem(samples))
    # Zero-variance sample has a degenerate but well-defined CI.
    if se == 0.0:
        return mean, mean
    interval = stats.t.interval(confidence, df=m - 1, loc=mean, scale=se)
    return float(interval[0]), float(interval[1])


# ---------------------------------------------------------------------------
# SeedSequence-based RNG spawning
# ---------------------------------------------------------------------------


def as_seed_sequence(seed: int | SeedSequence | None) -> SeedSequence:
    """Wrap an integer seed (or ``None`` for OS entropy) into a SeedSequence."""
    if isinstance(seed, SeedSequence):
        return seed
    return SeedSequence(seed)


def spawn_epidemic_seeds(
    master: int | SeedSequence | None,
    n_epidemics: int,
) -> list[SeedSequence]:
    """Split the master seed into one independent stream per epidemic.

    Each epidemic owns its child regardless of which worker thread runs it,
    so a run is reproducible for any thread count.
    """
    return as_seed_sequence(master).spawn(n_epidemics)


def make_trial_rngs(seed: int | SeedSequence, n_trials: int) -> list[Generator]:
    """Spawn *n_trials* statistically-independent Generators from a seed.

    Uses ``numpy.random.SeedSequence.spawn()`` which derives child seeds via a
    hash-based algorithm, guaranteeing statistical independence between streams
    -- unlike the simple ``default_rng(seed + i)`` integer-offset approach.

    Parameters
    ----------
    seed : int or SeedSequence
        Parent seed.  The same seed always produces the same sequence of
        Generators.
    n_trials : int
        How many independent Generator instances to create.

    Returns
    -------
    list of Generator
        Length-n_trials list of seeded Generators, ready for use.
    """
    ss = as_seed_sequence(seed)
    return [default_rng(child) for child in ss.spawn(n_trials)]


# ---------------------------------------------------------------------------
# Progress log
# ---------------------------------------------------------------------------

_LOG_LOCK = threading.Lock()


def tstamp() -> str:
    return time.strftime("%a %b %d %H:%M:%S %Y", time.localtime())


def log(message: str) -> None:
    """Print one timestamped progress line on stderr.

    Worker threads share stderr, so the whole line is written under a lock.
    """
    with _LOG_LOCK:
        print(f"{tstamp()} {message}", file=sys.stderr, flush=True)
