"""
Cross-trial summary of cascade outcomes.

Works on :class:`~epicascade.orchestrator.TrialResult` records only; traces
are not analysed here.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .orchestrator import TrialResult
from .utils import confidence_interval


def cascade_summary(
    results: Sequence[TrialResult],
    confidence: float = 0.95,
) -> dict[str, int | float]:
    """Summarise final outbreak sizes over a set of trials.

    Parameters
    ----------
    results : sequence of TrialResult
        At least one trial.
    confidence : float, optional
        Level of the t-interval around the mean final fraction.

    Returns
    -------
    dict
        Keys ``trials``, ``mean_final_fraction``, ``std_final_fraction``,
        ``min_final_fraction``, ``max_final_fraction``, ``ci_low``,
        ``ci_high``, ``mean_cascade_links``, ``mean_end_time`` and
        ``total_events``.

    Raises
    ------
    ValueError
        If ``results`` is empty.
    """
    if not results:
        raise ValueError("cascade_summary needs at least one trial result.")

    fractions = np.array([r.end_fraction for r in results], dtype=np.float64)
    links = np.array([r.cascade_links for r in results], dtype=np.float64)
    end_times = np.array([r.end_time for r in results], dtype=np.float64)
    ci_low, ci_high = confidence_interval(fractions, confidence)

    return {
        "trials": len(results),
        "mean_final_fraction": float(np.mean(fractions)),
        "std_final_fraction": float(np.std(fractions, ddof=1)) if len(results) > 1 else 0.0,
        "min_final_fraction": float(np.min(fractions)),
        "max_final_fraction": float(np.max(fractions)),
        "ci_low": ci_low,
        "ci_high": ci_high,
        "mean_cascade_links": float(np.mean(links)),
        "mean_end_time": float(np.mean(end_times)),
        "total_events": int(sum(r.events for r in results)),
    }
