"""
Run configuration for the cascade simulator.

A run is described by a flat dict that may come from a JSON file, from the
command line, or from both (command-line values win).  Validation happens
before any input file is read, so a bad configuration never starts a run.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from numpy.random import SeedSequence

from .conditions import StopCriterion


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

ConfigDict = dict[str, Any]


# ---------------------------------------------------------------------------
# Schema constants
# ---------------------------------------------------------------------------

KNOWN_KEYS = {
    "probability", "graph", "directed", "initial_conditions", "random_infected",
    "max_time", "max_time_list", "max_infected_list", "samples", "threads",
    "seed", "status", "trace", "results_csv",
}
BOUND_KEYS = ("max_time", "max_time_list", "max_infected_list")
DEFAULTS: ConfigDict = {
    "directed": False,
    "random_infected": False,
    "samples": 1,
    "threads": 1,
}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> ConfigDict:
    """Load and validate a JSON configuration file.

    Parameters
    ----------
    path : str or Path
        Path to the JSON configuration file.

    Returns
    -------
    ConfigDict
        Validated configuration with defaults filled in.

    Raises
    ------
    ValueError
        If the file is not a JSON object or a value is invalid.
    FileNotFoundError
        If the config file does not exist.
    """
    cfg = read_config_file(path)
    return validate_config(cfg)


def read_config_file(path: str | Path) -> ConfigDict:
    """Read a JSON configuration file without validating it."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r") as fh:
        try:
            cfg = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {path} must hold a JSON object.")
    return cfg


def merge_cli_overrides(cfg: ConfigDict, overrides: ConfigDict) -> ConfigDict:
    """Overlay command-line values (``None`` means not given) on ``cfg``.

    Giving any bound on the command line replaces every bound from the file,
    so a file bound cannot conflict with a command-line one.
    """
    merged = dict(cfg)
    given = {k: v for k, v in overrides.items() if v is not None}
    if any(k in given for k in BOUND_KEYS):
        for k in BOUND_KEYS:
            merged.pop(k, None)
    merged.update(given)
    return merged


def validate_config(cfg: ConfigDict) -> ConfigDict:
    """Validate ``cfg`` and return a copy with defaults filled in.

    Raises
    ------
    ValueError
        On any validation failure.
    """
    unknown = set(cfg) - KNOWN_KEYS
    if unknown:
        raise ValueError(f"Unknown config field(s): {sorted(unknown)}")

    out = {**DEFAULTS, **cfg}
    _validate_config(out)
    return out


def _validate_config(cfg: ConfigDict) -> None:
    """Validate a configuration that already carries its defaults."""
    if cfg.get("probability") is None:
        raise ValueError("probability is required")
    p = cfg["probability"]
    if isinstance(p, bool) or not isinstance(p, (int, float)):
        raise ValueError(f"probability must be a number; got {p!r}")
    if not (0.0 < p <= 1.0):
        raise ValueError(f"probability must be in (0, 1]; got {p}")

    if not cfg.get("graph") and not cfg.get("initial_conditions"):
        raise ValueError(
            "a graph path is required unless an initial-conditions list is given "
            "(the graph is then read from stdin)"
        )
    if cfg["random_infected"] and not cfg.get("initial_conditions"):
        raise ValueError("random_infected requires an initial_conditions list")

    given_bounds = [k for k in BOUND_KEYS if cfg.get(k) is not None]
    if len(given_bounds) != 1:
        raise ValueError(
            f"exactly one of {list(BOUND_KEYS)} is required; got {given_bounds or 'none'}"
        )
    if cfg.get("max_time") is not None:
        _require_int(cfg, "max_time", minimum=1)

    _require_int(cfg, "samples", minimum=1)
    _require_int(cfg, "threads", minimum=1)
    if cfg.get("seed") is not None:
        _require_int(cfg, "seed", minimum=0)


def _require_int(cfg: ConfigDict, key: str, minimum: int) -> None:
    value = cfg[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer; got {value!r}")
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}; got {value}")


# ---------------------------------------------------------------------------
# Derived settings
# ---------------------------------------------------------------------------


def stop_criterion(cfg: ConfigDict) -> StopCriterion:
    """The stop criterion selected by the bound option in ``cfg``."""
    if cfg.get("max_infected_list") is not None:
        return StopCriterion.MAX_INFECTED
    return StopCriterion.MAX_TIME


def bound_source(cfg: ConfigDict) -> str:
    """Human-readable origin of the bounds, for progress output."""
    if cfg.get("max_time") is not None:
        return ":global:"
    return str(cfg.get("max_time_list") or cfg.get("max_infected_list"))


def build_seed_sequence(cfg: ConfigDict) -> SeedSequence:
    """Master SeedSequence; OS entropy when ``cfg`` has no seed.

    ``SeedSequence.entropy`` of the result reproduces the run when passed
    back as ``seed``.
    """
    seed = cfg.get("seed")
    return SeedSequence(None if seed is None else int(seed))
