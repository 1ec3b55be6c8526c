"""Repository-level CLI entrypoint for the cascade simulator.

This wrapper preserves the documented invocation style:

    python runner.py -p 0.3 -g graph.txt -t 10 [options]
    python runner.py --config run.json

It delegates execution to :mod:`epicascade.runner`.  A ``--config`` path that
does not exist is looked up under ``configs/`` before giving up.
"""

from __future__ import annotations

import sys
from pathlib import Path

from epicascade.runner import main


def _rewrite_config_path_arg(argv: list[str]) -> list[str]:
    """Rewrite the ``--config`` value to ``configs/<name>`` when needed."""
    out = list(argv)
    for i, arg in enumerate(out[:-1]):
        if arg != "--config":
            continue
        candidate = Path(out[i + 1])
        if candidate.exists():
            return out
        alt = Path("configs") / candidate
        if alt.exists():
            out[i + 1] = str(alt)
        return out
    return out


if __name__ == "__main__":
    sys.argv = _rewrite_config_path_arg(sys.argv)
    main()
