from __future__ import annotations

"""Operator .env support for the CLI and the API server.

Only LAUNCHPAD_* keys are taken from the file, and a variable already set in
the process environment always wins. The file is read at most once per
process.
"""

import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

ENV_PREFIX = "LAUNCHPAD_"

_attempted = False
_loaded_from: Optional[Path] = None


def dotenv_path() -> Path:
    return Path(os.environ.get("LAUNCHPAD_DOTENV_PATH") or ".env").expanduser()


def launchpad_values(path: Path) -> Dict[str, str]:
    return {
        k: v
        for k, v in dotenv_values(path).items()
        if k.startswith(ENV_PREFIX) and v is not None
    }


def load_dotenv_once() -> Optional[Path]:
    """Apply LAUNCHPAD_* settings from the operator's .env file.

    Returns the file that was applied, or None when there is none.
    """
    global _attempted, _loaded_from
    if _attempted:
        return _loaded_from
    _attempted = True

    path = dotenv_path()
    if not path.is_file():
        return None
    for k, v in launchpad_values(path).items():
        os.environ.setdefault(k, v)
    _loaded_from = path
    return path
