from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "launchpad" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Operator shells may export LAUNCHPAD_*; tests start from defaults.
    for k in list(os.environ.keys()):
        if k.startswith("LAUNCHPAD_"):
            monkeypatch.delenv(k, raising=False)
    monkeypatch.setenv("LAUNCHPAD_DOTENV_PATH", "/nonexistent/.env")


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # CLI tests call configure_structured_logging(), which replaces root handlers.
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    configured = getattr(root, "_launchpad_configured", False)
    yield
    root.handlers = handlers
    root.setLevel(level)
    setattr(root, "_launchpad_configured", configured)
