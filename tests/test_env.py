from __future__ import annotations

import os
from pathlib import Path

import pytest

from launchpad import env


@pytest.fixture
def fresh_loader(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(env, "_attempted", False)
    monkeypatch.setattr(env, "_loaded_from", None)
    yield
    os.environ.pop("LAUNCHPAD_CLUSTER", None)


def test_only_launchpad_keys_are_applied(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fresh_loader: None) -> None:
    p = tmp_path / ".env"
    p.write_text("LAUNCHPAD_CLUSTER=testnet\nLAUNCHPAD_MODE=dev\nOTHER_SETTING=1\n", encoding="utf-8")
    monkeypatch.setenv("LAUNCHPAD_DOTENV_PATH", str(p))
    monkeypatch.setenv("LAUNCHPAD_MODE", "prod")
    monkeypatch.delenv("OTHER_SETTING", raising=False)

    assert env.load_dotenv_once() == p

    assert os.environ["LAUNCHPAD_CLUSTER"] == "testnet"
    # Existing environment wins over the file.
    assert os.environ["LAUNCHPAD_MODE"] == "prod"
    assert "OTHER_SETTING" not in os.environ


def test_file_is_read_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fresh_loader: None) -> None:
    p = tmp_path / ".env"
    p.write_text("LAUNCHPAD_CLUSTER=testnet\n", encoding="utf-8")
    monkeypatch.setenv("LAUNCHPAD_DOTENV_PATH", str(p))

    assert env.load_dotenv_once() == p
    os.environ.pop("LAUNCHPAD_CLUSTER")
    p.write_text("LAUNCHPAD_CLUSTER=mainnet\n", encoding="utf-8")

    assert env.load_dotenv_once() == p
    assert "LAUNCHPAD_CLUSTER" not in os.environ


def test_missing_file_loads_nothing(fresh_loader: None) -> None:
    assert env.load_dotenv_once() is None
