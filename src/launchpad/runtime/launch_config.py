# src/launchpad/runtime/launch_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

Json = Dict[str, Any]


def _as_int(v: Any, default: int, name: str) -> int:
    if v is None:
        return int(default)
    if isinstance(v, bool):
        raise ValueError(f"{name} must be an integer; got: {v!r}")
    try:
        return int(v)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be an integer; got: {v!r}") from e


def _as_float(v: Any, default: float, name: str) -> float:
    if v is None:
        return float(default)
    if isinstance(v, bool):
        raise ValueError(f"{name} must be a number; got: {v!r}")
    try:
        return float(v)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a number; got: {v!r}") from e


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class LaunchConfig:
    mode: str  # "dev" | "testnet" | "prod"
    cluster: str
    explorer_base: str

    # Metadata storage (IPFS / Kubo)
    ipfs_api_base: str
    ipfs_gateway_base: str

    # Per remote call; never applied to the whole issuance.
    publish_timeout_s: float

    # Hex/base64 secret or a path to a file holding one.
    payer_secret: str
    # In-memory ledger only: lamports credited to the payer at boot.
    dev_airdrop_lamports: int

    api_host: str
    api_port: int
    log_level: str

    @property
    def uses_memory_backends(self) -> bool:
        return self.mode == "dev"


_ALLOWED_MODES = {"dev", "testnet", "prod"}

# Credited to the dev payer when no amount is configured.
DEFAULT_DEV_AIRDROP_LAMPORTS = 10_000_000_000


def validate_launch_config(cfg: LaunchConfig) -> None:
    """Fail-fast validation for operator config."""
    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if not str(cfg.cluster or "").strip():
        raise ValueError("cluster must be a non-empty string")

    if float(cfg.publish_timeout_s) <= 0:
        raise ValueError("publish_timeout_s must be > 0")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if int(cfg.dev_airdrop_lamports) < 0:
        raise ValueError("dev_airdrop_lamports must be >= 0")

    if mode == "prod":
        if not str(cfg.ipfs_api_base or "").strip():
            raise ValueError("ipfs_api_base is required in prod mode")
        if int(cfg.dev_airdrop_lamports) != 0:
            raise ValueError("dev_airdrop_lamports must be 0 in prod mode")


def default_launch_config() -> LaunchConfig:
    return LaunchConfig(
        # Without an explicit config we do not fall into a dev posture.
        mode="prod",
        cluster="devnet",
        explorer_base="https://explorer.solana.com",
        ipfs_api_base="http://127.0.0.1:5001",
        ipfs_gateway_base="http://127.0.0.1:8080",
        publish_timeout_s=30.0,
        payer_secret="",
        dev_airdrop_lamports=0,
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _merge(base: LaunchConfig, raw: Json) -> LaunchConfig:
    return replace(
        base,
        mode=_as_str(raw.get("mode"), base.mode).strip().lower(),
        cluster=_as_str(raw.get("cluster"), base.cluster).strip(),
        explorer_base=_as_str(raw.get("explorer_base"), base.explorer_base).strip().rstrip("/"),
        ipfs_api_base=_as_str(raw.get("ipfs_api_base"), base.ipfs_api_base).strip().rstrip("/"),
        ipfs_gateway_base=_as_str(raw.get("ipfs_gateway_base"), base.ipfs_gateway_base).strip().rstrip("/"),
        publish_timeout_s=_as_float(raw.get("publish_timeout_s"), base.publish_timeout_s, "publish_timeout_s"),
        payer_secret=_as_str(raw.get("payer_secret"), base.payer_secret).strip(),
        dev_airdrop_lamports=_as_int(raw.get("dev_airdrop_lamports"), base.dev_airdrop_lamports, "dev_airdrop_lamports"),
        api_host=_as_str(raw.get("api_host"), base.api_host),
        api_port=_as_int(raw.get("api_port"), base.api_port, "api_port"),
        log_level=_as_str(raw.get("log_level"), base.log_level).strip().upper(),
    )


_ENV_KEYS = {
    "mode": "LAUNCHPAD_MODE",
    "cluster": "LAUNCHPAD_CLUSTER",
    "explorer_base": "LAUNCHPAD_EXPLORER_BASE",
    "ipfs_api_base": "LAUNCHPAD_IPFS_API_BASE",
    "ipfs_gateway_base": "LAUNCHPAD_IPFS_GATEWAY_BASE",
    "publish_timeout_s": "LAUNCHPAD_PUBLISH_TIMEOUT_S",
    "payer_secret": "LAUNCHPAD_PAYER_SECRET",
    "dev_airdrop_lamports": "LAUNCHPAD_DEV_AIRDROP_LAMPORTS",
    "api_host": "LAUNCHPAD_API_HOST",
    "api_port": "LAUNCHPAD_API_PORT",
    "log_level": "LAUNCHPAD_LOG_LEVEL",
}


def read_launch_config_file(path: str) -> Json:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ValueError(f"cannot read launch config {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"launch config {path} is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError("launch config must be a JSON object")
    return raw


def load_launch_config(*, config_path: Optional[str] = None) -> LaunchConfig:
    """defaults <- JSON file (LAUNCHPAD_CONFIG_PATH) <- LAUNCHPAD_* env vars."""
    cfg = default_launch_config()

    file_raw: Json = {}
    p = config_path or os.environ.get("LAUNCHPAD_CONFIG_PATH")
    if p:
        file_raw = read_launch_config_file(p)
        cfg = _merge(cfg, file_raw)

    env_raw: Json = {}
    for key, env_name in _ENV_KEYS.items():
        v = os.environ.get(env_name)
        if v is not None and v.strip():
            env_raw[key] = v
    cfg = _merge(cfg, env_raw)

    # Dev ledgers need a funded payer unless the operator set an amount, 0 included.
    airdrop_set = file_raw.get("dev_airdrop_lamports") is not None or "dev_airdrop_lamports" in env_raw
    if cfg.uses_memory_backends and not airdrop_set:
        cfg = replace(cfg, dev_airdrop_lamports=DEFAULT_DEV_AIRDROP_LAMPORTS)

    validate_launch_config(cfg)
    return cfg


def explorer_tx_url(handle: str, cfg: LaunchConfig) -> str:
    h = str(handle or "").strip()
    base = str(cfg.explorer_base or "").strip().rstrip("/")
    if not h or not base:
        return ""
    return f"{base}/tx/{h}?cluster={cfg.cluster}"
