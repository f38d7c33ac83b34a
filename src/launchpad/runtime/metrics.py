from __future__ import annotations

import os
import threading
import time
from typing import Dict


_lock = threading.Lock()
_counters: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    v = (os.environ.get("LAUNCHPAD_METRICS_ENABLED") or "").strip().lower()
    if not v:
        return False
    return v in {"1", "true", "yes", "y", "on"}


def inc_counter(name: str, value: int = 1) -> None:
    n = str(name or "").strip()
    if not n:
        return
    with _lock:
        _counters[n] = int(_counters.get(n, 0)) + int(value)


def get_counter(name: str) -> int:
    with _lock:
        return int(_counters.get(str(name), 0))


def reset() -> None:
    """Clear all counters. Tests only."""
    with _lock:
        _counters.clear()


def snapshot() -> dict:
    with _lock:
        return {
            "ts_ms": int(time.time() * 1000),
            "uptime_ms": int(time.time() * 1000) - int(_started_ms),
            "counters": dict(_counters),
        }


def format_prometheus(prefix: str = "launchpad_") -> str:
    """Prometheus exposition text: integer counters only."""
    pre = str(prefix or "").strip() or "launchpad_"
    snap = snapshot()
    lines = [f"{pre}uptime_ms {int(snap['uptime_ms'])}"]
    counters = snap["counters"]
    for k in sorted(counters.keys()):
        name = str(k).strip().replace(":", "_")
        if name:
            lines.append(f"{pre}{name} {int(counters[k])}")
    return "\n".join(lines) + "\n"
