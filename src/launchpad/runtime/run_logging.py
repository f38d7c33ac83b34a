from __future__ import annotations

"""Event lines for the issuance pipeline.

Every event is one sorted-key JSON object: {"event", "ts_ms", ...fields}.
Fields JSON cannot encode directly are rendered: bytes as hex, anything
else with str().
"""

import json
import logging
import time
from typing import Any, Dict

Json = Dict[str, Any]


def _render(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).hex()
    return str(v)


def format_event(event: str, fields: Json) -> str:
    payload: Json = dict(fields)
    payload["event"] = str(event)
    payload["ts_ms"] = int(time.time() * 1000)
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=_render)


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    if logger.isEnabledFor(level):
        logger.log(level, format_event(event, fields))
