"""
In-process content-addressed store.

Used in dev mode and tests in place of IPFS. Keys are SHA-256 digests of the
payload, so publishing the same bytes twice yields the same URI.
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

SCHEME = "mem://"


@dataclass(frozen=True)
class StoredObject:
    key: str
    data: bytes
    filename: str
    content_type: str


class MemoryPublishCapability:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._objects: Dict[str, StoredObject] = {}
        self.calls: List[str] = []

    def retrieval_url(self, key: str) -> str:
        k = (key or "").strip()
        return f"{SCHEME}{k}" if k else ""

    def publish(self, *, data: bytes, filename: str, content_type: str) -> str:
        key = hashlib.sha256(bytes(data)).hexdigest()
        with self._lock:
            self._objects[key] = StoredObject(key=key, data=bytes(data), filename=filename, content_type=content_type)
            self.calls.append(key)
        return self.retrieval_url(key)

    def get(self, uri_or_key: str) -> Optional[StoredObject]:
        k = (uri_or_key or "").strip()
        if k.startswith(SCHEME):
            k = k[len(SCHEME):]
        with self._lock:
            return self._objects.get(k)
