# src/launchpad/storage/ipfs.py
from __future__ import annotations

import http.client
import json
import re
import urllib.parse
from dataclasses import dataclass
from typing import Optional, Tuple

_CIDV0_RE = re.compile(r"^Qm[1-9A-HJ-NP-Za-km-z]{44}$")  # base58btc (no 0,O,I,l)
_CIDV1_BASE32_RE = re.compile(r"^b[a-z2-7]{10,}$")  # base32 lowercase (bafy..., bagy...)

_BOUNDARY = "----launchpad-ipfs-boundary-3c1e9a0d5f724e61"


class IpfsPublishError(RuntimeError):
    pass


def looks_like_cid(cid: str, *, max_len: int = 128) -> bool:
    c = (cid or "").strip()
    if not c or len(c) > int(max_len):
        return False
    return bool(_CIDV0_RE.match(c) or _CIDV1_BASE32_RE.match(c))


def _parse_ipfs_add_response(raw: bytes) -> Tuple[str, int]:
    """
    IPFS /api/v0/add returns NDJSON (one JSON per line).
    We take the last valid JSON object and extract Hash + Size.
    """
    txt = raw.decode("utf-8", errors="replace").strip()
    if not txt:
        raise IpfsPublishError("ipfs_add_failed:empty_response")

    last_obj: Optional[dict] = None
    for line in txt.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except ValueError:
            continue
        if isinstance(obj, dict):
            last_obj = obj

    if not isinstance(last_obj, dict):
        raise IpfsPublishError(f"ipfs_add_failed:bad_response:{txt[:200]}")

    cid = str(last_obj.get("Hash") or "").strip()
    try:
        size = int(str(last_obj.get("Size") or "0").strip())
    except ValueError:
        size = 0

    if not looks_like_cid(cid):
        raise IpfsPublishError(f"ipfs_add_failed:bad_hash:{last_obj!r}")

    return cid, size


def _multipart_body(*, data: bytes, filename: str, content_type: str) -> bytes:
    name = (filename or "upload").strip() or "upload"
    ctype = (content_type or "application/octet-stream").strip()
    preamble = (
        f"--{_BOUNDARY}\r\n"
        f'Content-Disposition: form-data; name="file"; filename="{name}"\r\n'
        f"Content-Type: {ctype}\r\n"
        f"\r\n"
    ).encode("utf-8")
    epilogue = f"\r\n--{_BOUNDARY}--\r\n".encode("utf-8")
    return preamble + data + epilogue


@dataclass(frozen=True)
class IpfsPublishCapability:
    """Publishes through a Kubo HTTP API and addresses content via a gateway.

    timeout_s bounds this one call only.
    """

    api_base: str
    gateway_base: str
    timeout_s: float = 30.0
    pin: bool = True

    def retrieval_url(self, key: str) -> str:
        cid = (key or "").strip()
        if not cid:
            return ""
        return f"{self.gateway_base.rstrip('/')}/ipfs/{cid}"

    def _connection(self) -> Tuple[http.client.HTTPConnection, str]:
        base = (self.api_base or "").strip()
        if not base:
            raise IpfsPublishError("ipfs_disabled:api_base is empty")
        u = urllib.parse.urlparse(base)
        scheme = (u.scheme or "http").lower()
        host = u.hostname or "127.0.0.1"
        port = int(u.port or (443 if scheme == "https" else 80))
        conn: http.client.HTTPConnection
        if scheme == "https":
            conn = http.client.HTTPSConnection(host, port, timeout=float(self.timeout_s))
        else:
            conn = http.client.HTTPConnection(host, port, timeout=float(self.timeout_s))
        return conn, host

    def add(self, *, data: bytes, filename: str, content_type: str) -> Tuple[str, int]:
        """Upload bytes and return (cid, size)."""
        qs = urllib.parse.urlencode(
            {
                "pin": "true" if self.pin else "false",
                "wrap-with-directory": "false",
                "progress": "false",
                "cid-version": "1",
            }
        )
        body = _multipart_body(data=data, filename=filename, content_type=content_type)
        conn, host = self._connection()
        try:
            conn.request(
                "POST",
                f"/api/v0/add?{qs}",
                body=body,
                headers={
                    "Host": host,
                    "Content-Type": f"multipart/form-data; boundary={_BOUNDARY}",
                    "Content-Length": str(len(body)),
                },
            )
            resp = conn.getresponse()
            raw = resp.read()
            if resp.status < 200 or resp.status >= 300:
                # Try to surface IPFS error payload if any.
                msg = raw.decode("utf-8", errors="replace").strip()
                raise IpfsPublishError(f"ipfs_add_failed:http_{resp.status}:{msg[:300]}")
            return _parse_ipfs_add_response(raw)
        finally:
            conn.close()

    def publish(self, *, data: bytes, filename: str, content_type: str) -> str:
        cid, _ = self.add(data=data, filename=filename, content_type=content_type)
        return self.retrieval_url(cid)
