from __future__ import annotations

import json

import pytest

from launchpad.runtime.errors import MetadataPublishError
from launchpad.runtime.issuance_types import IssuanceRequest
from launchpad.storage.ipfs import IpfsPublishCapability, IpfsPublishError, _parse_ipfs_add_response, looks_like_cid
from launchpad.storage.memory_store import MemoryPublishCapability
from launchpad.storage.metadata import MetadataDescriptor, MetadataPublisher, PublishCapability
from launchpad.testing.doubles import PublishUnavailable, RecordingPublishCapability

DESC = MetadataDescriptor(name="Foo", symbol="FOO", description="d", image_uri="https://img.test/foo.png")
CID = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"


def test_descriptor_encoding_is_canonical() -> None:
    raw = DESC.to_bytes()
    assert raw == b'{"description":"d","image":"https://img.test/foo.png","name":"Foo","symbol":"FOO"}'


def test_descriptor_from_request_keeps_only_descriptive_fields() -> None:
    req = IssuanceRequest(
        name="Foo",
        symbol="FOO",
        decimal_precision=6,
        initial_supply=1,
        image_uri="https://img.test/foo.png",
        description="d",
        revoke_mint_authority=True,
    )
    assert MetadataDescriptor.from_request(req) == DESC


def test_publish_sends_json_file() -> None:
    cap = RecordingPublishCapability(uri="https://cdn.test/abc")
    uri = MetadataPublisher(cap).publish(DESC)

    assert uri == "https://cdn.test/abc"
    data, filename, ctype = cap.calls[0]
    assert filename == "metadata.json"
    assert ctype == "application/json"
    assert json.loads(data)["image"] == "https://img.test/foo.png"


def test_capability_failure_is_wrapped() -> None:
    cap = RecordingPublishCapability(fail=True)

    with pytest.raises(MetadataPublishError) as ei:
        MetadataPublisher(cap).publish(DESC)

    assert ei.value.code == "publish_failed"
    assert ei.value.stage == "metadata"
    assert isinstance(ei.value.__cause__, PublishUnavailable)


def test_empty_uri_is_a_publish_failure() -> None:
    class _Blank(RecordingPublishCapability):
        def publish(self, *, data, filename, content_type):
            return "  "

    with pytest.raises(MetadataPublishError):
        MetadataPublisher(_Blank()).publish(DESC)


def test_memory_store_is_content_addressed() -> None:
    store = MemoryPublishCapability()
    a = MetadataPublisher(store).publish(DESC)
    b = MetadataPublisher(store).publish(DESC)

    assert a == b
    assert a.startswith("mem://")
    assert store.get(a).data == DESC.to_bytes()
    assert isinstance(store, PublishCapability)


def test_ipfs_add_response_takes_last_object() -> None:
    raw = (
        json.dumps({"Name": "x", "Bytes": 10}) + "\n" + json.dumps({"Name": "metadata.json", "Hash": CID, "Size": "93"}) + "\n"
    ).encode()
    assert _parse_ipfs_add_response(raw) == (CID, 93)


@pytest.mark.parametrize("raw", [b"", b"not json", b'{"Hash": "nope"}'])
def test_ipfs_add_response_rejects_garbage(raw: bytes) -> None:
    with pytest.raises(IpfsPublishError):
        _parse_ipfs_add_response(raw)


def test_ipfs_retrieval_url_and_cid_shape() -> None:
    cap = IpfsPublishCapability(api_base="http://127.0.0.1:5001", gateway_base="https://gw.test/")
    assert cap.retrieval_url(CID) == f"https://gw.test/ipfs/{CID}"
    assert cap.retrieval_url("") == ""
    assert looks_like_cid(CID)
    assert looks_like_cid("Qm" + "a" * 44)
    assert not looks_like_cid("../etc/passwd")


def test_ipfs_publish_uses_add(monkeypatch: pytest.MonkeyPatch) -> None:
    cap = IpfsPublishCapability(api_base="http://127.0.0.1:5001", gateway_base="https://gw.test")
    seen = {}

    def _fake_add(self, *, data, filename, content_type):
        seen.update(filename=filename, content_type=content_type, size=len(data))
        return CID, len(data)

    monkeypatch.setattr(IpfsPublishCapability, "add", _fake_add)

    uri = MetadataPublisher(cap).publish(DESC)

    assert uri == f"https://gw.test/ipfs/{CID}"
    assert seen == {"filename": "metadata.json", "content_type": "application/json", "size": len(DESC.to_bytes())}


def test_ipfs_unreachable_is_a_publish_error() -> None:
    # Port 9 (discard) on localhost: connection refused on any sane host.
    cap = IpfsPublishCapability(api_base="http://127.0.0.1:9", gateway_base="https://gw.test", timeout_s=2.0)

    with pytest.raises(MetadataPublishError):
        MetadataPublisher(cap).publish(DESC)


class _RecordingConnection:
    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        self.sent = {}
        self.closed = False

    def request(self, method, url, body=None, headers=None) -> None:
        self.sent = {"method": method, "url": url, "body": body, "headers": dict(headers or {})}

    def getresponse(self):
        payload = self.payload

        class _Resp:
            status = 200

            def read(self) -> bytes:
                return payload

        return _Resp()

    def close(self) -> None:
        self.closed = True


def test_ipfs_add_sends_one_sized_multipart_body(monkeypatch: pytest.MonkeyPatch) -> None:
    conn = _RecordingConnection(json.dumps({"Name": "metadata.json", "Hash": CID, "Size": "84"}).encode())
    monkeypatch.setattr(IpfsPublishCapability, "_connection", lambda self: (conn, "127.0.0.1"))
    cap = IpfsPublishCapability(api_base="http://127.0.0.1:5001", gateway_base="https://gw.test")

    uri = cap.publish(data=DESC.to_bytes(), filename="metadata.json", content_type="application/json")

    assert uri == f"https://gw.test/ipfs/{CID}"
    sent = conn.sent
    assert sent["method"] == "POST"
    assert sent["url"].startswith("/api/v0/add?")
    assert "cid-version=1" in sent["url"]
    body = sent["body"]
    assert isinstance(body, bytes)
    assert sent["headers"]["Content-Length"] == str(len(body))
    assert "Transfer-Encoding" not in sent["headers"]
    assert sent["headers"]["Content-Type"].startswith("multipart/form-data; boundary=")
    assert DESC.to_bytes() in body
    assert b'filename="metadata.json"' in body
    assert conn.closed
