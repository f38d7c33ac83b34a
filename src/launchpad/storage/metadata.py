from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from launchpad.crypto.sig import canonical_json
from launchpad.runtime.errors import MetadataPublishError
from launchpad.runtime.issuance_types import IssuanceRequest
from launchpad.runtime.run_logging import log_event

log = logging.getLogger("launchpad.storage")

METADATA_FILENAME = "metadata.json"
METADATA_CONTENT_TYPE = "application/json"


@runtime_checkable
class PublishCapability(Protocol):
    """Object storage that turns bytes into a stable retrievable URI."""

    def publish(self, *, data: bytes, filename: str, content_type: str) -> str: ...

    def retrieval_url(self, key: str) -> str: ...


@dataclass(frozen=True)
class MetadataDescriptor:
    name: str
    symbol: str
    description: str
    image_uri: str

    @staticmethod
    def from_request(request: IssuanceRequest) -> "MetadataDescriptor":
        return MetadataDescriptor(
            name=request.name,
            symbol=request.symbol,
            description=request.description,
            image_uri=request.image_uri,
        )

    def to_json(self) -> dict:
        # "image" is the key wallets and explorers read.
        return {
            "name": self.name,
            "symbol": self.symbol,
            "description": self.description,
            "image": self.image_uri,
        }

    def to_bytes(self) -> bytes:
        return canonical_json(self.to_json()).encode("utf-8")


class MetadataPublisher:
    def __init__(self, capability: PublishCapability) -> None:
        self.capability = capability

    def publish(self, descriptor: MetadataDescriptor) -> str:
        data = descriptor.to_bytes()
        try:
            uri = self.capability.publish(data=data, filename=METADATA_FILENAME, content_type=METADATA_CONTENT_TYPE)
        except MetadataPublishError:
            raise
        except Exception as e:
            log_event(log, "metadata_publish_failed", level=logging.WARNING, symbol=descriptor.symbol, error=str(e)[:300])
            raise MetadataPublishError("publish_failed", str(e) or type(e).__name__) from e

        uri = str(uri or "").strip()
        if not uri:
            raise MetadataPublishError("publish_failed", "storage returned an empty uri")

        log_event(log, "metadata_published", symbol=descriptor.symbol, uri=uri, size=len(data))
        return uri
