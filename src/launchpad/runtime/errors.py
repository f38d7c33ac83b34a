from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

STAGE_VALIDATION = "validation"
STAGE_METADATA = "metadata"


def group_stage(step: int) -> str:
    return f"group:{int(step)}"


@dataclass
class IssuanceError(Exception):
    """Canonical error type for issuance failures.

    stage names where the issuance stopped; details carries whatever the
    caller needs to resume or report.
    """

    code: str
    reason: str
    stage: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}:{self.reason}"

    def to_json(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "code": self.code,
            "reason": self.reason,
            "details": dict(self.details),
        }


@dataclass
class ValidationError(IssuanceError):
    """Request rejected before any I/O."""

    stage: str = STAGE_VALIDATION


@dataclass
class MetadataPublishError(IssuanceError):
    """Metadata could not be published. No ledger state was touched."""

    stage: str = STAGE_METADATA


@dataclass
class GroupSubmissionError(IssuanceError):
    """An operation group failed to broadcast or confirm.

    Groups before `step` are already applied on the ledger and stay applied.
    """

    step: int = 0
    asset_public_key: str = ""
    completed_handles: List[str] = field(default_factory=list)
    content_uri: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.stage:
            self.stage = group_stage(self.step)

    @property
    def partial(self) -> bool:
        return int(self.step) > 1

    def to_json(self) -> Dict[str, Any]:
        out = super().to_json()
        out["step"] = int(self.step)
        out["partial"] = self.partial
        out["asset_public_key"] = self.asset_public_key
        out["completed_handles"] = list(self.completed_handles)
        out["content_uri"] = self.content_uri
        return out
