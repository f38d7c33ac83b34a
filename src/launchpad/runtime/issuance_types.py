from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from launchpad.ledger.constants import MAX_DECIMALS, MAX_RAW_AMOUNT, MIN_DECIMALS, MIN_INITIAL_SUPPLY
from launchpad.runtime.errors import ValidationError

Json = Dict[str, Any]


@dataclass(frozen=True)
class IssuanceRequest:
    name: str
    symbol: str
    decimal_precision: int
    initial_supply: int
    image_uri: str
    description: str
    revoke_freeze_authority: bool = False
    revoke_mint_authority: bool = False
    revoke_update_authority: bool = False

    @property
    def revokes_any_after_mint(self) -> bool:
        return bool(self.revoke_mint_authority or self.revoke_update_authority)

    def validate(self) -> None:
        """Raise ValidationError if any field is out of range.

        The form layer checks the same ranges; this is the last gate before
        anything is published or broadcast.
        """
        for name in ("name", "symbol", "image_uri", "description"):
            if not str(getattr(self, name) or "").strip():
                raise ValidationError("missing_field", f"{name} is required", details={"field": name})

        d = self.decimal_precision
        if isinstance(d, bool) or not isinstance(d, int) or d < MIN_DECIMALS or d > MAX_DECIMALS:
            raise ValidationError(
                "decimals_out_of_range",
                f"decimal_precision must be {MIN_DECIMALS}..{MAX_DECIMALS}",
                details={"field": "decimal_precision", "value": d},
            )

        s = self.initial_supply
        if isinstance(s, bool) or not isinstance(s, int) or s < MIN_INITIAL_SUPPLY:
            raise ValidationError(
                "supply_out_of_range",
                f"initial_supply must be >= {MIN_INITIAL_SUPPLY}",
                details={"field": "initial_supply", "value": s},
            )
        if s > MAX_RAW_AMOUNT:
            raise ValidationError(
                "supply_out_of_range",
                "initial_supply exceeds the ledger's raw amount ceiling",
                details={"field": "initial_supply", "value": s},
            )

    def to_json(self) -> Json:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimal_precision": self.decimal_precision,
            "initial_supply": self.initial_supply,
            "image_uri": self.image_uri,
            "description": self.description,
            "revoke_freeze_authority": self.revoke_freeze_authority,
            "revoke_mint_authority": self.revoke_mint_authority,
            "revoke_update_authority": self.revoke_update_authority,
        }


@dataclass(frozen=True)
class IssuanceResult:
    submission_handle: str
    asset_public_key: str
    content_uri: str
    handles: Tuple[str, ...] = ()
    explorer_url: str = ""

    def to_json(self) -> Json:
        return {
            "submission_handle": self.submission_handle,
            "asset_public_key": self.asset_public_key,
            "content_uri": self.content_uri,
            "handles": list(self.handles),
            "explorer_url": self.explorer_url,
        }


# Run states
STATE_IDLE = "idle"
STATE_PUBLISHING = "publishing_metadata"
STATE_SUBMITTING = "submitting_group"
STATE_CONFIRMING = "confirming"
STATE_SUCCEEDED = "succeeded"
STATE_FAILED = "failed"

TERMINAL_STATES = frozenset({STATE_SUCCEEDED, STATE_FAILED})


@dataclass
class IssuanceRun:
    """Progress of one execute() call.

    transitions holds (state, step) pairs in the order they happened; step is
    0 outside the ledger phase.
    """

    state: str = STATE_IDLE
    step: int = 0
    asset_public_key: str = ""
    content_uri: str = ""
    handles: List[str] = field(default_factory=list)
    transitions: List[Tuple[str, int]] = field(default_factory=lambda: [(STATE_IDLE, 0)])
    failed_stage: str = ""
    failure: str = ""

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def move(self, state: str, step: int = 0) -> None:
        if self.done:
            raise RuntimeError(f"issuance run already terminal: {self.state}")
        self.state = state
        self.step = int(step)
        self.transitions.append((state, int(step)))

    def fail(self, stage: str, cause: str) -> None:
        self.failed_stage = stage
        self.failure = cause
        self.move(STATE_FAILED, self.step)
