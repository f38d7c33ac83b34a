from __future__ import annotations

"""Pydantic request/response schemas for the HTTP API.

These exist for HTTP input validation and a stable response shape. The
orchestrator validates the same ranges again on IssuanceRequest.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from launchpad.runtime.issuance_types import IssuanceRequest


class IssueTokenRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Token name")
    symbol: str = Field(..., min_length=1, description="Ticker symbol")
    decimals: int = Field(default=6, ge=1, le=9, description="Decimal precision")
    initial_supply: int = Field(default=1, ge=1, description="Raw units minted to the payer")
    image_url: str = Field(..., min_length=1, description="Image URI stored in metadata")
    description: str = Field(..., min_length=1, description="Free-form description")

    revoke_freeze_authority: bool = False
    revoke_mint_authority: bool = False
    revoke_update_authority: bool = False

    model_config = {"extra": "ignore"}

    def to_issuance_request(self) -> IssuanceRequest:
        return IssuanceRequest(
            name=self.name,
            symbol=self.symbol,
            decimal_precision=self.decimals,
            initial_supply=self.initial_supply,
            image_uri=self.image_url,
            description=self.description,
            revoke_freeze_authority=self.revoke_freeze_authority,
            revoke_mint_authority=self.revoke_mint_authority,
            revoke_update_authority=self.revoke_update_authority,
        )


class IssueTokenResponse(BaseModel):
    ok: bool = True
    submission_handle: str
    asset_public_key: str
    content_uri: str
    handles: List[str]
    explorer_url: str = ""


class HealthResponse(BaseModel):
    ok: bool
    mode: str
    signer: bool
    gateway: bool
    details: Dict[str, Any] = Field(default_factory=dict)
