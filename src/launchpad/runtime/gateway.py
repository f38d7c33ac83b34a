"""
Signing / submission capability.

The orchestrator needs three things from a ledger network:
  * fee_payer(): public key of the account the gateway signs fees with;
    every group the orchestrator builds names it as fee payer
  * submit_and_confirm(): sign a group with the payer plus co-signers,
    broadcast it, and block until the network confirms or rejects it
  * recent_freshness_token(): the recent-state token the gateway embeds in
    what it signs (a recent blockhash on most networks)

The orchestrator never inspects ledger internals and never calls
recent_freshness_token() itself; it is part of the contract so gateways
expose it uniformly for diagnostics.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from launchpad.crypto.keys import Keypair
from launchpad.ledger.operations import OperationGroup


@runtime_checkable
class SigningSubmissionGateway(Protocol):
    def submit_and_confirm(self, group: OperationGroup, co_signers: Sequence[Keypair]) -> str: ...

    def fee_payer(self) -> str: ...

    def recent_freshness_token(self) -> str: ...