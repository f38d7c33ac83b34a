# src/launchpad/ledger/operations.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

Json = Dict[str, Any]


@dataclass(frozen=True)
class Operation:
    """A single ledger mutation.

    accounts is ordered; its meaning depends on kind (see ledger.builder).
    args must stay JSON-compatible since it is part of the signed message.
    """

    kind: str
    program: str
    accounts: Tuple[str, ...]
    args: Json = field(default_factory=dict)

    def to_json(self) -> Json:
        return {
            "kind": self.kind,
            "program": self.program,
            "accounts": list(self.accounts),
            "args": dict(self.args),
        }


@dataclass(frozen=True)
class OperationGroup:
    """An ordered batch of operations broadcast and confirmed as one unit."""

    step: int
    label: str
    fee_payer: str
    operations: Tuple[Operation, ...]
    # Keys that must co-sign in addition to the fee payer.
    required_signers: Tuple[str, ...] = ()

    @property
    def signers(self) -> Tuple[str, ...]:
        return (self.fee_payer,) + tuple(s for s in self.required_signers if s != self.fee_payer)

    def kinds(self) -> Tuple[str, ...]:
        return tuple(op.kind for op in self.operations)

    def to_json(self) -> Json:
        return {
            "step": int(self.step),
            "label": self.label,
            "fee_payer": self.fee_payer,
            "required_signers": list(self.required_signers),
            "operations": [op.to_json() for op in self.operations],
        }
