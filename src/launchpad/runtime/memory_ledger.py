from __future__ import annotations

"""In-process ledger and gateway.

MemoryLedger applies operation groups with the same preconditions a real
token program enforces (accounts exist or must not exist, authorities sign,
rent is covered, revoked authorities stay revoked). A group is applied
all-or-nothing: it runs against a copy of state and is committed only when
every operation succeeds.

MemoryLedgerGateway is a SigningSubmissionGateway over it: it signs the
canonical group message with the payer and co-signers, verifies every
required signature, applies the group, and returns the payer's signature as
the submission handle.
"""

import copy
import hashlib
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from launchpad.crypto.keys import Keypair
from launchpad.crypto.sig import canonical_group_message, verify_ed25519_signature
from launchpad.ledger.constants import (
    AUTH_FREEZE_ACCOUNT,
    AUTH_MINT_TOKENS,
    HOLDER_ACCOUNT_SIZE,
    LAMPORTS_PER_SIGNATURE,
    MAX_RAW_AMOUNT,
    OP_CREATE_ACCOUNT,
    OP_CREATE_HOLDER,
    OP_INIT_METADATA,
    OP_INIT_METADATA_POINTER,
    OP_INIT_MINT,
    OP_MINT_TO,
    OP_SET_AUTHORITY,
    OP_UPDATE_METADATA_AUTHORITY,
    TOKEN_PROGRAM,
)
from launchpad.ledger.layout import derive_holder_address, metadata_tlv_len, rent_exempt_minimum
from launchpad.ledger.operations import Operation, OperationGroup
from launchpad.runtime.run_logging import log_event

Json = Dict[str, Any]

log = logging.getLogger("launchpad.ledger")


@dataclass
class LedgerRejected(Exception):
    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


def _reject(code: str, reason: str, **details: Any) -> LedgerRejected:
    return LedgerRejected(code, reason, details or None)


@dataclass
class MemoryLedger:
    """Ledger state as plain JSON-style dicts.

    balances: pubkey -> lamports
    accounts: address -> {"owner_program", "space", "lamports", ...}
    mints:    asset   -> mint state
    holders:  holder  -> {"owner", "asset", "amount"}
    """

    balances: Dict[str, int] = field(default_factory=dict)
    accounts: Dict[str, Json] = field(default_factory=dict)
    mints: Dict[str, Json] = field(default_factory=dict)
    holders: Dict[str, Json] = field(default_factory=dict)
    slot: int = 0

    def fund(self, pubkey: str, lamports: int) -> None:
        self.balances[pubkey] = int(self.balances.get(pubkey, 0)) + int(lamports)

    def snapshot(self) -> Json:
        return {
            "balances": copy.deepcopy(self.balances),
            "accounts": copy.deepcopy(self.accounts),
            "mints": copy.deepcopy(self.mints),
            "holders": copy.deepcopy(self.holders),
            "slot": int(self.slot),
        }

    def restore(self, snap: Json) -> None:
        self.balances = snap["balances"]
        self.accounts = snap["accounts"]
        self.mints = snap["mints"]
        self.holders = snap["holders"]
        self.slot = int(snap["slot"])

    # ---- operation handlers ----

    def _debit(self, payer: str, lamports: int) -> None:
        bal = int(self.balances.get(payer, 0))
        if bal < int(lamports):
            raise _reject("insufficient_funds", "payer cannot cover debit", payer=payer, need=int(lamports), have=bal)
        self.balances[payer] = bal - int(lamports)

    def _mint(self, asset: str) -> Json:
        m = self.mints.get(asset)
        if not isinstance(m, dict) or not m.get("initialized"):
            raise _reject("mint_not_initialized", "asset mint does not exist", asset=asset)
        return m

    def _require_signer(self, key: Optional[str], signers: Set[str], *, what: str) -> None:
        if not key:
            raise _reject("authority_revoked", f"{what} is none")
        if key not in signers:
            raise _reject("missing_signature", f"{what} did not sign", key=key)

    def _create_account(self, op: Operation, signers: Set[str]) -> None:
        payer, new = op.accounts[0], op.accounts[1]
        self._require_signer(new, signers, what="new account")
        if new in self.accounts:
            raise _reject("account_exists", "account already in use", address=new)
        lamports = int(op.args.get("lamports", 0))
        space = int(op.args.get("space", 0))
        if lamports < rent_exempt_minimum(space):
            raise _reject("insufficient_rent", "account would not be rent-exempt", address=new)
        self._debit(payer, lamports)
        self.accounts[new] = {
            "owner_program": str(op.args.get("owner_program") or ""),
            "space": space,
            "lamports": lamports,
        }

    def _token_account(self, address: str) -> Json:
        acct = self.accounts.get(address)
        if not isinstance(acct, dict) or acct.get("owner_program") != TOKEN_PROGRAM:
            raise _reject("invalid_account_owner", "account is not owned by the token program", address=address)
        return acct

    def _init_metadata_pointer(self, op: Operation, signers: Set[str]) -> None:
        asset = op.accounts[0]
        self._token_account(asset)
        if asset in self.mints:
            raise _reject("already_initialized", "extensions must be set before the mint", asset=asset)
        self.accounts[asset]["metadata_pointer"] = {
            "authority": op.args.get("authority"),
            "metadata_address": op.args.get("metadata_address"),
        }

    def _init_mint(self, op: Operation, signers: Set[str]) -> None:
        asset = op.accounts[0]
        self._token_account(asset)
        if asset in self.mints:
            raise _reject("already_initialized", "mint already initialized", asset=asset)
        self.mints[asset] = {
            "initialized": True,
            "decimals": int(op.args.get("decimals", 0)),
            "mint_authority": op.args.get("mint_authority"),
            "freeze_authority": op.args.get("freeze_authority"),
            "supply": 0,
            "metadata": None,
        }

    def _init_metadata(self, op: Operation, signers: Set[str]) -> None:
        asset = op.accounts[0]
        m = self._mint(asset)
        acct = self._token_account(asset)
        pointer = acct.get("metadata_pointer") or {}
        if pointer.get("metadata_address") != asset:
            raise _reject("metadata_pointer_mismatch", "metadata pointer does not reference the mint", asset=asset)
        if m.get("metadata") is not None:
            raise _reject("already_initialized", "metadata already written", asset=asset)
        self._require_signer(m.get("mint_authority"), signers, what="mint authority")
        if op.args.get("mint_authority") != m.get("mint_authority"):
            raise _reject("authority_mismatch", "metadata signed by wrong mint authority", asset=asset)

        name = str(op.args.get("name") or "")
        symbol = str(op.args.get("symbol") or "")
        uri = str(op.args.get("uri") or "")
        new_space = int(acct["space"]) + metadata_tlv_len(name=name, symbol=symbol, uri=uri)
        if int(acct["lamports"]) < rent_exempt_minimum(new_space):
            raise _reject("insufficient_rent", "account not funded for metadata realloc", asset=asset)
        acct["space"] = new_space
        m["metadata"] = {
            "name": name,
            "symbol": symbol,
            "uri": uri,
            "update_authority": op.args.get("update_authority"),
        }

    def _create_holder(self, op: Operation, signers: Set[str]) -> None:
        payer, holder, owner, asset = op.accounts[0], op.accounts[1], op.accounts[2], op.accounts[3]
        self._mint(asset)
        expected = derive_holder_address(owner=owner, asset=asset)
        if holder != expected:
            raise _reject("invalid_holder_address", "holder address is not canonical", holder=holder)
        if holder in self.holders or holder in self.accounts:
            raise _reject("account_exists", "holder account already exists", holder=holder)
        self._debit(payer, rent_exempt_minimum(HOLDER_ACCOUNT_SIZE))
        self.holders[holder] = {"owner": owner, "asset": asset, "amount": 0}

    def _mint_to(self, op: Operation, signers: Set[str]) -> None:
        asset, holder, authority = op.accounts[0], op.accounts[1], op.accounts[2]
        m = self._mint(asset)
        h = self.holders.get(holder)
        if not isinstance(h, dict) or h.get("asset") != asset:
            raise _reject("holder_not_found", "holder account missing for asset", holder=holder)
        if m.get("mint_authority") != authority:
            raise _reject("authority_mismatch", "not the mint authority", asset=asset)
        self._require_signer(m.get("mint_authority"), signers, what="mint authority")
        amount = int(op.args.get("amount", 0))
        if amount <= 0:
            raise _reject("bad_amount", "amount must be > 0", amount=amount)
        if int(m["supply"]) + amount > MAX_RAW_AMOUNT:
            raise _reject("overflow", "supply would overflow", asset=asset)
        m["supply"] = int(m["supply"]) + amount
        h["amount"] = int(h["amount"]) + amount

    def _set_authority(self, op: Operation, signers: Set[str]) -> None:
        asset, current = op.accounts[0], op.accounts[1]
        m = self._mint(asset)
        kind = str(op.args.get("authority_type") or "")
        if kind == AUTH_MINT_TOKENS:
            field_name = "mint_authority"
        elif kind == AUTH_FREEZE_ACCOUNT:
            field_name = "freeze_authority"
        else:
            raise _reject("bad_authority_type", "unknown authority type", authority_type=kind)
        if m.get(field_name) != current:
            raise _reject("authority_mismatch", f"{field_name} is not {current}", asset=asset)
        self._require_signer(current, signers, what=field_name)
        m[field_name] = op.args.get("new_authority")

    def _update_metadata_authority(self, op: Operation, signers: Set[str]) -> None:
        asset, current = op.accounts[0], op.accounts[1]
        m = self._mint(asset)
        md = m.get("metadata")
        if not isinstance(md, dict):
            raise _reject("metadata_not_found", "no metadata on asset", asset=asset)
        if md.get("update_authority") != current:
            raise _reject("authority_mismatch", "not the update authority", asset=asset)
        self._require_signer(current, signers, what="update authority")
        md["update_authority"] = op.args.get("new_authority")

    def _handler(self, kind: str) -> Callable[[Operation, Set[str]], None]:
        handlers: Dict[str, Callable[[Operation, Set[str]], None]] = {
            OP_CREATE_ACCOUNT: self._create_account,
            OP_INIT_METADATA_POINTER: self._init_metadata_pointer,
            OP_INIT_MINT: self._init_mint,
            OP_INIT_METADATA: self._init_metadata,
            OP_CREATE_HOLDER: self._create_holder,
            OP_MINT_TO: self._mint_to,
            OP_SET_AUTHORITY: self._set_authority,
            OP_UPDATE_METADATA_AUTHORITY: self._update_metadata_authority,
        }
        h = handlers.get(kind)
        if h is None:
            raise _reject("unknown_operation", "operation kind not supported", kind=kind)
        return h

    def apply_group(self, group: OperationGroup, signers: Set[str]) -> None:
        """Apply every operation or none of them."""
        if not group.operations:
            raise _reject("empty_group", "group has no operations", step=group.step)
        snap = self.snapshot()
        try:
            self._debit(group.fee_payer, LAMPORTS_PER_SIGNATURE * len(group.signers))
            for op in group.operations:
                self._handler(op.kind)(op, signers)
        except LedgerRejected:
            self.restore(snap)
            raise
        self.slot += 1

    def freshness_token(self) -> str:
        return hashlib.sha256(f"slot:{int(self.slot)}".encode("utf-8")).hexdigest()


class MemoryLedgerGateway:
    """SigningSubmissionGateway over a MemoryLedger.

    fail_on_step makes the gateway reject that group step before applying it;
    dev-mode drills use it to rehearse partial issuance.
    """

    def __init__(
        self,
        payer: Keypair,
        *,
        ledger: Optional[MemoryLedger] = None,
        fail_on_step: Optional[int] = None,
        airdrop_lamports: int = 0,
    ) -> None:
        self.payer = payer
        self.ledger = ledger if ledger is not None else MemoryLedger()
        self.fail_on_step = fail_on_step
        self.submitted: List[OperationGroup] = []
        self._lock = threading.Lock()
        if int(airdrop_lamports) > 0:
            self.ledger.fund(payer.public_key, int(airdrop_lamports))

    def fee_payer(self) -> str:
        return self.payer.public_key

    def recent_freshness_token(self) -> str:
        with self._lock:
            return self.ledger.freshness_token()

    def submit_and_confirm(self, group: OperationGroup, co_signers: Sequence[Keypair]) -> str:
        with self._lock:
            self.submitted.append(group)
            if self.fail_on_step is not None and int(group.step) == int(self.fail_on_step):
                raise _reject("injected_failure", "gateway configured to fail this step", step=group.step)

            if group.fee_payer != self.payer.public_key:
                raise _reject("fee_payer_mismatch", "group fee payer is not this gateway's payer")

            msg = canonical_group_message(group=group.to_json(), freshness_token=self.ledger.freshness_token())
            keys: Dict[str, Keypair] = {self.payer.public_key: self.payer}
            for kp in co_signers:
                keys[kp.public_key] = kp
            sigs = {pk: kp.sign(msg) for pk, kp in keys.items()}

            for required in group.signers:
                sig = sigs.get(required)
                if sig is None or not verify_ed25519_signature(message=msg, sig=sig, pubkey=required):
                    raise _reject("missing_signature", "required signer did not sign", signer=required)

            self.ledger.apply_group(group, set(sigs.keys()))
            handle = sigs[self.payer.public_key]

        log_event(log, "group_confirmed", step=group.step, label=group.label, handle=handle, slot=self.ledger.slot)
        return handle
