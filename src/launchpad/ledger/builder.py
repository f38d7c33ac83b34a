from __future__ import annotations

"""Operation groups for issuing a new asset.

build_groups() is pure: no I/O, no clock, no randomness. Given the same
request, asset key, content URI and payer it returns equal groups.

Group order is fixed and each group only references accounts created by
earlier groups:

  1. create_asset         allocate + metadata pointer + mint + metadata record
  2. create_holder        payer's canonical holder account
  3. mint_initial_supply  initial_supply raw units into the holder
  4. revoke_authorities   only when mint or update authority is revoked

Freeze authority is decided once, inside group 1. A mint created with a
freeze authority that is later cleared is not the same as one that never had
it, so it never appears in group 4.
"""

from typing import List, Optional

from launchpad.ledger.constants import (
    AUTH_MINT_TOKENS,
    EXT_METADATA_POINTER,
    GROUP_CREATE_ASSET,
    GROUP_CREATE_HOLDER,
    GROUP_MINT_SUPPLY,
    GROUP_REVOKE,
    HOLDER_PROGRAM,
    OP_CREATE_ACCOUNT,
    OP_CREATE_HOLDER,
    OP_INIT_METADATA,
    OP_INIT_METADATA_POINTER,
    OP_INIT_MINT,
    OP_MINT_TO,
    OP_SET_AUTHORITY,
    OP_UPDATE_METADATA_AUTHORITY,
    SYSTEM_PROGRAM,
    TOKEN_PROGRAM,
)
from launchpad.ledger.layout import derive_holder_address, metadata_tlv_len, mint_len, rent_exempt_minimum
from launchpad.ledger.operations import Operation, OperationGroup
from launchpad.runtime.issuance_types import IssuanceRequest


def _require_key(v: str, name: str) -> str:
    s = str(v or "").strip()
    if not s:
        raise ValueError(f"{name} must be a non-empty public key")
    return s


def create_asset_group(request: IssuanceRequest, *, asset: str, content_uri: str, payer: str) -> OperationGroup:
    space = mint_len([EXT_METADATA_POINTER])
    # Fund for the metadata record too: initialize_metadata reallocates the
    # account and fails if it is not already rent-exempt at the larger size.
    funded = space + metadata_tlv_len(name=request.name, symbol=request.symbol, uri=content_uri)
    freeze_authority: Optional[str] = None if request.revoke_freeze_authority else payer

    ops = (
        Operation(
            kind=OP_CREATE_ACCOUNT,
            program=SYSTEM_PROGRAM,
            accounts=(payer, asset),
            args={"space": space, "lamports": rent_exempt_minimum(funded), "owner_program": TOKEN_PROGRAM},
        ),
        Operation(
            kind=OP_INIT_METADATA_POINTER,
            program=TOKEN_PROGRAM,
            accounts=(asset,),
            args={"authority": payer, "metadata_address": asset},
        ),
        Operation(
            kind=OP_INIT_MINT,
            program=TOKEN_PROGRAM,
            accounts=(asset,),
            args={
                "decimals": int(request.decimal_precision),
                "mint_authority": payer,
                "freeze_authority": freeze_authority,
            },
        ),
        Operation(
            kind=OP_INIT_METADATA,
            program=TOKEN_PROGRAM,
            accounts=(asset, payer, asset, payer),
            args={
                "name": request.name,
                "symbol": request.symbol,
                "uri": content_uri,
                "update_authority": payer,
                "mint_authority": payer,
            },
        ),
    )
    return OperationGroup(
        step=1,
        label=GROUP_CREATE_ASSET,
        fee_payer=payer,
        operations=ops,
        required_signers=(asset,),
    )


def create_holder_group(*, asset: str, payer: str) -> OperationGroup:
    holder = derive_holder_address(owner=payer, asset=asset)
    op = Operation(
        kind=OP_CREATE_HOLDER,
        program=HOLDER_PROGRAM,
        accounts=(payer, holder, payer, asset),
        args={"token_program": TOKEN_PROGRAM},
    )
    return OperationGroup(step=2, label=GROUP_CREATE_HOLDER, fee_payer=payer, operations=(op,))


def mint_supply_group(request: IssuanceRequest, *, asset: str, payer: str) -> OperationGroup:
    holder = derive_holder_address(owner=payer, asset=asset)
    op = Operation(
        kind=OP_MINT_TO,
        program=TOKEN_PROGRAM,
        accounts=(asset, holder, payer),
        args={"amount": int(request.initial_supply)},
    )
    return OperationGroup(step=3, label=GROUP_MINT_SUPPLY, fee_payer=payer, operations=(op,))


def revoke_group(request: IssuanceRequest, *, asset: str, payer: str) -> Optional[OperationGroup]:
    if not request.revokes_any_after_mint:
        return None
    ops: List[Operation] = []
    if request.revoke_mint_authority:
        ops.append(
            Operation(
                kind=OP_SET_AUTHORITY,
                program=TOKEN_PROGRAM,
                accounts=(asset, payer),
                args={"authority_type": AUTH_MINT_TOKENS, "new_authority": None},
            )
        )
    if request.revoke_update_authority:
        ops.append(
            Operation(
                kind=OP_UPDATE_METADATA_AUTHORITY,
                program=TOKEN_PROGRAM,
                accounts=(asset, payer),
                args={"new_authority": None},
            )
        )
    return OperationGroup(step=4, label=GROUP_REVOKE, fee_payer=payer, operations=tuple(ops))


def build_groups(request: IssuanceRequest, asset: str, content_uri: str, payer: str) -> List[OperationGroup]:
    asset = _require_key(asset, "asset")
    payer = _require_key(payer, "payer")
    if asset == payer:
        raise ValueError("asset identity must differ from payer")
    uri = str(content_uri or "").strip()
    if not uri:
        raise ValueError("content_uri must be non-empty")

    groups = [
        create_asset_group(request, asset=asset, content_uri=uri, payer=payer),
        create_holder_group(asset=asset, payer=payer),
        mint_supply_group(request, asset=asset, payer=payer),
    ]
    revoke = revoke_group(request, asset=asset, payer=payer)
    if revoke is not None:
        groups.append(revoke)
    return groups
