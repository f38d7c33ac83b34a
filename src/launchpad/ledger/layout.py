from __future__ import annotations

"""Account sizing and address derivation.

Pure helpers shared by the builder and the in-memory ledger so both agree on
how much space and rent an asset account needs.
"""

import hashlib
from typing import Iterable

from launchpad.ledger.constants import (
    ACCOUNT_STORAGE_OVERHEAD,
    ACCOUNT_TYPE_SIZE,
    BASE_ACCOUNT_SIZE,
    BASE_MINT_SIZE,
    EXEMPTION_THRESHOLD_YEARS,
    EXTENSION_SIZES,
    HOLDER_PROGRAM,
    LAMPORTS_PER_BYTE_YEAR,
    LENGTH_SIZE,
    PUBKEY_SIZE,
    TOKEN_PROGRAM,
    TYPE_SIZE,
)


def mint_len(extensions: Iterable[str]) -> int:
    """Size of a mint account carrying the given fixed-size extensions.

    With no extensions this is the bare mint. Otherwise the mint is padded to
    the base account size, followed by the account-type byte and one TLV
    entry per extension.
    """
    exts = list(extensions)
    if not exts:
        return BASE_MINT_SIZE
    size = BASE_ACCOUNT_SIZE + ACCOUNT_TYPE_SIZE
    for ext in exts:
        if ext not in EXTENSION_SIZES:
            raise ValueError(f"unknown extension: {ext!r}")
        size += TYPE_SIZE + LENGTH_SIZE + int(EXTENSION_SIZES[ext])
    return size


def _borsh_str_len(s: str) -> int:
    return 4 + len((s or "").encode("utf-8"))


def packed_metadata_len(*, name: str, symbol: str, uri: str) -> int:
    # update authority + mint + name + symbol + uri + empty additional_metadata vec
    return 2 * PUBKEY_SIZE + _borsh_str_len(name) + _borsh_str_len(symbol) + _borsh_str_len(uri) + 4


def metadata_tlv_len(*, name: str, symbol: str, uri: str) -> int:
    """Bytes the variable-length metadata entry adds once it is written."""
    return TYPE_SIZE + LENGTH_SIZE + packed_metadata_len(name=name, symbol=symbol, uri=uri)


def rent_exempt_minimum(size: int) -> int:
    if int(size) < 0:
        raise ValueError("size must be >= 0")
    return (ACCOUNT_STORAGE_OVERHEAD + int(size)) * LAMPORTS_PER_BYTE_YEAR * EXEMPTION_THRESHOLD_YEARS


def derive_holder_address(*, owner: str, asset: str, program: str = TOKEN_PROGRAM) -> str:
    """Canonical holder account for (owner, asset).

    Deterministic so any party can locate the account without a lookup.
    """
    seed = "|".join([HOLDER_PROGRAM, str(owner).strip(), str(program).strip(), str(asset).strip()])
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()
