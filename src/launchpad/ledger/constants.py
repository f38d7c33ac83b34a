# src/launchpad/ledger/constants.py
from __future__ import annotations

from typing import Final

# Program identifiers. The ledger is addressed through these symbolic ids;
# a concrete gateway maps them to the network's real program addresses.
SYSTEM_PROGRAM: Final[str] = "system"
TOKEN_PROGRAM: Final[str] = "token-2022"
HOLDER_PROGRAM: Final[str] = "associated-token"

# Account layout (token-2022 with TLV extensions).
BASE_MINT_SIZE: Final[int] = 82
BASE_ACCOUNT_SIZE: Final[int] = 165
ACCOUNT_TYPE_SIZE: Final[int] = 1
TYPE_SIZE: Final[int] = 2
LENGTH_SIZE: Final[int] = 2
PUBKEY_SIZE: Final[int] = 32

# Holder accounts carry the immutable-owner extension: a TLV header with no payload.
HOLDER_ACCOUNT_SIZE: Final[int] = BASE_ACCOUNT_SIZE + ACCOUNT_TYPE_SIZE + TYPE_SIZE + LENGTH_SIZE

EXT_METADATA_POINTER: Final[str] = "metadata_pointer"
EXTENSION_SIZES: Final[dict] = {
    # authority + metadata address
    EXT_METADATA_POINTER: 2 * PUBKEY_SIZE,
}

# Rent: accounts holding at least two years of rent are exempt.
ACCOUNT_STORAGE_OVERHEAD: Final[int] = 128
LAMPORTS_PER_BYTE_YEAR: Final[int] = 3480
EXEMPTION_THRESHOLD_YEARS: Final[int] = 2

LAMPORTS_PER_SIGNATURE: Final[int] = 5000

# Operation kinds
OP_CREATE_ACCOUNT: Final[str] = "create_account"
OP_INIT_METADATA_POINTER: Final[str] = "initialize_metadata_pointer"
OP_INIT_MINT: Final[str] = "initialize_mint"
OP_INIT_METADATA: Final[str] = "initialize_metadata"
OP_CREATE_HOLDER: Final[str] = "create_holder_account"
OP_MINT_TO: Final[str] = "mint_to"
OP_SET_AUTHORITY: Final[str] = "set_authority"
OP_UPDATE_METADATA_AUTHORITY: Final[str] = "update_metadata_authority"

# Authority types for set_authority
AUTH_MINT_TOKENS: Final[str] = "mint_tokens"
AUTH_FREEZE_ACCOUNT: Final[str] = "freeze_account"

# Group labels, in submission order.
GROUP_CREATE_ASSET: Final[str] = "create_asset"
GROUP_CREATE_HOLDER: Final[str] = "create_holder"
GROUP_MINT_SUPPLY: Final[str] = "mint_initial_supply"
GROUP_REVOKE: Final[str] = "revoke_authorities"

MIN_DECIMALS: Final[int] = 1
MAX_DECIMALS: Final[int] = 9
MIN_INITIAL_SUPPLY: Final[int] = 1
# u64 raw amount ceiling
MAX_RAW_AMOUNT: Final[int] = 2**64 - 1
