from __future__ import annotations

"""Ed25519 signing identities.

A Keypair is both the payer (the operator's wallet) and the asset identity
generated for each issuance. Public keys are rendered as lowercase hex, which
is also how they appear as ledger account addresses.
"""

import hashlib
import os
from dataclasses import dataclass, field
from typing import Optional

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat

from launchpad.crypto.sig import _decode_bytes


@dataclass(frozen=True)
class Keypair:
    public_key: str
    _private: Ed25519PrivateKey = field(repr=False, compare=False)

    @staticmethod
    def from_private_key(sk: Ed25519PrivateKey) -> "Keypair":
        pk_hex = sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
        return Keypair(public_key=pk_hex, _private=sk)

    @staticmethod
    def generate() -> "Keypair":
        return Keypair.from_private_key(Ed25519PrivateKey.generate())

    @staticmethod
    def from_secret(secret: str) -> "Keypair":
        """Load from a hex or base64 secret.

        Accepts a 32-byte seed or a 64-byte expanded key (seed followed by
        the public key, as most wallets export it).
        """
        raw = _decode_bytes(secret)
        if len(raw) == 64:
            raw = raw[:32]
        if len(raw) != 32:
            raise ValueError("ed25519 secret must be 32-byte seed (or 64-byte expanded key)")
        return Keypair.from_private_key(Ed25519PrivateKey.from_private_bytes(raw))

    @staticmethod
    def from_label(label: str) -> "Keypair":
        """Deterministic keypair derived from a label.

        TEST / DEV ONLY.
        """
        seed = hashlib.sha256(("launchpad-ed25519:" + (label or "")).encode("utf-8")).digest()
        return Keypair.from_private_key(Ed25519PrivateKey.from_private_bytes(seed))

    def sign(self, message: bytes) -> str:
        return self._private.sign(message).hex()

    def secret_hex(self) -> str:
        return self._private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption()).hex()


def load_payer_keypair(secret: Optional[str]) -> Optional[Keypair]:
    """Resolve the payer from a secret string or a path to a file holding one.

    Returns None when nothing is configured; callers decide whether that is
    fatal.
    """
    s = (secret or "").strip()
    if not s:
        return None
    if os.path.isfile(s):
        with open(s, "r", encoding="utf-8") as f:
            s = f.read().strip()
    return Keypair.from_secret(s)
