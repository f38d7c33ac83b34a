from __future__ import annotations

import base64

import pytest

from launchpad.crypto.keys import Keypair
from launchpad.crypto.sig import canonical_group_message, verify_ed25519_signature


def test_label_keypairs_are_stable() -> None:
    assert Keypair.from_label("a").public_key == Keypair.from_label("a").public_key
    assert Keypair.from_label("a").public_key != Keypair.from_label("b").public_key
    assert Keypair.generate().public_key != Keypair.generate().public_key


def test_secret_round_trip_accepts_expanded_and_base64() -> None:
    kp = Keypair.from_label("operator")
    seed = bytes.fromhex(kp.secret_hex())
    expanded = seed + bytes.fromhex(kp.public_key)

    assert Keypair.from_secret(expanded.hex()).public_key == kp.public_key
    assert Keypair.from_secret(base64.b64encode(seed).decode()).public_key == kp.public_key

    with pytest.raises(ValueError):
        Keypair.from_secret("abcd")


def test_group_signature_binds_freshness_token() -> None:
    kp = Keypair.from_label("payer")
    msg = canonical_group_message(group={"step": 1}, freshness_token="t1")
    sig = kp.sign(msg)

    assert verify_ed25519_signature(message=msg, sig=sig, pubkey=kp.public_key)
    stale = canonical_group_message(group={"step": 1}, freshness_token="t0")
    assert not verify_ed25519_signature(message=stale, sig=sig, pubkey=kp.public_key)


def test_keypair_repr_hides_private_key() -> None:
    kp = Keypair.from_label("payer")
    assert kp.secret_hex() not in repr(kp)
