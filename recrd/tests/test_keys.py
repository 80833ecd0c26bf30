from __future__ import annotations

import base64

import pytest

from ._recrd_helpers import ADMIN_ADDRESS, ADMIN_KEY, USER_ADDRESS, USER_KEY

from sui_keys import address_from_private_key, decode_private_key, generate_addresses  # noqa: E402


def test_address_derivation_known_vectors():
    assert address_from_private_key(ADMIN_KEY) == ADMIN_ADDRESS
    assert address_from_private_key(USER_KEY) == USER_ADDRESS


def test_raw_32_byte_seed_is_accepted():
    raw_seed = base64.b64encode(bytes([1]) * 32).decode("ascii")
    assert decode_private_key(raw_seed) == bytes([1]) * 32
    assert address_from_private_key(raw_seed) == ADMIN_ADDRESS


def test_rejects_other_schemes_and_bad_input():
    secp = base64.b64encode(bytes([0x01]) + bytes([1]) * 32).decode("ascii")
    with pytest.raises(ValueError, match="only ed25519"):
        decode_private_key(secp)
    with pytest.raises(ValueError, match="32 or 33 bytes"):
        decode_private_key(base64.b64encode(b"short").decode("ascii"))
    with pytest.raises(ValueError, match="base64"):
        decode_private_key("not base64 !!")
    with pytest.raises(ValueError, match="empty"):
        decode_private_key("")


def test_generate_addresses_returns_usable_keys():
    entries = generate_addresses(3)
    assert len(entries) == 3
    assert len({entry["address"] for entry in entries}) == 3
    for entry in entries:
        assert entry["address"].startswith("0x")
        assert len(entry["address"]) == 66
        assert address_from_private_key(entry["secret_key"]) == entry["address"]
    assert generate_addresses(0) == []
