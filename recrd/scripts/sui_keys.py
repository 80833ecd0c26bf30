"""Ed25519 key decoding and Sui address derivation."""

from __future__ import annotations

import base64
import binascii
import hashlib

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat

ED25519_FLAG = 0x00
SECRET_KEY_LEN = 32


def decode_private_key(raw: str) -> bytes:
    """Return the 32-byte Ed25519 seed from a base64 `flag || secret` key."""
    value = str(raw or "").strip()
    if not value:
        raise ValueError("private key cannot be empty")
    try:
        decoded = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"private key must be base64: {err}") from err

    if len(decoded) == SECRET_KEY_LEN + 1:
        if decoded[0] != ED25519_FLAG:
            raise ValueError(f"unsupported key scheme flag 0x{decoded[0]:02x}; only ed25519 is supported")
        return decoded[1:]
    if len(decoded) == SECRET_KEY_LEN:
        return decoded
    raise ValueError(f"private key must decode to 32 or 33 bytes, got {len(decoded)}")


def address_from_public_key(public_key: bytes) -> str:
    digest = hashlib.blake2b(bytes([ED25519_FLAG]) + public_key, digest_size=32).hexdigest()
    return f"0x{digest}"


def address_from_private_key(raw: str) -> str:
    seed = decode_private_key(raw)
    public_key = Ed25519PrivateKey.from_private_bytes(seed).public_key().public_bytes(
        Encoding.Raw, PublicFormat.Raw
    )
    return address_from_public_key(public_key)


def generate_addresses(size: int) -> list[dict[str, str]]:
    """Random keypairs, used to mock authorization targets in batch scenarios."""
    if size < 0:
        raise ValueError("size must be non-negative")
    entries: list[dict[str, str]] = []
    for _ in range(size):
        key = Ed25519PrivateKey.generate()
        seed = key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
        secret_key = base64.b64encode(bytes([ED25519_FLAG]) + seed).decode("ascii")
        entries.append({"address": address_from_private_key(secret_key), "secret_key": secret_key})
    return entries
