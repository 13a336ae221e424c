"""Ed25519 scalar/point helpers for CryptoNote spend and view keys.

- Scalar reduction modulo the group order (``sc_reduce32``)
- Secret key → public key (``scalar * G``, 32-byte Edwards encoding)
- Random key pair generation
- Deterministic view key derivation from a spend key
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from ecdsa.curves import Ed25519

from wallet_backend.utils.crypto import keccak256

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CURVE = Ed25519
_CURVE_ORDER = _CURVE.order
_CURVE_GEN = _CURVE.generator
_FIELD_PRIME = _CURVE.curve.p()

KEY_SIZE = 32

# Spend key of a view-only wallet; never a real secret
NULL_SECRET_KEY = bytes(KEY_SIZE)

# Encoding of the neutral element (x=0, y=1)
_IDENTITY_ENCODING = b"\x01" + bytes(KEY_SIZE - 1)


@dataclass(frozen=True)
class KeyPair:
    """A secret scalar and its public point encoding."""

    public_key: bytes
    secret_key: bytes


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def sc_reduce32(data: bytes) -> bytes:
    """Reduce a little-endian 32-byte integer modulo the group order."""
    if len(data) != KEY_SIZE:
        msg = f"Expected {KEY_SIZE} bytes, got {len(data)}"
        raise ValueError(msg)
    n = int.from_bytes(data, "little") % _CURVE_ORDER
    return n.to_bytes(KEY_SIZE, "little")


def check_secret_key(secret_key: bytes) -> bool:
    """True if *secret_key* is a 32-byte scalar already reduced modulo the order."""
    return len(secret_key) == KEY_SIZE and int.from_bytes(secret_key, "little") < _CURVE_ORDER


def random_scalar() -> bytes:
    """Uniformly random reduced scalar (64 random bytes, reduced)."""
    n = int.from_bytes(secrets.token_bytes(64), "little") % _CURVE_ORDER
    return n.to_bytes(KEY_SIZE, "little")


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------


def secret_key_to_public_key(secret_key: bytes) -> bytes:
    """Derive the 32-byte public key ``secret_key * G``.

    Raises:
        ValueError: If the key is not a 32-byte reduced scalar.
    """
    if not check_secret_key(secret_key):
        msg = "Secret key is not a valid reduced scalar"
        raise ValueError(msg)
    scalar = int.from_bytes(secret_key, "little")
    if scalar == 0:
        return _IDENTITY_ENCODING
    return _encode_point(_CURVE_GEN * scalar)


def generate_keys() -> KeyPair:
    """Generate a fresh random key pair."""
    secret_key = random_scalar()
    return KeyPair(public_key=secret_key_to_public_key(secret_key), secret_key=secret_key)


def generate_view_from_spend(private_spend_key: bytes) -> KeyPair:
    """Derive the view key pair deterministically from a private spend key."""
    secret_key = sc_reduce32(keccak256(bytes(private_spend_key)))
    return KeyPair(public_key=secret_key_to_public_key(secret_key), secret_key=secret_key)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _encode_point(point) -> bytes:  # type: ignore[no-untyped-def]
    """RFC 8032 encoding: little-endian y with the sign of x in the top bit."""
    x = point.x() % _FIELD_PRIME
    y = point.y() % _FIELD_PRIME
    encoded = bytearray(y.to_bytes(KEY_SIZE, "little"))
    if x & 1:
        encoded[-1] |= 0x80
    return bytes(encoded)
