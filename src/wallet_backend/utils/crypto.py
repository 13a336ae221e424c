"""Cryptographic helpers — hashing."""

from __future__ import annotations

from Crypto.Hash import keccak


def keccak256(data: bytes) -> bytes:
    """Keccak-256 with the original (pre-SHA3) padding, a.k.a. ``cn_fast_hash``."""
    return keccak.new(digest_bits=256, data=data).digest()


def wipe(buf: bytearray) -> None:
    """Overwrite a mutable buffer with zeros in place."""
    for i in range(len(buf)):
        buf[i] = 0
