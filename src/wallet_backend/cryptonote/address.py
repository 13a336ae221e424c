"""Address encoding — CryptoNote block Base58, varint prefixes, key parsing.

A standard address is ``varint(prefix) || public_spend || public_view`` followed
by the first four bytes of its Keccak-256, written in CryptoNote Base58: the
data is cut into 8-byte blocks and each block becomes a fixed-width group of
11 characters (shorter for the final partial block).
"""

from __future__ import annotations

from wallet_backend.cryptonote.keys import KEY_SIZE
from wallet_backend.utils.crypto import keccak256

_B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_INDEX = {c: i for i, c in enumerate(_B58_ALPHABET)}

_FULL_BLOCK_SIZE = 8
_FULL_ENCODED_BLOCK_SIZE = 11
# Encoded length for a raw block of 0..8 bytes
_ENCODED_BLOCK_SIZES = (0, 2, 3, 5, 6, 7, 9, 10, 11)

_CHECKSUM_SIZE = 4


# ---------------------------------------------------------------------------
# Varint
# ---------------------------------------------------------------------------


def encode_varint(n: int) -> bytes:
    """Encode a non-negative integer as a 7-bit little-endian varint."""
    if n < 0:
        msg = "varint must be non-negative"
        raise ValueError(msg)
    out = bytearray()
    while n >= 0x80:
        out.append((n & 0x7F) | 0x80)
        n >>= 7
    out.append(n)
    return bytes(out)


def decode_varint(data: bytes) -> tuple[int, int]:
    """Decode a varint from the start of *data*.

    Returns:
        Tuple of (value, bytes consumed).
    """
    value = 0
    for i, byte in enumerate(data):
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value, i + 1
    msg = "Truncated varint"
    raise ValueError(msg)


# ---------------------------------------------------------------------------
# Block Base58
# ---------------------------------------------------------------------------


def base58_encode(data: bytes) -> str:
    """Encode raw bytes with CryptoNote block Base58."""
    out: list[str] = []
    for start in range(0, len(data), _FULL_BLOCK_SIZE):
        block = data[start : start + _FULL_BLOCK_SIZE]
        out.append(_encode_block(block))
    return "".join(out)


def base58_decode(s: str) -> bytes:
    """Decode a CryptoNote block Base58 string.

    Raises:
        ValueError: On invalid characters, lengths or block overflow.
    """
    out = bytearray()
    for start in range(0, len(s), _FULL_ENCODED_BLOCK_SIZE):
        out += _decode_block(s[start : start + _FULL_ENCODED_BLOCK_SIZE])
    return bytes(out)


def _encode_block(block: bytes) -> str:
    num = int.from_bytes(block, "big")
    width = _ENCODED_BLOCK_SIZES[len(block)]
    chars = [_B58_ALPHABET[0]] * width
    i = width - 1
    while num > 0:
        num, remainder = divmod(num, 58)
        chars[i] = _B58_ALPHABET[remainder]
        i -= 1
    return "".join(chars)


def _decode_block(chunk: str) -> bytes:
    try:
        size = _ENCODED_BLOCK_SIZES.index(len(chunk))
    except ValueError:
        size = 0
    if size <= 0:
        msg = f"Invalid Base58 block length: {len(chunk)}"
        raise ValueError(msg)
    num = 0
    for char in chunk:
        if char not in _B58_INDEX:
            msg = f"Invalid Base58 character: {char!r}"
            raise ValueError(msg)
        num = num * 58 + _B58_INDEX[char]
    if num >= 1 << (8 * size):
        msg = "Base58 block overflow"
        raise ValueError(msg)
    return num.to_bytes(size, "big")


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


def public_keys_to_address(public_spend_key: bytes, public_view_key: bytes, prefix: int) -> str:
    """Encode the two public keys as an address under the network *prefix*."""
    if len(public_spend_key) != KEY_SIZE or len(public_view_key) != KEY_SIZE:
        msg = "Public keys must be 32 bytes"
        raise ValueError(msg)
    data = encode_varint(prefix) + bytes(public_spend_key) + bytes(public_view_key)
    return base58_encode(data + keccak256(data)[:_CHECKSUM_SIZE])


def address_to_public_keys(address: str, prefix: int) -> tuple[bytes, bytes]:
    """Parse an address into its (public spend key, public view key).

    Raises:
        ValueError: If the address is malformed, has the wrong prefix,
                    the wrong length, or a bad checksum.
    """
    raw = base58_decode(address)
    if len(raw) <= _CHECKSUM_SIZE:
        msg = "Address too short"
        raise ValueError(msg)
    data, checksum = raw[:-_CHECKSUM_SIZE], raw[-_CHECKSUM_SIZE:]
    if keccak256(data)[:_CHECKSUM_SIZE] != checksum:
        msg = "Address checksum mismatch"
        raise ValueError(msg)
    found_prefix, consumed = decode_varint(data)
    if found_prefix != prefix:
        msg = f"Address prefix {found_prefix} does not match {prefix}"
        raise ValueError(msg)
    keys = data[consumed:]
    if len(keys) != 2 * KEY_SIZE:
        msg = f"Invalid address key data length: {len(keys)}"
        raise ValueError(msg)
    return keys[:KEY_SIZE], keys[KEY_SIZE:]


def validate_address(address: str, prefix: int) -> bool:
    """Check if *address* is a well-formed standard address for *prefix*."""
    try:
        address_to_public_keys(address, prefix)
    except ValueError:
        return False
    return True
