"""Mnemonic seed decoding interface.

The word list and checksum rules live outside this package; the lifecycle only
needs a seed turned into a private spend key.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MnemonicDecoder(Protocol):
    """Converts a mnemonic seed phrase into a private spend key."""

    def seed_to_private_key(self, mnemonic_seed: str) -> tuple[bytes | None, str]:
        """Return ``(private_spend_key, "")`` or ``(None, error_text)``."""
        ...
