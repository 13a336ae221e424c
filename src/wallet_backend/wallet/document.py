"""WalletDocument - the serializable snapshot written inside the container.

Loading is two-phase: ``WalletDocument.deserialize`` yields pure data, and the
wallet attaches the live daemon, event sink and synchronizer afterwards. The
fields that cannot come from storage (filename, password, daemon, events) are
therefore absent from this model rather than left default-initialized.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError, field_validator

from wallet_backend.errors.wallet_errors import WalletError, WalletFileError
from wallet_backend.sync.synchronizer import SynchronizerState
from wallet_backend.wallet.subwallets import SubWalletState

if TYPE_CHECKING:
    from wallet_backend.sync.synchronizer import WalletSynchronizer
    from wallet_backend.wallet.identity import WalletIdentity
    from wallet_backend.wallet.subwallets import SubWallets

WALLET_FILE_FORMAT_VERSION = 0


class WalletDocument(BaseModel):
    """Identity, subwallets and synchronizer progress of one wallet."""

    wallet_file_format_version: int = WALLET_FILE_FORMAT_VERSION
    private_view_key: str
    is_view_wallet: bool
    public_spend_key: str
    sub_wallets: list[SubWalletState]
    wallet_synchronizer: SynchronizerState | None = None

    @field_validator("private_view_key", "public_spend_key")
    @classmethod
    def _check_key_hex(cls, value: str) -> str:
        if len(value) != 64:
            msg = "key must be 32 bytes of hex"
            raise ValueError(msg)
        bytes.fromhex(value)
        return value

    @field_validator("sub_wallets")
    @classmethod
    def _check_primary(cls, value: list[SubWalletState]) -> list[SubWalletState]:
        if sum(1 for w in value if w.is_primary) != 1:
            msg = "exactly one primary subwallet is required"
            raise ValueError(msg)
        return value

    @classmethod
    def snapshot(
        cls,
        identity: WalletIdentity,
        sub_wallets: SubWallets,
        synchronizer: WalletSynchronizer | None,
    ) -> WalletDocument:
        """Capture the current wallet state for saving."""
        return cls(
            private_view_key=identity.private_view_key.hex(),
            is_view_wallet=identity.is_view_wallet,
            public_spend_key=identity.public_spend_key.hex(),
            sub_wallets=sub_wallets.to_state(),
            wallet_synchronizer=synchronizer.to_state() if synchronizer is not None else None,
        )

    def serialize(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def deserialize(cls, payload: bytes) -> WalletDocument:
        """Parse a decrypted payload.

        Raises:
            WalletFileError: ``WALLET_FILE_CORRUPTED`` for anything that is not
                a well-formed document.
        """
        try:
            return cls.model_validate_json(payload)
        except (ValidationError, ValueError) as exc:
            raise WalletFileError(
                WalletError.WALLET_FILE_CORRUPTED, f"Wallet document is malformed: {exc}"
            ) from exc
