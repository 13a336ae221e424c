"""WalletError — the closed result taxonomy, plus the base exception classes."""

from __future__ import annotations

import enum


class WalletError(enum.StrEnum):
    """Every outcome a lifecycle or codec operation can report.

    ``SUCCESS`` is the only value under which a returned wallet may be used.
    """

    SUCCESS = "success"
    WALLET_FILE_ALREADY_EXISTS = "wallet-file-already-exists"
    INVALID_WALLET_FILENAME = "invalid-wallet-filename"
    FILENAME_NON_EXISTENT = "filename-non-existent"
    NOT_A_WALLET_FILE = "not-a-wallet-file"
    WALLET_FILE_CORRUPTED = "wallet-file-corrupted"
    WRONG_PASSWORD = "wrong-password"
    INVALID_MNEMONIC = "invalid-mnemonic"
    FAILED_TO_INIT_DAEMON = "failed-to-init-daemon"
    ADDRESS_NOT_VALID = "address-not-valid"
    ADDRESS_NOT_IN_WALLET = "address-not-in-wallet"
    INVALID_PRIVATE_KEY = "invalid-private-key"

    @property
    def message(self) -> str:
        """Human-readable description of the error kind."""
        return _MESSAGES[self]

    def __bool__(self) -> bool:
        return self is not WalletError.SUCCESS


_MESSAGES: dict[WalletError, str] = {
    WalletError.SUCCESS: "The operation completed successfully.",
    WalletError.WALLET_FILE_ALREADY_EXISTS: (
        "The wallet file you are attempting to create already exists."
    ),
    WalletError.INVALID_WALLET_FILENAME: (
        "The wallet filename could not be opened for writing. Check the "
        "directory exists and you have permission to write to it."
    ),
    WalletError.FILENAME_NON_EXISTENT: "The wallet file does not exist or cannot be read.",
    WalletError.NOT_A_WALLET_FILE: "The file is not a wallet file.",
    WalletError.WALLET_FILE_CORRUPTED: "The wallet file appears to be corrupted.",
    WalletError.WRONG_PASSWORD: "The password is incorrect.",
    WalletError.INVALID_MNEMONIC: "The mnemonic seed is invalid.",
    WalletError.FAILED_TO_INIT_DAEMON: "Failed to connect to the daemon.",
    WalletError.ADDRESS_NOT_VALID: "The address is not valid.",
    WalletError.ADDRESS_NOT_IN_WALLET: "The address does not belong to this wallet.",
    WalletError.INVALID_PRIVATE_KEY: "The private key is not a valid 32-byte reduced scalar.",
}


class WalletBackendError(Exception):
    """Base error for all wallet backend operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
    """

    def __init__(self, message: str, *, code: str = "wallet-backend-error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class WalletFileError(WalletBackendError):
    """A wallet file or its decrypted contents failed a check.

    Attributes:
        error: The ``WalletError`` kind reported to lifecycle callers.
    """

    def __init__(self, error: WalletError, message: str | None = None) -> None:
        super().__init__(message or error.message, code=error.value)
        self.error = error
