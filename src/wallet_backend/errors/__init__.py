"""Error taxonomy and exception classes."""

from __future__ import annotations

from wallet_backend.errors.daemon_errors import DaemonError
from wallet_backend.errors.wallet_errors import (
    WalletBackendError,
    WalletError,
    WalletFileError,
)

__all__ = ["DaemonError", "WalletBackendError", "WalletError", "WalletFileError"]
