"""wallet-backend: encrypted wallet files and the wallet startup lifecycle."""

from __future__ import annotations

from wallet_backend.errors.wallet_errors import WalletError
from wallet_backend.wallet.backend import WalletBackend, WalletServices

__all__ = ["WalletBackend", "WalletError", "WalletServices"]

__version__ = "0.1.0"
