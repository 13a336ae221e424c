"""Daemon transport errors."""

from __future__ import annotations

from wallet_backend.errors.wallet_errors import WalletBackendError


class DaemonError(WalletBackendError):
    """Error talking to the remote daemon."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, code="daemon-error")
        self.status_code = status_code
