"""Background wallet synchronizer."""

from __future__ import annotations

from wallet_backend.sync.synchronizer import SynchronizerState, WalletSynchronizer

__all__ = ["SynchronizerState", "WalletSynchronizer"]
