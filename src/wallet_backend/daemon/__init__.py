"""Daemon RPC transport."""

from __future__ import annotations

from wallet_backend.daemon.client import DaemonClient, DaemonInfo

__all__ = ["DaemonClient", "DaemonInfo"]
