"""Notifications — events emitted by the synchronizer and their fan-out sink."""

from __future__ import annotations

from wallet_backend.notifications.events import RawEvent, SyncErrorEvent, SyncProgressEvent
from wallet_backend.notifications.handler import EventHandler

__all__ = ["EventHandler", "RawEvent", "SyncErrorEvent", "SyncProgressEvent"]
