"""Event types delivered to wallet subscribers.

- ``RawEvent`` — envelope with type string + content
- ``SyncProgressEvent`` — the synchronizer's height watermark moved
- ``SyncErrorEvent`` — a synchronizer poll failed
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawEvent:
    """Generic event envelope sent to subscribers."""

    type: str
    content: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return asdict(self)


@dataclass(frozen=True)
class SyncProgressEvent(RawEvent):
    """Emitted when the synchronizer learns a new daemon height."""

    type: str = "sync_progress"
    local_height: int = 0
    network_height: int = 0


@dataclass(frozen=True)
class SyncErrorEvent(RawEvent):
    """Emitted when polling the daemon fails; the synchronizer keeps running."""

    type: str = "sync_error"
    message: str = ""
