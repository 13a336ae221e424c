"""WalletSynchronizer lifecycle - start, stop, poll, resume.

The synchronizer owns one background thread that polls the daemon every
``poll_interval`` seconds, moves the height watermark forward and publishes
progress to the wallet's event sink. Its progress is part of the wallet file,
so a reopened wallet resumes from where it stopped rather than from its
initial scan start.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from pydantic import BaseModel

from wallet_backend.errors.daemon_errors import DaemonError
from wallet_backend.notifications.events import SyncErrorEvent, SyncProgressEvent
from wallet_backend.utils.crypto import wipe

if TYPE_CHECKING:
    from wallet_backend.daemon.client import DaemonClient
    from wallet_backend.notifications.handler import EventHandler
    from wallet_backend.wallet.subwallets import SubWallets

logger = logging.getLogger(__name__)

_DEFAULT_POLL_INTERVAL = 5.0
_ERR_NOT_ATTACHED = "Synchronizer has no daemon; call initialize_after_load() first."


class SynchronizerState(BaseModel):
    """Resumable synchronizer progress, as stored in the wallet file."""

    start_height: int = 0
    start_timestamp: int = 0
    last_known_height: int = 0
    last_known_network_height: int = 0


class WalletSynchronizer:
    """Tracks the daemon's chain height on a background thread.

    Usage::

        sync = WalletSynchronizer(daemon, start_height, start_timestamp, view_key, events)
        sync.sub_wallets = sub_wallets
        sync.start()
        ...
        sync.stop()
    """

    def __init__(
        self,
        daemon: DaemonClient | None,
        start_height: int,
        start_timestamp: int,
        private_view_key: bytes,
        events: EventHandler | None,
        *,
        poll_interval: float = _DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._daemon = daemon
        self._events = events
        self._private_view_key = bytearray(private_view_key)
        self._poll_interval = poll_interval
        self._state = SynchronizerState(
            start_height=start_height,
            start_timestamp=start_timestamp,
            last_known_height=start_height,
        )
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.sub_wallets: SubWallets | None = None

    # -- Persistence -------------------------------------------------------

    @classmethod
    def from_state(
        cls,
        state: SynchronizerState,
        private_view_key: bytes,
        *,
        poll_interval: float = _DEFAULT_POLL_INTERVAL,
    ) -> WalletSynchronizer:
        """Rebuild a synchronizer from stored progress, without live handles."""
        sync = cls(
            None,
            state.start_height,
            state.start_timestamp,
            private_view_key,
            None,
            poll_interval=poll_interval,
        )
        sync._state = state.model_copy()
        return sync

    def to_state(self) -> SynchronizerState:
        with self._state_lock:
            return self._state.model_copy()

    def initialize_after_load(self, daemon: DaemonClient, events: EventHandler) -> None:
        """Attach the handles that cannot be restored from a file."""
        self._daemon = daemon
        self._events = events

    # -- Lifecycle ---------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def daemon(self) -> DaemonClient | None:
        return self._daemon

    @property
    def events(self) -> EventHandler | None:
        return self._events

    @property
    def private_view_key(self) -> bytes:
        return bytes(self._private_view_key)

    @property
    def last_known_height(self) -> int:
        with self._state_lock:
            return self._state.last_known_height

    def start(self) -> None:
        """Launch the background thread and return immediately.

        Raises:
            RuntimeError: If no daemon has been attached.
        """
        if self._daemon is None:
            raise RuntimeError(_ERR_NOT_ATTACHED)
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="wallet-sync", daemon=True)
        self._thread.start()
        logger.info("Wallet synchronizer started at height %d", self.last_known_height)

    def stop(self, timeout: float | None = None) -> None:
        """Signal the background thread to finish and wait for it."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info("Wallet synchronizer stopped")

    def wipe(self) -> None:
        """Zero the private view key buffer. Call after ``stop()``."""
        wipe(self._private_view_key)

    # -- Polling -----------------------------------------------------------

    def poll_once(self) -> None:
        """Query the daemon once and publish the result."""
        if self._daemon is None:
            raise RuntimeError(_ERR_NOT_ATTACHED)
        height, network_height = self._daemon.get_height()
        with self._state_lock:
            self._state.last_known_height = max(self._state.last_known_height, height)
            self._state.last_known_network_height = network_height
            local = self._state.last_known_height
        if self._events is not None:
            self._events.notify(
                SyncProgressEvent(local_height=local, network_height=network_height)
            )

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except DaemonError as exc:
                logger.warning("Synchronizer poll failed: %s", exc)
                if self._events is not None:
                    self._events.notify(SyncErrorEvent(message=str(exc)))
            except Exception:
                logger.exception("Synchronizer poll crashed")
            self._stop_event.wait(self._poll_interval)
