"""InitOrchestrator - daemon handshake, then synchronizer bootstrap or resume.

The handshake runs on the daemon client's helper thread; the initializing call
blocks on a single-result future until it reports. Lifecycle calls wait with
no timeout, so an unresponsive daemon hangs wallet startup. Callers that need
bounded startup pass ``timeout`` (or wrap the call themselves).
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING

from wallet_backend.errors.wallet_errors import WalletError
from wallet_backend.sync.synchronizer import WalletSynchronizer

if TYPE_CHECKING:
    from wallet_backend.daemon.client import DaemonClient
    from wallet_backend.errors.daemon_errors import DaemonError
    from wallet_backend.notifications.handler import EventHandler
    from wallet_backend.wallet.subwallets import SubWallets

logger = logging.getLogger(__name__)

_ERR_NO_DAEMON = "Daemon has not been initialized!"


def wait_for_daemon(daemon: DaemonClient, *, timeout: float | None = None) -> WalletError:
    """Run the daemon handshake and block until it reports.

    Returns:
        ``SUCCESS``, or ``FAILED_TO_INIT_DAEMON`` on a failed handshake (or
        when *timeout* expires first).
    """
    outcome: Future[DaemonError | None] = Future()

    def _on_complete(error: DaemonError | None) -> None:
        if not outcome.done():
            outcome.set_result(error)

    daemon.init(_on_complete)
    try:
        error = outcome.result(timeout=timeout)
    except FutureTimeoutError:
        logger.error("Daemon did not answer within %.1f seconds", timeout)
        return WalletError.FAILED_TO_INIT_DAEMON
    if error is not None:
        return WalletError.FAILED_TO_INIT_DAEMON
    return WalletError.SUCCESS


class InitOrchestrator:
    """Connects a wallet to its daemon and gets its synchronizer running."""

    def __init__(self, *, poll_interval: float = 5.0, timeout: float | None = None) -> None:
        """Initialize the orchestrator.

        Args:
            poll_interval: Poll period handed to newly built synchronizers.
            timeout: Handshake wait bound in seconds; ``None`` waits forever.
        """
        self._poll_interval = poll_interval
        self._timeout = timeout

    def run(
        self,
        daemon: DaemonClient | None,
        events: EventHandler,
        sub_wallets: SubWallets,
        private_view_key: bytes,
        synchronizer: WalletSynchronizer | None = None,
    ) -> tuple[WalletError, WalletSynchronizer | None]:
        """Handshake with *daemon*, then build or re-attach the synchronizer and start it.

        Returns:
            ``(SUCCESS, running_synchronizer)``, or
            ``(FAILED_TO_INIT_DAEMON, synchronizer)`` with nothing started.

        Raises:
            RuntimeError: If *daemon* was never configured.
        """
        if daemon is None:
            raise RuntimeError(_ERR_NO_DAEMON)

        logger.info("Initializing daemon %s:%d, this may hang...", daemon.host, daemon.port)

        error = wait_for_daemon(daemon, timeout=self._timeout)
        if error:
            return error, synchronizer

        if synchronizer is None:
            start_height, start_timestamp = sub_wallets.get_min_initial_sync_start()
            synchronizer = WalletSynchronizer(
                daemon,
                start_height,
                start_timestamp,
                private_view_key,
                events,
                poll_interval=self._poll_interval,
            )
        else:
            synchronizer.initialize_after_load(daemon, events)

        synchronizer.sub_wallets = sub_wallets
        synchronizer.start()

        logger.info("Daemon initialization completed!")
        return WalletError.SUCCESS, synchronizer
