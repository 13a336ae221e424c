"""Integration test — full wallet lifecycle with a real daemon client.

Flow:
  1. Create a wallet against an HTTP daemon (httpx mock transport)
  2. Wait for the synchronizer to report the daemon height
  3. Credit funds and close (saves to disk)
  4. Reopen with the right password and check balance and progress
  5. Reopen with the wrong password
"""

from __future__ import annotations

import threading

import httpx
import pytest

from wallet_backend import WalletBackend, WalletError, WalletServices
from wallet_backend.config.settings import StorageConfig, SyncConfig, WalletConfig
from wallet_backend.daemon.client import DaemonClient


class _Chain:
    """Daemon whose height grows every time it is asked."""

    def __init__(self, height: int = 1000) -> None:
        self.height = height
        self.requests: list[str] = []
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request.url.path)
            if request.url.path == "/getinfo":
                return httpx.Response(
                    200,
                    json={"height": self.height, "network_height": self.height, "synced": True},
                )
            if request.url.path == "/getheight":
                self.height += 1
                return httpx.Response(
                    200, json={"height": self.height, "network_height": self.height}
                )
            return httpx.Response(404)


@pytest.fixture
def chain() -> _Chain:
    return _Chain()


@pytest.fixture
def http_services(chain: _Chain) -> WalletServices:
    config = WalletConfig(
        storage=StorageConfig(pbkdf2_iterations=1_000),
        sync=SyncConfig(poll_interval=0.02),
    )

    def _factory(host: str, port: int) -> DaemonClient:
        return DaemonClient(host, port, transport=httpx.MockTransport(chain.handler))

    return WalletServices(config=config, daemon_factory=_factory, init_timeout=5.0)


@pytest.mark.integration
class TestWalletLifecycle:
    """End-to-end wallet lifecycle over the daemon HTTP client."""

    def test_full_lifecycle(self, tmp_path, chain: _Chain, http_services: WalletServices):
        path = str(tmp_path / "integration.wallet")

        # 1. Create
        error, wallet = WalletBackend.create_wallet(
            path, "correct horse", "node.test", 11898, services=http_services
        )
        assert error is WalletError.SUCCESS
        assert wallet.daemon.is_connected
        assert wallet.daemon.info.synced is True

        # 2. Sync progress
        q = wallet.events.add_subscriber("integration")
        event = q.get(timeout=5)
        assert event.type == "sync_progress"
        assert event.local_height > 1000

        # 3. Credit and close
        wallet.sub_wallets.credit(wallet.sub_wallets.primary.public_spend_key, 4200)
        address = wallet.address
        saved_height = wallet.synchronizer.last_known_height
        wallet.close()

        # 4. Reopen
        error, reopened = WalletBackend.open_wallet(
            path, "correct horse", "node.test", 11898, services=http_services
        )
        assert error is WalletError.SUCCESS
        try:
            assert reopened.address == address
            assert reopened.get_balance(address) == (WalletError.SUCCESS, 4200)
            assert reopened.synchronizer.last_known_height >= saved_height
        finally:
            reopened.close()

        # 5. Wrong password
        error, nothing = WalletBackend.open_wallet(
            path, "wrong", "node.test", 11898, services=http_services
        )
        assert error is WalletError.WRONG_PASSWORD
        assert nothing is None
        assert "/getinfo" in chain.requests

    def test_unreachable_daemon(self, tmp_path, http_services: WalletServices):
        def _refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http_services.daemon_factory = lambda host, port: DaemonClient(
            host, port, transport=httpx.MockTransport(_refuse)
        )
        path = tmp_path / "unreachable.wallet"
        error, wallet = WalletBackend.create_wallet(
            str(path), "pw", "node.test", 11898, services=http_services
        )
        assert error is WalletError.FAILED_TO_INIT_DAEMON
        assert wallet is None
        assert not path.exists()
