"""Shared test fixtures for the wallet-backend test suite."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from wallet_backend.config.settings import StorageConfig, SyncConfig, WalletConfig
from wallet_backend.errors.daemon_errors import DaemonError
from wallet_backend.wallet.backend import WalletServices
from wallet_backend.wallet.container import ContainerCodec

if TYPE_CHECKING:
    from collections.abc import Callable

# Keep PBKDF2 cheap in tests; the format constant is covered separately
TEST_ITERATIONS = 1_000

TRTL_PREFIX = 3914525


class FakeDaemon:
    """In-process stand-in for ``DaemonClient``."""

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 11898,
        *,
        fail: bool = False,
        respond: bool = True,
        height: int = 100,
        network_height: int = 200,
    ) -> None:
        self.host = host
        self.port = port
        self.fail = fail
        self.respond = respond
        self.height = height
        self.network_height = network_height
        self.init_calls = 0
        self.closed = False

    def init(self, on_complete: Callable[[DaemonError | None], None]) -> None:
        self.init_calls += 1
        if not self.respond:
            return
        outcome = DaemonError("connection refused") if self.fail else None
        threading.Thread(target=on_complete, args=(outcome,), daemon=True).start()

    def get_height(self) -> tuple[int, int]:
        if self.fail:
            raise DaemonError("connection refused")
        return self.height, self.network_height

    def close(self) -> None:
        self.closed = True


class FakeMnemonics:
    """Maps known seed phrases to spend keys."""

    def __init__(self, seeds: dict[str, bytes] | None = None) -> None:
        self.seeds = seeds or {}

    def seed_to_private_key(self, mnemonic_seed: str) -> tuple[bytes | None, str]:
        if mnemonic_seed in self.seeds:
            return self.seeds[mnemonic_seed], ""
        return None, "Mnemonic word not in word list"


@pytest.fixture
def wallet_config() -> WalletConfig:
    """Provide a test WalletConfig with fast PBKDF2 and polling."""
    return WalletConfig(
        storage=StorageConfig(pbkdf2_iterations=TEST_ITERATIONS),
        sync=SyncConfig(poll_interval=0.05),
    )


@pytest.fixture
def codec() -> ContainerCodec:
    return ContainerCodec(iterations=TEST_ITERATIONS)


@pytest.fixture
def daemons() -> list[FakeDaemon]:
    """Every FakeDaemon built through the ``services`` fixture, in order."""
    return []


@pytest.fixture
def daemon_behaviour() -> dict[str, bool]:
    """Mutable knobs applied to daemons built by the ``services`` fixture."""
    return {"fail": False, "respond": True}


@pytest.fixture
def mnemonics() -> FakeMnemonics:
    return FakeMnemonics()


@pytest.fixture
def services(
    wallet_config: WalletConfig,
    daemons: list[FakeDaemon],
    daemon_behaviour: dict[str, bool],
    mnemonics: FakeMnemonics,
) -> WalletServices:
    """WalletServices wired to fake daemons and the fake mnemonic decoder."""

    def _factory(host: str, port: int) -> FakeDaemon:
        daemon = FakeDaemon(host, port, **daemon_behaviour)
        daemons.append(daemon)
        return daemon

    return WalletServices(
        config=wallet_config,
        daemon_factory=_factory,  # type: ignore[arg-type]
        mnemonics=mnemonics,
    )
