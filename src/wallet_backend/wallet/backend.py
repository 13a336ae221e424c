"""WalletBackend - the wallet instance and its five construction paths.

Every entry point returns ``(WalletError, wallet)``. The wallet is only usable
when the error is ``SUCCESS``; on any failure the second element is ``None``,
later steps are skipped, and no wallet file is written or overwritten.
"""

from __future__ import annotations

import contextlib
import enum
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

from wallet_backend.config.settings import WalletConfig
from wallet_backend.cryptonote.address import validate_address
from wallet_backend.daemon.client import DaemonClient
from wallet_backend.errors.wallet_errors import WalletError, WalletFileError
from wallet_backend.notifications.handler import EventHandler
from wallet_backend.sync.synchronizer import WalletSynchronizer
from wallet_backend.wallet.container import ContainerCodec
from wallet_backend.wallet.document import WalletDocument
from wallet_backend.wallet.identity import WalletIdentity
from wallet_backend.wallet.init import InitOrchestrator
from wallet_backend.wallet.subwallets import SubWallets

if TYPE_CHECKING:
    from collections.abc import Callable

    from wallet_backend.cryptonote.mnemonics import MnemonicDecoder

logger = logging.getLogger(__name__)

_ERR_CLOSED = "Wallet has been closed."
_ERR_NO_MNEMONICS = "No mnemonic decoder configured; pass WalletServices(mnemonics=...)."


class WalletState(enum.StrEnum):
    """Where a wallet instance is in its startup sequence.

    Whether the wallet has reached disk is tracked separately by
    ``WalletBackend.is_persisted``: new wallets are saved after ``init()``.
    """

    IDENTITY_ESTABLISHED = "identity_established"
    DAEMON_CONNECTING = "daemon_connecting"
    SYNCHRONIZER_RUNNING = "synchronizer_running"
    CLOSED = "closed"


@dataclass
class WalletServices:
    """Collaborators injected into every wallet a lifecycle call builds.

    Attributes:
        config: Settings (iterations, address prefix, poll interval, ...).
        daemon_factory: Builds the daemon handle for ``(host, port)``;
            defaults to ``DaemonClient``.
        mnemonics: Seed decoder, needed only by ``import_wallet_from_seed``.
        codec: Container codec; defaults to one built from ``config.storage``.
        init_timeout: Daemon handshake bound in seconds; ``None`` waits forever.
    """

    config: WalletConfig = field(default_factory=WalletConfig)
    daemon_factory: Callable[[str, int], DaemonClient] | None = None
    mnemonics: MnemonicDecoder | None = None
    codec: ContainerCodec | None = None
    init_timeout: float | None = None

    def make_daemon(self, host: str, port: int) -> DaemonClient:
        if self.daemon_factory is not None:
            return self.daemon_factory(host, port)
        return DaemonClient(host, port, timeout=self.config.daemon.timeout)

    def make_codec(self) -> ContainerCodec:
        if self.codec is not None:
            return self.codec
        return ContainerCodec(iterations=self.config.storage.pbkdf2_iterations)


def check_new_wallet_filename(filename: str) -> WalletError:
    """Check a new wallet can be created at *filename*.

    The file must not exist and must be creatable; the check opens it for
    writing for real, then removes the test file so nothing is left behind.
    """
    if not filename:
        return WalletError.INVALID_WALLET_FILENAME
    path = Path(filename)
    if path.exists():
        return WalletError.WALLET_FILE_ALREADY_EXISTS
    try:
        with path.open("xb"):
            pass
    except FileExistsError:
        return WalletError.WALLET_FILE_ALREADY_EXISTS
    except OSError:
        return WalletError.INVALID_WALLET_FILENAME
    with contextlib.suppress(OSError):
        path.unlink()
    return WalletError.SUCCESS


class WalletBackend:
    """A running wallet: identity, subwallets, daemon and synchronizer.

    Build one through ``create_wallet``, ``import_wallet_from_seed``,
    ``import_wallet_from_keys``, ``import_view_wallet`` or ``open_wallet``.
    Instances cannot be copied; ``close()`` (or leaving a ``with`` block)
    saves, stops the synchronizer and wipes key material.
    """

    def __init__(
        self,
        filename: str,
        password: str,
        identity: WalletIdentity,
        sub_wallets: SubWallets,
        daemon: DaemonClient,
        *,
        services: WalletServices,
        synchronizer: WalletSynchronizer | None = None,
        persisted: bool = False,
    ) -> None:
        self._filename = filename
        self._password = password
        self._identity = identity
        self._sub_wallets = sub_wallets
        self._daemon: DaemonClient | None = daemon
        self._services = services
        self._codec = services.make_codec()
        self._events = EventHandler(buffer=services.config.sync.event_buffer)
        self._synchronizer = synchronizer
        self._state = WalletState.IDENTITY_ESTABLISHED
        self._persisted = persisted

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @classmethod
    def create_wallet(
        cls,
        filename: str,
        password: str,
        daemon_host: str,
        daemon_port: int,
        *,
        services: WalletServices | None = None,
    ) -> tuple[WalletError, WalletBackend | None]:
        """Create a brand-new wallet with a random spend key."""
        services = services or WalletServices()
        if error := check_new_wallet_filename(filename):
            return error, None

        identity = WalletIdentity.create(prefix=services.config.network.address_prefix)
        return cls._finish_new_wallet(
            identity, filename, password, 0, True, daemon_host, daemon_port, services
        )

    @classmethod
    def import_wallet_from_seed(
        cls,
        mnemonic_seed: str,
        filename: str,
        password: str,
        scan_height: int,
        daemon_host: str,
        daemon_port: int,
        *,
        services: WalletServices | None = None,
    ) -> tuple[WalletError, WalletBackend | None]:
        """Restore a wallet from its mnemonic seed, scanning from *scan_height*.

        Raises:
            RuntimeError: If no mnemonic decoder was supplied.
        """
        services = services or WalletServices()
        if services.mnemonics is None:
            raise RuntimeError(_ERR_NO_MNEMONICS)
        if error := check_new_wallet_filename(filename):
            return error, None

        try:
            identity = WalletIdentity.from_seed(
                mnemonic_seed, services.mnemonics, prefix=services.config.network.address_prefix
            )
        except WalletFileError as exc:
            return exc.error, None

        return cls._finish_new_wallet(
            identity, filename, password, scan_height, False, daemon_host, daemon_port, services
        )

    @classmethod
    def import_wallet_from_keys(
        cls,
        private_spend_key: bytes,
        private_view_key: bytes,
        filename: str,
        password: str,
        scan_height: int,
        daemon_host: str,
        daemon_port: int,
        *,
        services: WalletServices | None = None,
    ) -> tuple[WalletError, WalletBackend | None]:
        """Restore a wallet from its two private keys."""
        services = services or WalletServices()
        if error := check_new_wallet_filename(filename):
            return error, None

        try:
            identity = WalletIdentity.from_keys(
                private_spend_key, private_view_key, prefix=services.config.network.address_prefix
            )
        except WalletFileError as exc:
            return exc.error, None

        return cls._finish_new_wallet(
            identity, filename, password, scan_height, False, daemon_host, daemon_port, services
        )

    @classmethod
    def import_view_wallet(
        cls,
        private_view_key: bytes,
        address: str,
        filename: str,
        password: str,
        scan_height: int,
        daemon_host: str,
        daemon_port: int,
        *,
        services: WalletServices | None = None,
    ) -> tuple[WalletError, WalletBackend | None]:
        """Import a view-only wallet from its private view key and address."""
        services = services or WalletServices()
        if error := check_new_wallet_filename(filename):
            return error, None

        try:
            identity = WalletIdentity.from_view_key(
                private_view_key, address, prefix=services.config.network.address_prefix
            )
        except WalletFileError as exc:
            return exc.error, None

        return cls._finish_new_wallet(
            identity, filename, password, scan_height, False, daemon_host, daemon_port, services
        )

    @classmethod
    def open_wallet(
        cls,
        filename: str,
        password: str,
        daemon_host: str,
        daemon_port: int,
        *,
        services: WalletServices | None = None,
    ) -> tuple[WalletError, WalletBackend | None]:
        """Open an existing wallet file and resume synchronization."""
        services = services or WalletServices()
        try:
            data = Path(filename).read_bytes()
        except OSError:
            return WalletError.FILENAME_NON_EXISTENT, None

        try:
            payload = services.make_codec().decrypt(data, password)
            document = WalletDocument.deserialize(payload)
            wallet = cls._attach(document, filename, password, daemon_host, daemon_port, services)
        except WalletFileError as exc:
            logger.warning("Could not open wallet %s: %s", filename, exc.message)
            return exc.error, None

        if error := wallet.init():
            wallet._shutdown()
            return error, None

        return WalletError.SUCCESS, wallet

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def _finish_new_wallet(
        cls,
        identity: WalletIdentity,
        filename: str,
        password: str,
        scan_height: int,
        new_wallet: bool,
        daemon_host: str,
        daemon_port: int,
        services: WalletServices,
    ) -> tuple[WalletError, WalletBackend | None]:
        network = services.config.network
        sub_wallets = SubWallets.for_new_wallet(
            public_spend_key=identity.public_spend_key,
            private_spend_key=identity.private_spend_key,
            address=identity.address,
            scan_height=scan_height,
            new_wallet=new_wallet,
            genesis_timestamp=network.genesis_timestamp,
            block_target=network.block_target,
        )
        wallet = cls(
            filename,
            password,
            identity,
            sub_wallets,
            services.make_daemon(daemon_host, daemon_port),
            services=services,
        )

        if error := wallet.init():
            wallet._shutdown()
            return error, None

        if error := wallet.save():
            wallet._shutdown()
            return error, None

        logger.info("Created wallet %s (%s)", filename, identity.address)
        return WalletError.SUCCESS, wallet

    @classmethod
    def _attach(
        cls,
        document: WalletDocument,
        filename: str,
        password: str,
        daemon_host: str,
        daemon_port: int,
        services: WalletServices,
    ) -> WalletBackend:
        """Second phase of loading: rebuild live objects around a parsed document.

        Raises:
            WalletFileError: ``WALLET_FILE_CORRUPTED`` if the stored keys do not
                form a consistent identity.
        """
        network = services.config.network
        private_view_key = bytes.fromhex(document.private_view_key)

        try:
            sub_wallets = SubWallets.from_state(
                document.sub_wallets,
                genesis_timestamp=network.genesis_timestamp,
                block_target=network.block_target,
            )
            primary = sub_wallets.primary
            identity = WalletIdentity(
                bytes(primary.private_spend_key),
                private_view_key,
                is_view_wallet=document.is_view_wallet,
                prefix=network.address_prefix,
                public_spend_key=bytes.fromhex(document.public_spend_key),
            )
        except (ValueError, LookupError) as exc:
            raise WalletFileError(WalletError.WALLET_FILE_CORRUPTED, str(exc)) from exc

        if identity.address != primary.address:
            raise WalletFileError(
                WalletError.WALLET_FILE_CORRUPTED, "Stored address does not match the stored keys"
            )

        synchronizer = None
        if document.wallet_synchronizer is not None:
            synchronizer = WalletSynchronizer.from_state(
                document.wallet_synchronizer,
                private_view_key,
                poll_interval=services.config.sync.poll_interval,
            )

        return cls(
            filename,
            password,
            identity,
            sub_wallets,
            services.make_daemon(daemon_host, daemon_port),
            services=services,
            synchronizer=synchronizer,
            persisted=True,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> WalletError:
        """Connect to the daemon and start (or resume) the synchronizer.

        Blocks until the daemon handshake reports.

        Raises:
            RuntimeError: If no daemon was ever configured.
        """
        self._state = WalletState.DAEMON_CONNECTING
        orchestrator = InitOrchestrator(
            poll_interval=self._services.config.sync.poll_interval,
            timeout=self._services.init_timeout,
        )
        error, self._synchronizer = orchestrator.run(
            self._daemon,
            self._events,
            self._sub_wallets,
            self._identity.private_view_key,
            self._synchronizer,
        )
        if error:
            self._state = WalletState.IDENTITY_ESTABLISHED
            return error
        self._state = WalletState.SYNCHRONIZER_RUNNING
        return WalletError.SUCCESS

    def save(self) -> WalletError:
        """Encrypt the wallet and replace the file in a single rename.

        Not safe to call concurrently on the same wallet.
        """
        if self._state is WalletState.CLOSED:
            raise RuntimeError(_ERR_CLOSED)

        document = WalletDocument.snapshot(self._identity, self._sub_wallets, self._synchronizer)
        blob = self._codec.encrypt(document.serialize(), self._password)

        path = Path(self._filename)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            tmp_path.write_bytes(blob)
            os.replace(tmp_path, path)
        except OSError as exc:
            logger.error("Failed to save wallet %s: %s", self._filename, exc)
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            return WalletError.INVALID_WALLET_FILENAME

        self._persisted = True
        logger.debug("Saved wallet %s", self._filename)
        return WalletError.SUCCESS

    def close(self) -> None:
        """Save, stop synchronizing, close the daemon and wipe keys.

        Can be called multiple times (idempotent).
        """
        if self._state is WalletState.CLOSED:
            return
        if self._daemon is not None:
            self.save()
        self._shutdown()

    def _shutdown(self) -> None:
        """Tear down without saving."""
        if self._synchronizer is not None:
            self._synchronizer.stop()
            self._synchronizer.wipe()
        if self._daemon is not None:
            self._daemon.close()
            self._daemon = None
        self._identity.wipe()
        self._sub_wallets.wipe()
        self._state = WalletState.CLOSED

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __copy__(self) -> Any:
        msg = "WalletBackend instances own key material and cannot be copied"
        raise TypeError(msg)

    def __deepcopy__(self, memo: dict[int, Any]) -> Any:
        return self.__copy__()

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_balance(self, address: str) -> tuple[WalletError, int]:
        """Balance (unlocked + locked) of one of this wallet's addresses."""
        if not validate_address(address, self._services.config.network.address_prefix):
            return WalletError.ADDRESS_NOT_VALID, 0
        if not self._sub_wallets.owns_address(address):
            return WalletError.ADDRESS_NOT_IN_WALLET, 0

        spend_key = self._sub_wallets.address_to_spend_key(address)
        unlocked, locked = self._sub_wallets.get_balance([spend_key], False)
        return WalletError.SUCCESS, unlocked + locked

    def get_total_balance(self) -> int:
        """Combined balance (unlocked + locked) of every subwallet."""
        unlocked, locked = self._sub_wallets.get_balance([], True)
        return unlocked + locked

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> WalletState:
        return self._state

    @property
    def is_persisted(self) -> bool:
        """True once the wallet exists on disk (saved, or opened from a file)."""
        return self._persisted

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def address(self) -> str:
        """The wallet's primary public address."""
        return self._identity.address

    @property
    def is_view_wallet(self) -> bool:
        return self._identity.is_view_wallet

    @property
    def identity(self) -> WalletIdentity:
        return self._identity

    @property
    def sub_wallets(self) -> SubWallets:
        return self._sub_wallets

    @property
    def events(self) -> EventHandler:
        """Event sink the synchronizer reports to."""
        return self._events

    @property
    def daemon(self) -> DaemonClient | None:
        return self._daemon

    @property
    def synchronizer(self) -> WalletSynchronizer | None:
        return self._synchronizer
