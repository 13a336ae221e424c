"""SubWallets — balance bookkeeping shared between the wallet and the synchronizer."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from pydantic import BaseModel

from wallet_backend.utils.crypto import wipe

# Fresh wallets start scanning a day back from "now"
_NEW_WALLET_TIMESTAMP_SLACK = 60 * 60 * 24


class SubWalletState(BaseModel):
    """Persisted form of one subwallet (key material as hex)."""

    public_spend_key: str
    private_spend_key: str
    address: str
    sync_start_height: int = 0
    sync_start_timestamp: int = 0
    unlocked_balance: int = 0
    locked_balance: int = 0
    is_primary: bool = False


@dataclass
class SubWallet:
    """One spend key of the wallet and the funds found for it."""

    public_spend_key: bytes
    private_spend_key: bytearray
    address: str
    sync_start_height: int = 0
    sync_start_timestamp: int = 0
    unlocked_balance: int = 0
    locked_balance: int = 0
    is_primary: bool = False

    def to_state(self) -> SubWalletState:
        return SubWalletState(
            public_spend_key=self.public_spend_key.hex(),
            private_spend_key=bytes(self.private_spend_key).hex(),
            address=self.address,
            sync_start_height=self.sync_start_height,
            sync_start_timestamp=self.sync_start_timestamp,
            unlocked_balance=self.unlocked_balance,
            locked_balance=self.locked_balance,
            is_primary=self.is_primary,
        )

    @classmethod
    def from_state(cls, state: SubWalletState) -> SubWallet:
        return cls(
            public_spend_key=bytes.fromhex(state.public_spend_key),
            private_spend_key=bytearray.fromhex(state.private_spend_key),
            address=state.address,
            sync_start_height=state.sync_start_height,
            sync_start_timestamp=state.sync_start_timestamp,
            unlocked_balance=state.unlocked_balance,
            locked_balance=state.locked_balance,
            is_primary=state.is_primary,
        )


class SubWallets:
    """Container of subwallets, safe to share across threads.

    Balance queries run on the caller's thread while the synchronizer credits
    discovered funds from its own thread; every access takes the lock.
    """

    def __init__(self, *, genesis_timestamp: int = 0, block_target: int = 1) -> None:
        self._lock = threading.Lock()
        self._wallets: dict[bytes, SubWallet] = {}
        self._genesis_timestamp = genesis_timestamp
        self._block_target = block_target

    @classmethod
    def for_new_wallet(
        cls,
        *,
        public_spend_key: bytes,
        private_spend_key: bytes,
        address: str,
        scan_height: int,
        new_wallet: bool,
        genesis_timestamp: int = 0,
        block_target: int = 1,
    ) -> SubWallets:
        """Container holding just the primary subwallet.

        A brand-new wallet has no history, so it starts from (roughly) the
        current time; imported wallets start at *scan_height*.
        """
        container = cls(genesis_timestamp=genesis_timestamp, block_target=block_target)
        if new_wallet:
            height = 0
            timestamp = max(int(time.time()) - _NEW_WALLET_TIMESTAMP_SLACK, 0)
        else:
            height = scan_height
            timestamp = 0
        container.add(
            SubWallet(
                public_spend_key=bytes(public_spend_key),
                private_spend_key=bytearray(private_spend_key),
                address=address,
                sync_start_height=height,
                sync_start_timestamp=timestamp,
                is_primary=True,
            )
        )
        return container

    # -- Mutation ----------------------------------------------------------

    def add(self, sub_wallet: SubWallet) -> None:
        with self._lock:
            self._wallets[sub_wallet.public_spend_key] = sub_wallet

    def credit(self, public_spend_key: bytes, amount: int, *, locked: bool = False) -> None:
        """Record funds found for a subwallet.

        Raises:
            KeyError: If no subwallet has *public_spend_key*.
        """
        with self._lock:
            sub_wallet = self._wallets[bytes(public_spend_key)]
            if locked:
                sub_wallet.locked_balance += amount
            else:
                sub_wallet.unlocked_balance += amount

    # -- Queries -----------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._wallets)

    @property
    def primary(self) -> SubWallet:
        with self._lock:
            for sub_wallet in self._wallets.values():
                if sub_wallet.is_primary:
                    return sub_wallet
        msg = "No primary subwallet"
        raise LookupError(msg)

    def public_spend_keys(self) -> list[bytes]:
        with self._lock:
            return list(self._wallets)

    def owns_address(self, address: str) -> bool:
        with self._lock:
            return any(w.address == address for w in self._wallets.values())

    def address_to_spend_key(self, address: str) -> bytes:
        """Public spend key of the subwallet with *address*.

        Raises:
            KeyError: If the address is not one of ours.
        """
        with self._lock:
            for sub_wallet in self._wallets.values():
                if sub_wallet.address == address:
                    return sub_wallet.public_spend_key
        raise KeyError(address)

    def get_balance(
        self, public_spend_keys: list[bytes], take_from_all: bool
    ) -> tuple[int, int]:
        """Sum (unlocked, locked) over the given subwallets, or all of them."""
        wanted = {bytes(k) for k in public_spend_keys}
        unlocked = locked = 0
        with self._lock:
            for key, sub_wallet in self._wallets.items():
                if take_from_all or key in wanted:
                    unlocked += sub_wallet.unlocked_balance
                    locked += sub_wallet.locked_balance
        return unlocked, locked

    def get_min_initial_sync_start(self) -> tuple[int, int]:
        """Earliest (height, timestamp) any subwallet needs scanning from.

        At most one of the two is non-zero when both kinds of start are
        present: heights are converted to timestamps to pick the earlier one.
        """
        with self._lock:
            if not self._wallets:
                return 0, 0
            min_height = min(w.sync_start_height for w in self._wallets.values())
            min_timestamp = min(w.sync_start_timestamp for w in self._wallets.values())

        if min_height == 0 or min_timestamp == 0:
            return min_height, min_timestamp

        timestamp_from_height = self._genesis_timestamp + min_height * self._block_target
        if timestamp_from_height < min_timestamp:
            return min_height, 0
        return 0, min_timestamp

    # -- Persistence -------------------------------------------------------

    def to_state(self) -> list[SubWalletState]:
        with self._lock:
            return [w.to_state() for w in self._wallets.values()]

    @classmethod
    def from_state(
        cls,
        states: list[SubWalletState],
        *,
        genesis_timestamp: int = 0,
        block_target: int = 1,
    ) -> SubWallets:
        container = cls(genesis_timestamp=genesis_timestamp, block_target=block_target)
        for state in states:
            container.add(SubWallet.from_state(state))
        return container

    def wipe(self) -> None:
        """Zero every private spend key buffer."""
        with self._lock:
            for sub_wallet in self._wallets.values():
                wipe(sub_wallet.private_spend_key)
