"""WalletIdentity — the private keys of one wallet and the address they make."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wallet_backend.cryptonote.address import address_to_public_keys, public_keys_to_address
from wallet_backend.cryptonote.keys import (
    NULL_SECRET_KEY,
    check_secret_key,
    generate_keys,
    generate_view_from_spend,
    secret_key_to_public_key,
)
from wallet_backend.errors.wallet_errors import WalletError, WalletFileError
from wallet_backend.utils.crypto import wipe

if TYPE_CHECKING:
    from wallet_backend.cryptonote.mnemonics import MnemonicDecoder


def address_from_private_keys(
    private_spend_key: bytes, private_view_key: bytes, prefix: int
) -> str:
    """Generate the public address from the two private keys."""
    return public_keys_to_address(
        secret_key_to_public_key(private_spend_key),
        secret_key_to_public_key(private_view_key),
        prefix,
    )


class WalletIdentity:
    """Spend key, view key and the derived public address.

    The address is computed once, when the identity is built, and never set
    independently of the keys. Key material lives in ``bytearray`` buffers so
    ``wipe()`` can zero it.
    """

    def __init__(
        self,
        private_spend_key: bytes,
        private_view_key: bytes,
        *,
        is_view_wallet: bool,
        prefix: int,
        public_spend_key: bytes | None = None,
    ) -> None:
        """Build an identity from raw keys.

        Args:
            private_spend_key: 32-byte scalar, ``NULL_SECRET_KEY`` for view wallets.
            private_view_key: 32-byte scalar.
            is_view_wallet: True for a view-only wallet.
            prefix: Network address prefix.
            public_spend_key: Required for view wallets, where it cannot be
                derived from the (null) private spend key.

        Raises:
            ValueError: If a key is malformed, or a view wallet lacks its
                public spend key.
        """
        if not check_secret_key(private_view_key):
            msg = "Private view key is not a valid reduced scalar"
            raise ValueError(msg)
        if is_view_wallet:
            if bytes(private_spend_key) != NULL_SECRET_KEY:
                msg = "A view wallet cannot hold a private spend key"
                raise ValueError(msg)
            if public_spend_key is None or len(public_spend_key) != len(NULL_SECRET_KEY):
                msg = "A view wallet needs the public spend key from its address"
                raise ValueError(msg)
        elif not check_secret_key(private_spend_key):
            msg = "Private spend key is not a valid reduced scalar"
            raise ValueError(msg)

        self._private_spend_key = bytearray(private_spend_key)
        self._private_view_key = bytearray(private_view_key)
        self._is_view_wallet = is_view_wallet

        if is_view_wallet:
            self._public_spend_key = bytes(public_spend_key)  # type: ignore[arg-type]
            self._address = public_keys_to_address(
                self._public_spend_key,
                secret_key_to_public_key(bytes(private_view_key)),
                prefix,
            )
        else:
            self._public_spend_key = secret_key_to_public_key(bytes(private_spend_key))
            self._address = address_from_private_keys(
                bytes(private_spend_key), bytes(private_view_key), prefix
            )

    # -- Factories ---------------------------------------------------------

    @classmethod
    def create(cls, *, prefix: int) -> WalletIdentity:
        """Fresh random spend key, view key derived from it."""
        spend = generate_keys()
        view = generate_view_from_spend(spend.secret_key)
        return cls(spend.secret_key, view.secret_key, is_view_wallet=False, prefix=prefix)

    @classmethod
    def from_seed(
        cls, mnemonic_seed: str, mnemonics: MnemonicDecoder, *, prefix: int
    ) -> WalletIdentity:
        """Spend key from a mnemonic seed, view key derived from it.

        Raises:
            WalletFileError: ``INVALID_MNEMONIC`` if the seed does not decode.
        """
        private_spend_key, error_text = mnemonics.seed_to_private_key(mnemonic_seed)
        if error_text or private_spend_key is None or not check_secret_key(private_spend_key):
            raise WalletFileError(WalletError.INVALID_MNEMONIC, error_text or None)
        view = generate_view_from_spend(private_spend_key)
        return cls(private_spend_key, view.secret_key, is_view_wallet=False, prefix=prefix)

    @classmethod
    def from_keys(
        cls, private_spend_key: bytes, private_view_key: bytes, *, prefix: int
    ) -> WalletIdentity:
        """Both private keys supplied by the caller.

        Raises:
            WalletFileError: ``INVALID_PRIVATE_KEY`` if either key is not a
                32-byte reduced scalar.
        """
        if not check_secret_key(private_spend_key):
            raise WalletFileError(
                WalletError.INVALID_PRIVATE_KEY, "Private spend key is not a valid reduced scalar"
            )
        if not check_secret_key(private_view_key):
            raise WalletFileError(
                WalletError.INVALID_PRIVATE_KEY, "Private view key is not a valid reduced scalar"
            )
        return cls(private_spend_key, private_view_key, is_view_wallet=False, prefix=prefix)

    @classmethod
    def from_view_key(cls, private_view_key: bytes, address: str, *, prefix: int) -> WalletIdentity:
        """View-only identity; the public spend key comes from *address*.

        Raises:
            WalletFileError: ``INVALID_PRIVATE_KEY`` if the view key is not a
                32-byte reduced scalar, ``ADDRESS_NOT_VALID`` if the address
                does not parse or its view key is not the one for
                *private_view_key*.
        """
        if not check_secret_key(private_view_key):
            raise WalletFileError(
                WalletError.INVALID_PRIVATE_KEY, "Private view key is not a valid reduced scalar"
            )
        try:
            public_spend_key, public_view_key = address_to_public_keys(address, prefix)
        except ValueError as exc:
            raise WalletFileError(WalletError.ADDRESS_NOT_VALID, str(exc)) from exc
        if public_view_key != secret_key_to_public_key(private_view_key):
            raise WalletFileError(
                WalletError.ADDRESS_NOT_VALID,
                "The address does not belong to the supplied private view key",
            )
        return cls(
            NULL_SECRET_KEY,
            private_view_key,
            is_view_wallet=True,
            prefix=prefix,
            public_spend_key=public_spend_key,
        )

    # -- Accessors ---------------------------------------------------------

    @property
    def private_spend_key(self) -> bytes:
        return bytes(self._private_spend_key)

    @property
    def private_view_key(self) -> bytes:
        return bytes(self._private_view_key)

    @property
    def public_spend_key(self) -> bytes:
        return self._public_spend_key

    @property
    def is_view_wallet(self) -> bool:
        return self._is_view_wallet

    @property
    def address(self) -> str:
        return self._address

    def wipe(self) -> None:
        """Zero the private key buffers."""
        wipe(self._private_spend_key)
        wipe(self._private_view_key)

    def __repr__(self) -> str:
        kind = "view" if self._is_view_wallet else "full"
        return f"WalletIdentity({kind}, address={self._address!r})"
