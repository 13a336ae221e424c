"""Tests for WalletIdentity — wallet/identity.py."""

from __future__ import annotations

import pytest

from conftest import TRTL_PREFIX, FakeMnemonics
from wallet_backend.cryptonote.address import address_to_public_keys
from wallet_backend.cryptonote.keys import (
    NULL_SECRET_KEY,
    generate_keys,
    generate_view_from_spend,
    secret_key_to_public_key,
)
from wallet_backend.cryptonote.mnemonics import MnemonicDecoder
from wallet_backend.errors.wallet_errors import WalletError, WalletFileError
from wallet_backend.wallet.identity import WalletIdentity, address_from_private_keys


class TestCreate:
    def test_view_key_derived_from_spend(self) -> None:
        identity = WalletIdentity.create(prefix=TRTL_PREFIX)
        expected = generate_view_from_spend(identity.private_spend_key).secret_key
        assert identity.private_view_key == expected
        assert not identity.is_view_wallet

    def test_address_matches_keys(self) -> None:
        identity = WalletIdentity.create(prefix=TRTL_PREFIX)
        assert identity.address == address_from_private_keys(
            identity.private_spend_key, identity.private_view_key, TRTL_PREFIX
        )
        assert identity.public_spend_key == secret_key_to_public_key(identity.private_spend_key)

    def test_each_identity_is_fresh(self) -> None:
        assert (
            WalletIdentity.create(prefix=TRTL_PREFIX).address
            != WalletIdentity.create(prefix=TRTL_PREFIX).address
        )


class TestFromKeys:
    def test_same_keys_same_address(self) -> None:
        spend, view = generate_keys(), generate_keys()
        first = WalletIdentity.from_keys(spend.secret_key, view.secret_key, prefix=TRTL_PREFIX)
        second = WalletIdentity.from_keys(spend.secret_key, view.secret_key, prefix=TRTL_PREFIX)
        assert first.address == second.address
        assert address_to_public_keys(first.address, TRTL_PREFIX) == (
            spend.public_key,
            view.public_key,
        )

    def test_unreduced_spend_key_rejected(self) -> None:
        with pytest.raises(WalletFileError) as info:
            WalletIdentity.from_keys(b"\xff" * 32, generate_keys().secret_key, prefix=TRTL_PREFIX)
        assert info.value.error is WalletError.INVALID_PRIVATE_KEY
        assert "spend key" in info.value.message

    def test_unreduced_view_key_rejected(self) -> None:
        with pytest.raises(WalletFileError) as info:
            WalletIdentity.from_keys(generate_keys().secret_key, b"\xff" * 32, prefix=TRTL_PREFIX)
        assert info.value.error is WalletError.INVALID_PRIVATE_KEY
        assert "view key" in info.value.message

    def test_short_key_rejected(self) -> None:
        with pytest.raises(WalletFileError) as info:
            WalletIdentity.from_keys(b"\x01" * 31, generate_keys().secret_key, prefix=TRTL_PREFIX)
        assert info.value.error is WalletError.INVALID_PRIVATE_KEY

    def test_constructor_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="spend key"):
            WalletIdentity(
                b"\xff" * 32, generate_keys().secret_key, is_view_wallet=False, prefix=TRTL_PREFIX
            )


class TestFromSeed:
    def test_known_seed(self) -> None:
        spend = generate_keys().secret_key
        identity = WalletIdentity.from_seed(
            "turtle seed", FakeMnemonics({"turtle seed": spend}), prefix=TRTL_PREFIX
        )
        assert identity.private_spend_key == spend
        assert identity.private_view_key == generate_view_from_spend(spend).secret_key

    def test_unknown_seed(self) -> None:
        with pytest.raises(WalletFileError) as info:
            WalletIdentity.from_seed("nonsense", FakeMnemonics({}), prefix=TRTL_PREFIX)
        assert info.value.error is WalletError.INVALID_MNEMONIC

    def test_decoder_error_text_is_kept(self) -> None:
        with pytest.raises(WalletFileError) as info:
            WalletIdentity.from_seed("nonsense", FakeMnemonics({}), prefix=TRTL_PREFIX)
        assert info.value.message == "Mnemonic word not in word list"


class TestFromViewKey:
    def test_view_wallet_invariant(self) -> None:
        full = WalletIdentity.create(prefix=TRTL_PREFIX)
        view = WalletIdentity.from_view_key(full.private_view_key, full.address, prefix=TRTL_PREFIX)
        assert view.is_view_wallet
        assert view.private_spend_key == NULL_SECRET_KEY
        assert view.public_spend_key == full.public_spend_key
        assert view.address == full.address

    def test_invalid_address(self) -> None:
        with pytest.raises(WalletFileError) as info:
            WalletIdentity.from_view_key(generate_keys().secret_key, "TRTLnope", prefix=TRTL_PREFIX)
        assert info.value.error is WalletError.ADDRESS_NOT_VALID

    def test_invalid_view_key_is_not_blamed_on_address(self) -> None:
        full = WalletIdentity.create(prefix=TRTL_PREFIX)
        with pytest.raises(WalletFileError) as info:
            WalletIdentity.from_view_key(b"\xff" * 32, full.address, prefix=TRTL_PREFIX)
        assert info.value.error is WalletError.INVALID_PRIVATE_KEY

    def test_address_for_other_view_key(self) -> None:
        full = WalletIdentity.create(prefix=TRTL_PREFIX)
        with pytest.raises(WalletFileError) as info:
            WalletIdentity.from_view_key(
                generate_keys().secret_key, full.address, prefix=TRTL_PREFIX
            )
        assert info.value.error is WalletError.ADDRESS_NOT_VALID

    def test_view_wallet_needs_public_spend_key(self) -> None:
        with pytest.raises(ValueError, match="public spend key"):
            WalletIdentity(
                NULL_SECRET_KEY,
                generate_keys().secret_key,
                is_view_wallet=True,
                prefix=TRTL_PREFIX,
            )

    def test_view_wallet_rejects_spend_key(self) -> None:
        pair = generate_keys()
        with pytest.raises(ValueError, match="cannot hold"):
            WalletIdentity(
                pair.secret_key,
                generate_keys().secret_key,
                is_view_wallet=True,
                prefix=TRTL_PREFIX,
                public_spend_key=pair.public_key,
            )


class TestWipe:
    def test_wipe_zeroes_keys_but_keeps_address(self) -> None:
        identity = WalletIdentity.create(prefix=TRTL_PREFIX)
        address = identity.address
        identity.wipe()
        assert identity.private_spend_key == NULL_SECRET_KEY
        assert identity.private_view_key == NULL_SECRET_KEY
        assert identity.address == address

    def test_repr_has_no_key_material(self) -> None:
        identity = WalletIdentity.create(prefix=TRTL_PREFIX)
        text = repr(identity)
        assert identity.private_spend_key.hex() not in text
        assert "full" in text


class TestMnemonicDecoder:
    def test_fake_satisfies_protocol(self) -> None:
        assert isinstance(FakeMnemonics(), MnemonicDecoder)

    def test_object_without_method_does_not(self) -> None:
        assert not isinstance(object(), MnemonicDecoder)
