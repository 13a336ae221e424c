"""Tests for WalletDocument — wallet/document.py."""

from __future__ import annotations

import json

import pytest

from conftest import TRTL_PREFIX
from wallet_backend.errors.wallet_errors import WalletError, WalletFileError
from wallet_backend.wallet.document import WALLET_FILE_FORMAT_VERSION, WalletDocument
from wallet_backend.wallet.identity import WalletIdentity
from wallet_backend.wallet.subwallets import SubWallets


@pytest.fixture()
def identity() -> WalletIdentity:
    return WalletIdentity.create(prefix=TRTL_PREFIX)


@pytest.fixture()
def sub_wallets(identity: WalletIdentity) -> SubWallets:
    return SubWallets.for_new_wallet(
        public_spend_key=identity.public_spend_key,
        private_spend_key=identity.private_spend_key,
        address=identity.address,
        scan_height=0,
        new_wallet=True,
    )


class TestSnapshot:
    def test_captures_identity(self, identity: WalletIdentity, sub_wallets: SubWallets) -> None:
        document = WalletDocument.snapshot(identity, sub_wallets, None)
        assert document.wallet_file_format_version == WALLET_FILE_FORMAT_VERSION
        assert document.private_view_key == identity.private_view_key.hex()
        assert document.public_spend_key == identity.public_spend_key.hex()
        assert not document.is_view_wallet
        assert document.wallet_synchronizer is None
        assert len(document.sub_wallets) == 1

    def test_serialize_is_json(self, identity: WalletIdentity, sub_wallets: SubWallets) -> None:
        payload = WalletDocument.snapshot(identity, sub_wallets, None).serialize()
        data = json.loads(payload)
        assert data["sub_wallets"][0]["address"] == identity.address
        assert data["sub_wallets"][0]["is_primary"] is True

    def test_round_trip(self, identity: WalletIdentity, sub_wallets: SubWallets) -> None:
        document = WalletDocument.snapshot(identity, sub_wallets, None)
        assert WalletDocument.deserialize(document.serialize()) == document


class TestDeserializeFailures:
    def _error(self, payload: bytes) -> WalletError:
        with pytest.raises(WalletFileError) as info:
            WalletDocument.deserialize(payload)
        return info.value.error

    @pytest.mark.parametrize("payload", [b"", b"not json", b"[]", b"{}", b"\xff\xfe"])
    def test_malformed(self, payload: bytes) -> None:
        assert self._error(payload) is WalletError.WALLET_FILE_CORRUPTED

    def test_short_view_key(self, identity: WalletIdentity, sub_wallets: SubWallets) -> None:
        data = json.loads(WalletDocument.snapshot(identity, sub_wallets, None).serialize())
        data["private_view_key"] = "abcd"
        assert self._error(json.dumps(data).encode()) is WalletError.WALLET_FILE_CORRUPTED

    def test_non_hex_key(self, identity: WalletIdentity, sub_wallets: SubWallets) -> None:
        data = json.loads(WalletDocument.snapshot(identity, sub_wallets, None).serialize())
        data["public_spend_key"] = "zz" * 32
        assert self._error(json.dumps(data).encode()) is WalletError.WALLET_FILE_CORRUPTED

    def test_no_primary(self, identity: WalletIdentity, sub_wallets: SubWallets) -> None:
        data = json.loads(WalletDocument.snapshot(identity, sub_wallets, None).serialize())
        data["sub_wallets"][0]["is_primary"] = False
        assert self._error(json.dumps(data).encode()) is WalletError.WALLET_FILE_CORRUPTED
