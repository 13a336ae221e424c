"""Encrypted wallet container — the on-disk envelope.

File layout (bytes, in order)::

    IS_A_WALLET_IDENTIFIER | salt (16) | AES-256-CBC(IS_CORRECT_PASSWORD_IDENTIFIER | payload)

The AES key is ``PBKDF2-HMAC-SHA256(password, salt, PBKDF2_ITERATIONS, 32)`` and
the CBC IV is the salt itself. Plaintext is PKCS#7 padded.

There is no authentication tag. The only checks after decryption are PKCS#7
padding and the password identifier, so a wrong password is detected with
high probability but bit flips in later ciphertext blocks go unnoticed.
"""

from __future__ import annotations

import logging
import os

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from wallet_backend.errors.wallet_errors import WalletError, WalletFileError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Format constants
# ---------------------------------------------------------------------------

IS_A_WALLET_IDENTIFIER = b"If I pull that off, will you die?\nIt would be extremely painful."

IS_CORRECT_PASSWORD_IDENTIFIER = b"You're a big guy."

PBKDF2_ITERATIONS = 500_000

SALT_SIZE = 16
KEY_SIZE = 32
_BLOCK_SIZE = algorithms.AES.block_size // 8


def strip_magic_identifier(
    data: bytes,
    identifier: bytes,
    too_small_error: WalletError,
    wrong_identifier_error: WalletError,
) -> bytes:
    """Return *data* without its leading *identifier*.

    Raises:
        WalletFileError: ``too_small_error`` if *data* is shorter than the
            identifier, ``wrong_identifier_error`` if the prefix differs.
    """
    if len(data) < len(identifier):
        raise WalletFileError(too_small_error)
    if data[: len(identifier)] != identifier:
        raise WalletFileError(wrong_identifier_error)
    return data[len(identifier) :]


class ContainerCodec:
    """Encrypts and decrypts wallet payloads under a password.

    Usage::

        codec = ContainerCodec()
        blob = codec.encrypt(b"{...}", "hunter2")
        payload = codec.decrypt(blob, "hunter2")
    """

    def __init__(self, *, iterations: int = PBKDF2_ITERATIONS) -> None:
        """Initialize the codec.

        Args:
            iterations: PBKDF2 round count. Not recorded in the file, so a
                file only opens with the count it was saved with.
        """
        if iterations < 1:
            msg = "PBKDF2 iterations must be positive"
            raise ValueError(msg)
        self._iterations = iterations

    @property
    def iterations(self) -> int:
        return self._iterations

    def derive_key(self, password: str, salt: bytes) -> bytes:
        """Derive the 32-byte AES key for *password* and *salt*."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=salt,
            iterations=self._iterations,
        )
        return kdf.derive(password.encode("utf-8"))

    def encrypt(self, payload: bytes, password: str) -> bytes:
        """Encrypt *payload* into a complete wallet file image.

        A fresh random salt is drawn on every call.
        """
        salt = os.urandom(SALT_SIZE)
        key = self.derive_key(password, salt)

        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        plaintext = padder.update(IS_CORRECT_PASSWORD_IDENTIFIER + payload) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(salt)).encryptor()
        ciphertext = encryptor.update(plaintext) + encryptor.finalize()

        return IS_A_WALLET_IDENTIFIER + salt + ciphertext

    def decrypt(self, file_bytes: bytes, password: str) -> bytes:
        """Decrypt a wallet file image and return the payload.

        Raises:
            WalletFileError: ``NOT_A_WALLET_FILE`` if the file identifier is
                missing, ``WALLET_FILE_CORRUPTED`` if the salt or ciphertext
                is truncated or the decrypted data is too short for the
                password identifier, ``WRONG_PASSWORD`` if the padding or
                the password identifier does not check out.
        """
        data = strip_magic_identifier(
            file_bytes,
            IS_A_WALLET_IDENTIFIER,
            WalletError.NOT_A_WALLET_FILE,
            WalletError.NOT_A_WALLET_FILE,
        )

        if len(data) < SALT_SIZE:
            raise WalletFileError(
                WalletError.WALLET_FILE_CORRUPTED, "Wallet file salt is truncated"
            )

        salt, ciphertext = data[:SALT_SIZE], data[SALT_SIZE:]

        if not ciphertext or len(ciphertext) % _BLOCK_SIZE:
            raise WalletFileError(
                WalletError.WALLET_FILE_CORRUPTED,
                "Wallet file ciphertext is not a whole number of blocks",
            )

        key = self.derive_key(password, salt)
        decryptor = Cipher(algorithms.AES(key), modes.CBC(salt)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            plaintext = unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            # Garbage padding is what a wrong key almost always produces
            logger.debug("PKCS7 unpadding failed: %s", exc)
            raise WalletFileError(WalletError.WRONG_PASSWORD) from exc

        return strip_magic_identifier(
            plaintext,
            IS_CORRECT_PASSWORD_IDENTIFIER,
            WalletError.WALLET_FILE_CORRUPTED,
            WalletError.WRONG_PASSWORD,
        )
