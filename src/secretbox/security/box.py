"""
Password-protected storage for a single API token.

One :class:`SecretBox` call turns ``(secret, password)`` into an opaque
base64 blob and back:

- a fresh 16-byte salt and 12-byte nonce are drawn for every encryption
- the password is stretched with PBKDF2-HMAC (:mod:`secretbox.security.kdf`)
- the secret is sealed with AES-256-GCM, no associated data
- ``salt || nonce || ciphertext+tag`` is base64 encoded (:mod:`secretbox.security.blob`)

The derived key only lives for the duration of one call. Decryption either
returns the exact original bytes or raises :class:`DecryptionFailed`; a wrong
password and a tampered blob are deliberately indistinguishable.

Persistence is delegated to an injected key-value store
(:mod:`secretbox.security.keystore`); the box only ever hands it the blob.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from typing import Callable, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from secretbox.core.config import SecretBoxConfig
from secretbox.core.exceptions import DecodeError, DecryptionFailed, InvalidInput, PersistenceError
from secretbox.core.models import Result

from .blob import NONCE_SIZE, SALT_SIZE, pack_blob, unpack_blob
from .kdf import derive_key
from .keystore import KeyValueStore

logger = logging.getLogger(__name__)

# Inference API tokens look like ``hf_`` followed by 30+ alphanumerics.
TOKEN_PATTERN = re.compile(r"^hf_[A-Za-z0-9]{30,}$")

SELF_TEST_TOKEN = "hf_testkey123456789012345678901234567890"
SELF_TEST_PASSWORD = "test_password_123"


def validate_format(candidate: str) -> bool:
    """Advisory check that ``candidate`` has the usual token shape.

    Only a typo catcher: a match does not make a token authentic and a
    mismatch never blocks encryption or storage.
    """
    if not isinstance(candidate, str):
        return False
    return TOKEN_PATTERN.match(candidate) is not None


class SecretBox:
    """
    Encrypt, decrypt and persist one secret under a password.

    The box holds no per-call state, so one instance can serve concurrent
    encrypt/decrypt calls without locking.
    """

    def __init__(
        self,
        config: Optional[SecretBoxConfig] = None,
        store: Optional[KeyValueStore] = None,
        random_bytes: Callable[[int], bytes] = os.urandom,
    ):
        self.config = config or SecretBoxConfig()
        self.store = store
        self._random_bytes = random_bytes

    # ------------------------------------------------------------------
    # Key derivation
    # ------------------------------------------------------------------

    def derive_key(self, password: str | bytes, salt: bytes) -> bytes:
        """Derive the AES-256 key for ``salt`` with the configured work factor."""
        return derive_key(
            password,
            salt,
            iterations=self.config.iterations,
            hash_name=self.config.hash_name,
        )

    # ------------------------------------------------------------------
    # Encryption
    # ------------------------------------------------------------------

    def encrypt(self, secret: str | bytes, password: str) -> str:
        """
        Encrypt ``secret`` under ``password`` and return the EncodedBlob.

        Two calls with identical inputs give different blobs because salt and
        nonce are random per call.
        """
        if not secret or not password:
            raise InvalidInput("Secret and password are required")

        if isinstance(secret, str):
            if self.config.validate_on_set and not validate_format(secret):
                logger.warning(
                    "Token format may be invalid; inference API tokens usually start with 'hf_'"
                )
            data = secret.encode("utf-8")
        else:
            data = bytes(secret)

        salt = self._random_bytes(SALT_SIZE)
        nonce = self._random_bytes(NONCE_SIZE)
        key = self.derive_key(password, salt)
        ciphertext = AESGCM(key).encrypt(nonce, data, None)

        blob = pack_blob(salt, nonce, ciphertext)
        logger.debug("Encrypted %d-byte secret into %d-byte blob", len(data), len(blob))
        return blob

    def decrypt_bytes(self, blob: str, password: str) -> bytes:
        """
        Recover the raw secret bytes from ``blob``.

        Raises InvalidInput, DecodeError, MalformedBlob or DecryptionFailed.
        """
        if not blob or not password:
            raise InvalidInput("Encrypted blob and password are required")

        salt, nonce, ciphertext = unpack_blob(blob)
        key = self.derive_key(password, salt)
        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            logger.debug("Authentication tag mismatch for %d-byte blob", len(blob))
            raise DecryptionFailed() from e

    def decrypt(self, blob: str, password: str) -> str:
        """Recover the secret as text; see :meth:`decrypt_bytes`."""
        data = self.decrypt_bytes(blob, password)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("Decrypted secret is not UTF-8 text; use decrypt_bytes()") from e

    def try_encrypt(self, secret: str | bytes, password: str) -> Result[str]:
        return Result.capture(self.encrypt, secret, password)

    def try_decrypt(self, blob: str, password: str) -> Result[str]:
        """Like :meth:`decrypt` but returns a Result carrying the error kind."""
        return Result.capture(self.decrypt, blob, password)

    async def encrypt_async(self, secret: str | bytes, password: str) -> str:
        # key derivation is CPU-bound; keep it off the event loop
        return await asyncio.to_thread(self.encrypt, secret, password)

    async def decrypt_async(self, blob: str, password: str) -> str:
        return await asyncio.to_thread(self.decrypt, blob, password)

    # ------------------------------------------------------------------
    # Format hint
    # ------------------------------------------------------------------

    @staticmethod
    def validate_format(candidate: str) -> bool:
        return validate_format(candidate)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _require_store(self) -> KeyValueStore:
        if self.store is None:
            raise PersistenceError("No key-value store configured")
        return self.store

    def store_blob(self, blob: str) -> None:
        self._require_store().put(self.config.slot_key, blob)

    def load_blob(self) -> Optional[str]:
        return self._require_store().get(self.config.slot_key)

    def clear_blob(self) -> None:
        self._require_store().remove(self.config.slot_key)

    def save_secret(self, secret: str | bytes, password: str) -> str:
        """Encrypt ``secret`` and persist the blob; returns the blob."""
        blob = self.encrypt(secret, password)
        self.store_blob(blob)
        return blob

    def load_secret(self, password: str) -> Optional[str]:
        """Decrypt the persisted blob, or return None when nothing is stored."""
        blob = self.load_blob()
        if blob is None:
            return None
        return self.decrypt(blob, password)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def self_test(self) -> bool:
        """Round-trip a sample token and report whether it came back intact."""
        try:
            blob = self.encrypt(SELF_TEST_TOKEN, SELF_TEST_PASSWORD)
            return self.decrypt(blob, SELF_TEST_PASSWORD) == SELF_TEST_TOKEN
        except Exception:
            logger.exception("Encryption self-test failed")
            return False
