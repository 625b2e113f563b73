"""
Unit tests for SecretBox.
"""

import asyncio
import base64
import logging

import pytest
from unittest.mock import patch

from secretbox.core.config import SecretBoxConfig
from secretbox.core.exceptions import (
    DecodeError,
    DecryptionFailed,
    ErrorKind,
    InvalidInput,
    MalformedBlob,
    PersistenceError,
)
from secretbox.security.box import SecretBox, validate_format
from secretbox.security.keystore import MemoryStore


TOKEN = "hf_" + "test" * 10
PASSWORD = "test_password_123"


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def fast_config():
    """Low work factor so the suite stays quick."""
    return SecretBoxConfig(iterations=1000)


@pytest.fixture
def box(fast_config):
    return SecretBox(fast_config, store=MemoryStore())


# ==============================================================================
# Tests: Round trip
# ==============================================================================

@pytest.mark.parametrize(
    "secret",
    [TOKEN, "x", "unicode 🔒 token", "hf_" + "a" * 200],
)
def test_encrypt_decrypt_roundtrip(box, secret):
    assert box.decrypt(box.encrypt(secret, PASSWORD), PASSWORD) == secret


def test_roundtrip_bytes(box):
    data = bytes(range(256))
    assert box.decrypt_bytes(box.encrypt(data, PASSWORD), PASSWORD) == data


def test_encrypt_is_not_deterministic(box):
    """Fresh salt and nonce per call make equal inputs yield different blobs."""
    assert box.encrypt(TOKEN, PASSWORD) != box.encrypt(TOKEN, PASSWORD)


def test_blob_length_invariant(box):
    blob = box.encrypt(TOKEN, PASSWORD)
    raw = base64.b64decode(blob)
    # salt (16) + nonce (12) + ciphertext (len(secret)) + GCM tag (16)
    assert len(raw) == 16 + 12 + len(TOKEN) + 16


def test_blob_uses_injected_random_source(fast_config):
    calls = []

    def fake_random(n):
        calls.append(n)
        return bytes([len(calls)]) * n

    box = SecretBox(fast_config, random_bytes=fake_random)
    raw = base64.b64decode(box.encrypt(TOKEN, PASSWORD))

    assert calls == [16, 12]
    assert raw[:16] == b"\x01" * 16
    assert raw[16:28] == b"\x02" * 12
    assert box.decrypt(base64.b64encode(raw).decode(), PASSWORD) == TOKEN


def test_derive_key_uses_config(fast_config):
    box = SecretBox(fast_config)
    with patch("secretbox.security.box.derive_key", return_value=b"k" * 32) as mock_kdf:
        box.derive_key("pw", b"s" * 16)
    mock_kdf.assert_called_once_with("pw", b"s" * 16, iterations=1000, hash_name="sha256")


def test_key_is_rederived_on_decrypt(box):
    blob = box.encrypt(TOKEN, PASSWORD)
    salt = base64.b64decode(blob)[:16]
    with patch.object(box, "derive_key", wraps=box.derive_key) as spy:
        box.decrypt(blob, PASSWORD)
    spy.assert_called_once_with(PASSWORD, salt)


# ==============================================================================
# Tests: Failures
# ==============================================================================

def test_wrong_password_fails(box):
    blob = box.encrypt(TOKEN, PASSWORD)
    with pytest.raises(DecryptionFailed, match="Invalid password or corrupted data"):
        box.decrypt(blob, "wrong")


def test_every_flipped_byte_is_detected(box):
    """Tampering anywhere (salt, nonce, ciphertext or tag) fails closed."""
    raw = base64.b64decode(box.encrypt("hf_short", PASSWORD))
    for i in range(len(raw)):
        tampered = bytearray(raw)
        tampered[i] ^= 0x01
        with pytest.raises(DecryptionFailed):
            box.decrypt(base64.b64encode(bytes(tampered)).decode(), PASSWORD)


def test_truncated_tag_fails(box):
    raw = base64.b64decode(box.encrypt(TOKEN, PASSWORD))
    with pytest.raises(DecryptionFailed):
        box.decrypt(base64.b64encode(raw[:-1]).decode(), PASSWORD)


def test_header_only_blob_fails_decryption(box):
    with pytest.raises(DecryptionFailed):
        box.decrypt(base64.b64encode(b"\x00" * 28).decode(), PASSWORD)


def test_short_blob_is_malformed(box):
    with pytest.raises(MalformedBlob):
        box.decrypt(base64.b64encode(b"\x00" * 27).decode(), PASSWORD)


def test_invalid_base64_is_decode_error(box):
    with pytest.raises(DecodeError):
        box.decrypt("!!! not base64 !!!", PASSWORD)


def test_non_utf8_plaintext_is_decode_error(box):
    blob = box.encrypt(b"\xff\xfe\xfd", PASSWORD)
    with pytest.raises(DecodeError, match="decrypt_bytes"):
        box.decrypt(blob, PASSWORD)
    assert box.decrypt_bytes(blob, PASSWORD) == b"\xff\xfe\xfd"


@pytest.mark.parametrize("secret, password", [("", PASSWORD), (TOKEN, ""), (b"", PASSWORD)])
def test_encrypt_requires_secret_and_password(box, secret, password):
    with pytest.raises(InvalidInput):
        box.encrypt(secret, password)


@pytest.mark.parametrize("blob, password", [("", PASSWORD), ("AAAA", "")])
def test_decrypt_requires_blob_and_password(box, blob, password):
    with pytest.raises(InvalidInput):
        box.decrypt(blob, password)


# ==============================================================================
# Tests: Result-returning variants
# ==============================================================================

def test_try_decrypt_success(box):
    result = box.try_decrypt(box.encrypt(TOKEN, PASSWORD), PASSWORD)
    assert result.ok
    assert result.value == TOKEN


def test_try_decrypt_reports_kind(box):
    blob = box.encrypt(TOKEN, PASSWORD)
    assert box.try_decrypt(blob, "wrong").kind is ErrorKind.DECRYPTION_FAILED
    assert box.try_decrypt("@@@", PASSWORD).kind is ErrorKind.DECODE_ERROR
    assert box.try_decrypt("AAAA", PASSWORD).kind is ErrorKind.MALFORMED_BLOB


def test_try_encrypt_reports_invalid_input(box):
    result = box.try_encrypt("", PASSWORD)
    assert not result.ok
    assert result.kind is ErrorKind.INVALID_INPUT


# ==============================================================================
# Tests: Async wrappers
# ==============================================================================

def test_async_roundtrip(box):
    async def run():
        first, second = await asyncio.gather(
            box.encrypt_async(TOKEN, PASSWORD),
            box.encrypt_async("hf_other", "other-password"),
        )
        return (
            await box.decrypt_async(first, PASSWORD),
            await box.decrypt_async(second, "other-password"),
        )

    assert asyncio.run(run()) == (TOKEN, "hf_other")


def test_async_decrypt_propagates_errors(box):
    blob = box.encrypt(TOKEN, PASSWORD)
    with pytest.raises(DecryptionFailed):
        asyncio.run(box.decrypt_async(blob, "wrong"))


# ==============================================================================
# Tests: Format validation
# ==============================================================================

def test_validate_format_accepts_token_shape():
    assert validate_format("hf_" + "a" * 35) is True
    assert validate_format("hf_" + "A1" * 15) is True
    assert SecretBox.validate_format("hf_" + "a" * 30) is True


@pytest.mark.parametrize(
    "candidate",
    ["garbage", "hf_" + "a" * 29, "hf_" + "a" * 30 + "-", "HF_" + "a" * 35, "", None],
)
def test_validate_format_rejects(candidate):
    assert validate_format(candidate) is False


def test_invalid_format_warns_but_encrypts(box, caplog):
    with caplog.at_level(logging.WARNING, logger="secretbox.security.box"):
        blob = box.encrypt("garbage", PASSWORD)
    assert "format may be invalid" in caplog.text
    assert box.decrypt(blob, PASSWORD) == "garbage"


def test_validation_can_be_disabled(caplog):
    box = SecretBox(SecretBoxConfig(iterations=1000, validate_on_set=False))
    with caplog.at_level(logging.WARNING):
        box.encrypt("garbage", PASSWORD)
    assert "format may be invalid" not in caplog.text


def test_secrets_never_logged(box, caplog):
    with caplog.at_level(logging.DEBUG):
        blob = box.encrypt("garbage-secret", "hunter2-password")
        box.decrypt(blob, "hunter2-password")
        with pytest.raises(DecryptionFailed):
            box.decrypt(blob, "guess-password")
    assert "garbage-secret" not in caplog.text
    assert "hunter2-password" not in caplog.text
    assert "guess-password" not in caplog.text


# ==============================================================================
# Tests: Storage accessors
# ==============================================================================

def test_store_load_clear(box):
    box.store_blob("blob")
    assert box.load_blob() == "blob"
    assert box.store.get("hf_encrypted_key") == "blob"
    box.clear_blob()
    assert box.load_blob() is None


def test_custom_slot_key():
    store = MemoryStore()
    box = SecretBox(SecretBoxConfig(iterations=1000, slot_key="account_2"), store=store)
    box.store_blob("blob")
    assert store.get("account_2") == "blob"
    assert store.get("hf_encrypted_key") is None


def test_storage_is_pass_through(box):
    """Any text is stored as-is; validation happens only on decrypt."""
    box.store_blob("not even base64")
    assert box.load_blob() == "not even base64"


def test_save_and_load_secret(box):
    blob = box.save_secret(TOKEN, PASSWORD)
    assert box.load_blob() == blob
    assert box.load_secret(PASSWORD) == TOKEN


def test_load_secret_empty_slot(box):
    assert box.load_secret(PASSWORD) is None


def test_storage_without_store_raises(fast_config):
    box = SecretBox(fast_config)
    with pytest.raises(PersistenceError, match="No key-value store"):
        box.store_blob("blob")
    with pytest.raises(PersistenceError):
        box.load_blob()
    with pytest.raises(PersistenceError):
        box.clear_blob()


def test_store_errors_surface_without_retry(fast_config):
    class BrokenStore(MemoryStore):
        calls = 0

        def put(self, key, value):
            BrokenStore.calls += 1
            raise PersistenceError("quota exceeded")

    box = SecretBox(fast_config, store=BrokenStore())
    with pytest.raises(PersistenceError, match="quota exceeded"):
        box.save_secret(TOKEN, PASSWORD)
    assert BrokenStore.calls == 1


# ==============================================================================
# Tests: Self-test
# ==============================================================================

def test_self_test_passes(box):
    assert box.self_test() is True


def test_self_test_reports_failure(box):
    with patch.object(box, "decrypt", side_effect=DecryptionFailed()):
        assert box.self_test() is False
