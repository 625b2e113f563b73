"""Password-based key derivation for SecretBox."""
import os
from typing import Dict

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from secretbox.core.config import DEFAULT_HASH, DEFAULT_ITERATIONS
from secretbox.core.exceptions import ConfigError, InvalidInput

SALT_SIZE = 16
KEY_LEN = 32

_HASHES = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


def generate_salt(length: int = SALT_SIZE) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def derive_key(
    password: bytes | str,
    salt: bytes,
    iterations: int = DEFAULT_ITERATIONS,
    hash_name: str = DEFAULT_HASH,
    key_len: int = KEY_LEN,
) -> bytes:
    """
    Derive a symmetric key from a password using PBKDF2-HMAC.
    Returns raw derived key bytes; the caller must not persist them.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")
    if not password:
        raise InvalidInput("Password is required")
    if not salt:
        raise InvalidInput("Salt is required")
    if iterations < 1:
        raise ConfigError(f"iterations must be positive, got {iterations}")

    algorithm = _HASHES.get(hash_name)
    if algorithm is None:
        raise ConfigError(f"Unsupported hash: {hash_name}")

    kdf = PBKDF2HMAC(
        algorithm=algorithm(),
        length=key_len,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password)


def kdf_params_to_dict(salt: bytes, iterations: int, hash_name: str = DEFAULT_HASH) -> Dict:
    return {
        "algo": "pbkdf2",
        "hash": hash_name,
        "salt": salt.hex(),
        "iterations": iterations,
    }
