"""Security helpers: password-based token encryption for SecretBox.

This package provides:
- PBKDF2-HMAC key derivation from a user password
- AES-256-GCM sealing of one short secret into a base64 blob
- pluggable key-value stores for the blob (memory, OS keyring, JSON file)
- an in-memory token holder for the HTTP layer
"""

from .kdf import generate_salt, derive_key
from .blob import pack_blob, unpack_blob
from .box import SecretBox, validate_format
from .keystore import KeyValueStore, MemoryStore, KeyringStore, JsonFileStore
from .credentials import TokenHolder
from .passwords import generate_secure_password

__all__ = [
    "generate_salt",
    "derive_key",
    "pack_blob",
    "unpack_blob",
    "SecretBox",
    "validate_format",
    "KeyValueStore",
    "MemoryStore",
    "KeyringStore",
    "JsonFileStore",
    "TokenHolder",
    "generate_secure_password",
]
