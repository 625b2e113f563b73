"""
Exceptions for SecretBox
All failures share one root so callers can have a general error catcher
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    DECODE_ERROR = "decode_error"
    MALFORMED_BLOB = "malformed_blob"
    DECRYPTION_FAILED = "decryption_failed"
    PERSISTENCE_ERROR = "persistence_error"
    CONFIG_ERROR = "config_error"


class SecretBoxError(Exception):
    # general container for errors
    kind: Optional[ErrorKind] = None


class InvalidInput(SecretBoxError):
    # raised on an empty secret, password or blob
    kind = ErrorKind.INVALID_INPUT


class DecodeError(SecretBoxError):
    # raised when stored text is not valid base64 (or plaintext not utf-8)
    kind = ErrorKind.DECODE_ERROR


class MalformedBlob(SecretBoxError):
    # raised when a decoded blob cannot hold salt + nonce
    kind = ErrorKind.MALFORMED_BLOB


class DecryptionFailed(SecretBoxError):
    # raised on an authentication tag mismatch (wrong password or tampering)
    kind = ErrorKind.DECRYPTION_FAILED

    def __init__(self, message: str = "Decryption failed. Invalid password or corrupted data."):
        super().__init__(message)


class PersistenceError(SecretBoxError):
    # raised when the key-value store cannot read, write or delete
    kind = ErrorKind.PERSISTENCE_ERROR


class ConfigError(SecretBoxError):
    # raised on invalid configuration values
    kind = ErrorKind.CONFIG_ERROR
