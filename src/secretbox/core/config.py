"""Typed configuration for SecretBox.

Replaces a loose options dict with named fields and documented defaults.
Values can also be read from ``SECRETBOX_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigError

DEFAULT_ITERATIONS = 100_000
DEFAULT_HASH = "sha256"
DEFAULT_SLOT_KEY = "hf_encrypted_key"
SUPPORTED_HASHES = ("sha256", "sha384", "sha512")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class SecretBoxConfig:
    """Settings shared by SecretBox and TokenHolder.

    validate_on_set: warn when a token does not look like an API token.
    assume_encrypted: treat tokens handed to TokenHolder as encrypted blobs.
    iterations: PBKDF2 work factor.
    hash_name: PBKDF2 hash.
    slot_key: key name of the persisted blob.
    """

    validate_on_set: bool = True
    assume_encrypted: bool = False
    iterations: int = DEFAULT_ITERATIONS
    hash_name: str = DEFAULT_HASH
    slot_key: str = DEFAULT_SLOT_KEY

    def __post_init__(self):
        if self.iterations < 1:
            raise ConfigError(f"iterations must be positive, got {self.iterations}")
        if self.hash_name not in SUPPORTED_HASHES:
            raise ConfigError(f"Unsupported hash: {self.hash_name}")
        if not self.slot_key:
            raise ConfigError("slot_key must not be empty")

    @classmethod
    def from_env(cls, slot_key: Optional[str] = None) -> "SecretBoxConfig":
        """Build a config from SECRETBOX_* environment variables."""
        return cls(
            validate_on_set=_env_bool("SECRETBOX_VALIDATE", True),
            assume_encrypted=_env_bool("SECRETBOX_ASSUME_ENCRYPTED", False),
            iterations=_env_int("SECRETBOX_ITERATIONS", DEFAULT_ITERATIONS),
            hash_name=os.getenv("SECRETBOX_HASH", DEFAULT_HASH).strip().lower(),
            slot_key=slot_key or os.getenv("SECRETBOX_SLOT_KEY", DEFAULT_SLOT_KEY),
        )
