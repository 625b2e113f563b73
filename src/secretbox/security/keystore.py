"""Key-value persistence collaborators for the encrypted blob.

SecretBox never touches storage directly; it is handed one of these stores
at construction time. Every store exposes the same three synchronous calls
(``put``, ``get``, ``remove``) and reports failures as
:class:`~secretbox.core.exceptions.PersistenceError`. Nothing is retried.

- :class:`MemoryStore` keeps values in a dict (tests, or running without
  persistence).
- :class:`KeyringStore` writes to the OS keystore through ``keyring``. Do not
  assume keyring provides hardware-backed security on all platforms.
- :class:`JsonFileStore` keeps a small JSON object on disk.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from secretbox.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "secretbox"


class KeyValueStore(Protocol):
    def put(self, key: str, value: str) -> None: ...

    def get(self, key: str) -> Optional[str]: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store; contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class KeyringStore:
    """Store values in the OS keystore under ``(service, key)``."""

    def __init__(self, service: str = DEFAULT_SERVICE):
        self.service = service

    def put(self, key: str, value: str) -> None:
        try:
            keyring.set_password(self.service, key, value)
        except KeyringError as e:
            raise PersistenceError(f"failed to write {key!r} to keyring: {e}") from e

    def get(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.service, key)
        except KeyringError as e:
            raise PersistenceError(f"failed to read {key!r} from keyring: {e}") from e

    def remove(self, key: str) -> None:
        try:
            keyring.delete_password(self.service, key)
        except PasswordDeleteError:
            # nothing stored under this key
            logger.debug("No keyring entry for %s/%s", self.service, key)
        except KeyringError as e:
            raise PersistenceError(f"failed to delete {key!r} from keyring: {e}") from e


def assess_keyring_backend() -> tuple[bool, str]:
    """Return (is_secure, message) describing the current keyring backend.

    Heuristics are used because the `keyring` package exposes different backends
    across platforms.
    """
    try:
        backend = keyring.get_keyring()
    except Exception as e:
        return False, f"failed to get keyring backend: {e}"

    name = backend.__class__.__name__
    priority = getattr(backend, "priority", None)

    insecure_indicators = ("Plaintext", "Uncrypted", "Simple", "File", "Null", "Fail")
    if any(tok in name for tok in insecure_indicators):
        return False, f"insecure backend detected: {name}"

    if priority is not None and priority <= 0:
        return False, f"no suitable secure keyring backend available (priority={priority}, backend={name})"

    if "Win" in name or "Keychain" in name or "SecretService" in name or "KWallet" in name:
        return True, f"backend looks acceptable: {name} (priority={priority})"

    return True, f"unknown backend '{name}', treat with caution (priority={priority})"


class JsonFileStore:
    """Store values as one JSON object in ``path``.

    A missing file reads as empty. Writes go to a sibling temp file that is
    renamed over the target, so a crash never leaves half a document.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path} does not contain a JSON object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"failed to write {self.path}: {e}") from e

    def put(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
