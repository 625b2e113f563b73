"""In-memory holder for the active API token.

The HTTP layer never sees the blob or the password: it asks the holder for
an ``Authorization`` header once the token has been unlocked.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from secretbox.core.config import SecretBoxConfig
from secretbox.core.exceptions import InvalidInput

from .box import SecretBox, validate_format

logger = logging.getLogger(__name__)


class TokenHolder:
    def __init__(self, config: Optional[SecretBoxConfig] = None):
        self.config = config or SecretBoxConfig()
        self._token: Optional[str] = None
        self.encrypted: bool = False

    def set_token(self, token: str, encrypted: Optional[bool] = None) -> None:
        """Hold ``token``; plaintext tokens get an advisory format check."""
        if not token:
            raise InvalidInput("API key is required")
        if encrypted is None:
            encrypted = self.config.assume_encrypted
        if not encrypted and self.config.validate_on_set and not validate_format(token):
            logger.warning(
                "API key format may be invalid; inference API tokens usually start with 'hf_'"
            )
        self._token = token
        self.encrypted = encrypted

    def unlock(self, box: SecretBox, blob: str, password: str) -> None:
        """Decrypt ``blob`` and hold the plaintext token."""
        self.set_token(box.decrypt(blob, password), encrypted=False)

    def has_token(self) -> bool:
        return bool(self._token)

    def clear(self) -> None:
        self._token = None
        self.encrypted = False

    def masked(self) -> str:
        """Display form of the token: first 6 and last 4 characters."""
        if not self._token:
            return "Not configured"
        if self.encrypted:
            return "[Encrypted]"
        if len(self._token) > 10:
            return f"{self._token[:6]}...{self._token[-4:]}"
        return "***"

    def auth_header(self) -> Dict[str, str]:
        """Bearer header for outbound API calls."""
        if not self._token:
            raise InvalidInput("API key not configured")
        if self.encrypted:
            raise InvalidInput("API key is still encrypted; unlock it first")
        return {"Authorization": f"Bearer {self._token}"}
