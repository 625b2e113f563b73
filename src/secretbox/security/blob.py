"""EncodedBlob layout: base64 text of ``salt || nonce || ciphertext+tag``.

Layout (raw bytes, before base64):
- 16 bytes: PBKDF2 salt
- 12 bytes: AES-GCM nonce
- N bytes: ciphertext with the 16-byte GCM tag appended

There is no magic or version byte, so blobs written by the browser
implementation of this format decode unchanged.
"""
import base64
import binascii
from typing import Tuple

from secretbox.core.exceptions import DecodeError, MalformedBlob

SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
HEADER_SIZE = SALT_SIZE + NONCE_SIZE


def pack_blob(salt: bytes, nonce: bytes, ciphertext: bytes) -> str:
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    return base64.b64encode(salt + nonce + ciphertext).decode("ascii")


def decode_blob(text: str) -> bytes:
    """Strictly decode base64 text; raises DecodeError on anything else."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("Stored value is not valid base64") from e


def unpack_blob(text: str) -> Tuple[bytes, bytes, bytes]:
    """Split an EncodedBlob into (salt, nonce, ciphertext)."""
    raw = decode_blob(text)
    if len(raw) < HEADER_SIZE:
        raise MalformedBlob(
            f"Blob too short: {len(raw)} bytes (minimum {HEADER_SIZE})"
        )
    return raw[:SALT_SIZE], raw[SALT_SIZE:HEADER_SIZE], raw[HEADER_SIZE:]
