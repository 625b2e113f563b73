"""Random password generation for users who want a strong encryption password."""
import secrets

from secretbox.core.exceptions import InvalidInput

PASSWORD_CHARSET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    "!@#$%^&*()_+-=[]{}|;:,.<>?"
)


def generate_secure_password(length: int = 32) -> str:
    if length < 1:
        raise InvalidInput(f"Password length must be positive, got {length}")
    return "".join(secrets.choice(PASSWORD_CHARSET) for _ in range(length))
