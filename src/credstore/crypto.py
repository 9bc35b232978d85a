from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken

from .errors import ConfigurationError


def generate_key() -> str:
    return Fernet.generate_key().decode("utf-8")


def fernet_from_key_str(key_str: str) -> Fernet:
    try:
        return Fernet(key_str.encode("utf-8"))
    except (ValueError, TypeError) as e:
        raise ConfigurationError("Fernet key must be 32 url-safe base64-encoded bytes.") from e


def encrypt_bytes(fernet: Fernet, data: bytes) -> bytes:
    return fernet.encrypt(data)


def decrypt_bytes(fernet: Fernet, token: bytes) -> bytes:
    try:
        return fernet.decrypt(token)
    except InvalidToken as e:
        raise ValueError("Failed to decrypt credential entry (wrong key or corrupted blob).") from e
