from __future__ import annotations

import json
from typing import Any, Protocol

from cryptography.fernet import Fernet, InvalidToken

from presto_sync.core.config import settings


class SecretCipher(Protocol):
    """Encrypts and decrypts opaque byte blobs."""

    def encrypt(self, data: bytes) -> bytes: ...

    def decrypt(self, token: bytes) -> bytes: ...


class SecretDecryptionError(RuntimeError):
    """Stored ciphertext could not be decrypted with the configured key."""


class FernetCipher:
    def __init__(self, key: str | bytes) -> None:
        self._fernet = Fernet(key)

    def encrypt(self, data: bytes) -> bytes:
        return self._fernet.encrypt(data)

    def decrypt(self, token: bytes) -> bytes:
        try:
            return self._fernet.decrypt(token)
        except InvalidToken as e:
            raise SecretDecryptionError("Failed to decrypt stored secret.") from e


def default_cipher() -> FernetCipher:
    return FernetCipher(settings.require_encryption_key())


def encrypt_text(cipher: SecretCipher, value: str) -> str:
    return cipher.encrypt(value.encode("utf-8")).decode("ascii")


def decrypt_text(cipher: SecretCipher, value: str) -> str:
    return cipher.decrypt(value.encode("ascii")).decode("utf-8")


def encrypt_json(cipher: SecretCipher, value: dict[str, Any]) -> str:
    return encrypt_text(cipher, json.dumps(value, separators=(",", ":")))


def decrypt_json(cipher: SecretCipher, value: str) -> dict[str, Any]:
    data = json.loads(decrypt_text(cipher, value))
    if not isinstance(data, dict):
        raise SecretDecryptionError(f"Expected JSON object in secret, got {type(data)}")
    return data
