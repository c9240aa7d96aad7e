"""Fernet encryption for key-value blobs at rest.

Every value written to ``kv_store`` passes through :class:`BlobEncryptor`.
Several keys may be configured: the first encrypts, all of them decrypt, so
an old key can be retired by prepending a new one and re-saving data.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


def parse_key_list(keys: str | list[str]) -> list[str]:
    """Split a comma-separated key setting into individual keys."""
    if isinstance(keys, str):
        keys = keys.split(",")
    return [k.strip() for k in keys if k and k.strip()]


class BlobEncryptor:
    """Encrypts JSON-serializable values into Fernet tokens.

    Usage::

        encryptor = BlobEncryptor("new-key,old-key")
        token = encryptor.encrypt({"vata": 60, "pitta": 25, "kapha": 15})
        encryptor.decrypt(token)  # {"vata": 60, ...}
    """

    def __init__(self, keys: str | list[str]) -> None:
        """Initialize with one or more Fernet keys.

        Raises:
            EncryptionError: If no key is given or any key is invalid.
        """
        key_list = parse_key_list(keys)
        if not key_list:
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = MultiFernet([Fernet(k.encode()) for k in key_list])
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc
        self._key_count = len(key_list)

    @property
    def key_count(self) -> int:
        return self._key_count

    def encrypt(self, data: Any) -> str:
        """Serialize ``data`` to compact JSON and encrypt it with the primary key."""
        try:
            plaintext = json.dumps(data, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Value is not JSON-serializable: {exc}") from exc
        return self._fernet.encrypt(plaintext).decode("utf-8")

    def decrypt(self, token: str) -> Any:
        """Decrypt a token produced by any configured key.

        Raises:
            EncryptionError: If no configured key can decrypt the token.
        """
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        return json.loads(plaintext)

    def rotate(self, token: str) -> str:
        """Re-encrypt a token under the primary key."""
        try:
            return self._fernet.rotate(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Rotation failed: invalid token or wrong key") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64-encoded 32-byte Fernet key."""
        return Fernet.generate_key().decode("utf-8")
