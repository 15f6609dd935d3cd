"""Fernet field encryption for customer records at rest.

Names, phone-linked profiles, assessments and report text are personal data
and are stored as Fernet tokens. Diagnosis ids stay in clear text so history
queries do not need to decrypt every report.
"""

from __future__ import annotations

import json
from typing import Any

from cryptography.fernet import Fernet, InvalidToken


class EncryptionError(Exception):
    """Raised when a key is unusable or a token cannot be decrypted."""


class FieldEncryptor:
    """Round-trips JSON-serializable values through Fernet tokens."""

    def __init__(self, key: str) -> None:
        """
        Raises:
            EncryptionError: If the key is empty or not a valid Fernet key.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.strip().encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, data: Any) -> str:
        """Serialize ``data`` as UTF-8 JSON and encrypt it. ``None`` maps to ''."""
        if data is None:
            return ""
        try:
            plaintext = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Value is not JSON-serializable: {exc}") from exc
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str | None) -> Any:
        """Inverse of :meth:`encrypt`. Empty tokens decrypt to ``None``."""
        if not token:
            return None
        try:
            plaintext = self._fernet.decrypt(token.encode("ascii"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        return json.loads(plaintext.decode("utf-8"))

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")
