"""Fernet encryption for free-text fields at rest.

Record memos and coaching notes are the only user-authored text the store
keeps, so they are encrypted before they reach SQLite. Numeric measurements
stay in plain columns because every aggregation filters and sorts on them.
"""

from __future__ import annotations

import logging

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when a text field cannot be encrypted or decrypted."""


class FieldEncryptor:
    """Encrypts optional text values with a single Fernet key.

    ``None`` and the empty string map to ``None`` in both directions so the
    column stays NULL for "no memo".

    Usage::

        encryptor = FieldEncryptor(key=FieldEncryptor.generate_key())
        token = encryptor.encrypt_text("felt dizzy after lunch")
        encryptor.decrypt_text(token)  # "felt dizzy after lunch"
    """

    def __init__(self, key: str) -> None:
        """Initialize with a Fernet key.

        Raises:
            EncryptionError: If the key is empty or not a valid Fernet key.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt_text(self, value: str | None) -> str | None:
        """Return a Fernet token for ``value``, or ``None`` when there is no text."""
        if not value:
            return None
        return self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def decrypt_text(self, token: str | None) -> str | None:
        """Reverse :meth:`encrypt_text`.

        Raises:
            EncryptionError: If the token was produced with another key or is corrupt.
        """
        if not token:
            return None
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64 Fernet key."""
        return Fernet.generate_key().decode("utf-8")
