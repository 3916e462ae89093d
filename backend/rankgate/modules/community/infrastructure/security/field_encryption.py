"""Field-level encryption for personal member data.

Values are encrypted with AES-256-GCM and stored as
``base64(iv):base64(ciphertext)`` where ``iv`` is a fresh 12-byte nonce and
``ciphertext`` includes the GCM tag. Empty strings and ``None`` are stored
as-is so that absent fields stay distinguishable from encrypted ones.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from rankgate.core.config import Settings
from rankgate.core.errors import ConfigurationError, InfrastructureError
from rankgate.core.logging import get_logger

logger = get_logger(__name__)

IV_LENGTH = 12
KEY_LENGTH = 32


class EncryptionError(InfrastructureError):
    """Encrypting or decrypting a field failed."""

    default_code = "FIELD_ENCRYPTION_ERROR"
    retryable = False


class FieldEncryptionService:
    """Encrypts and decrypts single string fields with one AES-256 key."""

    def __init__(self, key: bytes):
        if len(key) != KEY_LENGTH:
            raise ConfigurationError(
                "Field encryption key must be 32 bytes", config_key="FIELD_ENCRYPTION_KEY"
            )
        self._cipher = AESGCM(key)

    @classmethod
    def from_base64_key(cls, encoded_key: str) -> "FieldEncryptionService":
        try:
            key = base64.b64decode(encoded_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError(
                "Field encryption key must be base64 encoded",
                config_key="FIELD_ENCRYPTION_KEY",
            ) from e
        return cls(key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FieldEncryptionService":
        """
        Build the service from application settings.

        Development and testing environments without a configured key get a
        random key that lives as long as the process.

        Raises:
            ConfigurationError: If no usable key is available
        """
        encoded_key = settings.security.field_encryption_key
        if encoded_key is not None:
            return cls.from_base64_key(encoded_key)

        if not settings.environment.allows_ephemeral_keys:
            raise ConfigurationError(
                "FIELD_ENCRYPTION_KEY is required", config_key="FIELD_ENCRYPTION_KEY"
            )
        logger.warning(
            "Using ephemeral field encryption key; encrypted data will not survive restart",
            environment=settings.environment.value,
        )
        return cls(AESGCM.generate_key(bit_length=256))

    def encrypt(self, plaintext: str | None) -> str | None:
        """
        Encrypt one value.

        Returns:
            ``base64(iv):base64(ciphertext)``, or the input when it is None or empty
        """
        if not plaintext:
            return plaintext
        iv = os.urandom(IV_LENGTH)
        try:
            ciphertext = self._cipher.encrypt(iv, plaintext.encode("utf-8"), None)
        except (TypeError, ValueError) as e:
            raise EncryptionError(f"Failed to encrypt field: {e}", cause=e) from e
        return f"{_b64(iv)}:{_b64(ciphertext)}"

    def decrypt(self, stored: str | None) -> str | None:
        """
        Decrypt a value produced by ``encrypt``.

        Raises:
            EncryptionError: If the value is malformed or was not encrypted
                with this key
        """
        if not stored:
            return stored
        iv_part, separator, ciphertext_part = stored.partition(":")
        if not separator:
            raise EncryptionError("Encrypted field is not in iv:ciphertext format")
        try:
            iv = base64.b64decode(iv_part, validate=True)
            ciphertext = base64.b64decode(ciphertext_part, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncryptionError("Encrypted field is not valid base64", cause=e) from e
        if len(iv) != IV_LENGTH:
            raise EncryptionError("Encrypted field has an invalid IV length")

        try:
            plaintext = self._cipher.decrypt(iv, ciphertext, None)
        except InvalidTag as e:
            raise EncryptionError(
                "Encrypted field failed authentication", cause=e
            ) from e
        return plaintext.decode("utf-8")


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
