from rankgate.modules.community.infrastructure.security.field_encryption import (
    EncryptionError,
    FieldEncryptionService,
)

__all__ = ["EncryptionError", "FieldEncryptionService"]
