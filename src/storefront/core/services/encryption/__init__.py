from .field_encryption import (
    ORDER_FIELDS,
    PERSONAL_FIELDS,
    DecryptionError,
    FieldEncryptionService,
)

__all__ = [
    "DecryptionError",
    "FieldEncryptionService",
    "ORDER_FIELDS",
    "PERSONAL_FIELDS",
]
