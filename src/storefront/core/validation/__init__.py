"""Input sanitization and request schemas."""

from .sanitize import (
    FORBIDDEN_PATTERNS,
    MAX_ARRAY_LENGTH,
    MAX_OBJECT_DEPTH,
    MAX_STRING_LENGTH,
    classify_attack,
    detect_sql_injection,
    detect_suspicious_data,
    sanitize_object,
    sanitize_string,
)
from .schemas import (
    AddressSchema,
    AddressUpdateSchema,
    CepSchema,
    CheckoutSchema,
    ContactSchema,
    EmailVerificationSchema,
    PasswordResetRequestSchema,
    PasswordResetSchema,
    ProductCreateSchema,
    ProductUpdateSchema,
    ResendVerificationSchema,
    ReviewCreateSchema,
    SchemaValidationError,
    UserLoginSchema,
    UserRegistrationSchema,
    UserUpdateSchema,
    validate_and_sanitize,
    validate_cpf,
)

__all__ = [
    "FORBIDDEN_PATTERNS",
    "MAX_ARRAY_LENGTH",
    "MAX_OBJECT_DEPTH",
    "MAX_STRING_LENGTH",
    "AddressSchema",
    "AddressUpdateSchema",
    "CepSchema",
    "CheckoutSchema",
    "ContactSchema",
    "EmailVerificationSchema",
    "PasswordResetRequestSchema",
    "PasswordResetSchema",
    "ProductCreateSchema",
    "ProductUpdateSchema",
    "ResendVerificationSchema",
    "ReviewCreateSchema",
    "SchemaValidationError",
    "UserLoginSchema",
    "UserRegistrationSchema",
    "UserUpdateSchema",
    "classify_attack",
    "detect_sql_injection",
    "detect_suspicious_data",
    "sanitize_object",
    "sanitize_string",
    "validate_and_sanitize",
    "validate_cpf",
]
