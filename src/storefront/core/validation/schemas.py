"""Request schemas and the validate-sanitize-validate pipeline.

Free text fields are declared with ``safe_text`` so they are scrubbed by
``sanitize_string`` once their length constraints have been checked.
Secrets (passwords, tokens) are never scrubbed.
"""

import json
import re
from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Literal, TypeVar

from fastapi import Request
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
    model_validator,
)

from src.storefront.core.services.security_log import (
    SecurityEventType,
    SecurityLevel,
    SecurityLogger,
)
from src.storefront.core.validation.sanitize import (
    MAX_ARRAY_LENGTH,
    MAX_STRING_LENGTH,
    sanitize_object,
    sanitize_string,
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def safe_text(min_length: int | None = None, max_length: int | None = None) -> Any:
    """Constrained string type that is sanitized after validation."""
    return Annotated[
        str,
        StringConstraints(min_length=min_length, max_length=max_length),
        AfterValidator(sanitize_string),
    ]


def _normalize_email(value: str) -> str:
    if len(value) > 255:
        raise ValueError("Email is too long")
    return value.strip().lower()


SafeEmail = Annotated[EmailStr, AfterValidator(_normalize_email)]

# Top-level fields restored verbatim after the sanitize pass
UNSANITIZED_FIELDS = frozenset({"password", "confirm_password", "token"})

PHONE_PATTERN = r"^\(\d{2}\)\s\d{4,5}-\d{4}$"
CPF_PATTERN = r"^\d{3}\.\d{3}\.\d{3}-\d{2}$"
CEP_PATTERN = r"^\d{5}-\d{3}$"
STATE_PATTERN = r"^[A-Z]{2}$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

_NAME_RE = re.compile(r"^[a-zA-ZÀ-ÿ\s]+$")
_PASSWORD_CLASSES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"\d"),
    re.compile(r"[@$!%*?&]"),
)
COMMON_PASSWORD_PATTERNS = ("123456", "password", "qwerty", "admin", "user", "test")


class SchemaValidationError(ValueError):
    """Raised by ``validate_and_sanitize`` with one message per failed constraint."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def validate_cpf(cpf: str | None) -> bool:
    """Check length, repeated digits and both CPF check digits."""
    if not cpf:
        return False
    digits = re.sub(r"\D", "", cpf)
    if len(digits) != 11 or digits == digits[0] * 11:
        return False

    for position in (9, 10):
        total = sum(int(digits[i]) * (position + 1 - i) for i in range(position))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != int(digits[position]):
            return False
    return True


def _check_cpf(value: str | None) -> str | None:
    if value is not None and not validate_cpf(value):
        raise ValueError("Invalid CPF")
    return value


def _check_birth_date(value: str | None) -> str | None:
    if value is None:
        return value
    try:
        born = date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError("Birth date must be a valid YYYY-MM-DD date") from exc
    age = date.today().year - born.year
    if not 13 <= age <= 120:
        raise ValueError("Age must be between 13 and 120 years")
    return value


def _check_person_name(value: str) -> str:
    if not _NAME_RE.match(value):
        raise ValueError("Name may only contain letters and spaces")
    return value


def _check_password_strength(value: str) -> str:
    if not all(pattern.search(value) for pattern in _PASSWORD_CLASSES):
        raise ValueError(
            "Password needs an upper case letter, a lower case letter, a digit "
            "and one of @$!%*?&"
        )
    lowered = value.lower()
    if any(pattern in lowered for pattern in COMMON_PASSWORD_PATTERNS):
        raise ValueError("Password must not contain common patterns")
    return value


PersonName = Annotated[
    str,
    StringConstraints(min_length=2, max_length=100),
    AfterValidator(_check_person_name),
    AfterValidator(sanitize_string),
]
Password = Annotated[
    str,
    StringConstraints(min_length=12, max_length=128),
    AfterValidator(_check_password_strength),
]
Phone = Annotated[str, Field(pattern=PHONE_PATTERN), AfterValidator(sanitize_string)]
Cpf = Annotated[str, Field(pattern=CPF_PATTERN), AfterValidator(_check_cpf)]
BirthDate = Annotated[str, Field(pattern=DATE_PATTERN), AfterValidator(_check_birth_date)]
Gender = Literal["M", "F", "Other"]
StateCode = Annotated[str, Field(pattern=STATE_PATTERN)]
ZipCode = Annotated[str, Field(pattern=CEP_PATTERN)]


class UserRegistrationSchema(BaseModel):
    name: PersonName
    email: SafeEmail
    password: Password
    confirm_password: str
    phone: Phone | None = None
    cpf: Cpf | None = None
    birth_date: BirthDate | None = None
    gender: Gender | None = None

    @model_validator(mode="after")
    def passwords_match(self) -> "UserRegistrationSchema":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserLoginSchema(BaseModel):
    email: SafeEmail
    password: str = Field(min_length=1, max_length=128)


class UserUpdateSchema(BaseModel):
    name: PersonName | None = None
    phone: Phone | None = None
    birth_date: BirthDate | None = None
    gender: Gender | None = None


class EmailVerificationSchema(BaseModel):
    token: str = Field(min_length=16, max_length=128)


class ResendVerificationSchema(BaseModel):
    email: SafeEmail


class PasswordResetRequestSchema(BaseModel):
    email: SafeEmail


class PasswordResetSchema(BaseModel):
    token: str = Field(min_length=16, max_length=128)
    password: Password
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "PasswordResetSchema":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class AddressSchema(BaseModel):
    name: safe_text(min_length=2, max_length=100) | None = None
    street: safe_text(min_length=3, max_length=200)
    number: safe_text(min_length=1, max_length=20)
    complement: safe_text(max_length=100) | None = None
    neighborhood: safe_text(min_length=2, max_length=100)
    city: safe_text(min_length=2, max_length=100)
    state: StateCode
    zip_code: ZipCode
    is_default: bool = False


class AddressUpdateSchema(BaseModel):
    name: safe_text(min_length=2, max_length=100) | None = None
    street: safe_text(min_length=3, max_length=200) | None = None
    number: safe_text(min_length=1, max_length=20) | None = None
    complement: safe_text(max_length=100) | None = None
    neighborhood: safe_text(min_length=2, max_length=100) | None = None
    city: safe_text(min_length=2, max_length=100) | None = None
    state: StateCode | None = None
    zip_code: ZipCode | None = None
    is_default: bool | None = None


class ProductCreateSchema(BaseModel):
    name: safe_text(min_length=3, max_length=200)
    slug: Annotated[str, Field(pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$", max_length=255)] | None = None
    description: safe_text(min_length=10, max_length=2000) | None = None
    price: Decimal = Field(gt=0, le=Decimal("999999.99"), decimal_places=2)
    original_price: Decimal | None = Field(default=None, gt=0, le=Decimal("999999.99"), decimal_places=2)
    sku: safe_text(max_length=100) | None = None
    stock_quantity: int = Field(default=0, ge=0, le=999999)
    color: safe_text(max_length=50) | None = None
    color_hex: Annotated[str, Field(pattern=r"^#[0-9a-fA-F]{6}$")] | None = None
    brand_id: str | None = None
    model_id: str | None = None
    category_id: str | None = None
    subcategory_id: str | None = None
    is_featured: bool = False
    is_active: bool = True


class ProductUpdateSchema(BaseModel):
    name: safe_text(min_length=3, max_length=200) | None = None
    slug: Annotated[str, Field(pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$", max_length=255)] | None = None
    description: safe_text(min_length=10, max_length=2000) | None = None
    price: Decimal | None = Field(default=None, gt=0, le=Decimal("999999.99"), decimal_places=2)
    original_price: Decimal | None = Field(default=None, gt=0, le=Decimal("999999.99"), decimal_places=2)
    sku: safe_text(max_length=100) | None = None
    stock_quantity: int | None = Field(default=None, ge=0, le=999999)
    color: safe_text(max_length=50) | None = None
    color_hex: Annotated[str, Field(pattern=r"^#[0-9a-fA-F]{6}$")] | None = None
    brand_id: str | None = None
    model_id: str | None = None
    category_id: str | None = None
    subcategory_id: str | None = None
    is_featured: bool | None = None
    is_active: bool | None = None


class CheckoutItemSchema(BaseModel):
    product_id: str = Field(min_length=1, max_length=64)
    quantity: int = Field(gt=0, le=100)
    price: Decimal | None = Field(default=None, gt=0)
    size: safe_text(max_length=20) | None = None
    color: safe_text(max_length=50) | None = None


class CheckoutCustomerSchema(BaseModel):
    name: safe_text(min_length=2, max_length=100)
    email: SafeEmail
    phone: safe_text(min_length=10, max_length=20)
    cpf: Cpf | None = None


class ShippingAddressSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    zip_code: ZipCode = Field(alias="zipCode")
    street: safe_text(min_length=3, max_length=200)
    number: safe_text(min_length=1, max_length=20)
    complement: safe_text(max_length=100) | None = None
    neighborhood: safe_text(min_length=2, max_length=100)
    city: safe_text(min_length=2, max_length=100)
    state: StateCode


class CheckoutSchema(BaseModel):
    items: list[CheckoutItemSchema] = Field(min_length=1, max_length=MAX_ARRAY_LENGTH)
    customer: CheckoutCustomerSchema
    shipping_address: ShippingAddressSchema
    payment_method: safe_text(min_length=1, max_length=50) = "mercadopago"


class CepSchema(BaseModel):
    cep: str = Field(pattern=r"^\d{8}$")

    @field_validator("cep", mode="before")
    @classmethod
    def strip_separator(cls, value: Any) -> Any:
        return value.replace("-", "").strip() if isinstance(value, str) else value


class ReviewCreateSchema(BaseModel):
    reviewer_name: safe_text(min_length=2, max_length=100)
    reviewer_email: SafeEmail | None = None
    rating: int = Field(ge=1, le=5)
    title: safe_text(max_length=200) | None = None
    comment: safe_text(max_length=2000) | None = None


class ContactSchema(BaseModel):
    name: safe_text(min_length=2, max_length=100)
    email: SafeEmail
    phone: safe_text(max_length=20) | None = None
    subject: safe_text(min_length=3, max_length=200)
    message: safe_text(min_length=10, max_length=MAX_STRING_LENGTH)


def _error_messages(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def validate_and_sanitize(
    schema: type[SchemaT],
    data: Any,
    request: Request | None = None,
    security_logger: SecurityLogger | None = None,
) -> SchemaT:
    """Validate ``data``, sanitize the result and validate it once more.

    Raises:
        SchemaValidationError: when either validation pass fails
    """
    try:
        validated = schema.model_validate(data)
        dumped = validated.model_dump(mode="json", by_alias=True)
        sanitized = sanitize_object(dumped)
        for field in UNSANITIZED_FIELDS & dumped.keys():
            sanitized[field] = dumped[field]
        result = schema.model_validate(sanitized)
    except ValidationError as exc:
        errors = _error_messages(exc)
        if request is not None and security_logger is not None:
            snippet = json.dumps(data, default=str)[:200] if isinstance(data, (dict, list)) else str(data)[:200]
            security_logger.log(
                SecurityEventType.VALIDATION_FAILED,
                SecurityLevel.WARNING,
                request,
                {"errors": errors, "schema": schema.__name__, "data": snippet},
            )
        raise SchemaValidationError(errors) from exc

    if request is not None and security_logger is not None:
        security_logger.log(
            SecurityEventType.VALIDATION_SUCCESS,
            SecurityLevel.INFO,
            request,
            {"schema": schema.__name__},
        )
    return result
