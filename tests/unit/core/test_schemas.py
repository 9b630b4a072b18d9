"""Unit tests for request schemas and the validate-sanitize-validate pipeline."""

import pytest

from src.storefront.core.services.security_log import SecurityEventType, SecurityLogger
from src.storefront.core.validation import (
    AddressSchema,
    CepSchema,
    CheckoutSchema,
    ContactSchema,
    PasswordResetSchema,
    SchemaValidationError,
    UserRegistrationSchema,
    validate_and_sanitize,
    validate_cpf,
)

STRONG_PASSWORD = "Str0ng!Passw@rd"


def _registration(**overrides) -> dict:
    data = {
        "name": "Maria Souza",
        "email": "Maria@Example.COM",
        "password": STRONG_PASSWORD,
        "confirm_password": STRONG_PASSWORD,
    }
    data.update(overrides)
    return data


class TestCpf:
    @pytest.mark.parametrize("cpf", ["529.982.247-25", "52998224725", "111.444.777-35"])
    def test_valid(self, cpf):
        assert validate_cpf(cpf)

    @pytest.mark.parametrize(
        "cpf", ["529.982.247-26", "111.111.111-11", "123", "", None, "000.000.000-00"]
    )
    def test_invalid(self, cpf):
        assert not validate_cpf(cpf)


class TestRegistration:
    def test_email_is_normalized(self):
        data = validate_and_sanitize(UserRegistrationSchema, _registration())

        assert data.email == "maria@example.com"

    def test_password_is_not_sanitized(self):
        """Secrets keep characters the sanitizer would otherwise escape."""
        password = "Quote'And&Slash/9"
        data = validate_and_sanitize(
            UserRegistrationSchema, _registration(password=password, confirm_password=password)
        )

        assert data.password == password

    @pytest.mark.parametrize(
        "password",
        ["Short1!a", "alllowercase1!x", "NoDigitsHere!!x", "NoSpecial123abc", "MyPassword123!"],
    )
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(
                UserRegistrationSchema, _registration(password=password, confirm_password=password)
            )

    def test_mismatched_passwords_rejected(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_and_sanitize(UserRegistrationSchema, _registration(confirm_password="Other!Pass9x"))

        assert any("Passwords do not match" in message for message in exc_info.value.errors)

    def test_name_with_digits_rejected(self):
        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(UserRegistrationSchema, _registration(name="R2D2"))

    def test_phone_format(self):
        data = validate_and_sanitize(UserRegistrationSchema, _registration(phone="(11) 98765-4321"))

        assert data.phone == "(11) 98765-4321"
        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(UserRegistrationSchema, _registration(phone="11987654321"))

    def test_invalid_cpf_rejected(self):
        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(UserRegistrationSchema, _registration(cpf="529.982.247-26"))

    def test_underage_birth_date_rejected(self):
        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(UserRegistrationSchema, _registration(birth_date="2020-01-01"))


class TestOtherSchemas:
    def test_reset_token_is_kept_verbatim(self):
        token = "abcDEF123_-abcDEF123"
        data = validate_and_sanitize(
            PasswordResetSchema,
            {"token": token, "password": STRONG_PASSWORD, "confirm_password": STRONG_PASSWORD},
        )

        assert data.token == token

    def test_address_requires_state_and_cep_format(self):
        address = {
            "street": "Rua Augusta",
            "number": "500",
            "neighborhood": "Consolação",
            "city": "São Paulo",
            "state": "SP",
            "zip_code": "01305-000",
        }
        assert validate_and_sanitize(AddressSchema, address).state == "SP"

        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(AddressSchema, {**address, "state": "sp"})
        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(AddressSchema, {**address, "zip_code": "01305000"})

    def test_free_text_is_scrubbed(self):
        data = validate_and_sanitize(
            ContactSchema,
            {
                "name": "Maria",
                "email": "maria@example.com",
                "subject": "Dúvida <b>urgente</b>",
                "message": "Olá, gostaria de saber o prazo.",
            },
        )

        assert data.subject == "Dúvida burgente&#x2F;b"

    def test_checkout_accepts_camel_case_zip(self):
        data = CheckoutSchema.model_validate(
            {
                "items": [{"product_id": "p1", "quantity": 1}],
                "customer": {"name": "Maria", "email": "m@example.com", "phone": "11987654321"},
                "shipping_address": {
                    "zipCode": "01310-100",
                    "street": "Avenida Paulista",
                    "number": "1000",
                    "neighborhood": "Bela Vista",
                    "city": "São Paulo",
                    "state": "SP",
                },
            }
        )

        assert data.shipping_address.zip_code == "01310-100"
        assert data.payment_method == "mercadopago"

    def test_checkout_rejects_empty_cart(self):
        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(CheckoutSchema, {"items": [], "customer": {}, "shipping_address": {}})

    def test_cep_accepts_dash(self):
        assert CepSchema.model_validate({"cep": "01310-100"}).cep == "01310100"


class TestValidationLogging:
    def test_failures_are_logged(self, request_factory, security_logger: SecurityLogger):
        with pytest.raises(SchemaValidationError):
            validate_and_sanitize(
                UserRegistrationSchema, {"email": "nope"}, request_factory(), security_logger
            )

        assert security_logger.events(SecurityEventType.VALIDATION_FAILED)

    def test_success_is_logged(self, request_factory, security_logger: SecurityLogger):
        validate_and_sanitize(UserRegistrationSchema, _registration(), request_factory(), security_logger)

        assert security_logger.events(SecurityEventType.VALIDATION_SUCCESS)
