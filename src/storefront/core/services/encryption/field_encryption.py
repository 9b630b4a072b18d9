"""Field-level encryption for personal data stored in user and order rows.

Values are encrypted with AES-256-GCM under a key derived from the configured
passphrase with PBKDF2-HMAC-SHA512 over a fresh random salt. The stored form
is four lower-case hex parts joined by colons::

    salt:nonce:tag:ciphertext

When no passphrase (or one shorter than 32 characters) is configured the
service is disabled and values pass through unchanged.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import os
import re
from collections.abc import Iterable
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from loguru import logger

from src.storefront.runtime.config.config_data import EncryptionConfig
from src.storefront.runtime.context import get_config

SALT_LENGTH = 64
NONCE_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
MIN_KEY_LENGTH = 32

PERSONAL_FIELDS = ("cpf", "birth_date", "gender")
ORDER_FIELDS = (
    "customer_name",
    "customer_email",
    "customer_phone",
    "customer_cpf",
    "shipping_address",
    "payment_method",
)

_HEX = re.compile(r"^[0-9a-f]+$")


class DecryptionError(ValueError):
    """Raised when a stored value looks encrypted but cannot be decrypted."""


class FieldEncryptionService:
    """Encrypts and decrypts individual column values."""

    def __init__(self, config: EncryptionConfig | None = None) -> None:
        self._config = config or get_config().encryption

    @property
    def enabled(self) -> bool:
        key = self._config.key
        return bool(key) and len(key) >= MIN_KEY_LENGTH

    def _derive_key(self, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA512(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=self._config.iterations,
        )
        return kdf.derive(self._config.key.encode("utf-8"))

    def encrypt(self, text: str | None) -> str | None:
        """Encrypt ``text``; returns it unchanged when encryption is disabled."""
        if text is None or text == "" or not self.enabled:
            return text

        salt = os.urandom(SALT_LENGTH)
        nonce = os.urandom(NONCE_LENGTH)
        sealed = AESGCM(self._derive_key(salt)).encrypt(
            nonce, text.encode("utf-8"), salt
        )
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return ":".join(part.hex() for part in (salt, nonce, tag, ciphertext))

    def decrypt(self, value: str | None) -> str | None:
        """Decrypt a stored value.

        Values without the delimiter are treated as plaintext and returned
        unchanged, as is everything while encryption is disabled.

        Raises:
            DecryptionError: if the value is malformed or fails authentication.
        """
        if value is None or value == "" or not self.enabled or ":" not in value:
            return value

        parts = value.split(":")
        if len(parts) != 4:
            raise DecryptionError("Invalid encrypted data format")

        try:
            salt, nonce, tag, ciphertext = (bytes.fromhex(part) for part in parts)
        except ValueError as e:
            raise DecryptionError("Encrypted data is not hex encoded") from e

        try:
            plaintext = AESGCM(self._derive_key(salt)).decrypt(
                nonce, ciphertext + tag, salt
            )
        except (InvalidTag, ValueError) as e:
            raise DecryptionError("Failed to decrypt data") from e
        return plaintext.decode("utf-8")

    @staticmethod
    def is_encrypted(value: Any) -> bool:
        if not isinstance(value, str):
            return False
        parts = value.split(":")
        if len(parts) != 4:
            return False
        salt, nonce, tag, ciphertext = parts
        return (
            len(salt) == SALT_LENGTH * 2
            and len(nonce) == NONCE_LENGTH * 2
            and len(tag) == TAG_LENGTH * 2
            and all(_HEX.match(part) for part in parts)
        )

    def encrypt_fields(self, record: dict[str, Any], fields: Iterable[str]) -> dict[str, Any]:
        """Return a copy of ``record`` with the named string fields encrypted."""
        result = dict(record)
        for field in fields:
            value = result.get(field)
            if value is None:
                continue
            if not isinstance(value, str):
                value = json.dumps(value, ensure_ascii=False, default=str)
            result[field] = self.encrypt(value)
        return result

    def decrypt_fields(self, record: dict[str, Any], fields: Iterable[str]) -> dict[str, Any]:
        """Return a copy of ``record`` with the named fields decrypted.

        A field that cannot be decrypted is returned as stored.
        """
        result = dict(record)
        for field in fields:
            value = result.get(field)
            if not isinstance(value, str):
                continue
            try:
                result[field] = self.decrypt(value)
            except DecryptionError:
                logger.warning("Could not decrypt field {}; returning stored value", field)
        return result

    def encrypt_personal_data(self, record: dict[str, Any]) -> dict[str, Any]:
        return self.encrypt_fields(record, PERSONAL_FIELDS)

    def decrypt_personal_data(self, record: dict[str, Any]) -> dict[str, Any]:
        return self.decrypt_fields(record, PERSONAL_FIELDS)

    def encrypt_order_data(self, record: dict[str, Any]) -> dict[str, Any]:
        return self.encrypt_fields(record, ORDER_FIELDS)

    def decrypt_order_data(self, record: dict[str, Any]) -> dict[str, Any]:
        return self.decrypt_fields(record, ORDER_FIELDS)

    def hash_user_id(self, user_id: str) -> str:
        """Stable, non-reversible 16 character reference for a user id."""
        salt = self._config.user_id_salt
        if salt:
            digest = hmac.new(
                salt.encode("utf-8"), user_id.encode("utf-8"), hashlib.sha512
            ).hexdigest()
        else:
            digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return digest[:16]

    def status(self) -> dict[str, Any]:
        key = self._config.key or ""
        return {
            "enabled": self.enabled,
            "has_key": bool(key),
            "key_length": len(key),
            "has_user_id_salt": bool(self._config.user_id_salt),
            "algorithm": "aes-256-gcm" if self.enabled else None,
            "iterations": self._config.iterations,
        }

    def self_test(self) -> dict[str, Any]:
        """Round-trip a sample value and check tampering is detected."""
        sample = "self-test 123.456.789-09"
        if not self.enabled:
            return {"passed": False, "reason": "encryption disabled"}

        encrypted = self.encrypt(sample)
        round_trip = self.decrypt(encrypted) == sample
        distinct = self.encrypt(sample) != encrypted

        salt, nonce, tag, ciphertext = encrypted.split(":")
        flipped = format(int(ciphertext[0], 16) ^ 1, "x") + ciphertext[1:]
        try:
            self.decrypt(":".join((salt, nonce, tag, flipped)))
            tamper_detected = False
        except DecryptionError:
            tamper_detected = True

        passed = round_trip and distinct and tamper_detected
        return {
            "passed": passed,
            "round_trip": round_trip,
            "random_salt": distinct,
            "tamper_detected": tamper_detected,
        }
