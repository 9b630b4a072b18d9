"""Unit tests for field-level encryption."""

import pytest

from src.storefront.core.services.encryption import DecryptionError, FieldEncryptionService
from src.storefront.runtime.config.config_data import EncryptionConfig


class TestFieldEncryption:
    """AES-256-GCM encryption of individual values."""

    def test_round_trip(self, encryption: FieldEncryptionService):
        """Encrypted values decrypt back to the original text."""
        stored = encryption.encrypt("529.982.247-25")

        assert stored != "529.982.247-25"
        assert encryption.decrypt(stored) == "529.982.247-25"

    def test_stored_format_has_four_hex_parts(self, encryption: FieldEncryptionService):
        """Stored values are salt:nonce:tag:ciphertext in lower-case hex."""
        salt, nonce, tag, ciphertext = encryption.encrypt("hello").split(":")

        assert len(salt) == 128
        assert len(nonce) == 32
        assert len(tag) == 32
        assert ciphertext == ciphertext.lower()
        assert FieldEncryptionService.is_encrypted(":".join((salt, nonce, tag, ciphertext)))

    def test_same_plaintext_encrypts_differently(self, encryption: FieldEncryptionService):
        """Every encryption uses a fresh salt and nonce."""
        assert encryption.encrypt("same") != encryption.encrypt("same")

    def test_empty_and_none_pass_through(self, encryption: FieldEncryptionService):
        assert encryption.encrypt(None) is None
        assert encryption.encrypt("") == ""
        assert encryption.decrypt(None) is None
        assert encryption.decrypt("") == ""

    def test_plaintext_without_delimiter_is_returned(self, encryption: FieldEncryptionService):
        """Legacy rows stored before encryption was enabled still read back."""
        assert encryption.decrypt("plain value") == "plain value"

    def test_wrong_number_of_parts_fails(self, encryption: FieldEncryptionService):
        with pytest.raises(DecryptionError):
            encryption.decrypt("aa:bb:cc")

    def test_tampered_ciphertext_fails(self, encryption: FieldEncryptionService):
        """GCM authentication rejects a flipped ciphertext bit."""
        salt, nonce, tag, ciphertext = encryption.encrypt("secret data").split(":")
        flipped = format(int(ciphertext[0], 16) ^ 1, "x") + ciphertext[1:]

        with pytest.raises(DecryptionError):
            encryption.decrypt(":".join((salt, nonce, tag, flipped)))

    def test_other_key_cannot_decrypt(self, encryption: FieldEncryptionService):
        stored = encryption.encrypt("secret data")
        other = FieldEncryptionService(
            EncryptionConfig(key="another-key-that-is-also-32-characters-long", iterations=1000)
        )

        with pytest.raises(DecryptionError):
            other.decrypt(stored)

    def test_disabled_without_long_enough_key(self):
        """Keys shorter than 32 characters disable encryption."""
        service = FieldEncryptionService(EncryptionConfig(key="too-short"))

        assert not service.enabled
        assert service.encrypt("value") == "value"
        assert service.status()["algorithm"] is None
        assert service.self_test() == {"passed": False, "reason": "encryption disabled"}


class TestFieldHelpers:
    """Record-level helpers used by the repositories."""

    def test_encrypt_fields_serializes_non_strings(self, encryption: FieldEncryptionService):
        """Dict values such as the shipping address are stored as encrypted JSON."""
        record = {"shipping_address": {"city": "São Paulo"}, "order_number": "VPF1"}

        stored = encryption.encrypt_order_data(record)

        assert stored["order_number"] == "VPF1"
        assert encryption.is_encrypted(stored["shipping_address"])
        assert encryption.decrypt(stored["shipping_address"]) == '{"city": "São Paulo"}'

    def test_personal_fields_round_trip(self, encryption: FieldEncryptionService):
        record = {"name": "Maria", "cpf": "529.982.247-25", "gender": "F", "birth_date": None}

        stored = encryption.encrypt_personal_data(record)

        assert stored["name"] == "Maria"
        assert stored["birth_date"] is None
        assert encryption.decrypt_personal_data(stored) == record

    def test_undecryptable_field_is_returned_as_stored(self, encryption: FieldEncryptionService):
        """A corrupt value is logged and left alone instead of failing the whole record."""
        record = {"cpf": "00:11:22:33"}

        assert encryption.decrypt_personal_data(record) == record

    def test_hash_user_id_is_stable(self, encryption: FieldEncryptionService):
        first = encryption.hash_user_id("user-1")

        assert first == encryption.hash_user_id("user-1")
        assert first != encryption.hash_user_id("user-2")
        assert len(first) == 16


class TestSelfTest:
    def test_self_test_passes(self, encryption: FieldEncryptionService):
        outcome = encryption.self_test()

        assert outcome["passed"] is True
        assert outcome["tamper_detected"] is True

    def test_status_reports_configuration(self, encryption: FieldEncryptionService):
        status = encryption.status()

        assert status["enabled"] is True
        assert status["algorithm"] == "aes-256-gcm"
        assert status["has_user_id_salt"] is True
