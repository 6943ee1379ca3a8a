"""Tests for app.services.encryption module."""
import pytest
from unittest.mock import patch
from cryptography.exceptions import InvalidTag

from app.services.encryption import (
    decrypt_value,
    decrypt_values,
    encrypt_value,
    encrypt_values,
    is_encrypted,
)


@patch("app.services.encryption.settings")
def test_encrypt_decrypt_roundtrip(mock_settings):
    mock_settings.field_encryption_key = "test-secret-key-for-encryption"

    original = "APP_USR-1234567890-abcdef"
    encrypted = encrypt_value(original)
    assert encrypted != original
    assert encrypted.startswith("enc:")
    assert decrypt_value(encrypted) == original


@patch("app.services.encryption.settings")
def test_token_format_is_prefix_nonce_ciphertext(mock_settings):
    mock_settings.field_encryption_key = "k"

    prefix, nonce, ciphertext = encrypt_value("11999990000").split(":")
    assert prefix == "enc"
    assert len(bytes.fromhex(nonce)) == 12
    # 11 bytes of plaintext + 16-byte GCM tag
    assert len(bytes.fromhex(ciphertext)) == 11 + 16


@patch("app.services.encryption.settings")
def test_encrypt_uses_fresh_nonce(mock_settings):
    mock_settings.field_encryption_key = "k"

    assert encrypt_value("same") != encrypt_value("same")


def test_encrypt_empty_string():
    assert encrypt_value("") == ""


def test_decrypt_empty_string():
    assert decrypt_value("") == ""


def test_decrypt_untagged_value_is_legacy_plaintext():
    assert decrypt_value("5511999990000") == "5511999990000"


def test_decrypt_wrong_part_count_returned_verbatim():
    assert decrypt_value("enc:abc") == "enc:abc"
    assert decrypt_value("enc:aa:bb:cc") == "enc:aa:bb:cc"


def test_decrypt_non_hex_segments_returned_verbatim():
    assert decrypt_value("enc:zz:yy") == "enc:zz:yy"


@patch("app.services.encryption.settings")
def test_decrypt_with_wrong_key_raises(mock_settings):
    mock_settings.field_encryption_key = "key-one"
    encrypted = encrypt_value("my-secret-token")

    mock_settings.field_encryption_key = "key-two"
    with pytest.raises(InvalidTag):
        decrypt_value(encrypted)


def test_is_encrypted():
    assert is_encrypted("enc:00:00")
    assert not is_encrypted("plain")
    assert not is_encrypted("")
    assert not is_encrypted(None)


@patch("app.services.encryption.settings")
def test_batch_preserves_order_and_passes_none(mock_settings):
    mock_settings.field_encryption_key = "k"

    encrypted = encrypt_values(["a", None, "", "b"])
    assert encrypted[1] is None
    assert encrypted[2] == ""
    assert decrypt_values(encrypted) == ["a", None, "", "b"]
