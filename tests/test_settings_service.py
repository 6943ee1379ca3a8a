"""Tests for app.services.settings module."""
import dataclasses
import pytest
from unittest.mock import patch, MagicMock, Mock

from app.models.profile import Profile
from app.models.system_settings import SystemSetting
from app.services.errors import RenewalApiNotConfiguredError
from app.services.settings import load_owner_profile, load_platform_gateway_token, load_renewal_api_config


def _row(key, value):
    row = Mock(spec=SystemSetting)
    row.key = key
    row.value = value
    return row


def _db_with_rows(rows):
    db = MagicMock()
    db.query.return_value.filter.return_value.all.return_value = rows
    return db


def test_renewal_config_from_database():
    db = _db_with_rows([
        _row("renewal_api_url", "https://renew.example.com/"),
        _row("renewal_api_key", "enc:aa:bb"),
    ])

    with patch("app.services.settings.decrypt_value", return_value="db-key"):
        config = load_renewal_api_config(db)

    assert config.url == "https://renew.example.com"
    assert config.api_key == "db-key"


def test_renewal_config_fallback_to_env():
    db = _db_with_rows([])

    with patch("app.services.settings.settings") as mock_settings:
        mock_settings.renewal_api_url = "https://env.example.com"
        mock_settings.renewal_api_key = "env-key"
        mock_settings.renewal_api_timeout_seconds = 30
        config = load_renewal_api_config(db)

    assert config.url == "https://env.example.com"
    assert config.api_key == "env-key"
    assert config.timeout == 30.0


def test_renewal_config_plaintext_key_in_database():
    db = _db_with_rows([
        _row("renewal_api_url", "https://renew.example.com"),
        _row("renewal_api_key", "legacy-plain-key"),
    ])

    config = load_renewal_api_config(db)

    assert config.api_key == "legacy-plain-key"


def test_renewal_config_missing_everywhere():
    db = _db_with_rows([_row("renewal_api_url", "https://renew.example.com")])

    with patch("app.services.settings.settings") as mock_settings:
        mock_settings.renewal_api_url = ""
        mock_settings.renewal_api_key = ""
        with pytest.raises(RenewalApiNotConfiguredError, match="Renewal API not configured by admin"):
            load_renewal_api_config(db)


def test_renewal_config_is_immutable():
    db = _db_with_rows([
        _row("renewal_api_url", "https://renew.example.com"),
        _row("renewal_api_key", "k"),
    ])
    config = load_renewal_api_config(db)

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.url = "https://elsewhere"


def test_owner_profile_missing_uses_defaults():
    db = MagicMock()
    db.query.return_value.filter.return_value.first.return_value = None

    profile = load_owner_profile(db, 1)

    assert profile.has_messaging is False
    assert profile.mercadopago_access_token is None
    assert profile.messages_per_minute == 5


def test_owner_profile_snapshot():
    row = Mock(spec=Profile)
    row.wuzapi_url = "https://wuz.example.com/"
    row.wuzapi_token = "tok"
    row.messages_per_minute = 10
    row.pix_key = "pix@revenda.com"
    row.mercadopago_access_token = "APP_USR-x"
    db = MagicMock()
    db.query.return_value.filter.return_value.first.return_value = row

    profile = load_owner_profile(db, 1)

    assert profile.wuzapi_url == "https://wuz.example.com"
    assert profile.has_messaging is True
    assert profile.messages_per_minute == 10
    assert profile.mercadopago_access_token == "APP_USR-x"


def _db_with_first(row):
    db = MagicMock()
    db.query.return_value.filter.return_value.first.return_value = row
    return db


def test_platform_token_from_database():
    db = _db_with_first(_row("admin_mp_access_token", "enc:aa:bb"))

    with patch("app.services.settings.decrypt_value", return_value="APP_USR-admin"):
        assert load_platform_gateway_token(db) == "APP_USR-admin"


def test_platform_token_fallback_to_env():
    with patch("app.services.settings.settings") as mock_settings:
        mock_settings.platform_mercadopago_access_token = "APP_USR-env"
        assert load_platform_gateway_token(_db_with_first(None)) == "APP_USR-env"


def test_platform_token_missing_everywhere():
    with patch("app.services.settings.settings") as mock_settings:
        mock_settings.platform_mercadopago_access_token = ""
        assert load_platform_gateway_token(_db_with_first(None)) is None
