from dataclasses import fields, replace

import pytest

from cleanpay.config import Settings, load_settings
from cleanpay.exceptions import MissingConfigurationError, MissingSecretError


def test_load_settings_cleans_values(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", ' "sk_test_quoted" ')
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "`whsec_x`")
    monkeypatch.setenv("BASE_URL", "https://clean.example.com/")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")
    monkeypatch.delenv("TO_EMAIL", raising=False)

    settings = load_settings(env_path=None)
    assert settings.STRIPE_SECRET_KEY == "sk_test_quoted"
    assert settings.STRIPE_WEBHOOK_SECRET == "whsec_x"
    assert settings.BASE_URL == "https://clean.example.com"
    assert settings.CORS_ORIGINS == ["https://a.example.com", "https://b.example.com"]
    assert settings.TO_EMAIL == ""


def test_require_names_missing_setting():
    with pytest.raises(MissingConfigurationError) as exc:
        Settings().require("TO_EMAIL")
    assert exc.value.name == "TO_EMAIL"
    assert exc.value.status_code == 500
    # Le nom de la variable ne fuit pas vers le client
    assert "TO_EMAIL" not in exc.value.to_public()


def test_webhook_secret_has_dedicated_error():
    with pytest.raises(MissingSecretError):
        Settings().require("STRIPE_WEBHOOK_SECRET")


def test_presence_never_exposes_values(settings):
    presence = replace(settings, TO_EMAIL="").presence()
    assert presence == {
        "STRIPE_SECRET_KEY": True,
        "STRIPE_WEBHOOK_SECRET": True,
        "RESEND_API_KEY": True,
        "FROM_EMAIL": True,
        "TO_EMAIL": False,
    }


def test_settings_fields_are_all_consumed():
    names = {f.name for f in fields(Settings)}
    assert "CURRENCY" not in names
    assert not hasattr(Settings, "replace")
    updated = replace(Settings(), TO_EMAIL="ops@example.com")
    assert updated.TO_EMAIL == "ops@example.com"
