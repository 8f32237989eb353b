import pytest
from pydantic import ValidationError

from app.core.config import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("WHATSAPP_BRIDGE_API_KEY", raising=False)


def test_production_requires_bridge_key_by_default():
    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None, ENVIRONMENT="production")

    assert "WHATSAPP_BRIDGE_API_KEY" in str(exc_info.value)


def test_production_rejects_empty_bridge_key():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, ENVIRONMENT="production", WHATSAPP_BRIDGE_API_KEY="")


def test_production_with_bridge_key():
    settings = Settings(_env_file=None, ENVIRONMENT="production", WHATSAPP_BRIDGE_API_KEY="secret")

    assert settings.is_production
    assert settings.WHATSAPP_BRIDGE_API_KEY == "secret"


def test_development_needs_no_bridge_key():
    settings = Settings(_env_file=None)

    assert settings.is_development
    assert settings.WHATSAPP_BRIDGE_API_KEY is None
