"""Tests for application wiring: health, headers, log redaction, settings."""
import logging

import pytest

from app.config import Settings
from app.logging_config import SecretRedactingFilter


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_secret_redaction():
    record = logging.LogRecord(
        "app.services.gateway", logging.ERROR, __file__, 1,
        "Stripe call failed with key %s and secret %s", ("sk_test_51Habc123", "whsec_abcd1234"), None,
    )

    assert SecretRedactingFilter().filter(record) is True
    message = record.getMessage()
    assert "51Habc123" not in message
    assert "abcd1234" not in message
    assert "sk_***" in message
    assert "whsec_***" in message


def test_plain_messages_untouched():
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "Order %s created", ("pi_123",), None)

    SecretRedactingFilter().filter(record)

    assert record.getMessage() == "Order pi_123 created"


def test_settings_normalisation():
    settings = Settings(
        DATABASE_URL="postgres://u:p@db:5432/notes?sslmode=require",
        CURRENCY=" USD ",
        ENVIRONMENT="production",
        DEBUG=False,
        CORS_ORIGINS="https://a.example, https://b.example",
    )

    assert settings.DATABASE_URL == "postgresql+asyncpg://u:p@db:5432/notes?ssl=require"
    assert settings.CURRENCY == "usd"
    assert settings.cors_origin_list == ["https://a.example", "https://b.example"]


def test_commission_rate_must_be_fraction():
    with pytest.raises(ValueError):
        Settings(PLATFORM_COMMISSION_RATE=1.5)
