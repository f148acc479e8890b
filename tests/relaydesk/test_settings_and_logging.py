"""Tests for Settings and the JSON log formatter."""

import json
import logging

from relaydesk.config import Settings
from relaydesk.infra.logging_config import JSONFormatter, get_logger


def test_settings_defaults(settings):
    assert settings.port == 3000
    assert settings.chat_list_limit == 30
    assert settings.history_default_limit == 50
    assert settings.max_upload_bytes == 15 * 1024 * 1024
    assert settings.provider_session_id == "guincho-wtz"


def test_environment_alias(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    assert Settings().is_production


def test_cors_origins_are_split():
    settings = Settings(cors_allow_origins="https://a.example, https://b.example,")
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_json_formatter_includes_context():
    record = logging.LogRecord("relaydesk.test", logging.INFO, __file__, 1, "olá %s", ("mundo",), None)
    record.context = {"chat_id": "a@c.us"}

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "olá mundo"
    assert payload["level"] == "INFO"
    assert payload["context"] == {"chat_id": "a@c.us"}


def test_loggers_share_namespace():
    assert get_logger("fanout").name == "relaydesk.fanout"
    assert get_logger().name == "relaydesk"
