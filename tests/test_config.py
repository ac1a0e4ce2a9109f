# tests/test_config.py
"""
Tests for settings loading.
"""

from __future__ import annotations

import pytest

from thumb_service.config import load_settings
from thumb_service.thumbnails import ConfigError


def test_defaults():
    settings = load_settings({"DB_PATH": ":memory:", "PORT": "8080"})

    assert settings.db_path == ":memory:"
    assert settings.port == 8080
    assert settings.workers == 0
    assert settings.keep_pdf is False
    assert settings.hook_on_existing is False
    assert settings.jpeg_quality == 70
    assert settings.max_pdf_bytes == 100 * 1024 * 1024


def test_overrides():
    settings = load_settings(
        {
            "DB_PATH": "data/thumbs.db",
            "PORT": "9000",
            "WORKERS": "4",
            "KEEP_PDF": "yes",
            "HOOK_ON_EXISTING": "true",
            "STEP_TIMEOUT_SEC": "2.5",
            "LOG_LEVEL": "DEBUG",
        }
    )

    assert settings.workers == 4
    assert settings.keep_pdf is True
    assert settings.hook_on_existing is True
    assert settings.step_timeout_sec == 2.5
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env, message",
    [
        ({"PORT": "8080"}, "DB_PATH"),
        ({"DB_PATH": ":memory:"}, "PORT"),
        ({"DB_PATH": ":memory:", "PORT": "http"}, "PORT"),
        ({"DB_PATH": ":memory:", "PORT": "80", "WORKERS": "-1"}, "WORKERS"),
    ],
)
def test_invalid_environment(env, message):
    with pytest.raises(ConfigError, match=message):
        load_settings(env)
