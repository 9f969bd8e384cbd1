import pytest

from clearview.config import DEFAULT_ALLOWED_TYPES, DEFAULT_MODEL, Settings


def test_defaults():
    settings = Settings.from_env({})
    assert settings.api_key is None
    assert settings.model == DEFAULT_MODEL
    assert settings.allowed_types == list(DEFAULT_ALLOWED_TYPES)
    assert settings.max_upload_bytes == 5 * 1024 * 1024


def test_from_env():
    settings = Settings.from_env(
        {
            "API_KEY": "fallback",
            "GEMINI_API_KEY": "secret",
            "CLEARVIEW_MODEL": "other-model",
            "CLEARVIEW_MAX_UPLOAD_BYTES": "1048576",
            "CLEARVIEW_ALLOWED_TYPES": "image/png, image/gif,",
            "CLEARVIEW_LOG_LEVEL": "debug",
        }
    )
    assert settings.api_key == "secret"
    assert settings.model == "other-model"
    assert settings.max_upload_bytes == 1048576
    assert settings.allowed_types == ["image/png", "image/gif"]
    assert settings.log_level == "DEBUG"


def test_api_key_fallback():
    assert Settings.from_env({"API_KEY": "fallback"}).api_key == "fallback"


def test_invalid_limit():
    with pytest.raises(ValueError):
        Settings.from_env({"CLEARVIEW_MAX_UPLOAD_BYTES": "0"})
