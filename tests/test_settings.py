"""
Tests for config/settings.py

Run with: pytest tests/test_settings.py
"""

import os
from unittest.mock import patch

import pytest

from config.settings import Settings
from conftest import make_settings


class TestFromEnvironment:
    @patch.dict(os.environ, {"GROQ_API_KEY": "g", "RAPIDAPI_KEY": "shared"}, clear=True)
    def test_per_integration_keys_fall_back_to_shared(self):
        settings = Settings()
        assert settings.x_rapidapi_key == "shared"
        assert settings.facebook_rapidapi_key == "shared"
        assert settings.facebook_llm_api_key == "g"
        assert settings.strategy_llm_api_key == "g"

    @patch.dict(
        os.environ,
        {"RAPIDAPI_KEY": "shared", "X_RAPIDAPI_KEY": "x", "FACEBOOK_GROQ_API_KEY": "fb",
         "STRATEGY_GROQ_API_KEY": "st"},
        clear=True,
    )
    def test_override_wins(self):
        settings = Settings()
        assert settings.x_rapidapi_key == "x"
        assert settings.facebook_llm_api_key == "fb"
        assert settings.strategy_llm_api_key == "st"
        assert settings.llm_api_key == ""

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        settings = Settings()
        assert settings.llm_base_url == "https://api.groq.com/openai/v1"
        assert settings.request_timeout == 30.0
        assert settings.db_path == "data/pulse.db"
        assert settings.port == 5001
        assert settings.debug is False
        assert settings.max_widgets == 500

    @patch.dict(os.environ, {"REQUEST_TIMEOUT": "12.5", "FLASK_DEBUG": "1"}, clear=True)
    def test_numeric_and_flag_values(self):
        settings = Settings()
        assert settings.request_timeout == 12.5
        assert settings.debug is True


class TestValidate:
    def test_valid(self):
        make_settings().validate()

    @pytest.mark.parametrize(
        "overrides",
        [{"request_timeout": 0}, {"llm_base_url": ""}, {"db_path": ""}, {"max_widgets": 0}],
    )
    def test_unusable_values(self, overrides):
        with pytest.raises(ValueError):
            make_settings(**overrides).validate()
