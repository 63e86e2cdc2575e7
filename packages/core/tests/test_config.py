"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError
from tfbuilder.config import DEFAULT_CORS_ORIGINS, DEFAULT_TERRAFORM_API_URL, load_settings


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.terraform_api_url == DEFAULT_TERRAFORM_API_URL
        assert settings.token_timeout == 10.0
        assert settings.use_remote_modules is True
        assert settings.cors_origins == DEFAULT_CORS_ORIGINS

    def test_overrides(self):
        settings = load_settings(
            {
                "TFBUILDER_TERRAFORM_API_URL": "https://tfe.internal/api/v2/account/details",
                "TFBUILDER_TOKEN_TIMEOUT": "2.5",
                "TFBUILDER_USE_REMOTE_MODULES": "false",
                "TFBUILDER_CORS_ORIGINS": "https://a.example, https://b.example,",
            }
        )
        assert settings.terraform_api_url.startswith("https://tfe.internal")
        assert settings.token_timeout == 2.5
        assert settings.use_remote_modules is False
        assert settings.cors_origins == ["https://a.example", "https://b.example"]

    @pytest.mark.parametrize("raw,expected", [("1", True), ("yes", True), ("0", False), ("OFF", False)])
    def test_bool_parsing(self, raw, expected):
        assert load_settings({"TFBUILDER_USE_REMOTE_MODULES": raw}).use_remote_modules is expected

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValidationError):
            load_settings({"TFBUILDER_TOKEN_TIMEOUT": "0"})

    def test_defaults_not_shared(self):
        a = load_settings({})
        a.cors_origins.append("x")
        assert load_settings({}).cors_origins == DEFAULT_CORS_ORIGINS
