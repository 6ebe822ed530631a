"""
Schools24 Backend — Settings Tests
====================================

What:  Environment parsing, validators and the production guard.
How:   Settings instances are built directly with keyword overrides;
       _env_file=None keeps a developer's .env out of the picture.
"""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.config import Settings
from app.middleware.logging import level_for_status


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:

    def test_csv_lists_are_trimmed(self):
        settings = _settings(cors_allowed_origins=" https://a.test , https://b.test ,")
        assert settings.cors_origins_list == ["https://a.test", "https://b.test"]

    def test_log_level_normalized(self):
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(PydanticValidationError):
            _settings(log_level="chatty")

    def test_cache_backend_values(self):
        assert _settings(cache_backend="REDIS").cache_backend == "redis"
        with pytest.raises(PydanticValidationError):
            _settings(cache_backend="memcached")

    def test_rate_limit_bounds(self):
        with pytest.raises(PydanticValidationError):
            _settings(rate_limit_burst=0)

    def test_development_skips_production_checks(self):
        _settings(app_env="development").validate_required_for_production()

    def test_production_rejects_insecure_defaults(self):
        settings = _settings(
            app_env="production", jwt_secret="default_jwt_secret_change_me", cors_allowed_origins="*"
        )
        with pytest.raises(ValueError) as exc_info:
            settings.validate_required_for_production()
        message = str(exc_info.value)
        assert "JWT_SECRET" in message
        assert "CORS_ALLOWED_ORIGINS" in message

    def test_production_with_real_secret_passes(self):
        _settings(
            app_env="production", jwt_secret="a-long-random-secret", cors_allowed_origins="https://school.test"
        ).validate_required_for_production()


class TestAccessLogLevel:

    @pytest.mark.parametrize(
        "status, level",
        [(200, logging.INFO), (304, logging.INFO), (404, logging.WARNING), (503, logging.ERROR)],
    )
    def test_level_follows_status_class(self, status, level):
        assert level_for_status(status) == level
