"""
Unit tests for render service configuration and error bodies.
"""

import pytest
from pydantic import ValidationError as SettingsValidationError

from render_service.config import RenderSettings, validate_config_on_startup
from render_service.errors import (
    EngineStartFailure,
    RenderFailure,
    RenderServiceError,
    RenderTimeout,
    Unauthorized,
    ValidationError,
)


@pytest.fixture
def clean_env(monkeypatch):
    for var in ("RENDER_SECRET", "PORT", "SETTLE_MS", "RENDER_TIMEOUT_MS", "ENVIRONMENT"):
        monkeypatch.delenv(var, raising=False)


class TestRenderSettings:
    """Tests for RenderSettings defaults and validation."""

    def test_defaults(self, clean_env):
        s = RenderSettings()

        assert s.host == "0.0.0.0"
        assert s.port == 3000
        assert s.render_secret is None
        assert s.render_timeout_ms == 15000
        assert s.settle_ms == 200
        assert s.prefer_css_page_size is False
        assert s.environment == "development"

    def test_reads_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("RENDER_SECRET", "s3cr3t-value")
        monkeypatch.setenv("RENDER_TIMEOUT_MS", "5000")

        s = RenderSettings()

        assert s.port == 8080
        assert s.render_secret == "s3cr3t-value"
        assert s.render_timeout_seconds == 5.0

    def test_blank_secret_is_unset(self, clean_env):
        assert RenderSettings(render_secret="   ").render_secret is None

    def test_rejects_unknown_environment(self, clean_env):
        with pytest.raises(SettingsValidationError):
            RenderSettings(environment="qa")

    def test_rejects_out_of_range_timeout(self, clean_env):
        with pytest.raises(SettingsValidationError):
            RenderSettings(render_timeout_ms=10)

    def test_missing_secret_warns_in_development(self, clean_env):
        issues = RenderSettings().validate_production_config()
        assert any(i.startswith("WARNING: RENDER_SECRET") for i in issues)

    def test_missing_secret_critical_in_production(self, clean_env):
        issues = RenderSettings(environment="production").validate_production_config()
        assert "CRITICAL: RENDER_SECRET required in production" in issues

    def test_startup_validation_fails_fast_in_production(self, clean_env, monkeypatch):
        import render_service.config as config_module

        monkeypatch.setattr(
            config_module, "get_settings", lambda: RenderSettings(environment="production")
        )
        with pytest.raises(ValueError, match="RENDER_SECRET"):
            validate_config_on_startup()


class TestErrorBodies:
    """Tests for error taxonomy classification and JSON bodies."""

    def test_unauthorized(self):
        err = Unauthorized()
        assert err.status_code == 401
        assert err.to_response() == {"error": "Unauthorized"}

    def test_validation_error(self):
        err = ValidationError()
        assert err.status_code == 400
        assert err.to_response() == {"error": "HTML is required"}

    def test_validation_error_with_detail(self):
        err = ValidationError("Invalid request", detail="widthMm must be positive")
        assert err.to_response() == {"error": "Invalid request", "message": "widthMm must be positive"}

    @pytest.mark.parametrize("cls", [EngineStartFailure, RenderTimeout, RenderFailure])
    def test_render_errors_are_500(self, cls):
        err = cls("boom")
        assert isinstance(err, RenderServiceError)
        assert err.status_code == 500
        assert err.kind == cls.__name__
