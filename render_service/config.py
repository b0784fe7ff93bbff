"""
Render Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)


class RenderSettings(BaseSettings):
    """
    Render service configuration with validation.

    All settings can be overridden via environment variables
    (PORT, RENDER_SECRET, RENDER_TIMEOUT_MS, ...).
    """

    # === Server ===
    host: str = Field(
        default="0.0.0.0",
        description="Bind address (all interfaces so the service is reachable in a container)"
    )
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Listen port"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # === Security ===
    render_secret: Optional[str] = Field(
        default=None,
        description="Shared secret expected in the X-Render-Secret header"
    )

    # === Rendering ===
    render_timeout_ms: int = Field(
        default=15000,
        ge=1000,
        le=120000,
        description="Ceiling for load + settle + PDF capture, in milliseconds"
    )
    settle_ms: int = Field(
        default=200,
        ge=0,
        le=5000,
        description="Stabilization wait after the load event, in milliseconds"
    )
    prefer_css_page_size: bool = Field(
        default=False,
        description="Let a CSS @page size override the requested width/height"
    )
    cleanup_timeout_ms: int = Field(
        default=5000,
        ge=100,
        le=60000,
        description="Bound on each page/context close, in milliseconds"
    )

    # === Engine ===
    engine_headless: bool = Field(
        default=True,
        description="Run Chromium headless"
    )
    shutdown_grace_seconds: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Bound on closing the engine when the process exits"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one the logging module understands."""
        v_upper = v.upper()
        if v_upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    @field_validator("render_secret")
    @classmethod
    def blank_secret_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """An empty RENDER_SECRET must not authorize empty headers."""
        if v is None or not v.strip():
            return None
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def render_timeout_seconds(self) -> float:
        return self.render_timeout_ms / 1000

    @property
    def cleanup_timeout_seconds(self) -> float:
        return self.cleanup_timeout_ms / 1000

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration is suitable for production.

        Returns list of warning/error messages.
        """
        issues = []

        if not self.render_secret:
            if self.is_production:
                issues.append("CRITICAL: RENDER_SECRET required in production")
            else:
                issues.append("WARNING: RENDER_SECRET not configured - all /render calls will be rejected")

        if self.prefer_css_page_size:
            issues.append("WARNING: PREFER_CSS_PAGE_SIZE enabled - CSS @page size overrides widthMm/heightMm")

        return issues

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # RENDER_SECRET = render_secret


@lru_cache()
def get_settings() -> RenderSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    """
    return RenderSettings()


def validate_config_on_startup() -> None:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    Logs warnings for non-critical issues.
    """
    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    for issue in settings.validate_production_config():
        if issue.startswith("CRITICAL"):
            raise ValueError(issue)
        else:
            logger.warning(issue)

    # Log loaded configuration (redact secrets)
    logger.info(f"Configuration loaded: environment={settings.environment}")
    logger.info(f"  listen={settings.host}:{settings.port}")
    logger.info(f"  render_timeout={settings.render_timeout_ms}ms settle={settings.settle_ms}ms")
    logger.info(f"  prefer_css_page_size={settings.prefer_css_page_size}")
    logger.info(f"  render_secret={'*****' if settings.render_secret else 'NOT SET'}")


# Convenience exports
settings = get_settings()
