"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a
``require_credentials()`` startup gate.  Settings are read once at startup and
then handed explicitly to each client and component; no module reads the
environment at import time.

This module only imports ``inbound_apps.domain.errors`` from the package to
keep it importable from everywhere without cycles.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path
from typing import NoReturn

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from inbound_apps.domain.errors import ConfigurationError

logger = structlog.get_logger()

DEFAULT_INBOUND_API_URL = "https://inbound.new/api/v2"
DEFAULT_BROWSERLESS_URL = "https://production-sfo.browserless.io"

# Environment variable names for each credential, used in error messages.
_CREDENTIAL_ENV_NAMES: dict[str, str] = {
    "inbound_api_key": "INBOUND_API_KEY",
    "browserless_token": "BROWSERLESS_TOKEN",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    ``SecretStr`` fields keep credentials out of logs and error output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    webhook_port: int = 3000
    sentry_dsn: str = ""

    # -- Inbound API -----------------------------------------------------------
    inbound_api_key: SecretStr = SecretStr("")
    inbound_api_base_url: str = DEFAULT_INBOUND_API_URL
    inbound_from_address: str = "user@example.com"

    # -- Webhook senders -------------------------------------------------------
    analysis_from_address: str = "Analysis Agent <analysis@inbound.new>"
    pdf_from_address: str = "inbound pdf <pdf@inbound.new>"
    support_from_address: str = "Support <support@inbound.new>"

    # -- Browserless (PDF variant) ---------------------------------------------
    browserless_token: SecretStr = SecretStr("")
    browserless_url: str = DEFAULT_BROWSERLESS_URL

    # -- LLM / Anthropic (analysis variant) ------------------------------------
    anthropic_api_key: SecretStr = SecretStr("")

    # -- Local files -----------------------------------------------------------
    cleanup_output_dir: Path = Path("data/emails")
    wizard_state_path: Path = Path("data/wizard_state.json")


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list -- never the full exception
        # which may contain raw SecretStr values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def require_credentials(settings: Settings, *names: str) -> None:
    """Fail fast when any of the named credentials is empty.

    Args:
        settings: The loaded application settings.
        *names: ``Settings`` field names of the credentials the caller needs,
            e.g. ``"inbound_api_key"``.

    Raises:
        ConfigurationError: Listing every missing credential by its
            environment variable name.
    """
    missing: list[str] = []
    for name in names:
        value = getattr(settings, name)
        secret = value.get_secret_value() if isinstance(value, SecretStr) else value
        if not secret:
            missing.append(_CREDENTIAL_ENV_NAMES.get(name, name.upper()))

    if missing:
        details = ", ".join(f"{m} is empty or not set" for m in missing)
        raise ConfigurationError(f"Missing required configuration: {details}")
    logger.info("credential_validation_passed", credentials=list(names))


def exit_on_configuration_error(exc: ConfigurationError) -> NoReturn:
    """Print a startup failure block to stderr and exit with status 1.

    Args:
        exc: The configuration error raised during startup.
    """
    logger.error("configuration_invalid", detail=str(exc))
    print("\n=== STARTUP FAILED ===", file=sys.stderr)
    print(f"  - {exc}", file=sys.stderr)
    print("======================\n", file=sys.stderr)
    sys.exit(1)
