import logging
from pathlib import Path
from typing import Literal

from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator
from pydantic_settings import BaseSettings

from paybridge.core.errors import ConfigurationError

log = logging.getLogger(__name__)

# .env at project root: paybridge/core/config.py -> paybridge/core -> paybridge -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"

PAGSMILE_API_BASE_URL = "https://gateway.pagsmile.com"
REQUIRED_ENV_VARS = ("PAGSMILE_APP_ID", "PAGSMILE_SECURITY_KEY", "PAGSMILE_PUBLIC_KEY")


class Settings(BaseSettings):
    pagsmile_app_id: str
    pagsmile_security_key: str
    pagsmile_public_key: str
    pagsmile_environment: Literal["sandbox", "prod"] = "sandbox"
    # Gateway POSTs payment results here; must be public HTTPS in prod or 3DS breaks
    pagsmile_notify_url: str = "http://localhost:3000/api/webhook/payment"
    pagsmile_return_url: str = "http://localhost:3000/success"
    pagsmile_api_base_url: str = PAGSMILE_API_BASE_URL
    gateway_timeout_seconds: float = 20.0
    # Comma separated; "*" allows any origin
    cors_origins: str = "*"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator(
        "pagsmile_app_id",
        "pagsmile_security_key",
        "pagsmile_public_key",
        "pagsmile_notify_url",
        "pagsmile_return_url",
        mode="before",
    )
    @classmethod
    def strip_value(cls, v: str | None) -> str:
        """Trailing whitespace from copy/paste breaks the Basic auth header."""
        return (v or "").strip()

    @field_validator("pagsmile_api_base_url", mode="before")
    @classmethod
    def strip_base_url(cls, v: str | None) -> str:
        return (v or PAGSMILE_API_BASE_URL).strip().rstrip("/")


def _is_local_url(url: str) -> bool:
    return "localhost" in url or "127.0.0.1" in url or url.startswith("http://")


def warn_unsafe_production_urls(settings: Settings) -> list[str]:
    """Logs callback URLs that cannot work with 3DS in prod. Returns the offending setting names."""
    if settings.pagsmile_environment != "prod":
        return []
    bad: list[str] = []
    for name in ("pagsmile_notify_url", "pagsmile_return_url"):
        url = getattr(settings, name)
        if _is_local_url(url):
            bad.append(name)
            log.error(
                "%s=%s is not valid for production: localhost or plain HTTP URLs do not work with 3DS. "
                "Use a public HTTPS URL.",
                name.upper(),
                url,
            )
    return bad


def load_settings(**overrides) -> Settings:
    """
    Builds Settings from environment / .env. Missing required values are fatal:
    raises ConfigurationError naming every missing variable.
    """
    try:
        settings = Settings(**overrides)
    except PydanticValidationError as e:
        missing = [
            str(err["loc"][0]).upper()
            for err in e.errors()
            if err.get("type") == "missing" and err.get("loc")
        ]
        if missing:
            log.error("Missing environment variables: %s", missing)
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}") from e
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    empty = [name for name in REQUIRED_ENV_VARS if not getattr(settings, name.lower())]
    if empty:
        log.error("Missing environment variables: %s", empty)
        raise ConfigurationError(f"Missing required environment variables: {', '.join(empty)}")

    warn_unsafe_production_urls(settings)
    log.info(
        "Pagsmile config loaded: app_id=%s... environment=%s notify_url=%s return_url=%s",
        settings.pagsmile_app_id[:10],
        settings.pagsmile_environment,
        settings.pagsmile_notify_url,
        settings.pagsmile_return_url,
    )
    return settings
