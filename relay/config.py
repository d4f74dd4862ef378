"""Environment-driven runtime settings for the relay."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


class ConfigurationError(RuntimeError):
    """Raised when required settings are missing or malformed."""


def _env_str(
    name: str,
    default: Optional[str] = None,
    *,
    alias: Optional[str] = None,
    empty_to_none: bool = True,
) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None and alias:
        raw = os.getenv(alias)
    if raw is None:
        return default
    value = raw.strip()
    if not value and empty_to_none:
        return None if default is None else default
    return value if value else default


def _env_bool(name: str, default: bool, *, alias: Optional[str] = None) -> bool:
    raw = os.getenv(name)
    if raw is None and alias:
        raw = os.getenv(alias)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float, *, alias: Optional[str] = None) -> float:
    raw = os.getenv(name)
    if raw is None and alias:
        raw = os.getenv(alias)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_tuple(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return tuple(default)
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or tuple(default)


@dataclass(frozen=True)
class Settings:
    """Validated runtime settings shared by every component."""

    firebase_service_account: Dict[str, Any]
    port: int = 8080
    host: str = "0.0.0.0"
    request_timeout_ms: int = 30000
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    openai_api_key: Optional[str] = None
    openai_default_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.3

    paypal_env: str = "live"
    paypal_client_id: Optional[str] = None
    paypal_client_secret: Optional[str] = None
    paypal_webhook_id: Optional[str] = None
    paypal_plan_ids: Dict[str, Optional[str]] = field(default_factory=dict)
    paypal_brand_name: str = "ContApp Peru"
    paypal_locale: str = "es-PE"
    paypal_webhook_preserve_ids: bool = False

    app_base_url: Optional[str] = None

    @property
    def request_timeout(self) -> float:
        """Outbound call timeout in seconds."""

        return self.request_timeout_ms / 1000.0

    @property
    def paypal_base_url(self) -> str:
        if self.paypal_env == "sandbox":
            return "https://api-m.sandbox.paypal.com"
        return "https://api-m.paypal.com"

    @property
    def allow_all_origins(self) -> bool:
        return not self.cors_origins or "*" in self.cors_origins


def _parse_service_account(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        raise ConfigurationError("Missing FIREBASE_SERVICE_ACCOUNT")
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError("FIREBASE_SERVICE_ACCOUNT is not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise ConfigurationError("FIREBASE_SERVICE_ACCOUNT must be a JSON object")
    return parsed


def load_settings() -> Settings:
    """Read the process environment once and return validated settings."""

    # -----------------------------------------------------------------------
    # FIREBASE
    # -----------------------------------------------------------------------
    service_account = _parse_service_account(_env_str("FIREBASE_SERVICE_ACCOUNT", None))

    # -----------------------------------------------------------------------
    # HTTP SERVER
    # -----------------------------------------------------------------------
    port = _env_int("PORT", 8080)
    host = _env_str("HOST", "0.0.0.0", empty_to_none=False)
    request_timeout_ms = _env_int("REQUEST_TIMEOUT_MS", 30000)
    if request_timeout_ms <= 0:
        raise ConfigurationError("REQUEST_TIMEOUT_MS must be a positive integer")
    cors_origins = _env_tuple("CORS_ORIGIN", ("*",))
    log_level = _env_str("LOG_LEVEL", "INFO", empty_to_none=False).upper()

    # -----------------------------------------------------------------------
    # OPENAI
    # -----------------------------------------------------------------------
    openai_api_key = _env_str("OPENAI_API_KEY", None)
    openai_default_model = _env_str("OPENAI_DEFAULT_MODEL", "gpt-4o-mini", empty_to_none=False)
    openai_temperature = _env_float("OPENAI_TEMPERATURE", 0.3)

    # -----------------------------------------------------------------------
    # BILLING / PAYPAL
    # -----------------------------------------------------------------------
    paypal_env = _env_str("PAYPAL_ENV", "live", empty_to_none=False).lower()
    if paypal_env not in {"sandbox", "live"}:
        raise ConfigurationError("PAYPAL_ENV must be 'sandbox' or 'live'")
    plan_ids = {
        "PRO": _env_str("PAYPAL_PLAN_ID_PRO", None),
        "PLUS": _env_str("PAYPAL_PLAN_ID_PLUS", None),
    }

    return Settings(
        firebase_service_account=service_account,
        port=port,
        host=host,
        request_timeout_ms=request_timeout_ms,
        cors_origins=cors_origins,
        log_level=log_level,
        openai_api_key=openai_api_key,
        openai_default_model=openai_default_model,
        openai_temperature=openai_temperature,
        paypal_env=paypal_env,
        paypal_client_id=_env_str("PAYPAL_CLIENT_ID", None),
        paypal_client_secret=_env_str("PAYPAL_CLIENT_SECRET", None),
        paypal_webhook_id=_env_str("PAYPAL_WEBHOOK_ID", None),
        paypal_plan_ids=plan_ids,
        paypal_brand_name=_env_str("PAYPAL_BRAND_NAME", "ContApp Peru", empty_to_none=False),
        paypal_locale=_env_str("PAYPAL_LOCALE", "es-PE", empty_to_none=False),
        paypal_webhook_preserve_ids=_env_bool("PAYPAL_WEBHOOK_PRESERVE_IDS", False),
        app_base_url=_env_str("APP_BASE_URL", None),
    )


__all__ = ["ConfigurationError", "Settings", "load_settings"]
