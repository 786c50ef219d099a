import os
from dataclasses import dataclass, field
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv


PROFILE_SUMMARIZER = "summarizer"
PROFILE_SLIDES = "slides"
DEFAULT_PORTS = {PROFILE_SUMMARIZER: 5173, PROFILE_SLIDES: 3000}

POLICY_STRICT = "strict"
POLICY_LENIENT = "lenient"

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MAX_BODY_BYTES = 8 * 1024 * 1024


@dataclass
class Config:
    """Centralized configuration loaded from environment variables.

    The credential is excluded from ``repr`` so the config object can be
    logged without leaking it.
    """

    openai_api_key: Optional[str] = field(default=None, repr=False)
    profile: str = PROFILE_SUMMARIZER
    api_key_policy: str = POLICY_STRICT
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORTS[PROFILE_SUMMARIZER]
    openai_base_url: str = DEFAULT_BASE_URL
    summary_model: str = "gpt-4o-mini"
    slides_model: str = "gpt-4"
    min_text_length: int = 20
    throttle_interval_ms: int = 200
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    log_timezone: Optional[str] = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.openai_api_key)


def load_config() -> Config:
    """Load configuration values from environment variables.

    Values from a local `.env` file are loaded first to simplify development
    workflows. Under the strict key policy a missing ``OPENAI_API_KEY`` is a
    configuration error; under the lenient policy it is left for the caller
    to warn about.
    """

    load_dotenv()

    profile = _validate_choice(
        "PROXY_PROFILE", os.getenv("PROXY_PROFILE", PROFILE_SUMMARIZER), set(DEFAULT_PORTS)
    )
    api_key_policy = _validate_choice(
        "API_KEY_POLICY", os.getenv("API_KEY_POLICY", POLICY_STRICT), {POLICY_STRICT, POLICY_LENIENT}
    )

    openai_api_key = os.getenv("OPENAI_API_KEY") or None
    if api_key_policy == POLICY_STRICT:
        openai_api_key = _require("OPENAI_API_KEY")

    port = _parse_port(os.getenv("PORT"), DEFAULT_PORTS[profile])
    min_text_length = _parse_non_negative_int("MIN_TEXT_LENGTH", os.getenv("MIN_TEXT_LENGTH", "20"))
    throttle_interval_ms = _parse_non_negative_int(
        "THROTTLE_INTERVAL_MS", os.getenv("THROTTLE_INTERVAL_MS", "200")
    )
    max_body_bytes = _parse_non_negative_int(
        "MAX_BODY_BYTES", os.getenv("MAX_BODY_BYTES", str(DEFAULT_MAX_BODY_BYTES))
    )

    log_timezone = os.getenv("LOG_TIMEZONE") or None
    _validate_timezone(log_timezone)

    return Config(
        openai_api_key=openai_api_key,
        profile=profile,
        api_key_policy=api_key_policy,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        openai_base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL),
        summary_model=os.getenv("SUMMARY_MODEL", "gpt-4o-mini"),
        slides_model=os.getenv("SLIDES_MODEL", "gpt-4"),
        min_text_length=min_text_length,
        throttle_interval_ms=throttle_interval_ms,
        max_body_bytes=max_body_bytes,
        cors_origins=_parse_str_list(os.getenv("CORS_ORIGINS")) or ("*",),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_timezone=log_timezone,
    )


def _parse_port(value: Optional[str], default: int) -> int:
    if not value:
        return default
    try:
        port = int(value)
    except ValueError as exc:  # noqa: BLE001
        raise ValueError("PORT must be an integer") from exc
    if not 0 < port < 65536:
        raise ValueError("PORT must be between 1 and 65535")
    return port


def _parse_non_negative_int(var_name: str, value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:  # noqa: BLE001
        raise ValueError(f"{var_name} must be an integer") from exc
    if parsed < 0:
        raise ValueError(f"{var_name} must not be negative")
    return parsed


def _parse_str_list(value: Optional[str]) -> tuple[str, ...]:
    """Parse a comma-separated list into a tuple of non-empty strings."""

    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _validate_choice(var_name: str, value: str, choices: set[str]) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(f"{var_name} must be one of: {', '.join(sorted(choices))}")
    return normalized


def _validate_timezone(value: Optional[str]) -> None:
    """Ensure provided timezone is valid for ZoneInfo."""

    if not value:
        return
    try:
        ZoneInfo(value)
    except Exception as exc:  # noqa: BLE001
        raise ValueError("LOG_TIMEZONE must be a valid IANA timezone, e.g., 'UTC' or 'Europe/Berlin'") from exc


def _require(var_name: str) -> str:
    """Fetch and assert that an environment variable is present."""

    value = os.getenv(var_name)
    if not value:
        raise ValueError(f"{var_name} is required to start the proxy")
    return value
