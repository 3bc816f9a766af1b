"""Runtime configuration resolved from the environment (and ``.env`` when present)."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from booking_bridge.domain.models import PracticeConfig

logger = logging.getLogger(__name__)

DEFAULT_PRACTICE_TOKEN = "5391"
DEFAULT_BOOKING_FORM_URL_TEMPLATE = "https://www.appointnow.com/?P={practice_token}&O=107&PT=0&culture=en-US"
DEFAULT_AVAILABILITY_URL = "https://www.appointnow.com/api/availability"

APPOINTMENT_TYPE_CODES: Mapping[str, str] = {
    "new-patient-exam": "1",
    "emergency-exam": "2",
    "cleaning": "3",
    "consultation": "4",
    "follow-up": "5",
    "cosmetic-consult": "6",
}
PROVIDER_CODES: Mapping[str, str] = {
    "any": "",
    "first-available": "",
}

STRATEGY_CHOICES = ("form", "sms")


@dataclass(slots=True, frozen=True)
class Settings:
    practice: PracticeConfig
    availability_url: str
    booking_strategy: str
    headless: bool
    max_browser_sessions: int
    session_queue_timeout_s: float
    navigation_timeout_ms: int
    submit_settle_ms: int
    screenshots_dir: Path | None
    strict_verification: bool
    twilio_account_sid: str | None
    twilio_auth_token: str | None
    twilio_phone_number: str
    booking_link: str
    practice_name: str
    practice_callback_phone: str
    server_host: str
    server_port: int
    cors_origins: list[str]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    return value not in {"0", "false", "no", "off"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _env_table(name: str, default: Mapping[str, str]) -> dict[str, str]:
    value = os.getenv(name, "").strip()
    if not value:
        return dict(default)
    try:
        payload = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{name} must be a JSON object of key -> code") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"{name} must be a JSON object of key -> code")
    return {str(key).strip().lower(): str(code) for key, code in payload.items()}


def _env_optional(name: str) -> str | None:
    return os.getenv(name, "").strip() or None


def load_settings() -> Settings:
    """Resolve settings from environment variables, reading ``.env`` first."""
    load_dotenv()

    practice = PracticeConfig(
        practice_token=os.getenv("PRACTICE_TOKEN", DEFAULT_PRACTICE_TOKEN).strip(),
        booking_url_template=os.getenv("BOOKING_FORM_URL_TEMPLATE", DEFAULT_BOOKING_FORM_URL_TEMPLATE),
        appointment_type_codes=_env_table("APPOINTMENT_TYPE_CODES", APPOINTMENT_TYPE_CODES),
        provider_codes=_env_table("PROVIDER_CODES", PROVIDER_CODES),
    )

    strategy = os.getenv("BOOKING_STRATEGY", "form").strip().lower()
    if strategy not in STRATEGY_CHOICES:
        raise ValueError(f"BOOKING_STRATEGY must be one of {', '.join(STRATEGY_CHOICES)}, got {strategy!r}")

    screenshots_dir = _env_optional("SCREENSHOTS_DIR")
    settings = Settings(
        practice=practice,
        availability_url=os.getenv("AVAILABILITY_URL", DEFAULT_AVAILABILITY_URL),
        booking_strategy=strategy,
        headless=_env_bool("BROWSER_HEADLESS", True),
        max_browser_sessions=max(1, _env_int("MAX_BROWSER_SESSIONS", 3)),
        session_queue_timeout_s=_env_float("SESSION_QUEUE_TIMEOUT_SECONDS", 30.0),
        navigation_timeout_ms=_env_int("NAVIGATION_TIMEOUT_MS", 30_000),
        submit_settle_ms=_env_int("SUBMIT_SETTLE_MS", 2_000),
        screenshots_dir=Path(screenshots_dir) if screenshots_dir else None,
        strict_verification=_env_bool("STRICT_VERIFICATION", False),
        twilio_account_sid=_env_optional("TWILIO_ACCOUNT_SID"),
        twilio_auth_token=_env_optional("TWILIO_AUTH_TOKEN"),
        twilio_phone_number=os.getenv("TWILIO_PHONE_NUMBER", "+14809064274"),
        booking_link=_env_optional("BOOKING_LINK") or practice.booking_url,
        practice_name=os.getenv("PRACTICE_NAME", "Smile Dental Studio"),
        practice_callback_phone=os.getenv("PRACTICE_CALLBACK_PHONE", "(480) 906-4274"),
        server_host=os.getenv("SERVER_HOST", "0.0.0.0"),
        server_port=_env_int("PORT", 3000),
        cors_origins=[origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()],
    )
    logger.info(
        "Resolved settings (practice=%s, strategy=%s, max_sessions=%s, headless=%s)",
        practice.practice_token,
        settings.booking_strategy,
        settings.max_browser_sessions,
        settings.headless,
    )
    return settings
