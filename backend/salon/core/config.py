"""
Process-wide settings read from the environment once at import time.

Settings:
    APP_TZ (or TZ)          Business timezone that decides "today" and how
                            wall-clock input maps to UTC. Default UTC.
    EXPOSE_ERROR_DETAILS    Include exception text in 500 bodies. Defaults
                            to on only when FLASK_ENV=development.
    HEALTH_CHECK_TOKEN      Guards /health/details. Unset disables it.
    LOG_TO_FILE             Write rotating log files besides stdout.
"""

import os
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _business_tz_name() -> str:
    return os.getenv("APP_TZ") or os.getenv("TZ") or "UTC"


def get_app_timezone() -> ZoneInfo:
    """Resolve the business timezone, falling back to UTC on a bad name."""
    name = _business_tz_name()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(
            "Unknown business timezone, using UTC",
            extra={"context": {"requested": name, "error": str(e)}},
        )
        return ZoneInfo("UTC")


def get_expose_error_details() -> bool:
    development = os.getenv("FLASK_ENV") == "development"
    return _env_flag("EXPOSE_ERROR_DETAILS", "true" if development else "false")


def get_health_check_token() -> str | None:
    return os.getenv("HEALTH_CHECK_TOKEN") or None


def get_log_to_file() -> bool:
    return _env_flag("LOG_TO_FILE", "1")


APP_TZ = get_app_timezone()
EXPOSE_ERROR_DETAILS = get_expose_error_details()
HEALTH_CHECK_TOKEN = get_health_check_token()


def log_timezone_config():
    logger.info(
        "Business timezone resolved",
        extra={"context": {"timezone": str(APP_TZ), "requested": _business_tz_name()}},
    )


def log_app_config():
    """Log effective settings at startup. Secrets are reported as set/unset only."""
    logger.info(
        "Application settings loaded",
        extra={
            "context": {
                "environment": os.getenv("FLASK_ENV", "development"),
                "expose_error_details": EXPOSE_ERROR_DETAILS,
                "health_token_set": HEALTH_CHECK_TOKEN is not None,
                "log_to_file": get_log_to_file(),
            }
        },
    )
