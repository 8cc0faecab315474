"""
Backend settings, read from the environment (and a .env file if present).

    OTP_DATABASE_FILE        sqlite file for moving factors (database/otp_counters.db)
    OTP_CORS_ORIGINS         comma separated origins for CORS ("*")
    OTP_HOTP_WINDOW          default HOTP look-ahead (3)
    OTP_TOTP_STEPS_BACK      default TOTP steps accepted in the past (1)
    OTP_TOTP_STEPS_FORWARD   default TOTP steps accepted in the future (1)
    OTP_ATTEMPT_LOG_LIMIT    attempts returned by /attempts (20)
"""

import os
from typing import Any, Dict

from dotenv import load_dotenv

from otp_database import DATABASE_FILE
from otp_engine import DEFAULT_HOTP_WINDOW, DEFAULT_TOTP_STEPS


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {value!r}")


def load_config() -> Dict[str, Any]:
    load_dotenv()
    origins = os.getenv("OTP_CORS_ORIGINS", "*")
    return {
        "DATABASE_FILE": os.getenv("OTP_DATABASE_FILE", DATABASE_FILE),
        "CORS_ORIGINS": [o.strip() for o in origins.split(",") if o.strip()] or "*",
        "HOTP_WINDOW": _int_env("OTP_HOTP_WINDOW", DEFAULT_HOTP_WINDOW),
        "TOTP_STEPS_BACK": _int_env("OTP_TOTP_STEPS_BACK", DEFAULT_TOTP_STEPS),
        "TOTP_STEPS_FORWARD": _int_env("OTP_TOTP_STEPS_FORWARD", DEFAULT_TOTP_STEPS),
        "ATTEMPT_LOG_LIMIT": _int_env("OTP_ATTEMPT_LOG_LIMIT", 20),
    }
