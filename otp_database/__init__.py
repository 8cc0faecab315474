"""sqlite3 storage for per-account moving factors and validation attempts."""

from .db_manager import (
    compare_and_set_moving_factor,
    get_db_connection,
    get_moving_factor,
    log_otp_attempt,
    recent_attempts,
    reset_moving_factor,
)
from .setup_database import DATABASE_FILE, create_database, setup_database

__all__ = [
    "DATABASE_FILE",
    "compare_and_set_moving_factor",
    "create_database",
    "get_db_connection",
    "get_moving_factor",
    "log_otp_attempt",
    "recent_attempts",
    "reset_moving_factor",
    "setup_database",
]
