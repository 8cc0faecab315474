"""
db_manager.py — per-account moving-factor store (sqlite3).

The validators return the moving factor the caller must persist. Two
concurrent logins with the same code must not both succeed, so the update is
a compare-and-set: a single conditional UPDATE that only applies if the
stored value is still the one the validation started from.
"""

import logging
import os
import sqlite3
from typing import Dict, List, Optional

from .setup_database import DATABASE_FILE, setup_database

logger = logging.getLogger(__name__)

KINDS = ("hotp", "totp")


def _check_kind(kind: str) -> str:
    if kind not in KINDS:
        raise ValueError(f"kind must be one of {KINDS}, got {kind!r}")
    return kind


def _to_text(value: Optional[int]) -> Optional[str]:
    return None if value is None else str(value)


def get_db_connection(db_path: str = DATABASE_FILE) -> sqlite3.Connection:
    """Connect to the database, creating the file and schema on first use."""
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=10)
    conn.row_factory = sqlite3.Row
    setup_database(conn)
    return conn


def get_moving_factor(account: str, kind: str, db_path: str = DATABASE_FILE) -> Optional[int]:
    """Last accepted counter/step for ``account``, or None if nothing was accepted yet."""
    _check_kind(kind)
    conn = get_db_connection(db_path)
    try:
        row = conn.execute(
            "SELECT last_value FROM otp_counters WHERE account = ? AND kind = ?",
            (account, kind),
        ).fetchone()
    finally:
        conn.close()
    if row is None or row["last_value"] is None:
        return None
    return int(row["last_value"])


def compare_and_set_moving_factor(
    account: str,
    kind: str,
    expected: Optional[int],
    new: int,
    db_path: str = DATABASE_FILE,
) -> bool:
    """
    Store ``new`` only if the current value is still ``expected``.

    Arguments:
        account: account identifier
        kind: "hotp" or "totp"
        expected: value read before validating (None = never accepted)
        new: moving factor returned by the validator, must be > expected

    Returns:
        True if the value was committed, False if another request got there first
    """
    _check_kind(kind)
    if expected is not None and new <= expected:
        raise ValueError(f"moving factor must increase: {expected} -> {new}")

    conn = get_db_connection(db_path)
    try:
        with conn:
            conn.execute(
                "INSERT OR IGNORE INTO otp_counters (account, kind, last_value) VALUES (?, ?, NULL)",
                (account, kind),
            )
            cursor = conn.execute(
                """UPDATE otp_counters
                   SET last_value = ?, updated_at = CURRENT_TIMESTAMP
                   WHERE account = ? AND kind = ? AND last_value IS ?""",
                (_to_text(new), account, kind, _to_text(expected)),
            )
            committed = cursor.rowcount == 1
    finally:
        conn.close()

    if not committed:
        logger.warning("Moving factor for %s/%s changed concurrently, update rejected", account, kind)
    return committed


def reset_moving_factor(account: str, kind: str, db_path: str = DATABASE_FILE) -> None:
    """Forget the stored value, e.g. after the token was re-provisioned."""
    _check_kind(kind)
    conn = get_db_connection(db_path)
    try:
        with conn:
            conn.execute(
                "DELETE FROM otp_counters WHERE account = ? AND kind = ?",
                (account, kind),
            )
    finally:
        conn.close()


def log_otp_attempt(account: str, kind: str, is_success: bool, db_path: str = DATABASE_FILE) -> None:
    conn = get_db_connection(db_path)
    try:
        with conn:
            conn.execute(
                "INSERT INTO otp_attempts (account, kind, is_success) VALUES (?, ?, ?)",
                (account, kind, bool(is_success)),
            )
    finally:
        conn.close()


def recent_attempts(account: str, limit: int = 20, db_path: str = DATABASE_FILE) -> List[Dict]:
    """Most recent validation outcomes for ``account``, newest first."""
    conn = get_db_connection(db_path)
    try:
        rows = conn.execute(
            """SELECT kind, is_success, attempted_at FROM otp_attempts
               WHERE account = ? ORDER BY id DESC LIMIT ?""",
            (account, limit),
        ).fetchall()
    finally:
        conn.close()
    return [
        {"kind": row["kind"], "success": bool(row["is_success"]), "attempted_at": row["attempted_at"]}
        for row in rows
    ]
