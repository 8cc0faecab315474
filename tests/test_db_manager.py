from __future__ import annotations

import os

import pytest

from otp_database import (
    compare_and_set_moving_factor,
    create_database,
    get_db_connection,
    get_moving_factor,
    log_otp_attempt,
    recent_attempts,
    reset_moving_factor,
)
from otp_engine import MAX_COUNTER


def test_unknown_account_has_no_moving_factor(db_path) -> None:
    assert get_moving_factor("alice", "hotp", db_path=db_path) is None


def test_compare_and_set_first_value(db_path) -> None:
    assert compare_and_set_moving_factor("alice", "hotp", None, 0, db_path=db_path)

    assert get_moving_factor("alice", "hotp", db_path=db_path) == 0


def test_compare_and_set_rejects_stale_expected_value(db_path) -> None:
    assert compare_and_set_moving_factor("alice", "hotp", None, 3, db_path=db_path)

    # a second request that read the value before the first one committed
    assert not compare_and_set_moving_factor("alice", "hotp", None, 3, db_path=db_path)
    assert not compare_and_set_moving_factor("alice", "hotp", 1, 4, db_path=db_path)
    assert get_moving_factor("alice", "hotp", db_path=db_path) == 3

    assert compare_and_set_moving_factor("alice", "hotp", 3, 4, db_path=db_path)
    assert get_moving_factor("alice", "hotp", db_path=db_path) == 4


def test_moving_factor_must_increase(db_path) -> None:
    with pytest.raises(ValueError):
        compare_and_set_moving_factor("alice", "totp", 10, 10, db_path=db_path)


def test_kinds_are_stored_separately(db_path) -> None:
    compare_and_set_moving_factor("alice", "hotp", None, 5, db_path=db_path)
    compare_and_set_moving_factor("alice", "totp", None, 37037037, db_path=db_path)

    assert get_moving_factor("alice", "hotp", db_path=db_path) == 5
    assert get_moving_factor("alice", "totp", db_path=db_path) == 37037037
    assert get_moving_factor("bob", "hotp", db_path=db_path) is None


def test_full_64_bit_range_survives(db_path) -> None:
    assert compare_and_set_moving_factor("alice", "hotp", None, MAX_COUNTER - 1, db_path=db_path)
    assert compare_and_set_moving_factor("alice", "hotp", MAX_COUNTER - 1, MAX_COUNTER, db_path=db_path)

    assert get_moving_factor("alice", "hotp", db_path=db_path) == MAX_COUNTER


def test_reset_moving_factor(db_path) -> None:
    compare_and_set_moving_factor("alice", "hotp", None, 5, db_path=db_path)

    reset_moving_factor("alice", "hotp", db_path=db_path)

    assert get_moving_factor("alice", "hotp", db_path=db_path) is None
    assert compare_and_set_moving_factor("alice", "hotp", None, 0, db_path=db_path)


def test_unknown_kind(db_path) -> None:
    with pytest.raises(ValueError):
        get_moving_factor("alice", "motp", db_path=db_path)


def test_attempt_log_newest_first(db_path) -> None:
    log_otp_attempt("alice", "hotp", True, db_path=db_path)
    log_otp_attempt("alice", "totp", False, db_path=db_path)
    log_otp_attempt("bob", "hotp", True, db_path=db_path)

    attempts = recent_attempts("alice", db_path=db_path)

    assert [(a["kind"], a["success"]) for a in attempts] == [("totp", False), ("hotp", True)]
    assert len(recent_attempts("alice", limit=1, db_path=db_path)) == 1


def test_create_database_makes_directory(tmp_path) -> None:
    path = str(tmp_path / "nested" / "otp.db")

    create_database(path)

    assert os.path.exists(path)
    conn = get_db_connection(path)
    try:
        tables = {row["name"] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    finally:
        conn.close()
    assert {"otp_counters", "otp_attempts"} <= tables
