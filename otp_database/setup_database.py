import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

DATABASE_FILE = "database/otp_counters.db"


def setup_database(conn: sqlite3.Connection) -> None:
    """Create the moving-factor and attempt tables if they are missing."""
    cursor = conn.cursor()

    # Last accepted HOTP counter / TOTP step per account.
    # Stored as TEXT: sqlite INTEGER is signed 64-bit, counters are unsigned.
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS otp_counters (
        account TEXT NOT NULL,
        kind TEXT NOT NULL CHECK (kind IN ('hotp', 'totp')),
        last_value TEXT,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (account, kind)
    )
    ''')

    # Validation outcomes, for whoever decides lockout policy
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS otp_attempts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account TEXT NOT NULL,
        kind TEXT NOT NULL,
        is_success BOOLEAN NOT NULL,
        attempted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''')

    conn.commit()


def create_database(path: str = DATABASE_FILE) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        setup_database(conn)
    finally:
        conn.close()
    logger.info("Database setup completed: %s", path)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_database()
