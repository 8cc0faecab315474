from __future__ import annotations

import pytest

from otp_backend import create_app

# RFC 4226 / RFC 6238 test secrets
SHA1_SECRET = b"12345678901234567890"
SHA256_SECRET = b"12345678901234567890123456789012"
SHA512_SECRET = b"1234567890123456789012345678901234567890123456789012345678901234"

SHA1_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture
def secret() -> bytes:
    return SHA1_SECRET


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "otp.db")


@pytest.fixture
def app(db_path):
    return create_app({"TESTING": True, "DATABASE_FILE": db_path})


@pytest.fixture
def client(app):
    return app.test_client()
