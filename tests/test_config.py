from __future__ import annotations

import pytest

from otp_backend import create_app
from otp_backend.config import load_config


def test_defaults(monkeypatch) -> None:
    for name in ("OTP_HOTP_WINDOW", "OTP_TOTP_STEPS_BACK", "OTP_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    config = load_config()

    assert config["HOTP_WINDOW"] == 3
    assert config["TOTP_STEPS_BACK"] == 1
    assert config["CORS_ORIGINS"] == ["*"]


def test_environment_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("OTP_HOTP_WINDOW", "10")
    monkeypatch.setenv("OTP_DATABASE_FILE", str(tmp_path / "x.db"))
    monkeypatch.setenv("OTP_CORS_ORIGINS", "https://a.example, https://b.example")

    app = create_app()

    assert app.config["HOTP_WINDOW"] == 10
    assert app.config["DATABASE_FILE"] == str(tmp_path / "x.db")
    assert app.config["CORS_ORIGINS"] == ["https://a.example", "https://b.example"]


def test_bad_integer(monkeypatch) -> None:
    monkeypatch.setenv("OTP_TOTP_STEPS_FORWARD", "many")

    with pytest.raises(RuntimeError):
        load_config()


def test_importing_the_backend_builds_no_app() -> None:
    import otp_backend.app as app_module

    assert not hasattr(app_module, "app")
