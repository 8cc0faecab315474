from __future__ import annotations

import time

from otp_engine import MAX_COUNTER, encode_base32_secret

from .conftest import SHA1_SECRET_B32, SHA512_SECRET


def _post(client, url, **body):
    return client.post(url, json=body)


# --- stateless routes -----------------------------------------------------------
def test_hotp_route(client) -> None:
    resp = _post(client, "/api/hotp", secret=SHA1_SECRET_B32, counter=1)

    assert resp.status_code == 200
    assert resp.get_json() == {"code": "287082"}


def test_totp_route(client) -> None:
    resp = _post(client, "/api/totp", secret=SHA1_SECRET_B32, time=59, digits=8)

    assert resp.status_code == 200
    assert resp.get_json() == {"code": "94287082", "step": 1, "remaining": 1}


def test_totp_route_sha512(client) -> None:
    secret = encode_base32_secret(SHA512_SECRET)

    resp = _post(client, "/api/totp", secret=secret, time=1234567890, digits=8, algorithm="SHA512")

    assert resp.get_json()["code"] == "93441116"


def test_verify_hotp_route(client) -> None:
    resp = _post(client, "/api/verify_hotp", secret=SHA1_SECRET_B32, code="338314", last_counter=0)

    assert resp.status_code == 200
    assert resp.get_json() == {"matched": True, "counter": 4}

    resp = _post(client, "/api/verify_hotp", secret=SHA1_SECRET_B32, code="338314", last_counter=4)
    assert resp.get_json() == {"matched": False, "counter": None}


def test_verify_hotp_route_uses_configured_window(app, client) -> None:
    app.config["HOTP_WINDOW"] = 2

    resp = _post(client, "/api/verify_hotp", secret=SHA1_SECRET_B32, code="338314", last_counter=0)

    assert resp.get_json()["matched"] is False


def test_verify_totp_route(client) -> None:
    body = dict(secret=SHA1_SECRET_B32, code="07081804", time=1111111111, digits=8)

    assert _post(client, "/api/verify_totp", **body).get_json() == {"matched": True, "step": 37037036}
    assert _post(client, "/api/verify_totp", steps_back=0, **body).get_json()["matched"] is False
    assert _post(client, "/api/verify_totp", last_accepted_step=37037036, **body).get_json()["matched"] is False


def test_parse_uri_route_does_not_echo_secret(client) -> None:
    uri = f"otpauth://hotp/ACME:alice?secret={SHA1_SECRET_B32}&issuer=ACME&counter=7&digits=8"

    resp = _post(client, "/api/parse_uri", uri=uri)

    assert resp.status_code == 200
    data = resp.get_json()
    assert data == {
        "type": "hotp",
        "label": "alice",
        "issuer": "ACME",
        "algorithm": "SHA1",
        "digits": 8,
        "period": 30,
        "counter": 7,
    }
    assert SHA1_SECRET_B32 not in resp.get_data(as_text=True)


# --- errors ---------------------------------------------------------------------
def test_configuration_error_is_400(client) -> None:
    resp = _post(client, "/api/hotp", secret=SHA1_SECRET_B32, counter=1, digits=5)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "InvalidDigitCount"


def test_invalid_secret_is_400(client) -> None:
    resp = _post(client, "/api/hotp", secret="not base32!", counter=1)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "InvalidSecret"


def test_counter_exhausted_is_409(client) -> None:
    resp = _post(client, "/api/verify_hotp", secret=SHA1_SECRET_B32, code="123456", last_counter=MAX_COUNTER)

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "CounterExhausted"


def test_missing_field_is_400(client) -> None:
    resp = _post(client, "/api/hotp", secret=SHA1_SECRET_B32)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "BadRequest"


def test_non_json_body_is_400(client) -> None:
    resp = client.post("/api/hotp", data="counter=1")

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "BadRequest"


def test_non_integer_field_is_400(client) -> None:
    resp = _post(client, "/api/hotp", secret=SHA1_SECRET_B32, counter="1")

    assert resp.status_code == 400


def test_lone_surrogate_code_is_not_matched(client) -> None:
    resp = _post(client, "/api/verify_hotp", secret=SHA1_SECRET_B32, code="\ud800", last_counter=0)

    assert resp.status_code == 200
    assert resp.get_json() == {"matched": False, "counter": None}


def test_clock_before_epoch_is_400(client) -> None:
    resp = _post(client, "/api/totp", secret=SHA1_SECRET_B32, time=10, t0=20)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ClockBeforeEpoch"


# --- account routes -------------------------------------------------------------
def test_account_hotp_flow(client) -> None:
    url = "/api/accounts/alice/verify_hotp"

    first = _post(client, url, secret=SHA1_SECRET_B32, code="755224")
    assert first.get_json() == {"matched": True, "counter": 0}

    replay = _post(client, url, secret=SHA1_SECRET_B32, code="755224")
    assert replay.get_json() == {"matched": False, "counter": None}

    second = _post(client, url, secret=SHA1_SECRET_B32, code="287082")
    assert second.get_json() == {"matched": True, "counter": 1}

    attempts = client.get("/api/accounts/alice/attempts").get_json()["attempts"]
    assert [a["success"] for a in attempts] == [True, False, True]


def test_account_totp_flow(client, monkeypatch) -> None:
    monkeypatch.setattr(time, "time", lambda: 1111111111.0)
    url = "/api/accounts/alice/verify_totp"
    body = dict(secret=SHA1_SECRET_B32, code="14050471", digits=8)

    assert _post(client, url, **body).get_json() == {"matched": True, "step": 37037037}
    assert _post(client, url, **body).get_json() == {"matched": False, "step": None}


def test_account_lost_race_is_409(client, monkeypatch) -> None:
    monkeypatch.setattr("otp_backend.routes.compare_and_set_moving_factor", lambda *a, **kw: False)

    resp = _post(client, "/api/accounts/alice/verify_hotp", secret=SHA1_SECRET_B32, code="755224")

    assert resp.status_code == 409
    assert resp.get_json() == {"matched": False, "error": "ConcurrentUpdate"}


def test_index_lists_endpoints(client) -> None:
    endpoints = client.get("/").get_json()["endpoints"]

    assert "/api/hotp" in endpoints
    assert "/api/accounts/<string:account>/verify_totp" in endpoints


def test_account_totp_ignores_time_in_body(client, monkeypatch) -> None:
    monkeypatch.setattr(time, "time", lambda: 1111111111.0)
    url = "/api/accounts/carol/verify_totp"

    # valid at 20000000000, far ahead of the server clock
    future = _post(client, url, secret=SHA1_SECRET_B32, code="65353130", time=20000000000, digits=8)
    assert future.get_json() == {"matched": False, "step": None}

    current = _post(client, url, secret=SHA1_SECRET_B32, code="14050471", time=20000000000, digits=8)
    assert current.get_json() == {"matched": True, "step": 37037037}
