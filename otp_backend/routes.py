"""
OTP BACKEND API ROUTES - FLASK BLUEPRINT

JSON endpoints around the OTP engine. Secrets travel as base32 strings and
are never logged or echoed back.

    curl -X POST http://localhost:5000/api/hotp -H "Content-Type: application/json" \
         -d '{"secret": "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", "counter": 1}'

Stateless routes take the moving factor from the request and return the one
to persist. The /accounts routes keep it in the sqlite store and commit it
with compare-and-set, so two parallel requests cannot both use one code.
Account TOTP checks run against the server clock and ignore a "time" field.
"""

import logging
import time

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest

from otp_database import (
    compare_and_set_moving_factor,
    get_moving_factor,
    log_otp_attempt,
    recent_attempts,
)
from otp_engine import (
    DEFAULT_DIGITS,
    DEFAULT_T0,
    DEFAULT_TIME_STEP,
    decode_base32_secret,
    hotp,
    parse_otpauth_uri,
    time_step,
    totp,
    totp_remaining,
    verify_hotp,
    verify_totp,
)

logger = logging.getLogger(__name__)

otp_bp = Blueprint("otp", __name__, url_prefix="/api")


# --- request helpers ---------------------------------------------------------
def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("A JSON object body is required")
    return data


def _required(data: dict, key: str):
    if data.get(key) is None:
        raise BadRequest(f"'{key}' is required")
    return data[key]


def _int_field(data: dict, key: str, default=None):
    value = data.get(key, default)
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise BadRequest(f"'{key}' must be an integer")
    return value


def _time_field(data: dict):
    value = data.get("time")
    if value is None:
        return time.time()
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise BadRequest("'time' must be a number of seconds")
    return value


def _string_field(data: dict, key: str) -> str:
    value = _required(data, key)
    if not isinstance(value, str):
        raise BadRequest(f"'{key}' must be a string")
    return value


def _token_settings(data: dict) -> dict:
    return {
        "digits": _int_field(data, "digits", DEFAULT_DIGITS),
        "algorithm": data.get("algorithm") or "SHA1",
    }


def _totp_settings(data: dict) -> dict:
    settings = _token_settings(data)
    settings["timestep"] = _int_field(data, "period", DEFAULT_TIME_STEP)
    settings["t0"] = _int_field(data, "t0", DEFAULT_T0)
    return settings


def _secret(data: dict) -> bytes:
    return decode_base32_secret(_string_field(data, "secret"))


@otp_bp.errorhandler(BadRequest)
def handle_bad_request(e: BadRequest):
    return jsonify({"error": "BadRequest", "message": e.description}), 400


# --- stateless routes --------------------------------------------------------
@otp_bp.route("/hotp", methods=["POST"])
def generate_hotp():
    """
    HOTP CODE FOR A COUNTER

    Input:  {"secret": "...", "counter": 1, "digits": 6, "algorithm": "SHA1"}
    Output: {"code": "287082"}
    """
    data = _json_body()
    secret = _secret(data)
    counter = _int_field(data, "counter")
    if counter is None:
        raise BadRequest("'counter' is required")
    code = hotp(secret, counter, **_token_settings(data))
    return jsonify({"code": code})


@otp_bp.route("/totp", methods=["POST"])
def generate_totp():
    """
    TOTP CODE FOR NOW (or "time")

    Output: {"code": "...", "step": 12345, "remaining": 17}
    """
    data = _json_body()
    secret = _secret(data)
    now = _time_field(data)
    settings = _totp_settings(data)
    code = totp(secret, now, **settings)
    return jsonify({
        "code": code,
        "step": time_step(now, settings["timestep"], settings["t0"]),
        "remaining": totp_remaining(now, settings["timestep"], settings["t0"]),
    })


@otp_bp.route("/verify_hotp", methods=["POST"])
def verify_hotp_route():
    """
    VERIFY A HOTP CODE

    Input:  {"secret": "...", "code": "287082", "last_counter": 0, "window": 3}
    Output: {"matched": true, "counter": 1}   counter is the value to persist
            {"matched": false, "counter": null}
    """
    data = _json_body()
    secret = _secret(data)
    result = verify_hotp(
        secret,
        _string_field(data, "code"),
        _int_field(data, "last_counter"),
        _int_field(data, "window", current_app.config["HOTP_WINDOW"]),
        **_token_settings(data),
    )
    return jsonify({"matched": result.matched, "counter": result.moving_factor})


@otp_bp.route("/verify_totp", methods=["POST"])
def verify_totp_route():
    """
    VERIFY A TOTP CODE

    Input:  {"secret": "...", "code": "...", "steps_back": 1, "steps_forward": 1,
             "last_accepted_step": null}
    Output: {"matched": true, "step": 37037036}   step is the value to persist
    """
    data = _json_body()
    secret = _secret(data)
    result = verify_totp(
        secret,
        _string_field(data, "code"),
        _time_field(data),
        steps_back=_int_field(data, "steps_back", current_app.config["TOTP_STEPS_BACK"]),
        steps_forward=_int_field(data, "steps_forward", current_app.config["TOTP_STEPS_FORWARD"]),
        last_accepted_step=_int_field(data, "last_accepted_step"),
        **_totp_settings(data),
    )
    return jsonify({"matched": result.matched, "step": result.moving_factor})


@otp_bp.route("/parse_uri", methods=["POST"])
def parse_uri_route():
    """
    READ THE SETTINGS OF AN otpauth:// URI (the secret is not returned)
    """
    data = _json_body()
    params = parse_otpauth_uri(_string_field(data, "uri"))
    return jsonify({
        "type": params.otp_type,
        "label": params.label,
        "issuer": params.issuer,
        "algorithm": params.algorithm.label,
        "digits": params.digits,
        "period": params.period,
        "counter": params.counter,
    })


# --- account routes (moving factor kept server side) ------------------------
def _commit(account: str, kind: str, previous, result) -> bool:
    db_path = current_app.config["DATABASE_FILE"]
    committed = True
    if result.matched:
        committed = compare_and_set_moving_factor(
            account, kind, previous, result.moving_factor, db_path=db_path
        )
    log_otp_attempt(account, kind, result.matched and committed, db_path=db_path)
    return committed


@otp_bp.route("/accounts/<string:account>/verify_hotp", methods=["POST"])
def verify_account_hotp(account):
    data = _json_body()
    secret = _secret(data)
    code = _string_field(data, "code")
    previous = get_moving_factor(account, "hotp", db_path=current_app.config["DATABASE_FILE"])

    result = verify_hotp(
        secret,
        code,
        previous,
        _int_field(data, "window", current_app.config["HOTP_WINDOW"]),
        **_token_settings(data),
    )
    if not _commit(account, "hotp", previous, result):
        return jsonify({"matched": False, "error": "ConcurrentUpdate"}), 409

    if result.matched:
        logger.info("HOTP accepted for %s (counter=%s)", account, result.moving_factor)
    return jsonify({"matched": result.matched, "counter": result.moving_factor})


@otp_bp.route("/accounts/<string:account>/verify_totp", methods=["POST"])
def verify_account_totp(account):
    # the step committed to the store comes from the server clock, never the body
    data = _json_body()
    secret = _secret(data)
    code = _string_field(data, "code")
    previous = get_moving_factor(account, "totp", db_path=current_app.config["DATABASE_FILE"])

    result = verify_totp(
        secret,
        code,
        time.time(),
        steps_back=_int_field(data, "steps_back", current_app.config["TOTP_STEPS_BACK"]),
        steps_forward=_int_field(data, "steps_forward", current_app.config["TOTP_STEPS_FORWARD"]),
        last_accepted_step=previous,
        **_totp_settings(data),
    )
    if not _commit(account, "totp", previous, result):
        return jsonify({"matched": False, "error": "ConcurrentUpdate"}), 409

    if result.matched:
        logger.info("TOTP accepted for %s (step=%s)", account, result.moving_factor)
    return jsonify({"matched": result.matched, "step": result.moving_factor})


@otp_bp.route("/accounts/<string:account>/attempts", methods=["GET"])
def account_attempts(account):
    limit = current_app.config["ATTEMPT_LOG_LIMIT"]
    attempts = recent_attempts(account, limit, db_path=current_app.config["DATABASE_FILE"])
    return jsonify({"account": account, "attempts": attempts})
