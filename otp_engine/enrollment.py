"""
enrollment.py — base32 secrets and otpauth:// URIs for authenticator apps.

The URI looks like this:

    otpauth://totp/FooCorp:alice@example.com?secret=JBSWY3DPEHPK3PXP&issuer=FooCorp&algorithm=SHA256&digits=6&period=30

See https://github.com/google/google-authenticator/wiki/Key-Uri-Format
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Dict, Optional, Union
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlparse

from .errors import InvalidDigitCount, InvalidSecret, InvalidTimeStep, InvalidTokenURI, OtpError
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    MAX_COUNTER,
    HashVariant,
    check_counter,
    check_digits,
    check_time_step,
)

OTP_TYPES = ("totp", "hotp")


def decode_base32_secret(secret_b32: str) -> bytes:
    """
    Decode a base32 secret (RFC 4648) to raw key bytes.

    Case-insensitive; padding is optional; spaces and hyphens, which apps
    insert for readability, are ignored.

    Raises:
        InvalidSecret: if the text is empty or not valid base32
    """
    if not isinstance(secret_b32, str):
        raise InvalidSecret("base32 secret must be a string")
    cleaned = re.sub(r"[\s-]", "", secret_b32).rstrip("=").upper()
    if not cleaned:
        raise InvalidSecret("empty secret")
    missing_padding = len(cleaned) % 8
    if missing_padding:
        cleaned += "=" * (8 - missing_padding)
    try:
        raw = base64.b32decode(cleaned)
    except (binascii.Error, ValueError) as e:
        raise InvalidSecret("invalid base32 secret") from e
    if not raw:
        raise InvalidSecret("empty secret")
    return raw


def encode_base32_secret(raw: bytes) -> str:
    """Encode raw key bytes as unpadded upper-case base32."""
    return base64.b32encode(bytes(raw)).decode("ascii").rstrip("=")


@dataclass(frozen=True)
class OtpAuthParameters:
    """Everything an otpauth:// URI carries. ``secret`` holds the decoded bytes."""

    otp_type: str
    secret: bytes
    label: str
    issuer: Optional[str] = None
    algorithm: HashVariant = HashVariant.SHA1
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_TIME_STEP
    counter: int = 0

    def __repr__(self) -> str:
        # secret deliberately left out
        return (
            f"OtpAuthParameters(otp_type={self.otp_type!r}, label={self.label!r}, "
            f"issuer={self.issuer!r}, algorithm={self.algorithm}, digits={self.digits}, "
            f"period={self.period}, counter={self.counter})"
        )


def _parse_int(name: str, value: str, error: type) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise error(f"{name} must be an integer, got {value!r}") from e


def parse_otpauth_uri(uri: str) -> OtpAuthParameters:
    """
    Parse a provisioning URI; works for either TOTP or HOTP.

    Arguments:
        uri: otpauth://{totp|hotp}/[issuer:]label?secret=...

    Returns:
        OtpAuthParameters with defaults filled in (SHA1, 6 digits, 30 s, counter 0)

    Raises:
        InvalidTokenURI, InvalidSecret, InvalidDigitCount, InvalidTimeStep,
        UnsupportedAlgorithm
    """
    parsed = urlparse(uri)
    if parsed.scheme != "otpauth":
        raise InvalidTokenURI("not an otpauth URI")
    otp_type = parsed.netloc.lower()
    if otp_type not in OTP_TYPES:
        raise InvalidTokenURI(f"unsupported OTP type {parsed.netloc!r}")

    label_path = unquote(parsed.path[1:])
    issuer: Optional[str] = None
    if ":" in label_path:
        issuer, label = (part.strip() for part in label_path.split(":", 1))
    else:
        label = label_path

    secret: Optional[bytes] = None
    data: Dict[str, Union[int, HashVariant]] = {}
    for key, value in parse_qsl(parsed.query, keep_blank_values=True):
        if key == "secret":
            secret = decode_base32_secret(value)
        elif key == "issuer":
            if issuer is not None and issuer != value:
                raise InvalidTokenURI("issuer in label and parameters must be equal")
            issuer = value
        elif key == "algorithm":
            data["algorithm"] = HashVariant.parse(value)
        elif key == "digits":
            data["digits"] = check_digits(_parse_int("digits", value, InvalidDigitCount))
        elif key == "period":
            data["period"] = check_time_step(_parse_int("period", value, InvalidTimeStep))
        elif key == "counter":
            try:
                data["counter"] = check_counter(_parse_int("counter", value, InvalidTokenURI))
            except OtpError as e:
                raise InvalidTokenURI(str(e)) from e

    if secret is None:
        raise InvalidSecret("no secret found in URI")

    return OtpAuthParameters(otp_type=otp_type, secret=secret, label=label, issuer=issuer, **data)


def build_otpauth_uri(params: OtpAuthParameters) -> str:
    """
    Build the provisioning URI for ``params``; the inverse of parse_otpauth_uri.

    The result can be rendered as a QR code for Google Authenticator & co.
    """
    if params.otp_type not in OTP_TYPES:
        raise InvalidTokenURI(f"unsupported OTP type {params.otp_type!r}")

    label = quote(params.label)
    url_args: Dict[str, Union[str, int]] = {"secret": encode_base32_secret(params.secret)}
    if params.issuer is not None:
        label = quote(params.issuer) + ":" + label
        url_args["issuer"] = params.issuer
    url_args["algorithm"] = params.algorithm.label
    url_args["digits"] = check_digits(params.digits)
    if params.otp_type == "totp":
        url_args["period"] = check_time_step(params.period)
    else:
        if not 0 <= params.counter <= MAX_COUNTER:
            raise InvalidTokenURI(f"counter out of range: {params.counter}")
        url_args["counter"] = params.counter

    return "otpauth://{0}/{1}?{2}".format(
        params.otp_type, label, urlencode(url_args).replace("+", "%20")
    )
