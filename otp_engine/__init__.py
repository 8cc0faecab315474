"""
otp_engine package
==================

HOTP / TOTP generation and verification per RFC 4226 & RFC 6238.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP: code = Truncate(HMAC-<hash>(key=secret, msg=counter)) mod 10^digits
- TOTP: HOTP with counter = floor((timestamp - T0) / timestep)
- Dynamic truncation: 4 bytes at offset (last byte & 0x0F), sign bit cleared.

──────────────────────────────────────────────
Usage
──────────────────────────────────────────────
    from otp_engine import decode_base32_secret, verify_totp

    secret = decode_base32_secret(stored_b32)
    result = verify_totp(secret, user_input, time.time(),
                         last_accepted_step=account.last_step)
    if result:
        # commit atomically before accepting the login
        store.compare_and_set(account, account.last_step, result.moving_factor)

A wrong code is NOT_MATCHED, never an exception. Exceptions (OtpError
subclasses) mean the token configuration is broken.
"""

from .authenticator import Authenticator
from .enrollment import (
    OtpAuthParameters,
    build_otpauth_uri,
    decode_base32_secret,
    encode_base32_secret,
    parse_otpauth_uri,
)
from .errors import (
    ClockBeforeEpoch,
    CounterExhausted,
    EmptySecret,
    InvalidCounter,
    InvalidDigestLength,
    InvalidDigitCount,
    InvalidSecret,
    InvalidTimeStep,
    InvalidTokenURI,
    InvalidWindow,
    OtpError,
    UnsupportedAlgorithm,
)
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_T0,
    DEFAULT_TIME_STEP,
    MAX_COUNTER,
    MAX_DIGITS,
    MIN_DIGITS,
    HashVariant,
    dynamic_truncate,
    hotp,
    time_step,
    totp,
    totp_remaining,
    truncate,
)
from .validators import (
    DEFAULT_HOTP_WINDOW,
    DEFAULT_TOTP_STEPS,
    NOT_MATCHED,
    Matched,
    ValidationResult,
    verify_hotp,
    verify_totp,
)

__version__ = "1.0.0"

# language-neutral names
hotp_generate = hotp
totp_generate = totp
hotp_validate = verify_hotp
totp_validate = verify_totp

__all__ = [
    "Authenticator",
    "OtpAuthParameters",
    "build_otpauth_uri",
    "decode_base32_secret",
    "encode_base32_secret",
    "parse_otpauth_uri",
    "ClockBeforeEpoch",
    "CounterExhausted",
    "EmptySecret",
    "InvalidCounter",
    "InvalidDigestLength",
    "InvalidDigitCount",
    "InvalidSecret",
    "InvalidTimeStep",
    "InvalidTokenURI",
    "InvalidWindow",
    "OtpError",
    "UnsupportedAlgorithm",
    "DEFAULT_DIGITS",
    "DEFAULT_T0",
    "DEFAULT_TIME_STEP",
    "MAX_COUNTER",
    "MAX_DIGITS",
    "MIN_DIGITS",
    "HashVariant",
    "dynamic_truncate",
    "hotp",
    "time_step",
    "totp",
    "totp_remaining",
    "truncate",
    "DEFAULT_HOTP_WINDOW",
    "DEFAULT_TOTP_STEPS",
    "NOT_MATCHED",
    "Matched",
    "ValidationResult",
    "verify_hotp",
    "verify_totp",
    "hotp_generate",
    "totp_generate",
    "hotp_validate",
    "totp_validate",
]
