"""
otp_core.py — HOTP / TOTP generation (RFC 4226 & RFC 6238).

Pure functions only: no I/O, no process-wide state. The secret is passed in
as raw bytes on every call and is never stored or logged here.

    code = Truncate(HMAC-<hash>(key=secret, msg=counter)) mod 10^digits
    TOTP counter = floor((timestamp - T0) / timestep)
"""

import enum
import hashlib
import hmac
import logging
import math
import struct
from typing import Union

from .errors import (
    ClockBeforeEpoch,
    CounterExhausted,
    EmptySecret,
    InvalidCounter,
    InvalidDigestLength,
    InvalidDigitCount,
    InvalidSecret,
    InvalidTimeStep,
    UnsupportedAlgorithm,
)

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # RFC 4226 minimum, what authenticator apps expect
MIN_DIGITS = 6
MAX_DIGITS = 9              # a 31-bit value has 10 digits, the 10th is biased
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
DEFAULT_T0 = 0
MAX_COUNTER = 2 ** 64 - 1   # moving factor is an unsigned 64-bit integer

Number = Union[int, float]


class HashVariant(enum.Enum):
    """Keyed-hash function used for the HMAC, with its digest length in bytes."""

    SHA1 = ("SHA1", 20)
    SHA256 = ("SHA256", 32)
    SHA512 = ("SHA512", 64)

    def __init__(self, label: str, digest_size: int) -> None:
        self.label = label
        self.digest_size = digest_size

    @property
    def hashlib_name(self) -> str:
        return self.label.lower()

    @classmethod
    def parse(cls, value: Union["HashVariant", str]) -> "HashVariant":
        """
        Accept a HashVariant or a name such as "SHA1", "sha-256", "SHA512".

        Raises:
            UnsupportedAlgorithm: for anything else (MD5, SHA224, ...)
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper().replace("-", "").replace("_", "")
            for variant in cls:
                if variant.label == name:
                    return variant
        raise UnsupportedAlgorithm(
            f"unsupported algorithm {value!r}, must be SHA1, SHA256 or SHA512"
        )

    def __str__(self) -> str:
        return self.label


# --- Argument checks ---------------------------------------------------------
def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_digits(digits: int) -> int:
    if not _is_int(digits) or not MIN_DIGITS <= digits <= MAX_DIGITS:
        raise InvalidDigitCount(
            f"digits must be an integer between {MIN_DIGITS} and {MAX_DIGITS}, got {digits!r}"
        )
    return digits


def check_secret(secret: bytes) -> bytes:
    if not isinstance(secret, (bytes, bytearray, memoryview)):
        raise InvalidSecret(
            "secret must be raw bytes; decode base32 secrets with decode_base32_secret()"
        )
    secret = bytes(secret)
    if not secret:
        raise EmptySecret("secret must be at least 1 byte long")
    return secret


def check_counter(counter: int) -> int:
    if not _is_int(counter) or not 0 <= counter <= MAX_COUNTER:
        raise InvalidCounter(f"counter must be an unsigned 64-bit integer, got {counter!r}")
    return counter


def check_time_step(timestep: int) -> int:
    if not _is_int(timestep) or timestep <= 0:
        raise InvalidTimeStep(f"time step must be a positive integer of seconds, got {timestep!r}")
    return timestep


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Encode a counter as the 8-byte big-endian message RFC 4226 requires.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    Apply RFC 4226 dynamic truncation (section 5.3).

    - offset = last_byte & 0x0F
    - read 4 bytes from offset as a big-endian unsigned integer
    - clear the sign bit, leaving a 31-bit value

    Arguments:
        hmac_digest: HMAC output (20/32/64 bytes for SHA1/256/512)

    Raises:
        InvalidDigestLength: if the digest is shorter than offset + 4
    """
    if not hmac_digest:
        raise InvalidDigestLength("digest is empty")
    offset = hmac_digest[-1] & 0x0F
    if len(hmac_digest) < offset + 4:
        raise InvalidDigestLength(
            f"digest of {len(hmac_digest)} bytes too short for offset {offset}"
        )
    (value,) = struct.unpack(">I", bytes(hmac_digest[offset:offset + 4]))
    return value & 0x7FFFFFFF


def truncate(hmac_digest: bytes, digits: int = DEFAULT_DIGITS) -> str:
    """Truncate a digest to a zero-padded code of exactly ``digits`` characters."""
    check_digits(digits)
    return str(dynamic_truncate(hmac_digest) % 10 ** digits).zfill(digits)


def hmac_digest(secret: bytes, counter: int, algorithm: HashVariant = HashVariant.SHA1) -> bytes:
    return hmac.new(secret, int_to_bytes(counter), algorithm.hashlib_name).digest()


# --- Generators ------------------------------------------------------------
def hotp(
    secret: bytes,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[HashVariant, str] = HashVariant.SHA1,
) -> str:
    """
    Generate an HOTP code (RFC 4226).

    Steps:
    1. Message = 8-byte big-endian counter
    2. HMAC-<algorithm>(key=secret, message)
    3. Dynamic truncation -> 31-bit integer
    4. mod 10^digits, zero-padded to ``digits`` characters

    Arguments:
        secret: raw shared secret bytes (at least 1 byte)
        counter: unsigned 64-bit moving factor
        digits: code length, 6..9
        algorithm: HashVariant or its name

    Returns:
        str: the code, always exactly ``digits`` ASCII digits

    Raises:
        EmptySecret, InvalidSecret, InvalidCounter, InvalidDigitCount,
        UnsupportedAlgorithm
    """
    secret = check_secret(secret)
    check_counter(counter)
    check_digits(digits)
    variant = HashVariant.parse(algorithm)

    digest = hmac_digest(secret, counter, variant)
    if len(digest) != variant.digest_size:
        raise InvalidDigestLength(
            f"{variant} produced {len(digest)} bytes, expected {variant.digest_size}"
        )
    return truncate(digest, digits)


def time_step(timestamp: Number, timestep: int = DEFAULT_TIME_STEP, t0: Number = DEFAULT_T0) -> int:
    """
    Derive the TOTP moving factor floor((timestamp - t0) / timestep).

    Raises:
        InvalidTimeStep: if timestep <= 0
        ClockBeforeEpoch: if timestamp < t0
        CounterExhausted: if the step does not fit in 64 bits
    """
    check_time_step(timestep)
    if timestamp < t0:
        raise ClockBeforeEpoch(f"time {timestamp} is before T0 {t0}")
    step = int(math.floor(timestamp - t0)) // timestep
    if step > MAX_COUNTER:
        raise CounterExhausted(f"time step {step} exceeds the 64-bit counter range")
    return step


def totp_remaining(timestamp: Number, timestep: int = DEFAULT_TIME_STEP, t0: Number = DEFAULT_T0) -> int:
    """Seconds left before the code for ``timestamp`` rolls over."""
    check_time_step(timestep)
    if timestamp < t0:
        raise ClockBeforeEpoch(f"time {timestamp} is before T0 {t0}")
    return timestep - int(math.floor(timestamp - t0)) % timestep


def totp(
    secret: bytes,
    timestamp: Number,
    timestep: int = DEFAULT_TIME_STEP,
    t0: Number = DEFAULT_T0,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[HashVariant, str] = HashVariant.SHA1,
) -> str:
    """
    Generate a TOTP code (RFC 6238): HOTP with counter = time_step(timestamp).

    Two timestamps inside the same step always produce the same code. The
    caller supplies the clock; use ``time.time()`` for "now".
    """
    counter = time_step(timestamp, timestep, t0)
    logger.debug("TOTP: time=%s step=%s counter=%s", timestamp, timestep, counter)
    return hotp(secret, counter, digits, algorithm)
