"""
validators.py — HOTP / TOTP verification with drift windows and replay protection.

The validators hold no state. The caller passes in the last accepted moving
factor and, on a match, must atomically persist the returned one before
accepting the login (see otp_database.db_manager.compare_and_set_moving_factor).
"""

import hmac
import logging
import unicodedata
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from .errors import ClockBeforeEpoch, CounterExhausted, InvalidCounter, InvalidWindow
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_T0,
    DEFAULT_TIME_STEP,
    MAX_COUNTER,
    HashVariant,
    Number,
    check_digits,
    check_secret,
    check_time_step,
    hotp,
    time_step,
)

logger = logging.getLogger(__name__)

DEFAULT_HOTP_WINDOW = 3
DEFAULT_TOTP_STEPS = 1


@dataclass(frozen=True)
class ValidationResult:
    """Matched(moving_factor) or NotMatched. Truthy only when matched."""

    matched: bool
    moving_factor: Optional[int] = None

    def __post_init__(self) -> None:
        # a match always carries the moving factor to persist, a miss never does
        if self.matched is not (self.moving_factor is not None):
            raise ValueError(
                f"inconsistent validation result: matched={self.matched!r}, "
                f"moving_factor={self.moving_factor!r}"
            )

    def __bool__(self) -> bool:
        return self.matched


NOT_MATCHED = ValidationResult(False)


def Matched(moving_factor: int) -> ValidationResult:
    return ValidationResult(True, moving_factor)


def strings_equal(s1: str, s2: str) -> bool:
    """
    Timing-attack resistant string comparison.

    Both strings are NFKC-normalised (so full-width digits compare equal) and
    compared with hmac.compare_digest, which scans the whole input instead of
    returning at the first mismatching character. Only the length leaks.
    Lone surrogates (JSON "\\ud800") are encoded as-is so they simply do not
    match.
    """
    s1 = unicodedata.normalize("NFKC", s1)
    s2 = unicodedata.normalize("NFKC", s2)
    return hmac.compare_digest(
        s1.encode("utf-8", "surrogatepass"), s2.encode("utf-8", "surrogatepass")
    )


def _check_window(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InvalidWindow(f"{name} must be a non-negative integer, got {value!r}")
    return value


def verify_hotp(
    secret: bytes,
    code: str,
    last_counter: Optional[int],
    window: int = DEFAULT_HOTP_WINDOW,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[HashVariant, str] = HashVariant.SHA1,
) -> ValidationResult:
    """
    Verify an HOTP code against counters last_counter+1 .. last_counter+1+window.

    Counters are probed in ascending order and the first match wins. The
    last accepted counter itself is never probed again, so a code can only
    be used once.

    Arguments:
        secret: raw shared secret bytes
        code: the code typed by the user
        last_counter: last accepted counter, or None if no code was accepted yet
            (probing then starts at counter 0)
        window: how many counters beyond the next one to look ahead
        digits, algorithm: token configuration

    Returns:
        Matched(new_counter) or NOT_MATCHED

    Raises:
        CounterExhausted: last_counter is already 2**64 - 1
        InvalidCounter, InvalidWindow, InvalidDigitCount, EmptySecret, ...
    """
    secret = check_secret(secret)
    check_digits(digits)
    variant = HashVariant.parse(algorithm)
    _check_window("window", window)

    if last_counter is None:
        first = 0
    else:
        if not isinstance(last_counter, int) or isinstance(last_counter, bool) or last_counter < 0:
            raise InvalidCounter(f"last counter must be an unsigned 64-bit integer, got {last_counter!r}")
        if last_counter >= MAX_COUNTER:
            raise CounterExhausted("HOTP counter exhausted; the token must be re-provisioned")
        first = last_counter + 1
    last = min(first + window, MAX_COUNTER)

    if not isinstance(code, str):
        return NOT_MATCHED

    for counter in range(first, last + 1):
        expected = hotp(secret, counter, digits, variant)
        if strings_equal(code, expected):
            logger.debug("HOTP matched at offset %d", counter - first)
            return Matched(counter)
    return NOT_MATCHED


def candidate_steps(base_step: int, steps_back: int, steps_forward: int) -> Iterator[int]:
    """
    Yield the steps of [base - steps_back, base + steps_forward], closest first.

    At equal distance the earlier step comes before the later one. Negative
    steps are skipped.
    """
    for distance in range(max(steps_back, steps_forward) + 1):
        if distance == 0:
            yield base_step
            continue
        if distance <= steps_back and base_step - distance >= 0:
            yield base_step - distance
        if distance <= steps_forward and base_step + distance <= MAX_COUNTER:
            yield base_step + distance


def verify_totp(
    secret: bytes,
    code: str,
    timestamp: Number,
    steps_back: int = DEFAULT_TOTP_STEPS,
    steps_forward: int = DEFAULT_TOTP_STEPS,
    timestep: int = DEFAULT_TIME_STEP,
    t0: Number = DEFAULT_T0,
    digits: int = DEFAULT_DIGITS,
    algorithm: Union[HashVariant, str] = HashVariant.SHA1,
    last_accepted_step: Optional[int] = None,
) -> ValidationResult:
    """
    Verify a TOTP code, tolerating client/server clock skew.

    Steps in [base - steps_back, base + steps_forward] are probed closest
    first, where base = floor((timestamp - t0) / timestep). Steps at or
    before ``last_accepted_step`` are skipped so a code cannot be replayed
    inside its validity window.

    Returns:
        Matched(step): the caller stores ``step`` as the new last_accepted_step
        NOT_MATCHED otherwise
    """
    secret = check_secret(secret)
    check_digits(digits)
    check_time_step(timestep)
    variant = HashVariant.parse(algorithm)
    _check_window("steps_back", steps_back)
    _check_window("steps_forward", steps_forward)
    if last_accepted_step is not None and (
        not isinstance(last_accepted_step, int) or isinstance(last_accepted_step, bool)
        or not 0 <= last_accepted_step <= MAX_COUNTER
    ):
        raise InvalidCounter(
            f"last accepted step must be an unsigned 64-bit integer, got {last_accepted_step!r}"
        )
    if timestamp < t0:
        raise ClockBeforeEpoch(f"time {timestamp} is before T0 {t0}")

    base_step = time_step(timestamp, timestep, t0)

    if not isinstance(code, str):
        return NOT_MATCHED

    for step in candidate_steps(base_step, steps_back, steps_forward):
        if last_accepted_step is not None and step <= last_accepted_step:
            continue
        expected = hotp(secret, step, digits, variant)
        if strings_equal(code, expected):
            logger.debug("TOTP matched at skew %+d steps", step - base_step)
            return Matched(step)
    return NOT_MATCHED
