"""
authenticator.py — per-token configuration bundled with the generate/verify calls.
"""

import time
from typing import Optional, Union

from .enrollment import OtpAuthParameters, build_otpauth_uri, decode_base32_secret, parse_otpauth_uri
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_T0,
    DEFAULT_TIME_STEP,
    HashVariant,
    Number,
    check_digits,
    check_secret,
    check_time_step,
    hotp,
    totp,
)
from .validators import DEFAULT_HOTP_WINDOW, DEFAULT_TOTP_STEPS, ValidationResult, verify_hotp, verify_totp


class Authenticator(object):
    """
    Handler for one shared secret and its token settings.

    >>> auth = Authenticator(b"12345678901234567890")
    >>> auth.generate_hotp(0)
    '755224'
    """

    def __init__(
        self,
        secret: bytes,
        digits: int = DEFAULT_DIGITS,
        algorithm: Union[HashVariant, str] = HashVariant.SHA1,
        period: int = DEFAULT_TIME_STEP,
        t0: Number = DEFAULT_T0,
    ) -> None:
        self.secret = check_secret(secret)
        self.digits = check_digits(digits)
        self.algorithm = HashVariant.parse(algorithm)
        self.period = check_time_step(period)
        self.t0 = t0

    @classmethod
    def from_base32(cls, secret_b32: str, digits: int = DEFAULT_DIGITS, **kwargs) -> "Authenticator":
        return cls(decode_base32_secret(secret_b32), digits, **kwargs)

    @classmethod
    def from_token_uri(cls, uri: str) -> "Authenticator":
        params = parse_otpauth_uri(uri)
        return cls(params.secret, params.digits, params.algorithm, params.period)

    def __repr__(self) -> str:
        return (
            f"Authenticator(digits={self.digits}, algorithm={self.algorithm}, "
            f"period={self.period}, t0={self.t0})"
        )

    def generate_hotp(self, counter: int) -> str:
        return hotp(self.secret, counter, self.digits, self.algorithm)

    def generate_totp(self, for_time: Optional[Number] = None) -> str:
        """Code for ``for_time`` (epoch seconds); the current wall clock when None."""
        if for_time is None:
            for_time = time.time()
        return totp(self.secret, for_time, self.period, self.t0, self.digits, self.algorithm)

    def verify_hotp(
        self, code: str, last_counter: Optional[int], window: int = DEFAULT_HOTP_WINDOW
    ) -> ValidationResult:
        return verify_hotp(self.secret, code, last_counter, window, self.digits, self.algorithm)

    def verify_totp(
        self,
        code: str,
        for_time: Optional[Number] = None,
        steps_back: int = DEFAULT_TOTP_STEPS,
        steps_forward: int = DEFAULT_TOTP_STEPS,
        last_accepted_step: Optional[int] = None,
    ) -> ValidationResult:
        if for_time is None:
            for_time = time.time()
        return verify_totp(
            self.secret,
            code,
            for_time,
            steps_back=steps_back,
            steps_forward=steps_forward,
            timestep=self.period,
            t0=self.t0,
            digits=self.digits,
            algorithm=self.algorithm,
            last_accepted_step=last_accepted_step,
        )

    def provisioning_uri(
        self, label: str, issuer: Optional[str] = None, kind: str = "totp", counter: int = 0
    ) -> str:
        """
        Return the otpauth:// URI for this token, ready to be shown as a QR code.

        :param label: account name, e.g. alice@example.com
        :param issuer: organisation shown in the authenticator app
        :param kind: "totp" or "hotp"
        :param counter: initial counter for HOTP tokens
        """
        return build_otpauth_uri(
            OtpAuthParameters(
                otp_type=kind,
                secret=self.secret,
                label=label,
                issuer=issuer,
                algorithm=self.algorithm,
                digits=self.digits,
                period=self.period,
                counter=counter,
            )
        )
