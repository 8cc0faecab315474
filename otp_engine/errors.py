"""
errors.py — error kinds raised by the OTP engine.

Every error here means "the system is misconfigured", never "the user typed
a wrong code". A wrong code is reported by the validators as NOT_MATCHED.
"""


class OtpError(ValueError):
    """Base class for every configuration / contract error of the engine."""

    kind = "OtpError"


class InvalidSecret(OtpError):
    kind = "InvalidSecret"


class EmptySecret(InvalidSecret):
    kind = "EmptySecret"


class InvalidDigitCount(OtpError):
    kind = "InvalidDigitCount"


class InvalidTimeStep(OtpError):
    kind = "InvalidTimeStep"


class ClockBeforeEpoch(OtpError):
    kind = "ClockBeforeEpoch"


class InvalidDigestLength(OtpError):
    """HMAC output too short for dynamic truncation. Should be unreachable."""

    kind = "InvalidDigestLength"


class CounterExhausted(OtpError):
    """The 64-bit moving factor is saturated; the account must be re-provisioned."""

    kind = "CounterExhausted"


class InvalidCounter(OtpError):
    kind = "InvalidCounter"


class InvalidWindow(OtpError):
    kind = "InvalidWindow"


class UnsupportedAlgorithm(OtpError):
    kind = "UnsupportedAlgorithm"


class InvalidTokenURI(OtpError):
    kind = "InvalidTokenURI"
