#!/usr/bin/env python3
"""
otp_cli.py — stateless command line wrapper around the OTP engine.

Subcommands:
- hotp   : HOTP code for a counter
- totp   : TOTP code for now (or --time)
- verify : verify a TOTP/HOTP code and print the moving factor to persist
- uri    : print the otpauth:// URI for the secret

The secret is given as base32 with --secret or taken from an otpauth:// URI
with --uri. Nothing is written to disk.

Exit status: 0 ok / matched, 1 not matched, 2 configuration error.
"""

import argparse
import logging
import sys
import time

from .authenticator import Authenticator
from .enrollment import parse_otpauth_uri
from .errors import OtpError
from .otp_core import DEFAULT_DIGITS, DEFAULT_T0, DEFAULT_TIME_STEP, time_step, totp_remaining
from .validators import DEFAULT_HOTP_WINDOW, DEFAULT_TOTP_STEPS

EXIT_OK = 0
EXIT_NOT_MATCHED = 1
EXIT_ERROR = 2


def _authenticator(args) -> Authenticator:
    if args.uri:
        params = parse_otpauth_uri(args.uri)
        # explicit options win over what the URI says
        return Authenticator(
            params.secret,
            digits=args.digits if args.digits is not None else params.digits,
            algorithm=args.algorithm or params.algorithm,
            period=args.period if args.period is not None else params.period,
            t0=args.t0,
        )
    if not args.secret:
        raise OtpError("either --secret or --uri is required")
    return Authenticator.from_base32(
        args.secret,
        digits=args.digits if args.digits is not None else DEFAULT_DIGITS,
        algorithm=args.algorithm or "SHA1",
        period=args.period if args.period is not None else DEFAULT_TIME_STEP,
        t0=args.t0,
    )


def _now(args):
    return args.time if args.time is not None else int(time.time())


# --- CLI command handlers ---
def cmd_hotp(args) -> int:
    auth = _authenticator(args)
    code = auth.generate_hotp(args.counter)
    print(f"HOTP({auth.digits}d, counter={args.counter}): {code}")
    return EXIT_OK


def cmd_totp(args) -> int:
    auth = _authenticator(args)
    now = _now(args)
    code = auth.generate_totp(now)
    step = time_step(now, auth.period, auth.t0)
    remaining = totp_remaining(now, auth.period, auth.t0)
    print(f"TOTP({auth.digits}d, step={step}): {code}  (valid ~{remaining:2d}s)")
    return EXIT_OK


def cmd_verify_hotp(args) -> int:
    auth = _authenticator(args)
    result = auth.verify_hotp(args.code, args.last_counter, args.window)
    if result:
        print(f"[+] HOTP code is VALID (persist counter = {result.moving_factor})")
        return EXIT_OK
    print("[-] HOTP code is INVALID")
    return EXIT_NOT_MATCHED


def cmd_verify_totp(args) -> int:
    auth = _authenticator(args)
    result = auth.verify_totp(
        args.code,
        _now(args),
        steps_back=args.steps_back,
        steps_forward=args.steps_forward,
        last_accepted_step=args.last_step,
    )
    if result:
        print(f"[+] TOTP code is VALID (persist step = {result.moving_factor})")
        return EXIT_OK
    print("[-] TOTP code is INVALID")
    return EXIT_NOT_MATCHED


def cmd_uri(args) -> int:
    auth = _authenticator(args)
    print(auth.provisioning_uri(args.label, issuer=args.issuer, kind=args.type, counter=args.counter))
    return EXIT_OK


# --- Argparse builder ---
def _add_token_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--secret", help="Shared secret, base32")
    p.add_argument("--uri", help="otpauth:// URI to take the secret and settings from")
    p.add_argument("--digits", type=int, help=f"Number of digits (default {DEFAULT_DIGITS})")
    p.add_argument("--algorithm", help="SHA1 (default), SHA256 or SHA512")
    p.add_argument("--period", type=int, help=f"TOTP time step in seconds (default {DEFAULT_TIME_STEP})")
    p.add_argument("--t0", type=int, default=DEFAULT_T0, help="TOTP epoch (default 0)")
    p.add_argument("--verbose", action="store_true", help="Debug logging")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="otp-engine", description="HOTP/TOTP generator and verifier")
    sub = p.add_subparsers(dest="cmd")

    # hotp
    ph = sub.add_parser("hotp", help="Generate HOTP code for a specific counter")
    _add_token_options(ph)
    ph.add_argument("--counter", type=int, required=True)
    ph.set_defaults(func=cmd_hotp)

    # totp
    pt = sub.add_parser("totp", help="Generate the TOTP code")
    _add_token_options(pt)
    pt.add_argument("--time", type=int, help="Unix time to use instead of now")
    pt.set_defaults(func=cmd_totp)

    # uri
    pu = sub.add_parser("uri", help="Print the otpauth URI")
    _add_token_options(pu)
    pu.add_argument("--label", required=True, help="Account label, e.g. alice@example.com")
    pu.add_argument("--issuer", help="Issuer label")
    pu.add_argument("--type", choices=("totp", "hotp"), default="totp")
    pu.add_argument("--counter", type=int, default=0, help="Initial HOTP counter")
    pu.set_defaults(func=cmd_uri)

    # verify
    pv = sub.add_parser("verify", help="Verify an OTP code (TOTP or HOTP)")
    sub_v = pv.add_subparsers(dest="verify_type")

    pvh = sub_v.add_parser("hotp", help="Verify a HOTP code")
    _add_token_options(pvh)
    pvh.add_argument("--code", required=True, help="OTP code to verify")
    pvh.add_argument("--last-counter", type=int, help="Last accepted counter (omit if none yet)")
    pvh.add_argument("--window", type=int, default=DEFAULT_HOTP_WINDOW, help="Counter look-ahead")
    pvh.set_defaults(func=cmd_verify_hotp)

    pvt = sub_v.add_parser("totp", help="Verify a TOTP code")
    _add_token_options(pvt)
    pvt.add_argument("--code", required=True, help="OTP code to verify")
    pvt.add_argument("--time", type=int, help="Unix time to use instead of now")
    pvt.add_argument("--steps-back", type=int, default=DEFAULT_TOTP_STEPS)
    pvt.add_argument("--steps-forward", type=int, default=DEFAULT_TOTP_STEPS)
    pvt.add_argument("--last-step", type=int, help="Last accepted time step")
    pvt.set_defaults(func=cmd_verify_totp)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_ERROR

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except OtpError as e:
        print(f"[!] {type(e).__name__}: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
