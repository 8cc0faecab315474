"""
Backend package: Flask HTTP API around otp_engine.
"""

from .app import create_app

__all__ = ["create_app"]
