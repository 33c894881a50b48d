"""
Security module for the application.

This module provides:
- Security headers for API responses
- Security logging
"""

from flask import Flask

from .security_headers import SecurityHeaders
from .security_logger import SecurityLogger


def init_security(app: Flask):
    """Install the response headers and announce the security setup."""
    SecurityHeaders.init_app(app)
    hsts = "on" if app.config.get("SESSION_COOKIE_SECURE") else "off"
    app.logger.info(f"Security headers installed (HSTS {hsts})")


__all__ = [
    'SecurityHeaders',
    'SecurityLogger',
    'init_security',
]
