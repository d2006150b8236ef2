"""
BACKEND PACKAGE INITIALIZATION FILE

Local JSON API (Flask) over the TOTP vault.
Integrates with the core OTP functions and the vault package.
"""

from .app import app

__all__ = ['app']
