"""
core package
============

TOTP code derivation (RFC 4226 & RFC 6238) plus the terminal front end.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- Base32 decode (permissive): skip anything outside A-Z2-7, 5 bits per char,
  trailing partial byte dropped. An empty result is an invalid secret.

- HOTP (HMAC-based One-Time Password):
  code = Truncate(HMAC-SHA1(key=secret, msg=counter)) mod 10^digits

- TOTP (Time-based One-Time Password):
  HOTP with counter = floor(timestamp / timestep)
  → timestep defaults to 30 seconds, 6 digits, SHA-1.
  → time_remaining = timestep - (timestamp mod timestep)

- Dynamic Truncation:
  4 bytes of the HMAC at offset (last byte & 0x0F), top bit cleared.

──────────────────────────────────────────────
Modules
──────────────────────────────────────────────
- otp_core      : pure functions (base32, HMAC, hotp, totp, otpauth URIs)
- otp_generator : real-time display loop with a stop signal
- otp_cli       : argparse front end over the vault (console script `totp-vault`)

>>> from core import generate_totp
>>> generate_totp("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", 30, now=59)
TOTPResult(code='287082', time_remaining=1)
"""
# Can be imported as: from core import <func>
from core.otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    InvalidSecretError,
    TOTPResult,
    base32_decode,
    base32_encode,
    format_otpauth_uri,
    generate_base32_secret,
    generate_totp,
    hmac_digest,
    hotp,
    totp,
)
