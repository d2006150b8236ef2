#!/usr/bin/env python3
"""
otp_core.py — Core library for TOTP / HOTP code derivation.

Goals:
- Pure functions only: base32 decoding, HMAC, HOTP/TOTP, otpauth URIs.
- No argparse / terminal loop here — see otp_cli.py and otp_generator.py.
- No file I/O: secrets are passed in as base32 strings and decoded
  only for the duration of one code computation.

Security notes:
- HMAC-SHA1 per RFC4226/6238 (what Google Authenticator and friends expect).
- Secrets are never kept decoded; the vault stores the base32 text.
"""

from typing import NamedTuple
from urllib.parse import quote
import base64
import hmac
import hashlib
import struct
import time

import pyotp

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # standard: 6 digits
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
MAX_COUNTER = 2 ** 64       # counters are 8-byte unsigned


class InvalidSecretError(ValueError):
    """Raised when a base32 secret decodes to zero bytes of key material."""


class TOTPResult(NamedTuple):
    code: str
    time_remaining: int


# --- Base32 ----------------------------------------------------------------
def base32_decode(text: str) -> bytes:
    """
    Permissive RFC4648 base32 decode.

    - ASCII letters are upper-cased; nothing else is case-folded, so
      characters like "ß" or "ı" are skipped rather than turned into letters.
    - Characters outside A-Z2-7 (including '=' padding) are skipped, not rejected.
    - Bits are packed 5 per character and cut into bytes from the start;
      trailing bits that do not fill a whole byte are discarded.

    Returns b"" for empty or all-invalid input. Callers must treat that as an
    unusable secret, never as a zero-length key.
    """
    buffer = 0
    bits = 0
    out = bytearray()
    for ch in text:
        if ch.isascii():
            ch = ch.upper()
        val = BASE32_ALPHABET.find(ch)
        if val < 0:
            continue
        buffer = (buffer << 5) | val
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
            buffer &= (1 << bits) - 1
    return bytes(out)


def base32_encode(raw: bytes) -> str:
    """Encode bytes as base32 without '=' padding."""
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def generate_base32_secret() -> str:
    """
    Generate a random 160-bit secret, returned as unpadded base32.

    Suitable for importing into Google Authenticator / Authy.
    """
    return pyotp.random_base32()


# --- RFC helpers -----------------------------------------------------------
def hmac_digest(key: bytes, message: bytes, digest: str = "sha1") -> bytes:
    """
    Keyed hash over message (RFC2104).

    digest: any hashlib name; "sha1" for OTP (20 bytes), "sha256" (32 bytes)
    is the PBKDF2 primitive used by the vault.
    """
    return hmac.new(key, message, getattr(hashlib, digest)).digest()


def int_to_bytes(i: int) -> bytes:
    """
    Encode the counter as 8-byte big-endian as RFC4226 requires.

    Example: int_to_bytes(1) -> b'\x00\x00\x00\x00\x00\x00\x00\x01'

    Raises:
        ValueError: counter outside the unsigned 64-bit range
    """
    if not 0 <= i < MAX_COUNTER:
        raise ValueError(f"Counter out of range: {i}")
    return struct.pack(">Q", i)


def dynamic_truncate(digest: bytes) -> int:
    """
    RFC4226 dynamic truncation.

    - offset = last_byte & 0x0F
    - take 4 bytes at offset, clear the MSB (0x7F) of the first one
    - return the 31-bit unsigned integer
    """
    # offset in range 0..15 (SHA1 digest length is 20)
    offset = digest[-1] & 0x0F
    code = (
        ((digest[offset] & 0x7F) << 24)
        | ((digest[offset + 1] & 0xFF) << 16)
        | ((digest[offset + 2] & 0xFF) << 8)
        | (digest[offset + 3] & 0xFF)
    )
    return code


def hotp(secret_b32: str, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    """
    HOTP code per RFC4226.

    Steps:
    1. Base32-decode secret -> raw key bytes
    2. Message = 8-byte counter (big-endian)
    3. HMAC-SHA1(key, message)
    4. Dynamic truncate -> dbc
    5. otp = dbc % 10^digits, zero-padded to "digits" characters

    Raises:
        InvalidSecretError: secret yields no key bytes
        ValueError: counter outside the unsigned 64-bit range
    """
    key = base32_decode(secret_b32)
    if not key:
        raise InvalidSecretError("Invalid Base32 secret")

    msg = int_to_bytes(counter)
    digest = hmac_digest(key, msg, "sha1")

    dbc = dynamic_truncate(digest)
    otp_val = dbc % (10 ** digits)
    return str(otp_val).zfill(digits)


def totp(
    secret_b32: str,
    timestamp: int = None,
    timestep: int = DEFAULT_TIME_STEP,
    t0: int = 0,
    digits: int = DEFAULT_DIGITS,
) -> TOTPResult:
    """
    TOTP per RFC6238: HOTP with counter = floor((now - T0) / X).

    Arguments:
        secret_b32: Base32 secret
        timestamp: epoch seconds (None -> time.time()); fractions are floored
        timestep: X in seconds, must be positive
        t0: start time offset
        digits: number of OTP digits

    Returns:
        TOTPResult(code, time_remaining) — unpacks as (code, remaining)
    """
    if timestep <= 0:
        raise ValueError("Time step must be positive")
    if timestamp is None:
        timestamp = time.time()
    timestamp = int(timestamp // 1)

    counter = (timestamp - t0) // timestep
    code = hotp(secret_b32, counter, digits)
    remaining = int(timestep - ((timestamp - t0) % timestep))
    return TOTPResult(code, remaining)


def generate_totp(secret: str, time_step: int = DEFAULT_TIME_STEP, now: float = None) -> TOTPResult:
    """6-digit TOTP for a vault entry. Same code for every `now` inside one interval."""
    return totp(secret, timestamp=now, timestep=time_step, digits=DEFAULT_DIGITS)


def format_otpauth_uri(
    secret_b32: str,
    account: str,
    issuer: str,
    algo: str = "SHA1",
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_TIME_STEP,
) -> tuple:
    """
    Build otpauth:// URIs for TOTP and HOTP, for import into Authenticator apps.

    - TOTP URI: otpauth://totp/{issuer}:{account}?secret=...&issuer=...&algorithm=...&digits=...&period=...
    - HOTP URI: otpauth://hotp/{issuer}:{account}?secret=...&issuer=...&algorithm=...&digits=...&counter=0

    Account and issuer are URL-quoted.

    Returns:
        (totp_uri, hotp_uri)
    """
    label = f"{quote(issuer)}:{quote(account)}"
    issuer_q = quote(issuer)
    totp_uri = (
        f"otpauth://totp/{label}?secret={secret_b32}&issuer={issuer_q}"
        f"&algorithm={algo}&digits={digits}&period={period}"
    )
    hotp_uri = (
        f"otpauth://hotp/{label}?secret={secret_b32}&issuer={issuer_q}"
        f"&algorithm={algo}&digits={digits}&counter=0"
    )
    return totp_uri, hotp_uri


# If this module is executed directly, do nothing — it's core-only for import.
if __name__ == "__main__":
    print("otp_core.py is a library module. Use `totp-vault` or import it instead.")
