"""
vault_crypto.py — password-based encryption of the vault file.

Two on-disk formats are understood:

- "cbc" (legacy, default):
      salt(16) | iv(16) | AES-256-CBC ciphertext (PKCS#7)
  No MAC. A wrong password and a corrupted file look the same: both fail the
  padding check (or decode to something that is not UTF-8).

- "gcm" (versioned):
      b"TOTPV" | version(1) | iterations(4, BE) | salt(16) | nonce(12) | AES-256-GCM ciphertext+tag
  The 10-byte header is authenticated as associated data, so tampering is
  detected. The KDF iteration count travels in the header.

Key derivation is PBKDF2-HMAC-SHA256 in both cases. Salt and IV/nonce are
fresh on every encrypt; the whole vault is re-encrypted on every save.
"""

from typing import Optional
import os
import struct

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

SALT_SIZE = 16
IV_SIZE = 16
NONCE_SIZE = 12
KEY_SIZE = 32
ITERATIONS = 100_000        # part of the legacy format, do not change
MAX_ITERATIONS = 10_000_000

FORMAT_CBC = "cbc"
FORMAT_GCM = "gcm"
FORMATS = (FORMAT_CBC, FORMAT_GCM)

MAGIC = b"TOTPV"
FORMAT_VERSION = 2
HEADER = struct.Struct(">5sBI")     # magic, version, iterations
GCM_TAG_SIZE = 16


def derive_key(password: str, salt: bytes, iterations: int = ITERATIONS) -> bytes:
    """Stretch password + salt into a 32-byte key (PBKDF2-HMAC-SHA256)."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def detect_format(blob: bytes) -> str:
    if blob[:len(MAGIC)] == MAGIC:
        return FORMAT_GCM
    return FORMAT_CBC


# --- legacy CBC -------------------------------------------------------------
def _encrypt_cbc(data: bytes, password: str) -> bytes:
    salt = os.urandom(SALT_SIZE)
    iv = os.urandom(IV_SIZE)
    key = derive_key(password, salt)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(data) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return salt + iv + ciphertext


def _decrypt_cbc(blob: bytes, password: str) -> Optional[bytes]:
    if len(blob) < SALT_SIZE + IV_SIZE:
        return None

    salt = blob[:SALT_SIZE]
    iv = blob[SALT_SIZE:SALT_SIZE + IV_SIZE]
    ciphertext = blob[SALT_SIZE + IV_SIZE:]

    key = derive_key(password, salt)
    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError:
        # bad padding or ciphertext not a multiple of the block size
        return None


# --- versioned GCM ----------------------------------------------------------
def _encrypt_gcm(data: bytes, password: str, iterations: int = ITERATIONS) -> bytes:
    header = HEADER.pack(MAGIC, FORMAT_VERSION, iterations)
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(password, salt, iterations)
    ciphertext = AESGCM(key).encrypt(nonce, data, header)
    return header + salt + nonce + ciphertext


def _decrypt_gcm(blob: bytes, password: str) -> Optional[bytes]:
    if len(blob) < HEADER.size + SALT_SIZE + NONCE_SIZE + GCM_TAG_SIZE:
        return None

    header = blob[:HEADER.size]
    _magic, version, iterations = HEADER.unpack(header)
    if version != FORMAT_VERSION or not 0 < iterations <= MAX_ITERATIONS:
        return None

    pos = HEADER.size
    salt = blob[pos:pos + SALT_SIZE]
    pos += SALT_SIZE
    nonce = blob[pos:pos + NONCE_SIZE]
    pos += NONCE_SIZE

    key = derive_key(password, salt, iterations)
    try:
        return AESGCM(key).decrypt(nonce, blob[pos:], header)
    except InvalidTag:
        return None


# --- public API -------------------------------------------------------------
def encrypt_data(data: str, password: str, fmt: str = FORMAT_CBC) -> bytes:
    """
    Encrypt the serialized entry list.

    Raises:
        ValueError: unknown format name
    """
    raw = data.encode("utf-8")
    if fmt == FORMAT_CBC:
        return _encrypt_cbc(raw, password)
    if fmt == FORMAT_GCM:
        return _encrypt_gcm(raw, password)
    raise ValueError(f"Unknown vault format: {fmt}")


def decrypt_data(blob: bytes, password: str) -> Optional[str]:
    """
    Decrypt a vault blob.

    Returns the plaintext ("" for an empty vault) or None on any failure:
    wrong password, truncated or corrupted data. The two are not told apart.
    """
    if detect_format(blob) == FORMAT_GCM:
        raw = _decrypt_gcm(blob, password)
    else:
        raw = _decrypt_cbc(blob, password)
    if raw is None:
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None
