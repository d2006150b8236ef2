import os

from vault.models import VaultEntry
from vault.vault_crypto import (
    FORMAT_CBC,
    FORMATS,
    decrypt_data,
    detect_format,
    encrypt_data,
)

VAULT_FILE_NAME = '.totp_vault'
VAULT_PATH_ENV = 'TOTP_VAULT_PATH'
VAULT_FORMAT_ENV = 'TOTP_VAULT_FORMAT'


def get_storage_path() -> str:
    """Vault file path: $TOTP_VAULT_PATH, else $HOME/.totp_vault, else /tmp/.totp_vault"""
    override = os.environ.get(VAULT_PATH_ENV)
    if override:
        return override
    home = os.environ.get('HOME') or '/tmp'
    return os.path.join(home, VAULT_FILE_NAME)


def get_vault_format() -> str:
    """Format for newly created vaults (TOTP_VAULT_FORMAT, default "cbc")."""
    fmt = os.environ.get(VAULT_FORMAT_ENV, FORMAT_CBC).strip().lower()
    if fmt not in FORMATS:
        raise ValueError(f"{VAULT_FORMAT_ENV} must be one of {', '.join(FORMATS)}")
    return fmt


def storage_exists(path: str | None = None) -> bool:
    return os.path.exists(path or get_storage_path())


def _read_blob(path: str) -> bytes | None:
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError:
        return None


def _write_blob(blob: bytes, path: str) -> bool:
    try:
        with open(path, 'wb') as f:
            f.write(blob)
    except OSError:
        return False
    return True


# --- Serialization ----------------------------------------------------------
def entries_to_string(entries: list[VaultEntry]) -> str:
    """One line per entry: name<TAB>secret<TAB>time_step"""
    return ''.join(f"{e.name}\t{e.secret}\t{e.time_step}\n" for e in entries)


def string_to_entries(data: str) -> list[VaultEntry]:
    """
    Parse the vault plaintext.

    Lines without two tabs, or whose time step is not a positive integer,
    are skipped rather than failing the whole load.
    """
    entries = []
    for line in data.split('\n'):
        if not line:
            continue
        parts = line.split('\t', 2)
        if len(parts) != 3:
            continue
        name, secret, step = parts
        try:
            entries.append(VaultEntry(name, secret, int(step)))
        except ValueError:
            continue
    return entries


# --- In-memory operations ---------------------------------------------------
def upsert_entry(entries: list[VaultEntry], entry: VaultEntry) -> list[VaultEntry]:
    """Overwrite name/time_step of the entry with the same secret, else append."""
    for existing in entries:
        if existing.secret == entry.secret:
            existing.name = entry.name
            existing.time_step = entry.time_step
            return entries
    entries.append(entry)
    return entries


def delete_entry(entries: list[VaultEntry], index: int) -> bool:
    """Remove the entry at 1-based `index`. Out-of-range indexes are a no-op."""
    if index <= 0 or index > len(entries):
        return False
    del entries[index - 1]
    return True


def list_entries(entries: list[VaultEntry]) -> list[VaultEntry]:
    return list(entries)


# --- File operations --------------------------------------------------------
def load_entries(password: str, path: str | None = None) -> list[VaultEntry] | None:
    """
    Decrypt and parse the vault.

    Returns [] when the vault file is absent or empty, None when it cannot be
    read or decrypted (wrong password, corrupted file).
    """
    path = path or get_storage_path()
    if not os.path.exists(path):
        return []

    blob = _read_blob(path)
    if blob is None:
        return None
    if not blob:
        return []

    data = decrypt_data(blob, password)
    if data is None:
        return None
    return string_to_entries(data)


def save_entries(entries: list[VaultEntry], password: str,
                 path: str | None = None, fmt: str | None = None) -> bool:
    """
    Re-encrypt the whole list and overwrite the vault file.

    Without `fmt` the format of the existing file is kept; a new file uses
    get_vault_format().

    Returns False, writing nothing, when the format is unknown (bad
    TOTP_VAULT_FORMAT) or the file cannot be written.
    """
    path = path or get_storage_path()
    try:
        if fmt is None:
            existing = _read_blob(path) if os.path.exists(path) else None
            fmt = detect_format(existing) if existing else get_vault_format()
        blob = encrypt_data(entries_to_string(entries), password, fmt)
    except ValueError:
        return False

    return _write_blob(blob, path)


def verify_password(password: str, path: str | None = None) -> bool:
    """
    Check the password by decrypting the whole vault.

    A missing or zero-length vault accepts any password.
    """
    path = path or get_storage_path()
    if not os.path.exists(path):
        return True

    blob = _read_blob(path)
    if blob is None:
        return False
    if not blob:
        return True
    return decrypt_data(blob, password) is not None


def add_entry(entry: VaultEntry, password: str, path: str | None = None) -> bool:
    """Upsert one entry and save. Nothing is written if the vault cannot be opened."""
    entries = load_entries(password, path)
    if entries is None:
        return False
    upsert_entry(entries, entry)
    return save_entries(entries, password, path)


def remove_entry(index: int, password: str, path: str | None = None) -> bool:
    """Delete the entry at 1-based `index` and save."""
    entries = load_entries(password, path)
    if entries is None:
        return False
    if not delete_entry(entries, index):
        return False
    return save_entries(entries, password, path)


def migrate_vault(password: str, fmt: str, path: str | None = None) -> bool:
    """Re-encrypt an existing vault into another on-disk format."""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown vault format: {fmt}")
    path = path or get_storage_path()
    if not os.path.exists(path):
        return False
    entries = load_entries(password, path)
    if entries is None:
        return False
    return save_entries(entries, password, path, fmt)
