"""
vault package
=============

Password-protected local storage for named TOTP secrets.

- vault_crypto : PBKDF2-HMAC-SHA256 key derivation, AES-256 (CBC legacy / GCM versioned)
- vault_manager: line format, upsert/delete/list, load/save/verify against the vault file
- setup_vault  : first-run creation (or wipe) of an empty vault
- models       : VaultEntry

>>> from vault import VaultEntry, add_entry, load_entries
>>> add_entry(VaultEntry("github", "JBSWY3DPEHPK3PXP"), "hunter2")
True
>>> [e.name for e in load_entries("hunter2")]
['github']
"""
from vault.models import VaultEntry
from vault.setup_vault import setup_vault
from vault.vault_crypto import decrypt_data, derive_key, encrypt_data
from vault.vault_manager import (
    add_entry,
    delete_entry,
    get_storage_path,
    list_entries,
    load_entries,
    migrate_vault,
    remove_entry,
    save_entries,
    storage_exists,
    upsert_entry,
    verify_password,
)

__all__ = [
    'VaultEntry',
    'setup_vault',
    'decrypt_data',
    'derive_key',
    'encrypt_data',
    'add_entry',
    'delete_entry',
    'get_storage_path',
    'list_entries',
    'load_entries',
    'migrate_vault',
    'remove_entry',
    'save_entries',
    'storage_exists',
    'upsert_entry',
    'verify_password',
]
