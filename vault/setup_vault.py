import getpass
import os

from vault.vault_crypto import FORMATS
from vault.vault_manager import get_storage_path, get_vault_format, save_entries


def setup_vault(password: str, path: str | None = None, fmt: str | None = None) -> bool:
    """
    Create (or wipe) the vault: an encrypted empty entry list, mode 0600.

    An unknown format leaves any existing vault untouched and returns False.
    """
    path = path or get_storage_path()
    try:
        fmt = fmt or get_vault_format()
    except ValueError:
        return False
    if fmt not in FORMATS:
        return False

    try:
        # Make sure the parent directory exists
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        # Drop any previous content so the new password/format starts clean
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        return False

    if not save_entries([], password, path, fmt):
        return False
    try:
        os.chmod(path, 0o600)
    except OSError:
        # not fatal on filesystems without POSIX permissions
        pass
    return True


if __name__ == "__main__":
    pw = getpass.getpass("  [>] password: ")
    if pw != getpass.getpass("  [>] confirm:  "):
        print("  [!] passwords do not match")
    elif setup_vault(pw):
        print(f"Vault created at {get_storage_path()}")
    else:
        print(f"  [!] could not create vault at {get_storage_path()}")
