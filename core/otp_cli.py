#!/usr/bin/env python3
"""
otp_cli.py — CLI wrapper around otp_core.py and the password-protected vault.

Subcommands:
- (none) : pick a saved entry from a menu and show its codes in real time
- add    : save a secret (upsert by secret), then show its codes
- list   : list saved entries
- delete : delete a saved entry from a menu
- uri    : print otpauth URIs for a saved entry
- new    : print a fresh random base32 secret
- migrate: re-encrypt the vault into another on-disk format
- serve  : run the local JSON API (backend/app.py)

eg..:
    totp-vault
    totp-vault add CB6LUMRHEWPEYIXI -n github
    totp-vault add CB6LUMRHEWPEYIXI --single
    totp-vault --vault ~/work.vault list
"""

import argparse
import getpass
import sys

from core import otp_core
from core.otp_generator import run_generator
from vault.models import VaultEntry
from vault.setup_vault import setup_vault
from vault.vault_crypto import FORMATS
from vault.vault_manager import (
    add_entry,
    get_storage_path,
    get_vault_format,
    load_entries,
    migrate_vault,
    remove_entry,
    storage_exists,
    verify_password,
)

HEADER = (
    "\n"
    "  ┌─────────────────────────────────────┐\n"
    "  │         TOTP CODE GENERATOR         │\n"
    "  └─────────────────────────────────────┘\n"
)
MENU_HEADER = (
    "  ┌─────────────────────────────────────┐\n"
    "  │          SAVED TOTP ENTRIES         │\n"
    "  └─────────────────────────────────────┘\n"
)


def log(msg: str, verbose: bool):
    if verbose:
        print(f"[+] {msg}")


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError("time step must be positive")
    return number


# --- Password / vault session ---
def prompt_password(confirm: bool = False) -> str | None:
    """
    Read the master password without echo.

    getpass restores the terminal mode on every exit path, including Ctrl+C.
    Returns None when the confirmation does not match.
    """
    password = getpass.getpass("  [>] password: ")
    if confirm:
        again = getpass.getpass("  [>] confirm:  ")
        if password != again:
            print("  [!] passwords do not match", file=sys.stderr)
            return None
    return password


def open_vault(path: str, verbose: bool = False) -> str | None:
    """First run creates the vault; otherwise the password is checked by decrypting it."""
    print(HEADER)
    if not storage_exists(path):
        print("  [*] first run - create master password\n")
        password = prompt_password(confirm=True)
        if password is None:
            return None
        if not password:
            print("  [!] password must not be empty", file=sys.stderr)
            return None
        if not setup_vault(password, path):
            print(f"  [!] could not create vault at {path}", file=sys.stderr)
            return None
        print("  [+] vault created\n")
        return password

    password = prompt_password()
    log(f"Verifying password against {path}", verbose)
    if not verify_password(password, path):
        print("  [!] invalid password", file=sys.stderr)
        return None
    return password


def select_entry(entries: list) -> int:
    """Numbered menu; returns the 1-based choice, 0 to exit."""
    print(MENU_HEADER)
    for i, entry in enumerate(entries, start=1):
        print(f"  [{i}] {entry.name} ({entry.time_step}s)")
    print("\n  [0] exit\n")
    try:
        choice = int(input("  [>] select: ").strip())
    except (ValueError, EOFError):
        return 0
    if choice < 0 or choice > len(entries):
        return 0
    return choice


def show_codes(secret: str, time_step: int, single: bool, verbose: bool) -> int:
    try:
        if single:
            result = otp_core.generate_totp(secret, time_step)
            print(result.code)
        else:
            run_generator(secret, time_step, verbose=verbose)
            print("  [*] bye")
    except ValueError as e:
        print(f"  [!] error: {e}", file=sys.stderr)
        return 1
    return 0


def _load_or_fail(password: str, path: str):
    entries = load_entries(password, path)
    if entries is None:
        print("  [!] cannot open vault", file=sys.stderr)
    return entries


# --- CLI command handlers ---
def cmd_select(args) -> int:
    password = open_vault(args.vault, args.verbose)
    if password is None:
        return 1
    entries = _load_or_fail(password, args.vault)
    if entries is None:
        return 1
    if not entries:
        print("  [*] no saved entries")
        print("  [*] usage: totp-vault add <secret> -n <name>")
        return 0

    print()
    choice = select_entry(entries)
    if choice == 0:
        return 0
    entry = entries[choice - 1]
    return show_codes(entry.secret, entry.time_step, args.single, args.verbose)


def cmd_add(args) -> int:
    secret = args.secret.strip()
    if not otp_core.base32_decode(secret):
        print("  [!] error: secret is not valid base32", file=sys.stderr)
        return 1
    name = args.name or secret[:8] + "..."
    try:
        entry = VaultEntry(name, secret, args.time)
    except ValueError as e:
        print(f"  [!] error: {e}", file=sys.stderr)
        return 1

    password = open_vault(args.vault, args.verbose)
    if password is None:
        return 1
    if not add_entry(entry, password, args.vault):
        print("  [!] could not save entry", file=sys.stderr)
        return 1
    print(f"  [+] saved: {name}")
    return show_codes(secret, args.time, args.single, args.verbose)


def cmd_list(args) -> int:
    password = open_vault(args.vault, args.verbose)
    if password is None:
        return 1
    entries = _load_or_fail(password, args.vault)
    if entries is None:
        return 1
    if not entries:
        print("  [*] no saved entries")
        return 0
    print()
    for i, entry in enumerate(entries, start=1):
        print(f"  [{i}] {entry.name} - {entry.secret} ({entry.time_step}s)")
    print()
    return 0


def cmd_delete(args) -> int:
    password = open_vault(args.vault, args.verbose)
    if password is None:
        return 1
    entries = _load_or_fail(password, args.vault)
    if entries is None:
        return 1
    if not entries:
        print("  [*] no entries to delete")
        return 0
    choice = select_entry(entries)
    if choice == 0:
        return 0
    if not remove_entry(choice, password, args.vault):
        print("  [!] could not delete entry", file=sys.stderr)
        return 1
    print("  [+] entry deleted")
    return 0


def cmd_uri(args) -> int:
    password = open_vault(args.vault, args.verbose)
    if password is None:
        return 1
    entries = _load_or_fail(password, args.vault)
    if entries is None:
        return 1
    if not 1 <= args.index <= len(entries):
        print(f"  [!] no entry #{args.index}", file=sys.stderr)
        return 1
    entry = entries[args.index - 1]
    totp_uri, hotp_uri = otp_core.format_otpauth_uri(
        entry.secret, account=entry.name, issuer=args.issuer, period=entry.time_step
    )
    print("TOTP URI:")
    print(totp_uri)
    print("\nHOTP URI:")
    print(hotp_uri)
    return 0


def cmd_new(args) -> int:
    print(otp_core.generate_base32_secret())
    return 0


def cmd_migrate(args) -> int:
    if not storage_exists(args.vault):
        print("  [!] no vault to migrate", file=sys.stderr)
        return 1
    password = open_vault(args.vault, args.verbose)
    if password is None:
        return 1
    if not migrate_vault(password, args.format, args.vault):
        print("  [!] migration failed", file=sys.stderr)
        return 1
    print(f"  [+] vault re-encrypted as {args.format}")
    return 0


def cmd_serve(args) -> int:
    try:
        from backend.app import app
    except ImportError as e:
        print(f"  [!] cannot start API server: {e}", file=sys.stderr)
        return 1
    app.config["VAULT_PATH"] = args.vault
    log(f"Serving {args.vault} on http://{args.host}:{args.port}", args.verbose)
    app.run(host=args.host, port=args.port)
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="totp-vault",
                                description="TOTP code generator with a password-protected vault")
    p.add_argument("--vault", default=None, help="Vault file (default: $TOTP_VAULT_PATH or ~/.totp_vault)")
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    p.add_argument("-s", "--single", action="store_true", help="Print one code for the selected entry and exit")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_select)

    # add
    pa = sub.add_parser("add", help="Save a secret and show its codes")
    pa.add_argument("secret", help="Base32 encoded TOTP secret")
    pa.add_argument("-n", "--name", help="Name for the entry (default: first 8 chars of the secret)")
    pa.add_argument("-t", "--time", type=positive_int, default=otp_core.DEFAULT_TIME_STEP,
                    help="Time step in seconds")
    pa.add_argument("-s", "--single", action="store_true", default=argparse.SUPPRESS,
                    help="Print one code and exit")
    pa.set_defaults(func=cmd_add)

    # list
    pl = sub.add_parser("list", help="List saved entries")
    pl.set_defaults(func=cmd_list)

    # delete
    pd = sub.add_parser("delete", help="Delete a saved entry")
    pd.set_defaults(func=cmd_delete)

    # uri
    pu = sub.add_parser("uri", help="Print otpauth URIs for a saved entry")
    pu.add_argument("index", type=int, help="Entry number as shown by 'list'")
    pu.add_argument("--issuer", default="totp-vault")
    pu.set_defaults(func=cmd_uri)

    # new
    pn = sub.add_parser("new", help="Print a new random base32 secret")
    pn.set_defaults(func=cmd_new)

    # migrate
    pm = sub.add_parser("migrate", help="Re-encrypt the vault into another format")
    pm.add_argument("--format", choices=FORMATS, required=True)
    pm.set_defaults(func=cmd_migrate)

    # serve
    ps = sub.add_parser("serve", help="Run the local JSON API")
    ps.add_argument("--host", default="127.0.0.1")
    ps.add_argument("--port", type=int, default=5000)
    ps.set_defaults(func=cmd_serve)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.vault = args.vault or get_storage_path()
    try:
        get_vault_format()
    except ValueError as e:
        print(f"  [!] error: {e}", file=sys.stderr)
        return 1
    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nBye.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
