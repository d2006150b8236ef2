"""
TOTP VAULT API ROUTES - FLASK BLUEPRINT

JSON endpoints over the local vault. All vault endpoints are POST because
the master password travels in the JSON body; nothing is kept between
requests (no session, no cached key).

USAGE:
- Server: http://127.0.0.1:5000 (`totp-vault serve`)

EXAMPLES:
curl -X POST http://127.0.0.1:5000/api/totp -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP"}'
curl -X POST http://127.0.0.1:5000/api/entries -H "Content-Type: application/json" -d '{"password": "..."}'
"""

import os
import time

from flask import Blueprint, current_app, jsonify, request

from core.otp_core import DEFAULT_TIME_STEP, InvalidSecretError, generate_totp
from vault.models import VaultEntry
from vault.vault_manager import (
    delete_entry,
    get_storage_path,
    load_entries,
    save_entries,
    upsert_entry,
)

vault_bp = Blueprint('vault', __name__, url_prefix='/api')


def _vault_path() -> str:
    return current_app.config.get("VAULT_PATH") or get_storage_path()


def _json_body() -> dict | None:
    """Request body as a dict. Missing or unparsable JSON gives {}; a non-object value gives None."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _bad_body():
    return jsonify({"error": "Request body must be a JSON object"}), 400


def _time_step(value) -> int | None:
    """Positive integer time step, or None if the value is unusable."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None


def _open_vault(data: dict | None):
    """
    Returns (entries, password, None) or (None, None, error_response).

    404 when there is no vault yet, 401 when it cannot be decrypted.
    """
    if data is None:
        return None, None, _bad_body()
    password = data.get("password")
    if not isinstance(password, str):
        return None, None, (jsonify({"error": "Password is required"}), 400)

    path = _vault_path()
    if not os.path.exists(path):
        return None, None, (jsonify({"error": "Vault not found. Run `totp-vault` first."}), 404)

    entries = load_entries(password, path)
    if entries is None:
        print("[ERROR] Vault could not be opened (wrong password or corrupted file)")
        return None, None, (jsonify({"error": "Cannot open vault"}), 401)
    return entries, password, None


def _code_response(secret: str, time_step: int, **extra):
    result = generate_totp(secret, time_step, time.time())
    body = {"code": result.code, "remaining": result.time_remaining, "time_step": time_step}
    body.update(extra)
    return jsonify(body)


@vault_bp.route('/totp', methods=['POST'])
def get_totp():
    """
    CURRENT TOTP FOR A SECRET (not stored)

    Input (JSON body):
      {"secret": "JBSWY3DPEHPK3PXP", "time_step": 30}

    Output:
      {"code": "123456", "remaining": 17, "time_step": 30}
    """
    data = _json_body()
    if data is None:
        return _bad_body()
    secret = data.get("secret")
    if not isinstance(secret, str) or not secret:
        return jsonify({"error": "Secret is required"}), 400

    time_step = _time_step(data.get("time_step", DEFAULT_TIME_STEP))
    if time_step is None:
        return jsonify({"error": "time_step must be a positive integer"}), 400

    try:
        return _code_response(secret, time_step)
    except InvalidSecretError:
        return jsonify({"error": "Invalid Base32 secret"}), 400


@vault_bp.route('/entries', methods=['POST'])
def list_entries_route():
    """
    LIST SAVED ENTRIES (names and time steps only, secrets stay in the vault)

    Input:  {"password": "..."}
    Output: {"entries": [{"index": 1, "name": "github", "time_step": 30}]}
    """
    entries, _password, error = _open_vault(_json_body())
    if error:
        return error
    return jsonify({"entries": [e.to_dict(index=i) for i, e in enumerate(entries, start=1)]})


@vault_bp.route('/entries/add', methods=['POST'])
def add_entry_route():
    """
    SAVE AN ENTRY (upsert by secret)

    Input:  {"password": "...", "secret": "JBSWY3DPEHPK3PXP", "name": "github", "time_step": 30}
    Output: 201 {"index": 1, "name": "github", "time_step": 30}
    """
    data = _json_body()
    if data is None:
        return _bad_body()
    secret = data.get("secret")
    if not isinstance(secret, str) or not secret.strip():
        return jsonify({"error": "Secret is required"}), 400
    secret = secret.strip()

    time_step = _time_step(data.get("time_step", DEFAULT_TIME_STEP))
    if time_step is None:
        return jsonify({"error": "time_step must be a positive integer"}), 400

    name = data.get("name") or secret[:8] + "..."
    try:
        # reject unusable secrets before they reach the vault
        generate_totp(secret, time_step, 0)
        entry = VaultEntry(str(name), secret, time_step)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    entries, password, error = _open_vault(data)
    if error:
        return error

    upsert_entry(entries, entry)
    if not save_entries(entries, password, _vault_path()):
        print("[ERROR] Failed to write vault file")
        return jsonify({"error": "Failed to write vault"}), 500

    index = next(i for i, e in enumerate(entries, start=1) if e.secret == secret)
    print(f"[INFO] Saved entry #{index}")
    return jsonify(entries[index - 1].to_dict(index=index)), 201


@vault_bp.route('/entries/delete', methods=['POST'])
def delete_entry_route():
    """
    DELETE AN ENTRY BY ITS 1-BASED INDEX

    Input:  {"password": "...", "index": 2}
    Output: {"deleted": 2}
    """
    data = _json_body()
    if data is None:
        return _bad_body()
    index = data.get("index")
    if isinstance(index, bool) or not isinstance(index, int):
        return jsonify({"error": "index must be an integer"}), 400

    entries, password, error = _open_vault(data)
    if error:
        return error

    if not delete_entry(entries, index):
        return jsonify({"error": f"No entry #{index}"}), 404
    if not save_entries(entries, password, _vault_path()):
        print("[ERROR] Failed to write vault file")
        return jsonify({"error": "Failed to write vault"}), 500

    print(f"[INFO] Deleted entry #{index}")
    return jsonify({"deleted": index})


@vault_bp.route('/entries/<int:index>/totp', methods=['POST'])
def entry_totp_route(index):
    """
    CURRENT TOTP FOR A SAVED ENTRY

    Input:  {"password": "..."}
    Output: {"code": "123456", "remaining": 17, "time_step": 30, "name": "github"}
    """
    entries, _password, error = _open_vault(_json_body())
    if error:
        return error
    if not 1 <= index <= len(entries):
        return jsonify({"error": f"No entry #{index}"}), 404

    entry = entries[index - 1]
    try:
        return _code_response(entry.secret, entry.time_step, name=entry.name)
    except InvalidSecretError:
        return jsonify({"error": "Stored secret is not valid Base32"}), 422
