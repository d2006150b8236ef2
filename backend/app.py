"""
FLASK APP MAIN ENTRY POINT - LOCAL TOTP VAULT API
==================================================

Starts the local JSON API over the vault file. Meant to be bound to
127.0.0.1 only: every vault request carries the master password.

MAIN FEATURES
- Flask app with CORS restricted to localhost origins
- Vault routes registered from backend/routes.py
- Vault path from app.config["VAULT_PATH"] (default: $TOTP_VAULT_PATH or ~/.totp_vault)
"""
from flask import Flask, jsonify
from flask_cors import CORS

# CREATE THE FLASK APP
app = Flask(__name__)
app.config.from_mapping(VAULT_PATH=None)

# ENABLE CORS (Cross-Origin Resource Sharing)
# Only a frontend served from this machine may call the API
CORS(app, resources={r"/api/*": {"origins": [r"^http://localhost(:\d+)?$", r"^http://127\.0\.0\.1(:\d+)?$"]}})

# REGISTER ROUTES
from backend.routes import vault_bp  # noqa: E402

app.register_blueprint(vault_bp)


# ROOT ENDPOINT - API INDEX
@app.route('/', methods=['GET'])
def index():
    """List of available endpoints."""
    return jsonify({
        "service": "totp-vault",
        "endpoints": [
            "POST /api/totp",
            "POST /api/entries",
            "POST /api/entries/add",
            "POST /api/entries/delete",
            "POST /api/entries/<index>/totp",
        ],
    })


# START THE SERVER
# Only when executed directly (not on import)
if __name__ == '__main__':
    app.run(debug=False, host='127.0.0.1', port=5000)
