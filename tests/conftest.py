"""
Shared test fixtures.

Every test gets its own vault path through TOTP_VAULT_PATH so nothing ever
touches the real ~/.totp_vault.
"""

import pytest

# RFC 4226 / RFC 6238 test secret "12345678901234567890" in base32
RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
PASSWORD = "correct horse battery staple"


@pytest.fixture(autouse=True)
def vault_path(tmp_path, monkeypatch):
    """Isolated vault file location (not created)."""
    path = tmp_path / ".totp_vault"
    monkeypatch.setenv("TOTP_VAULT_PATH", str(path))
    monkeypatch.delenv("TOTP_VAULT_FORMAT", raising=False)
    return str(path)


@pytest.fixture
def rfc_secret():
    return RFC_SECRET


@pytest.fixture
def password():
    return PASSWORD
