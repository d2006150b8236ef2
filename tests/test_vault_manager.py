"""Tests for vault.vault_manager and vault.setup_vault — entry store and vault file."""

import os

import pytest

from vault.models import VaultEntry
from vault.setup_vault import setup_vault
from vault.vault_crypto import FORMAT_CBC, FORMAT_GCM, detect_format, encrypt_data
from vault.vault_manager import (
    add_entry,
    delete_entry,
    entries_to_string,
    get_storage_path,
    get_vault_format,
    list_entries,
    load_entries,
    migrate_vault,
    remove_entry,
    save_entries,
    storage_exists,
    string_to_entries,
    upsert_entry,
    verify_password,
)


def _sample():
    return [
        VaultEntry("github", "JBSWY3DPEHPK3PXP", 30),
        VaultEntry("aws", "GEZDGNBVGY3TQOJQ", 60),
        VaultEntry("mail", "MZXW6YTBOI", 30),
    ]


class TestVaultEntry:
    @pytest.mark.parametrize("name", ["a\tb", "a\nb", "a\rb"])
    def test_name_without_separators(self, name):
        with pytest.raises(ValueError):
            VaultEntry(name, "JBSWY3DPEHPK3PXP")

    @pytest.mark.parametrize("step", [0, -1, True, "30"])
    def test_time_step_positive_int(self, step):
        with pytest.raises(ValueError):
            VaultEntry("x", "JBSWY3DPEHPK3PXP", step)

    def test_empty_secret(self):
        with pytest.raises(ValueError):
            VaultEntry("x", "")

    def test_default_step(self):
        assert VaultEntry("x", "JBSWY3DPEHPK3PXP").time_step == 30


class TestSerialization:
    def test_line_format(self):
        assert entries_to_string(_sample()[:2]) == (
            "github\tJBSWY3DPEHPK3PXP\t30\n"
            "aws\tGEZDGNBVGY3TQOJQ\t60\n"
        )

    def test_empty_list(self):
        assert entries_to_string([]) == ""
        assert string_to_entries("") == []

    def test_parse(self):
        assert string_to_entries(entries_to_string(_sample())) == _sample()

    def test_malformed_lines_skipped(self):
        data = (
            "good\tJBSWY3DPEHPK3PXP\t30\n"
            "no tabs at all\n"
            "one\ttab\n"
            "\n"
            "bad step\tMZXW6\tabc\n"
            "zero step\tMZXW6\t0\n"
            "extra\tMZXW6\t30\tjunk\n"
            "last\tGEZDGNBVGY3TQOJQ\t60"
        )
        entries = string_to_entries(data)
        assert [(e.name, e.time_step) for e in entries] == [("good", 30), ("last", 60)]

    def test_name_may_contain_spaces(self):
        entries = string_to_entries("My Bank (personal)\tMZXW6\t45\n")
        assert entries == [VaultEntry("My Bank (personal)", "MZXW6", 45)]


class TestUpsertDeleteList:
    def test_append_new_secret(self):
        entries = _sample()
        upsert_entry(entries, VaultEntry("new", "ONSWG4TFOQ", 30))
        assert [e.name for e in entries] == ["github", "aws", "mail", "new"]

    def test_same_secret_overwrites_in_place(self):
        entries = _sample()
        upsert_entry(entries, VaultEntry("amazon", "GEZDGNBVGY3TQOJQ", 30))
        upsert_entry(entries, VaultEntry("aws-root", "GEZDGNBVGY3TQOJQ", 90))
        assert len(entries) == 3
        assert entries[1] == VaultEntry("aws-root", "GEZDGNBVGY3TQOJQ", 90)
        assert [e.name for e in entries] == ["github", "aws-root", "mail"]

    def test_same_name_different_secret_appends(self):
        entries = _sample()
        upsert_entry(entries, VaultEntry("github", "ONSWG4TFOQ", 30))
        assert [e.name for e in entries] == ["github", "aws", "mail", "github"]

    def test_upsert_returns_list(self):
        entries = []
        assert upsert_entry(entries, VaultEntry("x", "MZXW6")) is entries

    @pytest.mark.parametrize("index", [0, -1, 4, 100])
    def test_delete_out_of_range_is_noop(self, index):
        entries = _sample()
        assert delete_entry(entries, index) is False
        assert entries == _sample()

    def test_delete_keeps_order(self):
        entries = _sample()
        assert delete_entry(entries, 2) is True
        assert [e.name for e in entries] == ["github", "mail"]

    def test_list_returns_stored_order(self):
        entries = _sample()
        listed = list_entries(entries)
        assert listed == entries
        assert listed is not entries


class TestStoragePath:
    def test_env_override(self, vault_path):
        assert get_storage_path() == vault_path

    def test_home_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TOTP_VAULT_PATH")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_storage_path() == os.path.join(str(tmp_path), ".totp_vault")

    def test_tmp_fallback(self, monkeypatch):
        monkeypatch.delenv("TOTP_VAULT_PATH")
        monkeypatch.delenv("HOME", raising=False)
        assert get_storage_path() == os.path.join("/tmp", ".totp_vault")

    def test_format_env(self, monkeypatch):
        assert get_vault_format() == FORMAT_CBC
        monkeypatch.setenv("TOTP_VAULT_FORMAT", "GCM")
        assert get_vault_format() == FORMAT_GCM
        monkeypatch.setenv("TOTP_VAULT_FORMAT", "xor")
        with pytest.raises(ValueError):
            get_vault_format()


class TestVaultFile:
    def test_missing_vault(self, vault_path, password):
        assert not storage_exists()
        assert load_entries(password) == []
        assert verify_password(password) is True

    def test_save_and_load(self, vault_path, password):
        assert save_entries(_sample(), password) is True
        assert storage_exists(vault_path)
        assert load_entries(password, vault_path) == _sample()

    def test_wrong_password(self, vault_path, password):
        save_entries(_sample(), password)
        assert load_entries("not the password") is None
        assert verify_password("not the password") is False
        assert verify_password(password) is True

    def test_empty_file_accepts_any_password(self, vault_path):
        open(vault_path, "wb").close()
        assert verify_password("anything") is True
        assert load_entries("anything") == []

    def test_empty_vault_checks_password(self, vault_path, password):
        assert setup_vault(password) is True
        assert load_entries(password) == []
        assert verify_password(password) is True
        assert verify_password("wrong") is False

    def test_corrupted_file(self, vault_path, password):
        with open(vault_path, "wb") as f:
            f.write(b"\x00" * 20)
        assert load_entries(password) is None
        assert verify_password(password) is False

    def test_unwritable_path(self, tmp_path, password):
        path = str(tmp_path / "missing-dir" / "vault")
        assert save_entries(_sample(), password, path) is False

    def test_add_entry_upserts(self, vault_path, password):
        setup_vault(password)
        assert add_entry(VaultEntry("github", "JBSWY3DPEHPK3PXP"), password) is True
        assert add_entry(VaultEntry("aws", "GEZDGNBVGY3TQOJQ", 60), password) is True
        assert add_entry(VaultEntry("GitHub", "JBSWY3DPEHPK3PXP", 45), password) is True
        entries = load_entries(password)
        assert [(e.name, e.time_step) for e in entries] == [("GitHub", 45), ("aws", 60)]

    def test_add_entry_wrong_password_keeps_vault(self, vault_path, password):
        save_entries(_sample(), password)
        with open(vault_path, "rb") as f:
            before = f.read()
        assert add_entry(VaultEntry("x", "ONSWG4TFOQ"), "wrong") is False
        with open(vault_path, "rb") as f:
            assert f.read() == before

    def test_remove_entry(self, vault_path, password):
        save_entries(_sample(), password)
        assert remove_entry(5, password) is False
        assert remove_entry(1, password) is True
        assert [e.name for e in load_entries(password)] == ["aws", "mail"]
        assert remove_entry(1, "wrong") is False

    def test_every_save_reencrypts(self, vault_path, password):
        save_entries(_sample(), password)
        with open(vault_path, "rb") as f:
            first = f.read()
        save_entries(_sample(), password)
        with open(vault_path, "rb") as f:
            second = f.read()
        assert first[:32] != second[:32]


class TestFormats:
    def test_new_vault_uses_env_format(self, vault_path, password, monkeypatch):
        monkeypatch.setenv("TOTP_VAULT_FORMAT", "gcm")
        save_entries(_sample(), password)
        with open(vault_path, "rb") as f:
            assert detect_format(f.read()) == FORMAT_GCM

    def test_save_keeps_existing_format(self, vault_path, password):
        with open(vault_path, "wb") as f:
            f.write(encrypt_data("", password, FORMAT_GCM))
        add_entry(VaultEntry("x", "MZXW6"), password)
        with open(vault_path, "rb") as f:
            assert detect_format(f.read()) == FORMAT_GCM
        assert [e.name for e in load_entries(password)] == ["x"]

    def test_migrate(self, vault_path, password):
        save_entries(_sample(), password)
        assert migrate_vault(password, FORMAT_GCM) is True
        with open(vault_path, "rb") as f:
            assert detect_format(f.read()) == FORMAT_GCM
        assert load_entries(password) == _sample()
        assert migrate_vault("wrong", FORMAT_CBC) is False
        assert migrate_vault(password, FORMAT_CBC) is True
        assert load_entries(password) == _sample()

    def test_migrate_missing_vault(self, password):
        assert migrate_vault(password, FORMAT_GCM) is False
        with pytest.raises(ValueError):
            migrate_vault(password, "des")

    def test_unknown_env_format_on_new_vault(self, vault_path, password, monkeypatch):
        monkeypatch.setenv("TOTP_VAULT_FORMAT", "xor")
        assert save_entries(_sample(), password) is False
        assert add_entry(VaultEntry("x", "MZXW6"), password) is False
        assert setup_vault(password) is False
        assert not os.path.exists(vault_path)

    def test_unknown_env_format_keeps_existing_vault(self, vault_path, password, monkeypatch):
        save_entries(_sample(), password)
        with open(vault_path, "rb") as f:
            before = f.read()
        monkeypatch.setenv("TOTP_VAULT_FORMAT", "xor")
        assert setup_vault("new password") is False
        with open(vault_path, "rb") as f:
            assert f.read() == before
        # saves into an existing file keep its format and ignore the env var
        assert add_entry(VaultEntry("x", "MZXW6"), password) is True

    def test_unknown_explicit_format(self, vault_path, password):
        assert save_entries(_sample(), password, fmt="des") is False
        assert setup_vault(password, fmt="des") is False
        assert not os.path.exists(vault_path)


class TestSetupVault:
    def test_creates_parent_dirs(self, tmp_path, password):
        path = str(tmp_path / "a" / "b" / "vault")
        assert setup_vault(password, path) is True
        assert load_entries(password, path) == []

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_private_permissions(self, vault_path, password):
        setup_vault(password)
        assert os.stat(vault_path).st_mode & 0o777 == 0o600

    def test_wipes_existing_vault(self, vault_path, password):
        save_entries(_sample(), password)
        assert setup_vault("new password") is True
        assert load_entries("new password") == []
        assert load_entries(password) is None
