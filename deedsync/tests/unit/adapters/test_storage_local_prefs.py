from __future__ import annotations

from deedsync.adapters.storage_local import StorageLocal
from deedsync.viewmodels.settings_vm import SettingsVM


def test_prefs_roundtrip_through_settings(tmp_path) -> None:
    storage = StorageLocal(str(tmp_path / "prefs"))
    settings = SettingsVM(on_save=storage.save_user_prefs)
    settings.package_id = "0xabc"
    settings.sign_timeout_s = "45"

    settings.cmd_save()

    restored = SettingsVM()
    restored.apply_dict(storage.load_user_prefs())
    assert restored.package_id == "0xabc"
    assert restored.sign_timeout_s == 45.0
    assert restored.rpc_url == settings.rpc_url


def test_load_prefs_missing_file_returns_empty(tmp_path) -> None:
    assert StorageLocal(str(tmp_path)).load_user_prefs() == {}


def test_load_prefs_ignores_non_mapping_json(tmp_path) -> None:
    storage = StorageLocal(str(tmp_path))
    (tmp_path / "deedsync_prefs.json").write_text("[1, 2]", encoding="utf-8")

    assert storage.load_user_prefs() == {}
