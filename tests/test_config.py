import json

from carloc.config import Settings, load_settings


def test_defaults_when_no_file(tmp_path):
    s = load_settings(tmp_path / "absent.json", environ={})
    assert s == Settings()
    assert s.default_tva_percentage == 20.0


def test_file_with_legacy_api_block(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"api": {"base_url": "http://store:5000", "token": "t0"}, "timeout": 5}), encoding="utf-8")
    s = load_settings(path, environ={})
    assert s.api_base == "http://store:5000"
    assert s.api_token == "t0"
    assert s.timeout == 5


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"api_base": "http://file"}), encoding="utf-8")
    s = load_settings(path, environ={"CARLOC_API_BASE": "http://env", "CARLOC_API_TIMEOUT": "12"})
    assert s.api_base == "http://env"
    assert s.timeout == 12.0


def test_unreadable_file_falls_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{oups", encoding="utf-8")
    assert load_settings(path, environ={}) == Settings()


def test_invalid_values_fall_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"timeout": "lent"}), encoding="utf-8")
    assert load_settings(path, environ={}) == Settings()
