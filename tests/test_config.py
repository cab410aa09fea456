"""
tests/test_config.py
Config precedence (defaults < file < env), validation warnings, admin match.
"""

import json

from roadwatch.config import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG,
    is_privileged,
    load_config,
    remote_configured,
    save_config,
    validate_config,
)


def test_defaults_when_no_file(tmp_path):
    config = load_config(tmp_path)
    assert config == DEFAULT_CONFIG
    assert not remote_configured(config)


def test_file_overrides_defaults(tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text(
        json.dumps({"language": "en", "firebase_project_id": "demo"}), encoding="utf-8"
    )
    config = load_config(tmp_path)
    assert config["language"] == "en"
    assert config["collection"] == "hazards"
    assert remote_configured(config)


def test_env_overrides_file(tmp_path, monkeypatch):
    (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"admin_email": "a@x"}), encoding="utf-8")
    monkeypatch.setenv("ROADWATCH_ADMIN_EMAIL", "boss@example.com")
    monkeypatch.setenv("ROADWATCH_FIREBASE_PROJECT_ID", "from-env")
    config = load_config(tmp_path)
    assert config["admin_email"] == "boss@example.com"
    assert config["firebase_project_id"] == "from-env"


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text("{broken", encoding="utf-8")
    assert load_config(tmp_path) == DEFAULT_CONFIG


def test_save_then_load(tmp_path):
    config = dict(DEFAULT_CONFIG, admin_email="admin@example.com")
    path = save_config(config, tmp_path)
    assert path.name == CONFIG_FILENAME
    assert load_config(tmp_path)["admin_email"] == "admin@example.com"


def test_validate_reports_missing_settings():
    problems = validate_config(DEFAULT_CONFIG)
    assert any("firebase_project_id" in p for p in problems)
    assert any("admin_email" in p for p in problems)


def test_validate_never_echoes_secrets():
    config = dict(DEFAULT_CONFIG, firebase_project_id="demo",
                  firebase_api_key="", admin_email="a@x")
    problems = validate_config(config)
    assert problems == [
        "Missing setting: firebase_api_key (remote store disabled, local-only mode)"
    ]


def test_complete_config_is_valid():
    config = dict(DEFAULT_CONFIG, firebase_project_id="demo",
                  firebase_api_key="secret", admin_email="a@x")
    assert validate_config(config) == []


def test_admin_match_is_case_insensitive():
    assert is_privileged("Admin@Example.com ", "admin@example.com")
    assert not is_privileged("other@example.com", "admin@example.com")
    assert not is_privileged(None, "admin@example.com")
    assert not is_privileged("admin@example.com", "")
