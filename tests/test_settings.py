import json
from pathlib import Path

import pytest

from client_patcher.core.errors import InvalidArgument
from client_patcher.core.settings import ENV_PORT_ENTRY, ENV_WORK_DIR, PatcherSettings, load_settings


def test_defaults():
    settings = PatcherSettings()
    assert settings.default_port == 43594
    assert settings.default_endpoint == "127.0.0.1"
    assert settings.modulus_marker == "10001"
    assert settings.port_entry == "client.class"
    assert settings.endpoint_replacement == ""


def test_load_settings_from_file(tmp_path: Path, monkeypatch):
    monkeypatch.delenv(ENV_WORK_DIR, raising=False)
    monkeypatch.delenv(ENV_PORT_ENTRY, raising=False)
    cfg = tmp_path / "settings.json"
    cfg.write_text(json.dumps({"port_entry": "Client.class", "modulus_min_length": 128}), encoding="utf-8")
    settings = load_settings(cfg)
    assert settings.port_entry == "Client.class"
    assert settings.modulus_min_length == 128


def test_environment_overrides(tmp_path: Path, monkeypatch):
    monkeypatch.setenv(ENV_WORK_DIR, str(tmp_path / "scratch"))
    monkeypatch.setenv(ENV_PORT_ENTRY, "main.class")
    settings = load_settings()
    assert settings.work_dir == tmp_path / "scratch"
    assert settings.port_entry == "main.class"


def test_endpoint_replacement_cannot_grow(monkeypatch, tmp_path: Path):
    monkeypatch.delenv(ENV_WORK_DIR, raising=False)
    cfg = tmp_path / "settings.json"
    cfg.write_text(json.dumps({"endpoint_replacement": "255.255.255.255"}), encoding="utf-8")
    with pytest.raises(InvalidArgument):
        load_settings(cfg)


def test_invalid_json(tmp_path: Path):
    cfg = tmp_path / "settings.json"
    cfg.write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidArgument):
        load_settings(cfg)


def test_out_of_range_port(tmp_path: Path):
    cfg = tmp_path / "settings.json"
    cfg.write_text(json.dumps({"default_port": 70000}), encoding="utf-8")
    with pytest.raises(InvalidArgument):
        load_settings(cfg)
