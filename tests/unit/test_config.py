"""Unit tests for importer settings."""

import json
import tempfile

import pytest

from entity_importer.config import ImporterSettings
from entity_importer.errors import ConfigurationInconsistency


def test_defaults_use_system_temp_dir():
    settings = ImporterSettings()

    assert settings.temp_dir == tempfile.gettempdir()
    assert settings.csv_delimiter == ","
    assert not settings.strict_plugins


def test_from_env_reads_importer_variables(monkeypatch, tmp_path):
    monkeypatch.setenv("IMPORTER_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("IMPORTER_CSV_DELIMITER", ";")
    monkeypatch.setenv("IMPORTER_STRICT_PLUGINS", "yes")
    monkeypatch.setenv("IMPORTER_LOG_LEVEL", "debug")
    monkeypatch.setenv("IMPORTER_HTTP_RETRIES", "5")

    settings = ImporterSettings.from_env()

    assert settings.config_dir == str(tmp_path)
    assert settings.csv_delimiter == ";"
    assert settings.strict_plugins
    assert settings.log_level == "DEBUG"
    assert settings.http_retries == 5


def test_from_env_rejects_non_integer_retries(monkeypatch):
    monkeypatch.setenv("IMPORTER_HTTP_RETRIES", "many")

    with pytest.raises(ConfigurationInconsistency) as excinfo:
        ImporterSettings.from_env()

    assert excinfo.value.offending_id == "IMPORTER_HTTP_RETRIES"


def test_json_file_round_trip(tmp_path):
    path = tmp_path / "settings.json"
    original = ImporterSettings(config_dir="/srv/config", temp_dir=str(tmp_path), csv_delimiter="\t")
    path.write_text(json.dumps(original.to_dict()), encoding="utf-8")

    assert ImporterSettings.from_json_file(str(path)) == original
