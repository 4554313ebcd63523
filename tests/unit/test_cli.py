"""Unit tests for the command line interface."""

import json

import pytest

from entity_importer.cli import main
from entity_importer.models.profile import FieldMapping, ImportProfile
from entity_importer.storage.config_store import JsonConfigStore


@pytest.fixture
def config_dir(tmp_path, monkeypatch) -> str:
    """A JSON configuration directory holding p1/article."""
    monkeypatch.setenv("IMPORTER_TEMP_DIR", str(tmp_path))
    directory = tmp_path / "config"
    store = JsonConfigStore(str(directory))
    store.save_profile(ImportProfile(
        id="p1",
        label="Articles",
        source={"plugin_id": "entity_import_csv", "configuration": {"has_header": True}},
        entity={"type": "node", "bundles": ["article"]},
    ))
    store.save_field_mapping(FieldMapping("full_name", "title", "p1", "article"))
    return str(directory)


def _output(capsys):
    return json.loads(capsys.readouterr().out)


def test_profiles_lists_stored_profiles(config_dir, capsys):
    assert main(["--config-dir", config_dir, "profiles"]) == 0

    [profile] = _output(capsys)
    assert profile["id"] == "p1"
    assert profile["bundles"] == ["article"]


def test_compile_prints_pipeline(config_dir, capsys):
    assert main(["--config-dir", config_dir, "compile", "p1", "article"]) == 0

    pipeline = _output(capsys)
    assert pipeline["id"] == "entity_import:p1:article"
    assert pipeline["process"] == {"title": "full_name"}


def test_plan_defaults_to_first_bundle(config_dir, capsys):
    assert main(["--config-dir", config_dir, "plan", "p1"]) == 0

    assert _output(capsys) == [{"id": "entity_import:p1:article", "label": "Articles: article"}]


def test_import_reports_batch_result(config_dir, tmp_path, capsys):
    csv_path = tmp_path / "articles.csv"
    csv_path.write_text("full_name\nHello\nWorld\n", encoding="utf-8")

    assert main(["--config-dir", config_dir, "import", "p1", "article", "--file", str(csv_path)]) == 0

    result = _output(capsys)
    assert result["success"]
    assert result["runs"][0]["records_created"] == 2


def test_errors_are_reported_with_exit_code(config_dir, capsys):
    assert main(["--config-dir", config_dir, "compile", "p1", "page"]) == 1

    assert _output(capsys)["error"]["kind"] == "invalid_bundle"


def test_missing_profile_is_reported(config_dir, capsys):
    assert main(["--config-dir", config_dir, "compile", "nope", "article"]) == 1

    assert _output(capsys)["error"]["kind"] == "profile_not_found"
