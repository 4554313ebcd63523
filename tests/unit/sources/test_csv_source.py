"""Unit tests for the CSV import source."""

import json
import os

import pytest

from entity_importer.errors import ConfigurationInconsistency, FileUnreadable
from entity_importer.models.profile import FieldMappingOptions
from entity_importer.sources import CsvImportSource, SourceRegistry


def _source(store, file_store, settings, **configuration) -> CsvImportSource:
    source_spec = {"plugin": "entity_import_csv", "importer_id": "p1"}
    source_spec.update(configuration)
    return SourceRegistry().create(source_spec, store, file_store, settings)


def test_default_configuration_is_filled_in(store, file_store, settings):
    source = _source(store, file_store, settings)

    assert source.configuration["file_id"] == []
    assert source.configuration["has_header"] is False
    assert source.configuration["upload_multiple"] is False


def test_required_configs_need_a_file(store, file_store, settings):
    assert not _source(store, file_store, settings).has_required_configs()
    assert _source(store, file_store, settings, file_id=["1"]).has_required_configs()


def test_submitted_values_merge_into_configuration(store, file_store, settings):
    source = _source(store, file_store, settings, file_id=["1"])

    source.submit_import_values({"file_id": ["2"], "has_header": True})

    assert source.configuration["file_id"] == ["1", "2"]
    assert source.configuration["has_header"] is True


def test_iterates_merged_uploads_and_removes_temp_file(store, file_store, settings, write_csv, add_profile):
    add_profile("p1", ["article"])
    ids = [
        file_store.register(write_csv("a.csv", "id,full_name\n1,Ann\n")),
        file_store.register(write_csv("b.csv", "id,full_name\n2,Bob\n")),
    ]
    source = _source(store, file_store, settings, file_id=ids, has_header=True)

    rows = list(source)
    merged_path = source.get_import_file_object().path
    source.unlink_import_file()

    assert rows == [{"id": "1", "full_name": "Ann"}, {"id": "2", "full_name": "Bob"}]
    assert os.path.basename(merged_path).startswith("ENTITY_IMPORTER_")
    assert not os.path.exists(merged_path)


def test_fields_and_string_form_come_from_header(store, file_store, settings, write_csv):
    file_id = file_store.register(write_csv("a.csv", "id, full_name\n1,Ann\n"))
    source = _source(store, file_store, settings, file_id=[file_id], has_header=True)

    assert source.fields() == ["id", "full_name"]
    assert json.loads(str(source)) == ["id", "full_name"]


def test_unknown_file_ids_are_skipped(store, file_store, settings, write_csv):
    file_id = file_store.register(write_csv("a.csv", "id\n1\n"))
    source = _source(store, file_store, settings, file_id=["999", file_id], has_header=True)

    assert list(source) == [{"id": "1"}]


def test_ids_come_from_unique_identifiers(store, file_store, settings, add_profile):
    add_profile("p1", ["article"])
    store.save_mapping_options(FieldMappingOptions("p1", [
        {"identifier_name": "id", "identifier_type": "integer", "identifier_settings": '{"unsigned": true}'},
        {"identifier_name": "sku", "identifier_type": "string", "identifier_settings": "not json"},
        {"identifier_name": "incomplete"},
    ]))

    ids = _source(store, file_store, settings).get_ids()

    assert ids == {"id": {"type": "integer", "unsigned": True}, "sku": {"type": "string"}}


def test_load_importer_requires_importer_id(store, file_store, settings):
    source = SourceRegistry().create({"plugin": "entity_import_csv"}, store, file_store, settings)

    with pytest.raises(ConfigurationInconsistency):
        source.load_importer()


def test_registry_rejects_unknown_plugin(store, file_store, settings):
    with pytest.raises(ConfigurationInconsistency):
        SourceRegistry().create({"plugin": "entity_import_xml"}, store, file_store, settings)


def test_failed_merge_removes_temp_file(store, file_store, settings, tmp_path):
    file_id = file_store.register(str(tmp_path / "gone.csv"))
    source = _source(store, file_store, settings, file_id=[file_id], has_header=True)

    with pytest.raises(FileUnreadable):
        list(source)
    source.unlink_import_file()

    assert [name for name in os.listdir(settings.temp_dir) if name.startswith("ENTITY_IMPORTER_")] == []
