"""Unit tests for merging uploaded CSV files."""

import os

import pytest

from entity_importer.errors import FileUnreadable, FileUnwritable
from entity_importer.sources.csv_source import merge_csv_files


def _read(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def test_merge_writes_shared_header_once(tmp_path, file_store, write_csv):
    """Identical headers collapse into one header line."""
    first = file_store.load(file_store.register(write_csv("a.csv", "id,name\n1,Ann\n")))
    second = file_store.load(file_store.register(write_csv("b.csv", "id,name\n2,Bob\n")))
    target = str(tmp_path / "merged.csv")

    merge_csv_files([first, second], target, True, file_store)

    assert _read(target) == "id,name\n1,Ann\n\n2,Bob\n\n"


def test_merge_skips_file_with_mismatched_header(tmp_path, file_store, write_csv):
    """Only the first file contributes when the second header differs."""
    first_path = write_csv("a.csv", "id,name\n1,Ann\n")
    second_path = write_csv("b.csv", "id,title\n2,Boss\n")
    first = file_store.load(file_store.register(first_path))
    second = file_store.load(file_store.register(second_path))
    target = str(tmp_path / "merged.csv")

    merge_csv_files([first, second], target, True, file_store)

    assert _read(target) == "id,name\n1,Ann\n\n"
    assert not os.path.exists(first_path)
    assert os.path.exists(second_path)
    assert file_store.load(second.id) is not None


def test_merge_without_header_concatenates_everything(tmp_path, file_store, write_csv):
    first = file_store.load(file_store.register(write_csv("a.csv", "1,Ann\n")))
    second = file_store.load(file_store.register(write_csv("b.csv", "2,Bob")))
    target = str(tmp_path / "merged.csv")

    merge_csv_files([first, second], target, False, file_store)

    assert _read(target) == "1,Ann\n\n2,Bob\n"


def test_merge_deletes_consumed_uploads(tmp_path, file_store, write_csv):
    path = write_csv("a.csv", "id\n1\n")
    stored = file_store.load(file_store.register(path))

    merge_csv_files([stored], str(tmp_path / "merged.csv"), True, file_store)

    assert not os.path.exists(path)
    assert file_store.load(stored.id) is None


def test_merge_header_comparison_ignores_surrounding_whitespace(tmp_path, file_store, write_csv):
    first = file_store.load(file_store.register(write_csv("a.csv", "id,name\n1,Ann\n")))
    second = file_store.load(file_store.register(write_csv("b.csv", "id , name\n2,Bob\n")))
    target = str(tmp_path / "merged.csv")

    merge_csv_files([first, second], target, True, file_store)

    assert "2,Bob" in _read(target)


def test_merge_into_unwritable_target_fails(tmp_path, file_store):
    with pytest.raises(FileUnwritable):
        merge_csv_files([], str(tmp_path / "missing" / "merged.csv"), True, file_store)


def test_merge_of_undecodable_upload_keeps_every_upload(tmp_path, file_store, write_csv):
    """A Latin-1 file aborts the merge before any upload is released."""
    first_path = write_csv("a.csv", "id,name\n1,Ann\n")
    second_path = tmp_path / "latin1.csv"
    second_path.write_bytes(b"id,name\n2,Jos\xe9\n")
    first = file_store.load(file_store.register(first_path))
    second = file_store.load(file_store.register(str(second_path)))

    with pytest.raises(FileUnreadable) as excinfo:
        merge_csv_files([first, second], str(tmp_path / "merged.csv"), True, file_store)

    assert excinfo.value.offending_id == second.id
    assert os.path.exists(first_path)
    assert file_store.load(first.id) is not None
