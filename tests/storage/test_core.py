"""Tests for ids, path safety and JSON blob primitives."""

import pytest

from storybuddy import storage
from storybuddy.storage.core import list_names, read_json, write_json


def test_validate_id_accepts_epoch_and_migrated_ids():
    assert storage.validate_id("1718000000000") == "1718000000000"
    assert storage.validate_id("migrated-writing-1718000000001") == "migrated-writing-1718000000001"


@pytest.mark.parametrize("bad", ["", "../etc", "a/b", "-leading", "x" * 101])
def test_validate_id_rejects_unsafe(bad):
    with pytest.raises(ValueError):
        storage.validate_id(bad)


def test_resolve_stays_below_data_dir():
    path = storage.resolve("publications", "123")
    assert path.parent.name == "publications"
    with pytest.raises(ValueError):
        storage.resolve("..", "outside")


def test_new_id_is_millisecond_string():
    value = storage.new_id()
    assert value.isdigit()
    assert len(value) == 13


def test_new_id_bumps_while_taken():
    taken = set()
    first = storage.new_id(lambda c: c in taken)
    taken.add(first)
    taken.add(str(int(first) + 1))
    second = storage.new_id(lambda c: c in taken)
    assert second not in taken
    assert int(second) > int(first)


def test_read_json_missing_returns_default():
    path = storage.data_dir() / "nope.json"
    assert read_json(path) is None
    assert read_json(path, {"a": 1}) == {"a": 1}


def test_write_then_read_json_keeps_unicode():
    path = storage.data_dir() / "nested" / "doc.json"
    write_json(path, {"title": "Café"})
    assert "Café" in path.read_text(encoding="utf-8")
    assert read_json(path) == {"title": "Café"}


def test_read_json_corrupt_raises_storage_error():
    path = storage.data_dir() / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(storage.StorageError):
        read_json(path)


def test_list_names_filters_suffix_and_tolerates_missing_dir():
    directory = storage.data_dir() / "blobs"
    assert list_names(directory) == []
    directory.mkdir()
    (directory / "b.md").write_text("x")
    (directory / "a.md").write_text("x")
    (directory / "c.json").write_text("{}")
    assert list_names(directory, ".md") == ["a.md", "b.md"]
