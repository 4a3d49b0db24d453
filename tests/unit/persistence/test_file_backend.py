"""Unit tests for FileStateStore."""

from __future__ import annotations

import json

import pytest

from filestack.core.exceptions import StateStoreError
from filestack.persistence.file_backend import FileStateStore
from tests.unit.persistence._states import DEPLOYMENT_ID, sample_state


@pytest.fixture
def store(tmp_path):
    return FileStateStore(tmp_path / "state")


def test_load_missing_returns_none(store):
    assert store.load(DEPLOYMENT_ID) is None


def test_save_writes_json_document(store, tmp_path):
    store.save(sample_state())
    path = tmp_path / "state" / f"{DEPLOYMENT_ID}.json"
    data = json.loads(path.read_text())
    assert data["version"] == 1
    assert list(data["resources"]) == ["manage-files", "storage"]


def test_no_temp_files_left_behind(store, tmp_path):
    saved = store.save(sample_state())
    store.save(saved)
    assert [p.name for p in (tmp_path / "state").iterdir()] == [f"{DEPLOYMENT_ID}.json"]


def test_unknown_fields_are_ignored(store, tmp_path):
    store.save(sample_state())
    path = tmp_path / "state" / f"{DEPLOYMENT_ID}.json"
    data = json.loads(path.read_text())
    data["schema_hint"] = "v2"
    data["resources"]["storage"]["drift"] = {"checked": True}
    path.write_text(json.dumps(data))

    loaded = store.load(DEPLOYMENT_ID)
    assert loaded.resources["storage"].identity["name"] == "files-prod"


def test_corrupt_document_raises(store, tmp_path):
    (tmp_path / "state").mkdir()
    (tmp_path / "state" / f"{DEPLOYMENT_ID}.json").write_text("{not json")
    with pytest.raises(StateStoreError):
        store.load(DEPLOYMENT_ID)


def test_clear_preserving_and_full(store):
    store.save(sample_state())
    kept = store.clear(DEPLOYMENT_ID, {"storage"})
    assert list(kept.resources) == ["storage"]
    assert kept.version == 2
    assert store.clear(DEPLOYMENT_ID, set()) is None
    assert store.load(DEPLOYMENT_ID) is None
