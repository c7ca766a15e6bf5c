import json

import pytest

from inspection_ai.core.exceptions import MappingLookupError, MappingNotFoundError
from inspection_ai.infrastructure.mappings.memory_store import (
    InMemoryMappingStore,
    JsonFileMappingStore,
)
from inspection_ai.models.domain import ObjectMapping


def test_seeded_lookup_is_case_insensitive():
    store = InMemoryMappingStore({"Root": "R", "crack": "CL"})

    assert store.get_active("ROOT").observation_code == "R"
    assert store.get_active(" crack ").observation_code == "CL"
    assert store.get_active("joint") is None


def test_inactive_mapping_is_not_returned():
    store = InMemoryMappingStore({"root": "R"})
    store.set_active("root", False)

    assert store.get_active("root") is None
    assert [m.object_class for m in store.list_mappings()] == ["root"]
    assert store.list_mappings(active_only=True) == []


def test_upsert_replaces_and_stamps():
    store = InMemoryMappingStore({"root": "R"})

    saved = store.upsert(ObjectMapping(object_class="ROOT ", observation_code="RFJ"))

    assert saved.object_class == "root"
    assert saved.updated_at is not None
    assert store.get_active("root").observation_code == "RFJ"
    assert len(store.list_mappings()) == 1


def test_list_is_sorted():
    store = InMemoryMappingStore({"root": "R", "crack": "CL", "joint": "JO"})

    assert [m.object_class for m in store.list_mappings()] == ["crack", "joint", "root"]


def test_unknown_class_raises_not_found():
    store = InMemoryMappingStore()

    with pytest.raises(MappingNotFoundError):
        store.delete("root")
    with pytest.raises(MappingNotFoundError):
        store.set_active("root", True)


def test_delete():
    store = InMemoryMappingStore({"root": "R"})
    store.delete("ROOT")

    assert store.list_mappings() == []


def test_object_mapping_validation():
    with pytest.raises(ValueError):
        ObjectMapping(object_class="   ", observation_code="R")
    with pytest.raises(ValueError):
        ObjectMapping(object_class="root", observation_code="R", confidence_threshold=1.5)


def test_json_store_persists_changes(tmp_path):
    path = tmp_path / "mappings" / "objects.json"
    store = JsonFileMappingStore(path)
    store.upsert(ObjectMapping(object_class="Root", observation_code="R"))
    store.upsert(ObjectMapping(object_class="crack", observation_code="CL", is_active=False))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert [item["object_class"] for item in data] == ["crack", "root"]

    reloaded = JsonFileMappingStore(path)
    assert reloaded.get_active("root").observation_code == "R"
    assert reloaded.get_active("crack") is None

    reloaded.delete("root")
    assert [m.object_class for m in JsonFileMappingStore(path).list_mappings()] == ["crack"]


def test_json_store_missing_file_starts_empty(tmp_path):
    store = JsonFileMappingStore(tmp_path / "missing.json")

    assert store.list_mappings() == []


@pytest.mark.parametrize("content", ["{not json", '{"root": "R"}', '[{"object_class": "root"}]'])
def test_json_store_rejects_bad_file(tmp_path, content):
    path = tmp_path / "objects.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(MappingLookupError):
        JsonFileMappingStore(path)


def test_json_store_failed_write_keeps_previous_table(tmp_path):
    path = tmp_path / "objects.json"
    store = JsonFileMappingStore(path)
    store.upsert(ObjectMapping(object_class="crack", observation_code="CL"))

    # A directory in place of the file makes every write fail
    path.unlink()
    path.mkdir()

    with pytest.raises(MappingLookupError):
        store.upsert(ObjectMapping(object_class="root", observation_code="R"))
    assert store.get_active("root") is None

    with pytest.raises(MappingLookupError):
        store.set_active("crack", False)
    assert store.get_active("crack").observation_code == "CL"

    with pytest.raises(MappingLookupError):
        store.delete("crack")
    assert [m.object_class for m in store.list_mappings()] == ["crack"]

    assert list(tmp_path.glob("*.tmp")) == []


def test_json_store_write_replaces_file(tmp_path):
    path = tmp_path / "objects.json"
    path.write_text('[{"object_class": "root", "observation_code": "R"}]', encoding="utf-8")
    store = JsonFileMappingStore(path)

    store.upsert(ObjectMapping(object_class="crack", observation_code="CL"))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert [item["object_class"] for item in data] == ["crack", "root"]
    assert not (tmp_path / "objects.json.tmp").exists()
