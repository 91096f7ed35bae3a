"""Tests for layout persistence and debounced autosave."""

import json
import logging
import random
from pathlib import Path

import pytest

from layout_storage import (
    AUTOSAVE_KEY,
    LAYOUTS_KEY,
    AutosaveScheduler,
    FileStorage,
    LayoutMetadata,
    LayoutStorage,
    MemoryStorage,
    SavedLayout,
    StorageError,
    export_filename,
    load_layout_directory,
)
from name_generator import ADJECTIVES, NOUNS, generate_name
from snapshot import SerializedBuilding, SerializedSector, Snapshot, snapshot_to_dict


def make_snapshot(current: int = 1) -> Snapshot:
    return Snapshot(
        (SerializedSector((SerializedBuilding("b1", "House", 2, 3, 1),), ((4, 5), (4, 6))),),
        current,
    )


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestBlobStores:
    """The key/value stores under LayoutStorage."""

    def test_memory_quota(self) -> None:
        """Writes past the quota raise StorageError and keep the old value."""
        store = MemoryStorage(quota=10)
        store.set("a", "12345")
        with pytest.raises(StorageError):
            store.set("b", "1234567")
        assert store.get("b") is None
        store.set("a", "1234567890")
        assert store.get("a") == "1234567890"

    def test_file_storage(self, tmp_path: Path) -> None:
        """One file per key, created on first write."""
        store = FileStorage(tmp_path / "saves")
        assert store.get("k") is None
        store.set("k", "{}")
        assert store.get("k") == "{}"
        assert (tmp_path / "saves" / "k.json").read_text(encoding="utf-8") == "{}"

    def test_file_storage_unreadable_file(self, tmp_path: Path, caplog) -> None:
        """Undecodable bytes or a directory in place of the file read as absent."""
        (tmp_path / f"{AUTOSAVE_KEY}.json").write_bytes(b"\xff\xfe\x00garbage")
        (tmp_path / f"{LAYOUTS_KEY}.json").mkdir()
        storage = LayoutStorage(FileStorage(tmp_path))

        with caplog.at_level(logging.WARNING):
            assert storage.load_autosave() is None
            assert storage.all_layouts() == []
        assert "unreadable" in caplog.text


class TestAutosaveSlot:
    """The single autosave slot."""

    def test_round_trip(self) -> None:
        storage = LayoutStorage(MemoryStorage())
        assert storage.load_autosave() is None
        assert storage.save_autosave(make_snapshot(3)) is True
        assert storage.load_autosave() == make_snapshot(3)

    def test_corrupt_autosave_is_ignored(self, caplog) -> None:
        """A corrupt slot reads as empty with a warning."""
        store = MemoryStorage()
        store.set(AUTOSAVE_KEY, "{broken")
        with caplog.at_level(logging.WARNING):
            assert LayoutStorage(store).load_autosave() is None
        assert "unreadable" in caplog.text

    def test_quota_failure_reported_not_raised(self, caplog) -> None:
        """A failing store makes the save return False and logs an error."""
        storage = LayoutStorage(MemoryStorage(quota=5))
        with caplog.at_level(logging.ERROR):
            assert storage.save_autosave(make_snapshot()) is False
        assert "Failed to write" in caplog.text


class TestNamedLayouts:
    """Saving, listing and removing named layouts."""

    def test_save_and_load(self) -> None:
        storage = LayoutStorage(MemoryStorage())
        metadata = storage.save_layout("brave-comet", make_snapshot())

        assert metadata is not None
        assert metadata.name == "brave-comet"
        assert metadata.id.startswith("layout_")
        assert storage.load_layout(metadata.id) == SavedLayout(metadata, make_snapshot())
        assert storage.layout_metadata() == [metadata]

    def test_layouts_accumulate_in_order(self) -> None:
        storage = LayoutStorage(MemoryStorage())
        first = storage.save_layout("one", make_snapshot())
        second = storage.save_layout("two", make_snapshot(2))
        assert [m.id for m in storage.layout_metadata()] == [first.id, second.id]

    def test_delete(self) -> None:
        storage = LayoutStorage(MemoryStorage())
        keep = storage.save_layout("keep", make_snapshot())
        drop = storage.save_layout("drop", make_snapshot())

        assert storage.delete_layout(drop.id) is True
        assert storage.delete_layout(drop.id) is False
        assert storage.layout_metadata() == [keep]

    def test_load_missing(self) -> None:
        assert LayoutStorage(MemoryStorage()).load_layout("layout_x") is None

    def test_save_fails_on_quota(self) -> None:
        """A full store returns None and leaves existing layouts in place."""
        store = MemoryStorage(quota=400)
        storage = LayoutStorage(store)
        assert storage.save_layout("first", make_snapshot()) is not None
        assert storage.save_layout("second", make_snapshot()) is None
        assert [m.name for m in storage.layout_metadata()] == ["first"]

    def test_invalid_entries_dropped(self) -> None:
        """Entries that fail validation are skipped, valid ones kept."""
        good = SavedLayout(LayoutMetadata("layout_1", "good", 5), make_snapshot()).to_dict()
        store = MemoryStorage()
        store.set(LAYOUTS_KEY, json.dumps([good, {"metadata": {"id": "x"}}, {"data": {}}, 7]))

        layouts = LayoutStorage(store).all_layouts()

        assert [layout.metadata.name for layout in layouts] == ["good"]

    @pytest.mark.parametrize("blob", ["not json", json.dumps({"a": 1})])
    def test_unreadable_list(self, blob: str) -> None:
        store = MemoryStorage()
        store.set(LAYOUTS_KEY, blob)
        assert LayoutStorage(store).all_layouts() == []


class TestMetadata:
    """Layout metadata encoding."""

    def test_optional_fields_omitted(self) -> None:
        assert LayoutMetadata("layout_1", "n", 10).to_dict() == {
            "id": "layout_1",
            "name": "n",
            "timestamp": 10,
        }

    def test_optional_fields_round_trip(self) -> None:
        metadata = LayoutMetadata("layout_1", "n", 10, "repository", "someone", "a layout")
        assert LayoutMetadata.from_dict(metadata.to_dict()) == metadata

    def test_name_defaults_to_id(self) -> None:
        assert LayoutMetadata.from_dict({"id": "layout_9"}).name == "layout_9"

    @pytest.mark.parametrize("raw", [None, {}, {"name": "x"}, "layout_1"])
    def test_invalid_metadata(self, raw) -> None:
        with pytest.raises(ValueError):
            LayoutMetadata.from_dict(raw)


class TestExportImport:
    """Exporting layouts to standalone JSON and importing them back."""

    def test_export_tags_source(self) -> None:
        storage = LayoutStorage(MemoryStorage())
        metadata = storage.save_layout("calm-orbit", make_snapshot())

        exported = json.loads(storage.export_layout(metadata.id))

        assert exported["metadata"]["source"] == "user"
        assert isinstance(exported["metadata"]["exportedAt"], int)
        assert exported["data"] == snapshot_to_dict(make_snapshot())

    def test_export_missing(self) -> None:
        assert LayoutStorage(MemoryStorage()).export_layout("nope") is None

    def test_import_gets_fresh_id(self) -> None:
        source = LayoutStorage(MemoryStorage())
        metadata = source.save_layout("calm-orbit", make_snapshot(2))
        blob = source.export_layout(metadata.id)

        target = LayoutStorage(MemoryStorage())
        imported = target.import_layout(blob)

        assert imported is not None
        assert imported.name == "calm-orbit"
        assert target.load_layout(imported.id).data == make_snapshot(2)

    @pytest.mark.parametrize("blob", ["", "[]", json.dumps({"metadata": {"id": "x"}})])
    def test_import_invalid(self, blob: str) -> None:
        storage = LayoutStorage(MemoryStorage())
        assert storage.import_layout(blob) is None
        assert storage.all_layouts() == []

    def test_export_filename(self) -> None:
        assert export_filename("My  Big Layout") == "my-big-layout.json"


class TestLayoutDirectory:
    """Bundled layouts loaded from a directory."""

    def write_layout(self, directory: Path, filename: str, name: str) -> None:
        layout = SavedLayout(LayoutMetadata(f"layout_{name}", name, 1, "repository"), make_snapshot())
        (directory / filename).write_text(json.dumps(layout.to_dict()), encoding="utf-8")

    def test_sorted_by_name_skipping_manifest(self, tmp_path: Path) -> None:
        self.write_layout(tmp_path, "a.json", "zebra")
        self.write_layout(tmp_path, "b.json", "Alpha")
        (tmp_path / "manifest.json").write_text('["a.json", "b.json"]', encoding="utf-8")
        (tmp_path / "broken.json").write_text("{", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        layouts = load_layout_directory(tmp_path)

        assert [layout.metadata.name for layout in layouts] == ["Alpha", "zebra"]
        assert layouts[0].metadata.source == "repository"

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert load_layout_directory(tmp_path / "absent") == []


class TestAutosaveScheduler:
    """Debounced autosave."""

    def make(self, store: MemoryStorage | None = None, delay: float = 0.5):
        clock = FakeClock()
        storage = LayoutStorage(store or MemoryStorage())
        calls = []

        def snapshot_fn() -> Snapshot:
            calls.append(clock.now)
            return make_snapshot()

        return AutosaveScheduler(storage, snapshot_fn, delay, clock), storage, clock, calls

    def test_nothing_pending_initially(self) -> None:
        scheduler, _, clock, calls = self.make()
        clock.now += 10
        assert scheduler.poll() is False
        assert scheduler.flush() is False
        assert calls == []

    def test_write_after_delay(self) -> None:
        scheduler, storage, clock, calls = self.make()
        scheduler.mark_dirty()
        clock.now += 0.3
        assert scheduler.poll() is False
        clock.now += 0.3
        assert scheduler.poll() is True
        assert not scheduler.pending
        assert storage.load_autosave() == make_snapshot()
        assert len(calls) == 1

    def test_rapid_edits_coalesce(self) -> None:
        """Each mutation restarts the delay; one write results."""
        scheduler, _, clock, calls = self.make()
        for _ in range(5):
            scheduler.mark_dirty()
            clock.now += 0.3
            scheduler.poll()
        assert calls == []
        clock.now += 0.3
        assert scheduler.poll() is True
        assert len(calls) == 1

    def test_flush_writes_immediately(self) -> None:
        scheduler, storage, _, _ = self.make()
        scheduler.mark_dirty()
        assert scheduler.flush() is True
        assert storage.load_autosave() is not None

    def test_reset_drops_pending(self) -> None:
        scheduler, _, clock, calls = self.make()
        scheduler.mark_dirty()
        scheduler.reset()
        clock.now += 1
        assert scheduler.poll() is False
        assert calls == []

    def test_failed_write_retries_after_delay(self) -> None:
        """A failing store keeps the scheduler dirty and waits another delay."""
        store = MemoryStorage(quota=5)
        scheduler, _, clock, calls = self.make(store)
        scheduler.mark_dirty()
        clock.now += 0.5
        assert scheduler.poll() is False
        assert scheduler.pending
        assert scheduler.poll() is False
        assert len(calls) == 1

        store.quota = None
        clock.now += 0.5
        assert scheduler.poll() is True
        assert len(calls) == 2


class TestGenerateName:
    """Random layout names."""

    def test_adjective_noun(self) -> None:
        adjective, noun = generate_name(random.Random(7)).split("-")
        assert adjective in ADJECTIVES
        assert noun in NOUNS

    def test_seeded_is_deterministic(self) -> None:
        assert generate_name(random.Random(1)) == generate_name(random.Random(1))
