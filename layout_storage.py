"""
Layout persistence on top of an opaque key/value blob store.

The store only has to provide `get(key)` and `set(key, blob)`. Everything
about the blobs (JSON encoding, validation, tolerance of corrupt data) is
handled here. Two keys are used: an autosave slot holding a bare snapshot,
and a list of named layouts each wrapped with metadata.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol

from placement import generate_id
from snapshot import Snapshot, decode_snapshot, encode_snapshot, snapshot_from_dict, snapshot_to_dict

logger = logging.getLogger(__name__)

LAYOUTS_KEY = "ixion-layouts"
AUTOSAVE_KEY = "ixion-layout-autosave"

AUTOSAVE_DELAY = 0.5  # seconds


class StorageError(Exception):
    """Raised by a store that cannot accept a write (e.g. quota exceeded)."""

    pass


class Storage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, blob: str) -> None: ...


class MemoryStorage:
    """In-process store, optionally capped in total size."""

    def __init__(self, quota: int | None = None) -> None:
        self.data: dict[str, str] = {}
        self.quota = quota

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, blob: str) -> None:
        if self.quota is not None:
            used = sum(len(v) for k, v in self.data.items() if k != key)
            if used + len(blob) > self.quota:
                raise StorageError(f"Storage quota exceeded writing '{key}'")
        self.data[key] = blob


class FileStorage:
    """One JSON file per key inside a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        """Stored blob, or None when the file is missing or unreadable."""
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable file %s: %s", path, e)
            return None

    def set(self, key: str, blob: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(blob, encoding="utf-8")


# =============================================================================
# Saved Layouts
# =============================================================================


@dataclass(frozen=True)
class LayoutMetadata:
    id: str
    name: str
    timestamp: int  # milliseconds since the epoch
    source: str | None = None  # "repository" or "user"
    author: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name, "timestamp": self.timestamp}
        for key in ("source", "author", "description"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> LayoutMetadata:
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError(f"Invalid layout metadata: {data!r}")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            timestamp=int(data.get("timestamp", 0)),
            source=data.get("source"),
            author=data.get("author"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class SavedLayout:
    metadata: LayoutMetadata
    data: Snapshot

    def to_dict(self) -> dict[str, Any]:
        return {"metadata": self.metadata.to_dict(), "data": snapshot_to_dict(self.data)}

    @classmethod
    def from_dict(cls, raw: Any) -> SavedLayout:
        if not isinstance(raw, dict) or "data" not in raw:
            raise ValueError("Layout must have 'metadata' and 'data'")
        return cls(LayoutMetadata.from_dict(raw.get("metadata")), snapshot_from_dict(raw["data"]))


def _now_ms() -> int:
    return int(time.time() * 1000)


class LayoutStorage:
    """Autosave slot plus a list of named layouts in one store."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def _write(self, key: str, blob: str) -> bool:
        try:
            self.storage.set(key, blob)
        except (StorageError, OSError) as e:
            logger.error("Failed to write '%s': %s", key, e)
            return False
        return True

    # -------------------------------------------------------------------------
    # Autosave
    # -------------------------------------------------------------------------

    def save_autosave(self, snapshot: Snapshot) -> bool:
        return self._write(AUTOSAVE_KEY, encode_snapshot(snapshot))

    def load_autosave(self) -> Snapshot | None:
        return decode_snapshot(self.storage.get(AUTOSAVE_KEY))

    # -------------------------------------------------------------------------
    # Named layouts
    # -------------------------------------------------------------------------

    def all_layouts(self) -> list[SavedLayout]:
        """Every stored layout; entries that fail validation are dropped."""
        blob = self.storage.get(LAYOUTS_KEY)
        if not blob:
            return []
        try:
            raw_layouts = json.loads(blob)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unreadable layout list: %s", e)
            return []
        if not isinstance(raw_layouts, list):
            logger.warning("Ignoring layout list of type %s", type(raw_layouts).__name__)
            return []

        layouts = []
        for raw in raw_layouts:
            try:
                layouts.append(SavedLayout.from_dict(raw))
            except (ValueError, TypeError) as e:
                logger.warning("Skipping invalid saved layout: %s", e)
        return layouts

    def _write_layouts(self, layouts: list[SavedLayout]) -> bool:
        return self._write(LAYOUTS_KEY, json.dumps([layout.to_dict() for layout in layouts]))

    def save_layout(self, name: str, snapshot: Snapshot) -> LayoutMetadata | None:
        """Append a named layout. Returns its metadata, or None if the write failed."""
        metadata = LayoutMetadata(id=generate_id("layout"), name=name, timestamp=_now_ms())
        layouts = self.all_layouts()
        layouts.append(SavedLayout(metadata, snapshot))
        if not self._write_layouts(layouts):
            return None
        logger.info("Saved layout '%s' (%s)", name, metadata.id)
        return metadata

    def load_layout(self, layout_id: str) -> SavedLayout | None:
        for layout in self.all_layouts():
            if layout.metadata.id == layout_id:
                return layout
        return None

    def delete_layout(self, layout_id: str) -> bool:
        layouts = self.all_layouts()
        remaining = [layout for layout in layouts if layout.metadata.id != layout_id]
        if len(remaining) == len(layouts):
            return False
        return self._write_layouts(remaining)

    def layout_metadata(self) -> list[LayoutMetadata]:
        return [layout.metadata for layout in self.all_layouts()]

    def export_layout(self, layout_id: str) -> str | None:
        """Pretty-printed JSON for a stored layout, tagged as user-made."""
        layout = self.load_layout(layout_id)
        if layout is None:
            return None
        exported = layout.to_dict()
        exported["metadata"]["source"] = "user"
        exported["metadata"]["exportedAt"] = _now_ms()
        return json.dumps(exported, indent=2)

    def import_layout(self, blob: str) -> LayoutMetadata | None:
        """Store a previously exported layout under a fresh id."""
        try:
            layout = SavedLayout.from_dict(json.loads(blob))
        except (ValueError, TypeError) as e:
            logger.warning("Cannot import layout: %s", e)
            return None
        return self.save_layout(layout.metadata.name, layout.data)


def export_filename(name: str) -> str:
    return "-".join(name.lower().split()) + ".json"


def load_layout_directory(directory: str | Path) -> list[SavedLayout]:
    """
    Load bundled layouts from `*.json` files, sorted by name.

    `manifest.json` is skipped; unreadable or invalid files are logged and
    skipped.
    """
    layouts = []
    for path in sorted(Path(directory).glob("*.json")):
        if path.name == "manifest.json":
            continue
        try:
            layouts.append(SavedLayout.from_dict(json.loads(path.read_text(encoding="utf-8"))))
        except (OSError, ValueError, TypeError) as e:
            logger.error("Invalid layout file %s: %s", path, e)
    layouts.sort(key=lambda layout: layout.metadata.name.lower())
    return layouts


# =============================================================================
# Debounced Autosave
# =============================================================================


class AutosaveScheduler:
    """
    Coalesces autosave writes so they stay off the editing path.

    Mutations call `mark_dirty()`. The snapshot is written by `poll()` once
    `delay` seconds have passed since the last mutation, or immediately by
    `flush()`. A failed write leaves the scheduler dirty and restarts the delay.
    """

    def __init__(
        self,
        storage: LayoutStorage,
        snapshot_fn: Callable[[], Snapshot],
        delay: float = AUTOSAVE_DELAY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.storage = storage
        self.snapshot_fn = snapshot_fn
        self.delay = delay
        self.clock = clock
        self._dirty_since: float | None = None

    @property
    def pending(self) -> bool:
        return self._dirty_since is not None

    def mark_dirty(self) -> None:
        self._dirty_since = self.clock()

    def reset(self) -> None:
        """Drop a pending write without performing it."""
        self._dirty_since = None

    def poll(self) -> bool:
        """Write if the debounce delay has elapsed. Returns True when a write succeeded."""
        if self._dirty_since is None or self.clock() - self._dirty_since < self.delay:
            return False
        return self.flush()

    def flush(self) -> bool:
        if self._dirty_since is None:
            return False
        if not self.storage.save_autosave(self.snapshot_fn()):
            # Retry after another full delay
            self._dirty_since = self.clock()
            return False
        self._dirty_since = None
        return True
