"""
Full-station snapshots: capture, reconstruction and the JSON wire format.

A snapshot holds, for every sector in order, its buildings (id, template
name, position, rotation) and its road cells, plus the 1-based current
sector number. Reconstruction resolves template names against the template
registry; unknown names are skipped so stale saves still load partially.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from buildings import Building, BuildingInstance
from sectors import SectorManager
from station_types import Position

logger = logging.getLogger(__name__)


# =============================================================================
# Snapshot Types
# =============================================================================


@dataclass(frozen=True)
class SerializedBuilding:
    id: str
    building_name: str
    row: int
    col: int
    rotation: int


@dataclass(frozen=True)
class SerializedSector:
    buildings: tuple[SerializedBuilding, ...] = ()
    roads: tuple[Position, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """Serialized state of the whole station."""

    sectors: tuple[SerializedSector, ...]
    current_sector: int  # 1-based


@dataclass
class DeserializeResult:
    """Outcome of rebuilding a station from a snapshot."""

    sectors: SectorManager
    skipped: list[tuple[int, SerializedBuilding, str]] = field(default_factory=list)  # (sector number, entry, reason)

    @property
    def complete(self) -> bool:
        return not self.skipped


# =============================================================================
# Capture and Reconstruction
# =============================================================================


def serialize(sectors: SectorManager) -> Snapshot:
    """Capture every sector. Buildings keep placement order, roads are row-major."""
    serialized = []
    for index in range(sectors.sector_count):
        buildings = tuple(
            SerializedBuilding(
                id=instance.id,
                building_name=instance.building.name,
                row=instance.row,
                col=instance.col,
                rotation=instance.rotation,
            )
            for instance in sectors.instances_at(index)
        )
        roads = tuple(sectors.grid_at(index).road_cells())
        serialized.append(SerializedSector(buildings, roads))
    return Snapshot(tuple(serialized), sectors.sector_number)


def deserialize(
    snapshot: Snapshot,
    registry: Mapping[str, Building],
    sectors: SectorManager | None = None,
) -> DeserializeResult:
    """
    Rebuild a station from a snapshot.

    All sectors are cleared first. Buildings whose template is unknown, whose
    footprint no longer fits the grid, or whose id was already loaded (in any
    sector) are skipped with a warning and reported in the result. Instance
    ids and rotations are preserved.

    Args:
        snapshot: The snapshot to load
        registry: Template name -> Building lookup
        sectors: Existing manager to load into (a new one is created if omitted)

    Returns:
        DeserializeResult with the populated manager and any skipped entries
    """
    if sectors is None:
        sectors = SectorManager()
    sectors.clear_all()
    result = DeserializeResult(sectors)
    loaded_ids: set[str] = set()

    for index, sector in enumerate(snapshot.sectors):
        if not sectors.switch_to(index):
            logger.warning(
                "Snapshot has %d sectors, ignoring sector %d onwards",
                len(snapshot.sectors), index + 1,
            )
            break

        for entry in sector.buildings:
            if entry.id in loaded_ids:
                logger.warning("Sector %d: skipping building %s, id already loaded", index + 1, entry.id)
                result.skipped.append((index + 1, entry, "duplicate id"))
                continue

            building = registry.get(entry.building_name)
            if building is None:
                logger.warning(
                    "Sector %d: skipping building %s, unknown template '%s'",
                    index + 1, entry.id, entry.building_name,
                )
                result.skipped.append((index + 1, entry, "unknown template"))
                continue

            instance = BuildingInstance(entry.id, building, entry.row, entry.col, entry.rotation)
            grid = sectors.current_grid
            if not all(grid.is_free(r, c) for r, c in instance.occupied_cells()):
                logger.warning(
                    "Sector %d: skipping building %s (%s), footprint at (%d, %d) is blocked",
                    index + 1, entry.id, entry.building_name, entry.row, entry.col,
                )
                result.skipped.append((index + 1, entry, "blocked footprint"))
                continue
            sectors.add_instance(instance)
            loaded_ids.add(entry.id)

        grid = sectors.current_grid
        grid.set_road((r, c) for r, c in sector.roads if grid.is_free(r, c))

    if not sectors.switch_to_number(snapshot.current_sector):
        logger.warning("Snapshot current sector %s is invalid, using sector 1", snapshot.current_sector)
        sectors.switch_to(0)

    return result


# =============================================================================
# Wire Format
# =============================================================================


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    return {
        "sectors": [
            {
                "buildings": [
                    {
                        "id": b.id,
                        "buildingName": b.building_name,
                        "row": b.row,
                        "col": b.col,
                        "rotation": b.rotation,
                    }
                    for b in sector.buildings
                ],
                "roads": [{"row": r, "col": c} for r, c in sector.roads],
            }
            for sector in snapshot.sectors
        ],
        "currentSector": snapshot.current_sector,
    }


def _require_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer, got {value!r}")
    return value


def snapshot_from_dict(data: Any) -> Snapshot:
    """
    Parse the JSON shape produced by snapshot_to_dict.

    Raises:
        ValueError: If the structure is not a valid snapshot
    """
    if not isinstance(data, dict):
        raise ValueError(f"Snapshot must be an object, got {type(data).__name__}")
    raw_sectors = data.get("sectors")
    if not isinstance(raw_sectors, list):
        raise ValueError("Snapshot is missing its 'sectors' list")

    sectors = []
    for sector_idx, raw in enumerate(raw_sectors):
        if not isinstance(raw, dict):
            raise ValueError(f"Sector {sector_idx + 1} must be an object")
        raw_buildings = raw.get("buildings", [])
        raw_roads = raw.get("roads", [])
        if not isinstance(raw_buildings, list) or not isinstance(raw_roads, list):
            raise ValueError(f"Sector {sector_idx + 1}: 'buildings' and 'roads' must be lists")

        buildings = []
        for raw_building in raw_buildings:
            try:
                buildings.append(
                    SerializedBuilding(
                        id=str(raw_building["id"]),
                        building_name=str(raw_building["buildingName"]),
                        row=_require_int(raw_building["row"], "row"),
                        col=_require_int(raw_building["col"], "col"),
                        rotation=_require_int(raw_building.get("rotation", 0), "rotation") % 4,
                    )
                )
            except (KeyError, TypeError) as e:
                raise ValueError(f"Invalid building in sector {sector_idx + 1}: {e}") from e
        roads = []
        for raw_road in raw_roads:
            try:
                roads.append((_require_int(raw_road["row"], "row"), _require_int(raw_road["col"], "col")))
            except (KeyError, TypeError) as e:
                raise ValueError(f"Invalid road in sector {sector_idx + 1}: {e}") from e
        sectors.append(SerializedSector(tuple(buildings), tuple(roads)))

    current = _require_int(data.get("currentSector", 1), "currentSector")
    return Snapshot(tuple(sectors), current)


def encode_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot))


def decode_snapshot(blob: str | None) -> Snapshot | None:
    """Parse a stored blob. Absent, corrupt or malformed data yields None."""
    if not blob:
        return None
    try:
        return snapshot_from_dict(json.loads(blob))
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning("Ignoring unreadable snapshot: %s", e)
        return None
