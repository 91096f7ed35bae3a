"""
Placement rules for buildings in the current sector.

All checks are pure: a rejected placement leaves the sector untouched and is
reported with a falsy return value rather than an exception.
"""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Callable

from buildings import Building, BuildingInstance, normalize_rotation
from sectors import SectorManager
from station_types import WALL_FORBIDDEN_COLS

logger = logging.getLogger(__name__)

IdFactory = Callable[[str], str]

_BASE36 = string.digits + string.ascii_lowercase


def random_suffix(length: int = 9) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def generate_id(prefix: str) -> str:
    """Make an id like `building_1712345678901_k3j9x0a2q`."""
    return f"{prefix}_{int(time.time() * 1000)}_{random_suffix()}"


def _id_in_use(sectors: SectorManager, instance_id: str) -> bool:
    return any(
        instance.id == instance_id
        for sector in sectors.instances
        for instance in sector
    )


# =============================================================================
# Validation
# =============================================================================


def violates_wall_rule(building: Building, rotation: int, row: int, col: int, grid_height: int) -> bool:
    """
    Check the wall constraint for wall-required buildings.

    The column span must stay clear of the forbidden band. At rotation 0 the
    bottom edge rests on the last row; at rotation 2 the (rotated) bottom edge
    rests on row 0. Rotations 1 and 3 never satisfy the rule.
    """
    if not building.wall_required:
        return False

    height, width = building.get_dimensions(rotation)
    band_start, band_end = WALL_FORBIDDEN_COLS
    if col <= band_end and col + width > band_start:
        return True

    match normalize_rotation(rotation):
        case 0:
            return row + height - 1 != grid_height - 1
        case 2:
            return row != 0
        case _:
            return True


def can_place(sectors: SectorManager, building: Building, rotation: int, row: int, col: int) -> bool:
    """
    Decide whether a building fits at (row, col) in the current sector.

    Args:
        sectors: The sector manager (only the current sector is inspected)
        building: Template to place
        rotation: Quarter turns clockwise
        row: Top row of the footprint
        col: Left column of the footprint

    Returns:
        True if bounds, wall and overlap rules all pass
    """
    grid = sectors.current_grid
    height, width = building.get_dimensions(rotation)

    if row < 0 or col < 0 or row + height > grid.height or col + width > grid.width:
        logger.debug("can_place %s: out of bounds at (%d, %d)", building.name, row, col)
        return False

    if violates_wall_rule(building, rotation, row, col, grid.height):
        logger.debug("can_place %s: wall rule fails at (%d, %d) rot=%d", building.name, row, col, rotation)
        return False

    for r in range(row, row + height):
        for c in range(col, col + width):
            if not grid.is_free(r, c):
                logger.debug("can_place %s: (%d, %d) is occupied", building.name, r, c)
                return False

    return True


# =============================================================================
# Commands
# =============================================================================


def place_building(
    sectors: SectorManager,
    building: Building,
    rotation: int,
    row: int,
    col: int,
    id_factory: IdFactory = generate_id,
) -> BuildingInstance | None:
    """
    Place a building in the current sector if the rules allow it.

    Returns:
        The new instance, or None when the placement is rejected
    """
    if not can_place(sectors, building, rotation, row, col):
        return None

    instance_id = id_factory("building")
    while _id_in_use(sectors, instance_id):
        instance_id = id_factory("building")

    instance = BuildingInstance(instance_id, building, row, col, rotation)
    sectors.add_instance(instance)
    logger.info(
        "Placed %s (%s) at (%d, %d) rot=%d in sector %d",
        building.name, instance_id, row, col, instance.rotation, sectors.sector_number,
    )
    return instance


def delete_building(sectors: SectorManager, instance_id: str) -> bool:
    """Remove an instance from the current sector. Unknown ids are a no-op."""
    removed = sectors.remove_instance(instance_id)
    if removed is not None:
        logger.info("Deleted %s (%s) from sector %d", removed.building.name, instance_id, sectors.sector_number)
    return removed is not None


def building_at(sectors: SectorManager, row: int, col: int) -> BuildingInstance | None:
    """The instance in the current sector whose footprint covers (row, col)."""
    for instance in sectors.current_instances:
        if instance.contains(row, col):
            return instance
    return None
