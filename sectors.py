"""
Multi-sector storage: six independent grids with their placed buildings.

Sector indices are 0-based internally. Anything shown to a user or written
into a snapshot uses the 1-based sector number.
"""

from __future__ import annotations

import logging
from typing import Literal

from buildings import BuildingInstance
from station_grid import Grid
from station_types import SECTOR_COUNT

logger = logging.getLogger(__name__)

NavDirection = Literal["left", "right"]


class SectorManager:
    """Owns the per-sector grids and instance lists; exactly one is current."""

    def __init__(self, sector_count: int = SECTOR_COUNT) -> None:
        self.sector_count = sector_count
        self.grids: list[Grid] = [Grid() for _ in range(sector_count)]
        self.instances: list[list[BuildingInstance]] = [[] for _ in range(sector_count)]
        self.current_index = 0

    # -------------------------------------------------------------------------
    # Focus
    # -------------------------------------------------------------------------

    @property
    def sector_number(self) -> int:
        """Current sector as a 1-based number."""
        return self.current_index + 1

    def switch_to(self, index: int) -> bool:
        """Make the 0-based `index` current. Out-of-range indices change nothing."""
        if 0 <= index < self.sector_count:
            self.current_index = index
            return True
        logger.debug("switch_to rejected: index %d outside [0, %d)", index, self.sector_count)
        return False

    def switch_to_number(self, number: int) -> bool:
        return self.switch_to(number - 1)

    def adjacent_number(self, direction: NavDirection) -> int:
        """1-based number of the neighbouring sector, wrapping at both ends."""
        step = -1 if direction == "left" else 1
        return (self.current_index + step) % self.sector_count + 1

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def current_grid(self) -> Grid:
        return self.grids[self.current_index]

    @property
    def current_instances(self) -> list[BuildingInstance]:
        return self.instances[self.current_index]

    def grid_at(self, index: int) -> Grid:
        return self.grids[index]

    def instances_at(self, index: int) -> list[BuildingInstance]:
        return self.instances[index]

    def find_instance(self, instance_id: str) -> BuildingInstance | None:
        for instance in self.current_instances:
            if instance.id == instance_id:
                return instance
        return None

    # -------------------------------------------------------------------------
    # Mutation (current sector only)
    # -------------------------------------------------------------------------

    def add_instance(self, instance: BuildingInstance) -> None:
        self.current_instances.append(instance)
        self.current_grid.set_building(instance.occupied_cells(), instance.id)

    def remove_instance(self, instance_id: str) -> BuildingInstance | None:
        """Remove an instance by id; unknown ids are a no-op returning None."""
        instance = self.find_instance(instance_id)
        if instance is None:
            return None
        self.current_instances.remove(instance)
        self.current_grid.clear_building(instance_id)
        return instance

    def clear_current(self) -> None:
        self.instances[self.current_index] = []
        self.current_grid.clear()

    def clear_all(self) -> None:
        for index in range(self.sector_count):
            self.instances[index] = []
            self.grids[index].clear()
