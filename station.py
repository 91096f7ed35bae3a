"""
Station context: the single object collaborators receive.

StationState wires the template registry, the sectors, the interaction
state (selected building, rotation, pending road endpoint), dialogs and
autosave together and exposes the query/command surface used by renderers
and input handlers. It is constructed explicitly and passed around; there is
no global accessor.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from buildings import Building, BuildingInstance, normalize_rotation
from config_loader import TemplateRegistry
from dialogs import DialogMachine
from layout_storage import AUTOSAVE_DELAY, AutosaveScheduler, LayoutMetadata, LayoutStorage, Storage
from name_generator import generate_name
from placement import building_at, can_place, delete_building, place_building
from roads import compute_line_cells, delete_road, place_road
from sectors import NavDirection, SectorManager
from snapshot import DeserializeResult, Snapshot, deserialize, serialize
from station_types import Cell, Position

logger = logging.getLogger(__name__)


class PlacementMode(Enum):
    """What a grid click currently means."""

    VIEW = "view"
    PLACING = "placing"
    ROAD_PLACING = "road_placing"
    ROAD_DELETING = "road_deleting"


class StationState:
    """Application state for one station editing session."""

    def __init__(
        self,
        registry: TemplateRegistry,
        storage: Storage | None = None,
        autosave_delay: float = AUTOSAVE_DELAY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self.sectors = SectorManager()
        self.dialogs = DialogMachine()

        self.mode = PlacementMode.VIEW
        self.selected_name: str | None = None
        self.selected_rotation = 0
        self.road_start: Position | None = None
        self.show_inactive_indicators = False

        self.layouts: LayoutStorage | None = None
        self.autosave: AutosaveScheduler | None = None
        if storage is not None:
            self.layouts = LayoutStorage(storage)
            self.autosave = AutosaveScheduler(self.layouts, self.snapshot, delay=autosave_delay, clock=clock)

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def sector_number(self) -> int:
        return self.sectors.sector_number

    @property
    def placed_buildings(self) -> list[BuildingInstance]:
        return self.sectors.current_instances

    @property
    def selected_building(self) -> Building | None:
        if self.selected_name is None:
            return None
        return self.registry.get(self.selected_name)

    def cell(self, row: int, col: int) -> Cell | None:
        return self.sectors.current_grid.get(row, col)

    def building_at(self, row: int, col: int) -> BuildingInstance | None:
        return building_at(self.sectors, row, col)

    def can_place_selected(self, row: int, col: int) -> bool:
        building = self.selected_building
        if building is None:
            return False
        return can_place(self.sectors, building, self.selected_rotation, row, col)

    def preview_cells(self, row: int, col: int) -> list[Position]:
        """Footprint the selected building would cover with its top-left at (row, col)."""
        building = self.selected_building
        if building is None:
            return []
        preview = BuildingInstance("preview", building, row, col, self.selected_rotation)
        return preview.occupied_cells()

    def road_preview(self, row: int, col: int) -> list[Position]:
        if self.road_start is None:
            return []
        return compute_line_cells(*self.road_start, row, col)

    # =========================================================================
    # Selection
    # =========================================================================

    def start_placing(self, name: str) -> bool:
        if name not in self.registry:
            logger.warning("Unknown building '%s'", name)
            return False
        self.mode = PlacementMode.PLACING
        self.selected_name = name
        self.selected_rotation = 0
        self.road_start = None
        return True

    def rotate_selected(self) -> None:
        if self.mode == PlacementMode.PLACING:
            self.selected_rotation = normalize_rotation(self.selected_rotation + 1)

    def start_road_placing(self) -> None:
        self.cancel()
        self.mode = PlacementMode.ROAD_PLACING

    def start_road_deleting(self) -> None:
        self.cancel()
        self.mode = PlacementMode.ROAD_DELETING

    def cancel(self) -> None:
        """Abandon any pending selection or half-drawn road."""
        self.mode = PlacementMode.VIEW
        self.selected_name = None
        self.selected_rotation = 0
        self.road_start = None

    # =========================================================================
    # Commands
    # =========================================================================

    def _changed(self) -> None:
        if self.autosave is not None:
            self.autosave.mark_dirty()

    def place_selected(self, row: int, col: int) -> BuildingInstance | None:
        """Place the selected building. Selection stays active for repeated placement."""
        building = self.selected_building
        if self.mode != PlacementMode.PLACING or building is None:
            return None
        instance = place_building(self.sectors, building, self.selected_rotation, row, col)
        if instance is not None:
            self._changed()
        return instance

    def delete_building(self, instance_id: str) -> bool:
        removed = delete_building(self.sectors, instance_id)
        if removed:
            self._changed()
        return removed

    def delete_building_at(self, row: int, col: int) -> bool:
        instance = self.building_at(row, col)
        if instance is None:
            return False
        return self.delete_building(instance.id)

    def place_road(self, start: Position, end: Position) -> bool:
        placed = place_road(self.sectors, *start, *end)
        if placed:
            self._changed()
        return placed

    def delete_road(self, start: Position, end: Position) -> int:
        cleared = delete_road(self.sectors, *start, *end)
        if cleared:
            self._changed()
        return cleared

    def road_click(self, row: int, col: int) -> bool:
        """
        Handle a grid click in a road mode.

        The first click records the start point. The second click places or
        deletes the line and clears the start point either way.

        Returns:
            True if the second click changed the grid
        """
        if self.mode not in (PlacementMode.ROAD_PLACING, PlacementMode.ROAD_DELETING):
            return False
        if self.road_start is None:
            self.road_start = (row, col)
            return False

        start, self.road_start = self.road_start, None
        if self.mode == PlacementMode.ROAD_PLACING:
            return self.place_road(start, (row, col))
        return self.delete_road(start, (row, col)) > 0

    def switch_sector(self, number: int) -> bool:
        """Switch to a 1-based sector number. Pending interactions are abandoned."""
        if number == self.sectors.sector_number:
            return True
        if not self.sectors.switch_to_number(number):
            return False
        self.cancel()
        self._changed()
        return True

    def navigate(self, direction: NavDirection) -> bool:
        return self.switch_sector(self.sectors.adjacent_number(direction))

    def clear_current_sector(self) -> None:
        self.sectors.clear_current()
        self.road_start = None
        self._changed()
        logger.info("Cleared sector %d", self.sector_number)

    def request_clear_current_sector(self) -> None:
        self.dialogs.request_confirmation(
            "Clear Sector",
            f"Clear all buildings and roads in sector {self.sector_number}?",
            self.clear_current_sector,
        )

    def toggle_inactive_indicators(self) -> None:
        self.show_inactive_indicators = not self.show_inactive_indicators

    # =========================================================================
    # Persistence
    # =========================================================================

    def snapshot(self) -> Snapshot:
        return serialize(self.sectors)

    def load_snapshot(self, snapshot: Snapshot) -> DeserializeResult:
        self.cancel()
        result = deserialize(snapshot, self.registry, self.sectors)
        self._changed()
        return result

    def restore_autosave(self) -> bool:
        if self.layouts is None:
            return False
        snapshot = self.layouts.load_autosave()
        if snapshot is None:
            return False
        logger.info("Restoring autosaved state")
        self.load_snapshot(snapshot)
        # Freshly restored state matches what is stored
        if self.autosave is not None:
            self.autosave.reset()
        return True

    def save_layout(self, name: str | None = None) -> LayoutMetadata | None:
        if self.layouts is None:
            return None
        return self.layouts.save_layout(name or generate_name(), self.snapshot())

    def request_save_layout(self, on_saved: Callable[[LayoutMetadata | None], None] | None = None) -> None:
        """
        Prompt for a name (a generated one is the default) and save.

        Args:
            on_saved: Called with the saved layout's metadata, or None if the
                write failed
        """

        def save(name: str) -> None:
            metadata = self.save_layout(name)
            if on_saved is not None:
                on_saved(metadata)

        self.dialogs.request_input("Layout name", save, default=generate_name())

    def request_load_layout(self, on_loaded: Callable[[DeserializeResult | None], None] | None = None) -> bool:
        """
        Prompt for the number of a saved layout and load it.

        The prompt lists the saved layouts as `1=name`, and the newest one is
        the default. Returns False (no dialog opened) when nothing is saved.
        """
        if self.layouts is None:
            return False
        saved = self.layouts.layout_metadata()
        if not saved:
            return False

        def load(choice: str) -> None:
            result = None
            if choice.isdigit() and 1 <= int(choice) <= len(saved):
                result = self.load_layout(saved[int(choice) - 1].id)
            else:
                logger.warning("No saved layout numbered %r", choice)
            if on_loaded is not None:
                on_loaded(result)

        listing = ", ".join(f"{number}={metadata.name}" for number, metadata in enumerate(saved, 1))
        self.dialogs.request_input(f"Load layout ({listing})", load, default=str(len(saved)))
        return True

    def load_layout(self, layout_id: str) -> DeserializeResult | None:
        if self.layouts is None:
            return None
        layout = self.layouts.load_layout(layout_id)
        if layout is None:
            return None
        logger.info("Loading layout '%s'", layout.metadata.name)
        return self.load_snapshot(layout.data)

    def tick(self) -> None:
        """Per-frame housekeeping: lets a due autosave go out."""
        if self.autosave is not None:
            self.autosave.poll()
