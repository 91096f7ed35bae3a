"""Tests for the sector grid and the sector manager."""

from buildings import BuildingInstance
from sectors import SectorManager
from station_grid import Grid
from station_types import (
    CONNECTION_COLS,
    CONNECTION_ROWS,
    GRID_HEIGHT,
    GRID_WIDTH,
    BuildingCell,
    ConnectionPoint,
    Empty,
    Road,
)
from test_buildings import make_building


class TestGrid:
    """Tests for the fixed-size sector grid."""

    def test_dimensions(self) -> None:
        """Default grid is 30 rows x 56 columns."""
        grid = Grid()
        assert grid.height == GRID_HEIGHT == 30
        assert grid.width == GRID_WIDTH == 56

    def test_connection_points_at_construction(self) -> None:
        """Configured rows x boundary columns start as connection points."""
        grid = Grid()
        for row in CONNECTION_ROWS:
            for col in CONNECTION_COLS:
                assert isinstance(grid.get(row, col), ConnectionPoint)
        assert isinstance(grid.get(0, 0), Empty)
        assert isinstance(grid.get(4, 1), Empty)
        assert len(grid.connection_points) == 8

    def test_connection_point_survives_cover(self) -> None:
        """A covered connection point is still structural."""
        grid = Grid()
        grid.set_road([(16, 55)])
        assert isinstance(grid.get(16, 55), Road)
        assert grid.is_connection_point(16, 55)
        assert not grid.is_connection_point(16, 54)

    def test_custom_connection_points_clipped_to_grid(self) -> None:
        """Connection points outside the grid are dropped."""
        grid = Grid(3, 3, connection_points=[(1, 0), (5, 5)])
        assert grid.connection_points == frozenset({(1, 0)})
        assert isinstance(grid.get(1, 0), ConnectionPoint)

    def test_get_out_of_bounds_returns_none(self) -> None:
        """Probing outside the grid returns None instead of raising."""
        grid = Grid()
        assert grid.get(-1, 0) is None
        assert grid.get(0, -1) is None
        assert grid.get(30, 0) is None
        assert grid.get(0, 56) is None

    def test_set_building_and_road(self) -> None:
        """set_building stores the instance id; set_road tags road cells."""
        grid = Grid()
        grid.set_building([(1, 1), (1, 2)], "b1")
        grid.set_road([(2, 1)])

        assert grid.get(1, 1) == BuildingCell("b1")
        assert grid.get(1, 2) == BuildingCell("b1")
        assert isinstance(grid.get(2, 1), Road)

    def test_clear_restores_connection_points(self) -> None:
        """clear() empties the grid but keeps connection points."""
        grid = Grid()
        grid.set_road([(4, 0), (4, 1)])
        grid.set_building([(5, 5)], "b1")
        grid.clear()

        assert isinstance(grid.get(4, 0), ConnectionPoint)
        assert isinstance(grid.get(4, 1), Empty)
        assert isinstance(grid.get(5, 5), Empty)

    def test_clear_road_only_touches_roads(self) -> None:
        """clear_road leaves non-road cells alone and restores connection points."""
        grid = Grid()
        grid.set_road([(13, 0), (13, 1)])
        grid.set_building([(13, 2)], "b1")

        cleared = grid.clear_road([(13, 0), (13, 1), (13, 2)])

        assert cleared == 2
        assert isinstance(grid.get(13, 0), ConnectionPoint)
        assert isinstance(grid.get(13, 1), Empty)
        assert grid.get(13, 2) == BuildingCell("b1")

    def test_road_cells_row_major(self) -> None:
        """road_cells lists roads in row-major order."""
        grid = Grid()
        grid.set_road([(3, 5), (1, 9), (1, 2)])
        assert grid.road_cells() == [(1, 2), (1, 9), (3, 5)]


class TestSectorManager:
    """Tests for the six-sector container."""

    def test_six_independent_sectors(self) -> None:
        """Each sector has its own grid and instance list."""
        sectors = SectorManager()
        assert len(sectors.grids) == 6
        assert len({id(g) for g in sectors.grids}) == 6
        assert sectors.current_index == 0
        assert sectors.sector_number == 1

    def test_switch_to_valid(self) -> None:
        """Valid indices switch focus."""
        sectors = SectorManager()
        assert sectors.switch_to(5) is True
        assert sectors.current_index == 5
        assert sectors.sector_number == 6

    def test_switch_to_invalid_has_no_effect(self) -> None:
        """Out-of-range indices are rejected without side effects."""
        sectors = SectorManager()
        sectors.switch_to(2)
        assert sectors.switch_to(6) is False
        assert sectors.switch_to(-1) is False
        assert sectors.current_index == 2

    def test_switch_to_number_is_one_based(self) -> None:
        """External sector numbers are 1-based."""
        sectors = SectorManager()
        assert sectors.switch_to_number(3) is True
        assert sectors.current_index == 2
        assert sectors.switch_to_number(0) is False

    def test_adjacent_number_wraps(self) -> None:
        """Left of sector 1 is 6, right of sector 6 is 1."""
        sectors = SectorManager()
        assert sectors.adjacent_number("left") == 6
        assert sectors.adjacent_number("right") == 2
        sectors.switch_to(5)
        assert sectors.adjacent_number("right") == 1

    def test_add_and_remove_instance(self) -> None:
        """Instances are tracked per sector and marked on the grid."""
        sectors = SectorManager()
        instance = BuildingInstance("b1", make_building(height=2, width=2), 3, 3)
        sectors.add_instance(instance)

        assert sectors.current_instances == [instance]
        assert sectors.current_grid.get(4, 4) == BuildingCell("b1")

        sectors.switch_to(1)
        assert sectors.current_instances == []
        assert sectors.remove_instance("b1") is None

        sectors.switch_to(0)
        assert sectors.remove_instance("b1") is instance
        assert sectors.current_instances == []
        assert isinstance(sectors.current_grid.get(4, 4), Empty)

    def test_remove_unknown_is_noop(self) -> None:
        """Removing a nonexistent id does nothing."""
        sectors = SectorManager()
        assert sectors.remove_instance("missing") is None

    def test_clear_current_only(self) -> None:
        """clear_current leaves other sectors untouched."""
        sectors = SectorManager()
        sectors.add_instance(BuildingInstance("a", make_building(), 1, 1))
        sectors.switch_to(1)
        sectors.add_instance(BuildingInstance("b", make_building(), 1, 1))
        sectors.current_grid.set_road([(2, 2)])

        sectors.clear_current()

        assert sectors.current_instances == []
        assert sectors.current_grid.road_cells() == []
        assert [i.id for i in sectors.instances_at(0)] == ["a"]
