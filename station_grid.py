"""
Fixed-size sector grid with structural connection points.
"""

from __future__ import annotations

from typing import Iterable

from station_types import (
    CONNECTION_COLS,
    CONNECTION_ROWS,
    GRID_HEIGHT,
    GRID_WIDTH,
    BuildingCell,
    Cell,
    ConnectionPoint,
    Empty,
    Position,
    Road,
)


def default_connection_points() -> frozenset[Position]:
    return frozenset((r, c) for r in CONNECTION_ROWS for c in CONNECTION_COLS)


class Grid:
    """
    A mutable matrix of cells for one sector.

    Connection points are a permanent attribute of their positions: whenever
    such a position is vacated it reverts to ConnectionPoint rather than Empty.
    """

    def __init__(
        self,
        height: int = GRID_HEIGHT,
        width: int = GRID_WIDTH,
        connection_points: Iterable[Position] | None = None,
    ) -> None:
        self.height = height
        self.width = width
        if connection_points is None:
            connection_points = default_connection_points()
        self.connection_points = frozenset(
            (r, c) for r, c in connection_points if self.is_valid_position(r, c)
        )
        self.cells: list[list[Cell]] = []
        self.clear()

    def _vacant(self, row: int, col: int) -> Cell:
        if self.is_connection_point(row, col):
            return ConnectionPoint()
        return Empty()

    def is_valid_position(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def is_connection_point(self, row: int, col: int) -> bool:
        return (row, col) in self.connection_points

    def get(self, row: int, col: int) -> Cell | None:
        """Return the cell at (row, col), or None when out of bounds."""
        if not self.is_valid_position(row, col):
            return None
        return self.cells[row][col]

    def set_building(self, positions: Iterable[Position], instance_id: str) -> None:
        cell = BuildingCell(instance_id)
        for row, col in positions:
            if self.is_valid_position(row, col):
                self.cells[row][col] = cell

    def set_road(self, positions: Iterable[Position]) -> None:
        for row, col in positions:
            if self.is_valid_position(row, col):
                self.cells[row][col] = Road()

    def clear_road(self, positions: Iterable[Position]) -> int:
        """
        Vacate the given positions that currently hold a road.

        Returns:
            Number of road cells cleared
        """
        cleared = 0
        for row, col in positions:
            if isinstance(self.get(row, col), Road):
                self.cells[row][col] = self._vacant(row, col)
                cleared += 1
        return cleared

    def clear_building(self, instance_id: str) -> None:
        for row in range(self.height):
            for col in range(self.width):
                cell = self.cells[row][col]
                if isinstance(cell, BuildingCell) and cell.instance_id == instance_id:
                    self.cells[row][col] = self._vacant(row, col)

    def clear(self) -> None:
        """Reset every cell; connection points are restored."""
        self.cells = [
            [self._vacant(row, col) for col in range(self.width)]
            for row in range(self.height)
        ]

    def road_cells(self) -> list[Position]:
        """All road positions in row-major order."""
        return [
            (row, col)
            for row in range(self.height)
            for col in range(self.width)
            if isinstance(self.cells[row][col], Road)
        ]

    def is_free(self, row: int, col: int) -> bool:
        """True for in-bounds Empty or ConnectionPoint cells."""
        return isinstance(self.get(row, col), (Empty, ConnectionPoint))
