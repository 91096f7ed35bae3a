"""
Road editing: axis-aligned straight lines of road cells.
"""

from __future__ import annotations

import logging

from sectors import SectorManager
from station_types import BuildingCell, Position, Road

logger = logging.getLogger(__name__)


def compute_line_cells(start_row: int, start_col: int, end_row: int, end_col: int) -> list[Position]:
    """
    Cells on the straight line between two endpoints, inclusive.

    The endpoints must share a row or a column; otherwise the line is not
    representable and the result is empty. The result does not depend on
    which endpoint comes first.
    """
    if start_row == end_row:
        lo, hi = sorted((start_col, end_col))
        return [(start_row, c) for c in range(lo, hi + 1)]
    if start_col == end_col:
        lo, hi = sorted((start_row, end_row))
        return [(r, start_col) for r in range(lo, hi + 1)]
    return []


def can_place_road(sectors: SectorManager, start_row: int, start_col: int, end_row: int, end_col: int) -> bool:
    """Every line cell must be in bounds and free of buildings. Existing roads are fine."""
    cells = compute_line_cells(start_row, start_col, end_row, end_col)
    if not cells:
        return False

    grid = sectors.current_grid
    for row, col in cells:
        cell = grid.get(row, col)
        if cell is None or isinstance(cell, BuildingCell):
            return False
    return True


def place_road(sectors: SectorManager, start_row: int, start_col: int, end_row: int, end_col: int) -> bool:
    if not can_place_road(sectors, start_row, start_col, end_row, end_col):
        logger.debug(
            "place_road rejected: (%d, %d) -> (%d, %d)", start_row, start_col, end_row, end_col
        )
        return False

    cells = compute_line_cells(start_row, start_col, end_row, end_col)
    sectors.current_grid.set_road(cells)
    logger.info("Placed %d road cells in sector %d", len(cells), sectors.sector_number)
    return True


def delete_road(sectors: SectorManager, start_row: int, start_col: int, end_row: int, end_col: int) -> int:
    """
    Clear the road cells on a line. Cells holding anything else are left alone.

    Returns:
        Number of road cells removed
    """
    cells = compute_line_cells(start_row, start_col, end_row, end_col)
    cleared = sectors.current_grid.clear_road(cells)
    if cleared:
        logger.info("Removed %d road cells from sector %d", cleared, sectors.sector_number)
    return cleared


def has_roads_in_line(sectors: SectorManager, start_row: int, start_col: int, end_row: int, end_col: int) -> bool:
    grid = sectors.current_grid
    return any(
        isinstance(grid.get(row, col), Road)
        for row, col in compute_line_cells(start_row, start_col, end_row, end_col)
    )
