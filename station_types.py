"""
Shared type definitions for the station layout engine.
"""

from __future__ import annotations

from dataclasses import dataclass

# =============================================================================
# Station Constants
# =============================================================================

GRID_WIDTH = 56
GRID_HEIGHT = 30

# Structural connection points: these rows crossed with the two boundary columns
CONNECTION_ROWS: tuple[int, ...] = (4, 13, 16, 25)
CONNECTION_COLS: tuple[int, ...] = (0, 55)

SECTOR_COUNT = 6

# Inclusive column band that never accepts wall-required buildings
WALL_FORBIDDEN_COLS: tuple[int, int] = (24, 31)

Position = tuple[int, int]  # (row, col)


# =============================================================================
# Cell Types
# =============================================================================


@dataclass(frozen=True)
class Empty:
    """An empty cell."""

    pass


@dataclass(frozen=True)
class BuildingCell:
    """A cell covered by a placed building (holds the instance id only)."""

    instance_id: str


@dataclass(frozen=True)
class Road:
    """A road cell."""

    pass


@dataclass(frozen=True)
class ConnectionPoint:
    """A structural connection point on the sector boundary."""

    pass


Cell = Empty | BuildingCell | Road | ConnectionPoint


# =============================================================================
# Adjacency Types
# =============================================================================


@dataclass(frozen=True)
class Uniform:
    """Edge descriptor applying one value to every cell along the edge."""

    value: bool

    def reversed(self) -> Uniform:
        return self

    def expand(self, length: int) -> tuple[bool, ...]:
        return (self.value,) * length


@dataclass(frozen=True)
class PerCell:
    """Edge descriptor with an explicit value per cell along the edge."""

    values: tuple[bool, ...]

    def reversed(self) -> PerCell:
        return PerCell(tuple(reversed(self.values)))

    def expand(self, length: int) -> tuple[bool, ...]:
        # Short arrays leave the remaining cells inactive
        padded = self.values[:length]
        return padded + (False,) * (length - len(padded))


Edge = Uniform | PerCell


@dataclass(frozen=True)
class Adjacency:
    """Per-side connection description of a building."""

    top: Edge
    left: Edge
    right: Edge
    bottom: Edge

    def rotate_once(self) -> Adjacency:
        """Quarter turn clockwise: left -> top -> right -> bottom -> left."""
        return Adjacency(
            top=self.left.reversed(),
            right=self.top.reversed(),
            bottom=self.right.reversed(),
            left=self.bottom.reversed(),
        )
