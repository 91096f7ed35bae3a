"""
Building templates, rotation transforms and placed building instances.

A Building is the immutable template loaded from configuration. A
BuildingInstance is one concrete placement of a template at a position and
quarter rotation. Instances share their template by reference.
"""

from __future__ import annotations

from dataclasses import dataclass

from station_types import Adjacency, Position


# =============================================================================
# Rotation
# =============================================================================


def normalize_rotation(rotation: int) -> int:
    """Reduce a rotation to a quarter-turn count in {0, 1, 2, 3}."""
    return rotation % 4


def rotate_adjacency(adjacency: Adjacency, rotation: int) -> Adjacency:
    """
    Apply the clockwise quarter-turn transform `rotation % 4` times.

    Each turn maps edges cyclically (new top <- old left, new right <- old top,
    new bottom <- old right, new left <- old bottom) and reverses per-cell
    edges, since walking an edge after a turn visits its cells backwards.

    Args:
        adjacency: The base adjacency descriptor
        rotation: Number of quarter turns clockwise

    Returns:
        The rotated adjacency descriptor
    """
    result = adjacency
    for _ in range(normalize_rotation(rotation)):
        result = result.rotate_once()
    return result


# =============================================================================
# Building Template
# =============================================================================


@dataclass(frozen=True)
class Building:
    """
    Immutable building template.

    Attributes:
        name: Unique template name (registry key)
        height: Rows occupied at rotation 0
        width: Columns occupied at rotation 0
        adjacency: Base (rotation 0) edge descriptors
        color: Display color, e.g. "#4a90d9"
        wall_required: Building must sit flush against the top or bottom wall
        category: Configuration category the template was listed under
    """

    name: str
    height: int
    width: int
    adjacency: Adjacency
    color: str
    wall_required: bool = False
    category: str = ""

    def get_dimensions(self, rotation: int) -> tuple[int, int]:
        """Return (height, width) at a rotation; swapped at 90° and 270°."""
        if normalize_rotation(rotation) in (1, 3):
            return (self.width, self.height)
        return (self.height, self.width)

    def rotated_adjacency(self, rotation: int) -> Adjacency:
        return rotate_adjacency(self.adjacency, rotation)

    def build_connection_matrix(self, rotation: int) -> tuple[tuple[bool, ...], ...]:
        """
        Expand the rotated adjacency into a height x width boolean matrix.

        Only border cells can be active. Every edge is overlaid with OR
        semantics, so a corner claimed by two edges is active when either edge
        marks it, and single-row or single-column buildings receive all four
        edges.

        Args:
            rotation: Number of quarter turns clockwise

        Returns:
            Row-major matrix of booleans
        """
        adj = self.rotated_adjacency(rotation)
        height, width = self.get_dimensions(rotation)
        matrix = [[False] * width for _ in range(height)]

        top = adj.top.expand(width)
        bottom = adj.bottom.expand(width)
        for c in range(width):
            matrix[0][c] = matrix[0][c] or top[c]
            matrix[height - 1][c] = matrix[height - 1][c] or bottom[c]

        left = adj.left.expand(height)
        right = adj.right.expand(height)
        for r in range(height):
            matrix[r][0] = matrix[r][0] or left[r]
            matrix[r][width - 1] = matrix[r][width - 1] or right[r]

        return tuple(tuple(row) for row in matrix)

    def size_label(self, rotation: int = 0) -> str:
        height, width = self.get_dimensions(rotation)
        return f"{height}×{width}"


# =============================================================================
# Building Instance
# =============================================================================


@dataclass
class BuildingInstance:
    """
    One placement of a building template.

    Rotation is only meaningful before placement (preview); once an instance
    sits in a sector its rotation is fixed.
    """

    id: str
    building: Building
    row: int
    col: int
    rotation: int = 0

    def __post_init__(self) -> None:
        self.rotation = normalize_rotation(self.rotation)

    def rotate(self) -> None:
        """Advance rotation by one quarter turn."""
        self.rotation = normalize_rotation(self.rotation + 1)

    def dimensions(self) -> tuple[int, int]:
        return self.building.get_dimensions(self.rotation)

    def adjacency_matrix(self) -> tuple[tuple[bool, ...], ...]:
        return self.building.build_connection_matrix(self.rotation)

    def occupied_cells(self) -> list[Position]:
        """All height x width absolute positions, row-major."""
        height, width = self.dimensions()
        return [
            (self.row + r, self.col + c)
            for r in range(height)
            for c in range(width)
        ]

    def connection_cells(self) -> list[Position]:
        """Occupied cells flagged active in the rotated connection matrix."""
        matrix = self.adjacency_matrix()
        return [
            (self.row + r, self.col + c)
            for r, row in enumerate(matrix)
            for c, active in enumerate(row)
            if active
        ]

    def contains(self, row: int, col: int) -> bool:
        height, width = self.dimensions()
        return self.row <= row < self.row + height and self.col <= col < self.col + width
