"""
ASCII rendering for station sectors.

Provides two views:
1. A single sector with optional cursor and placement preview
2. All sectors side by side in flow layout
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

import simple_chalk as chalk  # type: ignore[import-untyped]

from buildings import BuildingInstance
from sectors import SectorManager
from station_grid import Grid
from station_types import BuildingCell, ConnectionPoint, Position, Road

logger = logging.getLogger(__name__)

Colorizer = Callable[[str], str]

PALETTE: list[Colorizer] = [
    chalk.red,
    chalk.green,
    chalk.yellow,
    chalk.blue,
    chalk.magenta,
    chalk.cyan,
    chalk.redBright,
    chalk.greenBright,
    chalk.yellowBright,
    chalk.blueBright,
]


def _identity(s: str) -> str:
    return s


def building_colors(instances: Iterable[BuildingInstance]) -> dict[str, Colorizer]:
    """Assign a palette color per template name (stable across sectors)."""
    names = sorted({instance.building.name for instance in instances})
    return {name: PALETTE[i % len(PALETTE)] for i, name in enumerate(names)}


# =============================================================================
# Single Sector
# =============================================================================


def render_sector(
    grid: Grid,
    instances: list[BuildingInstance],
    title: str = "",
    cell_width: int = 1,
    highlight_pos: Position | None = None,
    preview: Iterable[Position] = (),
    preview_ok: bool = True,
    colors: dict[str, Colorizer] | None = None,
    show_inactive: bool = False,
) -> list[str]:
    """
    Render one sector as character lines.

    Cell characters:
    - `_` empty, `=` road, `+` structural connection point
    - Building cells use the first letter of the template name, uppercase on
      the building's connection cells and lowercase elsewhere (`.` instead of
      lowercase when `show_inactive` is False)

    Args:
        grid: The sector grid
        instances: Buildings placed in this sector
        title: Text centered in the top border
        cell_width: Characters per cell
        highlight_pos: Cursor position (white background)
        preview: Cells of a pending placement (green if `preview_ok`, else red)
        preview_ok: Whether the pending placement is valid
        colors: Template name -> colorizer
        show_inactive: Show lowercase letters on non-connection building cells

    Returns:
        List of strings representing the rendered sector lines
    """
    if colors is None:
        colors = building_colors(instances)

    by_id = {instance.id: instance for instance in instances}
    connection_cells: set[Position] = set()
    for instance in instances:
        connection_cells.update(instance.connection_cells())
    preview_cells = set(preview)
    preview_style = chalk.bgGreen.black if preview_ok else chalk.bgRed.white

    inner_width = grid.width * cell_width
    label = f" {title} " if title else ""
    if len(label) <= inner_width:
        start = (inner_width - len(label)) // 2
        top = "┌" + "─" * start + label + "─" * (inner_width - start - len(label)) + "┐"
    else:
        top = "┌" + "─" * inner_width + "┐"
    lines = [top]

    for r in range(grid.height):
        parts = ["│"]
        for c in range(grid.width):
            cell = grid.get(r, c)
            colorize = _identity
            match cell:
                case BuildingCell(instance_id=instance_id):
                    instance = by_id.get(instance_id)
                    letter = instance.building.name[0] if instance and instance.building.name else "?"
                    if (r, c) in connection_cells:
                        char = letter.upper()
                    else:
                        char = letter.lower() if show_inactive else "."
                    if instance is not None:
                        colorize = colors.get(instance.building.name, _identity)
                case Road():
                    char = "="
                case ConnectionPoint():
                    char = "+"
                case _:
                    char = "_"

            content = char if cell_width == 1 else char.center(cell_width)
            if highlight_pos == (r, c):
                content = chalk.bgWhite.black(content)
            elif (r, c) in preview_cells:
                content = preview_style(content)
            else:
                content = colorize(content)
            parts.append(content)
        parts.append("│")
        lines.append("".join(parts))

    lines.append("└" + "─" * inner_width + "┘")
    return lines


# =============================================================================
# Whole Station (Flow Layout)
# =============================================================================


def render_station_flow(
    sectors: SectorManager,
    terminal_width: int = 120,
    cell_width: int = 1,
) -> str:
    """
    Render every sector in flow layout (as many per row as fit).

    The current sector's title is marked with `*`.
    """
    all_instances = [i for index in range(sectors.sector_count) for i in sectors.instances_at(index)]
    colors = building_colors(all_instances)

    rendered: list[list[str]] = []
    for index in range(sectors.sector_count):
        marker = "*" if index == sectors.current_index else ""
        rendered.append(
            render_sector(
                sectors.grid_at(index),
                sectors.instances_at(index),
                title=f"{marker}Sector {index + 1}",
                cell_width=cell_width,
                colors=colors,
            )
        )

    # Visible width, not string length (ANSI codes inflate the latter)
    block_width = sectors.grid_at(0).width * cell_width + 2
    spacing = 2
    per_row = max(1, (terminal_width + spacing) // (block_width + spacing))

    output_lines: list[str] = []
    for start in range(0, len(rendered), per_row):
        row_blocks = rendered[start:start + per_row]
        height = max(len(block) for block in row_blocks)
        for line_idx in range(height):
            output_lines.append(
                (" " * spacing).join(
                    block[line_idx] if line_idx < len(block) else " " * block_width
                    for block in row_blocks
                )
            )
        output_lines.append("")

    logger.debug("render_station_flow: %d sectors, %d per row", len(rendered), per_row)
    return "\n".join(output_lines)
