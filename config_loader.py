"""
Building catalogue loading.

The catalogue is a YAML document listing building templates by category:

    buildings:
      habitation:
        - name: Dormitory
          size: 4x2            # rows x columns
          adjacency: {t: 0, l: 0, r: 0, b: [0, 1]}
          color: "#4a90d9"
          requires-wall: true

Each edge is a single 0/1 (or boolean) applied to the whole edge, or a list
with one value per cell along the edge.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml

from buildings import Building
from station_types import Adjacency, Edge, PerCell, Uniform

logger = logging.getLogger(__name__)

_EDGE_KEYS = {
    "top": ("t", "top"),
    "left": ("l", "left"),
    "right": ("r", "right"),
    "bottom": ("b", "bottom"),
}


class ConfigError(Exception):
    """Raised when the building catalogue is missing or malformed."""

    pass


class TemplateRegistry(Mapping[str, Building]):
    """Immutable name -> Building lookup that also remembers categories."""

    def __init__(self, by_category: dict[str, list[Building]]) -> None:
        self._by_category = {category: tuple(items) for category, items in by_category.items()}
        self._by_name: dict[str, Building] = {}
        for items in self._by_category.values():
            for building in items:
                if building.name in self._by_name:
                    raise ConfigError(f"Duplicate building name '{building.name}'")
                self._by_name[building.name] = building

    def __getitem__(self, name: str) -> Building:
        return self._by_name[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    @property
    def categories(self) -> dict[str, tuple[Building, ...]]:
        return dict(self._by_category)


# =============================================================================
# Parsing
# =============================================================================


def parse_size(size: Any, name: str) -> tuple[int, int]:
    """Parse "RxC" (or a [rows, cols] pair) into (height, width)."""
    if isinstance(size, str):
        parts = size.lower().replace("×", "x").split("x")
    elif isinstance(size, (list, tuple)):
        parts = list(size)
    else:
        raise ConfigError(f"Building '{name}': size must be 'RxC', got {size!r}")

    try:
        rows, cols = (int(str(p).strip()) for p in parts)
    except ValueError as e:
        raise ConfigError(f"Building '{name}': invalid size {size!r}") from e

    if rows <= 0 or cols <= 0:
        raise ConfigError(f"Building '{name}': size must be positive, got {size!r}")
    return rows, cols


def parse_edge(value: Any, name: str, side: str) -> Edge:
    if value is None:
        return Uniform(False)
    if isinstance(value, (bool, int)):
        return Uniform(bool(value))
    if isinstance(value, list) and all(isinstance(v, (bool, int)) for v in value):
        return PerCell(tuple(bool(v) for v in value))
    raise ConfigError(
        f"Building '{name}': adjacency edge '{side}' must be 0/1 or a list of 0/1, got {value!r}"
    )


def parse_adjacency(raw: Any, name: str) -> Adjacency:
    if not isinstance(raw, dict):
        raise ConfigError(f"Building '{name}': adjacency must be a mapping, got {raw!r}")

    edges: dict[str, Edge] = {}
    for side, keys in _EDGE_KEYS.items():
        value = next((raw[k] for k in keys if k in raw), None)
        edges[side] = parse_edge(value, name, side)
    return Adjacency(**edges)


def parse_building(raw: dict[str, Any], category: str) -> Building:
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigError(f"Building in category '{category}' has no name: {raw!r}")

    height, width = parse_size(raw.get("size", "1x1"), name)
    wall_required = raw.get("requires-wall", raw.get("wallRequired", False))
    return Building(
        name=name,
        height=height,
        width=width,
        adjacency=parse_adjacency(raw.get("adjacency", {}), name),
        color=str(raw.get("color", "#888888")),
        wall_required=bool(wall_required),
        category=category,
    )


def parse_config(data: Any) -> TemplateRegistry:
    """
    Build the template registry from an already-parsed catalogue.

    Non-list categories and non-mapping entries are skipped.

    Raises:
        ConfigError: If there are no buildings, a template is malformed, or a
            name appears twice
    """
    if not isinstance(data, dict) or not isinstance(data.get("buildings"), dict):
        raise ConfigError("Invalid config: no buildings found")

    by_category: dict[str, list[Building]] = {}
    for category, entries in data["buildings"].items():
        if not isinstance(entries, list):
            logger.warning("Skipping category '%s': expected a list", category)
            continue
        by_category[str(category)] = []
        for raw in entries:
            if not isinstance(raw, dict):
                logger.warning("Skipping non-mapping entry in category '%s': %r", category, raw)
                continue
            building = parse_building(raw, str(category))
            by_category[str(category)].append(building)
            logger.debug("Loaded building %s in category %s", building.name, category)

    registry = TemplateRegistry(by_category)
    if len(registry) == 0:
        raise ConfigError("No buildings found in config")

    logger.info("Loaded %d building templates in %d categories", len(registry), len(by_category))
    return registry


def load_config(path: str | Path) -> TemplateRegistry:
    """
    Load the building catalogue from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the catalogue is unreadable or empty
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(file_path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    return parse_config(data)
