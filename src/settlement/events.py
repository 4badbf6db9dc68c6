"""Change events emitted to rendering and UI layers."""

from dataclasses import dataclass
from typing import Callable, Union

from .types import Building, Coord, TerrainType


@dataclass(frozen=True)
class WorldReset:
    """The whole world was replaced (generation or load)."""

    width: int
    height: int
    building_count: int


@dataclass(frozen=True)
class TileChanged:
    """A tile's terrain changed; its visual must be replaced."""

    coord: Coord
    terrain: TerrainType
    vacant: bool


@dataclass(frozen=True)
class BuildingPlaced:
    building: Building


@dataclass(frozen=True)
class BuildingRemoved:
    building: Building


WorldEvent = Union[WorldReset, TileChanged, BuildingPlaced, BuildingRemoved]

Listener = Callable[[WorldEvent], None]
