"""Core types for settlement generation."""

from enum import IntEnum

from pydantic import BaseModel

# World-space point (x, y, z); y is up.
WorldPosition = tuple[float, float, float]


class TerrainType(IntEnum):
    """Terrain types ordered from driest to wettest."""

    GRASS = 0
    SAND = 1
    SWAMP = 2
    WATER = 3

    @property
    def buildable(self) -> bool:
        """Whether buildings may stand on this terrain."""
        return self in _BUILDABLE_TYPES

    @property
    def dried(self) -> "TerrainType | None":
        """Terrain one step drier, or None if this terrain cannot dry."""
        if self not in _WET_TYPES:
            return None
        return TerrainType(self - 1)

    @classmethod
    def parse(cls, value: "str | int | TerrainType") -> "TerrainType":
        """Accept enum members, integer codes or case-insensitive names."""
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                raise ValueError(f"Unknown terrain type: {value!r}") from None
        return cls(value)


_BUILDABLE_TYPES = frozenset({TerrainType.GRASS, TerrainType.SAND})

_WET_TYPES = frozenset({TerrainType.SWAMP, TerrainType.WATER})


class Coord(BaseModel, frozen=True):
    """Immutable 2D tile coordinate."""

    x: int
    y: int

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"

    def __repr__(self) -> str:
        return f"Coord(x={self.x}, y={self.y})"


class Tile(BaseModel, frozen=True):
    """Immutable view of a single grid cell."""

    coord: Coord
    terrain: TerrainType = TerrainType.GRASS
    vacant: bool = True


class Building(BaseModel, frozen=True):
    """A placed building.

    footprint_size is the edge length of the square footprint in tiles;
    position is the world-space anchor, centered over the footprint.
    """

    footprint_size: int
    height: float
    position: WorldPosition
