"""Dense tile grid with terrain and vacancy bookkeeping."""

from typing import Iterator

import numpy as np
from numpy.typing import NDArray

from .exceptions import ConfigurationError, OutOfBoundsError
from .types import Coord, TerrainType, Tile, WorldPosition


class TileGrid:
    """
    Fixed-size grid of tiles backed by two numpy arrays.

    Arrays have shape (width, height) and are indexed [x, y], so flat
    iteration runs x outer, y inner. Tile records are built on demand.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ConfigurationError(
                f"Grid dimensions must be positive, got {width}x{height}"
            )
        self.width = width
        self.height = height
        self._terrain: NDArray[np.uint8] = np.full(
            (width, height), TerrainType.GRASS, dtype=np.uint8
        )
        self._vacant: NDArray[np.bool_] = np.ones((width, height), dtype=np.bool_)

    @classmethod
    def from_arrays(
        cls,
        terrain: NDArray[np.uint8],
        vacant: NDArray[np.bool_],
    ) -> "TileGrid":
        """Build a grid from terrain and vacancy arrays of shape (width, height).

        The arrays are copied.
        """
        if terrain.ndim != 2 or terrain.shape != vacant.shape:
            raise ValueError(
                f"Terrain shape {terrain.shape} doesn't match "
                f"vacancy shape {vacant.shape}"
            )
        width, height = terrain.shape
        grid = cls(width, height)
        grid._terrain = terrain.astype(np.uint8, copy=True)
        grid._vacant = vacant.astype(np.bool_, copy=True)
        return grid

    @property
    def area(self) -> int:
        return self.width * self.height

    def in_bounds(self, coord: Coord) -> bool:
        """Check if coord is within grid bounds."""
        return 0 <= coord.x < self.width and 0 <= coord.y < self.height

    def _check(self, coord: Coord) -> None:
        if not self.in_bounds(coord):
            raise OutOfBoundsError(
                f"Coord {coord} outside {self.width}x{self.height} grid"
            )

    def get(self, coord: Coord) -> Tile:
        """Get tile at coord.

        Raises:
            OutOfBoundsError: If coord is outside the grid.
        """
        self._check(coord)
        return Tile(
            coord=coord,
            terrain=TerrainType(int(self._terrain[coord.x, coord.y])),
            vacant=bool(self._vacant[coord.x, coord.y]),
        )

    def terrain_at(self, coord: Coord) -> TerrainType:
        self._check(coord)
        return TerrainType(int(self._terrain[coord.x, coord.y]))

    def is_vacant(self, coord: Coord) -> bool:
        """Check vacancy without building a Tile."""
        self._check(coord)
        return bool(self._vacant[coord.x, coord.y])

    def set_terrain(self, coord: Coord, terrain: TerrainType, vacant: bool) -> None:
        """Set terrain and vacancy of a tile together."""
        self._check(coord)
        self._terrain[coord.x, coord.y] = terrain
        self._vacant[coord.x, coord.y] = vacant

    def set_vacant(self, coord: Coord, vacant: bool) -> None:
        """Set vacancy of a tile."""
        self._check(coord)
        self._vacant[coord.x, coord.y] = vacant

    def coords(self) -> Iterator[Coord]:
        """All coords, x outer, y inner."""
        for x in range(self.width):
            for y in range(self.height):
                yield Coord(x=x, y=y)

    def tiles(self) -> Iterator[Tile]:
        """All tiles in coords() order."""
        for coord in self.coords():
            yield self.get(coord)

    def vacant_coords(self) -> list[Coord]:
        """Coords of currently vacant tiles, in coords() order."""
        xs, ys = np.nonzero(self._vacant)
        return [Coord(x=int(x), y=int(y)) for x, y in zip(xs, ys)]

    def count(self, terrain: TerrainType) -> int:
        """Number of tiles with the given terrain."""
        return int(np.sum(self._terrain == terrain))

    def vacant_count(self) -> int:
        return int(np.sum(self._vacant))

    def terrain_array(self) -> NDArray[np.uint8]:
        """Copy of the terrain array, shape (width, height)."""
        return self._terrain.copy()

    def vacancy_array(self) -> NDArray[np.bool_]:
        """Copy of the vacancy array, shape (width, height)."""
        return self._vacant.copy()

    def copy(self) -> "TileGrid":
        return TileGrid.from_arrays(self._terrain, self._vacant)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileGrid):
            return NotImplemented
        return (
            np.array_equal(self._terrain, other._terrain)
            and np.array_equal(self._vacant, other._vacant)
        )

    def __repr__(self) -> str:
        return f"TileGrid(width={self.width}, height={self.height})"


def tile_position(
    coord: Coord, width: int, height: int, tile_size: float
) -> WorldPosition:
    """World-space center of a tile; the grid is centered on the origin."""
    return (
        (-width / 2 + 0.5 + coord.x) * tile_size,
        0.0,
        (-height / 2 + 0.5 + coord.y) * tile_size,
    )


def position_to_coord(
    position: WorldPosition, width: int, height: int, tile_size: float
) -> Coord:
    """Nearest tile coord for a world-space position.

    The result is not clamped and may lie outside the grid.
    """
    x = round(position[0] / tile_size + (width - 1) / 2)
    y = round(position[2] / tile_size + (height - 1) / 2)
    return Coord(x=x, y=y)
