"""Building footprint placement and removal."""

import math
from dataclasses import dataclass, field

import structlog

from .config import GenerationConfig
from .exceptions import ConfigurationError
from .grid import TileGrid, position_to_coord, tile_position
from .rng import Sequencer
from .selector import CyclingTileSelector
from .types import Building, Coord, WorldPosition

logger = structlog.get_logger()


def footprint_edge(size_index: int) -> int:
    """Edge length in tiles of the footprint for a size index (0 -> 1x1)."""
    return size_index + 1


def size_index_for(edge: int) -> int:
    """Size index of a footprint with the given edge length."""
    return edge - 1


def center_offset(size_index: int, height: float, tile_size: float) -> WorldPosition:
    """Offset from a footprint's anchor tile to the building's visual origin."""
    half = 0.5 * tile_size
    return (half * size_index, half + height, half * size_index)


def building_anchor(
    building: Building, width: int, height: int, tile_size: float
) -> Coord:
    """Anchor tile of an existing building, undoing the center offset."""
    offset = center_offset(
        size_index_for(building.footprint_size), building.height, tile_size
    )
    corner = (
        building.position[0] - offset[0],
        building.position[1] - offset[1],
        building.position[2] - offset[2],
    )
    return position_to_coord(corner, width, height, tile_size)


def footprint(grid: TileGrid, anchor: Coord, size_index: int) -> list[Coord] | None:
    """Coords covered by a footprint extending in +x and +y from anchor.

    Returns:
        Covered coords (x outer, y inner), or None if any cell is off-grid.
    """
    edge = footprint_edge(size_index)
    if not grid.in_bounds(anchor):
        return None
    if anchor.x + edge > grid.width or anchor.y + edge > grid.height:
        return None
    return [
        Coord(x=anchor.x + dx, y=anchor.y + dy)
        for dx in range(edge)
        for dy in range(edge)
    ]


@dataclass
class PlacementResult:
    """Outcome of the automatic placement loop."""

    buildings: list[Building] = field(default_factory=list)
    attempts: int = 0
    remaining_budget: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.remaining_budget <= 0


class BuildingPlacer:
    """Places and removes buildings on a tile grid.

    Heights are drawn from the shared generation stream, so the placer must
    be handed the same Sequencer the rest of the run uses.
    """

    def __init__(
        self,
        grid: TileGrid,
        sequencer: Sequencer,
        config: GenerationConfig,
        tile_size: float | None = None,
    ):
        self.grid = grid
        self.sequencer = sequencer
        self.config = config
        self.tile_size = config.tile_size if tile_size is None else tile_size

    def anchor_position(self, coord: Coord) -> WorldPosition:
        return tile_position(coord, self.grid.width, self.grid.height, self.tile_size)

    def try_place(self, size_index: int, anchor: Coord) -> Building | None:
        """Place a building with its lower corner on anchor if every cell is free.

        Returns:
            The new Building, or None if the footprint leaves the grid or
            covers a non-vacant tile. A rejection mutates nothing.
        """
        cells = footprint(self.grid, anchor, size_index)
        if cells is None or not all(self.grid.is_vacant(c) for c in cells):
            logger.debug(
                "placement_rejected", size_index=size_index, x=anchor.x, y=anchor.y
            )
            return None

        height = self.sequencer.lerp(
            self.config.building_height_min, self.config.building_height_max
        )
        base = self.anchor_position(anchor)
        offset = center_offset(size_index, height, self.tile_size)
        position = (base[0] + offset[0], base[1] + offset[1], base[2] + offset[2])

        for cell in cells:
            self.grid.set_vacant(cell, False)

        return Building(
            footprint_size=footprint_edge(size_index),
            height=height,
            position=position,
        )

    def place_at(self, size_index: int, position: WorldPosition) -> Building | None:
        """Place a building anchored at the tile under a world-space position.

        Raises:
            ConfigurationError: If size_index has no footprint definition.
        """
        self._check_size_index(size_index)
        anchor = position_to_coord(
            position, self.grid.width, self.grid.height, self.tile_size
        )
        if not self.grid.in_bounds(anchor):
            logger.debug("placement_off_grid", x=anchor.x, y=anchor.y)
            return None
        return self.try_place(size_index, anchor)

    def covered_coords(self, building: Building) -> list[Coord] | None:
        """Cells covered by an existing building, derived from its record."""
        anchor = building_anchor(
            building, self.grid.width, self.grid.height, self.tile_size
        )
        return footprint(self.grid, anchor, size_index_for(building.footprint_size))

    def remove(self, building: Building) -> bool:
        """Free every tile under a building.

        Returns:
            False if the building's footprint does not fit the grid.
        """
        cells = self.covered_coords(building)
        if cells is None:
            return False
        for cell in cells:
            self.grid.set_vacant(cell, True)
        return True

    def fill(self, selector: CyclingTileSelector) -> PlacementResult:
        """Place random buildings until the occupancy budget is spent.

        Each attempt draws a size index in [0, floor(sqrt(budget))) and an
        anchor from the vacant-tile selector. Successful placements spend
        edge*edge tiles of budget; rejections spend nothing. The loop stops
        early when the attempt cap is reached or no vacant tile remains.
        """
        budget = self.config.placement_budget
        cap = self.config.attempt_cap
        vacant_left = self.grid.vacant_count()
        result = PlacementResult(remaining_budget=budget)

        if budget > 0 and len(selector) == 0:
            vacant_left = 0

        while result.remaining_budget > 0:
            if vacant_left <= 0:
                result.warnings.append(
                    f"No vacant tiles left with {result.remaining_budget} "
                    f"tiles of budget unspent"
                )
                break
            if result.attempts >= cap:
                result.warnings.append(
                    f"Placement attempt cap {cap} reached with "
                    f"{result.remaining_budget} tiles of budget unspent"
                )
                break

            result.attempts += 1
            size_index = self.sequencer.next_int(
                0, max(1, math.isqrt(result.remaining_budget))
            )
            building = self.try_place(size_index, next(selector))
            if building is None:
                continue

            cost = footprint_edge(size_index) ** 2
            result.buildings.append(building)
            result.remaining_budget -= cost
            vacant_left -= cost

        logger.info(
            "buildings_placed",
            count=len(result.buildings),
            attempts=result.attempts,
            remaining_budget=max(result.remaining_budget, 0),
        )
        return result

    def _check_size_index(self, size_index: int) -> None:
        limit = self.config.footprint_size_count
        if size_index < 0 or (limit is not None and size_index >= limit):
            raise ConfigurationError(f"No footprint defined for size index {size_index}")
