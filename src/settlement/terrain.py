"""Terrain quota allocation and drying."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterator, Sequence

import structlog

from .config import FallbackRule, TerrainQuota
from .grid import TileGrid
from .rng import Sequencer
from .types import Coord, TerrainType

logger = structlog.get_logger()


@dataclass
class AllocationResult:
    """Outcome of terrain allocation.

    stamped counts every stamp per terrain type in draw order, including
    fallback stamps; fallback_counts holds only the fallback share.
    """

    stamped: Counter = field(default_factory=Counter)
    fallback_counts: Counter = field(default_factory=Counter)

    @property
    def fallback_total(self) -> int:
        return sum(self.fallback_counts.values())


def quota_count(area: int, fraction: float) -> int:
    """Number of tiles a quota claims (round half to even)."""
    return round(area * fraction)


def stamp_terrain(grid: TileGrid, coord: Coord, terrain: TerrainType) -> None:
    """Set a tile's terrain and derive its vacancy from it."""
    grid.set_terrain(coord, terrain, terrain.buildable)


def draw_fallback_terrain(sequencer: Sequencer, rule: FallbackRule) -> TerrainType:
    """Pick terrain for a tile left over after quota rounding."""
    if rule is FallbackRule.INCLUSIVE:
        upper = TerrainType.SAND + 1
    else:
        upper = TerrainType.SAND
    return TerrainType(sequencer.next_int(TerrainType.GRASS, upper))


def allocate_terrain(
    grid: TileGrid,
    selector: Iterator[Coord],
    quotas: Sequence[TerrainQuota],
    sequencer: Sequencer,
    fallback_rule: FallbackRule = FallbackRule.HALF_OPEN,
) -> AllocationResult:
    """Stamp terrain quotas onto tiles drawn from a cycling selector.

    Each quota claims round(area * fraction) draws in configuration order.
    Tiles still unaccounted for after rounding get a fallback terrain drawn
    from the generation stream.

    Args:
        grid: Grid to stamp.
        selector: Cycling selector over every tile of the grid.
        quotas: Terrain quotas, processed in order.
        sequencer: Generation stream (used for fallback draws only).
        fallback_rule: Bounds of the fallback terrain draw.

    Returns:
        AllocationResult with stamp counts per terrain type.
    """
    area = grid.area
    result = AllocationResult()
    claimed = 0

    for quota in quotas:
        count = quota_count(area, quota.fraction)
        claimed += count
        for _ in range(count):
            stamp_terrain(grid, next(selector), quota.type)
        result.stamped[quota.type] += count

    if claimed > area:
        logger.warning("terrain_quotas_exceed_area", claimed=claimed, area=area)

    for _ in range(area - claimed):
        coord = next(selector)
        terrain = draw_fallback_terrain(sequencer, fallback_rule)
        stamp_terrain(grid, coord, terrain)
        result.stamped[terrain] += 1
        result.fallback_counts[terrain] += 1

    logger.info(
        "terrain_allocated",
        area=area,
        stamped={t.name.lower(): n for t, n in sorted(result.stamped.items())},
        fallback=result.fallback_total,
        fallback_rule=fallback_rule.value,
    )
    return result


def dry_tile(grid: TileGrid, coord: Coord) -> TerrainType | None:
    """Dry a wet tile by one step (water to swamp, swamp to sand).

    Returns:
        The tile's new terrain, or None if the tile was not wet and nothing
        changed.
    """
    dried = grid.terrain_at(coord).dried
    if dried is None:
        return None
    stamp_terrain(grid, coord, dried)
    logger.debug("terrain_dried", x=coord.x, y=coord.y, terrain=dried.name.lower())
    return dried
