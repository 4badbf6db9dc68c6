"""Main settlement generation orchestration."""

import warnings

import structlog

from .config import GenerationConfig, validate_generation_config
from .exceptions import GenerationIncomplete
from .grid import TileGrid
from .placement import BuildingPlacer
from .rng import Sequencer
from .selector import CyclingTileSelector
from .terrain import allocate_terrain
from .types import Building, TerrainType

logger = structlog.get_logger()


class GenerationResult:
    """Result of settlement generation with run statistics."""

    def __init__(
        self,
        grid: TileGrid,
        buildings: list[Building],
        config: GenerationConfig,
        seed: int,
        sequencer: Sequencer,
        terrain_counts: dict[TerrainType, int],
        fallback_count: int,
        attempts: int,
        remaining_budget: int,
        warnings: list[str],
    ):
        self.grid = grid
        self.buildings = buildings
        self.config = config
        self.seed = seed
        self.sequencer = sequencer
        self.terrain_counts = terrain_counts
        self.fallback_count = fallback_count
        self.attempts = attempts
        self.remaining_budget = remaining_budget
        self.warnings = warnings

    @property
    def complete(self) -> bool:
        """Whether the whole building budget was placed."""
        return self.remaining_budget <= 0


def generate_settlement(config: GenerationConfig, seed: int) -> GenerationResult:
    """Generate a settlement from configuration and seed.

    Args:
        config: Generation configuration.
        seed: Seed for every random draw of the run.

    Returns:
        GenerationResult with the tile grid and placed buildings. If the
        placement loop could not spend its budget the result is marked
        incomplete, carries a warning string, and a GenerationIncomplete
        warning is issued.

    Raises:
        ConfigurationError: If config or seed is invalid.
    """
    validate_generation_config(config)
    sequencer = Sequencer(seed)

    logger.info(
        "generation_started", width=config.width, height=config.height, seed=seed
    )

    # Stage A: Grid
    grid = TileGrid(config.width, config.height)

    # Stage B: Terrain
    all_tiles = CyclingTileSelector(grid.coords(), seed)
    allocation = allocate_terrain(
        grid, all_tiles, config.terrains, sequencer, config.fallback_rule
    )

    # Stage C: Buildings
    vacant_tiles = CyclingTileSelector(grid.vacant_coords(), seed)
    placer = BuildingPlacer(grid, sequencer, config)
    placement = placer.fill(vacant_tiles)

    result = GenerationResult(
        grid=grid,
        buildings=placement.buildings,
        config=config,
        seed=sequencer.seed,
        sequencer=sequencer,
        terrain_counts={t: grid.count(t) for t in TerrainType},
        fallback_count=allocation.fallback_total,
        attempts=placement.attempts,
        remaining_budget=placement.remaining_budget,
        warnings=list(placement.warnings),
    )

    if not result.complete:
        logger.warning(
            "generation_incomplete",
            remaining_budget=result.remaining_budget,
            attempts=result.attempts,
            reason=result.warnings[-1] if result.warnings else None,
        )
        warnings.warn(
            result.warnings[-1] if result.warnings else "Placement budget not spent",
            GenerationIncomplete,
            stacklevel=2,
        )

    _log_settlement_stats(result)
    return result


def _log_settlement_stats(result: GenerationResult) -> None:
    """Log generation statistics."""
    total = result.grid.area
    for terrain, count in result.terrain_counts.items():
        logger.debug(
            "terrain_share",
            terrain=terrain.name.lower(),
            count=count,
            percent=round(count / total * 100, 1),
        )

    covered = sum(b.footprint_size**2 for b in result.buildings)
    logger.info(
        "generation_finished",
        buildings=len(result.buildings),
        covered_tiles=covered,
        vacant_tiles=result.grid.vacant_count(),
        complete=result.complete,
    )
