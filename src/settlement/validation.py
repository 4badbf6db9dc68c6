"""Post-generation invariant checks."""

from dataclasses import dataclass, field

import structlog

from .grid import TileGrid
from .placement import building_anchor, footprint, size_index_for
from .types import Building, Coord

logger = structlog.get_logger()


@dataclass
class ValidationResult:
    """Invariant violations found in a settlement; empty means consistent."""

    errors: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    def add_error(self, message: str) -> None:
        self.errors.append(message)


def validate_world(
    grid: TileGrid,
    buildings: list[Building],
    tile_size: float,
) -> ValidationResult:
    """Validate a settlement against its structural invariants.

    Checks that every footprint lies on the grid, that no two footprints
    share a cell, and that a tile is vacant exactly when its terrain is
    buildable and no building covers it.
    """
    result = ValidationResult()

    covered = _check_footprints(grid, buildings, tile_size, result)
    _check_vacancy(grid, covered, result)

    if result.passed:
        logger.debug("validation_passed", buildings=len(buildings))
    else:
        logger.warning("validation_failed", errors=len(result.errors))
        for error in result.errors:
            logger.error("validation_error", detail=error)

    return result


def _check_footprints(
    grid: TileGrid,
    buildings: list[Building],
    tile_size: float,
    result: ValidationResult,
) -> set[Coord]:
    """Check bounds and overlap; return every covered cell."""
    covered: set[Coord] = set()

    for i, building in enumerate(buildings):
        if building.footprint_size < 1:
            result.add_error(f"Building {i} has footprint size {building.footprint_size}")
            continue

        anchor = building_anchor(building, grid.width, grid.height, tile_size)
        cells = footprint(grid, anchor, size_index_for(building.footprint_size))
        if cells is None:
            result.add_error(f"Building {i} at {anchor} extends past the grid")
            continue

        overlap = covered.intersection(cells)
        if overlap:
            result.add_error(f"Building {i} overlaps {len(overlap)} occupied cells")
        covered.update(cells)

    return covered


def _check_vacancy(
    grid: TileGrid,
    covered: set[Coord],
    result: ValidationResult,
) -> None:
    """Check vacancy matches terrain and building coverage."""
    mismatched = 0
    for tile in grid.tiles():
        expected = tile.terrain.buildable and tile.coord not in covered
        if tile.vacant != expected:
            mismatched += 1

    if mismatched > 0:
        result.add_error(f"{mismatched} tiles have inconsistent vacancy")
