"""Tests for building placement and removal."""

import pytest

from settlement.config import GenerationConfig, TerrainQuota
from settlement.exceptions import ConfigurationError
from settlement.grid import TileGrid, tile_position
from settlement.placement import (
    BuildingPlacer,
    center_offset,
    footprint,
    footprint_edge,
    size_index_for,
)
from settlement.rng import Sequencer
from settlement.selector import CyclingTileSelector
from settlement.terrain import stamp_terrain
from settlement.types import Coord, TerrainType


def _placer(config: GenerationConfig, seed: int = 2) -> BuildingPlacer:
    grid = TileGrid(config.width, config.height)
    return BuildingPlacer(grid, Sequencer(seed), config)


class TestFootprintMath:
    """Tests for size index conversions and offsets."""

    def test_edge_and_index_conversions(self) -> None:
        assert footprint_edge(0) == 1
        assert footprint_edge(2) == 3
        assert size_index_for(1) == 0
        assert size_index_for(footprint_edge(4)) == 4

    def test_center_offset(self) -> None:
        assert center_offset(0, 2.0, 1.0) == (0.0, 2.5, 0.0)
        assert center_offset(2, 1.0, 2.0) == (2.0, 2.0, 2.0)

    def test_footprint_cells(self) -> None:
        grid = TileGrid(4, 4)
        cells = footprint(grid, Coord(x=1, y=2), 1)
        assert cells == [
            Coord(x=1, y=2), Coord(x=1, y=3), Coord(x=2, y=2), Coord(x=2, y=3),
        ]

    def test_footprint_off_grid(self) -> None:
        grid = TileGrid(4, 4)
        assert footprint(grid, Coord(x=3, y=0), 1) is None
        assert footprint(grid, Coord(x=0, y=3), 1) is None
        assert footprint(grid, Coord(x=-1, y=0), 0) is None
        assert footprint(grid, Coord(x=0, y=0), 4) is None


class TestTryPlace:
    """Tests for committing or rejecting a single footprint."""

    def test_success_marks_cells(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        building = placer.try_place(1, Coord(x=0, y=0))

        assert building is not None
        assert building.footprint_size == 2
        for cell in footprint(placer.grid, Coord(x=0, y=0), 1):
            assert not placer.grid.is_vacant(cell)
        assert placer.grid.vacant_count() == 32

    def test_height_in_range(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        building = placer.try_place(0, Coord(x=2, y=2))
        assert building is not None
        assert (
            grass_config.building_height_min
            <= building.height
            <= grass_config.building_height_max
        )

    def test_anchor_position_centered(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        building = placer.try_place(2, Coord(x=1, y=0))
        assert building is not None

        base = tile_position(Coord(x=1, y=0), 6, 6, grass_config.tile_size)
        assert building.position[0] == pytest.approx(base[0] + 1.0)
        assert building.position[1] == pytest.approx(0.5 + building.height)
        assert building.position[2] == pytest.approx(base[2] + 1.0)

    def test_overlap_rejected_without_mutation(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        assert placer.try_place(1, Coord(x=2, y=2)) is not None
        before = placer.grid.copy()

        assert placer.try_place(1, Coord(x=1, y=1)) is None
        assert placer.grid == before

    def test_unbuildable_terrain_rejected(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        stamp_terrain(placer.grid, Coord(x=1, y=1), TerrainType.SWAMP)
        assert placer.try_place(1, Coord(x=0, y=0)) is None
        assert placer.try_place(0, Coord(x=1, y=1)) is None

    def test_off_grid_rejected(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        before = placer.grid.copy()
        assert placer.try_place(2, Coord(x=4, y=4)) is None
        assert placer.grid == before


class TestManualPlacement:
    """Tests for placing and removing buildings by world position."""

    def test_place_at_tile_position(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        position = tile_position(Coord(x=3, y=4), 6, 6, grass_config.tile_size)
        building = placer.place_at(0, position)
        assert building is not None
        assert not placer.grid.is_vacant(Coord(x=3, y=4))

    def test_place_at_off_grid(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        assert placer.place_at(0, (100.0, 0.0, 0.0)) is None

    def test_unknown_size_index(self) -> None:
        config = GenerationConfig(width=6, height=6, occupied_fraction=0.0, footprint_size_count=2)
        placer = _placer(config)
        with pytest.raises(ConfigurationError):
            placer.place_at(2, (0.0, 0.0, 0.0))
        with pytest.raises(ConfigurationError):
            placer.place_at(-1, (0.0, 0.0, 0.0))

    def test_remove_restores_vacancy(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        building = placer.try_place(2, Coord(x=2, y=1))
        assert building is not None

        assert placer.covered_coords(building) == footprint(placer.grid, Coord(x=2, y=1), 2)
        assert placer.remove(building)
        assert placer.grid.vacant_count() == 36

    def test_remove_with_other_tile_size(self) -> None:
        config = GenerationConfig(
            width=5,
            height=7,
            tile_size=2.5,
            occupied_fraction=0.0,
            terrains=[TerrainQuota(type=TerrainType.GRASS, fraction=1.0)],
        )
        placer = _placer(config)
        building = placer.try_place(1, Coord(x=3, y=5))
        assert building is not None
        assert placer.covered_coords(building)[0] == Coord(x=3, y=5)


class TestFill:
    """Tests for the budgeted placement loop."""

    def test_spends_budget_exactly(self) -> None:
        config = GenerationConfig(
            width=6,
            height=6,
            occupied_fraction=0.5,
            terrains=[TerrainQuota(type=TerrainType.GRASS, fraction=1.0)],
        )
        placer = _placer(config)
        result = placer.fill(CyclingTileSelector(placer.grid.coords(), 2))

        assert result.complete
        assert result.warnings == []
        assert sum(b.footprint_size**2 for b in result.buildings) == 18
        assert placer.grid.vacant_count() == 36 - 18

    def test_zero_budget_places_nothing(self, grass_config: GenerationConfig) -> None:
        placer = _placer(grass_config)
        result = placer.fill(CyclingTileSelector(placer.grid.coords(), 2))
        assert result.buildings == []
        assert result.attempts == 0
        assert result.complete

    def test_no_vacant_tiles_stops(self) -> None:
        config = GenerationConfig(width=4, height=4, occupied_fraction=0.5)
        placer = _placer(config)
        for coord in placer.grid.coords():
            stamp_terrain(placer.grid, coord, TerrainType.WATER)

        result = placer.fill(CyclingTileSelector(placer.grid.vacant_coords(), 2))
        assert not result.complete
        assert result.buildings == []
        assert result.remaining_budget == 8
        assert len(result.warnings) == 1

    def test_budget_larger_than_vacant_area_terminates(self) -> None:
        config = GenerationConfig(width=6, height=6, occupied_fraction=1.0)
        placer = _placer(config)
        for coord in list(placer.grid.coords())[:18]:
            stamp_terrain(placer.grid, coord, TerrainType.WATER)

        result = placer.fill(CyclingTileSelector(placer.grid.vacant_coords(), 2))
        assert not result.complete
        assert result.warnings
        assert placer.grid.vacant_count() >= 0

    def test_attempt_cap(self) -> None:
        config = GenerationConfig(
            width=6, height=6, occupied_fraction=0.5, max_placement_attempts=0
        )
        placer = _placer(config)
        result = placer.fill(CyclingTileSelector(placer.grid.coords(), 2))
        assert result.attempts == 0
        assert not result.complete
        assert "cap" in result.warnings[0]
