"""Shared test fixtures for settlement tests."""

import pytest

from settlement.config import GenerationConfig, TerrainQuota
from settlement.generator import GenerationResult, generate_settlement
from settlement.types import TerrainType
from settlement.world import Settlement


@pytest.fixture
def mixed_config() -> GenerationConfig:
    """10x8 grid with all four terrains and a quarter of the area built up."""
    return GenerationConfig(
        width=10,
        height=8,
        tile_size=1.0,
        outline_percent=0.1,
        occupied_fraction=0.25,
        building_height_min=1.0,
        building_height_max=3.0,
        terrains=[
            TerrainQuota(type=TerrainType.GRASS, fraction=0.5),
            TerrainQuota(type=TerrainType.SAND, fraction=0.2),
            TerrainQuota(type=TerrainType.SWAMP, fraction=0.1),
            TerrainQuota(type=TerrainType.WATER, fraction=0.1),
        ],
    )


@pytest.fixture
def grass_config() -> GenerationConfig:
    """6x6 all-grass grid with no automatic buildings."""
    return GenerationConfig(
        width=6,
        height=6,
        occupied_fraction=0.0,
        terrains=[TerrainQuota(type=TerrainType.GRASS, fraction=1.0)],
    )


@pytest.fixture
def generated(mixed_config: GenerationConfig) -> GenerationResult:
    """Mixed-terrain settlement generated with seed 3."""
    return generate_settlement(mixed_config, seed=3)


@pytest.fixture
def empty_town(grass_config: GenerationConfig) -> Settlement:
    """Generated all-grass settlement without buildings."""
    town = Settlement(grass_config, seed=1)
    town.generate()
    return town
