"""Seeded settlement generation core."""

from .config import (
    Config,
    FallbackRule,
    GenerationConfig,
    TerrainQuota,
    load_config,
    validate_generation_config,
)
from .exceptions import (
    ConfigurationError,
    GenerationIncomplete,
    OutOfBoundsError,
    PersistenceCorruptError,
    PersistenceNotFoundError,
    SettlementError,
)
from .generator import GenerationResult, generate_settlement
from .grid import TileGrid, position_to_coord, tile_position
from .persistence import (
    WorldState,
    decode_world_state,
    encode_world_state,
    load_world,
    save_world,
)
from .rng import Sequencer, shuffle_seeded
from .selector import CyclingTileSelector
from .types import Building, Coord, TerrainType, Tile
from .validation import ValidationResult, validate_world
from .world import Settlement

__all__ = [
    # Types
    "Building",
    "Coord",
    "TerrainType",
    "Tile",
    # Config
    "Config",
    "FallbackRule",
    "GenerationConfig",
    "TerrainQuota",
    "load_config",
    "validate_generation_config",
    # Core
    "CyclingTileSelector",
    "Sequencer",
    "shuffle_seeded",
    "TileGrid",
    "tile_position",
    "position_to_coord",
    "GenerationResult",
    "generate_settlement",
    "Settlement",
    "ValidationResult",
    "validate_world",
    # Persistence
    "WorldState",
    "encode_world_state",
    "decode_world_state",
    "save_world",
    "load_world",
    # Exceptions
    "SettlementError",
    "ConfigurationError",
    "GenerationIncomplete",
    "OutOfBoundsError",
    "PersistenceNotFoundError",
    "PersistenceCorruptError",
]
