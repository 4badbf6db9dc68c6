"""Generation configuration models and TOML loading."""

import math
import tomllib
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigurationError
from .types import TerrainType

# Default placement attempts allowed per grid tile before giving up.
PLACEMENT_ATTEMPTS_PER_TILE = 32


class FallbackRule(str, Enum):
    """How tiles left over after quota rounding pick their terrain.

    HALF_OPEN draws from [GRASS, SAND), which only ever yields grass.
    INCLUSIVE draws from [GRASS, SAND], covering both buildable types.
    """

    HALF_OPEN = "half_open"
    INCLUSIVE = "inclusive"


class TerrainQuota(BaseModel, frozen=True):
    """Target share of the grid area for one terrain type."""

    type: TerrainType
    fraction: float = Field(description="Target fraction of total area (0-1)")

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: object) -> TerrainType:
        return TerrainType.parse(value)  # type: ignore[arg-type]

    @property
    def buildable(self) -> bool:
        return self.type.buildable


def _default_terrains() -> list[TerrainQuota]:
    return [
        TerrainQuota(type=TerrainType.GRASS, fraction=0.55),
        TerrainQuota(type=TerrainType.SAND, fraction=0.15),
        TerrainQuota(type=TerrainType.SWAMP, fraction=0.1),
        TerrainQuota(type=TerrainType.WATER, fraction=0.15),
    ]


class GenerationConfig(BaseModel, frozen=True):
    """Immutable input to a generation run."""

    width: int = Field(default=20, description="Grid width in tiles")
    height: int = Field(default=20, description="Grid height in tiles")
    tile_size: float = Field(default=1.0, description="Tile edge length in world units")
    outline_percent: float = Field(
        default=0.05, description="Cosmetic inset between tiles (0-1)"
    )
    occupied_fraction: float = Field(
        default=0.3, description="Target fraction of area covered by buildings"
    )
    building_height_min: float = Field(default=1.0, description="Minimum building height")
    building_height_max: float = Field(default=4.0, description="Maximum building height")
    terrains: list[TerrainQuota] = Field(default_factory=_default_terrains)
    footprint_size_count: int | None = Field(
        default=None,
        description="Number of footprint sizes available (None = unlimited)",
    )
    fallback_rule: FallbackRule = Field(
        default=FallbackRule.HALF_OPEN,
        description="Terrain draw for tiles left over after quota rounding",
    )
    max_placement_attempts: int | None = Field(
        default=None,
        description="Placement attempt cap (None = 32 per tile of area)",
    )

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def placement_budget(self) -> int:
        """Number of tiles the placer tries to cover with buildings."""
        return math.floor(self.area * self.occupied_fraction)

    @property
    def attempt_cap(self) -> int:
        if self.max_placement_attempts is not None:
            return self.max_placement_attempts
        return self.area * PLACEMENT_ATTEMPTS_PER_TILE

    @property
    def max_size_index(self) -> int:
        """Largest footprint size index the placement loop can draw."""
        budget = self.placement_budget
        if budget <= 0:
            return -1
        return math.isqrt(budget) - 1


class Config(BaseModel):
    """Complete configuration file contents."""

    seed: int | None = None
    generation: GenerationConfig = GenerationConfig()
    save_path: str = "saves/city.npz"


def validate_generation_config(config: GenerationConfig) -> None:
    """Check a generation config for internal consistency.

    Raises:
        ConfigurationError: Describing the first problem found.
    """
    if config.width <= 0 or config.height <= 0:
        raise ConfigurationError(
            f"Grid dimensions must be positive, got {config.width}x{config.height}"
        )
    if not config.tile_size > 0:
        raise ConfigurationError(f"tile_size must be positive, got {config.tile_size}")
    if not 0 <= config.outline_percent <= 1:
        raise ConfigurationError(
            f"outline_percent must be within [0, 1], got {config.outline_percent}"
        )
    if not 0 <= config.occupied_fraction <= 1:
        raise ConfigurationError(
            f"occupied_fraction must be within [0, 1], got {config.occupied_fraction}"
        )
    if config.building_height_min > config.building_height_max:
        raise ConfigurationError(
            f"Building height range is inverted: "
            f"{config.building_height_min} > {config.building_height_max}"
        )
    for quota in config.terrains:
        if not 0 <= quota.fraction <= 1:
            raise ConfigurationError(
                f"Fraction for {quota.type.name.lower()} must be within [0, 1], "
                f"got {quota.fraction}"
            )
    if config.footprint_size_count is not None:
        if config.footprint_size_count < 1:
            raise ConfigurationError(
                f"footprint_size_count must be at least 1, "
                f"got {config.footprint_size_count}"
            )
        needed = config.max_size_index + 1
        if needed > config.footprint_size_count:
            raise ConfigurationError(
                f"Placement may draw {needed} footprint sizes but only "
                f"{config.footprint_size_count} are defined"
            )
    if config.max_placement_attempts is not None and config.max_placement_attempts < 0:
        raise ConfigurationError(
            f"max_placement_attempts must be non-negative, "
            f"got {config.max_placement_attempts}"
        )


def load_config(config_path: Path) -> Config:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed Config object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        ConfigurationError: If the generation settings are inconsistent.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    config = Config.model_validate(data)
    validate_generation_config(config.generation)
    return config


def find_config(name: str) -> Path:
    """Resolve a config argument to a TOML file.

    Anything that looks like a path (contains "/" or ends in ".toml") is
    used as given. A bare name is looked up in the bundled configs
    directory, with or without its ".toml" suffix.

    Raises:
        FileNotFoundError: If nothing matches.
    """
    if "/" in name or name.endswith(".toml"):
        candidates = [Path(name)]
    else:
        bundled = _configs_dir()
        candidates = [bundled / f"{name}.toml", bundled / name]

    for candidate in candidates:
        if candidate.is_file():
            return candidate

    raise FileNotFoundError(
        f"No settlement config matches {name!r} "
        f"(bundled configs: {', '.join(list_configs()) or 'none'})"
    )


def list_configs() -> list[str]:
    """Names of the bundled settlement configs, sorted."""
    bundled = _configs_dir()
    return sorted(p.stem for p in bundled.glob("*.toml")) if bundled.is_dir() else []


def _configs_dir() -> Path:
    # src/settlement/config.py -> repository root
    return Path(__file__).resolve().parents[2] / "configs"
