"""Settlement session: the live world that generation, editing and saves act on."""

from dataclasses import dataclass
from pathlib import Path

import structlog

from .config import GenerationConfig, validate_generation_config
from .events import (
    BuildingPlaced,
    BuildingRemoved,
    Listener,
    TileChanged,
    WorldEvent,
    WorldReset,
)
from .generator import GenerationResult, generate_settlement
from .grid import TileGrid, position_to_coord, tile_position
from .persistence import WorldState, load_world, save_world
from .persistence import restore as restore_state
from .persistence import snapshot as take_snapshot
from .placement import BuildingPlacer
from .rng import Sequencer
from .terrain import dry_tile
from .types import Building, Coord, TerrainType, Tile, WorldPosition

logger = structlog.get_logger()


@dataclass(frozen=True)
class TilePlacement:
    """Where and how large a tile's visual should be."""

    coord: Coord
    terrain: TerrainType
    position: WorldPosition
    scale: float


@dataclass(frozen=True)
class BuildingPlacement:
    """Where and how large a building's visual should be."""

    building: Building
    scale: WorldPosition


class Settlement:
    """
    A single generated or loaded settlement.

    Owns the tile grid and the building list. Callers that need several
    worlds create several Settlement instances; an instance must not be
    used from more than one thread at a time.
    """

    def __init__(self, config: GenerationConfig | None = None, seed: int = 0):
        self.config = config if config is not None else GenerationConfig()
        validate_generation_config(self.config)

        self.seed = seed
        self.tile_size = self.config.tile_size
        self.outline_percent = self.config.outline_percent
        self.grid = TileGrid(self.config.width, self.config.height)
        self.buildings: list[Building] = []

        self._sequencer = Sequencer(seed)
        self._placer = BuildingPlacer(self.grid, self._sequencer, self.config)
        self._listeners: list[Listener] = []

    # --- Events ---

    def add_listener(self, listener: Listener) -> None:
        """Register a callback for world change events."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, event: WorldEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # --- Generation ---

    def generate(self, seed: int | None = None) -> GenerationResult:
        """Replace the world with a freshly generated one.

        Args:
            seed: Seed for the run; defaults to the current seed.
        """
        if seed is None:
            seed = self.seed
        result = generate_settlement(self.config, seed)

        self.seed = result.seed
        self.tile_size = self.config.tile_size
        self.outline_percent = self.config.outline_percent
        self._adopt(result.grid, result.buildings, result.sequencer)
        return result

    def _adopt(
        self, grid: TileGrid, buildings: list[Building], sequencer: Sequencer
    ) -> None:
        self.grid = grid
        self.buildings = buildings
        self._sequencer = sequencer
        self._placer = BuildingPlacer(grid, sequencer, self.config, self.tile_size)
        self._emit(
            WorldReset(
                width=grid.width,
                height=grid.height,
                building_count=len(buildings),
            )
        )

    # --- Interactive editing ---

    def tile_at(self, position: WorldPosition) -> Tile:
        """Tile under a world-space position.

        Raises:
            OutOfBoundsError: If the position is off the grid.
        """
        coord = position_to_coord(
            position, self.grid.width, self.grid.height, self.tile_size
        )
        return self.grid.get(coord)

    def build(self, size_index: int, position: WorldPosition) -> bool:
        """Place a building whose lower corner is the tile under position.

        Returns:
            True if placed; False if any footprint tile is occupied,
            unbuildable or off the grid.

        Raises:
            ConfigurationError: If size_index has no footprint definition.
        """
        building = self._placer.place_at(size_index, position)
        if building is None:
            return False
        self.buildings.append(building)
        self._emit(BuildingPlaced(building=building))
        return True

    def destroy(self, building: Building) -> bool:
        """Remove a building and free its tiles.

        Returns:
            False if the building is not part of this settlement; nothing
            changes in that case.
        """
        try:
            index = self.buildings.index(building)
        except ValueError:
            logger.debug("destroy_unknown_building", position=building.position)
            return False

        if not self._placer.remove(building):
            logger.warning("destroy_footprint_off_grid", position=building.position)
            return False

        del self.buildings[index]
        self._emit(BuildingRemoved(building=building))
        return True

    def dry_terrain(self, position: WorldPosition) -> TerrainType:
        """Dry the tile under position by one step.

        Returns:
            The tile's terrain after the call (unchanged for dry tiles).

        Raises:
            OutOfBoundsError: If the position is off the grid.
        """
        tile = self.tile_at(position)
        dried = dry_tile(self.grid, tile.coord)
        if dried is None:
            return tile.terrain

        self._emit(
            TileChanged(
                coord=tile.coord,
                terrain=dried,
                vacant=self.grid.is_vacant(tile.coord),
            )
        )
        return dried

    # --- Rendering boundary ---

    def tile_placements(self) -> list[TilePlacement]:
        """Visual placement of every tile, x outer, y inner."""
        scale = (1 - self.outline_percent) * self.tile_size
        return [
            TilePlacement(
                coord=tile.coord,
                terrain=tile.terrain,
                position=tile_position(
                    tile.coord, self.grid.width, self.grid.height, self.tile_size
                ),
                scale=scale,
            )
            for tile in self.grid.tiles()
        ]

    def building_placements(self) -> list[BuildingPlacement]:
        """Visual placement of every building, in placement order."""
        footprint_scale = (1 - self.outline_percent) * self.tile_size
        return [
            BuildingPlacement(
                building=b,
                scale=(footprint_scale, b.height, footprint_scale),
            )
            for b in self.buildings
        ]

    # --- Persistence ---

    def snapshot(self) -> WorldState:
        return take_snapshot(self.grid, self.tile_size, self.outline_percent, self.buildings)

    def save(self, path: Path) -> None:
        """Save the current world atomically."""
        save_world(path, self.snapshot())

    def load(self, path: Path) -> bool:
        """Replace the world with a saved one.

        Returns:
            False if no save exists at path; the current world is kept.

        Raises:
            PersistenceCorruptError: If the save is unreadable. The current
                world is kept.
        """
        state = load_world(path)
        if state is None:
            return False
        self.restore(state)
        return True

    def restore(self, state: WorldState) -> None:
        """Replace the world with a snapshot, trusting it verbatim."""
        grid, buildings = restore_state(state)
        self.tile_size = state.tile_size
        self.outline_percent = state.outline_percent
        self._adopt(grid, buildings, self._sequencer)
