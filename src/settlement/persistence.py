"""World persistence: snapshot, encode and save generated settlements."""

import io
import json
import os
import tempfile
import zipfile
import zlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
import structlog
from numpy.typing import NDArray

from .exceptions import PersistenceCorruptError, PersistenceNotFoundError
from .grid import TileGrid
from .types import Building, TerrainType

logger = structlog.get_logger()

SAVE_FORMAT_VERSION = 1

_REQUIRED_ARRAYS = (
    "terrain",
    "vacant",
    "building_sizes",
    "building_heights",
    "building_positions",
    "metadata",
)


@dataclass(eq=False)
class WorldState:
    """Everything needed to restore a settlement.

    terrain and vacant have shape (width, height) and are indexed [x, y].
    """

    terrain: NDArray[np.uint8]
    vacant: NDArray[np.bool_]
    tile_size: float
    outline_percent: float
    buildings: list[Building] = field(default_factory=list)

    @property
    def width(self) -> int:
        return int(self.terrain.shape[0])

    @property
    def height(self) -> int:
        return int(self.terrain.shape[1])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorldState):
            return NotImplemented
        return (
            np.array_equal(self.terrain, other.terrain)
            and np.array_equal(self.vacant, other.vacant)
            and self.tile_size == other.tile_size
            and self.outline_percent == other.outline_percent
            and self.buildings == other.buildings
        )


def snapshot(
    grid: TileGrid,
    tile_size: float,
    outline_percent: float,
    buildings: list[Building],
) -> WorldState:
    """Capture a settlement; later grid mutations don't affect the snapshot."""
    return WorldState(
        terrain=grid.terrain_array(),
        vacant=grid.vacancy_array(),
        tile_size=float(tile_size),
        outline_percent=float(outline_percent),
        buildings=list(buildings),
    )


def restore(state: WorldState) -> tuple[TileGrid, list[Building]]:
    """Rebuild a grid and building list from a snapshot, verbatim."""
    return TileGrid.from_arrays(state.terrain, state.vacant), list(state.buildings)


def encode_world_state(state: WorldState) -> bytes:
    """Serialize a WorldState to a versioned, compressed .npz archive."""
    count = len(state.buildings)
    sizes = np.array([b.footprint_size for b in state.buildings], dtype=np.int32)
    heights = np.array([b.height for b in state.buildings], dtype=np.float64)
    positions = np.array(
        [b.position for b in state.buildings], dtype=np.float64
    ).reshape(count, 3)

    metadata = {
        "version": SAVE_FORMAT_VERSION,
        "width": state.width,
        "height": state.height,
        "tile_size": state.tile_size,
        "outline_percent": state.outline_percent,
        "building_count": count,
        "saved_at": datetime.now(timezone.utc).isoformat(),
    }

    buffer = io.BytesIO()
    np.savez_compressed(
        buffer,
        terrain=state.terrain.astype(np.uint8),
        vacant=state.vacant.astype(np.bool_),
        building_sizes=sizes,
        building_heights=heights,
        building_positions=positions,
        metadata=np.frombuffer(json.dumps(metadata).encode("utf-8"), dtype=np.uint8),
    )
    return buffer.getvalue()


def decode_world_state(data: bytes) -> WorldState:
    """Deserialize bytes produced by encode_world_state.

    Raises:
        PersistenceCorruptError: If the archive is unreadable, has an
            unsupported version, or its records are inconsistent.
    """
    try:
        archive = np.load(io.BytesIO(data), allow_pickle=False)
        if not hasattr(archive, "files"):
            raise PersistenceCorruptError("Save is not an .npz archive")
        with archive:
            missing = [name for name in _REQUIRED_ARRAYS if name not in archive.files]
            if missing:
                raise PersistenceCorruptError(f"Save is missing arrays: {missing}")
            arrays = {name: archive[name] for name in _REQUIRED_ARRAYS}
    except (ValueError, OSError, EOFError, zipfile.BadZipFile, zlib.error) as e:
        raise PersistenceCorruptError(f"Save could not be read: {e}") from e

    try:
        metadata = json.loads(arrays["metadata"].tobytes().decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PersistenceCorruptError(f"Save metadata is unreadable: {e}") from e

    _check_consistency(metadata, arrays)

    sizes = arrays["building_sizes"]
    heights = arrays["building_heights"]
    positions = arrays["building_positions"]
    buildings = [
        Building(
            footprint_size=int(sizes[i]),
            height=float(heights[i]),
            position=(
                float(positions[i, 0]),
                float(positions[i, 1]),
                float(positions[i, 2]),
            ),
        )
        for i in range(len(sizes))
    ]

    return WorldState(
        terrain=arrays["terrain"].astype(np.uint8),
        vacant=arrays["vacant"].astype(np.bool_),
        tile_size=float(metadata["tile_size"]),
        outline_percent=float(metadata["outline_percent"]),
        buildings=buildings,
    )


def _check_consistency(metadata: object, arrays: dict[str, NDArray]) -> None:
    """Validate decoded records against the metadata header."""
    if not isinstance(metadata, dict):
        raise PersistenceCorruptError("Save metadata is not a mapping")
    version = metadata.get("version")
    if version != SAVE_FORMAT_VERSION:
        raise PersistenceCorruptError(
            f"Unsupported save format version {version!r} "
            f"(expected {SAVE_FORMAT_VERSION})"
        )

    try:
        width = int(metadata["width"])
        height = int(metadata["height"])
        count = int(metadata["building_count"])
        tile_size = float(metadata["tile_size"])
        float(metadata["outline_percent"])
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceCorruptError(f"Save metadata is incomplete: {e}") from e

    if width <= 0 or height <= 0:
        raise PersistenceCorruptError(f"Invalid grid dimensions {width}x{height}")
    if not tile_size > 0:
        raise PersistenceCorruptError(f"Invalid tile size {tile_size}")

    for name in ("terrain", "vacant"):
        shape = arrays[name].shape
        if shape != (width, height):
            raise PersistenceCorruptError(
                f"{name} array shape {shape} doesn't match "
                f"declared dimensions ({width}, {height})"
            )

    terrain = arrays["terrain"]
    if not np.issubdtype(terrain.dtype, np.integer):
        raise PersistenceCorruptError(f"Terrain codes have dtype {terrain.dtype}")
    if terrain.size:
        low, high = int(terrain.min()), int(terrain.max())
        if low < 0 or high >= len(TerrainType):
            bad = low if low < 0 else high
            raise PersistenceCorruptError(f"Unknown terrain code {bad}")
    if arrays["vacant"].dtype != np.bool_:
        raise PersistenceCorruptError(
            f"Vacancy flags have dtype {arrays['vacant'].dtype}"
        )

    sizes = arrays["building_sizes"]
    heights = arrays["building_heights"]
    positions = arrays["building_positions"]
    if sizes.shape != (count,) or heights.shape != (count,):
        raise PersistenceCorruptError(
            f"Building records don't match declared count {count}: "
            f"sizes {sizes.shape}, heights {heights.shape}"
        )
    if positions.shape != (count, 3):
        raise PersistenceCorruptError(
            f"Building positions shape {positions.shape} doesn't match "
            f"declared count {count}"
        )
    if not np.issubdtype(sizes.dtype, np.integer):
        raise PersistenceCorruptError(f"Building sizes have dtype {sizes.dtype}")
    if count and int(sizes.min()) < 1:
        raise PersistenceCorruptError("Building footprint sizes must be at least 1")


def save_world(path: Path, state: WorldState) -> None:
    """Save a world atomically.

    The archive is written to a temporary file next to path and moved into
    place, so a failed save never clobbers an existing one.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = encode_world_state(state)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(
        "world_saved",
        path=str(path),
        width=state.width,
        height=state.height,
        buildings=len(state.buildings),
        size_kb=round(len(data) / 1024, 1),
    )


def load_world(path: Path, missing_ok: bool = True) -> WorldState | None:
    """Load a world saved with save_world.

    Args:
        path: Path to the save file.
        missing_ok: Return None instead of raising when no save exists.

    Raises:
        PersistenceNotFoundError: If the file is missing and missing_ok is False.
        PersistenceCorruptError: If the file is unreadable or inconsistent.
    """
    path = Path(path)
    if not path.exists():
        if not missing_ok:
            raise PersistenceNotFoundError(f"Save not found: {path}")
        logger.warning("save_not_found", path=str(path))
        return None

    state = decode_world_state(path.read_bytes())
    logger.info(
        "world_loaded",
        path=str(path),
        width=state.width,
        height=state.height,
        buildings=len(state.buildings),
    )
    return state
