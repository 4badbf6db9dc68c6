"""Command-line interface for settlement generation."""

import argparse
import logging
import random
import sys
import time
from pathlib import Path

import structlog

_TERRAIN_GLYPHS = {0: ".", 1: ":", 2: "%", 3: "~"}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for settlement generation."""
    parser = argparse.ArgumentParser(
        description="Generate a seeded settlement layout"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Config name in configs/ or path to a TOML file",
    )
    parser.add_argument("--width", type=int, default=None, help="Grid width")
    parser.add_argument("--height", type=int, default=None, help="Grid height")
    parser.add_argument(
        "--seed", type=int, default=None, help="Random seed (default: random)"
    )
    parser.add_argument(
        "--occupied",
        type=float,
        default=None,
        help="Fraction of the area to cover with buildings",
    )
    parser.add_argument(
        "--output",
        "-o",
        nargs="?",
        const="",
        default=None,
        help="Save the world to this path (default: the config's save_path)",
    )
    parser.add_argument(
        "--load",
        nargs="?",
        const="",
        default=None,
        help="Load a saved world instead of generating "
        "(default: the config's save_path)",
    )
    parser.add_argument(
        "--show", action="store_true", help="Print an ASCII preview of the world"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )

    # Import here to avoid slow startup for --help
    from .config import Config, find_config, load_config
    from .exceptions import SettlementError
    from .world import Settlement

    try:
        config = load_config(find_config(args.config)) if args.config else Config()
        overrides = {
            key: value
            for key, value in (
                ("width", args.width),
                ("height", args.height),
                ("occupied_fraction", args.occupied),
            )
            if value is not None
        }
        generation = config.generation.model_copy(update=overrides)

        seed = args.seed if args.seed is not None else config.seed
        if seed is None:
            seed = random.randrange(1000)

        settlement = Settlement(generation, seed=seed)

        if args.load is not None:
            load_path = Path(args.load or config.save_path)
            if not settlement.load(load_path):
                print(f"No save found at {load_path}", file=sys.stderr)
                sys.exit(1)
            print(f"Loaded {load_path}")
        else:
            print(
                f"Generating {generation.width}x{generation.height} settlement "
                f"with seed {seed}"
            )
            start_time = time.time()
            result = settlement.generate(seed)
            gen_time = time.time() - start_time
            print(f"Generation complete in {gen_time * 1000:.1f}ms")
            for warning in result.warnings:
                print(f"Warning: {warning}")

        print(
            f"{settlement.grid.width}x{settlement.grid.height} tiles, "
            f"{len(settlement.buildings)} buildings, "
            f"{settlement.grid.vacant_count()} vacant tiles"
        )

        if args.show:
            print()
            print(render_ascii(settlement))

        if args.output is not None:
            output_path = Path(args.output or config.save_path)
            settlement.save(output_path)
            print(f"Saved to {output_path}")
    except (SettlementError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def render_ascii(settlement) -> str:
    """Render terrain and buildings as text, one row per y, north at the top."""
    from .placement import building_anchor

    grid = settlement.grid
    terrain = grid.terrain_array()
    rows = [
        [_TERRAIN_GLYPHS[int(terrain[x, y])] for x in range(grid.width)]
        for y in range(grid.height)
    ]

    for i, building in enumerate(settlement.buildings):
        anchor = building_anchor(
            building, grid.width, grid.height, settlement.tile_size
        )
        glyph = chr(ord("A") + i % 26)
        for dx in range(building.footprint_size):
            for dy in range(building.footprint_size):
                x, y = anchor.x + dx, anchor.y + dy
                if 0 <= x < grid.width and 0 <= y < grid.height:
                    rows[y][x] = glyph

    return "\n".join("".join(row) for row in reversed(rows))


if __name__ == "__main__":
    main()
