"""Command-line interface for terrain generation."""

import argparse
import sys
from pathlib import Path

import structlog


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for terrain generation."""
    parser = argparse.ArgumentParser(
        description="Generate a seeded terrain heightfield with biome weights"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Preset name in configs/ or path to a TOML file",
    )
    parser.add_argument(
        "--list-configs", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="World seed (overrides config)"
    )
    parser.add_argument(
        "--resolution",
        type=int,
        default=None,
        help="Heightfield samples per axis (overrides config)",
    )
    parser.add_argument(
        "--no-erosion", action="store_true", help="Skip the erosion stage"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write heights, climate and biome weights to this .npz file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args(argv)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(10 if args.verbose else 20),
    )

    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    import numpy as np
    from pydantic import ValidationError

    from ..exceptions import ConfigurationError
    from .config import TerrainConfig, find_config, list_configs, load_config
    from .generator import generate_terrain
    from .validation import validate_result

    if args.list_configs:
        for name in list_configs():
            print(name)
        return

    try:
        if args.config:
            config_path = find_config(args.config)
            config = load_config(config_path)
            logger.info("config_loaded", path=str(config_path), name=config.name)
        else:
            config = TerrainConfig()

        overrides: dict[str, object] = {}
        if args.seed is not None:
            overrides["seed"] = args.seed
        if args.resolution is not None:
            overrides["world"] = {**config.world.model_dump(), "resolution": args.resolution}
        if args.no_erosion:
            overrides["erosion"] = {**config.erosion.model_dump(), "enabled": False}
        if overrides:
            config = TerrainConfig.model_validate({**config.model_dump(), **overrides})

        result = generate_terrain(config)
    except FileNotFoundError as e:
        logger.error("config_not_found", error=str(e))
        sys.exit(1)
    except (ConfigurationError, ValidationError) as e:
        logger.error("config_error", error=str(e))
        sys.exit(1)

    validation = validate_result(result)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(
            output_path,
            heights=result.heights,
            raw_heights=result.raw_heights,
            temperature=result.temperature,
            humidity=result.humidity,
            biome_weights=result.biome_weights,
            biome_names=np.array([b.name for b in result.biomes]),
            seed=np.int64(config.seed),
        )
        logger.info("snapshot_saved", path=str(output_path))

    if not validation.passed:
        sys.exit(2)


if __name__ == "__main__":
    main()
