"""
Configuration loader for the Perspector module.

Loads and validates configuration from config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from src.perspector.types import (
    MapperConfig,
    PerspectorConfig,
    SizingConfig,
    SolverConfig,
)
from src.utils.constants import COORD_MAX

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> PerspectorConfig:
    """
    Load perspector configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated PerspectorConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> config = load_config()
        >>> print(config.mapper.chunk_rows)
        256
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading perspector config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded perspector configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> PerspectorConfig:
    """Parse raw dictionary into structured config objects."""
    return PerspectorConfig(
        solver=SolverConfig(
            rank_tolerance=float(raw["solver"]["rank_tolerance"]),
        ),
        mapper=MapperConfig(
            max_pixel_count=int(raw["mapper"]["max_pixel_count"]),
            chunk_rows=int(raw["mapper"]["chunk_rows"]),
        ),
        sizing=SizingConfig(
            default_ratio_width=float(raw["sizing"]["default_ratio_width"]),
            default_ratio_height=float(raw["sizing"]["default_ratio_height"]),
        ),
    )


def _validate_config(config: PerspectorConfig) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    if not 0 < config.solver.rank_tolerance < 1:
        raise ValueError(
            f"rank_tolerance must be in (0, 1), got {config.solver.rank_tolerance}"
        )

    if config.mapper.max_pixel_count < 1:
        raise ValueError("max_pixel_count must be at least 1")

    if config.mapper.max_pixel_count > COORD_MAX:
        raise ValueError(
            f"max_pixel_count cannot exceed {COORD_MAX}, "
            f"got {config.mapper.max_pixel_count}"
        )

    if config.mapper.chunk_rows < 1:
        raise ValueError("chunk_rows must be at least 1")

    if config.sizing.default_ratio_width <= 0:
        raise ValueError("default_ratio_width must be positive")

    if config.sizing.default_ratio_height <= 0:
        raise ValueError("default_ratio_height must be positive")

    logger.debug("Configuration validation passed")
