"""Parameter and path validation utilities for genosim."""

import logging
from pathlib import Path
from typing import Iterable, List, Union

logger = logging.getLogger(__name__)


def validate_file_exists(filepath: Union[str, Path], description: str = "File") -> None:
    """
    Validate that a file exists.

    Args:
        filepath: Path to check
        description: Description for error message

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not Path(filepath).exists():
        raise FileNotFoundError(f"{description} not found: {filepath}")


def validate_probability(value: float, name: str) -> None:
    """Raise ValueError unless ``0 <= value <= 1``."""
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")


def validate_positive_int(value: int, name: str) -> None:
    """Raise ValueError unless ``value`` is an integer >= 1."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


def check_output_paths(paths: Iterable[Union[str, Path]], overwrite: bool = False) -> List[Path]:
    """
    Check planned output files before anything is written.

    Args:
        paths: Output files the run will create
        overwrite: Allow replacing files that already exist

    Returns:
        The paths as Path objects

    Raises:
        FileExistsError: If a file exists and overwrite is False
    """
    checked = [Path(p) for p in paths]
    existing = [p for p in checked if p.exists()]
    if existing:
        if not overwrite:
            raise FileExistsError(
                f"Output files already exist: {[str(p) for p in existing]}. "
                "Use --overwrite to replace them."
            )
        for path in existing:
            logger.warning(f"Overwriting existing output: {path}")
    return checked
