"""
Utility functions for quantimport.

This module provides common utility functions used across the package,
including logging setup, file validation, and JSON metadata helpers.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Union
import json
from rich.logging import RichHandler


GZIP_MAGIC = b'\x1f\x8b'


def setup_logging(level: int = logging.INFO) -> None:
    """
    Set up logging with Rich handler for colored output.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
        force=True,
    )


def validate_file_exists(file_path: Union[str, Path]) -> Path:
    """
    Validate that a file exists and return Path object.

    Args:
        file_path: Path to file

    Returns:
        Path object if file exists

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path


def validate_directory_exists(dir_path: Union[str, Path], create: bool = False) -> Path:
    """
    Validate that a directory exists, optionally create it.

    Args:
        dir_path: Path to directory
        create: Whether to create directory if it doesn't exist

    Returns:
        Path object

    Raises:
        FileNotFoundError: If directory doesn't exist and create=False
    """
    path = Path(dir_path)
    if not path.exists():
        if create:
            path.mkdir(parents=True, exist_ok=True)
        else:
            raise FileNotFoundError(f"Directory not found: {path}")
    return path


def is_gzipped(file_path: Union[str, Path]) -> bool:
    """
    Check if a file is gzipped.

    Args:
        file_path: Path to file

    Returns:
        True if file is gzipped
    """
    with open(file_path, 'rb') as f:
        return f.read(2) == GZIP_MAGIC


def save_metrics_json(metrics: Dict[str, Any], output_file: Union[str, Path]) -> None:
    """
    Save metadata dictionary to JSON file.

    Args:
        metrics: Dictionary of metadata
        output_file: Output JSON file path
    """
    with open(output_file, 'w') as f:
        json.dump(metrics, f, indent=2)


def load_metrics_json(json_file: Union[str, Path]) -> Dict[str, Any]:
    """
    Load metadata from JSON file.

    Args:
        json_file: Path to JSON file

    Returns:
        Dictionary of metadata
    """
    with open(json_file, 'r') as f:
        return json.load(f)


def format_number(num: Union[int, float], precision: int = 2) -> str:
    """
    Format number with appropriate precision and units.

    Args:
        num: Number to format
        precision: Decimal precision

    Returns:
        Formatted number string
    """
    if num >= 1e9:
        return f"{num/1e9:.{precision}f}B"
    elif num >= 1e6:
        return f"{num/1e6:.{precision}f}M"
    elif num >= 1e3:
        return f"{num/1e3:.{precision}f}K"
    else:
        return f"{num:.{precision}f}"


def preview_ids(ids, limit: int = 10) -> str:
    """Render an ID list for error messages, truncated after ``limit`` entries."""
    ids = [str(i) for i in ids]
    shown = ", ".join(ids[:limit])
    if len(ids) > limit:
        shown += f", ... ({len(ids) - limit} more)"
    return shown
