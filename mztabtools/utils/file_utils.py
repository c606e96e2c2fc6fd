"""
File utility functions for mztabtools.
"""

import gzip
import logging
import shutil
from pathlib import Path
from typing import TextIO, Union

logger = logging.getLogger(__name__)


def validate_file(mztab_path: Union[str, Path]) -> bool:
    """Validate that the mzTab file exists and is not empty."""
    if not Path(mztab_path).exists():
        raise FileNotFoundError(f"mzTab file not found: {mztab_path}")
    if Path(mztab_path).stat().st_size == 0:
        raise ValueError("mzTab file is empty")
    return True


def open_mztab(path: Union[str, Path]) -> TextIO:
    """Open a plain or gzipped mzTab file for reading."""
    path = Path(path)
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8")
    return open(path, encoding="utf-8")


def temp_file_path(output_path: Union[str, Path], step: int) -> Path:
    """Path of the intermediate file written by pass number ``step``."""
    output_path = Path(output_path)
    return output_path.with_name(f"{output_path.name}.{step}.temp")


def remove_file(file_path: Union[str, Path]) -> None:
    """Delete a file if it exists."""
    path = Path(file_path)
    if path.exists():
        path.unlink()
        logger.debug(f"Removed {path}")


def move_file(source: Union[str, Path], destination: Union[str, Path]) -> Path:
    """Move ``source`` over ``destination``, replacing whatever is there."""
    destination = Path(destination)
    remove_file(destination)
    shutil.move(str(source), str(destination))
    return destination
