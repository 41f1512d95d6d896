"""
Utility helper functions for the experiment runtime.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Parameters
    ----------
    path : Union[str, Path]
        Directory path

    Returns
    -------
    Path
        The directory path
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_json(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load JSON file.

    Parameters
    ----------
    path : Union[str, Path]
        Path to JSON file

    Returns
    -------
    Dict[str, Any]
        Loaded data
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_json(
    data: Dict[str, Any],
    path: Union[str, Path],
    indent: int = 2
) -> Path:
    """
    Save data to JSON file.

    Parameters
    ----------
    data : Dict[str, Any]
        Data to save
    path : Union[str, Path]
        Output path
    indent : int
        JSON indentation

    Returns
    -------
    Path
        The written path
    """
    path = Path(path)
    ensure_directory(path.parent)

    # Word lists are not ASCII-only (Turkish stimuli)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=str)

    logger.info(f"Saved JSON to {path}")
    return path


def get_timestamp() -> str:
    """
    Get current timestamp string.

    Returns
    -------
    str
        Timestamp in YYYYMMDD_HHMMSS format
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")
