"""
Utility functions for the experiment runtime.
"""

from .helpers import (
    ensure_directory,
    load_json,
    save_json,
    get_timestamp,
)

__all__ = [
    "ensure_directory",
    "load_json",
    "save_json",
    "get_timestamp",
]
