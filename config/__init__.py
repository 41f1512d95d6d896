"""
Configuration module for the word classification experiment runtime.
"""

from .settings import get_config, config, reload_config

__all__ = ["get_config", "config", "reload_config"]
