"""
Storage Layer.

This package holds the in-memory per-tab session registry used by the engine
and the persistent INI configuration file.
"""

from .config_manager import ConfigManager
from .registry import MediaStore, TabSession, TabSessionRegistry

__all__ = ["ConfigManager", "MediaStore", "TabSession", "TabSessionRegistry"]
