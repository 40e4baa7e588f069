"""
Media Processing Layer.

This package is responsible for writing media to disk, either by fetching a
resolved URL or by saving bytes handed over by the caller.
"""

from .downloader import Downloader, close_connection_pool

__all__ = ["Downloader", "close_connection_pool"]
