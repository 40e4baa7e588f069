"""
Download orchestration.

The `DownloadManager` routes download requests: plain media URLs and blobs go
straight to the downloader, Twitter/X videos are resolved through the media
engine first.
"""

from .download_manager import DownloadManager

__all__ = ["DownloadManager"]
