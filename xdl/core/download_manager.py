"""
Routes download requests to the downloader, resolving Twitter/X videos through
the media engine first.
"""

import base64
import binascii
import logging
import time
from pathlib import Path
from typing import Any

import aiohttp
from rich.markup import escape

from xdl.engine import MediaEngine
from xdl.exceptions import DownloadError, XdlError
from xdl.media import Downloader
from xdl.models.config import XdlConfig
from xdl.utils.path import (
    build_filename,
    build_filename_from_hint,
    extension_from_mime_type,
)

log = logging.getLogger(__name__)


class DownloadManager:
    """
    Handles the three download request kinds:

    - ``download-media``: a plain media URL
    - ``download-media-blob``: bytes the page already fetched (blob: URLs)
    - ``download-twitter-video``: a media id resolved through the engine
    """

    def __init__(
        self,
        config: XdlConfig,
        engine: MediaEngine | None = None,
        downloader: Downloader | None = None,
    ):
        self.config = config
        self.engine = engine or MediaEngine(config)
        self.downloader = downloader or Downloader(max_attempts=config.max_attempts)
        self._routes = {
            "download-media": self._route_media,
            "download-media-blob": self._route_blob,
            "download-twitter-video": self._route_twitter_video,
        }

    @property
    def download_root(self) -> Path:
        return Path(self.config.download_dir).expanduser()

    async def download_media(self, url: str, media_type: str | None) -> Path:
        """Saves a media URL into the folder configured for its media type."""
        if not url:
            raise DownloadError("Missing URL")
        filename = build_filename(url, self.config.folder_for(media_type), media_type)
        log.info(f"Downloading [cyan]{escape(filename)}[/cyan]")
        return await self.downloader.download_file(url, self.download_root / filename)

    async def download_blob(
        self,
        data: bytes,
        mime_type: str | None = None,
        filename_hint: str | None = None,
        media_type: str | None = None,
    ) -> Path:
        """Saves bytes the caller already holds, naming the file from the hint."""
        if not data:
            raise DownloadError("Missing blob data")
        if not filename_hint:
            extension = extension_from_mime_type(mime_type)
            filename_hint = (
                f"{media_type or 'download'}-{int(time.time() * 1000)}{extension}"
            )
        filename = build_filename_from_hint(
            self.config.folder_for(media_type), filename_hint, media_type
        )
        log.info(f"Saving [cyan]{escape(filename)}[/cyan]")
        return await self.downloader.save_bytes(data, self.download_root / filename)

    async def download_twitter_video(self, tab_id: int | None, media_id: str = "") -> Path:
        """
        Resolves the best MP4 observed in the tab and downloads it as a video.

        Raises:
            MissingTabContextError: If `tab_id` does not identify a tab.
            UnresolvedMediaError: If no progressive MP4 has been observed.
        """
        url = self.engine.resolve_or_raise(tab_id, media_id or "")
        return await self.download_media(url, "video")

    async def handle_message(
        self, message: dict[str, Any] | None, tab_id: int | None = None
    ) -> dict[str, Any] | None:
        """
        Handles a request message and reports the outcome.

        Returns:
            ``{"ok": True, "download_id": <path>}`` on success,
            ``{"ok": False, "error": <message>}`` on failure, or None when the
            message is empty or of an unknown type.
        """
        if not message or not isinstance(message, dict):
            return None
        route = self._routes.get(message.get("type"))
        if route is None:
            return None

        try:
            path = await route(message, tab_id)
        except (XdlError, aiohttp.ClientError, OSError) as e:
            log.warning(f"[yellow]{message['type']} failed:[/yellow] {escape(str(e))}")
            return {"ok": False, "error": str(e) or type(e).__name__}
        return {"ok": True, "download_id": str(path)}

    async def _route_media(self, message: dict[str, Any], tab_id: int | None) -> Path:
        return await self.download_media(message.get("url") or "", message.get("mediaType"))

    async def _route_blob(self, message: dict[str, Any], tab_id: int | None) -> Path:
        return await self.download_blob(
            _decode_blob(message.get("data")),
            message.get("mimeType"),
            message.get("filenameHint"),
            message.get("mediaType"),
        )

    async def _route_twitter_video(
        self, message: dict[str, Any], tab_id: int | None
    ) -> Path:
        return await self.download_twitter_video(tab_id, message.get("mediaId") or "")


def _decode_blob(data: Any) -> bytes:
    """Accepts raw bytes or a base64 string (as sent over JSON)."""
    if not data:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DownloadError(f"Blob data is not valid base64: {e}") from e
    raise DownloadError("Unsupported blob data type")
