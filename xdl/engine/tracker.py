"""
Records media URLs requested directly from the video CDN.
"""

import logging

from rich.markup import escape

from xdl.models.media import RawRequestRecord
from xdl.models.stats import EngineStats
from xdl.storage.registry import TabSessionRegistry
from xdl.utils.twitter import extract_media_id

log = logging.getLogger(__name__)


class RawRequestTracker:
    """
    Keeps the newest manifest/MP4 request per media id for each tab.

    Later requests overwrite earlier ones for the same id, even when the earlier
    URL was a higher rendition.
    """

    def __init__(
        self,
        registry: TabSessionRegistry,
        media_host: str,
        stats: EngineStats | None = None,
    ):
        self.registry = registry
        self.media_host = media_host
        self.stats = stats or EngineStats()

    def is_media_request(self, url: str) -> bool:
        return (
            bool(url)
            and self.media_host in url
            and (".m3u8" in url or ".mp4" in url)
        )

    def record(self, tab_id: int, url: str) -> bool:
        """Stores the request if it targets the media host. Returns True if stored."""
        if tab_id < 0 or not self.is_media_request(url):
            self.stats.requests_ignored += 1
            return False

        media_id = extract_media_id(url)
        session = self.registry.get_or_create(tab_id)
        session.requests.put(media_id, RawRequestRecord(url))
        self.stats.requests_tracked += 1
        log.debug(
            f"Tab {tab_id}: tracked request for media '{media_id or '?'}': {escape(url)}"
        )
        return True
