"""
Answers "which URL should be saved for this media item?" from observed state.
"""

import logging

from rich.markup import escape

from xdl.exceptions import MissingTabContextError, UnresolvedMediaError
from xdl.models.stats import EngineStats
from xdl.storage.registry import TabSessionRegistry
from xdl.utils.twitter import is_progressive_mp4, normalize_media_id

log = logging.getLogger(__name__)


def validate_tab_id(tab_id) -> int:
    """Returns `tab_id` if it identifies a tab, else raises MissingTabContextError."""
    if isinstance(tab_id, bool) or not isinstance(tab_id, int) or tab_id < 0:
        raise MissingTabContextError("Missing tab context")
    return tab_id


class ResolutionOrchestrator:
    """
    Resolves the best downloadable URL for a (tab, media id) pair.

    Order of preference:
        1. the best API variant recorded for the media id
        2. the most recently seen API variant for the tab
        3. the raw request for the media id (or the last raw request), but only
           if it is a progressive MP4 rather than a manifest or segment
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

    def resolve(self, tab_id: int, media_id: str = "") -> str:
        """Returns the resolved URL, or '' when nothing safe to download was seen."""
        tab_id = validate_tab_id(tab_id)
        media_id = normalize_media_id(media_id)

        url = self._lookup(tab_id, media_id)
        if url:
            self.stats.resolutions_ok += 1
            log.debug(
                f"Tab {tab_id}: media '{escape(media_id)}' resolved to {escape(url)}"
            )
        else:
            self.stats.resolutions_failed += 1
            log.debug(
                f"Tab {tab_id}: media '{escape(media_id)}' could not be resolved."
            )
        return url

    def resolve_or_raise(self, tab_id: int, media_id: str = "") -> str:
        url = self.resolve(tab_id, media_id)
        if not url:
            raise UnresolvedMediaError("Unable to resolve Twitter video URL")
        return url

    def _lookup(self, tab_id: int, media_id: str) -> str:
        session = self.registry.get(tab_id)
        if session is None:
            return ""

        variant = session.variants.get(media_id) or session.variants.last_seen
        if variant is not None:
            return variant.url

        record = session.requests.get(media_id) or session.requests.last_seen
        if record is None or not record.url:
            return ""
        if ".mp4" in record.url and is_progressive_mp4(record.url, self.media_host):
            return record.url
        return ""
