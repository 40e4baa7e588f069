"""
The media engine: one registry plus the components that fill and read it.
"""

import logging
import threading
from collections.abc import Callable

from xdl.models.config import XdlConfig
from xdl.models.events import (
    Event,
    RequestObserved,
    StreamChunk,
    StreamOpened,
    TabClosed,
)
from xdl.models.stats import EngineStats
from xdl.storage.registry import TabSessionRegistry

from .extractor import VariantExtractor
from .interceptor import ResponseStreamInterceptor
from .resolver import ResolutionOrchestrator
from .scorer import VariantScorer
from .tracker import RawRequestTracker

log = logging.getLogger(__name__)


class MediaEngine:
    """
    Consumes ingestion events for any number of tabs and resolves media URLs.

    All state lives in the engine's own TabSessionRegistry. Every public method
    runs under one lock, so a tab's cleanup can never interleave with a
    half-applied store update.
    """

    def __init__(
        self,
        config: XdlConfig | None = None,
        registry: TabSessionRegistry | None = None,
        stats: EngineStats | None = None,
    ):
        self.config = config or XdlConfig()
        self.registry = registry or TabSessionRegistry()
        self.stats = stats or EngineStats()
        self._lock = threading.RLock()

        self.tracker = RawRequestTracker(
            self.registry, self.config.media_host, self.stats
        )
        self.scorer = VariantScorer(self.registry, self.stats)
        self.extractor = VariantExtractor(self.scorer)
        self.interceptor = ResponseStreamInterceptor(
            self.extractor,
            self.config.api_url_patterns,
            self.config.max_stream_bytes,
            self.stats,
        )
        self.resolver = ResolutionOrchestrator(
            self.registry, self.config.media_host, self.stats
        )

        self._handlers: dict[type, Callable[[Event], bytes | None]] = {
            RequestObserved: self._on_request_observed,
            StreamOpened: self._on_stream_opened,
            StreamChunk: self._on_stream_chunk,
            TabClosed: self._on_tab_closed,
        }

    def handle(self, event: Event) -> bytes | None:
        """
        Dispatches one event to its handler.

        Returns:
            The chunk bytes to forward for StreamChunk events, otherwise None.

        Raises:
            TypeError: If the event is not one of the known event types.
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")
        with self._lock:
            return handler(event)

    def resolve(self, tab_id: int, media_id: str = "") -> str:
        with self._lock:
            return self.resolver.resolve(tab_id, media_id)

    def resolve_or_raise(self, tab_id: int, media_id: str = "") -> str:
        with self._lock:
            return self.resolver.resolve_or_raise(tab_id, media_id)

    def should_tap(self, url: str) -> bool:
        """True if responses from `url` are inspected for video variants."""
        return self.interceptor.should_tap(url)

    def discard_stream(self, tab_id: int, request_id: str) -> bool:
        with self._lock:
            return self.interceptor.discard(tab_id, request_id)

    def _on_request_observed(self, event: RequestObserved) -> None:
        self.tracker.record(event.tab_id, event.url)

    def _on_stream_opened(self, event: StreamOpened) -> None:
        self.interceptor.open(event)

    def _on_stream_chunk(self, event: StreamChunk) -> bytes:
        return self.interceptor.feed(event)

    def _on_tab_closed(self, event: TabClosed) -> None:
        if self.registry.remove(event.tab_id):
            self.stats.tabs_closed += 1
            log.debug(f"Tab {event.tab_id} closed; session state dropped.")
