"""
Passive tap on streamed API responses.

Chunks pass through untouched; a decoded copy of each tapped body is kept until
the stream ends and then handed to the variant extractor as JSON.
"""

import codecs
import json
import logging
import re
from dataclasses import dataclass, field

from rich.markup import escape

from xdl.models.events import StreamChunk, StreamOpened
from xdl.models.stats import EngineStats

from .extractor import VariantExtractor

log = logging.getLogger(__name__)


def compile_match_pattern(pattern: str) -> re.Pattern:
    """
    Compiles a '<scheme>://<host>/<path>' match pattern into a regex.

    A '*' scheme means http or https, a '*.' host prefix matches the domain and
    its subdomains, and '*' in the path matches any run of characters.
    """
    scheme, sep, rest = pattern.partition("://")
    if not sep:
        raise ValueError(f"Invalid URL pattern (missing scheme): '{pattern}'")
    host, slash, path = rest.partition("/")
    if not host:
        raise ValueError(f"Invalid URL pattern (missing host): '{pattern}'")

    scheme_re = "https?" if scheme == "*" else re.escape(scheme)
    if host == "*":
        host_re = r"[^/]+"
    elif host.startswith("*."):
        host_re = rf"(?:[^/]+\.)?{re.escape(host[2:])}"
    else:
        host_re = re.escape(host)
    path_re = ".*".join(re.escape(part) for part in (slash + path).split("*"))
    return re.compile(rf"^{scheme_re}://{host_re}(?::\d+)?{path_re}$", re.IGNORECASE)


class UrlPatternSet:
    """A fixed allow-list of URL match patterns."""

    def __init__(self, patterns: list[str]):
        self.patterns = list(patterns)
        self._compiled = [compile_match_pattern(p) for p in self.patterns]

    def matches(self, url: str) -> bool:
        return bool(url) and any(regex.match(url) for regex in self._compiled)


@dataclass
class _StreamBuffer:
    url: str
    decoder: codecs.IncrementalDecoder = field(
        default_factory=lambda: codecs.getincrementaldecoder("utf-8")(errors="replace")
    )
    parts: list[str] = field(default_factory=list)
    size: int = 0
    overflowed: bool = False


class ResponseStreamInterceptor:
    """
    Buffers the bodies of allow-listed API responses per (tab, request).

    Buffers live independently of tab sessions: a body that completes after its
    tab closed is still extracted, into a fresh session.
    """

    def __init__(
        self,
        extractor: VariantExtractor,
        url_patterns: list[str],
        max_stream_bytes: int,
        stats: EngineStats | None = None,
    ):
        self.extractor = extractor
        self.url_patterns = UrlPatternSet(url_patterns)
        self.max_stream_bytes = max_stream_bytes
        self.stats = stats or EngineStats()
        self._buffers: dict[tuple[int, str], _StreamBuffer] = {}

    def should_tap(self, url: str) -> bool:
        return self.url_patterns.matches(url)

    def open(self, event: StreamOpened) -> bool:
        """Starts buffering a response if its URL is allow-listed. Returns True if tapped."""
        if event.tab_id < 0 or not self.should_tap(event.url):
            return False
        self._buffers[(event.tab_id, event.request_id)] = _StreamBuffer(event.url)
        self.stats.streams_tapped += 1
        return True

    def feed(self, event: StreamChunk) -> bytes:
        """
        Accepts one chunk and returns it unmodified for delivery to the page.

        On the final chunk the buffered text is parsed and extracted.
        """
        key = (event.tab_id, event.request_id)
        buffer = self._buffers.get(key)
        if buffer is not None:
            self._append(buffer, event.data)
            if event.is_final:
                del self._buffers[key]
                self._complete(event.tab_id, buffer)
        return event.data

    def discard(self, tab_id: int, request_id: str) -> bool:
        """Drops a pending buffer without extracting anything."""
        return self._buffers.pop((tab_id, request_id), None) is not None

    def pending(self) -> int:
        return len(self._buffers)

    def _append(self, buffer: _StreamBuffer, data: bytes) -> None:
        if buffer.overflowed or not data:
            return
        buffer.size += len(data)
        if buffer.size > self.max_stream_bytes:
            buffer.overflowed = True
            buffer.parts.clear()
            log.debug(
                f"Response from {escape(buffer.url)} exceeded "
                f"{self.max_stream_bytes} bytes."
            )
            return
        buffer.parts.append(buffer.decoder.decode(data))

    def _complete(self, tab_id: int, buffer: _StreamBuffer) -> None:
        if buffer.overflowed:
            self.stats.streams_discarded += 1
            return
        buffer.parts.append(buffer.decoder.decode(b"", final=True))
        text = "".join(buffer.parts)
        try:
            payload = json.loads(text)
        except ValueError as e:
            # Non-JSON bodies (redirects, HTML error pages) carry no variants
            self.stats.streams_discarded += 1
            log.debug(f"Ignoring non-JSON response from {escape(buffer.url)}: {e}")
            return
        self.stats.streams_parsed += 1
        self.extractor.extract(payload, tab_id)
