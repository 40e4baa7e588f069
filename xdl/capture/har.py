"""
Replays a HAR archive (as exported from browser devtools) into the media engine.
"""

import base64
import binascii
import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from xdl.engine import MediaEngine
from xdl.exceptions import CaptureError
from xdl.models.events import Event, RequestObserved, StreamChunk, StreamOpened

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 16384


def load_har(path: Path) -> dict[str, Any]:
    """
    Reads and sanity-checks a HAR file.

    Raises:
        CaptureError: If the file is unreadable, not JSON, or has no log entries.
    """
    try:
        with open(path, encoding="utf-8") as f:
            har = json.load(f)
    except OSError as e:
        raise CaptureError(f"Could not read HAR file '{path}': {e}") from e
    except ValueError as e:
        raise CaptureError(f"HAR file '{path}' is not valid JSON: {e}") from e

    entries = _field(_field(har, "log"), "entries")
    if not isinstance(entries, list):
        raise CaptureError(f"'{path}' does not look like a HAR archive (no log.entries).")
    return har


def _field(value: Any, key: str) -> Any:
    """`value[key]` when `value` is a JSON object, else None."""
    return value.get(key) if isinstance(value, dict) else None


def _response_body(entry: dict[str, Any]) -> bytes | None:
    content = _field(_field(entry, "response"), "content")
    text = _field(content, "text")
    if not isinstance(text, str):
        return None
    if content.get("encoding") == "base64":
        try:
            return base64.b64decode(text)
        except (binascii.Error, ValueError):
            log.debug("Skipping HAR response body with invalid base64 content.")
            return None
    return text.encode("utf-8")


def iter_har_events(
    har: dict[str, Any], tab_id: int = 0, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> Iterator[Event]:
    """
    Yields engine events for every entry of a HAR archive, in archive order.

    Each entry produces a RequestObserved event; entries that carry a response
    body additionally produce StreamOpened followed by the body split into
    StreamChunk events, the last one marked final.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")

    entries = _field(_field(har, "log"), "entries")
    for index, entry in enumerate(entries if isinstance(entries, list) else []):
        if not isinstance(entry, dict):
            continue
        url = _field(_field(entry, "request"), "url")
        if not url or not isinstance(url, str):
            continue
        yield RequestObserved(tab_id, url)

        body = _response_body(entry)
        if body is None:
            continue
        request_id = f"har-{index}"
        yield StreamOpened(tab_id, request_id, url)
        if not body:
            yield StreamChunk(tab_id, request_id, b"", is_final=True)
            continue
        for offset in range(0, len(body), chunk_size):
            chunk = body[offset : offset + chunk_size]
            is_final = offset + chunk_size >= len(body)
            yield StreamChunk(tab_id, request_id, chunk, is_final=is_final)


def replay_har(
    engine: MediaEngine,
    har: dict[str, Any],
    tab_id: int = 0,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Feeds a HAR archive through `engine`. Returns the number of events handled."""
    count = 0
    for event in iter_har_events(har, tab_id, chunk_size):
        engine.handle(event)
        count += 1
    log.debug(f"Replayed {count} events into tab {tab_id}.")
    return count
