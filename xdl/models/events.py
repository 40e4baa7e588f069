"""
Ingestion and lifecycle events consumed by the media engine.

Every capture source (HAR replay, the proxy addon, tests) speaks in these
event types; the engine dispatches each kind to exactly one handler.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestObserved:
    """A request to some URL was seen for a tab."""

    tab_id: int
    url: str


@dataclass(frozen=True)
class StreamOpened:
    """A response body for `request_id` is about to be streamed."""

    tab_id: int
    request_id: str
    url: str


@dataclass(frozen=True)
class StreamChunk:
    """One chunk of a streamed response body. `is_final` marks end of stream."""

    tab_id: int
    request_id: str
    data: bytes = b""
    is_final: bool = False


@dataclass(frozen=True)
class TabClosed:
    tab_id: int


Event = RequestObserved | StreamOpened | StreamChunk | TabClosed
