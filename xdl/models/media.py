"""
Records held in per-tab media stores.
"""

import time
from dataclasses import dataclass, field


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RawRequestRecord:
    """A directly observed media URL and when it was seen (epoch ms)."""

    url: str
    timestamp: int = field(default_factory=_now_ms)


@dataclass(frozen=True)
class VariantDescriptor:
    """One MP4 rendition candidate taken from an API response."""

    url: str
    bitrate: int = 0
