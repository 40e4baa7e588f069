"""
Counters describing what the media engine has observed in a session.
"""

from dataclasses import asdict, dataclass


@dataclass
class EngineStats:
    """Tracks ingestion and resolution outcomes for one engine instance."""

    requests_tracked: int = 0
    requests_ignored: int = 0
    streams_tapped: int = 0
    streams_parsed: int = 0
    streams_discarded: int = 0
    variants_registered: int = 0
    variants_replaced: int = 0
    resolutions_ok: int = 0
    resolutions_failed: int = 0
    tabs_closed: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)
