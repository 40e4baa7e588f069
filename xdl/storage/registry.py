"""
In-memory, per-tab state accumulated from observed network traffic.
"""

import logging
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from xdl.models.media import RawRequestRecord, VariantDescriptor
from xdl.utils.twitter import normalize_media_id

log = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class MediaStore(Generic[RecordT]):
    """
    One record per media id, plus a `last_seen` slot holding the most recent
    write regardless of id. Ids are normalized on every read and write.
    """

    def __init__(self) -> None:
        self._by_media_id: dict[str, RecordT] = {}
        self.last_seen: RecordT | None = None

    def get(self, media_id) -> RecordT | None:
        key = normalize_media_id(media_id)
        if not key:
            return None
        return self._by_media_id.get(key)

    def put(self, media_id, record: RecordT) -> None:
        """Stores `record` under `media_id` (if any) and marks it last seen."""
        key = normalize_media_id(media_id)
        if key:
            self._by_media_id[key] = record
        self.last_seen = record

    def touch(self, record: RecordT) -> None:
        self.last_seen = record

    def __contains__(self, media_id) -> bool:
        return self.get(media_id) is not None

    def __len__(self) -> int:
        return len(self._by_media_id)

    def media_ids(self) -> list[str]:
        return list(self._by_media_id)


@dataclass
class TabSession:
    """The two independent stores owned by a single tab."""

    tab_id: int
    requests: MediaStore[RawRequestRecord] = field(default_factory=MediaStore)
    variants: MediaStore[VariantDescriptor] = field(default_factory=MediaStore)


class TabSessionRegistry:
    """
    Owns every live TabSession. Sessions are created on first write and only
    removed when their tab closes.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, TabSession] = {}

    def get(self, tab_id: int) -> TabSession | None:
        """Looks up a session without creating one."""
        return self._sessions.get(tab_id)

    def get_or_create(self, tab_id: int) -> TabSession:
        session = self._sessions.get(tab_id)
        if session is None:
            session = TabSession(tab_id)
            self._sessions[tab_id] = session
            log.debug(f"Created session for tab {tab_id}.")
        return session

    def remove(self, tab_id: int) -> bool:
        """Drops all state for a tab. Returns False if there was none."""
        removed = self._sessions.pop(tab_id, None) is not None
        if removed:
            log.debug(f"Removed session for tab {tab_id}.")
        return removed

    def __contains__(self, tab_id: int) -> bool:
        return tab_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def tab_ids(self) -> list[int]:
        return list(self._sessions)
