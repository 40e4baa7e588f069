"""
Finds video rendition descriptors anywhere inside an API response.
"""

import logging
import math
from typing import Any

from xdl.models.media import VariantDescriptor
from xdl.utils.twitter import normalize_media_id

from .scorer import VariantScorer

log = logging.getLogger(__name__)

MP4_CONTENT_TYPE = "video/mp4"
MEDIA_ID_FIELDS = ("id_str", "id", "media_key")


def _media_id_for(node: dict[str, Any]) -> str:
    for field_name in MEDIA_ID_FIELDS:
        if media_id := normalize_media_id(node.get(field_name)):
            return media_id
    return ""


def _coerce_bitrate(value: Any) -> int | None:
    """Returns a usable bitrate, 0 when absent, or None when malformed."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value >= 0 else None
    if isinstance(value, str):
        try:
            bitrate = int(value.strip() or 0)
        except ValueError:
            return None
        return bitrate if bitrate >= 0 else None
    return None


def parse_variant(entry: Any) -> VariantDescriptor | None:
    """Builds a descriptor from one `variants` entry, or None if it is not a usable MP4."""
    if not isinstance(entry, dict) or entry.get("content_type") != MP4_CONTENT_TYPE:
        return None
    url = entry.get("url")
    if not isinstance(url, str) or not url:
        return None
    bitrate = _coerce_bitrate(entry.get("bitrate"))
    if bitrate is None:
        return None
    return VariantDescriptor(url=url, bitrate=bitrate)


class VariantExtractor:
    """
    Walks a decoded JSON value and submits every MP4 rendition it finds.

    The walk is iterative and remembers containers by identity, so it terminates
    on self-referential structures and never visits a shared subtree twice.
    """

    def __init__(self, scorer: VariantScorer):
        self.scorer = scorer

    def extract(self, data: Any, tab_id: int) -> int:
        """
        Registers all MP4 variants found in `data` for `tab_id`.

        Returns:
            The number of descriptors submitted to the scorer.
        """
        submitted = 0
        visited: set[int] = set()
        stack = [data]

        while stack:
            value = stack.pop()
            if not isinstance(value, (dict, list)):
                continue
            if id(value) in visited:
                continue
            visited.add(id(value))

            if isinstance(value, list):
                stack.extend(value)
                continue

            submitted += self._extract_node(value, tab_id)
            stack.extend(value.values())

        if submitted:
            log.debug(f"Tab {tab_id}: extracted {submitted} MP4 variant(s).")
        return submitted

    def _extract_node(self, node: dict[str, Any], tab_id: int) -> int:
        video_info = node.get("video_info")
        if not isinstance(video_info, dict):
            return 0
        variants = video_info.get("variants")
        if not isinstance(variants, list) or not variants:
            return 0

        media_id = _media_id_for(node)
        if not media_id:
            return 0

        count = 0
        for entry in variants:
            variant = parse_variant(entry)
            if variant is None:
                continue
            self.scorer.register(tab_id, media_id, variant)
            count += 1
        return count
