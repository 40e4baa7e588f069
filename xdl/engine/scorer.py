"""
Ranks MP4 renditions and keeps the best one per media item.
"""

import logging

from rich.markup import escape

from xdl.models.media import VariantDescriptor
from xdl.models.stats import EngineStats
from xdl.storage.registry import TabSessionRegistry
from xdl.utils.twitter import normalize_media_id, parse_resolution

log = logging.getLogger(__name__)

# Declared bitrate ranks first; resolution area only separates equal bitrates.
BITRATE_WEIGHT = 1_000_000


def score_variant(variant: VariantDescriptor | None) -> int:
    """bitrate * 10^6 + width*height parsed from the URL."""
    if variant is None:
        return 0
    return variant.bitrate * BITRATE_WEIGHT + parse_resolution(variant.url)


class VariantScorer:
    """Retains the highest-scoring descriptor per (tab, media id)."""

    def __init__(self, registry: TabSessionRegistry, stats: EngineStats | None = None):
        self.registry = registry
        self.stats = stats or EngineStats()

    def register(self, tab_id: int, media_id, variant: VariantDescriptor) -> bool:
        """
        Offers a descriptor for a media item.

        The stored winner is only replaced by a strictly better score. The
        descriptor always becomes the tab's last-seen variant, winner or not.

        Returns:
            True if the descriptor is now the stored winner for its media id.
        """
        key = normalize_media_id(media_id)
        if tab_id < 0 or not key or not variant or not variant.url:
            return False

        store = self.registry.get_or_create(tab_id).variants
        current = store.get(key)
        self.stats.variants_registered += 1

        if current is None or score_variant(variant) > score_variant(current):
            if current is not None:
                self.stats.variants_replaced += 1
                log.debug(
                    f"Tab {tab_id}: media {key} upgraded to {variant.bitrate} bps "
                    f"({escape(variant.url)})"
                )
            store.put(key, variant)
            return True

        store.touch(variant)
        return False
