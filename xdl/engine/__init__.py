"""
Twitter/X media resolution engine.

Observes raw media requests and streamed API responses per tab, keeps the best
MP4 rendition seen for each media item, and resolves a directly downloadable
URL on demand. The `MediaEngine` is the entry point; the other classes are its
parts and can be used on their own in tests.
"""

from .extractor import VariantExtractor
from .interceptor import ResponseStreamInterceptor
from .media_engine import MediaEngine
from .resolver import ResolutionOrchestrator
from .scorer import VariantScorer, score_variant
from .tracker import RawRequestTracker

__all__ = [
    "MediaEngine",
    "RawRequestTracker",
    "ResolutionOrchestrator",
    "ResponseStreamInterceptor",
    "VariantExtractor",
    "VariantScorer",
    "score_variant",
]
