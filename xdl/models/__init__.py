"""
Data Models Layer.

This package contains the Pydantic configuration model and the plain data
structures passed between the engine, the capture sources and the CLI.
"""

from .config import XdlConfig
from .events import Event, RequestObserved, StreamChunk, StreamOpened, TabClosed
from .media import RawRequestRecord, VariantDescriptor
from .stats import EngineStats

__all__ = [
    "EngineStats",
    "Event",
    "RawRequestRecord",
    "RequestObserved",
    "StreamChunk",
    "StreamOpened",
    "TabClosed",
    "VariantDescriptor",
    "XdlConfig",
]
