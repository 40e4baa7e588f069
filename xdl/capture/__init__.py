"""
Capture Layer.

Sources of network events for the media engine: replayed HAR archives and a
live mitmproxy addon. The addon lives in `xdl.capture.mitm_addon` and is not
imported here so HAR replay works without loading mitmproxy.
"""

from .har import iter_har_events, load_har, replay_har

__all__ = ["iter_har_events", "load_har", "replay_har"]
