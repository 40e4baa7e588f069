"""
xdl: resolves and downloads web media, with a network-observing engine for
Twitter/X video.
"""

__version__ = "0.3.0"
