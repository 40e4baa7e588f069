"""
Helpers for recognizing Twitter/X media URLs and identifiers.
"""

import re
from urllib.parse import urlsplit

# /amplify_video/<id>/, /ext_tw_video/<id>/, /tweet_video/<id>/
MEDIA_PATH_PATTERN = re.compile(r"/(?:amplify_video|ext_tw_video|tweet_video)/(\d+)/")
POSTER_PATH_PATTERN = re.compile(
    r"/(?:amplify_video|ext_tw_video|tweet_video)(?:_thumb)?/(\d+)/"
)
RESOLUTION_PATTERN = re.compile(r"/(\d+)x(\d+)/")
PROGRESSIVE_MP4_PATTERN = re.compile(r"/vid/avc1/\d+x\d+/[^/]+\.mp4")

# Init segments and fragment ranges of HLS/fMP4 streams also end in .mp4
SEGMENT_MARKERS = ("/0/0/", "/0/3000/", "/3000/6000/", ".m4s")


def extract_media_id(url: str) -> str:
    """Pulls the numeric media id out of a video.twimg.com path, or ''."""
    try:
        path = urlsplit(url).path
    except (ValueError, TypeError, AttributeError):
        return ""
    match = MEDIA_PATH_PATTERN.search(path)
    return match.group(1) if match else ""


def media_id_from_poster(poster_url: str | None) -> str:
    """
    Derives the media id from a <video> poster image URL, which lives under the
    same id as the video ('amplify_video_thumb/<id>/...').
    """
    if not poster_url:
        return ""
    match = POSTER_PATH_PATTERN.search(poster_url)
    return match.group(1) if match else ""


def normalize_media_id(raw) -> str:
    """
    Canonicalizes a media identifier.

    Composite keys such as '13_1234567890' reduce to their trailing part so that
    a media_key from one payload and an id_str from another land on the same entry.
    """
    if isinstance(raw, bool) or not raw:
        return ""
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, str):
        raw = raw.strip()
        if "_" in raw:
            return raw.rsplit("_", 1)[-1]
        return raw
    return ""


def parse_resolution(url: str) -> int:
    """Returns width*height of the first '/WxH/' path segment, or 0."""
    match = RESOLUTION_PATTERN.search(url or "")
    if not match:
        return 0
    return int(match.group(1)) * int(match.group(2))


def is_progressive_mp4(url: str, media_host: str = "video.twimg.com") -> bool:
    """
    True only for single-file renditions that can be saved as-is.

    Manifest init segments and fragments share the .mp4 extension but produce a
    broken file when saved, so their path shapes are rejected explicitly.
    """
    if not url or media_host not in url or ".mp4" not in url:
        return False
    if any(marker in url for marker in SEGMENT_MARKERS):
        return False
    return PROGRESSIVE_MP4_PATTERN.search(url) is not None
