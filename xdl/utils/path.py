"""
Utilities for building download folders and file names.
"""

import time
from pathlib import Path
from urllib.parse import unquote, urlsplit

from pathvalidate import sanitize_filename

MIME_EXTENSIONS = {
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/ogg": ".ogv",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def normalize_folder(value) -> str:
    """
    Turns user input into a relative folder such as 'media/videos'.

    Backslashes become '/', and empty, '.' and '..' segments are dropped so the
    result can never escape the download directory.
    """
    if not value or not isinstance(value, str):
        return ""
    cleaned = value.strip().replace("\\", "/")
    parts = [part.strip() for part in cleaned.split("/")]
    return "/".join(part for part in parts if part and part not in (".", ".."))


def extract_filename(url: str) -> str:
    """Returns the decoded last path segment of a URL, or '' if there is none."""
    try:
        path = urlsplit(url).path
    except (ValueError, TypeError, AttributeError):
        return ""
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return ""
    return unquote(segments[-1])


def _fallback_name(media_type: str | None) -> str:
    return f"{media_type or 'download'}-{int(time.time() * 1000)}"


def _join(folder: str, base_name: str) -> str:
    return f"{folder}/{base_name}" if folder else base_name


def build_filename(url: str, folder: str, media_type: str | None) -> str:
    """Builds 'folder/name' for a URL download, naming it after the URL's last segment."""
    base_name = sanitize_filename(extract_filename(url)) or _fallback_name(media_type)
    return _join(folder, base_name)


def build_filename_from_hint(
    folder: str, filename_hint: str | None, media_type: str | None
) -> str:
    base_name = sanitize_filename(filename_hint or "") or _fallback_name(media_type)
    return _join(folder, base_name)


def extension_from_mime_type(mime_type: str | None) -> str:
    """Maps a MIME type (parameters ignored) to a file extension, or ''."""
    if not mime_type:
        return ""
    normalized = mime_type.split(";")[0].strip().lower()
    return MIME_EXTENSIONS.get(normalized, "")


def claim_unique_path(path: Path) -> Path:
    """
    Creates and returns `path`, or the first free 'name (n).ext' sibling.

    Each candidate is created exclusively, so concurrent callers asking for the
    same name always end up with different files.
    """
    counter = 0
    while True:
        candidate = path
        if counter:
            candidate = path.with_name(f"{path.stem} ({counter}){path.suffix}")
        try:
            with open(candidate, "xb"):
                return candidate
        except FileExistsError:
            counter += 1
