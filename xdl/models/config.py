"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator

from xdl.utils.hosts import DEFAULT_ALLOWED_HOSTS, dedupe_hosts, extract_host
from xdl.utils.path import normalize_folder

TWITTER_MEDIA_HOST = "video.twimg.com"

TWITTER_API_URL_PATTERNS = [
    "*://x.com/i/api/graphql/*",
    "*://twitter.com/i/api/graphql/*",
    "*://api.x.com/i/api/graphql/*",
    "*://api.twitter.com/i/api/graphql/*",
]

DEFAULT_MAX_STREAM_BYTES = 16 * 1024 * 1024


class XdlConfig(BaseModel):
    """A validated configuration model for the application."""

    # Download destinations
    image_folder: str = ""
    video_folder: str = ""
    download_dir: str = "~/Downloads"
    max_attempts: int = 3

    # Page-side UI activation
    allowed_hosts: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_HOSTS)
    )

    # Engine and capture settings
    media_host: str = TWITTER_MEDIA_HOST
    api_url_patterns: list[str] = Field(
        default_factory=lambda: list(TWITTER_API_URL_PATTERNS)
    )
    max_stream_bytes: int = DEFAULT_MAX_STREAM_BYTES
    tab_header: str = "X-XDL-Tab-Id"
    default_tab_id: int = 0
    control_host: str = "xdl.local"

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("image_folder", "video_folder")
    @classmethod
    def validate_folder(cls, v: str) -> str:
        """Reduces a folder to safe, relative '/'-joined segments."""
        return normalize_folder(v)

    @field_validator("download_dir")
    @classmethod
    def validate_download_dir(cls, v: str) -> str:
        if not v:
            raise ValueError("Download directory cannot be empty.")
        return v

    @field_validator("allowed_hosts")
    @classmethod
    def validate_hosts(cls, v: list[str]) -> list[str]:
        """Normalizes entries to bare hostnames and removes duplicates."""
        return dedupe_hosts([extract_host(host) for host in v])

    @field_validator("media_host", "control_host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        host = extract_host(v)
        if not host:
            raise ValueError(f"'{v}' is not a valid host name.")
        return host

    @field_validator("api_url_patterns")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        patterns = [p.strip() for p in v if p and p.strip()]
        if not patterns:
            raise ValueError("At least one API URL pattern is required.")
        return patterns

    @field_validator("max_stream_bytes")
    @classmethod
    def validate_stream_limit(cls, v: int) -> int:
        if v < 1024 or v > 1024 * 1024 * 1024:
            raise ValueError("max_stream_bytes must be between 1 KiB and 1 GiB.")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("max_attempts must be between 1 and 10.")
        return v

    @field_validator("default_tab_id")
    @classmethod
    def validate_tab_id(cls, v: int) -> int:
        if v < 0:
            raise ValueError("default_tab_id must be a non-negative integer.")
        return v

    @field_validator("tab_header")
    @classmethod
    def validate_tab_header(cls, v: str) -> str:
        if not v or any(ch.isspace() or ch == ":" for ch in v):
            raise ValueError(f"'{v}' is not a valid HTTP header name.")
        return v

    def folder_for(self, media_type: str | None) -> str:
        """Picks the configured sub-folder for a media type tag."""
        return self.video_folder if media_type == "video" else self.image_folder

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
