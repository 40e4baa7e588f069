"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class XdlError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(XdlError):
    """Raised for issues related to configuration loading or validation."""


class MissingTabContextError(XdlError):
    """Raised when a resolution is requested without a usable tab identifier."""


class UnresolvedMediaError(XdlError):
    """
    Raised when no directly downloadable URL could be resolved for a media item.
    """


class DownloadError(XdlError):
    """Raised when a download request is incomplete or the file cannot be saved."""


class CaptureError(XdlError):
    """Raised when captured traffic (e.g. a HAR archive) cannot be read."""
