# dailywall/core/errors.py
"""Refresh outcome statuses and the errors that produce them."""
from enum import Enum


class RefreshStatus(str, Enum):
    SUCCESS = "success"
    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"
    CONTENT_ERROR = "content_error"
    FILESYSTEM_ERROR = "filesystem_error"
    PLATFORM_ERROR = "platform_error"
    BUSY = "busy" # Another refresh was already running


class PipelineError(Exception):
    """Base class for errors that end a refresh early."""
    status = RefreshStatus.PLATFORM_ERROR # Subclasses narrow this down


class TransportError(PipelineError):
    """No usable HTTP response (connection failure, timeout, bad status, empty body)."""
    status = RefreshStatus.TRANSPORT_ERROR


class ParseError(PipelineError):
    """No known response shape yielded an image URL."""
    status = RefreshStatus.PARSE_ERROR


class ContentError(PipelineError):
    """The image response does not declare an image content type."""
    status = RefreshStatus.CONTENT_ERROR


class FilesystemError(PipelineError):
    """Staging or moving the downloaded file failed."""
    status = RefreshStatus.FILESYSTEM_ERROR


class PlatformError(PipelineError):
    """No primary display, or the desktop refused the new background."""
    status = RefreshStatus.PLATFORM_ERROR
