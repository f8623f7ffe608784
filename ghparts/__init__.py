"""
ghparts - download a file, a directory or a whole repository from GitHub.
"""

from .interfaces.api import GitHubDownloader, download
from .models import (
    DownloadConfig,
    DownloadResult,
    DownloadStatus,
    DownloadStrategy,
    RepoCoordinate,
    RepoOptions,
)
from .infrastructure.error_handler import (
    DownloadError,
    FilesystemError,
    MalformedResponseError,
    NotFoundError,
    PartialFailureError,
    RateLimitError,
    UnsafePathError,
    UpstreamError,
)

__version__ = "0.1.0"

__all__ = [
    "GitHubDownloader",
    "download",
    "DownloadConfig",
    "DownloadResult",
    "DownloadStatus",
    "DownloadStrategy",
    "RepoCoordinate",
    "RepoOptions",
    "DownloadError",
    "FilesystemError",
    "MalformedResponseError",
    "NotFoundError",
    "PartialFailureError",
    "RateLimitError",
    "UnsafePathError",
    "UpstreamError",
]
