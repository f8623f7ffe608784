"""
Services talking to GitHub and to the local filesystem.
"""

from .github_api import GitHubAPIService
from .download import DownloadService
from .archive import ArchiveService

__all__ = [
    "GitHubAPIService",
    "DownloadService",
    "ArchiveService",
]
