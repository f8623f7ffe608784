"""
User-facing surfaces: the Python API and the command line.
"""

from .api import GitHubDownloader, download

__all__ = [
    "GitHubDownloader",
    "download",
]
