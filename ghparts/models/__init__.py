"""
Core data models API surface for ghparts.

This file re-exports model classes from domain-specific modules so that
imports like `from ghparts.models import X` keep working.
"""

from .github import (
    DEFAULT_REF,
    EntryKind,
    RepoCoordinate,
    RepoOptions,
    RepoLike,
    coerce_coordinate,
    TreeEntry,
    SingleFile,
    Subtree,
    ResolvedTarget,
)
from .download import (
    DownloadStrategy,
    DownloadStatus,
    ItemKind,
    OutcomeStatus,
    DownloadItem,
    DownloadQueue,
    DownloadOutcome,
    DownloadRequest,
    ProgressInfo,
    DownloadResult,
)
from .config import DownloadConfig

__all__ = [
    # GitHub models
    "DEFAULT_REF",
    "EntryKind",
    "RepoCoordinate",
    "RepoOptions",
    "RepoLike",
    "coerce_coordinate",
    "TreeEntry",
    "SingleFile",
    "Subtree",
    "ResolvedTarget",
    # Download models
    "DownloadStrategy",
    "DownloadStatus",
    "ItemKind",
    "OutcomeStatus",
    "DownloadItem",
    "DownloadQueue",
    "DownloadOutcome",
    "DownloadRequest",
    "ProgressInfo",
    "DownloadResult",
    # Config models
    "DownloadConfig",
]
