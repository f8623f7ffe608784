"""
Download domain models for ghparts.

This module contains data classes and enums representing download requests,
queued items, per-item outcomes, progress and aggregate results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from ..infrastructure.error_handler import PartialFailureError
from .github import RepoCoordinate


class DownloadStrategy(Enum):
    """Available download strategies for repository content."""

    INDIVIDUAL = "individual"       # Resolve, list and fetch files one by one
    ARCHIVE = "archive"             # Download the whole repository as a ZIP archive
    GIT_CLONE = "git_clone"         # Shallow git clone of the whole repository


class DownloadStatus(Enum):
    """Status enumeration for download operations."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ItemKind(Enum):
    """What the executor has to do with a queued item."""

    FILE = "file"
    DIRECTORY_MARKER = "directory"


class OutcomeStatus(Enum):
    """Terminal state of a single queued item."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class DownloadItem:
    """A single unit of work derived from a listing entry."""

    remote_path: str
    local_relative_path: str
    download_url: Optional[str]
    kind: ItemKind

    def __post_init__(self) -> None:
        if self.kind is ItemKind.FILE and not self.download_url:
            raise ValueError(f"File item {self.remote_path!r} requires a download URL")

    @property
    def is_file(self) -> bool:
        return self.kind is ItemKind.FILE


@dataclass
class DownloadQueue:
    """Ordered download work for one invocation, rooted at ``target_dir``."""

    target_dir: Path
    items: List[DownloadItem] = field(default_factory=list)
    # remote path -> reason, for listing entries refused by the builder
    rejected: Dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def files(self) -> List[DownloadItem]:
        return [item for item in self.items if item.is_file]

    @property
    def directories(self) -> List[DownloadItem]:
        return [item for item in self.items if not item.is_file]

    def local_path(self, item: DownloadItem) -> Path:
        return self.target_dir / item.local_relative_path


@dataclass
class DownloadOutcome:
    """Result of processing one DownloadItem after retries were exhausted."""

    item: DownloadItem
    status: OutcomeStatus
    reason: Optional[str] = None
    attempts: int = 0
    bytes_written: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status is not OutcomeStatus.FAILED

    @classmethod
    def success(cls, item: DownloadItem, attempts: int = 1, bytes_written: int = 0) -> "DownloadOutcome":
        return cls(item, OutcomeStatus.SUCCESS, attempts=attempts, bytes_written=bytes_written)

    @classmethod
    def skipped(cls, item: DownloadItem, reason: str) -> "DownloadOutcome":
        return cls(item, OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, item: DownloadItem, reason: str, attempts: int = 0) -> "DownloadOutcome":
        return cls(item, OutcomeStatus.FAILED, reason=reason, attempts=attempts)


@dataclass
class DownloadRequest:
    """Download request specification."""

    coordinate: RepoCoordinate
    destination: Path
    path: str = ""
    strategy: DownloadStrategy = DownloadStrategy.INDIVIDUAL

    # Preview mode (resolve and plan, do not write files)
    dry_run: bool = False

    # Metadata
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if not self.destination:
            raise ValueError("Destination path is required")
        self.destination = Path(self.destination)
        self.path = self.path or ""
        if self.path.strip('/') and self.strategy is not DownloadStrategy.INDIVIDUAL:
            raise ValueError(
                f"Strategy {self.strategy.value!r} only supports whole-repository downloads"
            )


@dataclass
class ProgressInfo:
    """Real-time progress tracking information."""

    total_files: int
    downloaded_files: int
    downloaded_bytes: int
    current_file: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def files_percentage(self) -> float:
        if self.total_files == 0:
            return 0.0
        return (self.downloaded_files / self.total_files) * 100.0

    @property
    def elapsed_time(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()

    def update_file_progress(self, bytes_downloaded: int, current_file: Optional[str] = None) -> None:
        self.downloaded_bytes += bytes_downloaded
        if current_file:
            self.current_file = current_file

    def complete_file(self) -> None:
        self.downloaded_files += 1
        self.current_file = None


@dataclass
class DownloadResult:
    """Aggregate result of a download operation."""

    request: DownloadRequest
    status: DownloadStatus
    progress: ProgressInfo

    # Results
    downloaded_files: List[str] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    created_directories: List[str] = field(default_factory=list)
    failed_files: Dict[str, str] = field(default_factory=dict)
    # Remote paths planned for download (populated for dry-run and verbose reporting)
    matched_files: List[str] = field(default_factory=list)

    # Metadata
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    # Statistics
    total_download_time: Optional[float] = None
    api_calls_made: int = 0

    @property
    def is_successful(self) -> bool:
        return self.status == DownloadStatus.COMPLETED and not self.failed_files

    @property
    def success_rate(self) -> float:
        total = len(self.downloaded_files) + len(self.failed_files)
        if total == 0:
            return 0.0
        return (len(self.downloaded_files) / total) * 100.0

    def mark_completed(self) -> None:
        self.completed_at = datetime.now()
        self.status = DownloadStatus.COMPLETED if not self.failed_files else DownloadStatus.FAILED
        self.error_message = self._failure_summary() if self.failed_files else None
        self.total_download_time = (self.completed_at - self.started_at).total_seconds()

    def _failure_summary(self) -> str:
        return f"{len(self.failed_files)} item(s) could not be retrieved"

    def raise_for_failures(self) -> None:
        """Raise PartialFailureError when any item could not be retrieved."""

        if self.failed_files:
            raise PartialFailureError(
                self._failure_summary(),
                dict(self.failed_files),
            )


__all__ = [
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
]
