"""
Orchestrator for the complete download process: resolve, list, queue,
then fetch with bounded concurrency.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models import (
    DownloadConfig, DownloadOutcome, DownloadQueue, DownloadRequest, DownloadResult,
    DownloadStatus, DownloadStrategy, ProgressInfo, SingleFile
)
from ..services import ArchiveService, DownloadService, GitHubAPIService
from ..infrastructure.logger import logger
from .executor import FetchExecutor
from .lister import TreeLister
from .queue_builder import QueueBuilder
from .resolver import PathResolver, normalize_path


####
##      DOWNLOAD STATISTICS MODEL
#####
@dataclass
class DownloadStatistics:
    """Detailed statistics for download operations."""

    total_files: int = 0
    downloaded_files: int = 0
    skipped_files: int = 0
    failed_files: int = 0
    total_bytes: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""

        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    @property
    def download_speed(self) -> float:
        """Calculate average download speed in bytes/second."""

        duration = self.duration_seconds
        if duration > 0 and self.total_bytes > 0:
            return self.total_bytes / duration
        return 0.0


####
##      DOWNLOAD ORCHESTRATOR
#####
class DownloadOrchestrator:
    """
    Orchestrates resolution, listing, queue building and concurrent fetching.

    Resolution and listing errors propagate to the caller before anything is
    written. Once the queue exists, item failures are collected into the
    returned DownloadResult instead of being raised.
    """

    def __init__(
        self,
        github_service: GitHubAPIService,
        download_service: DownloadService,
        config: Optional[DownloadConfig] = None,
        archive_service: Optional[ArchiveService] = None
    ):
        self.github_service = github_service
        self.download_service = download_service
        self.config = config or DownloadConfig()
        self.archive_service = archive_service or ArchiveService(github_service)

        self.resolver = PathResolver(github_service)
        self.lister = TreeLister(github_service)
        self.queue_builder = QueueBuilder(
            github_service.raw_url,
            nest_requested_dir=self.config.nest_requested_dir
        )
        self.executor = FetchExecutor(github_service, download_service, config=self.config)

        # State tracking for control methods
        self._current_result: Optional[DownloadResult] = None
        self._is_cancelled = False
        self._whole_repository_task: Optional[asyncio.Future] = None

    async def execute_download(self, request: DownloadRequest) -> DownloadResult:
        """
        Execute the complete download process asynchronously.

        Args:
            request: Download request configuration

        Returns:
            DownloadResult; ``failed_files`` names every item that could not
            be retrieved

        Raises:
            NotFoundError, UpstreamError, MalformedResponseError: resolution
                or listing failed, nothing was written
        """

        logger.debug(
            f"Starting download of {request.coordinate.display_name}:"
            f"/{request.path} into {request.destination}"
        )

        stats = DownloadStatistics(start_time=datetime.now())
        progress = ProgressInfo(
            total_files=0,
            downloaded_files=0,
            downloaded_bytes=0
        )
        result = DownloadResult(
            request=request,
            status=DownloadStatus.IN_PROGRESS,
            progress=progress,
            started_at=datetime.now()
        )
        self._current_result = result
        calls_before = self.github_service.api_calls

        try:
            if request.strategy is not DownloadStrategy.INDIVIDUAL:
                return await self._download_whole_repository(request, result)

            queue = await self._plan(request)
            stats.total_files = len(queue.files)
            progress.total_files = len(queue.files)
            result.matched_files = [item.remote_path for item in queue.files]
            result.failed_files.update(queue.rejected)

            if request.dry_run:
                result.skipped_files = [
                    item.remote_path for item in queue.files
                    if queue.local_path(item).exists() and not self.config.overwrite_existing
                ]
                result.mark_completed()
                logger.info(
                    f"Dry-run: {len(queue.files)} files and {len(queue.directories)} "
                    f"directories planned, {len(queue.rejected)} rejected"
                )
                return result

            def _track(outcome: DownloadOutcome) -> None:
                if outcome.succeeded and outcome.item.is_file:
                    progress.update_file_progress(outcome.bytes_written, outcome.item.remote_path)
                    progress.complete_file()

            outcomes = await self.executor.run(queue, on_outcome=_track)
            summary = FetchExecutor.summarize(outcomes)

            result.downloaded_files = summary.downloaded_files
            result.skipped_files = summary.skipped_files
            result.created_directories = summary.created_directories
            result.failed_files.update(summary.failed_files)

            stats.downloaded_files = len(summary.downloaded_files)
            stats.skipped_files = len(summary.skipped_files)
            stats.failed_files = len(result.failed_files)
            stats.total_bytes = summary.total_bytes
            stats.end_time = datetime.now()

            result.mark_completed()
            if self._is_cancelled:
                self._mark_cancelled(result)

            logger.debug(
                f"Download finished: {stats.downloaded_files} successful, "
                f"{stats.failed_files} failed, {stats.total_bytes} bytes "
                f"in {stats.duration_seconds:.2f}s ({stats.download_speed:.0f} B/s)"
            )
            return result

        finally:
            result.api_calls_made = self.github_service.api_calls - calls_before
            self.reset_state()

    async def _plan(self, request: DownloadRequest) -> DownloadQueue:
        """Resolve the requested path and build the full queue; no fetches yet."""

        target = await self.resolver.resolve(request.coordinate, request.path)

        if isinstance(target, SingleFile):
            logger.info(f"'{target.path}' is a file, fetching it directly")
            return self.queue_builder.build_single(target, request.destination)

        entries = await self.lister.list_recursive(request.coordinate, target.identifier)
        return self.queue_builder.build(
            request.coordinate, entries, normalize_path(target.path), request.destination
        )

    async def _download_whole_repository(
        self,
        request: DownloadRequest,
        result: DownloadResult
    ) -> DownloadResult:
        if request.dry_run:
            result.mark_completed()
            logger.info(f"Dry-run: would fetch {request.coordinate.display_name} via {request.strategy.value}")
            return result

        if request.strategy is DownloadStrategy.ARCHIVE:
            fetch = self.archive_service.download_archive(request.coordinate, request.destination)
        else:
            fetch = self.archive_service.clone(request.coordinate, request.destination)

        self._whole_repository_task = asyncio.ensure_future(fetch)
        try:
            files = await self._whole_repository_task
        except asyncio.CancelledError:
            if not self._is_cancelled:
                raise
            self._mark_cancelled(result)
            return result

        result.downloaded_files = files
        result.progress.total_files = len(files)
        result.progress.downloaded_files = len(files)
        result.mark_completed()
        if self._is_cancelled:
            self._mark_cancelled(result)
        return result

    @staticmethod
    def _mark_cancelled(result: DownloadResult) -> None:
        result.status = DownloadStatus.CANCELLED
        result.completed_at = result.completed_at or datetime.now()
        result.error_message = "Download cancelled by user"

    def cancel(self) -> Optional[DownloadResult]:
        """
        Cancel the current download operation.

        Returns:
            Current DownloadResult marked as cancelled, or None if no active download
        """
        if self._current_result is None:
            logger.warning("No active download to cancel")
            return None

        self._is_cancelled = True
        self.executor.cancel()
        if self._whole_repository_task is not None and not self._whole_repository_task.done():
            self._whole_repository_task.cancel()
        self._current_result.status = DownloadStatus.CANCELLED
        self._current_result.error_message = "Download cancelled by user"

        logger.info("Download cancelled by user")
        return self._current_result

    def get_current_progress(self) -> Optional[ProgressInfo]:
        """
        Snapshot of the active download's progress, or None when idle.
        """
        if self._current_result is None:
            return None

        progress = self._current_result.progress
        return ProgressInfo(
            total_files=progress.total_files,
            downloaded_files=progress.downloaded_files,
            downloaded_bytes=progress.downloaded_bytes,
            current_file=progress.current_file,
            started_at=progress.started_at
        )

    def reset_state(self) -> None:
        """Forget the finished download so a new one can start cleanly."""

        self._current_result = None
        self._is_cancelled = False
        self._whole_repository_task = None
        self.executor.reset()


__all__ = [
    "DownloadOrchestrator",
    "DownloadStatistics",
]
