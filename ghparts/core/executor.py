"""
Concurrent execution of a download queue with per-item retry.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..models import (
    DownloadConfig, DownloadItem, DownloadOutcome, DownloadQueue, OutcomeStatus
)
from ..services import DownloadService, GitHubAPIService
from ..infrastructure.error_handler import DownloadError
from ..infrastructure.retry_manager import RetryConfig, RetryManager
from ..infrastructure.logger import logger


ProgressCallback = Callable[[DownloadOutcome], None]


####
##      EXECUTION SUMMARY
#####
@dataclass
class ExecutionSummary:
    """Outcomes of a run split by terminal state."""

    downloaded_files: List[str] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    created_directories: List[str] = field(default_factory=list)
    failed_files: Dict[str, str] = field(default_factory=dict)
    total_bytes: int = 0

    @property
    def succeeded(self) -> bool:
        return not self.failed_files


####
##      FETCH EXECUTOR
#####
class FetchExecutor:
    """
    Runs a DownloadQueue with bounded concurrency.

    Every item reaches a terminal outcome before ``run`` returns; a failing
    item never cancels or skips its siblings.
    """

    def __init__(
        self,
        github_service: GitHubAPIService,
        download_service: DownloadService,
        retry_manager: Optional[RetryManager] = None,
        config: Optional[DownloadConfig] = None
    ):
        self.github_service = github_service
        self.download_service = download_service
        self.config = config or DownloadConfig()
        self.retry_manager = retry_manager or RetryManager.from_config(RetryConfig(
            max_retries=self.config.max_retries,
            initial_delay=self.config.retry_base_delay,
            max_delay=self.config.retry_max_delay,
        ))
        self._cancellation_event = asyncio.Event()
        self._active_tasks: List[asyncio.Task] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancellation_event.is_set()

    async def run(
        self,
        queue: DownloadQueue,
        on_outcome: Optional[ProgressCallback] = None
    ) -> List[DownloadOutcome]:
        """
        Process every queued item.

        Args:
            queue: Fully built download queue
            on_outcome: Optional callback invoked as each item finishes

        Returns:
            One DownloadOutcome per item, in queue order
        """

        semaphore = asyncio.Semaphore(self.config.max_concurrent_downloads)

        async def _bounded(item: DownloadItem) -> DownloadOutcome:
            async with semaphore:
                outcome = await self._process_item(queue, item)
            if on_outcome is not None:
                on_outcome(outcome)
            return outcome

        self._active_tasks = [asyncio.ensure_future(_bounded(item)) for item in queue.items]
        try:
            results = await asyncio.gather(*self._active_tasks, return_exceptions=True)
        except asyncio.CancelledError:
            logger.info("Download run was cancelled")
            for task in self._active_tasks:
                if not task.done():
                    task.cancel()
            raise
        finally:
            self._active_tasks = []

        outcomes = []
        for item, result in zip(queue.items, results):
            if isinstance(result, asyncio.CancelledError):
                outcomes.append(DownloadOutcome.failed(item, "cancelled"))
            elif isinstance(result, BaseException):
                # _process_item converts expected errors; anything here is a bug surfaced per item
                logger.error(f"Unexpected error for {item.remote_path}: {result!r}")
                outcomes.append(DownloadOutcome.failed(item, f"unexpected error: {result}"))
            else:
                outcomes.append(result)
        return outcomes

    def reset(self) -> None:
        """Clear a previous cancellation so the executor can run again."""

        self._cancellation_event.clear()

    def cancel(self) -> None:
        """Stop pending items and cancel the ones in flight; sticky until reset()."""

        self._cancellation_event.set()
        for task in self._active_tasks:
            if not task.done():
                task.cancel()

    async def _process_item(self, queue: DownloadQueue, item: DownloadItem) -> DownloadOutcome:
        if self.is_cancelled:
            return DownloadOutcome.failed(item, "cancelled")

        local_path = queue.local_path(item)

        if not item.is_file:
            try:
                await self.download_service.ensure_directory(local_path)
            except DownloadError as e:
                logger.error(f"Failed to create directory {local_path}: {e}")
                return DownloadOutcome.failed(item, str(e))
            return DownloadOutcome.success(item, attempts=0)

        try:
            await self.download_service.ensure_directory(local_path.parent)
        except DownloadError as e:
            logger.error(f"Failed to create directory for {item.remote_path}: {e}")
            return DownloadOutcome.failed(item, str(e))

        if local_path.exists() and not self.config.overwrite_existing:
            logger.debug(f"Skipping existing file: {item.remote_path}")
            return DownloadOutcome.skipped(item, "already exists")

        attempts = 0

        async def _fetch() -> bytes:
            nonlocal attempts
            attempts += 1
            return await self.github_service.get_file_content(item.download_url)

        try:
            content = await self.retry_manager.execute(_fetch)
        except DownloadError as e:
            logger.error(f"Failed to download {item.remote_path} after {attempts} attempt(s): {e}")
            return DownloadOutcome.failed(item, str(e), attempts=attempts)

        try:
            bytes_written = await self.download_service.save_content(content, local_path)
        except DownloadError as e:
            logger.error(f"Failed to write {item.remote_path}: {e}")
            return DownloadOutcome.failed(item, str(e), attempts=attempts)

        logger.debug(f"Downloaded {item.remote_path} ({bytes_written} bytes)")
        return DownloadOutcome.success(item, attempts=attempts, bytes_written=bytes_written)

    @staticmethod
    def summarize(outcomes: List[DownloadOutcome]) -> ExecutionSummary:
        summary = ExecutionSummary()
        for outcome in outcomes:
            path = outcome.item.remote_path
            if outcome.status is OutcomeStatus.FAILED:
                summary.failed_files[path] = outcome.reason or "unknown error"
            elif outcome.status is OutcomeStatus.SKIPPED:
                summary.skipped_files.append(path)
            elif outcome.item.is_file:
                summary.downloaded_files.append(path)
                summary.total_bytes += outcome.bytes_written
            else:
                summary.created_directories.append(path)
        return summary


__all__ = [
    "FetchExecutor",
    "ExecutionSummary",
    "ProgressCallback",
]
