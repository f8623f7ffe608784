"""
Public Python API for ghparts.

Example:
    async with GitHubDownloader() as downloader:
        result = await downloader.download("acme/sample/main", "out", path="docs")
        result.raise_for_failures()
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from ..core.orchestrator import DownloadOrchestrator
from ..models import (
    DownloadConfig, DownloadRequest, DownloadResult, DownloadStrategy,
    ProgressInfo, RepoLike, coerce_coordinate
)
from ..services import DownloadService, GitHubAPIService
from ..infrastructure.logger import logger


class GitHubDownloader:
    """
    Download a file, a directory or a whole repository from GitHub.

    Configuration is fixed per instance and handed explicitly to every
    collaborator.
    """

    def __init__(
        self,
        config: Optional[DownloadConfig] = None,
        verbose: bool = False,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config or DownloadConfig()
        self.verbose = verbose
        self.set_verbose(verbose)

        self.github_service = GitHubAPIService(self.config, client=client)
        self.download_service = DownloadService()
        self.orchestrator = DownloadOrchestrator(
            self.github_service,
            self.download_service,
            config=self.config
        )

    async def __aenter__(self) -> "GitHubDownloader":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.github_service.close()

    def set_verbose(self, verbose: bool) -> None:
        """Toggle DEBUG logging for the package logger."""

        self.verbose = verbose
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    async def download(
        self,
        repo: RepoLike,
        destination: Union[str, Path],
        path: str = "",
        strategy: DownloadStrategy = DownloadStrategy.INDIVIDUAL,
        dry_run: bool = False
    ) -> DownloadResult:
        """
        Download ``path`` of ``repo`` into ``destination``.

        Args:
            repo: ``"owner/repo[/ref]"``, RepoOptions, a mapping with the same
                keys, or a RepoCoordinate
            destination: Local target directory
            path: File or directory inside the repository; empty for all of it
            strategy: How to fetch a whole repository (ignored for paths)
            dry_run: Plan only, write nothing

        Returns:
            DownloadResult; individual file failures are listed in
            ``failed_files`` rather than raised

        Raises:
            ValueError: The repository description is invalid
            DownloadError: Resolution, listing or a whole-repository fetch failed
        """

        coordinate = coerce_coordinate(repo)
        if path.strip('/'):
            strategy = DownloadStrategy.INDIVIDUAL

        request = DownloadRequest(
            coordinate=coordinate,
            destination=Path(destination),
            path=path,
            strategy=strategy,
            dry_run=dry_run,
        )

        logger.info(
            f"Downloading {coordinate.display_name}:/{path.strip('/')} to {destination}"
        )
        result = await self.orchestrator.execute_download(request)

        if self.verbose and result.matched_files:
            for matched in result.matched_files:
                logger.debug(f"  matched {matched}")

        if result.failed_files:
            logger.warning(
                f"{len(result.failed_files)} item(s) failed: "
                + ", ".join(sorted(result.failed_files))
            )
        else:
            logger.info(
                f"Done: {len(result.downloaded_files)} downloaded, "
                f"{len(result.skipped_files)} skipped"
            )
        return result

    def cancel_current_download(self) -> Optional[DownloadResult]:
        return self.orchestrator.cancel()

    def get_download_progress(self) -> Optional[ProgressInfo]:
        return self.orchestrator.get_current_progress()


def download(
    repo: RepoLike,
    destination: Union[str, Path],
    path: str = "",
    config: Optional[DownloadConfig] = None,
    verbose: bool = False,
    **kwargs: Any
) -> DownloadResult:
    """Synchronous one-shot download with a downloader owned by this call."""

    async def _run() -> DownloadResult:
        async with GitHubDownloader(config=config, verbose=verbose) as downloader:
            return await downloader.download(repo, destination, path=path, **kwargs)

    return asyncio.run(_run())


__all__ = [
    "GitHubDownloader",
    "DownloadConfig",
    "download",
]
