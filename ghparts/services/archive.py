"""
Whole-repository retrieval: ZIP archive download or shallow git clone.
"""

import asyncio
import io
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import List

from ..models import RepoCoordinate
from ..core.materializer import PathMaterializer
from ..infrastructure.error_handler import (
    DownloadError,
    MalformedResponseError,
    UnsafePathError,
    handle_api_error,
    raise_for_status,
)
from ..infrastructure.logger import logger
from .github_api import GitHubAPIService


class ArchiveService:
    """Fetches a complete repository in one delegated call."""

    def __init__(self, github_service: GitHubAPIService):
        self.github_service = github_service

    @handle_api_error
    async def download_archive(self, coordinate: RepoCoordinate, destination: Path) -> List[str]:
        """
        Download the repository ZIP for ``coordinate.ref`` and extract it
        into ``destination``, dropping the archive's top-level folder.

        Returns:
            Relative paths of the extracted files
        """

        url = self.github_service.archive_url(coordinate)
        logger.info(f"Downloading archive {url}")

        response = await self.github_service.client.get(
            url, headers={"User-Agent": self.github_service.config.user_agent}
        )
        raise_for_status(response, f"archive of {coordinate.display_name}")

        return await asyncio.to_thread(self._extract, response.content, Path(destination))

    @staticmethod
    def _extract(data: bytes, destination: Path) -> List[str]:
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise MalformedResponseError("Repository archive is not a valid ZIP file", e) from e

        written = []
        root = PathMaterializer.ensure_dir(destination).resolve()
        with archive:
            for member in archive.infolist():
                parts = PurePosixPath(member.filename).parts[1:]
                if not parts:
                    continue
                if '..' in parts or PurePosixPath(member.filename).is_absolute():
                    raise UnsafePathError(f"Archive member escapes destination: {member.filename}")

                relative = PurePosixPath(*parts)
                target = root.joinpath(*parts)
                if member.is_dir():
                    PathMaterializer.ensure_dir(target)
                    continue

                PathMaterializer.ensure_dir(target.parent)
                with archive.open(member) as src, open(target, 'wb') as dst:
                    shutil.copyfileobj(src, dst)
                written.append(str(relative))

        logger.info(f"Extracted {len(written)} files to {destination}")
        return written

    async def clone(self, coordinate: RepoCoordinate, destination: Path) -> List[str]:
        """
        Shallow-clone ``coordinate`` at its ref into ``destination``.

        Returns:
            Relative paths of the checked-out files (excluding ``.git``)

        Raises:
            DownloadError: git is missing or the clone failed
        """

        destination = Path(destination)
        url = self.github_service.clone_url(coordinate)
        logger.info(f"Cloning {url}@{coordinate.ref} into {destination}")

        try:
            process = await asyncio.create_subprocess_exec(
                "git", "clone", "--depth", "1", "--branch", coordinate.ref, url, str(destination),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise DownloadError("git executable not found on PATH", e) from e

        try:
            _, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        if process.returncode != 0:
            raise DownloadError(
                f"git clone of {coordinate.display_name} failed "
                f"(exit {process.returncode}): {stderr.decode(errors='replace').strip()}"
            )

        return sorted(
            path.relative_to(destination).as_posix()
            for path in destination.rglob('*')
            if path.is_file() and '.git' not in path.relative_to(destination).parts
        )


__all__ = [
    "ArchiveService",
]
