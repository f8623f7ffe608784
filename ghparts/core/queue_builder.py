"""
Translation of a tree listing into a download queue.
"""

import re
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, Optional

from ..models import (
    DownloadItem, DownloadQueue, ItemKind, RepoCoordinate, SingleFile, TreeEntry
)
from ..infrastructure.error_handler import UnsafePathError
from ..infrastructure.logger import logger


_DRIVE_PREFIX = re.compile(r'^[A-Za-z]:')

RawUrlBuilder = Callable[[RepoCoordinate, str], str]


class QueueBuilder:
    """
    Builds the complete, ordered DownloadQueue before any fetch starts.

    The contents of the requested directory are mapped directly into the
    target directory (``docs/img/logo.png`` requested as ``docs`` lands at
    ``<target>/img/logo.png``). With ``nest_requested_dir`` the directory's
    own name is kept as the first local component instead.
    """

    def __init__(self, raw_url_builder: RawUrlBuilder, nest_requested_dir: bool = False):
        self.raw_url_builder = raw_url_builder
        self.nest_requested_dir = nest_requested_dir

    def build(
        self,
        coordinate: RepoCoordinate,
        entries: Iterable[TreeEntry],
        requested_path: str,
        target_dir: Path
    ) -> DownloadQueue:
        """
        Args:
            coordinate: Repository the entries were listed from
            entries: Listing entries, paths relative to the requested directory
            requested_path: Normalized directory path ('' for the root)
            target_dir: Local directory receiving the contents

        Returns:
            DownloadQueue in listing order; unsafe entries are recorded in
            ``queue.rejected`` and never queued
        """

        requested_path = requested_path.strip('/')
        prefix = PurePosixPath(requested_path).name if self.nest_requested_dir and requested_path else None
        queue = DownloadQueue(target_dir=Path(target_dir))

        for entry in entries:
            remote_path = f"{requested_path}/{entry.path}" if requested_path else entry.path
            local = f"{prefix}/{entry.path}" if prefix else entry.path

            try:
                local = self._safe_relative(local, queue.target_dir)
            except UnsafePathError as e:
                logger.warning(f"Rejecting listing entry {remote_path!r}: {e}")
                queue.rejected[remote_path] = str(e)
                continue

            if entry.is_blob:
                item = DownloadItem(
                    remote_path=remote_path,
                    local_relative_path=local,
                    download_url=self.raw_url_builder(coordinate, remote_path),
                    kind=ItemKind.FILE,
                )
            else:
                item = DownloadItem(
                    remote_path=remote_path,
                    local_relative_path=local,
                    download_url=None,
                    kind=ItemKind.DIRECTORY_MARKER,
                )
            queue.items.append(item)

        logger.debug(
            f"Queued {len(queue.files)} files and {len(queue.directories)} directories "
            f"({len(queue.rejected)} rejected)"
        )
        return queue

    def build_single(self, target: SingleFile, target_dir: Path) -> DownloadQueue:
        """Queue for the single-file fast path."""

        queue = DownloadQueue(target_dir=Path(target_dir))
        local = self._safe_relative(target.local_destination, queue.target_dir)
        queue.items.append(DownloadItem(
            remote_path=target.path,
            local_relative_path=local,
            download_url=target.download_url,
            kind=ItemKind.FILE,
        ))
        return queue

    @staticmethod
    def _safe_relative(path: str, target_dir: Optional[Path] = None) -> str:
        """
        Validate a listing-derived local path.

        Refuses absolute paths, drive or backslash forms and any '..'
        segment, then double-checks that the joined path stays inside
        ``target_dir``.
        """

        if not path or '\\' in path or _DRIVE_PREFIX.match(path):
            raise UnsafePathError(f"Invalid local path {path!r}")

        pure = PurePosixPath(path)
        if pure.is_absolute():
            raise UnsafePathError(f"Absolute path {path!r} is not allowed")
        if '..' in pure.parts:
            raise UnsafePathError(f"Path {path!r} escapes the target directory")

        parts = [part for part in pure.parts if part != '.']
        if not parts:
            raise UnsafePathError(f"Invalid local path {path!r}")

        if target_dir is not None:
            root = target_dir.resolve()
            joined = root.joinpath(*parts).resolve()
            if joined != root and root not in joined.parents:
                raise UnsafePathError(f"Path {path!r} resolves outside {target_dir}")

        return '/'.join(parts)


__all__ = [
    "QueueBuilder",
    "RawUrlBuilder",
]
