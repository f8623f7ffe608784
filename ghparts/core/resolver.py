"""
Resolution of a requested path into a single file or a subtree.
"""

from posixpath import basename

from ..models import RepoCoordinate, ResolvedTarget, SingleFile, Subtree
from ..infrastructure.error_handler import NotFoundError, UnsafePathError
from ..infrastructure.logger import logger
from ..services import GitHubAPIService


def normalize_path(requested_path: str) -> str:
    """
    Canonical '/'-separated repository path without leading or trailing
    separators. Empty and '.' segments are dropped; '..' is refused.
    """

    parts = [part for part in (requested_path or "").replace('\\', '/').split('/') if part not in ('', '.')]
    if '..' in parts:
        raise UnsafePathError(f"Parent segments are not allowed in a repository path: {requested_path!r}")
    return '/'.join(parts)


class PathResolver:
    """Decides whether a path names a blob or a tree, using one directory listing."""

    def __init__(self, github_service: GitHubAPIService):
        self.github_service = github_service

    async def resolve(self, coordinate: RepoCoordinate, requested_path: str) -> ResolvedTarget:
        """
        Resolve ``requested_path`` within ``coordinate``.

        The parent directory is listed and searched for the exact path. Blobs
        take the fast path straight to their raw-content URL; trees yield the
        identifier needed for a recursive listing. The empty path is the
        repository root and lists from the ref itself.

        Raises:
            NotFoundError: The path, ref or repository does not exist
            UpstreamError: The listing endpoint failed
            MalformedResponseError: The listing payload was unusable
        """

        path = normalize_path(requested_path)
        if not path:
            logger.debug(f"Resolved repository root of {coordinate.display_name}")
            return Subtree(path="", identifier=coordinate.ref)

        parent = path.rpartition('/')[0]
        entries = await self.github_service.list_directory(coordinate, parent)

        match = next((entry for entry in entries if entry.path == path), None)
        if match is None:
            raise NotFoundError(f"No file or directory '{path}' in {coordinate.display_name}")

        if match.is_blob:
            logger.debug(f"Resolved '{path}' to a file")
            return SingleFile(
                path=path,
                download_url=self.github_service.raw_url(coordinate, path),
                local_destination=basename(path),
            )

        logger.debug(f"Resolved '{path}' to tree {match.identifier}")
        return Subtree(path=path, identifier=match.identifier)


__all__ = [
    "PathResolver",
    "normalize_path",
]
