"""
Recursive listing of a subtree.
"""

from typing import List

from ..models import RepoCoordinate, TreeEntry
from ..infrastructure.logger import logger
from ..services import GitHubAPIService


class TreeLister:

    def __init__(self, github_service: GitHubAPIService):
        self.github_service = github_service

    async def list_recursive(self, coordinate: RepoCoordinate, identifier: str) -> List[TreeEntry]:
        """One recursive tree request; entry paths are relative to the subtree root."""

        entries = await self.github_service.get_tree(coordinate, identifier)
        blobs = sum(1 for entry in entries if entry.is_blob)
        logger.debug(
            f"Listed {len(entries)} entries ({blobs} files) under {identifier} "
            f"of {coordinate.display_name}"
        )
        return entries


__all__ = [
    "TreeLister",
]
