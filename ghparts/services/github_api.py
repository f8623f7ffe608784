"""
GitHub API service: directory listings, recursive trees and raw content.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..models import DownloadConfig, EntryKind, RepoCoordinate, TreeEntry
from ..infrastructure.error_handler import (
    MalformedResponseError,
    NotFoundError,
    handle_api_error,
    parse_json,
    raise_for_status,
)
from ..infrastructure.logger import logger


class GitHubAPIService:
    """
    Thin async client over the three GitHub endpoints the pipeline needs.

    A client passed in by the caller is shared and left open; one created
    here is closed by ``close()``.
    """

    def __init__(
        self,
        config: Optional[DownloadConfig] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config or DownloadConfig()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=self.config.timeout,
            follow_redirects=True,
        )
        self._api_headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.config.user_agent,
        }
        self.api_calls = 0

    async def __aenter__(self) -> "GitHubAPIService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    ####
    ##      URL BUILDERS
    #####
    def raw_url(self, coordinate: RepoCoordinate, path: str) -> str:
        """Raw-content URL of ``path`` (relative to the repository root)."""

        return (
            f"{self.config.raw_base_url}/{coordinate.owner}/{coordinate.name}/"
            f"{quote(coordinate.ref, safe='/')}/{quote(path.lstrip('/'), safe='/')}"
        )

    def archive_url(self, coordinate: RepoCoordinate) -> str:
        return (
            f"{self.config.archive_base_url}/{coordinate.owner}/{coordinate.name}/"
            f"zip/{quote(coordinate.ref, safe='/')}"
        )

    def clone_url(self, coordinate: RepoCoordinate) -> str:
        return f"{self.config.clone_base_url}/{coordinate.owner}/{coordinate.name}.git"

    ####
    ##      API CALLS
    #####
    async def _api_get(self, endpoint: str, what: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.config.api_base_url}{endpoint}"
        logger.debug(f"GET {url} {params or ''}")
        response = await self.client.get(url, headers=self._api_headers, params=params)
        self.api_calls += 1
        raise_for_status(response, what)
        return parse_json(response, what)

    @handle_api_error
    async def list_directory(self, coordinate: RepoCoordinate, path: str = "") -> List[TreeEntry]:
        """
        List the immediate children of ``path`` at ``coordinate.ref``.

        Args:
            coordinate: Repository to read
            path: Directory path relative to the repository root ('' for root)

        Returns:
            Children as TreeEntry objects with repository-root relative paths

        Raises:
            NotFoundError: The repository, ref or directory does not exist
            UpstreamError: Any other non-success status or transport failure
            MalformedResponseError: The payload is not a directory listing
        """

        path = path.strip('/')
        what = f"contents of '{path or '/'}' in {coordinate.display_name}"
        payload = await self._api_get(
            f"/repos/{coordinate.owner}/{coordinate.name}/contents/{quote(path, safe='/')}",
            what,
            params={"ref": coordinate.ref},
        )

        if isinstance(payload, dict) and "type" in payload:
            # The parent itself is a file, so nothing can live below it
            raise NotFoundError(f"'{path}' in {coordinate.display_name} is not a directory")
        if not isinstance(payload, list):
            raise MalformedResponseError(f"Expected a directory listing for {what}")

        entries = []
        for item in payload:
            entry = self._parse_entry(item, what, skip={"symlink", "submodule"})
            if entry is not None:
                entries.append(entry)
        return entries

    @handle_api_error
    async def get_tree(self, coordinate: RepoCoordinate, identifier: str) -> List[TreeEntry]:
        """
        Fetch the recursive listing of the tree referenced by ``identifier``.

        Paths in the result are relative to that tree, not to the repository.
        """

        what = f"tree {identifier} of {coordinate.display_name}"
        payload = await self._api_get(
            f"/repos/{coordinate.owner}/{coordinate.name}/git/trees/{quote(identifier, safe='/')}",
            what,
            params={"recursive": "1"},
        )

        if not isinstance(payload, dict) or not isinstance(payload.get("tree"), list):
            raise MalformedResponseError(f"Response for {what} has no 'tree' field")

        if payload.get("truncated"):
            logger.warning(f"Listing of {what} was truncated by GitHub; some entries are missing")

        entries = []
        for item in payload["tree"]:
            entry = self._parse_entry(item, what, skip={"commit"})
            if entry is not None:
                entries.append(entry)
        return entries

    @handle_api_error
    async def get_file_content(self, download_url: str) -> bytes:
        """GET a raw-content URL and return the body bytes."""

        response = await self.client.get(download_url, headers={"User-Agent": self.config.user_agent})
        raise_for_status(response, download_url)
        return response.content

    @staticmethod
    def _parse_entry(item: Any, what: str, skip: set) -> Optional[TreeEntry]:
        if not isinstance(item, dict):
            raise MalformedResponseError(f"Unexpected entry in {what}: {item!r}")

        try:
            raw_type = item["type"]
            if raw_type in skip:
                logger.debug(f"Skipping {raw_type} entry {item.get('path')}")
                return None
            return TreeEntry(
                path=item["path"],
                kind=EntryKind.from_api(raw_type),
                identifier=item["sha"],
            )
        except (KeyError, ValueError) as e:
            raise MalformedResponseError(f"Malformed entry in {what}: {item!r}", e) from e


__all__ = [
    "GitHubAPIService",
]
