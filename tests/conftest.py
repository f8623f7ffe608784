"""
Shared fixtures: an in-memory fake of the GitHub endpoints served through
httpx.MockTransport, so no test touches the network.
"""

from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from ghparts.models import DownloadConfig, RepoCoordinate


class FakeGitHub:
    """Minimal stand-in for the contents, trees and raw-content hosts."""

    def __init__(self, owner: str = "acme", name: str = "sample", ref: str = "main"):
        self.owner = owner
        self.name = name
        self.ref = ref
        self.contents: Dict[str, list] = {}
        self.trees: Dict[str, dict] = {}
        self.raw: Dict[str, bytes] = {}
        # raw path -> number of upcoming requests answered with HTTP 500
        self.raw_failures: Dict[str, int] = {}
        self.api_status: Optional[int] = None
        self.requests: List[httpx.Request] = []

    # -- setup helpers --------------------------------------------------

    def listing(self, parent: str, *entries: Tuple[str, str, str]) -> None:
        self.contents[parent] = [
            {"path": path, "type": kind, "sha": sha, "name": path.rsplit('/', 1)[-1]}
            for path, kind, sha in entries
        ]

    def tree(self, identifier: str, *entries: Tuple[str, str, str], truncated: bool = False) -> None:
        self.trees[identifier] = {
            "sha": identifier,
            "tree": [{"path": path, "type": kind, "sha": sha, "mode": "100644"} for path, kind, sha in entries],
            "truncated": truncated,
        }

    def file(self, path: str, content: bytes) -> None:
        self.raw[path] = content

    # -- inspection -----------------------------------------------------

    def calls_to(self, fragment: str) -> List[httpx.Request]:
        return [request for request in self.requests if fragment in request.url.path]

    # -- transport ------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = request.url

        if url.host == "api.github.com":
            if self.api_status is not None:
                return httpx.Response(self.api_status, json={"message": "fake failure"})

            prefix = f"/repos/{self.owner}/{self.name}/"
            if not url.path.startswith(prefix):
                return httpx.Response(404, json={"message": "Not Found"})
            rest = url.path[len(prefix):]

            if rest.startswith("contents"):
                if url.params.get("ref") != self.ref:
                    return httpx.Response(404, json={"message": "No commit found for the ref"})
                key = rest[len("contents"):].strip('/')
                if key not in self.contents:
                    return httpx.Response(404, json={"message": "Not Found"})
                return httpx.Response(200, json=self.contents[key])

            if rest.startswith("git/trees/"):
                identifier = rest[len("git/trees/"):]
                if identifier not in self.trees:
                    return httpx.Response(404, json={"message": "Not Found"})
                return httpx.Response(200, json=self.trees[identifier])

            return httpx.Response(404, json={"message": "Not Found"})

        if url.host == "raw.githubusercontent.com":
            prefix = f"/{self.owner}/{self.name}/{self.ref}/"
            if not url.path.startswith(prefix):
                return httpx.Response(404, text="404: Not Found")
            path = url.path[len(prefix):]

            if self.raw_failures.get(path, 0) > 0:
                self.raw_failures[path] -= 1
                return httpx.Response(500, text="boom")
            if path not in self.raw:
                return httpx.Response(404, text="404: Not Found")
            return httpx.Response(200, content=self.raw[path])

        return httpx.Response(404)


def make_sample_repo(fake: FakeGitHub) -> FakeGitHub:
    """
    acme/sample@main:
        README.md
        docs/readme.md
        docs/img/logo.png
        docs/empty/
    """

    fake.listing(
        "",
        ("README.md", "file", "blob-readme"),
        ("docs", "dir", "tree-docs"),
    )
    fake.listing(
        "docs",
        ("docs/readme.md", "file", "blob-docs-readme"),
        ("docs/img", "dir", "tree-img"),
        ("docs/empty", "dir", "tree-empty"),
    )
    fake.tree(
        "tree-docs",
        ("readme.md", "blob", "blob-docs-readme"),
        ("img", "tree", "tree-img"),
        ("img/logo.png", "blob", "blob-logo"),
        ("empty", "tree", "tree-empty"),
    )
    fake.tree(
        "main",
        ("README.md", "blob", "blob-readme"),
        ("docs", "tree", "tree-docs"),
        ("docs/readme.md", "blob", "blob-docs-readme"),
        ("docs/img", "tree", "tree-img"),
        ("docs/img/logo.png", "blob", "blob-logo"),
        ("docs/empty", "tree", "tree-empty"),
    )
    fake.file("README.md", b"# sample\n")
    fake.file("docs/readme.md", b"docs readme\n")
    fake.file("docs/img/logo.png", b"\x89PNG\r\n\x1a\nfake-logo")
    return fake


@pytest.fixture
def fake_github() -> FakeGitHub:
    return make_sample_repo(FakeGitHub())


@pytest.fixture
def http_client(fake_github) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_github.handler))


@pytest.fixture
def config() -> DownloadConfig:
    return DownloadConfig(retry_base_delay=0.0, retry_max_delay=0.0)


@pytest.fixture
def coordinate() -> RepoCoordinate:
    return RepoCoordinate(owner="acme", name="sample", ref="main")
