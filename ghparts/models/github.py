"""
GitHub domain models for ghparts.

This module contains strongly typed data classes and enums representing
repository coordinates and the entries returned by the GitHub listing APIs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union


DEFAULT_REF = "master"


class EntryKind(Enum):
    """Kind of a node in a repository tree."""

    BLOB = "blob"
    TREE = "tree"

    @classmethod
    def from_api(cls, value: str) -> "EntryKind":
        """Map both the contents API ('file'/'dir') and the git trees API
        ('blob'/'tree') type names onto an EntryKind."""

        mapping = {
            "file": cls.BLOB,
            "blob": cls.BLOB,
            "dir": cls.TREE,
            "tree": cls.TREE,
        }
        try:
            return mapping[value]
        except KeyError:
            raise ValueError(f"Unsupported entry type: {value!r}") from None


@dataclass(frozen=True)
class RepoCoordinate:
    """Immutable identification of the remote repository and ref to read."""

    owner: str
    name: str
    ref: str = DEFAULT_REF

    def __post_init__(self) -> None:
        if not self.owner or not self.name:
            raise ValueError("Repository owner and name are required")
        if not self.ref:
            raise ValueError("Repository ref cannot be empty")

    @property
    def display_name(self) -> str:
        return f'{self.owner}/{self.name}@{self.ref}'

    @classmethod
    def parse(cls, value: str, ref: Optional[str] = None) -> "RepoCoordinate":
        """
        Parse the combined ``owner/repo[/ref]`` form.

        Everything after the second separator is taken as the ref so that
        branch names containing slashes (``feature/x``) survive.
        An explicit ``ref`` argument wins over one embedded in the string.
        """

        if not isinstance(value, str):
            raise ValueError(f"Invalid repository string: {value!r}")

        parts = value.strip().strip('/').split('/', 2)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ValueError(
                f"Invalid repository string: {value!r}. Expected 'owner/repo[/ref]'"
            )

        embedded_ref = parts[2] if len(parts) == 3 and parts[2] else None
        return cls(owner=parts[0], name=parts[1], ref=ref or embedded_ref or DEFAULT_REF)


@dataclass
class RepoOptions:
    """
    Structured repository options, mirroring the object form accepted by
    the library surface.

    ``user`` and ``username`` are aliases for the owner. ``repo`` takes
    precedence over ``repository``; a ``repo`` value containing a slash is
    read as the combined ``owner/repo[/ref]`` form.
    """

    repo: Optional[str] = None
    user: Optional[str] = None
    username: Optional[str] = None
    repository: Optional[str] = None
    ref: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RepoOptions":
        known = {k: data.get(k) for k in ('repo', 'user', 'username', 'repository', 'ref')}
        return cls(**known)

    def to_coordinate(self) -> RepoCoordinate:
        if self.repo and '/' in self.repo:
            return RepoCoordinate.parse(self.repo, ref=self.ref)

        owner = self.user or self.username
        name = self.repo or self.repository
        if not owner or not name:
            raise ValueError(
                "Repository options need 'repo' as 'owner/repo[/ref]', "
                "or an owner ('user'/'username') plus 'repo'/'repository'"
            )
        return RepoCoordinate(owner=owner, name=name, ref=self.ref or DEFAULT_REF)


RepoLike = Union[str, RepoCoordinate, RepoOptions, Mapping[str, Any]]


def coerce_coordinate(value: RepoLike) -> RepoCoordinate:
    """Turn any accepted repository description into a RepoCoordinate."""

    if isinstance(value, RepoCoordinate):
        return value
    if isinstance(value, RepoOptions):
        return value.to_coordinate()
    if isinstance(value, str):
        return RepoCoordinate.parse(value)
    if isinstance(value, Mapping):
        return RepoOptions.from_mapping(value).to_coordinate()
    raise ValueError(f"Unsupported repository description: {value!r}")


@dataclass(frozen=True)
class TreeEntry:
    """A blob or tree returned by a listing endpoint."""

    path: str
    kind: EntryKind
    identifier: str

    @property
    def is_blob(self) -> bool:
        return self.kind is EntryKind.BLOB


@dataclass(frozen=True)
class SingleFile:
    """The requested path names an existing blob."""

    path: str
    download_url: str
    local_destination: str


@dataclass(frozen=True)
class Subtree:
    """The requested path names a directory (or the repository root)."""

    path: str
    identifier: str


ResolvedTarget = Union[SingleFile, Subtree]


__all__ = [
    "DEFAULT_REF",
    "EntryKind",
    "RepoCoordinate",
    "RepoOptions",
    "RepoLike",
    "coerce_coordinate",
    "TreeEntry",
    "SingleFile",
    "Subtree",
    "ResolvedTarget",
]
