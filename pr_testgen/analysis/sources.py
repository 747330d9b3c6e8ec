"""Interfaces of the remote collaborators consumed by the analysis engine."""

from typing import List, Optional, Protocol, runtime_checkable

from pr_testgen.models import ChangedFile, DirectoryEntry


@runtime_checkable
class DiffSource(Protocol):
    """Lists the files modified by the change request."""

    async def list_changed_files(self) -> List[ChangedFile]:
        ...


@runtime_checkable
class ContentStore(Protocol):
    """Reads file content and patch text from the remote repository."""

    async def get_file_content(self, path: str, ref: str) -> Optional[str]:
        ...

    async def get_file_diff(self, path: str) -> str:
        ...


@runtime_checkable
class DirectoryLister(Protocol):
    """Lists one level of the remote repository tree.

    A lister whose backend caps the entries of one directory may expose the
    cap as a ``listing_limit`` attribute. A listing that reaches it is
    treated as truncated.
    """

    async def list_directory(self, path: str, ref: str) -> List[DirectoryEntry]:
        ...


@runtime_checkable
class PathPredicate(Protocol):
    """Decides whether a repository path is eligible for analysis."""

    def matches(self, path: str) -> bool:
        ...
