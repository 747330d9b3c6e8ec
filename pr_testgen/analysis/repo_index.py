"""Repository file index built from remote directory listings.

The index is the ground truth of "does this path exist" for the resolver and
the test association engine. It is built once per run, breadth first, one
directory level at a time, and never raises on remote errors: whatever has
been collected when a listing fails, times out or is cancelled is returned.
"""

import asyncio
from typing import List, Optional, Set

from pr_testgen.analysis.sources import DirectoryLister, PathPredicate
from pr_testgen.logging import get_logger
from pr_testgen.models import EntryKind, RepositoryIndex

logger = get_logger(__name__)


# Dependency, build and version-control directories never worth indexing
IGNORED_DIRECTORIES = frozenset({
    "node_modules",
    "dist",
    "build",
    "out",
    "target",
    "vendor",
    "coverage",
    "__pycache__",
    "venv",
    ".git",
})


def is_ignored_directory(name: str) -> bool:
    return name in IGNORED_DIRECTORIES or name.startswith(".")


class _IndexBuilder:
    """Accumulates paths across a traversal so a partial result survives."""

    def __init__(
        self,
        lister: DirectoryLister,
        ref: str,
        path_filter: Optional[PathPredicate],
        concurrency: int,
    ):
        self.lister = lister
        self.ref = ref
        self.path_filter = path_filter
        self.semaphore = asyncio.Semaphore(max(1, concurrency))
        self.paths: Set[str] = set()
        self.failed_directories: List[str] = []
        self.truncated_directories: List[str] = []
        # Listers whose backend caps entries per directory expose the cap
        self.listing_limit: Optional[int] = getattr(lister, "listing_limit", None)

    def _prune(self, path: str) -> bool:
        name = path.rsplit("/", 1)[-1]
        if is_ignored_directory(name):
            return True
        excludes = getattr(self.path_filter, "excludes", None)
        return bool(excludes and excludes(path))

    async def _list(self, directory: str) -> List[str]:
        """List one directory, returning its subdirectories to visit next."""
        async with self.semaphore:
            try:
                entries = await self.lister.list_directory(directory, self.ref)
            except Exception as e:
                logger.warning("list_directory_failed", directory=directory or "/", error=str(e))
                self.failed_directories.append(directory)
                return []

        if self.listing_limit and len(entries) >= self.listing_limit:
            logger.warning("directory_listing_truncated", directory=directory or "/", entries=len(entries))
            self.truncated_directories.append(directory)

        subdirectories = []
        for entry in entries:
            path = entry.path.strip("/")
            if not path:
                continue
            if entry.kind == EntryKind.DIR:
                if not self._prune(path):
                    subdirectories.append(path)
            elif self.path_filter is None or self.path_filter.matches(path):
                self.paths.add(path)
        return subdirectories

    async def run(self) -> None:
        level = [""]
        while level:
            results = await asyncio.gather(*(self._list(d) for d in level))
            level = sorted(sub for subs in results for sub in subs)


async def build_repository_index(
    lister: DirectoryLister,
    ref: str,
    path_filter: Optional[PathPredicate] = None,
    timeout: Optional[float] = None,
    concurrency: int = 6,
) -> RepositoryIndex:
    """Index every file reachable from the repository root.

    Args:
        lister: Remote directory lister.
        ref: Git ref to list (usually the PR head commit).
        path_filter: Optional predicate; files it rejects are not indexed and
            directories it explicitly excludes are not traversed.
        timeout: Seconds after which traversal stops and the partial index is
            returned. None waits indefinitely.
        concurrency: Maximum number of listings in flight.

    Returns:
        The index. ``complete`` is False if any directory failed, a listing
        reached the lister's ``listing_limit`` or the traversal was cut
        short.
    """
    builder = _IndexBuilder(lister, ref, path_filter, concurrency)
    complete = True
    try:
        await asyncio.wait_for(builder.run(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("index_timeout", timeout=timeout, indexed=len(builder.paths))
        complete = False
    except asyncio.CancelledError:
        logger.warning("index_cancelled", indexed=len(builder.paths))
        complete = False

    if builder.failed_directories or builder.truncated_directories:
        complete = False

    logger.info(
        "repository_indexed",
        files=len(builder.paths),
        complete=complete,
        failed_directories=len(builder.failed_directories),
        truncated_directories=len(builder.truncated_directories),
    )
    return RepositoryIndex(paths=frozenset(builder.paths), complete=complete)
