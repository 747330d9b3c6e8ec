"""Per-run orchestration of the pull request analysis.

The phases run strictly in sequence, each one completing before the next
begins:

1. build the repository index (best effort);
2. list the changed files;
3. fetch the content and diff of every changed file;
4. build the dependency graph;
5. associate tests with source files.
"""

import asyncio
from typing import List, Optional, Tuple

from pr_testgen.analysis.graph import build_dependency_graph
from pr_testgen.analysis.repo_index import build_repository_index
from pr_testgen.analysis.sources import ContentStore, DiffSource, DirectoryLister, PathPredicate
from pr_testgen.analysis.test_finder import associate_tests
from pr_testgen.exceptions import AnalysisError
from pr_testgen.logging import get_logger
from pr_testgen.models import ChangedFile, FileRecord, RepositoryIndex, RunContext

logger = get_logger(__name__)


async def _load_file(
    store: ContentStore,
    changed: ChangedFile,
    ref: str,
    semaphore: asyncio.Semaphore,
) -> Tuple[str, Optional[str]]:
    """Fetch the diff and content of one file; failures yield empty values."""
    async with semaphore:
        try:
            diff = await store.get_file_diff(changed.path)
        except Exception as e:
            logger.warning("fetch_diff_failed", path=changed.path, error=str(e))
            diff = ""

        content = None
        if changed.status != "removed":
            try:
                content = await store.get_file_content(changed.path, ref)
            except Exception as e:
                logger.warning("fetch_content_failed", path=changed.path, error=str(e))
    return diff, content


def select_changed_files(
    changed_files: List[ChangedFile],
    path_filter: Optional[PathPredicate] = None,
    max_files: int = 0,
) -> List[ChangedFile]:
    """Drop duplicate and filtered-out paths, then cap the count.

    Args:
        changed_files: Files as listed by the diff source.
        path_filter: Optional eligibility predicate.
        max_files: Maximum number of files to keep; 0 keeps all.
    """
    selected: List[ChangedFile] = []
    seen = set()
    for changed in changed_files:
        if changed.path in seen:
            continue
        seen.add(changed.path)
        if path_filter is not None and not path_filter.matches(changed.path):
            logger.debug("file_filtered", path=changed.path)
            continue
        selected.append(changed)

    if max_files > 0 and len(selected) > max_files:
        logger.info("max_files_reached", max_files=max_files, skipped=len(selected) - max_files)
        selected = selected[:max_files]
    return selected


async def analyze_pull_request(
    diff_source: DiffSource,
    content_store: ContentStore,
    lister: Optional[DirectoryLister],
    ref: str,
    *,
    path_filter: Optional[PathPredicate] = None,
    max_files: int = 0,
    concurrency: int = 6,
    index_timeout: Optional[float] = None,
) -> RunContext:
    """Analyze the files changed by a pull request.

    Args:
        diff_source: Lists the changed files.
        content_store: Fetches file content and diffs.
        lister: Lists remote directories for the repository index. When None
            the index is empty and only changed files are known.
        ref: Git ref of the PR head.
        path_filter: Restricts which files are indexed and analyzed.
        max_files: Maximum number of changed files to analyze; 0 for all.
        concurrency: Maximum number of remote calls in flight.
        index_timeout: Seconds allowed for the index traversal.

    Returns:
        The populated RunContext.

    Raises:
        AnalysisError: If the changed files cannot be listed.
    """
    if lister is not None:
        index = await build_repository_index(
            lister, ref, path_filter=path_filter, timeout=index_timeout, concurrency=concurrency
        )
    else:
        index = RepositoryIndex(complete=False)

    try:
        changed_files = await diff_source.list_changed_files()
    except Exception as e:
        logger.error("list_changed_files_failed", error=str(e))
        raise AnalysisError(f"Unable to list the changed files: {e}") from e

    selected = select_changed_files(changed_files, path_filter, max_files)

    semaphore = asyncio.Semaphore(max(1, concurrency))
    loaded = await asyncio.gather(
        *(_load_file(content_store, changed, ref, semaphore) for changed in selected)
    )

    context = RunContext(index=index)
    for changed, (diff, content) in zip(selected, loaded):
        context.files[changed.path] = FileRecord.create(changed.path, diff_text=diff, content=content)

    build_dependency_graph(context)
    associate_tests(context)

    logger.info(
        "pull_request_analyzed",
        files=len(context.files),
        tests_to_modify=len(context.tests_to_modify()),
        index_complete=index.complete,
    )
    return context
