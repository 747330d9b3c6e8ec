"""Dependency graph construction over the changed files of a run."""

from typing import Optional

from pr_testgen.analysis.extractors import extract_specifiers
from pr_testgen.analysis.resolver import PathResolver
from pr_testgen.logging import get_logger
from pr_testgen.models import DependencyEdge, FileRecord, RunContext

logger = get_logger(__name__)


def resolve_dependencies(record: FileRecord, resolver: PathResolver) -> None:
    """Extract, resolve and store the outgoing edges of one file.

    Unresolvable specifiers and self references are dropped. Edges are
    de-duplicated by target path, keeping the first relation kind seen.
    """
    if record.content is None:
        return

    for raw in extract_specifiers(record.path, record.content):
        resolution = resolver.resolve_with_confidence(
            record.path, raw.specifier, allow_fuzzy=raw.allow_fuzzy
        )
        if resolution is None:
            logger.debug("unresolved_specifier", path=record.path, specifier=raw.specifier)
            continue
        if resolution.path == record.path:
            continue
        record.add_dependency(
            DependencyEdge(
                path=resolution.path,
                type=raw.kind,
                raw_import=raw.specifier,
                low_confidence=resolution.low_confidence,
            )
        )


def build_dependency_graph(
    context: RunContext, resolver: Optional[PathResolver] = None
) -> PathResolver:
    """Populate ``dependencies`` and ``dependents`` of every record.

    Outgoing edges are computed for every file first; only then is each edge
    mirrored into the target's ``dependents``, and only when the target is a
    known record of this run.

    Args:
        context: The run whose records are analyzed in place.
        resolver: Resolver to use; by default one over the run's index and
            changed files.

    Returns:
        The resolver used, so later phases can share it.
    """
    if resolver is None:
        resolver = PathResolver(context.index, known_paths=context.files.keys())

    for record in context.files.values():
        resolve_dependencies(record, resolver)

    edges = 0
    for source_path, record in context.files.items():
        for dependency in record.dependencies:
            edges += 1
            target = context.files.get(dependency.path)
            if target is not None:
                target.add_dependent(DependencyEdge(path=source_path, type=dependency.type))

    logger.info("dependency_graph_built", files=len(context.files), edges=edges)
    return resolver
