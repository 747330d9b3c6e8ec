"""Resolution of import specifiers to repository paths.

Only intra-repository references are tracked: specifiers that do not start
with ``.`` or ``/`` name external packages and never resolve. Everything else
is matched against the set of known paths (repository index plus changed
files), never against a local filesystem.
"""

import posixpath
from typing import Iterable, List, NamedTuple, Optional

from pr_testgen.logging import get_logger
from pr_testgen.models import RepositoryIndex

logger = get_logger(__name__)


EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".json", ".py", ".java", ".go", ".rb")

INDEX_FILES = ("index.js", "index.jsx", "index.ts", "index.tsx", "__init__.py")

CONVENTIONAL_DIRECTORIES = (
    "src",
    "lib",
    "utils",
    "components",
    "services",
    "helpers",
    "core",
    "common",
    "shared",
)

MAX_ANCESTOR_LEVELS = 3


class Resolution(NamedTuple):
    path: str
    low_confidence: bool = False


def is_external(specifier: str) -> bool:
    return not specifier.startswith((".", "/"))


def normalize(path: str) -> str:
    """Collapse ``.``/``..`` segments of a repository-relative path.

    Returns "" for the repository root. Leading ``..`` segments that would
    escape the root are kept so the result never matches a known path.
    """
    if not path:
        return ""
    normalized = posixpath.normpath(path)
    return "" if normalized == "." else normalized


def join(*parts: str) -> str:
    return normalize("/".join(p.strip("/") for p in parts if p and p.strip("/")))


def ancestors(directory: str, levels: int = MAX_ANCESTOR_LEVELS) -> List[str]:
    """The directory itself followed by up to ``levels`` parents."""
    result = [directory]
    current = directory
    for _ in range(levels):
        if not current:
            break
        current = posixpath.dirname(current)
        result.append(current)
    return result


def strip_extension(name: str) -> str:
    stem, _ = posixpath.splitext(name)
    return stem


class PathResolver:
    """Turns raw import specifiers into canonical repository paths.

    Resolution order, first match wins:

    1. the normalized path itself;
    2. the path plus one of :data:`EXTENSIONS`;
    3. the path as a directory containing one of :data:`INDEX_FILES`;
    4. the specifier tail, or its bare file name under one of
       :data:`CONVENTIONAL_DIRECTORIES`, searched from the importing file's
       directory and up to three ancestors;
    5. the first known path, in sorted order, with the same extension-less
       base name. Such matches are flagged low confidence.

    Args:
        index: Repository index.
        known_paths: Extra paths known to exist, typically the changed files.
    """

    def __init__(self, index: RepositoryIndex, known_paths: Iterable[str] = ()):
        self.known = set(index.paths)
        self.known.update(known_paths)
        self._sorted_known: Optional[List[str]] = None

    def exists(self, path: str) -> bool:
        return path in self.known

    def resolve(self, from_path: str, specifier: str) -> Optional[str]:
        resolution = self.resolve_with_confidence(from_path, specifier)
        return resolution.path if resolution else None

    def resolve_with_confidence(
        self, from_path: str, specifier: str, allow_fuzzy: bool = True
    ) -> Optional[Resolution]:
        """Resolve ``specifier`` found in ``from_path``.

        Args:
            from_path: Repository-relative path of the importing file.
            specifier: The import string as written in the source.
            allow_fuzzy: Whether the basename similarity fallback may be used.

        Returns:
            The resolution, or None when the specifier is external or
            nothing matches.
        """
        specifier = specifier.strip()
        if not specifier or is_external(specifier):
            return None

        from_dir = posixpath.dirname(from_path)
        if specifier.startswith("/"):
            target = normalize(specifier.lstrip("/"))
        else:
            target = join(from_dir, specifier)

        found = self._probe(target)
        if found:
            return Resolution(found)

        found = self._search_ancestors(from_dir, specifier)
        if found:
            return Resolution(found)

        if allow_fuzzy:
            found = self._similar(target, exclude=from_path)
            if found:
                logger.debug(
                    "low_confidence_resolution",
                    source=from_path,
                    specifier=specifier,
                    target=found,
                )
                return Resolution(found, low_confidence=True)

        return None

    def _probe(self, target: str) -> Optional[str]:
        """Steps 1-3: exact path, extension probing, index-file probing."""
        if target.startswith(".."):
            return None
        if target:
            if target in self.known:
                return target
            for ext in EXTENSIONS:
                candidate = target + ext
                if candidate in self.known:
                    return candidate
        # An empty target is the repository root
        for index_file in INDEX_FILES:
            candidate = posixpath.join(target, index_file)
            if candidate in self.known:
                return candidate
        return None

    def _search_ancestors(self, from_dir: str, specifier: str) -> Optional[str]:
        tail = self._tail(specifier)
        if not tail:
            return None
        name = posixpath.basename(tail)

        for base in ancestors(from_dir):
            found = self._probe(join(base, tail))
            if found:
                return found
            for subdirectory in CONVENTIONAL_DIRECTORIES:
                found = self._probe(join(base, subdirectory, name))
                if found:
                    return found
        return None

    @staticmethod
    def _tail(specifier: str) -> str:
        """Specifier without its leading ``/``, ``./`` and ``../`` segments."""
        parts = [p for p in specifier.split("/") if p]
        while parts and parts[0] in (".", ".."):
            parts.pop(0)
        return "/".join(parts)

    def _similar(self, target: str, exclude: str) -> Optional[str]:
        stem = strip_extension(posixpath.basename(target))
        if not stem or stem in (".", ".."):
            return None
        if self._sorted_known is None:
            self._sorted_known = sorted(self.known)
        for path in self._sorted_known:
            if path != exclude and strip_extension(posixpath.basename(path)) == stem:
                return path
        return None
