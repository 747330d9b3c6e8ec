"""Data models for pull request analysis.

This module defines the Pydantic models shared by the GitHub client, the
dependency analysis engine and the command workflow.
"""

import posixpath
import re
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# File names that mark a test file
TEST_PATTERNS = (
    re.compile(r"\.test\.[jt]sx?$"),
    re.compile(r"\.spec\.[jt]sx?$"),
    re.compile(r"_test\.[jt]sx?$"),
    re.compile(r"Tests?\.java$"),
    re.compile(r"_test\.py$"),
    re.compile(r"(^|/)test_[^/]*\.py$"),
    re.compile(r"_test\.go$"),
    re.compile(r"_spec\.rb$"),
    re.compile(r"(^|/)__tests__/"),
)


def is_test_file(path: str) -> bool:
    return any(pattern.search(path) for pattern in TEST_PATTERNS)


class RelationKind(str, Enum):
    """Kind of reference one file makes to another."""

    IMPORT = "import"
    REQUIRE = "require"
    REFERENCE = "reference"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    USES = "uses"


class EntryKind(str, Enum):
    """Kind of entry returned by a directory listing."""

    FILE = "file"
    DIR = "dir"


class DependencyEdge(BaseModel):
    """Directed relation between two repository files.

    Used both for a file's dependencies (path is the target) and its
    dependents (path is the referencing file).

    Attributes:
        path: Repository-relative path of the other end of the edge.
        type: How the file is referenced.
        raw_import: The specifier as written in the source, when known.
        low_confidence: True if the target was found by basename similarity
            rather than by structural resolution.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    type: RelationKind
    raw_import: Optional[str] = None
    low_confidence: bool = False


class FileRecord(BaseModel):
    """Analysis record for one file touched by the pull request.

    Records are created once per changed file and mutated in place while
    dependencies, dependents and related tests are discovered.
    """

    name: str
    path: str
    diff_text: str = ""
    content: Optional[str] = None
    dependencies: List[DependencyEdge] = Field(default_factory=list)
    dependents: List[DependencyEdge] = Field(default_factory=list)
    test_files: List[str] = Field(default_factory=list)
    is_test: bool = Field(default=False, frozen=True)

    @classmethod
    def create(
        cls, path: str, diff_text: str = "", content: Optional[str] = None
    ) -> "FileRecord":
        """Build a record, classifying the file as a test from its name."""
        return cls(
            name=posixpath.basename(path),
            path=path,
            diff_text=diff_text,
            content=content,
            is_test=is_test_file(path),
        )

    def add_dependency(self, edge: DependencyEdge) -> bool:
        """Append a dependency unless one to the same target exists."""
        if any(dep.path == edge.path for dep in self.dependencies):
            return False
        self.dependencies.append(edge)
        return True

    def add_dependent(self, edge: DependencyEdge) -> bool:
        """Append a dependent unless the same (path, type) pair exists."""
        if any(d.path == edge.path and d.type == edge.type for d in self.dependents):
            return False
        self.dependents.append(edge)
        return True

    def add_test_file(self, path: str) -> None:
        if path not in self.test_files:
            self.test_files.append(path)

    def depends_on(self, path: str) -> bool:
        return any(dep.path == path for dep in self.dependencies)


class RepositoryIndex(BaseModel):
    """Flat set of every file path known to exist in the repository.

    Attributes:
        paths: Repository-relative POSIX paths.
        complete: False when the traversal that produced the index was cut
            short by errors, a timeout or cancellation.
    """

    model_config = ConfigDict(frozen=True)

    paths: FrozenSet[str] = frozenset()
    complete: bool = True

    def __contains__(self, path: object) -> bool:
        return path in self.paths

    def sorted_paths(self) -> List[str]:
        return sorted(self.paths)

    def __len__(self) -> int:
        return len(self.paths)


class ChangedFile(BaseModel):
    """A file listed in the pull request diff."""

    path: str
    status: str = "modified"
    patch: str = ""


class DirectoryEntry(BaseModel):
    """One entry of a remote directory listing."""

    path: str
    kind: EntryKind


class PRMetadata(BaseModel):
    """Pull request metadata needed to fetch files and post replies."""

    number: int
    title: str
    description: str = ""
    author: str
    base_branch: str
    head_branch: str
    head_commit_sha: str
    repo_url: str
    is_draft: bool = False


class RunContext(BaseModel):
    """Per-run analysis state, owned by a single orchestrator call.

    Attributes:
        files: FileRecords keyed by path.
        index: Repository index built at the start of the run.
    """

    files: Dict[str, FileRecord] = Field(default_factory=dict)
    index: RepositoryIndex = Field(default_factory=RepositoryIndex)

    def get_file(self, path: str) -> Optional[FileRecord]:
        return self.files.get(path)

    def known_paths(self) -> FrozenSet[str]:
        """Union of the indexed paths and the changed file paths."""
        return self.index.paths | frozenset(self.files)

    def tests_to_modify(self) -> List[str]:
        """Related tests of every non-test file, de-duplicated."""
        tests: List[str] = []
        for record in self.files.values():
            if record.is_test:
                continue
            for test_path in record.test_files:
                if test_path not in tests:
                    tests.append(test_path)
        return tests

    def files_without_tests(self) -> List[FileRecord]:
        return [r for r in self.files.values() if not r.is_test and not r.test_files]
