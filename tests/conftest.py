"""Shared test fixtures for the pr-testgen test suite."""

import asyncio
import posixpath
from typing import Dict, Iterable, List, Optional

import pytest

import pr_testgen.agent.nodes as nodes
import pr_testgen.config as config
from pr_testgen.config import Settings
from pr_testgen.models import (
    ChangedFile,
    DirectoryEntry,
    EntryKind,
    FileRecord,
    PRMetadata,
    RepositoryIndex,
    RunContext,
)


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Install settings that do not depend on the developer's environment."""
    for name in ("GITHUB_TOKEN", "PR_TESTGEN_GITHUB_TOKENS", "PR_TESTGEN_PATH_FILTERS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(GITHUB_TOKEN="test-token", _env_file=None)
    monkeypatch.setattr(config, "_settings", settings)
    monkeypatch.setattr(nodes, "_llm_instance", None)
    return settings


class FakeRepository:
    """In-memory repository serving the analysis engine's remote interfaces.

    Args:
        files: Every file of the repository, path to content.
        changed: Paths changed by the pull request. Each gets a small patch.
        failing_directories: Directories whose listing raises.
        failing_content: Paths whose content fetch raises.
        fail_listing_changes: Make list_changed_files raise.
        listing_delay: Seconds each directory listing sleeps.
        listing_limit: Maximum entries returned for one directory, like the
            GitHub contents API. None lists everything.
    """

    def __init__(
        self,
        files: Dict[str, str],
        changed: Iterable[str] = (),
        failing_directories: Iterable[str] = (),
        failing_content: Iterable[str] = (),
        fail_listing_changes: bool = False,
        listing_delay: float = 0.0,
        listing_limit: Optional[int] = None,
    ):
        self.files = dict(files)
        self.changed = [
            ChangedFile(path=p, status="modified", patch=f"@@ -1 +1 @@\n+change in {p}")
            for p in changed
        ]
        self.failing_directories = set(failing_directories)
        self.failing_content = set(failing_content)
        self.fail_listing_changes = fail_listing_changes
        self.listing_delay = listing_delay
        self.listing_limit = listing_limit
        self.listed: List[str] = []

    async def list_changed_files(self) -> List[ChangedFile]:
        if self.fail_listing_changes:
            raise RuntimeError("GitHub is unavailable")
        return list(self.changed)

    async def get_file_diff(self, path: str) -> str:
        for changed in self.changed:
            if changed.path == path:
                return changed.patch
        return ""

    async def get_file_content(self, path: str, ref: str) -> Optional[str]:
        if path in self.failing_content:
            raise RuntimeError(f"cannot read {path}")
        return self.files.get(path)

    async def list_directory(self, path: str, ref: str) -> List[DirectoryEntry]:
        self.listed.append(path)
        if self.listing_delay:
            await asyncio.sleep(self.listing_delay)
        if path in self.failing_directories:
            raise RuntimeError(f"cannot list {path or '/'}")

        prefix = f"{path}/" if path else ""
        entries: Dict[str, EntryKind] = {}
        for file_path in self.files:
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            head = rest.split("/", 1)[0]
            child = posixpath.join(path, head) if path else head
            entries[child] = EntryKind.DIR if "/" in rest else EntryKind.FILE
        listing = [DirectoryEntry(path=p, kind=k) for p, k in sorted(entries.items())]
        if self.listing_limit is not None:
            listing = listing[:self.listing_limit]
        return listing


@pytest.fixture
def fake_repository_factory():
    """Build FakeRepository instances."""
    return FakeRepository


@pytest.fixture
def sample_pr_metadata() -> PRMetadata:
    """Create a sample PRMetadata for testing."""
    return PRMetadata(
        number=42,
        title="feat: add discount calculation",
        description="Adds percentage discounts to the cart.",
        author="testuser",
        base_branch="main",
        head_branch="feature/discounts",
        head_commit_sha="abc123def456",
        repo_url="https://github.com/owner/repo",
        is_draft=False,
    )


@pytest.fixture
def sample_run_context() -> RunContext:
    """A small analyzed pull request: one source file with a test, one without."""
    cart = FileRecord.create(
        "src/cart.ts",
        diff_text="@@ -1,3 +1,6 @@\n+export function discount() {}",
        content="import { round } from './math';\nexport function discount() {}\n",
    )
    cart.add_test_file("src/cart.test.ts")
    math = FileRecord.create(
        "src/math.ts",
        diff_text="@@ -1 +1,2 @@\n+export const round = Math.round;",
        content="export const round = Math.round;\n",
    )
    cart_test = FileRecord.create(
        "src/cart.test.ts",
        diff_text="@@ -1 +1,3 @@\n+it('discounts', () => {});",
        content="import { discount } from './cart';\nit('discounts', () => {});\n",
    )
    return RunContext(
        files={r.path: r for r in (cart, math, cart_test)},
        index=RepositoryIndex(paths=frozenset({"src/cart.ts", "src/math.ts", "src/cart.test.ts"})),
    )
