"""Tests for related-test discovery."""

import pytest

from pr_testgen.analysis.graph import build_dependency_graph
from pr_testgen.analysis.test_finder import (
    associate_tests,
    candidate_test_names,
    candidate_test_paths,
    find_tests_by_naming,
)
from pr_testgen.models import FileRecord, RepositoryIndex, RunContext, is_test_file


@pytest.mark.parametrize("path", [
    "src/a/foo.test.ts",
    "src/a/foo.spec.jsx",
    "src/foo_test.js",
    "src/main/java/com/shop/CartTest.java",
    "src/test/java/com/shop/CartTests.java",
    "pkg/tests/test_views.py",
    "pkg/views_test.py",
    "internal/db_test.go",
    "spec/models/user_spec.rb",
    "src/__tests__/widget.ts",
])
def test_is_test_file(path):
    assert is_test_file(path)


@pytest.mark.parametrize("path", [
    "src/a/foo.ts",
    "src/testing.ts",
    "src/contest.py",
    "src/main/java/com/shop/Cart.java",
    "docs/latest.md",
])
def test_is_not_test_file(path):
    assert not is_test_file(path)


class TestCandidates:
    def test_names_for_typescript(self):
        names = candidate_test_names("foo.ts")

        assert names[:4] == ["foo.test.ts", "foo.spec.ts", "foo_test.ts", "test_foo.ts"]

    def test_names_for_java(self):
        names = candidate_test_names("Cart.java")

        assert "CartTest.java" in names
        assert "CartTests.java" in names

    def test_paths_cover_test_directories_and_ancestors(self):
        candidates = candidate_test_paths("src/a/foo.ts")

        assert "src/a/foo.test.ts" in candidates
        assert "src/a/__tests__/foo.test.ts" in candidates
        assert "src/tests/foo.spec.ts" in candidates
        assert "test/foo.test.ts" in candidates
        assert "src/a/foo.ts" not in candidates
        assert len(candidates) == len(set(candidates))

    def test_maven_mirror(self):
        candidates = candidate_test_paths("core/src/main/java/com/shop/Cart.java")

        assert "core/src/test/java/com/shop/CartTest.java" in candidates


class TestFindTests:
    def test_naming_round_trip(self):
        record = FileRecord.create("src/a/foo.ts", content="")

        assert find_tests_by_naming(record, {"src/a/foo.test.ts", "src/a/bar.test.ts"}) == [
            "src/a/foo.test.ts"
        ]

    def test_import_based_detection(self):
        """A test outside the naming conventions is found through its imports."""
        context = RunContext(
            files={
                "src/math.ts": FileRecord.create("src/math.ts", content="export const add = (a, b) => a + b;\n"),
                "test/integration.test.ts": FileRecord.create(
                    "test/integration.test.ts", content="import { add } from '../src/math';\n"
                ),
            },
        )
        build_dependency_graph(context)

        associate_tests(context)

        assert context.get_file("src/math.ts").test_files == ["test/integration.test.ts"]

    def test_indexed_test_not_in_pull_request(self):
        context = RunContext(
            files={"src/cart.ts": FileRecord.create("src/cart.ts", content="")},
            index=RepositoryIndex(paths=frozenset({"src/cart.ts", "src/__tests__/cart.test.ts"})),
        )

        associate_tests(context)

        assert context.get_file("src/cart.ts").test_files == ["src/__tests__/cart.test.ts"]

    def test_test_files_get_no_tests(self):
        context = RunContext(
            files={
                "src/foo.ts": FileRecord.create("src/foo.ts", content=""),
                "src/foo.test.ts": FileRecord.create("src/foo.test.ts", content="import './foo';\n"),
            },
        )
        build_dependency_graph(context)

        associate_tests(context)

        assert context.get_file("src/foo.ts").test_files == ["src/foo.test.ts"]
        assert context.get_file("src/foo.test.ts").test_files == []

    def test_both_signals_are_deduplicated(self):
        context = RunContext(
            files={
                "lib/parser.py": FileRecord.create("lib/parser.py", content=""),
                "lib/test_parser.py": FileRecord.create("lib/test_parser.py", content="from .parser import parse\n"),
            },
        )
        build_dependency_graph(context)

        associate_tests(context)

        assert context.get_file("lib/parser.py").test_files == ["lib/test_parser.py"]


def test_tests_to_modify(sample_run_context):
    assert sample_run_context.tests_to_modify() == ["src/cart.test.ts"]
    assert [r.path for r in sample_run_context.files_without_tests()] == ["src/math.ts"]
