"""Tests for dependency graph construction."""

from pr_testgen.analysis.graph import build_dependency_graph, resolve_dependencies
from pr_testgen.analysis.resolver import PathResolver
from pr_testgen.models import DependencyEdge, FileRecord, RelationKind, RepositoryIndex, RunContext


def _context(files, indexed=()):
    records = {path: FileRecord.create(path, content=content) for path, content in files.items()}
    return RunContext(files=records, index=RepositoryIndex(paths=frozenset(indexed) | frozenset(files)))


class TestResolveDependencies:
    def test_skips_file_without_content(self):
        record = FileRecord.create("src/deleted.ts", content=None)

        resolve_dependencies(record, PathResolver(RepositoryIndex(paths=frozenset({"src/a.ts"}))))

        assert record.dependencies == []

    def test_drops_external_and_self_references(self):
        record = FileRecord.create(
            "src/a.ts", content="import React from 'react';\nimport { a } from './a';\n"
        )

        resolve_dependencies(record, PathResolver(RepositoryIndex(paths=frozenset({"src/a.ts"}))))

        assert record.dependencies == []

    def test_first_relation_kind_wins(self):
        record = FileRecord.create(
            "test/api.test.ts", content="import { load } from '../src/api';\njest.mock('../src/api');\n"
        )

        resolve_dependencies(record, PathResolver(RepositoryIndex(paths=frozenset({"src/api.ts"}))))

        assert record.dependencies == [
            DependencyEdge(path="src/api.ts", type=RelationKind.IMPORT, raw_import="../src/api")
        ]


class TestBuildDependencyGraph:
    """Tests for build_dependency_graph."""

    def test_dependents_mirror_dependencies(self):
        context = _context({
            "src/app.ts": "import { format } from './format';\nimport { api } from './api';\n",
            "src/format.ts": "export const format = (x) => x;\n",
        }, indexed={"src/api.ts"})

        build_dependency_graph(context)

        app = context.get_file("src/app.ts")
        fmt = context.get_file("src/format.ts")
        assert [d.path for d in app.dependencies] == ["src/format.ts", "src/api.ts"]
        assert fmt.dependents == [DependencyEdge(path="src/app.ts", type=RelationKind.IMPORT)]

    def test_edges_are_closed_over_known_records(self):
        """Every dependent edge has a matching dependency edge and vice versa."""
        context = _context({
            "src/a.ts": "import './b';\nconst c = require('./c');\n",
            "src/b.ts": "import { c } from './c';\n",
            "src/c.ts": "import { a } from './a';\n",
        })

        build_dependency_graph(context)

        for path, record in context.files.items():
            for dep in record.dependencies:
                target = context.get_file(dep.path)
                assert any(d.path == path and d.type == dep.type for d in target.dependents)
            for dependent in record.dependents:
                source = context.get_file(dependent.path)
                assert source.depends_on(path)

    def test_unchanged_targets_get_no_record(self):
        context = _context({"src/app.ts": "import './lib';\n"}, indexed={"src/lib.ts"})

        build_dependency_graph(context)

        assert context.get_file("src/app.ts").depends_on("src/lib.ts")
        assert context.get_file("src/lib.ts") is None

    def test_returns_the_resolver(self):
        context = _context({"src/app.ts": ""}, indexed={"src/lib.ts"})

        resolver = build_dependency_graph(context)

        assert resolver.exists("src/lib.ts")
        assert resolver.exists("src/app.ts")
