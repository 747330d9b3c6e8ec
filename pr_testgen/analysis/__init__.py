"""Cross-file dependency and related-test analysis of pull requests."""

from pr_testgen.analysis.files_info import analyze_pull_request
from pr_testgen.analysis.graph import build_dependency_graph
from pr_testgen.analysis.path_filter import PathFilter
from pr_testgen.analysis.repo_index import build_repository_index
from pr_testgen.analysis.resolver import PathResolver
from pr_testgen.analysis.test_finder import associate_tests
from pr_testgen.models import is_test_file

__all__ = [
    "PathFilter",
    "PathResolver",
    "analyze_pull_request",
    "associate_tests",
    "build_dependency_graph",
    "build_repository_index",
    "is_test_file",
]
