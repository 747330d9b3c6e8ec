"""Tests for comment command parsing and file validation."""

import pytest

from pr_testgen.commands import CommandAction, parse_user_command, validate_requested_file
from pr_testgen.models import FileRecord, RunContext


class TestParseUserCommand:
    """Tests for parse_user_command."""

    @pytest.mark.parametrize("body,action,filename", [
        ("generate tests src/api.ts", CommandAction.GENERATE_TESTS, "src/api.ts"),
        ("Generate Tests `src/api.ts`", CommandAction.GENERATE_TESTS, "src/api.ts"),
        ("all generate tests", CommandAction.ALL_GENERATE_TESTS, None),
        ("explain tests api.ts", CommandAction.EXPLAIN_TESTS, "api.ts"),
        ("all explain tests", CommandAction.ALL_EXPLAIN_TESTS, None),
        ("sec check src/auth.ts", CommandAction.SEC_CHECK, "src/auth.ts"),
        ("summarize tests", CommandAction.SUMMARIZE_TESTS, None),
        ("summarize tests src/api.ts", CommandAction.SUMMARIZE_TESTS, "src/api.ts"),
    ])
    def test_commands(self, body, action, filename):
        command = parse_user_command(body)

        assert command.action == action
        assert command.filename == filename
        assert command.custom_prompt is None

    def test_prompt_suffix(self):
        command = parse_user_command("generate tests src/api.ts --prompt use vitest, not jest")

        assert command.filename == "src/api.ts"
        assert command.custom_prompt == "use vitest, not jest"

    def test_custom_prompt(self):
        command = parse_user_command("custom prompt src/api.ts --prompt list edge cases\nfor retries")

        assert command.action == CommandAction.CUSTOM_PROMPT
        assert command.filename == "src/api.ts"
        assert command.custom_prompt == "list edge cases\nfor retries"

    def test_all_custom_prompt(self):
        command = parse_user_command("  all custom prompt --prompt find flaky tests  ")

        assert command.action == CommandAction.ALL_CUSTOM_PROMPT
        assert command.filename is None
        assert command.custom_prompt == "find flaky tests"

    def test_summarize_with_prompt_only(self):
        command = parse_user_command("summarize tests --prompt focus on retries")

        assert command.action == CommandAction.SUMMARIZE_TESTS
        assert command.filename is None
        assert command.custom_prompt == "focus on retries"

    @pytest.mark.parametrize("body", [
        "",
        "LGTM!",
        "generate tests",
        "explain tests",
        "custom prompt src/api.ts",
        "generate tests --prompt cover errors",
        "please generate tests src/api.ts",
    ])
    def test_not_a_command(self, body):
        assert parse_user_command(body) is None


class TestValidateRequestedFile:
    """Tests for validate_requested_file."""

    @pytest.fixture
    def context(self) -> RunContext:
        paths = ["src/api.ts", "src/auth/index.ts", "lib/index.ts"]
        return RunContext(files={p: FileRecord.create(p, content="") for p in paths})

    def test_no_file_is_valid(self, context):
        assert validate_requested_file(None, context).valid

    def test_exact_path(self, context):
        result = validate_requested_file("./src/api.ts", context)

        assert result.valid
        assert result.path == "src/api.ts"

    def test_unique_base_name(self, context):
        result = validate_requested_file("api.ts", context)

        assert result.path == "src/api.ts"

    def test_unique_suffix(self, context):
        result = validate_requested_file("auth/index.ts", context)

        assert result.path == "src/auth/index.ts"

    def test_ambiguous_name(self, context):
        result = validate_requested_file("index.ts", context)

        assert not result.valid
        assert "ambiguous" in result.error
        assert "`lib/index.ts`" in result.error

    def test_unknown_file(self, context):
        result = validate_requested_file("src/other.ts", context)

        assert not result.valid
        assert "not one of the files changed" in result.error
