"""Tests for the config module."""

import pytest

import pr_testgen.config as config
from pr_testgen.config import Settings


class TestGetGithubTokens:
    """Tests for Settings.get_github_tokens method."""

    def test_get_github_tokens_single_token(self):
        """Returns single GITHUB_TOKEN when no multi-token configured."""
        settings = Settings(GITHUB_TOKEN="single-token", _env_file=None)

        assert settings.get_github_tokens() == ["single-token"]

    def test_get_github_tokens_multi_token_precedence(self):
        """PR_TESTGEN_GITHUB_TOKENS takes precedence over GITHUB_TOKEN."""
        settings = Settings(
            GITHUB_TOKEN="fallback-token",
            PR_TESTGEN_GITHUB_TOKENS="token1,token2,token3",
            _env_file=None,
        )

        # Multi-tokens should come first, fallback token appended
        assert settings.get_github_tokens() == ["token1", "token2", "token3", "fallback-token"]

    def test_get_github_tokens_strips_whitespace(self):
        """Whitespace is stripped from comma-separated tokens."""
        settings = Settings(PR_TESTGEN_GITHUB_TOKENS=" token1 , token2 , token3 ", _env_file=None)

        assert settings.get_github_tokens() == ["token1", "token2", "token3"]

    def test_get_github_tokens_no_duplicates(self):
        """GITHUB_TOKEN is not duplicated if already in PR_TESTGEN_GITHUB_TOKENS."""
        settings = Settings(
            GITHUB_TOKEN="token1",
            PR_TESTGEN_GITHUB_TOKENS="token1,token2,token1",
            _env_file=None,
        )

        assert settings.get_github_tokens() == ["token1", "token2"]

    def test_get_github_tokens_skips_empty(self):
        """Empty tokens from extra commas are skipped."""
        settings = Settings(PR_TESTGEN_GITHUB_TOKENS="token1,,token2,", _env_file=None)

        assert settings.get_github_tokens() == ["token1", "token2"]


class TestGetDefaultGithubToken:
    """Tests for Settings.get_default_github_token method."""

    def test_returns_first(self):
        settings = Settings(PR_TESTGEN_GITHUB_TOKENS="first-token,second-token", _env_file=None)

        assert settings.get_default_github_token() == "first-token"

    def test_uses_github_token_fallback(self):
        settings = Settings(GITHUB_TOKEN="my-github-token", _env_file=None)

        assert settings.get_default_github_token() == "my-github-token"


class TestSettingsValidation:
    """Tests for Settings validation."""

    def test_requires_at_least_one_token(self):
        """Raises error when no GitHub tokens are configured."""
        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        assert "GITHUB_TOKEN" in str(exc_info.value)

    def test_defaults(self):
        settings = Settings(GITHUB_TOKEN="t", _env_file=None)

        assert settings.PR_TESTGEN_LLM_PROVIDER == "anthropic"
        assert settings.PR_TESTGEN_MAX_FILES == 0
        assert settings.PR_TESTGEN_GITHUB_CONCURRENCY == 6
        assert settings.GITHUB_API_URL == "https://api.github.com"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        monkeypatch.setenv("PR_TESTGEN_MAX_FILES", "25")

        settings = Settings(_env_file=None)

        assert settings.get_default_github_token() == "env-token"
        assert settings.PR_TESTGEN_MAX_FILES == 25


class TestPathFilterRules:
    """Tests for Settings.get_path_filter_rules."""

    def test_empty_by_default(self):
        settings = Settings(GITHUB_TOKEN="t", _env_file=None)

        assert settings.get_path_filter_rules() == []

    def test_splits_on_commas_and_newlines(self):
        settings = Settings(
            GITHUB_TOKEN="t",
            PR_TESTGEN_PATH_FILTERS="src/**, !**/*.min.js\n\n  lib/** ",
            _env_file=None,
        )

        assert settings.get_path_filter_rules() == ["src/**", "!**/*.min.js", "lib/**"]


def test_get_settings_is_cached(monkeypatch):
    """get_settings loads once and reuses the instance."""
    monkeypatch.setattr(config, "_settings", None)
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")

    first = config.get_settings()

    assert config.get_settings() is first
    assert first.GITHUB_TOKEN == "env-token"
