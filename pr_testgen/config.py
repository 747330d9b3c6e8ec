"""Application settings loaded from the environment and an optional .env file."""

from typing import List, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # GitHub
    GITHUB_TOKEN: Optional[str] = None
    PR_TESTGEN_GITHUB_TOKENS: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"

    # LLM Providers (Optional to allow fallback/selection)
    ANTHROPIC_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None

    PR_TESTGEN_LLM_PROVIDER: str = "anthropic"
    PR_TESTGEN_MODEL_NAME: str = "claude-sonnet-4-5"
    PR_TESTGEN_MAX_TOKENS: int = 4096

    # Analysis
    PR_TESTGEN_PATH_FILTERS: str = ""
    PR_TESTGEN_MAX_FILES: int = 0
    PR_TESTGEN_GITHUB_CONCURRENCY: int = 6
    PR_TESTGEN_INDEX_TIMEOUT: Optional[float] = 120.0

    # App Config
    PR_TESTGEN_BOT_NAME: str = "Test Generator Bot"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    @model_validator(mode="after")
    def _require_github_token(self) -> "Settings":
        if not self.get_github_tokens():
            raise ValueError(
                "Set GITHUB_TOKEN or PR_TESTGEN_GITHUB_TOKENS to access the GitHub API"
            )
        return self

    def get_github_tokens(self) -> List[str]:
        """Return configured GitHub tokens in order of precedence.

        Tokens from PR_TESTGEN_GITHUB_TOKENS (comma separated) come first,
        followed by GITHUB_TOKEN unless it is already listed.
        """
        tokens: List[str] = []
        if self.PR_TESTGEN_GITHUB_TOKENS:
            for token in self.PR_TESTGEN_GITHUB_TOKENS.split(","):
                token = token.strip()
                if token and token not in tokens:
                    tokens.append(token)
        if self.GITHUB_TOKEN and self.GITHUB_TOKEN not in tokens:
            tokens.append(self.GITHUB_TOKEN)
        return tokens

    def get_default_github_token(self) -> str:
        return self.get_github_tokens()[0]

    def get_path_filter_rules(self) -> List[str]:
        """Split PR_TESTGEN_PATH_FILTERS on newlines and commas."""
        rules = []
        for line in self.PR_TESTGEN_PATH_FILTERS.replace(",", "\n").splitlines():
            line = line.strip()
            if line:
                rules.append(line)
        return rules


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process settings, loading them on first use.

    Loading is deferred so that importing the package does not require a
    GitHub token to be configured.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
