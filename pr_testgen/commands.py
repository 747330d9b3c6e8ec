"""Parsing of user commands posted as pull request comments.

Supported commands (case-insensitive, optional ``--prompt <text>`` suffix)::

    summarize tests [file]
    generate tests <file>      all generate tests
    explain tests <file>       all explain tests
    sec check <file>
    custom prompt <file> --prompt <text>
    all custom prompt --prompt <text>
"""

import posixpath
import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from pr_testgen.models import RunContext


class CommandAction(str, Enum):
    SUMMARIZE_TESTS = "summarize tests"
    GENERATE_TESTS = "generate tests"
    ALL_GENERATE_TESTS = "all generate tests"
    EXPLAIN_TESTS = "explain tests"
    ALL_EXPLAIN_TESTS = "all explain tests"
    SEC_CHECK = "sec check"
    CUSTOM_PROMPT = "custom prompt"
    ALL_CUSTOM_PROMPT = "all custom prompt"


class UserCommand(BaseModel):
    action: CommandAction
    filename: Optional[str] = None
    custom_prompt: Optional[str] = None


class FileValidation(BaseModel):
    valid: bool
    path: Optional[str] = None
    error: str = ""


_PROMPT = r"(?:\s+--prompt\s+(?P<prompt>.+))?"
# A file name never starts with the --prompt flag
_FILE = r"(?!--prompt\b)(?P<file>.+?)"

# Ordered most specific first
_PATTERNS = (
    (CommandAction.SUMMARIZE_TESTS, re.compile(r"^summarize\s+tests(?:\s+" + _FILE + ")?" + _PROMPT + "$", re.I | re.S)),
    (CommandAction.ALL_GENERATE_TESTS, re.compile(r"^all\s+generate\s+tests" + _PROMPT + "$", re.I | re.S)),
    (CommandAction.GENERATE_TESTS, re.compile(r"^generate\s+tests\s+" + _FILE + _PROMPT + "$", re.I | re.S)),
    (CommandAction.ALL_EXPLAIN_TESTS, re.compile(r"^all\s+explain\s+tests" + _PROMPT + "$", re.I | re.S)),
    (CommandAction.EXPLAIN_TESTS, re.compile(r"^explain\s+tests\s+" + _FILE + _PROMPT + "$", re.I | re.S)),
    (CommandAction.SEC_CHECK, re.compile(r"^sec\s+check\s+" + _FILE + _PROMPT + "$", re.I | re.S)),
    (CommandAction.ALL_CUSTOM_PROMPT, re.compile(r"^all\s+custom\s+prompt\s+--prompt\s+(?P<prompt>.+)$", re.I | re.S)),
    (CommandAction.CUSTOM_PROMPT, re.compile(r"^custom\s+prompt\s+" + _FILE + r"\s+--prompt\s+(?P<prompt>.+)$", re.I | re.S)),
)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().replace("`", "")
    return value or None


def parse_user_command(comment_body: str) -> Optional[UserCommand]:
    """Parse a comment body into a command.

    Args:
        comment_body: Raw comment text.

    Returns:
        The command, or None if the comment is not a command.
    """
    text = comment_body.strip()
    for action, pattern in _PATTERNS:
        match = pattern.match(text)
        if not match:
            continue
        groups = match.groupdict()
        filename = _clean(groups.get("file"))
        custom_prompt = groups.get("prompt")
        custom_prompt = custom_prompt.strip() if custom_prompt else None
        if "file" in pattern.groupindex and filename is None and action is not CommandAction.SUMMARIZE_TESTS:
            continue
        return UserCommand(action=action, filename=filename, custom_prompt=custom_prompt)
    return None


def validate_requested_file(filename: Optional[str], context: RunContext) -> FileValidation:
    """Match a user-supplied file name against the analyzed files.

    Accepts an exact path or a base name that identifies exactly one file.
    Commands without a file name are always valid.
    """
    if not filename:
        return FileValidation(valid=True)

    if filename.startswith("./"):
        filename = filename[2:]
    if filename in context.files:
        return FileValidation(valid=True, path=filename)

    matches: List[str] = [
        path for path in context.files
        if posixpath.basename(path) == filename or path.endswith("/" + filename)
    ]
    if len(matches) == 1:
        return FileValidation(valid=True, path=matches[0])
    if matches:
        return FileValidation(
            valid=False,
            error=f"`{filename}` is ambiguous, use one of: " + ", ".join(f"`{m}`" for m in sorted(matches)),
        )
    return FileValidation(
        valid=False,
        error=f"`{filename}` is not one of the files changed in this pull request.",
    )
