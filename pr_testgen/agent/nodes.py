"""LangGraph node functions for the test generation bot.

This module contains the node functions that make up the LangGraph workflow,
along with helper functions for LLM initialization and prompt context
building.
"""

from typing import Any, Dict, List

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from pr_testgen.agent.prompts import COMMAND_HELP, SYSTEM_PROMPTS
from pr_testgen.agent.state import BotState
from pr_testgen.analysis.files_info import analyze_pull_request
from pr_testgen.analysis.path_filter import PathFilter
from pr_testgen.commands import parse_user_command, validate_requested_file
from pr_testgen.config import get_settings
from pr_testgen.exceptions import AnalysisError
from pr_testgen.github.client import GitHubClient, PullRequestSource
from pr_testgen.logging import get_logger
from pr_testgen.models import FileRecord, RunContext

logger = get_logger(__name__)


def get_llm() -> BaseChatModel:
    """Create and return the configured LLM instance.

    Reads the provider from PR_TESTGEN_LLM_PROVIDER setting and
    initializes the appropriate LangChain chat model.

    Returns:
        A LangChain chat model instance for the configured provider.

    Raises:
        ValueError: If the provider is not supported.
    """
    settings = get_settings()
    provider = settings.PR_TESTGEN_LLM_PROVIDER.lower()

    if provider == "anthropic":
        return ChatAnthropic(
            model_name=settings.PR_TESTGEN_MODEL_NAME,
            api_key=settings.ANTHROPIC_API_KEY,
            max_tokens=settings.PR_TESTGEN_MAX_TOKENS
        )
    elif provider == "openai":
        return ChatOpenAI(
            model_name=settings.PR_TESTGEN_MODEL_NAME,
            api_key=settings.OPENAI_API_KEY,
            max_tokens=settings.PR_TESTGEN_MAX_TOKENS
        )
    elif provider == "google":
        return ChatGoogleGenerativeAI(
            model=settings.PR_TESTGEN_MODEL_NAME,
            google_api_key=settings.GOOGLE_API_KEY,
            max_output_tokens=settings.PR_TESTGEN_MAX_TOKENS
        )
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")


# Lazy LLM initialization - only created when first accessed
_llm_instance: BaseChatModel | None = None


def _get_llm_instance() -> BaseChatModel:
    """Get or create the LLM instance (lazy initialization).

    This avoids creating the LLM at module import time, which allows
    tests to mock the LLM before it's instantiated.
    """
    global _llm_instance
    if _llm_instance is None:
        _llm_instance = get_llm()
    return _llm_instance


def _get_github_client() -> GitHubClient:
    settings = get_settings()
    return GitHubClient(
        token=settings.get_default_github_token(),
        base_url=settings.GITHUB_API_URL,
    )


async def analyze_changes(state: BotState) -> Dict[str, Any]:
    """Analyze the pull request and parse the triggering command.

    First node in the workflow. Builds the repository index, loads the
    changed files, resolves their dependencies and related tests.

    Args:
        state: Workflow state with repository coordinates and comment body.

    Returns:
        Dict with 'metadata', 'analysis', 'command', 'target_path' and
        'validation_error' keys.

    Raises:
        AnalysisError: If the pull request cannot be read at all.
    """
    logger.info("node_started", node="analyze_changes", pr_number=state.pr_number)
    settings = get_settings()
    path_filter = PathFilter(settings.get_path_filter_rules())

    async with _get_github_client() as client:
        try:
            metadata = await client.get_pr_metadata(state.owner, state.repo, state.pr_number)
        except Exception as e:
            raise AnalysisError(f"Unable to read pull request #{state.pr_number}: {e}") from e

        source = PullRequestSource(client, state.owner, state.repo, state.pr_number)
        analysis = await analyze_pull_request(
            source,
            source,
            source,
            metadata.head_commit_sha,
            path_filter=path_filter,
            max_files=settings.PR_TESTGEN_MAX_FILES,
            concurrency=settings.PR_TESTGEN_GITHUB_CONCURRENCY,
            index_timeout=settings.PR_TESTGEN_INDEX_TIMEOUT,
        )

    command = parse_user_command(state.comment_body) if state.comment_body else None
    target_path = None
    validation_error = ""
    if command is not None:
        validation = validate_requested_file(command.filename, analysis)
        target_path = validation.path
        validation_error = validation.error
        logger.info("command_parsed", action=command.action.value, filename=command.filename,
                    valid=validation.valid)

    return {
        "metadata": metadata,
        "analysis": analysis,
        "command": command,
        "target_path": target_path,
        "validation_error": validation_error,
    }


# Maximum characters per diff before truncation
MAX_DIFF_CHARS = 4000
# Maximum characters of file content before truncation
MAX_CONTENT_CHARS = 12000
# Maximum total characters for all file sections combined
MAX_TOTAL_CONTEXT_CHARS = 120000


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"\n... (truncated, {len(text)} chars total)"


def _format_edges(record: FileRecord) -> List[str]:
    lines = []
    for dep in record.dependencies:
        flag = ", low confidence" if dep.low_confidence else ""
        lines.append(f"- depends on {dep.path} ({dep.type.value}{flag})")
    for dependent in record.dependents:
        lines.append(f"- used by {dependent.path} ({dependent.type.value})")
    return lines


def _build_file_section(record: FileRecord) -> str:
    """Format one changed file with its edges, tests, diff and content."""
    parts = [f"### {record.path}" + (" (test file)" if record.is_test else "")]

    edges = _format_edges(record)
    parts.append("Relations:\n" + ("\n".join(edges) if edges else "- none found"))

    if not record.is_test:
        tests = "\n".join(f"- {t}" for t in record.test_files) or "- none found"
        parts.append(f"Related tests:\n{tests}")

    if record.diff_text:
        parts.append(f"```diff\n{_truncate(record.diff_text, MAX_DIFF_CHARS)}\n```")
    else:
        parts.append("[No diff available - binary or large file]")

    if record.content is not None:
        parts.append(f"Current content:\n```\n{_truncate(record.content, MAX_CONTENT_CHARS)}\n```")
    return "\n".join(parts) + "\n"


def _target_records(state: BotState) -> List[FileRecord]:
    """Files the command applies to: the requested file or every source file."""
    analysis = state.analysis or RunContext()
    if state.target_path:
        record = analysis.get_file(state.target_path)
        return [record] if record else []
    return [r for r in analysis.files.values() if not r.is_test]


def _build_existing_tests_context(records: List[FileRecord], analysis: RunContext) -> str:
    """Format the content of the related tests that are part of the PR."""
    parts = []
    seen = set()
    for record in records:
        for test_path in record.test_files:
            if test_path in seen:
                continue
            seen.add(test_path)
            test_record = analysis.get_file(test_path)
            if test_record is not None and test_record.content is not None:
                parts.append(
                    f"--- Test: {test_path} ---\n{_truncate(test_record.content, MAX_CONTENT_CHARS)}\n"
                )
            else:
                parts.append(f"--- Test: {test_path} (exists, not changed in this PR) ---\n")
    return "\n".join(parts) if parts else "No existing tests found."


def _build_context(state: BotState) -> str:
    """Build the human message for the LLM from the analysis."""
    analysis = state.analysis or RunContext()
    records = _target_records(state)

    sections = []
    total_chars = 0
    for record in records:
        section = _build_file_section(record)
        if total_chars + len(section) > MAX_TOTAL_CONTEXT_CHARS:
            remaining = len(records) - len(sections)
            sections.append(f"\n... ({remaining} more files not shown due to size limits)\n")
            break
        sections.append(section)
        total_chars += len(section)

    tests_to_modify = analysis.tests_to_modify()
    title = state.metadata.title if state.metadata else ""
    description = state.metadata.description if state.metadata else ""

    context_str = f"""Title: {title}
Description: {description}

Tests that may need updating:
{chr(10).join(f"- {t}" for t in tests_to_modify) if tests_to_modify else "None found."}

## Files
{chr(10).join(sections) if sections else "No files to analyze."}

## Existing Tests
{_build_existing_tests_context(records, analysis)}
"""
    if state.command is not None and state.command.custom_prompt:
        context_str += f"\n## User Instructions\n{state.command.custom_prompt}\n"
    return context_str


async def draft_response(state: BotState) -> Dict[str, Any]:
    """Answer the user's command with the LLM.

    Args:
        state: Workflow state with the analysis and a valid command.

    Returns:
        Dict with 'response' key containing the Markdown reply.
    """
    action = state.command.action
    logger.info("node_started", node="draft_response", action=action.value,
                target=state.target_path)

    prompt = ChatPromptTemplate.from_messages([
        ("system", SYSTEM_PROMPTS[action]),
        ("human", "{context}")
    ])

    chain = prompt | _get_llm_instance()
    response = await chain.ainvoke({"context": _build_context(state)})

    target = f" for `{state.target_path}`" if state.target_path else ""
    header = f"## {get_settings().PR_TESTGEN_BOT_NAME}: {action.value}{target}\n\n"
    return {"response": header + response.content}


def overview(state: BotState) -> Dict[str, Any]:
    """Report related and missing tests without calling the LLM.

    Used when the run was triggered by the pull request itself or when the
    user's command cannot be carried out.

    Args:
        state: Workflow state with the analysis.

    Returns:
        Dict with 'response' key containing the Markdown reply.
    """
    logger.info("node_started", node="overview")
    analysis = state.analysis or RunContext()

    lines = [f"## {get_settings().PR_TESTGEN_BOT_NAME}", ""]
    if state.validation_error:
        lines += [f"> {state.validation_error}", ""]

    source_files = [r for r in analysis.files.values() if not r.is_test]
    if source_files:
        lines += ["| File | Related tests |", "| --- | --- |"]
        for record in source_files:
            tests = ", ".join(f"`{t}`" for t in record.test_files) or "**none found**"
            lines.append(f"| `{record.path}` | {tests} |")
        lines.append("")
    else:
        lines += ["No source files changed in this pull request.", ""]

    missing = analysis.files_without_tests()
    if missing:
        lines.append(f"{len(missing)} changed file(s) have no related tests.")
        lines.append("")

    if not analysis.index.complete:
        lines += ["_The repository could only be partially indexed; some relations may be missing._", ""]

    lines.append(COMMAND_HELP)
    return {"response": "\n".join(lines)}


async def post_response(state: BotState) -> Dict[str, Any]:
    """Post the reply as a pull request comment.

    Args:
        state: Workflow state with a response.

    Returns:
        Dict with 'comment_url' key.
    """
    logger.info("node_started", node="post_response", pr_number=state.pr_number)
    async with _get_github_client() as client:
        data = await client.post_pr_comment(state.owner, state.repo, state.pr_number, state.response)
    return {"comment_url": data.get("html_url", "")}
