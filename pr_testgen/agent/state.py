"""State definition for the LangGraph workflow.

This module defines the BotState model that flows through the graph,
accumulating data as each node processes it.
"""

from typing import Optional

from pydantic import BaseModel, Field

from pr_testgen.commands import UserCommand
from pr_testgen.models import PRMetadata, RunContext


class BotState(BaseModel):
    """State container for the command handling workflow.

    The workflow progresses as:
    1. Input: repository coordinates and the triggering comment body
    2. analyze_changes: populates metadata, analysis and command
    3. draft_response or overview: populates response
    4. post_response: posts the response (skipped on dry runs)

    Attributes:
        owner: Repository owner.
        repo: Repository name.
        pr_number: Pull request number.
        comment_body: Text of the comment that triggered the run ("" when
            the run was triggered by the pull request itself).
        dry_run: Whether to skip posting the response.
        metadata: Pull request metadata.
        analysis: Dependency and test analysis of the changed files.
        command: Parsed user command, if the comment contains one.
        target_path: Changed file the command applies to.
        validation_error: Why the command cannot be carried out.
        response: Markdown reply (output).
        comment_url: URL of the posted reply.
    """

    # Input
    owner: str
    repo: str
    pr_number: int
    comment_body: str = ""
    dry_run: bool = False

    # Analysis
    metadata: Optional[PRMetadata] = None
    analysis: Optional[RunContext] = None
    command: Optional[UserCommand] = None
    target_path: Optional[str] = None
    validation_error: str = Field(
        default="", description="Why the command cannot be carried out"
    )

    # Output
    response: str = ""
    comment_url: str = ""
