"""LangGraph workflow definition for the test generation bot.

This module constructs the directed graph that takes a pull request event
from analysis to a posted reply.
"""

from langgraph.graph import StateGraph, END
from langgraph.graph.state import CompiledStateGraph

from pr_testgen.agent.state import BotState
from pr_testgen.agent.nodes import (
    analyze_changes,
    draft_response,
    overview,
    post_response,
)
from pr_testgen.logging import get_logger

logger = get_logger(__name__)


def _route_after_analysis(state: BotState) -> str:
    """Choose how to answer once the pull request is analyzed.

    Args:
        state: Current workflow state.

    Returns:
        'draft' for a valid command, 'overview' for a pull request event or
        a command that cannot be carried out, 'ignore' for a comment that is
        not a command.
    """
    if state.command is None:
        if state.comment_body.strip():
            logger.info("comment_ignored", reason="not a command")
            return "ignore"
        return "overview"
    if state.validation_error:
        return "overview"
    return "draft"


def _should_post(state: BotState) -> str:
    """Determine whether to post the reply or stop.

    Args:
        state: Current workflow state.

    Returns:
        'post' to publish the reply, 'end' on dry runs or empty replies.
    """
    if state.dry_run:
        logger.info("post_skipped", reason="dry run")
        return "end"
    if not state.response:
        return "end"
    return "post"


def build_graph() -> CompiledStateGraph:
    """Build and compile the LangGraph workflow for command handling.

    The workflow consists of four nodes with conditional routing:
    1. analyze_changes: Indexes the repository and analyzes changed files
    2. draft_response: Answers a user command with the LLM
    3. overview: Lists related and missing tests without the LLM
    4. post_response: Posts the reply on the pull request

    Returns:
        A compiled LangGraph that can be invoked with a BotState.

    Example:
        >>> graph = build_graph()
        >>> result = await graph.ainvoke({
        ...     "owner": "owner", "repo": "repo", "pr_number": 1,
        ...     "comment_body": "generate tests src/api.ts",
        ... })
        >>> reply = result["response"]
    """
    workflow = StateGraph(BotState)

    # Add Nodes
    workflow.add_node("analyze_changes", analyze_changes)
    workflow.add_node("draft_response", draft_response)
    workflow.add_node("overview", overview)
    workflow.add_node("post_response", post_response)

    # Define Edges
    workflow.set_entry_point("analyze_changes")
    workflow.add_conditional_edges(
        "analyze_changes",
        _route_after_analysis,
        {
            "draft": "draft_response",
            "overview": "overview",
            "ignore": END,
        }
    )

    for node in ("draft_response", "overview"):
        workflow.add_conditional_edges(
            node,
            _should_post,
            {
                "post": "post_response",
                "end": END,
            }
        )
    workflow.add_edge("post_response", END)

    return workflow.compile()
