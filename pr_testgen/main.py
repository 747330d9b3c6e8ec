"""Command line entry point.

Runs the bot for one pull request event. Arguments default to the GitHub
Actions environment (``GITHUB_REPOSITORY`` and the event payload at
``GITHUB_EVENT_PATH``), so the action only needs to invoke ``pr-testgen``.
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

from pr_testgen import __version__
from pr_testgen.config import get_settings
from pr_testgen.exceptions import AnalysisError
from pr_testgen.logging import configure_logging, get_logger

logger = get_logger(__name__)


def read_event(path: str) -> Tuple[Optional[int], str, bool]:
    """Extract the pull request number and comment body from an event payload.

    Args:
        path: Path of the JSON event payload.

    Returns:
        Tuple of (pr_number, comment_body, from_bot). pr_number is None when
        the event does not concern a pull request.
    """
    with open(path, encoding="utf-8") as fh:
        payload: Dict[str, Any] = json.load(fh)

    comment = payload.get("comment") or {}
    body = comment.get("body") or ""
    from_bot = (comment.get("user") or {}).get("type") == "Bot"

    if "pull_request" in payload:
        return payload["pull_request"].get("number"), body, from_bot

    issue = payload.get("issue") or {}
    # Issue comments reach pull requests through the issues API
    if issue.get("pull_request"):
        return issue.get("number"), body, from_bot

    return payload.get("number"), body, from_bot


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pr-testgen",
        description="Find the tests affected by a pull request and answer test commands.",
    )
    parser.add_argument(
        "--repo",
        default=os.environ.get("GITHUB_REPOSITORY", ""),
        help="Repository as owner/name (default: $GITHUB_REPOSITORY).",
    )
    parser.add_argument("--pr", type=int, default=None, help="Pull request number.")
    parser.add_argument(
        "--comment",
        default=None,
        help="Command text, e.g. 'generate tests src/api.ts'. Read from the event when omitted.",
    )
    parser.add_argument(
        "--event-path",
        default=os.environ.get("GITHUB_EVENT_PATH"),
        help="GitHub event payload (default: $GITHUB_EVENT_PATH).",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the reply instead of posting it.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    if "/" not in args.repo:
        logger.error("invalid_repository", repo=args.repo)
        return 2
    owner, repo = args.repo.split("/", 1)

    pr_number = args.pr
    comment_body = args.comment or ""
    if args.event_path and (pr_number is None or args.comment is None):
        event_pr, event_body, from_bot = read_event(args.event_path)
        if from_bot:
            logger.info("event_ignored", reason="comment posted by a bot")
            return 0
        pr_number = pr_number if pr_number is not None else event_pr
        if args.comment is None:
            comment_body = event_body

    if pr_number is None:
        logger.error("missing_pull_request_number")
        return 2

    from pr_testgen.agent.graph import build_graph

    graph = build_graph()
    try:
        result = asyncio.run(graph.ainvoke({
            "owner": owner,
            "repo": repo,
            "pr_number": pr_number,
            "comment_body": comment_body,
            "dry_run": args.dry_run,
        }))
    except AnalysisError as e:
        logger.error("analysis_failed", error=str(e))
        return 1

    if args.dry_run and result.get("response"):
        print(result["response"])
    elif result.get("comment_url"):
        logger.info("reply_posted", url=result["comment_url"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
