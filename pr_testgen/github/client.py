"""GitHub API client for pull request analysis.

This module provides an asynchronous HTTP client for GitHub's REST API and
an adapter binding it to one pull request, so it can serve as the diff
source, content store and directory lister of the analysis engine.
"""

from typing import Any, Dict, List, Optional

import httpx

from pr_testgen.logging import get_logger
from pr_testgen.models import ChangedFile, DirectoryEntry, EntryKind, PRMetadata

logger = get_logger(__name__)


# Maximum page size accepted by the GitHub REST API
PER_PAGE = 100

# Leading bytes inspected for a NUL when sniffing binary content
BINARY_SNIFF_BYTES = 8000

# The contents API returns at most this many entries for one directory
CONTENTS_LISTING_LIMIT = 1000


class GitHubClient:
    """Asynchronous GitHub API client.

    Uses httpx for HTTP requests with authentication via a GitHub token.
    All methods use GitHub's REST API v3 and raise
    ``httpx.HTTPStatusError`` on unsuccessful responses.

    Attributes:
        token: GitHub API token for authentication.
        headers: Default HTTP headers including auth and API version.
        client: httpx.AsyncClient instance for making requests.

    Example:
        >>> async with GitHubClient(token) as client:
        ...     files = await client.list_changed_files("owner", "repo", 123)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub API token. If not provided, uses the default token
                from settings.
            base_url: API root, for GitHub Enterprise installations.
            timeout: Per-request timeout in seconds.
        """
        if token is None:
            from pr_testgen.config import get_settings

            token = get_settings().get_default_github_token()
        self.token = token
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self.client = httpx.AsyncClient(
            headers=self.headers,
            base_url=base_url,
            follow_redirects=True,
            timeout=timeout,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_pr_metadata(self, owner: str, repo: str, pr_number: int) -> PRMetadata:
        """Fetch and parse PR metadata from the pulls endpoint.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            pr_number: Pull request number.

        Returns:
            PRMetadata with title, author, branches, head SHA, etc.
        """
        pr_resp = await self.client.get(f"/repos/{owner}/{repo}/pulls/{pr_number}")
        pr_resp.raise_for_status()
        pr_data = pr_resp.json()

        return PRMetadata(
            number=pr_data["number"],
            title=pr_data["title"],
            description=pr_data["body"] or "",
            author=pr_data["user"]["login"],
            base_branch=pr_data["base"]["ref"],
            head_branch=pr_data["head"]["ref"],
            head_commit_sha=pr_data["head"]["sha"],
            repo_url=pr_data["base"]["repo"]["html_url"],
            is_draft=pr_data.get("draft", False),
        )

    async def list_changed_files(self, owner: str, repo: str, pr_number: int) -> List[ChangedFile]:
        """Fetch every changed file of a pull request, following pagination.

        Args:
            owner: Repository owner.
            repo: Repository name.
            pr_number: Pull request number.

        Returns:
            ChangedFile objects with path, status and patch.
        """
        files: List[ChangedFile] = []
        page = 1
        while True:
            resp = await self.client.get(
                f"/repos/{owner}/{repo}/pulls/{pr_number}/files",
                params={"per_page": PER_PAGE, "page": page},
            )
            resp.raise_for_status()
            batch = resp.json()
            files.extend(
                ChangedFile(
                    path=f["filename"],
                    status=f.get("status", "modified"),
                    patch=f.get("patch", ""),  # Patch might be missing for binary/large files
                )
                for f in batch
            )
            if len(batch) < PER_PAGE:
                logger.debug("changed_files_listed", pr_number=pr_number, count=len(files), pages=page)
                return files
            page += 1

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> Optional[str]:
        """Fetch raw file content at a specific Git ref.

        Args:
            owner: Repository owner.
            repo: Repository name.
            path: Path to the file in the repository.
            ref: Git ref (branch, tag, or commit SHA).

        Returns:
            The raw text content of the file, or None when the file is
            binary or not valid UTF-8.
        """
        headers = {"Accept": "application/vnd.github.v3.raw"}
        resp = await self.client.get(
            f"/repos/{owner}/{repo}/contents/{path}",
            params={"ref": ref},
            headers=headers,
        )
        resp.raise_for_status()
        data = resp.content
        if b"\x00" in data[:BINARY_SNIFF_BYTES]:
            logger.debug("binary_content_skipped", path=path)
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("binary_content_skipped", path=path)
            return None

    async def list_directory(self, owner: str, repo: str, path: str, ref: str) -> List[DirectoryEntry]:
        """List one directory of the repository tree.

        Args:
            owner: Repository owner.
            repo: Repository name.
            path: Directory path; "" for the repository root.
            ref: Git ref to list.

        Returns:
            Files and subdirectories. Symlinks and submodules are omitted. At most
            CONTENTS_LISTING_LIMIT entries are returned.
        """
        url = f"/repos/{owner}/{repo}/contents/{path}" if path else f"/repos/{owner}/{repo}/contents"
        resp = await self.client.get(url, params={"ref": ref})
        resp.raise_for_status()
        data = resp.json()
        if isinstance(data, dict):
            # The contents API returns a single object when path is a file
            data = [data]

        entries = []
        for item in data:
            if item.get("type") == "file":
                entries.append(DirectoryEntry(path=item["path"], kind=EntryKind.FILE))
            elif item.get("type") == "dir":
                entries.append(DirectoryEntry(path=item["path"], kind=EntryKind.DIR))
        return entries

    async def post_pr_comment(self, owner: str, repo: str, pr_number: int, body: str) -> Dict[str, Any]:
        """Post a comment on a pull request.

        Args:
            owner: Repository owner.
            repo: Repository name.
            pr_number: Pull request number.
            body: Comment body text (Markdown supported).

        Returns:
            The created comment data from GitHub's API.
        """
        resp = await self.client.post(
            f"/repos/{owner}/{repo}/issues/{pr_number}/comments",
            json={"body": body}
        )
        resp.raise_for_status()
        return resp.json()


class PullRequestSource:
    """Binds a GitHubClient to one pull request.

    Implements the DiffSource, ContentStore and DirectoryLister interfaces
    of the analysis engine. The changed-file listing is fetched once and
    reused to answer diff lookups.
    """

    listing_limit = CONTENTS_LISTING_LIMIT

    def __init__(self, client: GitHubClient, owner: str, repo: str, pr_number: int):
        self.client = client
        self.owner = owner
        self.repo = repo
        self.pr_number = pr_number
        self._changed: Optional[List[ChangedFile]] = None

    async def list_changed_files(self) -> List[ChangedFile]:
        if self._changed is None:
            self._changed = await self.client.list_changed_files(self.owner, self.repo, self.pr_number)
        return self._changed

    async def get_file_diff(self, path: str) -> str:
        for changed in await self.list_changed_files():
            if changed.path == path:
                return changed.patch
        return ""

    async def get_file_content(self, path: str, ref: str) -> Optional[str]:
        return await self.client.get_file_content(self.owner, self.repo, path, ref)

    async def list_directory(self, path: str, ref: str) -> List[DirectoryEntry]:
        return await self.client.list_directory(self.owner, self.repo, path, ref)
