"""GitHub service - business logic layer.

PyGithub is synchronous; every call here runs in a worker thread so the
review loop can keep several GitHub requests in flight.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from github import GithubException

from ai_review.core.exceptions import ExternalServiceError
from ai_review.core.logging import get_logger
from ai_review.services.github import client

logger = get_logger("github.service")


@dataclass(frozen=True)
class PullRequestRefs:
    """The commits and branch a review runs against."""

    head_sha: str
    base_sha: str
    head_ref: str


async def get_pull_request_refs(owner: str, repo: str, pr_number: int) -> PullRequestRefs:
    """Get head/base SHAs and the head branch of a pull request."""
    logger.info(f"Fetching PR: {owner}/{repo}#{pr_number}")
    try:
        pr = await asyncio.to_thread(client.fetch_pull_request, owner, repo, pr_number)
    except GithubException as e:
        raise ExternalServiceError("GitHub", f"Failed to load pull request #{pr_number}: {e}") from e
    return PullRequestRefs(head_sha=pr.head.sha, base_sha=pr.base.sha, head_ref=pr.head.ref)


async def get_comment_bodies(owner: str, repo: str, pr_number: int) -> list[str]:
    """Get the conversation comment bodies of a PR, oldest first."""
    try:
        bodies = await asyncio.to_thread(client.fetch_issue_comment_bodies, owner, repo, pr_number)
    except GithubException as e:
        raise ExternalServiceError("GitHub", f"Failed to list comments: {e}") from e
    logger.debug(f"Found {len(bodies)} PR comments")
    return bodies


async def get_changed_files(owner: str, repo: str, base: str, head: str) -> list[dict]:
    """Get files changed between two commits."""
    logger.info(f"Comparing {base[:7]}...{head[:7]}")
    try:
        files = await asyncio.to_thread(client.fetch_files_between_commits, owner, repo, base, head)
    except GithubException as e:
        raise ExternalServiceError("GitHub", f"Failed to compare commits: {e}") from e
    logger.info(f"Found {len(files)} changed files")
    return files


async def get_file_contents(owner: str, repo: str, path: str, ref: str, max_size_bytes: int) -> str:
    """Get full file contents at a ref.

    Errors propagate unchanged; the content cache turns them into tool errors.
    """
    logger.info(f"Fetching file: {owner}/{repo}/{path}@{ref[:7]}")
    return await asyncio.to_thread(client.fetch_file_contents, owner, repo, path, ref, max_size_bytes)


async def post_review_comment(
    owner: str,
    repo: str,
    pr_number: int,
    commit_sha: str,
    body: str,
    path: str,
    side: str,
    start_line: int,
    end_line: int,
) -> None:
    """Post an inline review comment on the head commit."""
    await asyncio.to_thread(
        client.create_review_comment,
        owner,
        repo,
        pr_number,
        commit_sha,
        body,
        path,
        side,
        start_line,
        end_line,
    )


async def post_pr_comment(owner: str, repo: str, pr_number: int, body: str) -> None:
    """Post a conversation comment on a PR."""
    try:
        await asyncio.to_thread(client.create_issue_comment, owner, repo, pr_number, body)
    except GithubException as e:
        raise ExternalServiceError("GitHub", f"Failed to post PR comment: {e}") from e


class GitHubFileEditor:
    """Commits whole-file replacements to a pull request's head branch."""

    def __init__(self, owner: str, repo: str, branch: str) -> None:
        self.owner = owner
        self.repo = repo
        self.branch = branch

    async def get_file_sha(self, path: str) -> Optional[str]:
        return await asyncio.to_thread(client.fetch_file_sha, self.owner, self.repo, path, self.branch)

    async def create_or_update_file(
        self,
        path: str,
        content: str,
        sha: Optional[str],
        commit_message: str,
    ) -> None:
        await asyncio.to_thread(
            client.write_file,
            self.owner,
            self.repo,
            self.branch,
            path,
            content,
            sha,
            commit_message,
        )
