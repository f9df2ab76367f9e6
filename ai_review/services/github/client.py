"""GitHub API client - data layer."""

from typing import Optional

from github import Auth, Github, UnknownObjectException
from github.PullRequest import PullRequest
from github.Repository import Repository
from loguru import logger

from ai_review.config import settings

_github_client: Optional[Github] = None

BINARY_PLACEHOLDER = "[Binary file not shown in review]"


def get_github_client(token: Optional[str] = None) -> Github:
    """Get a GitHub client authenticated with the action token.

    The first call creates the client; later calls reuse it.
    """
    global _github_client

    if _github_client:
        return _github_client

    token = token or settings.token
    if not token:
        raise ValueError("GitHub token not configured")

    _github_client = Github(auth=Auth.Token(token))
    logger.info("GitHub client initialized")
    return _github_client


def fetch_repository(owner: str, repo: str) -> Repository:
    """Fetch a repository handle."""
    return get_github_client().get_repo(f"{owner}/{repo}")


def fetch_pull_request(owner: str, repo: str, pr_number: int) -> PullRequest:
    """Fetch a pull request from GitHub API."""
    return fetch_repository(owner, repo).get_pull(pr_number)


def fetch_issue_comment_bodies(owner: str, repo: str, pr_number: int) -> list[str]:
    """Fetch the bodies of all conversation comments, oldest first."""
    pr = fetch_pull_request(owner, repo, pr_number)
    return [comment.body or "" for comment in pr.get_issue_comments()]


def fetch_files_between_commits(owner: str, repo: str, base: str, head: str) -> list[dict]:
    """Fetch files changed between two commits."""
    comparison = fetch_repository(owner, repo).compare(base, head)
    files = []
    for f in comparison.files:
        files.append({
            "filename": f.filename,
            "status": f.status,
            "additions": f.additions,
            "deletions": f.deletions,
            "changes": f.changes,
            "patch": f.patch or "",
        })
    return files


def fetch_file_contents(owner: str, repo: str, path: str, ref: str, max_size_bytes: int) -> str:
    """Fetch file contents at a ref; non-text content becomes a placeholder."""
    repository = fetch_repository(owner, repo)
    try:
        content = repository.get_contents(path, ref=ref)
    except Exception as e:
        logger.error(f"Failed to fetch file {path}: {e}")
        raise

    if isinstance(content, list):
        return "[Directory not shown]"
    if content.type != "file":
        return f"[{content.type} not shown]"
    if content.size > max_size_bytes:
        return f"[File too large to review: {content.size} bytes]"
    try:
        return content.decoded_content.decode("utf-8")
    except UnicodeDecodeError:
        return BINARY_PLACEHOLDER


def create_review_comment(
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
    """Create an inline review comment; single-line when the bounds are equal."""
    repository = fetch_repository(owner, repo)
    pr = repository.get_pull(pr_number)
    commit = repository.get_commit(commit_sha)

    if start_line == end_line:
        pr.create_review_comment(body=body, commit=commit, path=path, line=end_line, side=side)
    else:
        pr.create_review_comment(
            body=body,
            commit=commit,
            path=path,
            line=end_line,
            side=side,
            start_line=start_line,
            start_side=side,
        )
    logger.info(f"Created review comment on {path}:{start_line}-{end_line} ({side})")


def create_issue_comment(owner: str, repo: str, pr_number: int, body: str) -> None:
    """Create a conversation comment on a PR."""
    fetch_pull_request(owner, repo, pr_number).create_issue_comment(body)
    logger.info(f"Created PR comment on {owner}/{repo}#{pr_number}")


def fetch_file_sha(owner: str, repo: str, path: str, branch: str) -> Optional[str]:
    """Return the blob SHA of a file on a branch, or None if it does not exist."""
    try:
        content = fetch_repository(owner, repo).get_contents(path, ref=branch)
    except UnknownObjectException:
        return None
    if isinstance(content, list):
        raise ValueError(f"Path {path} is a directory, not a file")
    return content.sha


def write_file(
    owner: str,
    repo: str,
    branch: str,
    path: str,
    content: str,
    sha: Optional[str],
    message: str,
) -> None:
    """Commit a whole-file create or update to a branch."""
    repository = fetch_repository(owner, repo)
    if sha:
        repository.update_file(path, message, content, sha, branch=branch)
    else:
        repository.create_file(path, message, content, branch=branch)
    logger.info(f"Committed {path} to {branch}: {message}")
