"""GitHub service."""

from ai_review.services.github.service import (
    GitHubFileEditor,
    PullRequestRefs,
    get_changed_files,
    get_comment_bodies,
    get_file_contents,
    get_pull_request_refs,
    post_pr_comment,
    post_review_comment,
)

__all__ = [
    "GitHubFileEditor",
    "PullRequestRefs",
    "get_changed_files",
    "get_comment_bodies",
    "get_file_contents",
    "get_pull_request_refs",
    "post_pr_comment",
    "post_review_comment",
]
