"""Compose and parse the summary comment that marks a finished review."""

import re
from typing import Iterable, Optional

AI_REVIEW_COMMENT_PREFIX = "AI review done up to commit: "
SUMMARY_SEPARATOR = "\n\n### AI Review Summary:\n"

_MARKER_PATTERN = re.compile(rf"^{re.escape(AI_REVIEW_COMMENT_PREFIX)}(\S*)")


def format_review_comment(head_sha: str, summary: str) -> str:
    """Build the PR comment body posted after a review."""
    return f"{AI_REVIEW_COMMENT_PREFIX}{head_sha}{SUMMARY_SEPARATOR}{summary}"


def parse_review_marker(body: Optional[str]) -> Optional[str]:
    """
    Extract the reviewed commit SHA from a comment body.

    Returns None when the body is not a review marker or carries no SHA.
    """
    if not body or not body.startswith(AI_REVIEW_COMMENT_PREFIX):
        return None

    header = body.split(SUMMARY_SEPARATOR, 1)[0]
    match = _MARKER_PATTERN.match(header)
    if not match or not match.group(1).strip():
        return None
    return match.group(1)


def find_last_reviewed_commit(comment_bodies: Iterable[Optional[str]]) -> Optional[str]:
    """Return the SHA from the most recent review marker, oldest-first input."""
    for body in reversed(list(comment_bodies)):
        if body and body.startswith(AI_REVIEW_COMMENT_PREFIX):
            # The latest marker wins even when it is malformed.
            return parse_review_marker(body)
    return None
