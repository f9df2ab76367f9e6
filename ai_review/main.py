"""AI Review - GitHub Action entry point."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

from ai_review.config import Settings, settings
from ai_review.core.exceptions import ConfigurationError, ReviewError
from ai_review.core.file_filter import filter_changed_files
from ai_review.core.llm import get_provider_client
from ai_review.core.logging import get_logger
from ai_review.core.review_marker import find_last_reviewed_commit, format_review_comment
from ai_review.services import github
from ai_review.services.github.client import get_github_client
from ai_review.services.reviewer import ChangedFile, ReviewResult, do_review

logger = get_logger("main")


def load_review_rules(path: Optional[str]) -> Optional[str]:
    """Read the custom review rules file, if one is configured."""
    if not path:
        return None
    rules_file = Path(path)
    if not rules_file.is_file():
        raise ConfigurationError(f"Review rules file not found: {path}")
    rules = rules_file.read_text(encoding="utf-8").strip()
    logger.info(f"Loaded custom review rules from {path}")
    return rules or None


async def run_action(config: Settings) -> Optional[ReviewResult]:
    """Review the configured pull request and post the summary comment.

    Returns:
        The review result, or None when no file needed a review
    """
    config.validate_inputs()
    owner, repo, pr_number = config.owner, config.repo, config.pr_number

    get_github_client(config.token)
    refs = await github.get_pull_request_refs(owner, repo, pr_number)

    base_sha = refs.base_sha
    last_reviewed = find_last_reviewed_commit(await github.get_comment_bodies(owner, repo, pr_number))
    if last_reviewed:
        logger.info(f"New base commit {last_reviewed}. Incremental review will be performed")
        base_sha = last_reviewed
    else:
        logger.info("No previous review comments found, reviewing all files in PR")

    changed = await github.get_changed_files(owner, repo, base_sha, refs.head_sha)
    to_review = filter_changed_files(
        changed,
        include_extensions=config.include_extensions,
        exclude_extensions=config.exclude_extensions,
        include_paths=config.include_paths,
        exclude_paths=config.exclude_paths,
    )
    logger.info(f"Found {len(to_review)} files to review")
    if not to_review:
        logger.info("No files to review")
        return None

    changed_files = [ChangedFile(**f) for f in to_review]
    review_rules = load_review_rules(config.review_rules_file)
    provider = get_provider_client(config)

    async def content_getter(path: str) -> str:
        return await github.get_file_contents(owner, repo, path, refs.head_sha, config.max_file_size_bytes)

    async def commentator(text: str, path: str, side: str, start_line: int, end_line: int) -> None:
        await github.post_review_comment(owner, repo, pr_number, refs.head_sha, text, path, side, start_line, end_line)

    editor = None
    if config.enable_file_edits:
        editor = github.GitHubFileEditor(owner, repo, refs.head_ref)

    result = await do_review(
        changed_files,
        provider,
        content_getter,
        commentator,
        editor=editor,
        review_rules=review_rules,
        max_iterations=config.max_review_iterations,
        max_cache_entries=config.max_cache_entries,
        line_span=config.line_span,
        max_attempts=config.max_review_attempts,
        base_delay=config.retry_base_delay,
    )
    if not result.summary.strip():
        raise ReviewError("AI Agent did not return a valid review summary")

    await github.post_pr_comment(owner, repo, pr_number, format_review_comment(refs.head_sha, result.summary))
    logger.info(f"Review summary posted to {owner}/{repo}#{pr_number}")
    return result


def main() -> int:
    """Run the action and map failures to the configured exit policy."""
    try:
        asyncio.run(run_action(settings))
    except Exception as e:
        if settings.fail_action_if_review_failed:
            logger.opt(exception=e).error(f"Review failed: {e}")
            return 1
        logger.opt(exception=e).debug("Review failed")
        logger.warning(f"Review failed: {e}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
