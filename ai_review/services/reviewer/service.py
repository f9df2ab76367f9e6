"""Reviewer service - orchestration layer."""

import asyncio
import random
from typing import Optional, Sequence

from ai_review.core.exceptions import ModelCallError
from ai_review.core.logging import get_logger
from ai_review.core.prompts import render_review_request, render_system_prompt
from ai_review.services.reviewer.cache import MAX_CACHE_ENTRIES, ContentCache, ContentGetter
from ai_review.services.reviewer.context import LINE_SPAN
from ai_review.services.reviewer.graph import MAX_REVIEW_ITERATIONS, create_review_graph, recursion_limit
from ai_review.services.reviewer.providers import ProviderClient
from ai_review.services.reviewer.schemas import ChangedFile, ReviewResult
from ai_review.services.reviewer.state import new_review_state
from ai_review.services.reviewer.tools import FileCommentator, FileEditor, ReviewTools

logger = get_logger("reviewer.service")

MAX_REVIEW_ATTEMPTS = 3
RETRY_BASE_DELAY = 1.0


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Exponential backoff with jitter for the given 0-based attempt."""
    return base_delay * (2**attempt) + random.uniform(0, base_delay)


async def do_review(
    changed_files: Sequence[ChangedFile],
    provider: ProviderClient,
    content_getter: ContentGetter,
    commentator: FileCommentator,
    *,
    editor: Optional[FileEditor] = None,
    review_rules: Optional[str] = None,
    max_iterations: int = MAX_REVIEW_ITERATIONS,
    max_cache_entries: int = MAX_CACHE_ENTRIES,
    line_span: int = LINE_SPAN,
    max_attempts: int = MAX_REVIEW_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
) -> ReviewResult:
    """Review the changed files with the agent loop.

    Model-call failures restart the whole review (fresh state, same cache)
    up to ``max_attempts`` times. Tool failures never do; the model sees
    them as tool results.

    Raises:
        ModelCallError: When every attempt failed to reach the model
        ProtocolError: If the model returned an uninterpretable response
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    cache = ContentCache(content_getter, max_entries=max_cache_entries)
    tools = ReviewTools(cache, commentator, editor=editor, line_span=line_span)
    system_prompt = render_system_prompt(review_rules, file_edits_enabled=editor is not None)
    initial_prompt = render_review_request([f.model_dump() for f in changed_files])
    graph = create_review_graph(provider, tools, system_prompt, max_iterations=max_iterations)

    logger.info(f"Starting code review with {provider.name} ({provider.model})")
    logger.info(f"Processing {len(changed_files)} changed files...")

    for attempt in range(max_attempts):
        try:
            final_state = await graph.ainvoke(
                new_review_state(initial_prompt),
                config={"recursion_limit": recursion_limit(max_iterations)},
            )
            break
        except ModelCallError as e:
            if attempt >= max_attempts - 1:
                logger.error(f"Max retries reached for review: {e.message}")
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(f"Retry {attempt + 1}/{max_attempts}: {e.message}. Retrying in {delay:.1f}s")
            await asyncio.sleep(delay)

    result = ReviewResult(
        summary=final_state["summary"],
        iterations=final_state["iteration_count"],
        files_reviewed=len(final_state["reviewed_files"]),
        comments=final_state["comments_made"],
        completed=final_state["completed"],
    )
    logger.info(
        f"Review finished after {result.iterations} iterations: "
        f"{result.comments} comments on {result.files_reviewed} files"
    )
    return result
