"""Agentic review loop."""

from ai_review.services.reviewer.schemas import ChangedFile, ReviewResult
from ai_review.services.reviewer.service import do_review

__all__ = ["ChangedFile", "ReviewResult", "do_review"]
