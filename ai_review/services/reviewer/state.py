"""Agent state schema for the code reviewer."""

from typing import Annotated, TypedDict

from langchain_core.messages import HumanMessage
from langgraph.graph.message import add_messages

from ai_review.services.reviewer.schemas import ToolCall

# (path, start_line, end_line) of a content request already answered
SeenRequest = tuple[str, int, int]


class ReviewState(TypedDict):
    """State for one review; never shared between reviews."""

    # Conversation replayed on every model call (system prompt excluded)
    messages: Annotated[list, add_messages]

    # Loop control
    iteration_count: int
    pending_calls: list[ToolCall]
    done: bool

    # Accumulated results
    summary: str
    reviewed_files: set[str]
    comments_made: int
    seen_tool_calls: set[SeenRequest]
    completed: bool


def new_review_state(initial_prompt: str) -> ReviewState:
    """Create a fresh state seeded with the changed-files message."""
    return {
        "messages": [HumanMessage(content=initial_prompt)],
        "iteration_count": 0,
        "pending_calls": [],
        "done": False,
        "summary": "",
        "reviewed_files": set(),
        "comments_made": 0,
        "seen_tool_calls": set(),
        "completed": False,
    }


def fallback_summary(state: ReviewState) -> str:
    return (
        f"Code review completed. Reviewed {len(state['reviewed_files'])} files "
        f"with {state['comments_made']} comments."
    )


def terminated_summary(state: ReviewState, iterations: int) -> str:
    return (
        f"Code review terminated after {iterations} iterations. "
        f"Reviewed {len(state['reviewed_files'])} files with {state['comments_made']} comments."
    )
