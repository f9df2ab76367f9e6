"""Pydantic schemas for reviewer service."""

from typing import Any, Literal

from langchain_core.messages import AIMessage
from pydantic import BaseModel, Field


class ChangedFile(BaseModel):
    """Per-file diff summary, the only view of a file the model starts with."""

    filename: str
    status: Literal["added", "modified", "removed", "renamed", "copied", "changed", "unchanged"] = "modified"
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: str = ""


class ToolSpec(BaseModel):
    """Provider-neutral tool definition; ``parameters`` is a JSON schema."""

    name: str
    description: str
    parameters: dict[str, Any]


class ToolCall(BaseModel):
    """A tool invocation requested by the model.

    ``error`` is set when the provider could not decode the arguments.
    """

    id: str
    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class ModelTurn(BaseModel):
    """One model response, normalized across providers."""

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    message: AIMessage

    @classmethod
    def from_parts(cls, text: str, tool_calls: list[ToolCall]) -> "ModelTurn":
        """Build a turn and the history message that replays it."""
        message = AIMessage(
            content=text,
            tool_calls=[
                {"id": call.id, "name": call.name, "args": call.args, "type": "tool_call"}
                for call in tool_calls
            ],
        )
        return cls(text=text, tool_calls=tool_calls, message=message)


class ToolResult(BaseModel):
    """Text returned to the model for one tool call."""

    content: str
    is_error: bool = False


class ReviewResult(BaseModel):
    """Result of a review run."""

    summary: str
    iterations: int
    files_reviewed: int
    comments: int
    completed: bool = Field(description="True when the model called mark_as_done")
