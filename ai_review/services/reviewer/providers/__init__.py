"""Model provider adapters for the review loop.

Each adapter turns the shared conversation (LangChain messages) and the
provider-neutral tool specs into one backend's request format, and turns
the backend's reply into a ``ModelTurn``.
"""

from typing import Protocol, Sequence

from langchain_core.messages import BaseMessage

from ai_review.services.reviewer.schemas import ModelTurn, ToolSpec


class ProviderClient(Protocol):
    """One model backend."""

    name: str
    model: str

    async def send_turn(
        self,
        system_prompt: str,
        history: Sequence[BaseMessage],
        tools: Sequence[ToolSpec],
    ) -> ModelTurn:
        """Send the conversation and return the model's next turn.

        Raises:
            ModelCallError: On transport or provider failures
            ProtocolError: If the response cannot be interpreted
        """
        ...


def message_text(content: object) -> str:
    """Flatten LangChain message content (str or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return ""


__all__ = ["ProviderClient", "message_text"]
