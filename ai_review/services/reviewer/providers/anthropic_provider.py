"""Anthropic Messages API adapter."""

from typing import Any, Optional, Sequence

import anthropic
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage

from ai_review.core.exceptions import ModelCallError, ProtocolError
from ai_review.core.logging import get_logger
from ai_review.services.reviewer.providers import message_text
from ai_review.services.reviewer.schemas import ModelTurn, ToolCall, ToolSpec

logger = get_logger("reviewer.providers.anthropic")

MAX_COMPLETION_TOKENS = 8192


def to_anthropic_tool(spec: ToolSpec) -> dict:
    """Convert a tool spec to the ``input_schema`` dialect."""
    return {
        "name": spec.name,
        "description": spec.description,
        "input_schema": spec.parameters,
    }


def to_anthropic_messages(history: Sequence[BaseMessage]) -> list[dict[str, Any]]:
    """Convert the conversation to Anthropic message dicts.

    Tool results travel as ``tool_result`` blocks in a user turn; the
    results of one batch are merged into a single turn since roles must
    alternate.
    """
    api_messages: list[dict[str, Any]] = []

    for msg in history:
        if isinstance(msg, ToolMessage):
            block: dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": msg.tool_call_id,
                "content": message_text(msg.content) or "Operation completed successfully",
            }
            if msg.status == "error":
                block["is_error"] = True
            role, blocks = "user", [block]
        elif isinstance(msg, AIMessage):
            blocks = []
            text = message_text(msg.content)
            if text:
                blocks.append({"type": "text", "text": text})
            for call in msg.tool_calls:
                blocks.append({
                    "type": "tool_use",
                    "id": call["id"],
                    "name": call["name"],
                    "input": call["args"],
                })
            role = "assistant"
        elif isinstance(msg, HumanMessage):
            role, blocks = "user", [{"type": "text", "text": message_text(msg.content)}]
        else:
            continue

        if not blocks:
            continue
        if api_messages and api_messages[-1]["role"] == role:
            api_messages[-1]["content"].extend(blocks)
        else:
            api_messages.append({"role": role, "content": blocks})

    return api_messages


def apply_cache_control(api_messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Mark the newest content block as an ephemeral prompt-cache breakpoint."""
    if api_messages and api_messages[-1]["content"]:
        api_messages[-1]["content"][-1]["cache_control"] = {"type": "ephemeral"}
    return api_messages


class AnthropicProvider:
    """Claude models through ``anthropic.AsyncAnthropic``."""

    name = "anthropic"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        max_tokens: int = MAX_COMPLETION_TOKENS,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def send_turn(
        self,
        system_prompt: str,
        history: Sequence[BaseMessage],
        tools: Sequence[ToolSpec],
    ) -> ModelTurn:
        logger.info(f"Sending request to Anthropic with model: {self.model}")
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=apply_cache_control(to_anthropic_messages(history)),
                tools=[to_anthropic_tool(spec) for spec in tools],
            )
        except anthropic.APIError as e:
            raise ModelCallError(self.name, self.model, str(e)) from e

        if response is None or response.content is None:
            raise ProtocolError(self.name, "response has no content")

        text_parts = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                args = block.input if isinstance(block.input, dict) else {}
                error = None if isinstance(block.input, dict) else "Tool input must be a JSON object"
                tool_calls.append(ToolCall(id=block.id, name=block.name, args=args, error=error))

        if response.stop_reason == "max_tokens":
            logger.warning(f"Anthropic response hit max_tokens ({self.max_tokens})")

        return ModelTurn.from_parts("".join(text_parts), tool_calls)
