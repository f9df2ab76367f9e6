"""OpenAI-compatible chat completions via LangChain."""

from typing import Sequence

import openai
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, SystemMessage

from ai_review.core.exceptions import ModelCallError, ProtocolError
from ai_review.core.logging import get_logger
from ai_review.services.reviewer.providers import message_text
from ai_review.services.reviewer.schemas import ModelTurn, ToolCall, ToolSpec

logger = get_logger("reviewer.providers.openai")


def to_openai_tool(spec: ToolSpec) -> dict:
    """Convert a tool spec to the ``{"type": "function"}`` dialect."""
    return {
        "type": "function",
        "function": {
            "name": spec.name,
            "description": spec.description,
            "parameters": spec.parameters,
        },
    }


class OpenAICompatibleProvider:
    """Any backend that speaks the OpenAI chat completions protocol.

    Used for OpenAI itself and for gateways such as OpenRouter, DeepSeek,
    xAI and Perplexity, which differ only in base URL.
    """

    def __init__(self, llm: BaseChatModel, model: str, name: str = "openai") -> None:
        self.llm = llm
        self.model = model
        self.name = name

    async def send_turn(
        self,
        system_prompt: str,
        history: Sequence[BaseMessage],
        tools: Sequence[ToolSpec],
    ) -> ModelTurn:
        llm_with_tools = self.llm.bind_tools([to_openai_tool(spec) for spec in tools])
        messages = [SystemMessage(content=system_prompt), *history]

        logger.info(f"Sending request to {self.name} with model: {self.model}")
        try:
            response = await llm_with_tools.ainvoke(messages)
        except openai.APIStatusError as e:
            logger.error(f"{self.name} API error: status={e.status_code} body={e.body}")
            raise ModelCallError(self.name, self.model, str(e)) from e
        except openai.APIError as e:
            raise ModelCallError(self.name, self.model, str(e)) from e

        if not isinstance(response, AIMessage):
            raise ProtocolError(self.name, f"expected an assistant message, got {type(response).__name__}")

        tool_calls = []
        for call in response.tool_calls:
            if not call.get("id"):
                raise ProtocolError(self.name, f"tool call {call.get('name')!r} has no id")
            tool_calls.append(ToolCall(id=call["id"], name=call["name"], args=call.get("args") or {}))

        # Calls whose arguments were not valid JSON still need a result.
        for call in response.invalid_tool_calls:
            if not call.get("id"):
                raise ProtocolError(self.name, f"tool call {call.get('name')!r} has no id")
            tool_calls.append(
                ToolCall(
                    id=call["id"],
                    name=call.get("name") or "",
                    error=f"Could not parse tool arguments: {call.get('error') or call.get('args')}",
                )
            )

        return ModelTurn(text=message_text(response.content), tool_calls=tool_calls, message=response)
