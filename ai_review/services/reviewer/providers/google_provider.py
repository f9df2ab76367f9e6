"""Google Gemini adapter using the google-genai SDK."""

import base64
import uuid
from typing import Any, Optional, Sequence

import httpx
from google import genai
from google.genai import errors, types
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage

from ai_review.core.exceptions import ModelCallError, ProtocolError
from ai_review.core.logging import get_logger
from ai_review.services.reviewer.providers import message_text
from ai_review.services.reviewer.schemas import ModelTurn, ToolCall, ToolSpec

logger = get_logger("reviewer.providers.google")

# additional_kwargs key holding {call_id: base64 thought signature}
THOUGHT_SIGNATURES_KEY = "gemini_thought_signatures"


def to_genai_schema(schema: dict[str, Any]) -> types.Schema:
    """Convert a JSON schema fragment to a Gemini ``Schema``."""
    kwargs: dict[str, Any] = {"type": types.Type(schema.get("type", "string").upper())}
    if schema.get("description"):
        kwargs["description"] = schema["description"]
    if schema.get("enum"):
        kwargs["enum"] = [str(value) for value in schema["enum"]]
    if schema.get("properties"):
        kwargs["properties"] = {
            name: to_genai_schema(prop) for name, prop in schema["properties"].items()
        }
    if schema.get("required"):
        kwargs["required"] = list(schema["required"])
    if schema.get("items"):
        kwargs["items"] = to_genai_schema(schema["items"])
    return types.Schema(**kwargs)


def to_genai_tools(specs: Sequence[ToolSpec]) -> list[types.Tool]:
    """Convert tool specs to one Gemini tool holding all function declarations."""
    declarations = [
        types.FunctionDeclaration(
            name=spec.name,
            description=spec.description,
            parameters=to_genai_schema(spec.parameters),
        )
        for spec in specs
    ]
    return [types.Tool(function_declarations=declarations)] if declarations else []


def to_genai_contents(history: Sequence[BaseMessage]) -> list[types.Content]:
    """Convert the conversation to Gemini contents.

    Function responses of one batch share a single user turn and carry the
    function name, which Gemini uses for correlation.
    """
    contents: list[types.Content] = []

    for msg in history:
        if isinstance(msg, ToolMessage):
            part = types.Part(
                function_response=types.FunctionResponse(
                    id=msg.tool_call_id,
                    name=msg.name or "",
                    response={"error" if msg.status == "error" else "result": message_text(msg.content)},
                )
            )
            if contents and contents[-1].role == "user" and contents[-1].parts and contents[-1].parts[-1].function_response:
                contents[-1].parts.append(part)
            else:
                contents.append(types.Content(role="user", parts=[part]))
        elif isinstance(msg, AIMessage):
            parts = []
            text = message_text(msg.content)
            if text:
                parts.append(types.Part(text=text))
            signatures = msg.additional_kwargs.get(THOUGHT_SIGNATURES_KEY, {})
            for call in msg.tool_calls:
                part = types.Part(
                    function_call=types.FunctionCall(id=call["id"], name=call["name"], args=call["args"])
                )
                if call["id"] in signatures:
                    part.thought_signature = base64.b64decode(signatures[call["id"]])
                parts.append(part)
            if parts:
                contents.append(types.Content(role="model", parts=parts))
        elif isinstance(msg, HumanMessage):
            contents.append(types.Content(role="user", parts=[types.Part(text=message_text(msg.content))]))

    return contents


class GoogleProvider:
    """Gemini models through ``genai.Client().aio``."""

    name = "google"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        max_tokens: Optional[int] = None,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or genai.Client(api_key=api_key)

    async def send_turn(
        self,
        system_prompt: str,
        history: Sequence[BaseMessage],
        tools: Sequence[ToolSpec],
    ) -> ModelTurn:
        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            tools=to_genai_tools(tools),
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
            max_output_tokens=self.max_tokens,
        )

        logger.info(f"Sending request to Google with model: {self.model}")
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=to_genai_contents(history),
                config=config,
            )
        except errors.APIError as e:
            raise ModelCallError(self.name, self.model, str(e)) from e
        except httpx.TransportError as e:
            # The SDK re-raises connection failures and timeouts unwrapped.
            raise ModelCallError(self.name, self.model, f"{type(e).__name__}: {e}") from e

        if not response.candidates:
            feedback = getattr(response, "prompt_feedback", None)
            raise ProtocolError(self.name, f"no candidates returned (prompt feedback: {feedback})")

        candidate = response.candidates[0]
        parts = candidate.content.parts if candidate.content and candidate.content.parts else []

        text_parts = []
        tool_calls = []
        signatures = {}
        for part in parts:
            if part.function_call:
                if not part.function_call.name:
                    logger.warning(f"Skipping function call without a name: {part.function_call}")
                    continue
                call_id = part.function_call.id or f"call_{uuid.uuid4().hex[:24]}"
                tool_calls.append(
                    ToolCall(id=call_id, name=part.function_call.name, args=dict(part.function_call.args or {}))
                )
                if part.thought_signature:
                    signatures[call_id] = base64.b64encode(part.thought_signature).decode("ascii")
            elif part.text and not part.thought:
                text_parts.append(part.text)

        turn = ModelTurn.from_parts("".join(text_parts), tool_calls)
        if signatures:
            turn.message.additional_kwargs[THOUGHT_SIGNATURES_KEY] = signatures
        return turn
