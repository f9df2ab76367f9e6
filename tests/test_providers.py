"""Tests for the model provider adapters."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest
from google.genai import errors, types
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from ai_review.core.exceptions import ModelCallError, ProtocolError
from ai_review.services.reviewer.providers.anthropic_provider import (
    AnthropicProvider,
    to_anthropic_messages,
    to_anthropic_tool,
)
from ai_review.services.reviewer.providers.google_provider import (
    THOUGHT_SIGNATURES_KEY,
    GoogleProvider,
    to_genai_contents,
    to_genai_schema,
)
from ai_review.services.reviewer.providers.openai_provider import OpenAICompatibleProvider, to_openai_tool

HISTORY = [
    HumanMessage(content="Review these files"),
    AIMessage(
        content="Looking at app.py",
        tool_calls=[
            {"id": "c1", "name": "get_file_content", "args": {"path_to_file": "a.py"}, "type": "tool_call"},
            {"id": "c2", "name": "add_review_comment", "args": {"file_name": "a.py"}, "type": "tool_call"},
        ],
    ),
    ToolMessage(content="```a.py\n1 | x\n```", tool_call_id="c1", name="get_file_content", status="success"),
    ToolMessage(content="Error: bad range", tool_call_id="c2", name="add_review_comment", status="error"),
]

REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat")


class TestOpenAICompatibleProvider:
    """Tests for OpenAICompatibleProvider."""

    def make_provider(self, response=None, error=None):
        bound = MagicMock()
        bound.ainvoke = AsyncMock(return_value=response, side_effect=error)
        llm = MagicMock()
        llm.bind_tools.return_value = bound
        return OpenAICompatibleProvider(llm=llm, model="gpt-4.1", name="openrouter"), llm, bound

    def test_tool_dialect(self, tool_spec):
        """Specs are wrapped as function tools."""
        tool = to_openai_tool(tool_spec)

        assert tool["type"] == "function"
        assert tool["function"]["name"] == "get_file_content"
        assert tool["function"]["parameters"] == tool_spec.parameters

    async def test_turn_with_tool_calls(self, tool_spec):
        """Tool calls come back with their ids and decoded arguments."""
        response = AIMessage(
            content="",
            tool_calls=[{"id": "call_1", "name": "mark_as_done", "args": {"brief_summary": "ok"}}],
        )
        provider, llm, bound = self.make_provider(response)

        result = await provider.send_turn("system", HISTORY, [tool_spec])

        assert result.message is response
        assert result.tool_calls[0].id == "call_1"
        assert result.tool_calls[0].args == {"brief_summary": "ok"}
        messages = bound.ainvoke.call_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == "system"
        assert messages[1:] == HISTORY
        llm.bind_tools.assert_called_once_with([to_openai_tool(tool_spec)])

    async def test_invalid_tool_call_becomes_error(self, tool_spec):
        """Arguments that failed to parse are surfaced on the call."""
        response = AIMessage(
            content="",
            invalid_tool_calls=[
                {"id": "call_2", "name": "get_file_content", "args": "{oops", "error": "Expecting value"}
            ],
        )
        provider, _, _ = self.make_provider(response)

        result = await provider.send_turn("system", HISTORY, [tool_spec])

        [call] = result.tool_calls
        assert call.id == "call_2"
        assert call.error == "Could not parse tool arguments: Expecting value"

    async def test_text_answer(self, tool_spec):
        """A plain answer has text and no calls."""
        provider, _, _ = self.make_provider(AIMessage(content="All good"))

        result = await provider.send_turn("system", HISTORY, [tool_spec])

        assert result.text == "All good"
        assert result.tool_calls == []

    async def test_api_error(self, tool_spec):
        """SDK errors become ModelCallError."""
        error = openai.APIConnectionError(request=REQUEST)
        provider, _, _ = self.make_provider(error=error)

        with pytest.raises(ModelCallError) as exc_info:
            await provider.send_turn("system", HISTORY, [tool_spec])

        assert exc_info.value.message.startswith("openrouter API error (gpt-4.1)")
        assert exc_info.value.__cause__ is error

    async def test_unexpected_response(self, tool_spec):
        """A non-assistant response is a protocol error."""
        provider, _, _ = self.make_provider(HumanMessage(content="?"))

        with pytest.raises(ProtocolError):
            await provider.send_turn("system", HISTORY, [tool_spec])


class TestAnthropicMessages:
    """Tests for the Anthropic conversation conversion."""

    def test_tool_dialect(self, tool_spec):
        """Specs use input_schema."""
        assert to_anthropic_tool(tool_spec)["input_schema"] == tool_spec.parameters

    def test_tool_results_merged_into_one_user_turn(self):
        """Results of one batch share a user turn and keep their error flag."""
        messages = to_anthropic_messages(HISTORY)

        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assistant = messages[1]["content"]
        assert assistant[0] == {"type": "text", "text": "Looking at app.py"}
        assert [b["id"] for b in assistant[1:]] == ["c1", "c2"]
        results = messages[2]["content"]
        assert [b["tool_use_id"] for b in results] == ["c1", "c2"]
        assert "is_error" not in results[0]
        assert results[1]["is_error"] is True

    def test_empty_assistant_skipped(self):
        """Assistant turns with neither text nor calls are dropped."""
        messages = to_anthropic_messages([HumanMessage(content="hi"), AIMessage(content="")])

        assert len(messages) == 1


class TestAnthropicProvider:
    """Tests for AnthropicProvider."""

    async def test_send_turn(self, tool_spec):
        """The response blocks are split into text and tool calls."""
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Checking."),
                SimpleNamespace(type="tool_use", id="toolu_1", name="get_file_content",
                                input={"path_to_file": "a.py"}),
            ],
            stop_reason="tool_use",
        ))
        provider = AnthropicProvider(model="claude-sonnet-4-20250514", max_tokens=1024, client=client)

        result = await provider.send_turn("system", HISTORY, [tool_spec])

        assert result.text == "Checking."
        assert result.tool_calls[0].id == "toolu_1"
        assert result.message.tool_calls[0]["id"] == "toolu_1"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["max_tokens"] == 1024
        assert kwargs["messages"][-1]["content"][-1]["cache_control"] == {"type": "ephemeral"}
        assert "cache_control" not in kwargs["messages"][-1]["content"][0]

    async def test_api_error(self, tool_spec):
        """SDK errors become ModelCallError."""
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=anthropic.APIConnectionError(request=REQUEST))
        provider = AnthropicProvider(model="claude", client=client)

        with pytest.raises(ModelCallError):
            await provider.send_turn("system", HISTORY, [tool_spec])

    async def test_missing_content(self, tool_spec):
        """A response without content is a protocol error."""
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=SimpleNamespace(content=None, stop_reason=None))
        provider = AnthropicProvider(model="claude", client=client)

        with pytest.raises(ProtocolError):
            await provider.send_turn("system", HISTORY, [tool_spec])


class TestGoogleConversion:
    """Tests for the Gemini conversation conversion."""

    def test_schema(self, tool_spec):
        """JSON schema types and enums are carried over."""
        schema = to_genai_schema(tool_spec.parameters)

        assert schema.type == types.Type.OBJECT
        assert schema.properties["path_to_file"].type == types.Type.STRING
        assert schema.properties["side"].enum == ["LEFT", "RIGHT"]
        assert schema.required == ["path_to_file"]

    def test_contents(self):
        """Function responses share one user turn and carry their names."""
        contents = to_genai_contents(HISTORY)

        assert [c.role for c in contents] == ["user", "model", "user"]
        calls = [p.function_call for p in contents[1].parts if p.function_call]
        assert [c.id for c in calls] == ["c1", "c2"]
        responses = [p.function_response for p in contents[2].parts]
        assert [r.name for r in responses] == ["get_file_content", "add_review_comment"]
        assert responses[0].response == {"result": "```a.py\n1 | x\n```"}
        assert responses[1].response == {"error": "Error: bad range"}


class TestGoogleProvider:
    """Tests for GoogleProvider."""

    def make_provider(self, response=None, error=None):
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=error)
        return GoogleProvider(model="gemini-2.5-flash", max_tokens=2048, client=client), client

    async def test_send_turn(self, tool_spec):
        """Function calls are returned; missing ids are synthesized."""
        response = types.GenerateContentResponse(candidates=[
            types.Candidate(content=types.Content(role="model", parts=[
                types.Part(text="thinking", thought=True),
                types.Part(text="Let me look."),
                types.Part(
                    function_call=types.FunctionCall(name="get_file_content", args={"path_to_file": "a.py"}),
                    thought_signature=b"sig",
                ),
            ])),
        ])
        provider, client = self.make_provider(response)

        result = await provider.send_turn("system", HISTORY, [tool_spec])

        assert result.text == "Let me look."
        [call] = result.tool_calls
        assert call.id.startswith("call_")
        assert call.args == {"path_to_file": "a.py"}
        assert result.message.additional_kwargs[THOUGHT_SIGNATURES_KEY] == {call.id: "c2ln"}
        config = client.aio.models.generate_content.call_args.kwargs["config"]
        assert config.system_instruction == "system"
        assert config.max_output_tokens == 2048
        assert config.automatic_function_calling.disable is True

    async def test_thought_signature_replayed(self, tool_spec):
        """Signatures stored on a turn are sent back with its calls."""
        message = AIMessage(
            content="",
            tool_calls=[{"id": "c9", "name": "mark_as_done", "args": {}, "type": "tool_call"}],
            additional_kwargs={THOUGHT_SIGNATURES_KEY: {"c9": "c2ln"}},
        )

        [content] = to_genai_contents([message])

        assert content.parts[0].thought_signature == b"sig"

    async def test_no_candidates(self, tool_spec):
        """A blocked prompt is a protocol error."""
        provider, _ = self.make_provider(types.GenerateContentResponse(candidates=[]))

        with pytest.raises(ProtocolError):
            await provider.send_turn("system", HISTORY, [tool_spec])

    async def test_api_error(self, tool_spec):
        """SDK errors become ModelCallError."""
        provider, _ = self.make_provider(error=errors.APIError(503, {"error": {"message": "overloaded"}}))

        with pytest.raises(ModelCallError, match="google API error"):
            await provider.send_turn("system", HISTORY, [tool_spec])

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("connection refused", request=REQUEST),
            httpx.ReadTimeout("timed out", request=REQUEST),
        ],
    )
    async def test_transport_error(self, tool_spec, error):
        """Network failures the SDK re-raises unwrapped are retryable model errors."""
        provider, _ = self.make_provider(error=error)

        with pytest.raises(ModelCallError) as exc_info:
            await provider.send_turn("system", HISTORY, [tool_spec])

        assert exc_info.value.__cause__ is error
        assert type(error).__name__ in exc_info.value.message
