"""LangGraph agent loop for code review."""

import asyncio
from dataclasses import dataclass
from typing import Literal, Optional

from langchain_core.messages import ToolMessage
from langgraph.graph import END, StateGraph

from ai_review.core.exceptions import ReviewError, ValidationError, report_error
from ai_review.core.logging import get_logger
from ai_review.services.reviewer.context import validate_line_range
from ai_review.services.reviewer.providers import ProviderClient
from ai_review.services.reviewer.schemas import ToolCall, ToolResult
from ai_review.services.reviewer.state import (
    ReviewState,
    SeenRequest,
    fallback_summary,
    terminated_summary,
)
from ai_review.services.reviewer.tools import (
    ADD_REVIEW_COMMENT,
    EDIT_FILE,
    GET_FILE_CONTENT,
    MARK_AS_DONE,
    ReviewTools,
    require_string,
)

logger = get_logger("reviewer.graph")

MAX_REVIEW_ITERATIONS = 142


@dataclass
class ToolOutcome:
    """Result of one tool call plus the state changes it implies."""

    message: ToolMessage
    commented_file: Optional[str] = None


def completion_summary(call: ToolCall) -> Optional[str]:
    """Return the summary of a usable ``mark_as_done`` call, else None."""
    if call.name != MARK_AS_DONE or call.error:
        return None
    summary = call.args.get("brief_summary")
    if isinstance(summary, str) and summary.strip():
        return summary
    return None


def recursion_limit(max_iterations: int) -> int:
    """Graph step budget: two nodes per iteration plus slack."""
    return 2 * max_iterations + 5


def create_review_graph(
    provider: ProviderClient,
    tools: ReviewTools,
    system_prompt: str,
    max_iterations: int = MAX_REVIEW_ITERATIONS,
):
    """Create the review agent graph.

    ``call_model`` and ``execute_tools`` alternate until the model calls
    ``mark_as_done``, answers without tool calls, or the iteration ceiling
    is reached.
    """
    tool_specs = tools.specs

    async def call_model_node(state: ReviewState) -> dict:
        """One model round-trip."""
        turn = await provider.send_turn(system_prompt, state["messages"], tool_specs)
        iteration_count = state["iteration_count"] + 1
        logger.debug(f"Iteration {iteration_count}/{max_iterations}")

        if iteration_count >= max_iterations:
            logger.warning(
                f"Reached maximum number of iterations ({max_iterations}). Breaking potential infinite loop."
            )
            return {
                "iteration_count": iteration_count,
                "summary": terminated_summary(state, iteration_count),
                "pending_calls": [],
                "done": True,
            }

        if not turn.tool_calls:
            logger.info("Model finished without calling mark_as_done")
            return {
                "messages": [turn.message],
                "iteration_count": iteration_count,
                "summary": turn.text if turn.text.strip() else fallback_summary(state),
                "pending_calls": [],
                "done": True,
            }

        logger.info(f"Agent calling tools: {[call.name for call in turn.tool_calls]}")
        return {
            "messages": [turn.message],
            "iteration_count": iteration_count,
            "pending_calls": turn.tool_calls,
        }

    def route_after_model(state: ReviewState) -> Literal["execute_tools", "__end__"]:
        return END if state["done"] else "execute_tools"

    async def get_file_content(
        call: ToolCall,
        seen: set[SeenRequest],
        in_flight: dict[SeenRequest, asyncio.Future],
    ) -> ToolResult:
        path = require_string(call.args, "path_to_file")
        start, end = validate_line_range(call.args.get("start_line_number"), call.args.get("end_line_number"))
        key = (path, start, end)
        notice = ToolResult(content=f"Previously provided content for {path} lines {start}-{end}.")

        # An identical call earlier in the same batch: share its outcome.
        earlier = in_flight.get(key)
        if earlier is not None:
            await asyncio.shield(earlier)
            return notice
        if key in seen:
            return notice

        outcome = asyncio.get_running_loop().create_future()
        in_flight[key] = outcome
        try:
            content = await tools.get_file_content(path, start, end)
        except Exception as e:
            outcome.set_exception(e)
            # Mark retrieved; duplicates still receive the error.
            outcome.exception()
            raise
        except BaseException:
            outcome.cancel()
            raise
        seen.add(key)
        outcome.set_result(None)
        return ToolResult(content=content)

    async def run_tool_call(
        call: ToolCall,
        seen: set[SeenRequest],
        in_flight: dict[SeenRequest, asyncio.Future],
    ) -> ToolOutcome:
        """Execute one call; every outcome becomes exactly one tool message."""
        commented_file = None
        try:
            if call.error:
                raise ValidationError(call.error)

            if call.name == GET_FILE_CONTENT:
                result = await get_file_content(call, seen, in_flight)
            elif call.name == ADD_REVIEW_COMMENT:
                path = require_string(call.args, "file_name")
                result = await tools.add_review_comment(
                    path,
                    call.args.get("start_line_number"),
                    call.args.get("end_line_number"),
                    call.args.get("found_error_description"),
                    call.args.get("side") or "RIGHT",
                )
                if not result.is_error:
                    commented_file = path
            elif call.name == EDIT_FILE and tools.editor is not None:
                content = await tools.edit_file(
                    require_string(call.args, "file_path"),
                    require_string(call.args, "new_content", allow_empty=True),
                    require_string(call.args, "commit_message"),
                )
                result = ToolResult(content=content)
            elif call.name == MARK_AS_DONE:
                raise ValidationError("Argument 'brief_summary' is required and must be a non-empty string")
            else:
                result = ToolResult(content=f"Unknown tool: {call.name}", is_error=True)
        except ValidationError as e:
            report_error(e, f"Invalid {call.name} call")
            result = ToolResult(content=e.message, is_error=True)
        except ReviewError as e:
            report_error(e, f"Tool {call.name} failed")
            result = ToolResult(content=f"Error: {e.message}", is_error=True)

        message = ToolMessage(
            content=result.content,
            tool_call_id=call.id,
            name=call.name,
            status="error" if result.is_error else "success",
        )
        return ToolOutcome(message=message, commented_file=commented_file)

    async def execute_tools_node(state: ReviewState) -> dict:
        """Run the pending calls concurrently and record their results."""
        calls = state["pending_calls"]
        summary = None
        batch = []
        for call in calls:
            summary = completion_summary(call)
            if summary is not None:
                break
            batch.append(call)

        if summary is not None and len(batch) + 1 < len(calls):
            logger.info(f"mark_as_done called; skipping {len(calls) - len(batch) - 1} later tool calls")

        seen = set(state["seen_tool_calls"])
        in_flight: dict[SeenRequest, asyncio.Future] = {}
        outcomes = await asyncio.gather(*(run_tool_call(call, seen, in_flight) for call in batch))

        reviewed_files = set(state["reviewed_files"])
        comments_made = state["comments_made"]
        for outcome in outcomes:
            if outcome.commented_file:
                reviewed_files.add(outcome.commented_file)
                comments_made += 1

        update = {
            "messages": [outcome.message for outcome in outcomes],
            "pending_calls": [],
            "seen_tool_calls": seen,
            "reviewed_files": reviewed_files,
            "comments_made": comments_made,
        }
        if summary is not None:
            logger.info("Review marked as done")
            update.update(summary=summary, done=True, completed=True)
        return update

    def route_after_tools(state: ReviewState) -> Literal["call_model", "__end__"]:
        return END if state["done"] else "call_model"

    # Build the graph
    graph = StateGraph(ReviewState)

    graph.add_node("call_model", call_model_node)
    graph.add_node("execute_tools", execute_tools_node)

    graph.set_entry_point("call_model")

    graph.add_conditional_edges(
        "call_model",
        route_after_model,
        {
            "execute_tools": "execute_tools",
            END: END,
        },
    )
    graph.add_conditional_edges(
        "execute_tools",
        route_after_tools,
        {
            "call_model": "call_model",
            END: END,
        },
    )

    return graph.compile()
