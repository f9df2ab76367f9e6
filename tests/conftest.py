"""Shared fakes for the review loop tests."""

import asyncio
import itertools
from collections import Counter
from typing import Sequence

import pytest

from ai_review.services.reviewer.schemas import ModelTurn, ToolCall, ToolSpec

_call_ids = itertools.count(1)


def make_call(name: str, **args) -> ToolCall:
    """Build a tool call with a unique id."""
    return ToolCall(id=f"call_{next(_call_ids)}", name=name, args=args)


def make_turn(*calls: ToolCall, text: str = "") -> ModelTurn:
    """Build a model turn carrying the given tool calls."""
    return ModelTurn.from_parts(text, list(calls))


class ScriptedProvider:
    """Replays a fixed list of turns (or exceptions) and records each request."""

    name = "fake"
    model = "fake-model"

    def __init__(self, turns: Sequence) -> None:
        self.turns = list(turns)
        self.requests: list[dict] = []

    async def send_turn(self, system_prompt, history, tools) -> ModelTurn:
        self.requests.append({
            "system_prompt": system_prompt,
            "history": list(history),
            "tools": [spec.name for spec in tools],
        })
        if not self.turns:
            raise AssertionError("Model called more times than scripted")
        turn = self.turns.pop(0)
        if isinstance(turn, BaseException):
            raise turn
        return turn


class FakeRepository:
    """In-memory file store standing in for the GitHub collaborators."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = dict(files or {})
        self.fetches: Counter[str] = Counter()
        self.comments: list[dict] = []
        self.reject_comments = False
        self.fetch_delay = 0.0

    async def get_content(self, path: str) -> str:
        self.fetches[path] += 1
        await asyncio.sleep(self.fetch_delay)
        if path not in self.files:
            raise FileNotFoundError(f"404 Not Found: {path}")
        return self.files[path]

    async def comment(self, text: str, path: str, side: str, start_line: int, end_line: int) -> None:
        if self.reject_comments:
            raise RuntimeError("Validation Failed: pull_request_review_thread.line must be part of the diff")
        self.comments.append({
            "text": text,
            "path": path,
            "side": side,
            "start_line": start_line,
            "end_line": end_line,
        })


class FakeEditor:
    """Records whole-file commits."""

    def __init__(self, shas: dict[str, str] | None = None) -> None:
        self.shas = dict(shas or {})
        self.commits: list[tuple] = []

    async def get_file_sha(self, path: str):
        return self.shas.get(path)

    async def create_or_update_file(self, path, content, sha, commit_message) -> None:
        self.commits.append((path, content, sha, commit_message))


def numbered_file(line_count: int) -> str:
    """A file whose line N reads ``line N``."""
    return "\n".join(f"line {n}" for n in range(1, line_count + 1)) + "\n"


@pytest.fixture
def repository():
    """Repository with one small and one 30-line file."""
    return FakeRepository({
        "src/app.py": "import os\n\ndef main():\n    return os.getcwd()\n",
        "src/long.py": numbered_file(30),
    })


@pytest.fixture
def editor():
    return FakeEditor({"src/app.py": "abc123"})


@pytest.fixture
def scripted():
    """Factory for a provider that replays the given turns."""
    return ScriptedProvider


@pytest.fixture
def call():
    return make_call


@pytest.fixture
def turn():
    return make_turn


@pytest.fixture
def tool_spec():
    return ToolSpec(
        name="get_file_content",
        description="Retrieves file content for context",
        parameters={
            "type": "object",
            "properties": {
                "path_to_file": {"type": "string", "description": "Path"},
                "side": {"type": "string", "enum": ["LEFT", "RIGHT"]},
            },
            "required": ["path_to_file"],
        },
    )
