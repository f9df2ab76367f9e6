"""Prompt templates using Jinja2."""

import json
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

PROMPTS_DIR = Path(__file__).parent
_env = Environment(loader=FileSystemLoader(PROMPTS_DIR), keep_trailing_newline=False)


def render_system_prompt(
    review_rules: str | None = None,
    file_edits_enabled: bool = False,
) -> str:
    """Render the reviewer system prompt."""
    template = _env.get_template("system_prompt.jinja2")
    return template.render(
        review_rules=review_rules.strip() if review_rules else None,
        file_edits_enabled=file_edits_enabled,
    )


def render_review_request(changed_files: list[dict]) -> str:
    """Render the first user message listing the changed files."""
    template = _env.get_template("review_request.jinja2")
    return template.render(
        file_count=len(changed_files),
        changed_files_json=json.dumps(changed_files, indent=2),
    )
