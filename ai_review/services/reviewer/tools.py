"""Review tools exposed to the model."""

from typing import Awaitable, Callable, Optional, Protocol

from ai_review.core.exceptions import ToolExecutionError, ValidationError, report_error
from ai_review.core.logging import get_logger
from ai_review.services.reviewer.cache import ContentCache
from ai_review.services.reviewer.context import LINE_SPAN, render_window, validate_line_range
from ai_review.services.reviewer.schemas import ToolResult, ToolSpec

logger = get_logger("reviewer.tools")

# (text, path, side, start_line, end_line)
FileCommentator = Callable[[str, str, str, int, int], Awaitable[None]]

VALID_SIDES = ("LEFT", "RIGHT")

GET_FILE_CONTENT = "get_file_content"
ADD_REVIEW_COMMENT = "add_review_comment"
MARK_AS_DONE = "mark_as_done"
EDIT_FILE = "edit_file"

COMMENT_SUCCESS = "Success! The review comment has been published."


class FileEditor(Protocol):
    """Commits whole-file replacements to the pull request branch."""

    async def get_file_sha(self, path: str) -> Optional[str]: ...

    async def create_or_update_file(
        self,
        path: str,
        content: str,
        sha: Optional[str],
        commit_message: str,
    ) -> None: ...


GET_FILE_CONTENT_SPEC = ToolSpec(
    name=GET_FILE_CONTENT,
    description="Retrieves file content for context",
    parameters={
        "type": "object",
        "properties": {
            "path_to_file": {
                "type": "string",
                "description": "The fully qualified path to the file",
            },
            "start_line_number": {
                "type": "integer",
                "description": (
                    "The starting line from the file content to retrieve, counting from one. "
                    "It must not be past the end of the file."
                ),
            },
            "end_line_number": {
                "type": "integer",
                "description": "The ending line from the file content to retrieve, counting from one",
            },
        },
        "required": ["path_to_file", "start_line_number", "end_line_number"],
    },
)

ADD_REVIEW_COMMENT_SPEC = ToolSpec(
    name=ADD_REVIEW_COMMENT,
    description=(
        "Adds a review comment to a specific range of lines in the pull request diff. "
        "To suggest a specific code change for a line or range of lines, format the "
        "'found_error_description' using GitHub's suggestion markdown: "
        "```suggestion\\n[your new code]\\n```. Ensure the line numbers correctly target "
        "the area for the suggestion."
    ),
    parameters={
        "type": "object",
        "properties": {
            "file_name": {
                "type": "string",
                "description": "The relative path to the file that necessitates a comment",
            },
            "start_line_number": {
                "type": "integer",
                "description": (
                    "The starting line number where the comment should begin. "
                    "It must be inside a diff hunk."
                ),
            },
            "end_line_number": {
                "type": "integer",
                "description": (
                    "The ending line number where the comment should end. It must be inside "
                    "the same diff hunk and not less than start_line_number. Use the same value "
                    "as start_line_number for a single-line comment."
                ),
            },
            "found_error_description": {
                "type": "string",
                "description": "The review comment content",
            },
            "side": {
                "type": "string",
                "description": (
                    "In a split diff view, the side of the diff that the pull request's changes "
                    "appear on. Use LEFT only for deletions. Use RIGHT for additions/changes. "
                    "For a multi-line comment, side represents whether the last line of the "
                    "comment range is a deletion or addition. If unknown prefer RIGHT."
                ),
                "enum": list(VALID_SIDES),
            },
        },
        "required": ["file_name", "start_line_number", "end_line_number", "found_error_description"],
    },
)

MARK_AS_DONE_SPEC = ToolSpec(
    name=MARK_AS_DONE,
    description="Marks the code review as completed and provides a brief summary of the changes",
    parameters={
        "type": "object",
        "properties": {
            "brief_summary": {
                "type": "string",
                "description": (
                    "A brief summary of the changes reviewed. Do not repeat comments. "
                    "Focus on overall quality and any patterns observed."
                ),
            },
        },
        "required": ["brief_summary"],
    },
)

EDIT_FILE_SPEC = ToolSpec(
    name=EDIT_FILE,
    description=(
        "Edits an existing file by replacing its entire content. This creates a new commit on "
        "the pull request's current branch. Use this for significant revisions where a targeted "
        "suggestion isn't practical. Provide a concise and descriptive commit_message."
    ),
    parameters={
        "type": "object",
        "properties": {
            "file_path": {
                "type": "string",
                "description": "The relative path (from the repository root) to the file to be edited.",
            },
            "new_content": {
                "type": "string",
                "description": "The full new content of the file.",
            },
            "commit_message": {
                "type": "string",
                "description": "The commit message for this change.",
            },
        },
        "required": ["file_path", "new_content", "commit_message"],
    },
)


def review_tool_specs(include_edit: bool = False) -> list[ToolSpec]:
    """Tool definitions offered to the model."""
    specs = [GET_FILE_CONTENT_SPEC, ADD_REVIEW_COMMENT_SPEC, MARK_AS_DONE_SPEC]
    if include_edit:
        specs.append(EDIT_FILE_SPEC)
    return specs


def require_string(args: dict, name: str, allow_empty: bool = False) -> str:
    """Read a required string argument from decoded tool arguments."""
    value = args.get(name)
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise ValidationError(f"Argument '{name}' is required and must be a non-empty string")
    return value


class ReviewTools:
    """Executes review tool calls against the injected collaborators."""

    def __init__(
        self,
        cache: ContentCache,
        commentator: FileCommentator,
        editor: Optional[FileEditor] = None,
        line_span: int = LINE_SPAN,
    ) -> None:
        self.cache = cache
        self.commentator = commentator
        self.editor = editor
        self.line_span = line_span

    @property
    def specs(self) -> list[ToolSpec]:
        return review_tool_specs(include_edit=self.editor is not None)

    async def get_file_content(self, path: str, start_line: object, end_line: object) -> str:
        """Return a numbered excerpt of ``path`` around the requested lines.

        Raises:
            ValidationError: If the range is invalid
            ToolExecutionError: If the content could not be fetched
        """
        start, end = validate_line_range(start_line, end_line)
        content = await self.cache.get_or_fetch(path)
        return render_window(path, content, start, end, self.line_span)

    async def add_review_comment(
        self,
        path: str,
        start_line: object,
        end_line: object,
        description: str,
        side: object = "RIGHT",
    ) -> ToolResult:
        """Validate a comment and post it through the commentator.

        Errors are returned as the tool result so the model can retry.
        A comment is single-line when ``start_line == end_line``.
        """
        try:
            start, end = validate_line_range(start_line, end_line)
            normalized_side = "RIGHT" if side is None else str(side).strip().upper()
            if normalized_side not in VALID_SIDES:
                raise ValidationError(f"Side must be LEFT or RIGHT, got {side!r}")
            if not isinstance(description, str) or not description.strip():
                raise ValidationError("Comment description must be a non-empty string")
        except ValidationError as e:
            report_error(e, "Validation error")
            return ToolResult(content=e.message, is_error=True)

        try:
            await self.commentator(description, path, normalized_side, start, end)
        except Exception as e:
            report_error(e, "Error creating review comment")
            return ToolResult(
                content=(
                    "Error! Please ensure that the lines you specify for the comment are part "
                    f"of the DIFF! Error message: {e}"
                ),
                is_error=True,
            )

        kind = "single-line" if start == end else "range"
        logger.info(f"Posted {kind} comment on {path}:{start}-{end} ({normalized_side})")
        return ToolResult(content=COMMENT_SUCCESS)

    async def edit_file(self, path: str, new_content: str, commit_message: str) -> str:
        """Replace a file on the pull request branch.

        Raises:
            ToolExecutionError: If editing is not configured or the commit fails
        """
        if self.editor is None:
            raise ToolExecutionError(EDIT_FILE, "File editing is not enabled for this review.")
        try:
            logger.info(f"Editing file: {path}")
            sha = await self.editor.get_file_sha(path)
            await self.editor.create_or_update_file(path, new_content, sha, commit_message)
        except Exception as e:
            raise ToolExecutionError(EDIT_FILE, f"Failed to edit file {path}: {e}") from e
        return f'Successfully edited file: {path} and committed with message: "{commit_message}"'
