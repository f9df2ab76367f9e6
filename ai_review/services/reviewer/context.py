"""Line-range validation and numbered file excerpts."""

from ai_review.core.exceptions import ValidationError

LINE_SPAN = 20


def coerce_line_number(value: object) -> int | None:
    """Return ``value`` as a positive int, or None if it is not one.

    Integral floats such as ``12.0`` are accepted because some providers
    encode every JSON number as a double.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 1:
        return value
    return None


def validate_line_range(start_line: object, end_line: object) -> tuple[int, int]:
    """Validate a 1-indexed inclusive line range.

    Returns:
        The range as ``(start, end)`` ints

    Raises:
        ValidationError: Naming the first bound that is invalid
    """
    start = coerce_line_number(start_line)
    if start is None:
        raise ValidationError("Start line number must be a positive integer", {"start_line": start_line})
    end = coerce_line_number(end_line)
    if end is None:
        raise ValidationError("End line number must be a positive integer", {"end_line": end_line})
    if start > end:
        raise ValidationError(
            "Start line number cannot be greater than end line number",
            {"start_line": start, "end_line": end},
        )
    return start, end


def split_lines(content: str) -> list[str]:
    """Split file content on ``\\n`` only, so numbers match the real file.

    A trailing newline does not start an extra line and a ``\\r`` before
    each break is dropped.
    """
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def render_window(
    path: str,
    content: str,
    start_line: int,
    end_line: int,
    span: int = LINE_SPAN,
) -> str:
    """Render lines ``start_line..end_line`` of a file, padded by ``span`` lines.

    Every line keeps its real 1-indexed number so the model can place
    comments against the file.
    """
    start_line, end_line = validate_line_range(start_line, end_line)
    lines = split_lines(content)

    if not lines:
        return f"```{path}\n\n```"
    if start_line > len(lines):
        raise ValidationError(
            f"Start line {start_line} is beyond the end of {path} ({len(lines)} lines)",
            {"start_line": start_line, "line_count": len(lines)},
        )

    start_index = max(0, start_line - 1 - span)
    end_index = min(len(lines), end_line + span)
    width = len(str(len(lines)))

    numbered = [
        f"{number:>{width}} | {line}"
        for number, line in enumerate(lines[start_index:end_index], start=start_index + 1)
    ]
    body = "\n".join(numbered)
    return f"```{path}\n{body}\n```"
