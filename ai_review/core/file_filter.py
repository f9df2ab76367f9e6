"""Select which changed files of a pull request get reviewed."""

import re

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")
_PATH_UNSAFE = re.compile(r"[^\w\-./\\, ]")


def sanitize_input(value: str | None) -> str:
    """Strip non-printable characters and surrounding whitespace."""
    if value is None:
        return ""
    return _NON_PRINTABLE.sub("", str(value)).strip()


def sanitize_path_list(value: str | None) -> str:
    """Sanitize a comma-separated path list, collapsing ``..`` segments."""
    cleaned = sanitize_input(value)
    cleaned = re.sub(r"\.{2,}", ".", cleaned)
    return _PATH_UNSAFE.sub("_", cleaned)


def parse_extensions(value: str | None) -> list[str]:
    """Parse ``".py, js"`` into ``[".py", ".js"]``."""
    extensions = []
    for item in sanitize_input(value).split(","):
        item = item.strip().replace("\\", "/")
        if not item:
            continue
        extensions.append(item if item.startswith(".") else f".{item}")
    return extensions


def parse_paths(value: str | None) -> list[str]:
    """Parse ``"src, docs/"`` into ``["src/", "docs/"]``."""
    paths = []
    for item in sanitize_path_list(value).split(","):
        item = item.strip().replace("\\", "/")
        if not item:
            continue
        paths.append(item if item.endswith("/") else f"{item}/")
    return paths


def is_file_to_review(
    filename: str,
    include_extensions: list[str],
    exclude_extensions: list[str],
    include_paths: list[str],
    exclude_paths: list[str],
) -> bool:
    """Check a single path against the include/exclude rules. Exclusion wins."""
    normalized = filename.replace("\\", "/")

    if include_extensions and not any(normalized.endswith(ext) for ext in include_extensions):
        return False
    if any(normalized.endswith(ext) for ext in exclude_extensions):
        return False
    if include_paths and not any(normalized.startswith(path) for path in include_paths):
        return False
    if any(normalized.startswith(path) for path in exclude_paths):
        return False
    return True


def filter_changed_files(
    files: list[dict],
    include_extensions: str | None = None,
    exclude_extensions: str | None = None,
    include_paths: str | None = None,
    exclude_paths: str | None = None,
) -> list[dict]:
    """Filter changed-file dicts using comma-separated rule strings.

    Args:
        files: Changed files, each with a ``filename`` key
        include_extensions: Only keep files with one of these suffixes
        exclude_extensions: Drop files with one of these suffixes
        include_paths: Only keep files under one of these directories
        exclude_paths: Drop files under one of these directories

    Returns:
        The files that should be reviewed, in their original order
    """
    rules = (
        parse_extensions(include_extensions),
        parse_extensions(exclude_extensions),
        parse_paths(include_paths),
        parse_paths(exclude_paths),
    )
    return [f for f in files if is_file_to_review(f["filename"], *rules)]
