"""Exceptions raised by the review action."""

from loguru import logger


class ReviewError(Exception):
    """Base exception for all review errors."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ReviewError):
    """Missing or invalid action input."""


class ValidationError(ReviewError):
    """Tool arguments failed validation."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(f"Error: {message}", details)


class ToolExecutionError(ReviewError):
    """A tool's external collaborator failed."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(message, {"tool": tool})


class ModelCallError(ReviewError):
    """The model provider could not be reached or rejected the request."""

    def __init__(self, provider: str, model: str, message: str) -> None:
        self.provider = provider
        self.model = model
        super().__init__(f"{provider} API error ({model}): {message}", {"provider": provider, "model": model})


class ProtocolError(ReviewError):
    """The model provider returned a response that cannot be interpreted."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"Invalid response from {provider}: {message}", {"provider": provider})


class ExternalServiceError(ReviewError):
    """External service (GitHub) error outside the tool protocol."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service} error: {message}", {"service": service})


def report_error(error: BaseException, message: str) -> str:
    """Log an error with its traceback and return the text shown to the model.

    Args:
        error: The exception being handled
        message: Context prefix for the log line

    Returns:
        Human-readable ``"<message>: <error>"`` text
    """
    text = f"{message}: {error}"
    logger.opt(exception=error).error(text)
    return text
