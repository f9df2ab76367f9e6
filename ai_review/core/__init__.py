"""Shared library utilities."""

from ai_review.core.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    ModelCallError,
    ProtocolError,
    ReviewError,
    ToolExecutionError,
    ValidationError,
    report_error,
)

__all__ = [
    "ConfigurationError",
    "ExternalServiceError",
    "ModelCallError",
    "ProtocolError",
    "ReviewError",
    "ToolExecutionError",
    "ValidationError",
    "report_error",
]
