from typing import Any

from docbridge.models import ToolResult


class DocBridgeError(Exception):
    """
    base class for every error raised deliberately by docbridge.
    """


class ConfigError(DocBridgeError):
    pass


class InvalidParameterError(DocBridgeError):
    pass


class FileError(DocBridgeError):
    pass


class PathEscapeError(FileError):
    pass


class SameFileError(FileError):
    pass


class MissingFileError(FileError):
    pass


class NotAFileError(FileError):
    pass


class KeyCollisionError(FileError):
    pass


class ApiError(DocBridgeError):
    """
    ApiError is raised for every non-success response from the
    document service. It keeps the HTTP status, the best-effort
    message taken from the error body and the credit usage header
    when the service reported one.
    """

    def __init__(
        self,
        status: "int",
        message: "str",
        credits_used: "float | None" = None,
        details: "Any" = None,
    ) -> "None":
        super().__init__(message)
        self.status = status
        self.message = message
        self.credits_used = credits_used
        self.details = details


class RequestTimeoutError(DocBridgeError):
    def __init__(self, timeout_seconds: "float") -> "None":
        super().__init__(f"Request timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


def format_error(exc: "BaseException") -> "ToolResult":
    """
    converts any exception into the uniform failed ToolResult. The
    message prefix names the error kind so callers can match on it.
    """
    if isinstance(exc, ApiError):
        return ToolResult(
            success=False,
            error=f"API error ({exc.status}): {exc.message}",
            credits_used=exc.credits_used,
        )
    if isinstance(exc, RequestTimeoutError):
        return ToolResult(success=False, error=f"Timeout error: {exc}")
    if isinstance(exc, FileError):
        return ToolResult(success=False, error=f"File error: {exc}")
    if isinstance(exc, ConfigError):
        return ToolResult(success=False, error=f"Configuration error: {exc}")
    if isinstance(exc, InvalidParameterError):
        return ToolResult(success=False, error=f"Invalid parameters: {exc}")
    return ToolResult(success=False, error=f"Unexpected error: {exc}")
