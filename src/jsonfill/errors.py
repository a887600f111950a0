from __future__ import annotations


class JsonfillError(Exception):
    """Base class for errors raised by jsonfill."""


class ConfigurationError(JsonfillError, ValueError):
    """Raised when a schema falls outside the supported subset."""


class MarkerNotFoundError(JsonfillError, RuntimeError):
    """Raised when the pending generation position does not resolve in the output tree."""

    def __init__(self, path: tuple, message: str | None = None) -> None:
        self.path = tuple(path)
        super().__init__(message or f"Failed to find generation marker at path {list(self.path)!r}")


class GenerationFailure(JsonfillError, RuntimeError):
    """Raised when the model fails to produce a parseable value within the retry ceiling."""

    def __init__(self, message: str, *, attempts: int, last_response: str | None = None) -> None:
        self.attempts = attempts
        self.last_response = last_response
        super().__init__(message)


__all__ = [
    "JsonfillError",
    "ConfigurationError",
    "MarkerNotFoundError",
    "GenerationFailure",
]
