"""Custom exception hierarchy for filterbar.

Exception Hierarchy:
    FilterBarError (base)
    ├── CandidateFetchError - data-fetch collaborator failed (retryable)
    ├── CandidateSourceError - candidate file missing or malformed
    ├── ConfigurationError - settings/environment issues
    └── UnknownFilterKeyError - registry lookup for a key that is not registered

Typing an unknown key into the query never raises; these errors are for
callers that ask for something specific (CLI arguments, fetchers).

Usage:
    from filterbar.exceptions import CandidateFetchError

    try:
        candidates = await fetcher(scope_key, filter_key)
    except OSError as e:
        raise CandidateFetchError("Fetch failed", scope_key=scope_key) from e
"""

from typing import Any, Optional


class FilterBarError(Exception):
    """Base exception for all filterbar errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about the error (scope, key, path)
        retryable: Whether this error might succeed on retry
    """

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        **context: Any,
    ) -> None:
        self.message = message
        self.context = context
        self.retryable = retryable
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class CandidateFetchError(FilterBarError):
    """Fetching the candidate list for a filter key failed."""

    def __init__(
        self,
        message: str = "Candidate fetch failed",
        *,
        scope_key: Optional[str] = None,
        filter_key: Optional[str] = None,
        **context: Any,
    ) -> None:
        if scope_key is not None:
            context["scope_key"] = scope_key
        if filter_key is not None:
            context["filter_key"] = filter_key
        super().__init__(message, retryable=True, **context)


class CandidateSourceError(FilterBarError):
    """A candidate file could not be read or has the wrong shape."""

    def __init__(
        self,
        message: str = "Invalid candidate source",
        *,
        path: Optional[str] = None,
        **context: Any,
    ) -> None:
        if path:
            context["path"] = path
        super().__init__(message, **context)


class ConfigurationError(FilterBarError):
    """Invalid or missing configuration."""

    def __init__(
        self,
        message: str = "Configuration error",
        *,
        setting: Optional[str] = None,
        **context: Any,
    ) -> None:
        if setting:
            context["setting"] = setting
        super().__init__(message, **context)


class UnknownFilterKeyError(FilterBarError):
    """A filter key was requested that the registry does not know."""

    def __init__(self, key: str, **context: Any) -> None:
        self.key = key
        super().__init__(f"Unknown filter key '{key}'", **context)
