"""Custom exception classes for product grouping.

Each exception maps to an error code defined in errors.py. Row-level
failures inside a batch are not raised; they are collected into a
BatchResult (see schemas/grouping.py).
"""

from typing import Any


class GroupingError(Exception):
    """Base exception for all grouping errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "MAP_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return
    """

    default_code = "UNKNOWN"
    default_status = 500

    def __init__(
        self,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
    ):
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.http_status = http_status or self.default_status
        super().__init__(self.error_code)


class ConflictError(GroupingError):
    """A mapping for (user_id, original_name) already exists."""

    default_code = "MAP_001"
    default_status = 409


class CategoryRequiredError(GroupingError):
    """A mixed-category cluster was accepted without an explicit category."""

    default_code = "MAP_002"
    default_status = 400


class PermissionDeniedError(GroupingError):
    """A non-administrative caller tried to mutate or delete global data."""

    default_code = "MAP_003"
    default_status = 403


class NotFoundError(GroupingError):
    """The mapping no longer exists.

    Inside batches this is treated as already resolved (the row is
    counted as skipped, not failed).
    """

    default_code = "MAP_004"
    default_status = 404


class InvalidMergeError(GroupingError):
    """Merge input is unusable: too few groups/products or an empty name."""

    default_code = "MAP_005"
    default_status = 400


class SuggestionSourceError(GroupingError):
    """The AI suggestion collaborator failed or returned garbage."""

    default_code = "AI_001"
    default_status = 502
