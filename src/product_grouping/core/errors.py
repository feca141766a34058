"""Error codes and user-friendly messages.

This module defines the error catalog for product grouping operations.
Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

# Error catalog for mapping, merge and suggestion operations
ERROR_CATALOG: dict[str, dict] = {
    "MAP_001": {
        "code": "MAP_001",
        "message": "Mapping already exists for this product name",
        "user_message": "This product is already mapped.",
        "suggestion": "Edit the existing mapping instead of creating a new one.",
        "retry_allowed": False,
    },
    "MAP_002": {
        "code": "MAP_002",
        "message": "Cluster members have mixed categories and no category was given",
        "user_message": "These products belong to different categories.",
        "suggestion": "Choose a category for the merged group.",
        "retry_allowed": True,
    },
    "MAP_003": {
        "code": "MAP_003",
        "message": "Global mappings can only be changed by an administrator",
        "user_message": "You can't change shared product groups.",
        "suggestion": "Set a personal category override instead.",
        "retry_allowed": False,
    },
    "MAP_004": {
        "code": "MAP_004",
        "message": "Mapping not found",
        "user_message": "We couldn't find this product mapping.",
        "suggestion": "It may already have been removed. Please refresh.",
        "retry_allowed": False,
    },
    "MAP_005": {
        "code": "MAP_005",
        "message": "Invalid merge request",
        "user_message": "This merge can't be applied.",
        "suggestion": "Select at least two products or groups and give the group a name.",
        "retry_allowed": False,
    },
    "AI_001": {
        "code": "AI_001",
        "message": "AI suggestion service failed or returned an unreadable response",
        "user_message": "We couldn't generate suggestions right now.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "AI_002": {
        "code": "AI_002",
        "message": "AI suggestion service is not configured",
        "user_message": "AI suggestions are not available.",
        "suggestion": "Use the similarity-based suggestions instead.",
        "retry_allowed": False,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database write failed for a mapping row",
        "user_message": "We couldn't save some of your changes.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request data failed validation",
        "user_message": "Invalid input data.",
        "suggestion": "Please check your input and try again.",
        "retry_allowed": True,
    },
    "API_001": {
        "code": "API_001",
        "message": "Invalid category",
        "user_message": "That category isn't supported.",
        "suggestion": "Please choose a category from the allowed list.",
        "retry_allowed": False,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details (a generic definition for unknown codes)
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def get_user_message(error_code: str) -> str:
    """Get user-friendly message for an error code."""
    return get_error(error_code)["user_message"]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
