"""
Data formatting utilities.
"""

from typing import Any, Dict


def format_error_response(error: Exception, status_code: int = 500, include_detail: bool = True) -> Dict[str, Any]:
    """
    Format error response for API.

    Args:
        error: Exception object
        status_code: HTTP status code
        include_detail: Whether to expose the exception's longer explanation

    Returns:
        Formatted error response dictionary
    """
    response = {
        "error": error.__class__.__name__,
        "detail": str(error),
        "status_code": status_code,
    }

    # Custom exceptions carry an optional longer explanation
    if include_detail and getattr(error, "detail", None):
        response["message"] = str(error)
        response["detail"] = error.detail

    return response
