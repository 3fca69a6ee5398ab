"""
Custom exception classes for the Zanai Flowise bridge.
"""

from typing import Optional


class ZanaiException(Exception):
    """Base exception for all Zanai errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class TemplateImportError(ZanaiException):
    """Raised when an imported Flowise template is malformed."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(f"Invalid template: {message}", detail)


class FlowDataSchemaError(ZanaiException):
    """Raised when a persisted flow-data blob does not match a known schema version."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(f"Flow data schema error: {message}", detail)


class WorkflowNotFoundError(ZanaiException):
    """Raised when a Flowise workflow record is not found."""

    def __init__(self, workflow_id: str, detail: Optional[str] = None):
        message = f"Workflow not found: {workflow_id}"
        super().__init__(message, detail)
        self.workflow_id = workflow_id


class FlowiseServiceError(ZanaiException):
    """Raised when a call to the remote Flowise API fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(f"Flowise API error: {message}", detail)
        self.status_code = status_code


class LLMServiceError(ZanaiException):
    """Raised when LLM service operations fail."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(f"LLM service error: {message}", detail)
