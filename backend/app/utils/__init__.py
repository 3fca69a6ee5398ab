"""
Utility modules for the Zanai Flowise bridge.
"""

from .exceptions import (
    ZanaiException,
    TemplateImportError,
    FlowDataSchemaError,
    WorkflowNotFoundError,
    FlowiseServiceError,
    LLMServiceError,
)

__all__ = [
    "ZanaiException",
    "TemplateImportError",
    "FlowDataSchemaError",
    "WorkflowNotFoundError",
    "FlowiseServiceError",
    "LLMServiceError",
]
