import pytest

from app.core.exceptions import status_code_for
from app.utils.exceptions import (
    FlowDataSchemaError,
    FlowiseServiceError,
    LLMServiceError,
    TemplateImportError,
    WorkflowNotFoundError,
    ZanaiException,
)
from app.utils.formatters import format_error_response


@pytest.mark.parametrize(
    "exc, expected",
    [
        (TemplateImportError("bad"), 400),
        (WorkflowNotFoundError("abc"), 404),
        (FlowDataSchemaError("bad"), 422),
        (FlowiseServiceError("down", status_code=503), 500),
        (LLMServiceError("down"), 500),
        (ZanaiException("unknown"), 500),
    ],
)
def test_status_code_for(exc, expected):
    assert status_code_for(exc) == expected


def test_status_code_for_subclass():
    class EmptyTemplateError(TemplateImportError):
        pass

    assert status_code_for(EmptyTemplateError("empty")) == 400


def test_format_error_response_without_detail():
    response = format_error_response(WorkflowNotFoundError("abc"), 404)

    assert response == {
        "error": "WorkflowNotFoundError",
        "detail": "Workflow not found: abc",
        "status_code": 404,
    }


def test_format_error_response_with_detail():
    response = format_error_response(FlowiseServiceError("502 Bad Gateway", detail="upstream down"), 500)

    assert response["detail"] == "upstream down"
    assert response["message"] == "Flowise API error: 502 Bad Gateway"


def test_format_error_response_can_hide_detail():
    error = FlowiseServiceError("502 Bad Gateway", detail="<html>upstream stack trace</html>")

    response = format_error_response(error, 500, include_detail=False)

    assert response == {
        "error": "FlowiseServiceError",
        "detail": "Flowise API error: 502 Bad Gateway",
        "status_code": 500,
    }
