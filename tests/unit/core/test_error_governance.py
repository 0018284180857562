import json
from unittest.mock import MagicMock

from app.shared.core import error_governance
from app.shared.core.error_governance import GENERIC_SERVER_ERROR_MESSAGE, handle_exception
from app.shared.core.exceptions import (
    AdapterError,
    AssumeRoleError,
    InvalidRequestError,
    ResourceNotFoundError,
)


def _request(path: str = "/api/v1/s3/production") -> MagicMock:
    request = MagicMock()
    request.url.path = path
    request.method = "GET"
    return request


def _body(response) -> dict:
    return json.loads(response.body)["error"]


def test_not_found_keeps_its_message():
    response = handle_exception(_request(), ResourceNotFoundError("Bucket not found"))

    assert response.status_code == 404
    assert _body(response)["message"] == "Bucket not found"
    assert _body(response)["code"] == "not_found"


def test_invalid_request_is_400():
    response = handle_exception(
        _request(), InvalidRequestError("Missing required query parameter: name")
    )

    assert response.status_code == 400
    assert _body(response)["message"] == "Missing required query parameter: name"


def test_adapter_error_is_sanitized():
    exc = AdapterError(
        "AWS s3.list_buckets failed: AccessDenied",
        details={"aws_error_code": "AccessDenied"},
    )

    response = handle_exception(_request(), exc)

    body = _body(response)
    assert response.status_code == 500
    assert body["message"] == GENERIC_SERVER_ERROR_MESSAGE
    assert body["details"] is None
    assert body["code"] == "adapter_error"


def test_assume_role_error_is_sanitized():
    exc = AssumeRoleError(
        "AssumeRole failed for production",
        details={"role_arn": "arn:aws:iam::123456789012:role/InventoryReadOnly"},
    )

    response = handle_exception(_request(), exc)

    assert response.status_code == 500
    assert "123456789012" not in response.body.decode()


def test_raw_exception_becomes_internal_error():
    response = handle_exception(_request(), RuntimeError("boom"), error_id="err-1")

    body = _body(response)
    assert response.status_code == 500
    assert body == {
        "message": GENERIC_SERVER_ERROR_MESSAGE,
        "code": "internal_error",
        "id": "err-1",
        "details": None,
    }


def test_value_error_is_400():
    response = handle_exception(_request(), ValueError("bad input"))

    assert response.status_code == 400
    assert _body(response)["message"] == "bad input"


def test_handler_records_a_span(monkeypatch):
    tracer = MagicMock()
    monkeypatch.setattr(error_governance, "tracer", tracer)

    handle_exception(_request(), AdapterError("AWS s3.list_buckets failed: AccessDenied"))

    assert tracer.start_as_current_span.call_args.args[0] == "handle_exception"
    span = tracer.start_as_current_span.return_value.__enter__.return_value
    span.record_exception.assert_called_once()
