"""
Tests for the fault types and their HTTP mapping.
"""

import pytest
from fastapi import HTTPException, status

from core.errors import (
    ErrorCode,
    FilingError,
    ValidationError,
    NotFoundError,
    SessionNotFoundError,
    ApplicationNotFoundError,
    InvariantViolation,
    CollaboratorError,
    StoreError,
    BlobStoreError,
    RenderError,
    LLMError,
    handle_exception,
    raise_validation_error,
)


class TestErrorCode:
    def test_values_match_names(self):
        for code in ErrorCode:
            assert code.value == code.name

    @pytest.mark.parametrize("name", [
        "VALIDATION_ERROR",
        "INVALID_INPUT",
        "SESSION_NOT_FOUND",
        "APPLICATION_NOT_FOUND",
        "INVARIANT_VIOLATION",
        "STORE_ERROR",
        "RATE_LIMITED",
        "INTERNAL_ERROR",
    ])
    def test_expected_codes(self, name):
        assert ErrorCode[name].value == name


class TestFilingError:
    def test_defaults(self):
        error = FilingError()
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.status_code == 500
        assert error.details == {}
        assert str(error) == "Internal error"

    def test_overrides(self):
        error = FilingError(
            "Conflict",
            code=ErrorCode.CONFLICT,
            status_code=status.HTTP_409_CONFLICT,
            details={"field": "title"},
        )
        http_exc = error.to_http_exception()
        assert isinstance(http_exc, HTTPException)
        assert http_exc.status_code == 409
        assert http_exc.detail == {"code": "CONFLICT", "message": "Conflict", "field": "title"}

    def test_details_are_copied(self):
        details = {"field": "title"}
        error = ValidationError(details=details)
        details["field"] = "other"
        assert error.details == {"field": "title"}


class TestSubclasses:
    def test_validation_error(self):
        error = ValidationError()
        assert (error.status_code, error.code, error.message) == (400, ErrorCode.VALIDATION_ERROR, "Validation failed")

    def test_not_found(self):
        assert NotFoundError().status_code == 404
        assert NotFoundError("No generated documents").message == "No generated documents"

    def test_session_not_found(self):
        error = SessionNotFoundError("abc123")
        assert error.status_code == 404
        assert error.code == ErrorCode.SESSION_NOT_FOUND
        assert error.body() == {
            "code": "SESSION_NOT_FOUND",
            "message": "Filing session not found: abc123",
            "session_id": "abc123",
        }

    def test_application_not_found(self):
        error = ApplicationNotFoundError("app-1")
        assert isinstance(error, NotFoundError)
        assert error.code == ErrorCode.APPLICATION_NOT_FOUND
        assert error.details == {"application_id": "app-1"}

    def test_invariant_violation(self):
        error = InvariantViolation("Claim 2 depends on missing claim 9", details={"claims": ["2"]})
        assert error.status_code == 500
        assert error.code == ErrorCode.INVARIANT_VIOLATION
        assert error.details == {"claims": ["2"]}

    @pytest.mark.parametrize("error_cls,code", [
        (StoreError, ErrorCode.STORE_ERROR),
        (BlobStoreError, ErrorCode.BLOB_STORE_ERROR),
        (RenderError, ErrorCode.RENDER_ERROR),
        (LLMError, ErrorCode.LLM_ERROR),
    ])
    def test_collaborator_errors(self, error_cls, code):
        error = error_cls()
        assert isinstance(error, CollaboratorError)
        assert error.status_code == 503
        assert error.code == code
        assert error.message


class TestHandleException:
    def test_filing_error_keeps_status(self):
        assert handle_exception(SessionNotFoundError("abc")).status_code == 404

    def test_http_exception_passes_through(self):
        original = HTTPException(status_code=418, detail="teapot")
        assert handle_exception(original) is original

    def test_unknown_exception_is_sanitized(self):
        http_exc = handle_exception(RuntimeError("secret internals"))
        assert http_exc.status_code == 500
        assert http_exc.detail["code"] == "INTERNAL_ERROR"
        assert "secret" not in str(http_exc.detail)

    def test_custom_message(self):
        http_exc = handle_exception(RuntimeError("boom"), default_message="Saving failed")
        assert http_exc.detail["message"] == "Saving failed"


class TestRaiseValidationError:
    def test_names_the_field(self):
        with pytest.raises(ValidationError) as exc_info:
            raise_validation_error("session_id", "contains invalid characters")
        assert exc_info.value.code == ErrorCode.INVALID_INPUT
        assert exc_info.value.message == "Invalid session_id: contains invalid characters"
        assert exc_info.value.details == {"field": "session_id"}

    def test_value_truncated(self):
        with pytest.raises(ValidationError) as exc_info:
            raise_validation_error("owner_id", "bad", "x" * 300)
        assert len(exc_info.value.details["value"]) == 100
