"""
Tests for the intake error handling module.
"""

import asyncio
import logging

from errors import (
    ErrorCode,
    GENERIC_RETRY_MESSAGE,
    IntakeError,
    ValidationError,
    AIServiceError,
    MatterCreationError,
    ExternalServiceError,
    ConfigurationError,
    Result,
    error_response,
    success_response,
    user_message_for,
    handle_tool_errors,
    handle_async_tool_errors,
    log_error,
)


class TestErrorCodes:
    """Test error code enum."""

    def test_error_codes_are_strings(self):
        """Error codes should be string values."""
        assert ErrorCode.VALIDATION_MISSING_PARAM.value == "VALIDATION_MISSING_PARAM"
        assert ErrorCode.AI_TIMEOUT.value == "AI_TIMEOUT"

    def test_error_codes_have_categories(self):
        """Error codes should follow category naming convention."""
        validation_codes = [c for c in ErrorCode if c.value.startswith("VALIDATION_")]
        assert len(validation_codes) >= 5

        ai_codes = [c for c in ErrorCode if c.value.startswith("AI_")]
        assert len(ai_codes) >= 3


class TestIntakeError:
    """Test base IntakeError exception."""

    def test_basic_creation(self):
        """Create basic error with message."""
        err = IntakeError("Test error")
        assert err.message == "Test error"
        assert err.details is None
        assert err.code == ErrorCode.INTERNAL_UNEXPECTED
        assert err.retryable is False
        assert err.timestamp

    def test_with_details(self):
        """Details are kept for logs and shown by str()."""
        err = IntakeError("Test error", details="More info")
        assert err.details == "More info"
        assert str(err) == "Test error - More info"

    def test_context_is_redacted(self):
        """Sensitive context keys never survive construction."""
        err = IntakeError("Test error", email="jane.doe@example.com", tool="create_matter")
        assert err.context["tool"] == "create_matter"
        assert "jane.doe" not in err.context["email"]
        assert err.context["email"].endswith("@example.com")

    def test_unexpected_error_user_message_is_generic(self):
        """Internal failures never show their text to the client."""
        err = IntakeError("KeyError in matter builder")
        assert err.to_user_response() == GENERIC_RETRY_MESSAGE

    def test_to_dict(self):
        """Convert to a JSON-ready dict."""
        err = IntakeError("Boom", details="trace", tool="x")
        d = err.to_dict()
        assert d["code"] == "INTERNAL_UNEXPECTED"
        assert d["message"] == "Boom"
        assert d["details"] == "trace"
        assert d["retryable"] is False
        assert d["context"] == {"tool": "x"}

    def test_log_only_once(self, caplog):
        """Repeated log() calls emit a single record."""
        logger = logging.getLogger("test.errors.once")
        err = IntakeError("Boom")
        with caplog.at_level(logging.ERROR, logger="test.errors.once"):
            err.log(logger)
            err.log(logger)
        assert len([r for r in caplog.records if "Boom" in r.getMessage()]) == 1


class TestValidationError:
    """Test ValidationError reason mapping."""

    def test_reason_codes(self):
        """Each reason maps to its own code."""
        expected = {
            "missing": ErrorCode.VALIDATION_MISSING_PARAM,
            "placeholder": ErrorCode.VALIDATION_PLACEHOLDER,
            "format": ErrorCode.VALIDATION_INVALID_FORMAT,
            "no_contact": ErrorCode.VALIDATION_NO_CONTACT_METHOD,
            "unknown_tool": ErrorCode.VALIDATION_UNKNOWN_TOOL,
            None: ErrorCode.VALIDATION_ERROR,
        }
        for reason, code in expected.items():
            assert ValidationError("msg", reason=reason).code == code

    def test_message_shown_to_client(self):
        """Validation messages are phrased for the client and returned verbatim."""
        err = ValidationError("Could you share your phone number?", parameter="phone", reason="format")
        assert err.to_user_response() == "Could you share your phone number?"
        assert err.parameter == "phone"
        assert err.retryable is False


class TestServiceErrors:
    """Test AI, matter and external errors."""

    def test_ai_timeout_code(self):
        """error_type selects the AI code; the client sees the apology."""
        err = AIServiceError("timed out", model="m", error_type="timeout")
        assert err.code == ErrorCode.AI_TIMEOUT
        assert err.retryable is True
        assert err.to_user_response() == GENERIC_RETRY_MESSAGE
        assert err.context == {"model": "m"}

    def test_ai_circuit_open_code(self):
        err = AIServiceError("open", error_type="circuit_open")
        assert err.code == ErrorCode.AI_CIRCUIT_OPEN

    def test_matter_creation_user_message(self):
        """Submission failures tell the client their data is kept."""
        err = MatterCreationError("HTTP 500 from matters API")
        assert "HTTP 500" not in err.to_user_response()
        assert "try again" in err.to_user_response()

    def test_external_timeout_code(self):
        err = ExternalServiceError("slow", service="document_extraction", timeout=True)
        assert err.code == ErrorCode.EXTERNAL_TIMEOUT
        assert err.service == "document_extraction"

    def test_external_store_code(self):
        err = ExternalServiceError("down", service="context_store", status_code=503)
        assert err.code == ErrorCode.EXTERNAL_STORE_ERROR
        assert err.context["status_code"] == 503

    def test_configuration_error(self):
        """Configuration errors name the setting and are not retryable."""
        err = ConfigurationError("bad persona", setting="persona:default")
        assert err.code == ErrorCode.CONFIG_ERROR
        assert err.retryable is False
        assert err.context == {"setting": "persona:default"}


class TestResult:
    """Test the Result wrapper."""

    def test_ok(self):
        result = Result.ok({"reference": "MAT-1"})
        assert result.success is True
        assert result.data == {"reference": "MAT-1"}
        assert result.error is None
        assert result.to_dict() == {"success": True, "data": {"reference": "MAT-1"}}

    def test_fail(self):
        err = ValidationError("Need a name", reason="missing")
        result = Result.fail(err)
        assert result.success is False
        assert result.error is err
        assert result.to_dict()["error"]["code"] == "VALIDATION_MISSING_PARAM"


class TestErrorResponse:
    """Test error_response function."""

    def test_intake_error_response(self):
        """Convert IntakeError to response dict."""
        err = ValidationError("Please provide your name.", parameter="name", reason="missing")
        response = error_response(err, tool="create_matter")

        assert response["success"] is False
        assert response["error"]["code"] == "VALIDATION_MISSING_PARAM"
        assert response["error"]["message"] == "Please provide your name."
        assert response["error"]["tool"] == "create_matter"
        assert response["error"]["context"] == {"parameter": "name"}

    def test_generic_exception_response(self):
        """Non-intake exceptions never leak their text."""
        response = error_response(ValueError("secret internals"))
        assert response["error"]["code"] == "INTERNAL_UNEXPECTED"
        assert response["error"]["message"] == GENERIC_RETRY_MESSAGE

    def test_without_context(self):
        err = IntakeError("Test", foo="bar")
        response = error_response(err, include_context=False)
        assert response["error"]["context"] is None

    def test_user_message_for(self):
        assert user_message_for(ValueError("x")) == GENERIC_RETRY_MESSAGE
        assert user_message_for(ValidationError("Need email", reason="missing")) == "Need email"


class TestSuccessResponse:
    """Test success_response function."""

    def test_basic_success(self):
        assert success_response() == {"success": True}

    def test_with_data_and_kwargs(self):
        response = success_response({"reference": "MAT-1"}, message="Saved")
        assert response == {"success": True, "reference": "MAT-1", "message": "Saved"}


class TestHandleToolErrors:
    """Test handle_tool_errors decorator."""

    def test_success_passthrough(self):
        """Successful calls pass through unchanged."""

        @handle_tool_errors("test_tool")
        def my_func():
            return Result.ok("done")

        assert my_func().data == "done"

    def test_intake_error_handling(self):
        """IntakeErrors become failing Results."""

        @handle_tool_errors("test_tool")
        def my_func():
            raise ValidationError("bad", reason="format")

        result = my_func()
        assert result.success is False
        assert result.error.code == ErrorCode.VALIDATION_INVALID_FORMAT

    def test_generic_exception_handling(self):
        """Other exceptions are wrapped with the tool name."""

        @handle_tool_errors("test_tool")
        def my_func():
            raise RuntimeError("boom")

        result = my_func()
        assert result.success is False
        assert result.error.code == ErrorCode.INTERNAL_UNEXPECTED
        assert result.error.context == {"tool": "test_tool"}
        assert "RuntimeError" in result.error.details
        assert result.error.to_user_response() == GENERIC_RETRY_MESSAGE

    def test_logging(self, caplog):
        """Unexpected errors are logged."""

        @handle_tool_errors("test_tool")
        def my_func():
            raise RuntimeError("logged failure")

        with caplog.at_level(logging.ERROR):
            my_func()
        assert "logged failure" in caplog.text

    def test_preserves_function_metadata(self):
        """Decorator should preserve function name and docstring."""

        @handle_tool_errors("test_tool")
        def my_func():
            """My docstring."""
            return Result.ok()

        assert my_func.__name__ == "my_func"
        assert my_func.__doc__ == "My docstring."


class TestAsyncHandleToolErrors:
    """Test handle_async_tool_errors decorator."""

    def test_async_success(self):
        @handle_async_tool_errors("async_tool")
        async def my_func(value):
            return Result.ok(value)

        assert asyncio.run(my_func(3)).data == 3

    def test_async_exception_becomes_result(self):
        """Nothing raised inside the executor crosses the dispatch boundary."""

        @handle_async_tool_errors("async_tool")
        async def my_func():
            raise KeyError("missing")

        result = asyncio.run(my_func())
        assert result.success is False
        assert result.error.context == {"tool": "async_tool"}


class TestLogError:
    """Test log_error helper."""

    def test_skips_already_logged(self, caplog):
        logger = logging.getLogger("test.errors.log_error")
        err = IntakeError("once only")
        err.log(logger)
        caplog.clear()
        with caplog.at_level(logging.ERROR, logger="test.errors.log_error"):
            log_error(logger, err, context="handle_turn")
        assert "once only" not in caplog.text

    def test_prefixes_context(self, caplog):
        logger = logging.getLogger("test.errors.log_error")
        with caplog.at_level(logging.ERROR, logger="test.errors.log_error"):
            log_error(logger, ValueError("bad value"), context="save", include_traceback=False)
        assert "[save] bad value" in caplog.text
