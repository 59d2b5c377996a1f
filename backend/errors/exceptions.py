"""
Custom exception hierarchy for the intake service.

All exceptions inherit from IntakeError and include:
- code: ErrorCode for categorization
- message: User-safe message (may be shown to the client verbatim)
- details: Optional server-side diagnostic text (never shown to the client)
- retryable: Whether retrying the same operation may succeed
- context: Redacted key-value pairs for debugging
- timestamp: ISO-8601 UTC creation time

Errors are treated as immutable once constructed.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from utils.redaction import redact_parameters
from .codes import ErrorCode

GENERIC_RETRY_MESSAGE = "I'm experiencing some technical difficulties. Please try again in a moment."


class IntakeError(Exception):
    """Base exception for all intake errors.

    Attributes:
        code: The ErrorCode categorizing this error
        message: User-safe message
        details: Optional diagnostic detail for logs
        retryable: Whether the operation may succeed on retry
        context: Redacted debugging information
        timestamp: When the error was constructed
    """

    code: ErrorCode = ErrorCode.INTERNAL_UNEXPECTED
    retryable: bool = False
    user_message: Optional[str] = None

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        retryable: Optional[bool] = None,
        **context: Any,
    ):
        self.message = message
        self.details = details
        self.context = redact_parameters(context) if context else None
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self._logged = False

        # Allow overriding class defaults
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable

        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message

    def to_user_response(self) -> str:
        """Message safe to show the client."""
        if self.user_message:
            return self.user_message
        if self.code == ErrorCode.INTERNAL_UNEXPECTED:
            return GENERIC_RETRY_MESSAGE
        return self.message

    def log(self, logger: logging.Logger, level: int = logging.ERROR) -> None:
        """Log this error once; later calls are no-ops."""
        if self._logged:
            return
        self._logged = True
        ctx = f" context={self.context}" if self.context else ""
        logger.log(level, f"{self.code.value}: {self}{ctx} retryable={self.retryable}")

    def to_dict(self) -> dict:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
            "context": self.context,
            "timestamp": self.timestamp,
        }


class ValidationError(IntakeError):
    """Tool parameter failed validation. The message is phrased for the client."""

    code = ErrorCode.VALIDATION_ERROR
    retryable = False

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        parameter: Optional[str] = None,
        reason: Optional[str] = None,
        **context: Any,
    ):
        if reason == "missing":
            code = ErrorCode.VALIDATION_MISSING_PARAM
        elif reason == "placeholder":
            code = ErrorCode.VALIDATION_PLACEHOLDER
        elif reason == "format":
            code = ErrorCode.VALIDATION_INVALID_FORMAT
        elif reason == "no_contact":
            code = ErrorCode.VALIDATION_NO_CONTACT_METHOD
        elif reason == "unknown_tool":
            code = ErrorCode.VALIDATION_UNKNOWN_TOOL
        else:
            code = ErrorCode.VALIDATION_ERROR

        ctx = {**context}
        if parameter:
            ctx["parameter"] = parameter
        self.parameter = parameter
        super().__init__(message, details, code=code, **ctx)


class ConversationStateError(IntakeError):
    """Conversation context could not be read or advanced."""

    code = ErrorCode.CONVERSATION_STATE_ERROR
    retryable = True
    user_message = "I'm having trouble keeping track of our conversation. Could you please repeat your last message?"


class AIServiceError(IntakeError):
    """AI collaborator failed, timed out, or is circuit-broken."""

    code = ErrorCode.AI_SERVICE_ERROR
    retryable = True
    user_message = GENERIC_RETRY_MESSAGE

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        model: Optional[str] = None,
        error_type: Optional[str] = None,
        **context: Any,
    ):
        if error_type == "timeout":
            code = ErrorCode.AI_TIMEOUT
        elif error_type == "circuit_open":
            code = ErrorCode.AI_CIRCUIT_OPEN
        else:
            code = ErrorCode.AI_SERVICE_ERROR

        ctx = {**context}
        if model:
            ctx["model"] = model
        super().__init__(message, details, code=code, **ctx)


class BusinessLogicError(IntakeError):
    """A business rule was violated. The message is phrased for the client."""

    code = ErrorCode.BUSINESS_LOGIC_ERROR
    retryable = False


class MatterCreationError(IntakeError):
    """The matter could not be submitted downstream."""

    code = ErrorCode.MATTER_CREATION_ERROR
    retryable = True
    user_message = (
        "I wasn't able to submit your matter just now. Your information is saved, "
        "so please try again in a moment."
    )


class ExternalServiceError(IntakeError):
    """A downstream collaborator (store, extractor, notifier, renderer) failed."""

    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    retryable = True
    user_message = GENERIC_RETRY_MESSAGE

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        timeout: bool = False,
        **context: Any,
    ):
        if timeout:
            code = ErrorCode.EXTERNAL_TIMEOUT
        elif service == "context_store":
            code = ErrorCode.EXTERNAL_STORE_ERROR
        else:
            code = ErrorCode.EXTERNAL_SERVICE_ERROR

        ctx = {**context}
        if service:
            ctx["service"] = service
        if status_code:
            ctx["status_code"] = status_code
        self.service = service
        super().__init__(message, details, code=code, **ctx)


class ConfigurationError(IntakeError):
    """Required setup is missing or invalid. Raised at startup, never per turn."""

    code = ErrorCode.CONFIG_ERROR
    retryable = False
    user_message = "This service is not configured correctly. Please contact the site administrator."

    def __init__(self, message: str, details: Optional[str] = None, setting: Optional[str] = None, **context: Any):
        ctx = {**context}
        if setting:
            ctx["setting"] = setting
        super().__init__(message, details, **ctx)
