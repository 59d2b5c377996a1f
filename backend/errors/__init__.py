"""
Intake Error Handling Module

Provides standardized error codes, exceptions, the Result wrapper and
response builders for consistent error handling across the service.

Usage:
    from errors import (
        # Error codes
        ErrorCode,

        # Exceptions
        IntakeError,
        ValidationError,
        ConversationStateError,
        AIServiceError,
        BusinessLogicError,
        MatterCreationError,
        ExternalServiceError,
        ConfigurationError,

        # Result and response builders
        Result,
        error_response,
        success_response,
        user_message_for,

        # Decorators
        handle_tool_errors,
        handle_async_tool_errors,
        log_error,
    )

Example:
    from errors import handle_async_tool_errors, Result, ValidationError

    @handle_async_tool_errors("analyze_document")
    async def execute_analyze_document(params, extractor):
        if not params.get("file_id"):
            raise ValidationError(
                "Which document would you like me to look at?",
                parameter="file_id",
                reason="missing",
            )

        # ... extraction logic ...
        return Result.ok({"message": summary})
"""

from .codes import ErrorCode
from .exceptions import (
    GENERIC_RETRY_MESSAGE,
    IntakeError,
    ValidationError,
    ConversationStateError,
    AIServiceError,
    BusinessLogicError,
    MatterCreationError,
    ExternalServiceError,
    ConfigurationError,
)
from .response import (
    Result,
    error_response,
    success_response,
    user_message_for,
)
from .handlers import (
    handle_tool_errors,
    handle_async_tool_errors,
    log_error,
)

__all__ = [
    # Codes
    "ErrorCode",
    # Exceptions
    "GENERIC_RETRY_MESSAGE",
    "IntakeError",
    "ValidationError",
    "ConversationStateError",
    "AIServiceError",
    "BusinessLogicError",
    "MatterCreationError",
    "ExternalServiceError",
    "ConfigurationError",
    # Result / responses
    "Result",
    "error_response",
    "success_response",
    "user_message_for",
    # Decorators
    "handle_tool_errors",
    "handle_async_tool_errors",
    "log_error",
]
