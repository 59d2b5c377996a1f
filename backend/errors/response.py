"""
Result type and standard response builders.

Every fallible operation in the intake core returns a Result instead of
raising across a component boundary:

    result = validation_service.validate("create_matter", params)
    if not result.success:
        return result.error.to_user_response()
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from .codes import ErrorCode
from .exceptions import GENERIC_RETRY_MESSAGE, IntakeError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Discriminated success/failure wrapper.

    Exactly one of data (success=True) or error (success=False) is meaningful.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[IntakeError] = None

    @classmethod
    def ok(cls, data: T = None) -> "Result[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: IntakeError) -> "Result[T]":
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "data": self.data}
        return error_response(self.error)


def error_response(error: IntakeError | Exception, tool: Optional[str] = None, include_context: bool = True) -> dict:
    """Build a standard error response dictionary.

    Args:
        error: The exception to convert to a response
        tool: Optional tool name for context
        include_context: Whether to include the (already redacted) context dict

    Returns:
        Standard error response dict with success=False

    Example:
        >>> from errors import ValidationError, error_response
        >>> err = ValidationError("Please provide your name.", parameter="name", reason="missing")
        >>> error_response(err, tool="create_matter")["error"]["code"]
        'VALIDATION_MISSING_PARAM'
    """
    if isinstance(error, IntakeError):
        return {
            "success": False,
            "error": {
                "code": error.code.value,
                "message": error.to_user_response(),
                "tool": tool,
                "retryable": error.retryable,
                "timestamp": error.timestamp,
                "context": error.context if include_context else None,
            },
        }

    # Non-intake exceptions never leak their text to the client
    return {
        "success": False,
        "error": {
            "code": ErrorCode.INTERNAL_UNEXPECTED.value,
            "message": GENERIC_RETRY_MESSAGE,
            "tool": tool,
            "retryable": False,
            "timestamp": None,
            "context": None,
        },
    }


def success_response(data: Optional[dict] = None, **kwargs: Any) -> dict:
    """Build a standard success response dictionary.

    Example:
        >>> success_response(message="Saved")
        {"success": True, "message": "Saved"}
    """
    response = {"success": True}

    if data:
        response.update(data)
    if kwargs:
        response.update(kwargs)

    return response


def user_message_for(error: IntakeError | Exception) -> str:
    """Pick the reply shown to the client for an error.

    Validation and business errors carry their own polite message;
    infrastructure errors collapse to the generic apology.
    """
    if isinstance(error, IntakeError):
        return error.to_user_response()
    return GENERIC_RETRY_MESSAGE
