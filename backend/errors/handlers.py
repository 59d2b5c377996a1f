"""
Error handling decorators and utilities for the intake service.

Provides decorators that turn exceptions raised inside tool handlers
into failing Result values, so nothing propagates across the dispatch
boundary.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from .exceptions import IntakeError
from .response import Result

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])


def _wrap_unexpected(tool_name: str, error: Exception) -> IntakeError:
    return IntakeError(
        f"Unexpected failure in {tool_name}",
        details=f"{type(error).__name__}: {error}",
        tool=tool_name,
    )


def handle_tool_errors(tool_name: str, logger: Optional[logging.Logger] = None):
    """Decorator that catches exceptions and returns Result.fail.

    IntakeErrors are logged once via IntakeError.log; anything else is
    wrapped in a generic IntakeError and logged with its traceback.

    Example:
        >>> @handle_tool_errors("collect_contact_info")
        ... def execute_collect_contact_info(params, context):
        ...     if not params.get("name"):
        ...         raise ValidationError("I need your full name to proceed.", parameter="name")
        ...     return Result.ok({"message": "Thanks!"})
    """

    def decorator(func: F) -> F:
        log = logger or logging.getLogger(f"intake.{tool_name}")

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Result:
            try:
                return func(*args, **kwargs)
            except IntakeError as e:
                e.log(log)
                return Result.fail(e)
            except Exception as e:
                log.error(f"[{tool_name}] Unexpected error: {e}", exc_info=True)
                wrapped = _wrap_unexpected(tool_name, e)
                wrapped._logged = True
                return Result.fail(wrapped)

        return wrapper  # type: ignore

    return decorator


def handle_async_tool_errors(tool_name: str, logger: Optional[logging.Logger] = None):
    """Async version of handle_tool_errors."""

    def decorator(func: F) -> F:
        log = logger or logging.getLogger(f"intake.{tool_name}")

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Result:
            try:
                return await func(*args, **kwargs)
            except IntakeError as e:
                e.log(log)
                return Result.fail(e)
            except Exception as e:
                log.error(f"[{tool_name}] Unexpected error: {e}", exc_info=True)
                wrapped = _wrap_unexpected(tool_name, e)
                wrapped._logged = True
                return Result.fail(wrapped)

        return wrapper  # type: ignore

    return decorator


def log_error(
    logger: logging.Logger, error: Exception, context: Optional[str] = None, include_traceback: bool = True
) -> None:
    """Log an error with consistent formatting.

    IntakeErrors are logged through their own log() so they appear once.

    Example:
        >>> log_error(logger, err, context="handle_turn")
        # Logs: "[handle_turn] AI_TIMEOUT: AI call timed out after 30s"
    """
    if isinstance(error, IntakeError):
        if error._logged:
            return
        message = f"{error.code.value}: {error}"
        error._logged = True
    else:
        message = str(error)

    if context:
        message = f"[{context}] {message}"

    logger.error(message, exc_info=include_traceback)
