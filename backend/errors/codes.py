"""
Error codes for the intake service.

Provides a standardized taxonomy of error codes organized by category.
Use these codes consistently across all error responses.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the intake service.

    Categories:
    - VALIDATION_*: Tool parameter validation errors
    - CONVERSATION_*: Context / state machine errors
    - AI_*: AI collaborator errors
    - BUSINESS_*: Business rule violations
    - MATTER_*: Matter creation errors
    - EXTERNAL_*: Downstream collaborator errors
    - CONFIG_*: Configuration errors (startup only)
    - INTERNAL_*: Internal/unexpected errors
    """

    # Validation errors (tool parameters)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_MISSING_PARAM = "VALIDATION_MISSING_PARAM"
    VALIDATION_PLACEHOLDER = "VALIDATION_PLACEHOLDER"
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"
    VALIDATION_NO_CONTACT_METHOD = "VALIDATION_NO_CONTACT_METHOD"
    VALIDATION_UNKNOWN_TOOL = "VALIDATION_UNKNOWN_TOOL"

    # Conversation state errors
    CONVERSATION_STATE_ERROR = "CONVERSATION_STATE_ERROR"
    CONVERSATION_CONTEXT_CORRUPT = "CONVERSATION_CONTEXT_CORRUPT"

    # AI collaborator errors
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"
    AI_TIMEOUT = "AI_TIMEOUT"
    AI_CIRCUIT_OPEN = "AI_CIRCUIT_OPEN"

    # Business logic errors
    BUSINESS_LOGIC_ERROR = "BUSINESS_LOGIC_ERROR"

    # Matter creation errors
    MATTER_CREATION_ERROR = "MATTER_CREATION_ERROR"

    # External collaborator errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    EXTERNAL_TIMEOUT = "EXTERNAL_TIMEOUT"
    EXTERNAL_STORE_ERROR = "EXTERNAL_STORE_ERROR"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"

    # Internal errors (unexpected failures)
    INTERNAL_UNEXPECTED = "INTERNAL_UNEXPECTED"
