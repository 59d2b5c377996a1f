"""
Validation Service - field and cross-field checks for tool parameters.

validate() is fail-fast and runs its checks in a fixed order:

1. Required fields present (placeholder values count as absent)
2. Placeholder / dummy values rejected
3. Per-field formats: name, email, phone, location, matter_type
4. Cross-field: at least one usable contact method

The first failure is returned as a Result carrying a ValidationError whose
message is phrased for the client.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from errors import Result, ValidationError
from utils.gazetteer import resolve_location

logger = logging.getLogger(__name__)


# =============================================================================
# Tool requirements
# =============================================================================

@dataclass(frozen=True)
class ToolRequirements:
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    needs_contact_method: bool = False


TOOL_REQUIREMENTS: Dict[str, ToolRequirements] = {
    "create_matter": ToolRequirements(
        required=("name", "matter_type", "description"),
        optional=("phone", "email", "location", "opposing_party"),
        needs_contact_method=True,
    ),
    "collect_contact_info": ToolRequirements(
        required=("name",),
        optional=("phone", "email", "location"),
    ),
    "request_lawyer_review": ToolRequirements(
        optional=("urgency", "complexity", "matter_type"),
    ),
    "analyze_document": ToolRequirements(
        required=("file_id",),
        optional=("analysis_type", "specific_question"),
    ),
}

# =============================================================================
# Client-facing messages
# =============================================================================

MISSING_MESSAGES = {
    "name": "I need your full name to proceed. Could you please provide your complete name?",
    "matter_type": "Could you tell me what kind of legal matter this is so I can route it to the right lawyer?",
    "description": "Could you briefly describe your legal situation so I can create your matter?",
    "file_id": "I couldn't find the document you're referring to. Could you please upload it again?",
}
PLACEHOLDER_MESSAGE = (
    "I need your actual contact information to proceed. "
    "Could you please provide your real phone number and email address?"
)
INVALID_NAME_MESSAGE = "I need your full name to proceed. Could you please provide your complete name?"
INVALID_EMAIL_MESSAGE = (
    "The email address you provided doesn't appear to be valid. Could you please provide a valid email address?"
)
INVALID_PHONE_MESSAGE = (
    "The phone number you provided doesn't appear to be valid: {reason}. Could you please provide a valid phone number?"
)
INVALID_LOCATION_MESSAGE = (
    "I couldn't recognize the location you provided. Could you please tell me your city and state, or your country?"
)
INVALID_MATTER_TYPE_MESSAGE = "Could you tell me what kind of legal matter this is so I can route it to the right lawyer?"
NO_CONTACT_MESSAGE = (
    "I need at least one way to contact you to proceed. "
    "Could you provide either your phone number or email address?"
)

# =============================================================================
# Placeholder detection
# =============================================================================

EMPTY_TOKENS = frozenset({"", "none", "null", "n/a", "na", "tbd", "unknown", "undefined", "-"})
PLACEHOLDER_EMAILS = frozenset(
    {
        "test@test.com",
        "test@example.com",
        "email@example.com",
        "user@example.com",
        "example@example.com",
        "your@email.com",
        "youremail@example.com",
        "name@example.com",
    }
)
_BRACKET_TOKEN_RE = re.compile(r"^\s*[\[<{].*[\]>}]\s*$")
_PLACEHOLDER_WORD_RE = re.compile(r"\b(?:example|placeholder|sample|dummy)\b", re.IGNORECASE)

# Contact fields whose values must be real client data
PLACEHOLDER_CHECKED_FIELDS = ("name", "email", "phone", "location")
FREE_TEXT_FIELDS = frozenset({"description", "specific_question", "opposing_party"})

BLOCKED_PHONE_NUMBERS = frozenset(
    {"5555555555", "5551234567", "1234567890", "0000000000", "1111111111", "9999999999"}
)
INVALID_MATTER_TYPES = frozenset({"unknown", "none", "null", "", "n/a", "tbd"})

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_RE = re.compile(r"^[A-Za-zÀ-ɏ' .\-]+$")
_EXTENSION_RE = re.compile(r"\s*(?:x|ext\.?|extension)\s*\d+$", re.IGNORECASE)
_NANP_RE = re.compile(r"^([2-9]\d{2})([2-9]\d{2})(\d{4})$")


def is_placeholder(value: Any, free_text: bool = False) -> bool:
    """True for empty-ish tokens, bracketed template slots and dummy values.

    free_text fields (description) only reject tokens and template slots, since
    prose may legitimately say "for example".
    """
    if value is None:
        return False
    text = str(value).strip()
    lowered = text.lower()
    if lowered in EMPTY_TOKENS or lowered in PLACEHOLDER_EMAILS:
        return True
    if _BRACKET_TOKEN_RE.match(text):
        return True
    if free_text:
        return False
    if _PLACEHOLDER_WORD_RE.search(text) and not EMAIL_RE.match(text):
        return True
    digits = re.sub(r"\D", "", text)
    if len(digits) >= 10 and not re.search(r"[A-Za-z]", text) and digits[-10:] in BLOCKED_PHONE_NUMBERS:
        return True
    return False


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


# =============================================================================
# Field validators
# =============================================================================

def validate_name(name: str) -> bool:
    trimmed = (name or "").strip()
    if not 2 <= len(trimmed) <= 100:
        return False
    return bool(NAME_RE.match(trimmed)) and any(c.isalpha() for c in trimmed)


def validate_email(email: str) -> bool:
    return bool(email) and bool(EMAIL_RE.match(email.strip()))


def validate_phone(phone: str) -> Tuple[bool, Optional[str]]:
    """NANP check. Returns (is_valid, reason)."""
    if not phone or not phone.strip():
        return False, "phone number is required"
    if re.search(r"[A-Za-z]", _EXTENSION_RE.sub("", phone)):
        return False, "phone numbers cannot contain letters"

    digits = re.sub(r"\D", "", _EXTENSION_RE.sub("", phone))
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    elif len(digits) != 10:
        return False, "phone number must be 10 or 11 digits"

    if digits in BLOCKED_PHONE_NUMBERS:
        return False, "please provide a real phone number, not a placeholder"
    if not _NANP_RE.match(digits):
        return False, "invalid phone number format"
    return True, None


def validate_location(location: str) -> bool:
    return resolve_location(location).is_valid


def validate_matter_type(matter_type: str) -> bool:
    return bool(matter_type) and matter_type.strip().lower() not in INVALID_MATTER_TYPES


# =============================================================================
# Matter type normalization
# =============================================================================

CANONICAL_MATTER_TYPES = [
    "Family Law",
    "Employment Law",
    "Landlord/Tenant",
    "Personal Injury",
    "Business Law",
    "Criminal Law",
    "Civil Law",
    "Contract Review",
    "Property Law",
    "Administrative Law",
    "Intellectual Property",
    "Probate and Estate Planning",
    "Special Education and IEP Advocacy",
    "Small Business and Nonprofits",
    "General Consultation",
]

MATTER_TYPE_ALIASES = {
    "family": "Family Law",
    "divorce": "Family Law",
    "custody": "Family Law",
    "employment": "Employment Law",
    "labor": "Employment Law",
    "workplace": "Employment Law",
    "tenant rights law": "Landlord/Tenant",
    "tenant rights": "Landlord/Tenant",
    "landlord tenant": "Landlord/Tenant",
    "landlord-tenant": "Landlord/Tenant",
    "housing": "Landlord/Tenant",
    "eviction": "Landlord/Tenant",
    "injury": "Personal Injury",
    "business": "Business Law",
    "corporate": "Business Law",
    "criminal": "Criminal Law",
    "civil": "Civil Law",
    "contract": "Contract Review",
    "contracts": "Contract Review",
    "property": "Property Law",
    "real estate": "Property Law",
    "administrative": "Administrative Law",
    "ip": "Intellectual Property",
    "estate planning": "Probate and Estate Planning",
    "probate": "Probate and Estate Planning",
    "general": "General Consultation",
}

_CANONICAL_BY_LOWER = {label.lower(): label for label in CANONICAL_MATTER_TYPES}


def normalize_matter_type(matter_type: str) -> str:
    """Map free-form matter labels onto the canonical set; unknown labels pass through title-cased."""
    key = (matter_type or "").strip().lower()
    if not key:
        return "General Consultation"
    if key in _CANONICAL_BY_LOWER:
        return _CANONICAL_BY_LOWER[key]
    if key in MATTER_TYPE_ALIASES:
        return MATTER_TYPE_ALIASES[key]
    stripped = re.sub(r"\s+law$", "", key)
    if stripped in MATTER_TYPE_ALIASES:
        return MATTER_TYPE_ALIASES[stripped]
    return matter_type.strip()


# =============================================================================
# Service
# =============================================================================

class ValidationService:
    """
    Fail-fast validation of tool parameters.

    Usage:
        result = ValidationService.validate("create_matter", params)
        if not result.success:
            reply = result.error.to_user_response()
    """

    @classmethod
    def validate(cls, tool_name: str, params: Optional[Dict[str, Any]]) -> Result:
        params = params or {}
        requirements = TOOL_REQUIREMENTS.get(tool_name)
        if requirements is None:
            return Result.fail(
                ValidationError(
                    "I'm not able to do that right now. Could you tell me more about how I can help?",
                    details=f"Unknown tool: {tool_name}",
                    reason="unknown_tool",
                    tool=tool_name,
                )
            )

        for check in (cls._check_required, cls._check_placeholders, cls._check_formats, cls._check_contact):
            error = check(tool_name, requirements, params)
            if error is not None:
                logger.info(f"Validation failed for {tool_name}: {error.code.value} ({error.parameter})")
                return Result.fail(error)

        return Result.ok(params)

    @staticmethod
    def _check_required(tool_name: str, req: ToolRequirements, params: Dict[str, Any]) -> Optional[ValidationError]:
        for field_name in req.required:
            value = params.get(field_name)
            if not _present(value) or is_placeholder(value, free_text=field_name in FREE_TEXT_FIELDS):
                return ValidationError(
                    MISSING_MESSAGES.get(field_name, f"I still need your {field_name.replace('_', ' ')} to proceed."),
                    details=f"Missing required parameter: {field_name}",
                    parameter=field_name,
                    reason="missing",
                    tool=tool_name,
                )
        return None

    @staticmethod
    def _check_placeholders(tool_name: str, req: ToolRequirements, params: Dict[str, Any]) -> Optional[ValidationError]:
        for field_name in PLACEHOLDER_CHECKED_FIELDS:
            value = params.get(field_name)
            if value is not None and is_placeholder(value):
                return ValidationError(
                    PLACEHOLDER_MESSAGE,
                    details=f"Placeholder value in {field_name}",
                    parameter=field_name,
                    reason="placeholder",
                    tool=tool_name,
                )
        return None

    @staticmethod
    def _check_formats(tool_name: str, req: ToolRequirements, params: Dict[str, Any]) -> Optional[ValidationError]:
        def fail(field_name: str, message: str) -> ValidationError:
            return ValidationError(
                message,
                details=f"Invalid format for {field_name}",
                parameter=field_name,
                reason="format",
                tool=tool_name,
            )

        name = params.get("name")
        if _present(name) and not validate_name(str(name)):
            return fail("name", INVALID_NAME_MESSAGE)

        email = params.get("email")
        if _present(email) and not validate_email(str(email)):
            return fail("email", INVALID_EMAIL_MESSAGE)

        phone = params.get("phone")
        if _present(phone):
            ok, reason = validate_phone(str(phone))
            if not ok:
                return fail("phone", INVALID_PHONE_MESSAGE.format(reason=reason))

        location = params.get("location")
        if _present(location) and not validate_location(str(location)):
            return fail("location", INVALID_LOCATION_MESSAGE)

        matter_type = params.get("matter_type")
        if _present(matter_type) and not validate_matter_type(str(matter_type)):
            return fail("matter_type", INVALID_MATTER_TYPE_MESSAGE)

        return None

    @staticmethod
    def _check_contact(tool_name: str, req: ToolRequirements, params: Dict[str, Any]) -> Optional[ValidationError]:
        if not req.needs_contact_method:
            return None
        if _present(params.get("email")) or _present(params.get("phone")):
            return None
        return ValidationError(
            NO_CONTACT_MESSAGE,
            details="Neither email nor phone provided",
            parameter="email",
            reason="no_contact",
            tool=tool_name,
        )

    @staticmethod
    def known_tools() -> List[str]:
        return list(TOOL_REQUIREMENTS)
