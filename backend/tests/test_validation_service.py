"""
Tests for tool parameter validation.
"""

from errors import ErrorCode
from tools.validators import (
    INVALID_PHONE_MESSAGE,
    NO_CONTACT_MESSAGE,
    PLACEHOLDER_MESSAGE,
    ValidationService,
    is_placeholder,
    normalize_matter_type,
    validate_email,
    validate_location,
    validate_name,
    validate_phone,
)


def matter_params(**overrides):
    params = {
        "name": "John Smith",
        "matter_type": "Employment Law",
        "description": "I was fired without receiving my overtime pay",
        "email": "john@example.com",
        "phone": "(555) 234-5678",
    }
    params.update(overrides)
    return {k: v for k, v in params.items() if v is not None}


class TestFieldValidators:
    """Test per-field format checks."""

    def test_names(self):
        assert validate_name("John Smith")
        assert validate_name("Mary-Jane O'Neil")
        assert not validate_name("J")
        assert not validate_name("John123")
        assert not validate_name("...")

    def test_emails(self):
        assert validate_email("john@example.com")
        assert not validate_email("john@")
        assert not validate_email("john example.com")

    def test_phone_valid(self):
        assert validate_phone("(555) 234-5678") == (True, None)
        assert validate_phone("+1 555 234 5678") == (True, None)
        assert validate_phone("555-234-5678 ext. 12") == (True, None)

    def test_phone_letters(self):
        ok, reason = validate_phone("abc")
        assert not ok
        assert reason == "phone numbers cannot contain letters"

    def test_phone_length_and_format(self):
        assert validate_phone("12345")[0] is False
        assert validate_phone("(055) 234-5678")[0] is False
        assert validate_phone("555-123-4567")[1] == "please provide a real phone number, not a placeholder"

    def test_locations(self):
        assert validate_location("Austin, TX")
        assert validate_location("Ontario, Canada")
        assert validate_location("Texas")
        assert not validate_location("my house")
        assert not validate_location("X")


class TestPlaceholders:
    """Test dummy-value detection."""

    def test_tokens(self):
        for value in ("N/A", "none", "TBD", "unknown", "[name]", "<email>", "test@test.com"):
            assert is_placeholder(value), value

    def test_real_values(self):
        assert not is_placeholder("John Smith")
        assert not is_placeholder("john@example.com")
        assert not is_placeholder("(555) 234-5678")

    def test_free_text_may_say_example(self):
        assert is_placeholder("an example description")
        assert not is_placeholder("for example, my boss yelled", free_text=True)


class TestValidationService:
    """Test the fail-fast check order."""

    def test_valid_matter(self):
        result = ValidationService.validate("create_matter", matter_params())
        assert result.success
        assert result.data["name"] == "John Smith"

    def test_unknown_tool(self):
        result = ValidationService.validate("delete_everything", {})
        assert not result.success
        assert result.error.code == ErrorCode.VALIDATION_UNKNOWN_TOOL

    def test_missing_required(self):
        result = ValidationService.validate("create_matter", matter_params(name=None))
        assert result.error.code == ErrorCode.VALIDATION_MISSING_PARAM
        assert result.error.parameter == "name"
        assert "full name" in result.error.to_user_response()

    def test_placeholder_required_counts_as_missing(self):
        result = ValidationService.validate("create_matter", matter_params(description="N/A"))
        assert result.error.code == ErrorCode.VALIDATION_MISSING_PARAM
        assert result.error.parameter == "description"

    def test_placeholder_contact(self):
        result = ValidationService.validate("create_matter", matter_params(email="test@example.com"))
        assert result.error.code == ErrorCode.VALIDATION_PLACEHOLDER
        assert result.error.to_user_response() == PLACEHOLDER_MESSAGE

    def test_invalid_phone_message(self):
        """A bad phone number yields the polite follow-up naming the problem."""
        result = ValidationService.validate("create_matter", matter_params(phone="abc"))
        assert result.error.code == ErrorCode.VALIDATION_INVALID_FORMAT
        assert result.error.parameter == "phone"
        assert result.error.to_user_response() == INVALID_PHONE_MESSAGE.format(
            reason="phone numbers cannot contain letters"
        )

    def test_invalid_location(self):
        result = ValidationService.validate("create_matter", matter_params(location="somewhere nice"))
        assert result.error.parameter == "location"

    def test_no_contact_method(self):
        result = ValidationService.validate("create_matter", matter_params(email=None, phone=None))
        assert result.error.code == ErrorCode.VALIDATION_NO_CONTACT_METHOD
        assert result.error.to_user_response() == NO_CONTACT_MESSAGE

    def test_contact_info_needs_only_name(self):
        assert ValidationService.validate("collect_contact_info", {"name": "Jane Doe"}).success

    def test_lawyer_review_has_no_requirements(self):
        assert ValidationService.validate("request_lawyer_review", {}).success

    def test_first_failure_wins(self):
        """Missing fields are reported before format problems."""
        result = ValidationService.validate("create_matter", matter_params(name=None, phone="abc"))
        assert result.error.parameter == "name"


class TestNormalizeMatterType:
    """Test matter label normalization."""

    def test_aliases(self):
        assert normalize_matter_type("divorce") == "Family Law"
        assert normalize_matter_type("Tenant Rights Law") == "Landlord/Tenant"
        assert normalize_matter_type("employment law") == "Employment Law"

    def test_unknown_passes_through(self):
        assert normalize_matter_type("  Maritime Law ") == "Maritime Law"
        assert normalize_matter_type("") == "General Consultation"
