"""
Tests for PII redaction helpers.
"""

import logging

from logging_config import log_message_in
from routers.intake_orchestration.tool_call_parser import parse_tool_call
from utils.redaction import (
    REDACTED,
    mask_email,
    mask_value,
    describe_text,
    redact_parameters,
    redact_text,
)


class TestMasking:
    """Test single-value masking."""

    def test_mask_email_keeps_domain(self):
        """Emails keep two characters of the local part and the domain."""
        assert mask_email("john@example.com") == "jo***@example.com"

    def test_mask_long_string(self):
        """Long strings keep two characters at each end."""
        assert mask_value("John Smith") == "Jo***th"

    def test_mask_short_and_non_string(self):
        """Short strings and non-strings are fully redacted."""
        assert mask_value("Jo") == REDACTED
        assert mask_value(12345) == REDACTED


class TestRedactParameters:
    """Test recursive parameter redaction."""

    def test_sensitive_keys_masked(self):
        """Contact fields are masked, routing fields are kept."""
        params = {
            "name": "John Smith",
            "email": "john@example.com",
            "phone": "(555) 234-5678",
            "matter_type": "Employment Law",
        }
        redacted = redact_parameters(params)
        assert redacted["matter_type"] == "Employment Law"
        assert redacted["name"] != "John Smith"
        assert redacted["email"] == "jo***@example.com"
        assert "234-5678" not in redacted["phone"]

    def test_nested_structures(self):
        """Nested dicts and lists are walked."""
        params = {"client": {"email": "jane@firm.org"}, "notes": ["call jane@firm.org"]}
        redacted = redact_parameters(params)
        assert redacted["client"]["email"] == "ja***@firm.org"
        assert "jane@firm.org" not in str(redacted)

    def test_depth_limit(self):
        """Structures deeper than the limit are replaced."""
        deep = {}
        node = deep
        for _ in range(15):
            node["next"] = {}
            node = node["next"]
        assert "[max depth exceeded]" in str(redact_parameters(deep))

    def test_long_strings_truncated(self):
        redacted = redact_parameters({"summary": "x" * 500})
        assert len(redacted["summary"]) == 203
        assert redacted["summary"].endswith("...")

    def test_original_untouched(self):
        params = {"email": "john@example.com"}
        redact_parameters(params)
        assert params["email"] == "john@example.com"


class TestRedactText:
    """Test free-text redaction."""

    def test_embedded_contact_details(self):
        """Emails and phone numbers inside prose are masked."""
        text = redact_text("Reach me at john@example.com or 555-234-5678 please")
        assert "john@example.com" not in text
        assert "555-234-5678" not in text
        assert "Reach me at" in text

    def test_describe_text_keeps_no_content(self):
        summary = describe_text("My name is John Smith and I live in Austin")
        assert summary == "<42 chars, 10 words>"
        assert describe_text("") == "<0 chars, 0 words>"


class TestLogBoundary:
    """User text never reaches a log line."""

    def test_incoming_message_not_logged(self, caplog):
        """Names, places and descriptions stay out of the MESSAGE line."""
        logger = logging.getLogger("intake.test")
        message = "My name is John Smith, I live in Austin Texas, my boss forces overtime"
        with caplog.at_level(logging.INFO, logger="intake.test"):
            log_message_in(logger, message, session="s1")

        assert "John Smith" not in caplog.text
        assert "Austin" not in caplog.text
        assert "overtime" not in caplog.text
        assert f"{len(message)} chars" in caplog.text

    def test_unparseable_directive_not_logged(self, caplog):
        reply = 'TOOL_CALL: create_matter\nPARAMETERS: "name": "John Smith", "email": "john@example.com"'
        with caplog.at_level(logging.WARNING):
            assert parse_tool_call(reply) is None
        assert "John Smith" not in caplog.text
        assert "john@example.com" not in caplog.text
