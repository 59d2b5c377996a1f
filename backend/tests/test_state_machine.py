"""
Tests for the intake state machine.
"""

import itertools

from routers.intake_orchestration.context import ContactInfo, ConversationContext, ConversationPhase
from routers.intake_orchestration.state_machine import (
    IntakeFlags,
    IntakeState,
    derive_state,
    is_general_inquiry,
    is_sensitive_matter,
    state_for,
)


FLAG_NAMES = [
    "has_name",
    "has_legal_issue",
    "has_description",
    "has_contact_method",
    "has_location",
    "is_sensitive",
    "matter_created",
]


def all_flag_combinations():
    for values in itertools.product([False, True], repeat=len(FLAG_NAMES)):
        yield IntakeFlags(**dict(zip(FLAG_NAMES, values)))


class TestDeriveState:
    """Test the flag/phase decision table."""

    def test_total_over_every_combination(self):
        """Every flag and phase combination maps to exactly one state."""
        for flags in all_flag_combinations():
            for phase in ConversationPhase:
                assert isinstance(derive_state(flags, phase), IntakeState)

    def test_completed_only_when_matter_created(self):
        """COMPLETED is reachable from matter_created alone."""
        for flags in all_flag_combinations():
            for phase in ConversationPhase:
                state = derive_state(flags, phase)
                assert (state == IntakeState.COMPLETED) == flags.matter_created

    def test_ready_with_contact_and_location(self):
        flags = IntakeFlags(
            has_name=True, has_legal_issue=True, has_description=True, has_contact_method=True, has_location=True
        )
        assert derive_state(flags, ConversationPhase.QUALIFYING) == IntakeState.READY_TO_CREATE_MATTER

    def test_sensitive_ready_without_contact(self):
        """Sensitive matters only need the essentials."""
        flags = IntakeFlags(has_name=True, has_legal_issue=True, has_description=True, is_sensitive=True)
        assert derive_state(flags, ConversationPhase.GATHERING_INFO) == IntakeState.READY_TO_CREATE_MATTER

    def test_missing_location_not_ready(self):
        flags = IntakeFlags(has_name=True, has_legal_issue=True, has_description=True, has_contact_method=True)
        assert derive_state(flags, ConversationPhase.CONTACT_COLLECTION) == IntakeState.CONTACT_COLLECTION

    def test_legal_issue_follows_phase(self):
        flags = IntakeFlags(has_legal_issue=True)
        assert derive_state(flags, ConversationPhase.QUALIFYING) == IntakeState.QUALIFYING
        assert derive_state(flags, ConversationPhase.GATHERING_INFO) == IntakeState.GATHERING_INFORMATION
        assert derive_state(flags, ConversationPhase.INITIAL) == IntakeState.GATHERING_INFORMATION

    def test_name_alone_is_gathering(self):
        assert derive_state(IntakeFlags(has_name=True), ConversationPhase.INITIAL) == IntakeState.GATHERING_INFORMATION

    def test_initial(self):
        assert derive_state(IntakeFlags(), ConversationPhase.INITIAL) == IntakeState.INITIAL


class TestFlags:
    """Test flag derivation from a context."""

    def test_from_context(self):
        ctx = ConversationContext.default("s1", "t1")
        ctx.established_matters = ["Criminal Law"]
        ctx.issue_description = "I was arrested last night and have a court date tomorrow"
        ctx.contact_info = ContactInfo(name="Sam Lee")
        flags = IntakeFlags.from_context(ctx)

        assert flags.has_name and flags.has_legal_issue and flags.has_description
        assert flags.is_sensitive
        assert not flags.has_contact_method
        assert state_for(ctx) == IntakeState.READY_TO_CREATE_MATTER

    def test_jurisdiction_counts_as_location(self):
        ctx = ConversationContext.default("s1", "t1")
        ctx.jurisdiction = "Texas"
        assert IntakeFlags.from_context(ctx).has_location

    def test_missing_fields(self):
        flags = IntakeFlags(has_name=True, has_legal_issue=True)
        assert flags.missing_fields() == ["description", "phone or email", "location"]

    def test_missing_fields_sensitive(self):
        """Contact and location are not listed for sensitive matters."""
        flags = IntakeFlags(is_sensitive=True)
        assert flags.missing_fields() == ["name", "legal issue", "description"]


class TestClassifiers:
    """Test the sensitive and general-inquiry checks."""

    def test_sensitive(self):
        assert is_sensitive_matter("There was domestic violence last week")
        assert is_sensitive_matter("This is URGENT")
        assert not is_sensitive_matter("I want to review a lease")
        assert not is_sensitive_matter("")

    def test_general_inquiry(self):
        assert is_general_inquiry("What services do you offer?")
        assert is_general_inquiry("How much does a consultation cost?")
        assert not is_general_inquiry("My landlord kept my deposit")
