"""
Tests for heuristic context extraction.
"""

from conftest import assistant, user
from routers.intake_orchestration.context import (
    ContactInfo,
    ConversationContext,
    ConversationPhase,
    UserIntent,
)
from routers.intake_orchestration.extractor import (
    classify_intent,
    classify_phase,
    extract_contact_info,
    extract_issue_description,
    extract_matters,
    update_context,
)
from utils.gazetteer import find_first_state


def fresh():
    return ConversationContext.default("s1", "t1")


class TestMatterClassifiers:
    """Test matter type detection."""

    def test_divorce_is_family_law(self):
        assert extract_matters("I need help with a divorce") == ["Family Law"]

    def test_overtime_is_employment_law(self):
        assert extract_matters("My boss won't pay my overtime") == ["Employment Law"]

    def test_multiple_matters_in_classifier_order(self):
        """Every matching classifier is kept, in table order."""
        matters = extract_matters("I was fired after a car crash and my landlord wants to evict me from the rental")
        assert matters == ["Employment Law", "Personal Injury", "Tenant Rights Law"]

    def test_uppercase_ip_only(self):
        """The bare word "ip" in lowercase does not mean intellectual property."""
        assert "Intellectual Property" in extract_matters("Someone stole my IP")
        assert "Intellectual Property" not in extract_matters("a quick ip check")

    def test_estate_keywords(self):
        assert extract_matters("I need help with my late father's will and his trust") == [
            "Probate and Estate Planning"
        ]

    def test_contract_spans_business_civil_and_review(self):
        """The word contract belongs to three classifiers at once."""
        assert extract_matters("There is a problem with a contract") == [
            "Business Law",
            "Civil Law",
            "Contract Review",
        ]

    def test_housing_and_rent(self):
        assert extract_matters("I can't pay rent and may lose my housing") == ["Tenant Rights Law"]

    def test_no_matter(self):
        assert extract_matters("Hello there") == []


class TestIntent:
    """Test intent priority."""

    def test_lawyer_contact_wins(self):
        assert classify_intent("I need a lawyer for my divorce", ["Family Law"]) == UserIntent.LAWYER_CONTACT

    def test_general_info(self):
        assert classify_intent("What is family law?", ["Family Law"]) == UserIntent.GENERAL_INFO

    def test_matter_means_intake(self):
        assert classify_intent("My divorce is messy", ["Family Law"]) == UserIntent.INTAKE

    def test_unclear(self):
        assert classify_intent("Hi", []) == UserIntent.UNCLEAR


class TestContactExtraction:
    """Test name, email, phone and location capture."""

    def test_all_fields(self):
        info = extract_contact_info(
            "My name is John Smith. Email john@example.com, phone (555) 234-5678. I live in Austin, Texas"
        )
        assert info.name == "John Smith"
        assert info.email == "john@example.com"
        assert info.phone == "(555) 234-5678"
        assert info.location == "Austin, Texas"

    def test_latest_occurrence_wins(self):
        info = extract_contact_info("my email is old@example.org ... actually use new@example.org")
        assert info.email == "new@example.org"

    def test_unresolvable_location_ignored(self):
        """Only locations the gazetteer recognizes are captured."""
        info = extract_contact_info("I live in a small apartment")
        assert info.location is None

    def test_location_triggers(self):
        """Locations may also follow "I'm in" or "from"."""
        assert extract_contact_info("I'm in Denver, Colorado").location == "Denver, Colorado"
        assert extract_contact_info("I'm from Ohio").location == "Ohio"
        assert extract_contact_info("I was fired from my job").location is None

    def test_name_needs_capitalization(self):
        assert extract_contact_info("i'm worried about my case").name is None


class TestIssueDescription:
    """Test description capture."""

    def test_latest_substantive_user_message(self):
        messages = [
            user("My husband and I are getting a divorce after ten years"),
            assistant("I'm sorry to hear that."),
            user("ok"),
        ]
        assert extract_issue_description(messages) == "My husband and I are getting a divorce after ten years"

    def test_short_message_not_a_description(self):
        assert extract_issue_description([user("divorce")]) is None

    def test_assistant_text_ignored(self):
        assert extract_issue_description([assistant("Tell me more about your divorce case please")]) is None

    def test_capped(self):
        text = "My employer fired me " + "and then " * 200
        assert len(extract_issue_description([user(text)])) == 500


class TestPhase:
    """Test the phase decision table."""

    def test_initial(self):
        ctx = fresh()
        ctx.message_count = 1
        assert classify_phase(ctx) == ConversationPhase.INITIAL

    def test_matter_on_first_message_is_gathering(self):
        ctx = fresh()
        ctx.established_matters = ["Family Law"]
        ctx.message_count = 1
        assert classify_phase(ctx) == ConversationPhase.GATHERING_INFO

    def test_matter_on_later_message_is_qualifying(self):
        ctx = fresh()
        ctx.established_matters = ["Family Law"]
        ctx.message_count = 3
        assert classify_phase(ctx) == ConversationPhase.QUALIFYING

    def test_contact_collection(self):
        ctx = fresh()
        ctx.established_matters = ["Family Law"]
        ctx.contact_info = ContactInfo(name="Jane Doe", phone="555-234-5678")
        assert classify_phase(ctx) == ConversationPhase.CONTACT_COLLECTION

    def test_long_conversation_without_matter(self):
        ctx = fresh()
        ctx.message_count = 3
        assert classify_phase(ctx) == ConversationPhase.GATHERING_INFO

    def test_completed_is_terminal(self):
        ctx = fresh()
        ctx.matter_created = True
        assert classify_phase(ctx) == ConversationPhase.COMPLETED


class TestUpdateContext:
    """Test the full extraction step."""

    def test_scenario_divorce_opening(self):
        """A first message naming a divorce starts information gathering."""
        ctx = update_context(fresh(), [user("I need help with a divorce")])
        assert ctx.established_matters == ["Family Law"]
        assert ctx.conversation_phase == ConversationPhase.GATHERING_INFO
        assert ctx.message_count == 1

    def test_pure(self):
        """The input context is not mutated."""
        original = fresh()
        update_context(original, [user("My name is Jane Doe and I need help with a divorce")])
        assert original.established_matters == []
        assert original.contact_info.name is None

    def test_idempotent(self):
        """Running twice over the same history gives the same result."""
        messages = [
            user("My name is Jane Doe and I need help with a divorce in Ohio"),
            assistant("I can help. How can a lawyer reach you?"),
            user("jane@firm.org"),
        ]
        once = update_context(fresh(), messages)
        twice = update_context(once, messages)
        assert once.to_dict() == twice.to_dict()

    def test_populated_fields_never_cleared(self):
        """A later history that lacks a fact does not erase it."""
        first = update_context(fresh(), [user("My name is Jane Doe, reach me at jane@firm.org about my divorce")])
        later = update_context(first, [user("thanks")])
        assert later.contact_info.name == "Jane Doe"
        assert later.contact_info.email == "jane@firm.org"
        assert later.established_matters == ["Family Law"]

    def test_jurisdiction_from_state_mention(self):
        ctx = update_context(fresh(), [user("I was injured in an accident in Oregon")])
        assert ctx.jurisdiction == "Oregon"
        assert "Personal Injury" in ctx.established_matters

    def test_west_virginia_not_virginia(self):
        ctx = update_context(fresh(), [user("I live in West Virginia")])
        assert ctx.jurisdiction == "West Virginia"

    def test_earliest_state_mentioned_wins(self):
        """Jurisdiction is the first state in the text, not the first alphabetically."""
        ctx = update_context(fresh(), [user("I live in Texas but the lawsuit was filed in Alabama")])
        assert ctx.jurisdiction == "Texas"

    def test_state_name_canonicalised(self):
        assert find_first_state("moving to new york soon") == "New York"
        assert find_first_state("no state here") is None
