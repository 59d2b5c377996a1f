"""
Intake State Machine - how far an intake has progressed toward a matter.

derive_state() is a pure, total function: every combination of IntakeFlags
and phase maps to exactly one IntakeState. COMPLETED is only reachable once
a create_matter dispatch has succeeded (context.matter_created).
"""

import re
from dataclasses import dataclass
from enum import Enum

from .context import ConversationContext, ConversationPhase


class IntakeState(str, Enum):
    INITIAL = "INITIAL"
    GATHERING_INFORMATION = "GATHERING_INFORMATION"
    QUALIFYING = "QUALIFYING"
    CONTACT_COLLECTION = "CONTACT_COLLECTION"
    READY_TO_CREATE_MATTER = "READY_TO_CREATE_MATTER"
    COMPLETED = "COMPLETED"


SENSITIVE_KEYWORDS = [
    "criminal",
    "arrest",
    "jail",
    "prison",
    "charges",
    "court date",
    "accident",
    "injury",
    "hospital",
    "medical",
    "death",
    "fatal",
    "domestic violence",
    "abuse",
    "harassment",
    "threat",
    "danger",
    "emergency",
    "urgent",
    "immediate",
    "asap",
    "right now",
]

_SENSITIVE_RE = re.compile(r"\b(?:" + "|".join(re.escape(k) for k in SENSITIVE_KEYWORDS) + r")", re.IGNORECASE)

_GENERAL_INQUIRY_RE = re.compile(
    r"services in my area|do you (?:provide|offer|handle)|what (?:kind of |types of )?services|"
    r"how much (?:does|do|will)|pricing|what does it cost|consultation fee|your fees|office hours",
    re.IGNORECASE,
)


def is_sensitive_matter(text: str) -> bool:
    """Urgent or safety-related matters skip the contact-method requirement."""
    return bool(text) and bool(_SENSITIVE_RE.search(text))


def is_general_inquiry(text: str) -> bool:
    """Service / pricing questions answered conversationally, never with tools."""
    return bool(text) and bool(_GENERAL_INQUIRY_RE.search(text))


@dataclass(frozen=True)
class IntakeFlags:
    has_name: bool = False
    has_legal_issue: bool = False
    has_description: bool = False
    has_contact_method: bool = False
    has_location: bool = False
    is_sensitive: bool = False
    matter_created: bool = False

    @classmethod
    def from_context(cls, context: ConversationContext) -> "IntakeFlags":
        contact = context.contact_info
        return cls(
            has_name=bool(contact.name),
            has_legal_issue=bool(context.primary_matter_type),
            has_description=bool(context.issue_description),
            has_contact_method=contact.has_contact_method,
            has_location=bool(contact.location or context.jurisdiction),
            is_sensitive=is_sensitive_matter(context.issue_description or ""),
            matter_created=context.matter_created,
        )

    @property
    def essentials(self) -> bool:
        return self.has_name and self.has_legal_issue and self.has_description

    def missing_fields(self) -> list:
        """Names of the fields still needed before a matter can be created."""
        missing = []
        if not self.has_name:
            missing.append("name")
        if not self.has_legal_issue:
            missing.append("legal issue")
        if not self.has_description:
            missing.append("description")
        if not self.is_sensitive:
            if not self.has_contact_method:
                missing.append("phone or email")
            if not self.has_location:
                missing.append("location")
        return missing


def derive_state(flags: IntakeFlags, phase: ConversationPhase) -> IntakeState:
    """Map context flags and phase to exactly one intake state."""
    if flags.matter_created:
        return IntakeState.COMPLETED

    if flags.essentials and flags.is_sensitive:
        return IntakeState.READY_TO_CREATE_MATTER

    if flags.essentials and flags.has_contact_method and flags.has_location:
        return IntakeState.READY_TO_CREATE_MATTER

    if flags.has_legal_issue:
        if phase == ConversationPhase.CONTACT_COLLECTION:
            return IntakeState.CONTACT_COLLECTION
        if phase == ConversationPhase.QUALIFYING:
            return IntakeState.QUALIFYING
        return IntakeState.GATHERING_INFORMATION

    if flags.has_name or flags.has_contact_method or phase != ConversationPhase.INITIAL:
        return IntakeState.GATHERING_INFORMATION

    return IntakeState.INITIAL


def state_for(context: ConversationContext) -> IntakeState:
    return derive_state(IntakeFlags.from_context(context), context.conversation_phase)
