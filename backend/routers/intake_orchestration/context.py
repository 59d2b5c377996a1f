"""
Conversation context - the session-scoped understanding of an intake.

One ConversationContext exists per (session_id, team_id). It is created with
defaults on first access, mutated every turn by the extractor, middleware and
orchestrator, and expires passively through the context store TTL.

Populated fields are never reset to empty by a later turn; use merge_value /
ContactInfo.merge to apply a newer non-null value.
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class UserIntent(str, Enum):
    INTAKE = "intake"
    LAWYER_CONTACT = "lawyer_contact"
    GENERAL_INFO = "general_info"
    UNCLEAR = "unclear"


class ConversationPhase(str, Enum):
    INITIAL = "initial"
    GATHERING_INFO = "gathering_info"
    QUALIFYING = "qualifying"
    CONTACT_COLLECTION = "contact_collection"
    COMPLETED = "completed"


def merge_value(current: Any, new: Any) -> Any:
    """Newer non-empty value wins; an empty value never clears a populated one."""
    if new is None or new == "" or new == []:
        return current
    return new


@dataclass
class ContactInfo:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None

    def merge(self, other: "ContactInfo") -> "ContactInfo":
        return ContactInfo(
            name=merge_value(self.name, other.name),
            email=merge_value(self.email, other.email),
            phone=merge_value(self.phone, other.phone),
            location=merge_value(self.location, other.location),
        )

    @property
    def has_contact_method(self) -> bool:
        return bool(self.email or self.phone)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"name": self.name, "email": self.email, "phone": self.phone, "location": self.location}


@dataclass
class CaseDraft:
    matter_type: str
    key_facts: List[str] = field(default_factory=list)
    jurisdiction: Optional[str] = None
    urgency: str = "medium"
    status: str = "draft"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class DocumentChecklist:
    matter_type: str
    required: List[str] = field(default_factory=list)
    optional: List[str] = field(default_factory=list)
    provided: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    last_updated: Optional[str] = None


@dataclass
class ArtifactInfo:
    filename: str
    size: int
    generated_at: str
    storage_key: Optional[str] = None


def _from_dict(cls, data: Optional[Dict[str, Any]]):
    """Build a nested dataclass, ignoring keys it does not declare."""
    if not data:
        return None
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ConversationContext:
    """Everything the intake has learned about one conversation."""

    session_id: str
    team_id: str
    established_matters: List[str] = field(default_factory=list)
    jurisdiction: Optional[str] = None
    user_intent: UserIntent = UserIntent.UNCLEAR
    conversation_phase: ConversationPhase = ConversationPhase.INITIAL
    message_count: int = 0
    last_updated: Optional[str] = None
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    issue_description: Optional[str] = None
    safety_flags: List[str] = field(default_factory=list)
    case_draft: Optional[CaseDraft] = None
    document_checklist: Optional[DocumentChecklist] = None
    generated_artifact: Optional[ArtifactInfo] = None
    matter_created: bool = False
    matter_reference: Optional[str] = None

    @classmethod
    def default(cls, session_id: str, team_id: str) -> "ConversationContext":
        return cls(session_id=session_id, team_id=team_id)

    @property
    def primary_matter_type(self) -> Optional[str]:
        """Case-draft type if set, else the first established matter.

        Several matters may be established at once; the first one found is
        used wherever a single type is required.
        """
        if self.case_draft and self.case_draft.matter_type:
            return self.case_draft.matter_type
        return self.established_matters[0] if self.established_matters else None

    def copy(self, **changes) -> "ConversationContext":
        """Shallow copy with list fields and contact info duplicated."""
        base = replace(
            self,
            established_matters=list(self.established_matters),
            safety_flags=list(self.safety_flags),
            contact_info=replace(self.contact_info),
        )
        return replace(base, **changes) if changes else base

    def add_safety_flags(self, flags: List[str]) -> "ConversationContext":
        merged = list(self.safety_flags)
        for flag in flags:
            if flag not in merged:
                merged.append(flag)
        return self.copy(safety_flags=merged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "team_id": self.team_id,
            "established_matters": list(self.established_matters),
            "jurisdiction": self.jurisdiction,
            "user_intent": self.user_intent.value,
            "conversation_phase": self.conversation_phase.value,
            "message_count": self.message_count,
            "last_updated": self.last_updated,
            "contact_info": self.contact_info.to_dict(),
            "issue_description": self.issue_description,
            "safety_flags": list(self.safety_flags),
            "case_draft": _asdict_or_none(self.case_draft),
            "document_checklist": _asdict_or_none(self.document_checklist),
            "generated_artifact": _asdict_or_none(self.generated_artifact),
            "matter_created": self.matter_created,
            "matter_reference": self.matter_reference,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationContext":
        """Rebuild from to_dict() output.

        Raises KeyError/TypeError/ValueError on malformed input; the context
        store treats any of those as corruption.
        """
        return cls(
            session_id=data["session_id"],
            team_id=data["team_id"],
            established_matters=list(data.get("established_matters") or []),
            jurisdiction=data.get("jurisdiction"),
            user_intent=UserIntent(data.get("user_intent") or UserIntent.UNCLEAR.value),
            conversation_phase=ConversationPhase(data.get("conversation_phase") or ConversationPhase.INITIAL.value),
            message_count=int(data.get("message_count") or 0),
            last_updated=data.get("last_updated"),
            contact_info=_from_dict(ContactInfo, data.get("contact_info")) or ContactInfo(),
            issue_description=data.get("issue_description"),
            safety_flags=list(data.get("safety_flags") or []),
            case_draft=_from_dict(CaseDraft, data.get("case_draft")),
            document_checklist=_from_dict(DocumentChecklist, data.get("document_checklist")),
            generated_artifact=_from_dict(ArtifactInfo, data.get("generated_artifact")),
            matter_created=bool(data.get("matter_created", False)),
            matter_reference=data.get("matter_reference"),
        )


@dataclass
class TeamConfig:
    """Per-team settings supplied by the caller with every turn."""

    team_id: str
    name: str = ""
    persona: Optional[str] = None
    intro: str = ""
    branding: Dict[str, Any] = field(default_factory=dict)
    available_services: List[str] = field(default_factory=list)
    notify_on_review: bool = True

    @classmethod
    def from_dict(cls, team_id: str, data: Optional[Dict[str, Any]]) -> "TeamConfig":
        data = dict(data or {})
        data.pop("team_id", None)
        known = {f.name for f in fields(cls)}
        return cls(team_id=team_id, **{k: v for k, v in data.items() if k in known})


def _asdict_or_none(obj) -> Optional[Dict[str, Any]]:
    if obj is None:
        return None
    return {f.name: getattr(obj, f.name) for f in fields(obj)}
