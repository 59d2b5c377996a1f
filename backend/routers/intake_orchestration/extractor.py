"""
Context Extractor - heuristic facts from the accumulated conversation.

update_context() is a pure function of (prior context, full history): it
returns a new context and is idempotent, so running it twice over the same
messages yields an identical result.

Classifier order and precedence rules are user-visible behavior; change
them deliberately.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from utils.gazetteer import find_first_state, resolve_location
from .context import ContactInfo, ConversationContext, ConversationPhase, UserIntent, merge_value

logger = logging.getLogger(__name__)

# Matter classifiers, evaluated in this order. Every match is kept.
MATTER_PATTERNS = [
    ("Family Law", r"divorce|custody|child support|family dispute|marriage|paternity|alimony"),
    ("Employment Law", r"employment|workplace|termination|discrimination|harassment|wages?|overtime|fired|laid off"),
    ("Business Law", r"business|contract|corporate|company|startup|partnership|LLC|corporation"),
    ("Intellectual Property", r"patent|trademark|copyright|intellectual property|(?-i:IP)|trade secret"),
    ("Personal Injury", r"accident|injury|injured|personal injury|damage|liability|negligence|car crash|slip and fall"),
    ("Criminal Law", r"criminal|arrest(?:ed)?|charges|charged|trial|violation|felony|misdemeanor|DUI|theft"),
    ("Civil Law", r"civil|dispute|contract|property|tort|lawsuit|sued|suing"),
    ("Tenant Rights Law", r"tenant|landlord|rental|eviction|evicted|housing|lease|rent"),
    ("Probate and Estate Planning", r"estate|probate|inheritance|will|trust|power of attorney"),
    ("Special Education and IEP Advocacy", r"special education|IEP|disability|accommodation|504 plan"),
    ("Small Business and Nonprofits", r"small business|nonprofit|non-profit|entrepreneur|startup"),
    ("Contract Review", r"contract|agreement|terms|clause|legal document"),
]

_MATTER_REGEXES = [(label, re.compile(rf"\b(?:{pattern})\b", re.IGNORECASE)) for label, pattern in MATTER_PATTERNS]

_LAWYER_CONTACT_RE = re.compile(
    r"need a lawyer|want a lawyer|talk to a lawyer|speak to a lawyer|speak with (?:an )?attorney|hire an attorney",
    re.IGNORECASE,
)
_GENERAL_INFO_RE = re.compile(r"what is|how does|explain|tell me about|information about", re.IGNORECASE)
_PROBLEM_RE = re.compile(r"help with|need help|problem with|issue with|situation with", re.IGNORECASE)

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?\(?\b[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}\b")
NAME_RE = re.compile(
    r"(?i:\bmy name is|\bi'm|\bi am|\bcall me)\s+([A-Z][a-zA-Z'\-]+(?:[ \t]+[A-Z][a-zA-Z'\-]+){0,3})"
)
LOCATION_RE = re.compile(
    r"(?i:\bi'm in|\bi live in|\bliving in|\bbased in|\blocated in|\breside in|\bfrom)\s+([A-Za-z][A-Za-z ,'\-]{1,60})"
)
_LOCATION_TAIL_RE = re.compile(r"\s+(?:and|but|so|because|with|where|since)\b.*$", re.IGNORECASE)

# "Description" must say something beyond a bare matter keyword
DESCRIPTION_MIN_WORDS = 5
DESCRIPTION_MAX_CHARS = 500

# Phase thresholds
QUALIFYING_MIN_MESSAGES = 2
GATHERING_MIN_MESSAGES = 3


def _join(messages: Sequence[Dict[str, str]], role: Optional[str] = None) -> str:
    return " ".join(
        (m.get("content") or "") for m in messages if role is None or m.get("role") == role
    )


def extract_matters(text: str) -> List[str]:
    """All matter labels whose classifier matches, in classifier order."""
    return [label for label, regex in _MATTER_REGEXES if regex.search(text)]


def classify_intent(text: str, matters: List[str]) -> UserIntent:
    """Priority: lawyer contact > general info > established matter > problem phrasing."""
    if _LAWYER_CONTACT_RE.search(text):
        return UserIntent.LAWYER_CONTACT
    if _GENERAL_INFO_RE.search(text):
        return UserIntent.GENERAL_INFO
    if matters:
        return UserIntent.INTAKE
    if _PROBLEM_RE.search(text):
        return UserIntent.INTAKE
    return UserIntent.UNCLEAR


def _last(regex: re.Pattern, text: str, group: int = 0) -> Optional[str]:
    last = None
    for match in regex.finditer(text):
        last = match.group(group)
    return last.strip() if last else None


def extract_location(text: str) -> Optional[str]:
    """Most recent "I live in ..." capture that resolves against the gazetteer."""
    found = None
    for match in LOCATION_RE.finditer(text):
        candidate = _LOCATION_TAIL_RE.sub("", match.group(1)).strip(" ,")
        if candidate and resolve_location(candidate).is_valid:
            found = candidate
    return found


def extract_contact_info(user_text: str) -> ContactInfo:
    """Contact fields from user turns; the latest occurrence of each wins."""
    return ContactInfo(
        name=_last(NAME_RE, user_text, 1),
        email=_last(EMAIL_RE, user_text),
        phone=_last(PHONE_RE, user_text),
        location=extract_location(user_text),
    )


def extract_issue_description(messages: Sequence[Dict[str, str]]) -> Optional[str]:
    """Latest user message that names a matter and says more than a few words."""
    for message in reversed(messages):
        if message.get("role") != "user":
            continue
        content = (message.get("content") or "").strip()
        if len(content.split()) >= DESCRIPTION_MIN_WORDS and extract_matters(content):
            return content[:DESCRIPTION_MAX_CHARS]
    return None


def classify_phase(context: ConversationContext) -> ConversationPhase:
    """Phase decision table.

    An established matter on the opening message is still information
    gathering; qualifying starts from the second message onward.
    """
    if context.conversation_phase == ConversationPhase.COMPLETED or context.matter_created:
        return ConversationPhase.COMPLETED

    has_matter = bool(context.established_matters)
    contact = context.contact_info

    if has_matter and contact.name and contact.has_contact_method:
        return ConversationPhase.CONTACT_COLLECTION
    if has_matter and context.message_count >= QUALIFYING_MIN_MESSAGES:
        return ConversationPhase.QUALIFYING
    if has_matter or context.message_count >= GATHERING_MIN_MESSAGES:
        return ConversationPhase.GATHERING_INFO
    return ConversationPhase.INITIAL


def update_context(context: ConversationContext, messages: Sequence[Dict[str, str]]) -> ConversationContext:
    """Return a new context updated from the full message history."""
    full_text = _join(messages)
    user_text = _join(messages, role="user")

    updated = context.copy()
    updated.message_count = len(messages)

    for label in extract_matters(full_text):
        if label not in updated.established_matters:
            updated.established_matters.append(label)

    updated.user_intent = classify_intent(full_text, updated.established_matters)
    updated.contact_info = updated.contact_info.merge(extract_contact_info(user_text))
    updated.jurisdiction = merge_value(updated.jurisdiction, find_first_state(full_text))
    updated.issue_description = merge_value(updated.issue_description, extract_issue_description(messages))
    updated.conversation_phase = classify_phase(updated)

    logger.debug(
        f"Context extracted: matters={updated.established_matters} intent={updated.user_intent.value} "
        f"phase={updated.conversation_phase.value} count={updated.message_count}"
    )
    return updated
