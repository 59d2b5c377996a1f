"""
Content Policy Filter - first line of defense against off-topic or hostile input.

Flags jailbreak phrasing, non-legal requests, abusive content and spam in
the latest user message. Any hit records safety flags on the context and
answers with a canned redirect.
"""

import logging
import re
from typing import Dict, List, Sequence

from utils.redaction import describe_text
from ..context import ConversationContext, TeamConfig
from .base import IntakeMiddleware, MiddlewareResult, latest_user_message

logger = logging.getLogger(__name__)

JAILBREAK_PATTERNS = [
    r"\bignore\b.{0,40}\binstructions\b",
    r"\bsystem prompt\b",
    r"\bbypass\b.{0,30}\brestrictions\b",
    r"\bchange\b.{0,20}\byour role\b",
    r"\boverride\b.{0,30}\binstructions\b",
    r"\bignore\b.{0,20}\bprevious\b",
    r"\bforget\b.{0,20}\brules\b",
    r"\bpretend\s+(?:to\s+be|you\s+are)\b",
    r"\bact\s+as\s+(?:a|an|my|if)\b",
    r"\byou are now\b",
    r"\bfrom now on\b",
    r"\bdisregard\b.{0,30}\bprevious\b",
]

NON_LEGAL_PATTERNS = [
    r"^(?:cd|ls|sudo|bash)\s",
    r"<script>",
    r"\bselect\b.+\bfrom\b",
    r"\b(?:terminal|command line|programming|coding)\b",
    r"\b(?:javascript|python|html|css)\b",
    r"\b(?:hack|crack|exploit)\b",
    r"\b(?:play a game|trivia|roleplay|role play|role-playing)\b",
    r"\bfor entertainment\b",
    r"\bwrite\b.{0,20}\b(?:poem|story|song|essay)\b",
    r"\b(?:tell me about|explain|describe)\b.{0,30}\b(?:geography|history|science|politics)\b",
]

ABUSIVE_PATTERNS = [
    r"\b(?:kill|murder|hurt)\s+(?:you|him|her|them|someone|everyone)\b",
    r"\b(?:make|build)\s+(?:a\s+)?(?:bomb|explosive|weapon)",
    r"\bhate speech\b",
    r"\bracist\s+joke",
]

_JAILBREAK = [re.compile(p, re.IGNORECASE) for p in JAILBREAK_PATTERNS]
_NON_LEGAL = [re.compile(p, re.IGNORECASE) for p in NON_LEGAL_PATTERNS]
_ABUSIVE = [re.compile(p, re.IGNORECASE) for p in ABUSIVE_PATTERNS]

SPAM_MAX_CHARS = 2000
SPAM_MIN_MESSAGES = 10
SPAM_MIN_WORDS = 5
SPAM_UNIQUE_RATIO = 0.3

RESPONSES = {
    "jailbreak_attempt": (
        "I'm a legal intake specialist and can only help with legal matters. "
        "I cannot change my role or provide other types of assistance."
    ),
    "non_legal_request": (
        "I'm a legal intake specialist and can only help with legal matters. I can help you with "
        "legal questions, case preparation, and connecting you with attorneys. "
        "How can I assist you with your legal needs?"
    ),
    "abusive_content": (
        "I cannot help with that type of request. I'm here to assist with legal matters only. "
        "If you have a legal question or need help with a legal issue, I'd be happy to help."
    ),
    "spam_content": (
        "I notice you've sent a very long message. Could you please provide a brief summary of "
        "your legal question or situation? I'm here to help with legal matters."
    ),
}

# Response precedence when several violations fire together
RESPONSE_ORDER = ["jailbreak_attempt", "non_legal_request", "abusive_content", "spam_content"]


def _any(patterns: List[re.Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def is_spam(message: str, message_count: int) -> bool:
    if len(message) > SPAM_MAX_CHARS:
        return True
    if message_count > SPAM_MIN_MESSAGES:
        words = message.lower().split()
        if len(words) > SPAM_MIN_WORDS and len(set(words)) < len(words) * SPAM_UNIQUE_RATIO:
            return True
    return False


def find_violations(message: str, context: ConversationContext) -> List[str]:
    """Violation flags for one message, in RESPONSE_ORDER."""
    violations = []
    if _any(_JAILBREAK, message):
        violations.append("jailbreak_attempt")
    # Follow-up questions are allowed once a legal matter is on the table
    if not context.established_matters and _any(_NON_LEGAL, message):
        violations.append("non_legal_request")
    if _any(_ABUSIVE, message):
        violations.append("abusive_content")
    if is_spam(message, context.message_count):
        violations.append("spam_content")
    return violations


class ContentPolicyFilter(IntakeMiddleware):
    priority = 10
    name = "content_policy"

    def process(
        self,
        messages: Sequence[Dict[str, str]],
        context: ConversationContext,
        team_config: TeamConfig,
    ) -> MiddlewareResult:
        message = latest_user_message(messages)
        if not message:
            return MiddlewareResult.passthrough(context)

        violations = find_violations(message, context)
        if not violations:
            return MiddlewareResult.passthrough(context)

        logger.warning(
            f"Content policy violation session={context.session_id} team={context.team_id} "
            f"violations={violations} message={describe_text(message)}"
        )
        response = RESPONSES[next(v for v in RESPONSE_ORDER if v in violations)]
        return MiddlewareResult.stop(context.add_safety_flags(violations), response)
