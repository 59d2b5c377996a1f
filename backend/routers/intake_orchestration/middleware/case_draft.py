"""
Case Draft - starts an organised case summary on request.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from utils.gazetteer import find_first_state
from ..context import CaseDraft, ConversationContext, TeamConfig
from .base import IntakeMiddleware, MiddlewareResult, contains_any, latest_user_message
from .skip_to_lawyer import matter_type_from_text

logger = logging.getLogger(__name__)

CASE_DRAFT_KEYWORDS = [
    "build a case draft",
    "organize my case",
    "case summary",
    "case preparation",
    "prepare my case",
    "case file",
    "case organization",
    "structure my case",
    "case building",
    "organize case information",
]

# (keywords, fact label)
FACT_RULES = [
    (["fired", "terminated"], "Employment termination"),
    (["divorce", "separation"], "Family law matter"),
    (["contract", "agreement"], "Contract-related issue"),
    (["injury", "accident"], "Personal injury incident"),
]


def extract_key_facts(text: str) -> List[str]:
    return [label for keywords, label in FACT_RULES if contains_any(text, keywords)]


def extract_urgency(text: str) -> str:
    lowered = text.lower()
    if "not urgent" in lowered or "routine" in lowered:
        return "low"
    if "urgent" in lowered or "emergency" in lowered:
        return "high"
    return "medium"


def render_case_summary(draft: CaseDraft) -> str:
    lines = ["I've started organizing your case information. Here's what I've gathered so far:", ""]
    lines.append(f"**Case Type:** {draft.matter_type}")
    if draft.jurisdiction:
        lines.append(f"**Jurisdiction:** {draft.jurisdiction}")
    lines.append(f"**Urgency:** {draft.urgency}")
    if draft.key_facts:
        lines.append("")
        lines.append("**Key Facts Identified:**")
        lines.extend(f"{i}. {fact}" for i, fact in enumerate(draft.key_facts, 1))
    lines.extend([
        "",
        "**Next Steps:**",
        "• Please provide more details about your situation",
        "• Share any relevant documents or evidence",
        "• Let me know about any important dates or timeline",
        "• I can help you organize this into a comprehensive case summary",
        "",
        "Would you like to continue building your case draft with more specific information?",
    ])
    return "\n".join(lines)


class CaseDraftMiddleware(IntakeMiddleware):
    priority = 40
    name = "case_draft"

    def process(
        self,
        messages: Sequence[Dict[str, str]],
        context: ConversationContext,
        team_config: TeamConfig,
    ) -> MiddlewareResult:
        message = latest_user_message(messages)
        if not contains_any(message, CASE_DRAFT_KEYWORDS):
            return MiddlewareResult.passthrough(context)

        user_text = " ".join((m.get("content") or "") for m in messages if m.get("role", "user") == "user")
        now = datetime.now(timezone.utc).isoformat()
        previous = context.case_draft

        matter_type = matter_type_from_text(message, default=None) or context.primary_matter_type or "General Consultation"
        facts = list(previous.key_facts) if previous else []
        for fact in extract_key_facts(user_text):
            if fact not in facts:
                facts.append(fact)

        draft = CaseDraft(
            matter_type=matter_type,
            key_facts=facts,
            jurisdiction=context.jurisdiction or find_first_state(user_text),
            urgency=extract_urgency(message),
            status="draft",
            created_at=previous.created_at if previous else now,
            updated_at=now,
        )
        logger.info(f"Case draft updated: type={matter_type} facts={len(facts)} urgency={draft.urgency}")
        return MiddlewareResult.stop(context.copy(case_draft=draft), render_case_summary(draft))
