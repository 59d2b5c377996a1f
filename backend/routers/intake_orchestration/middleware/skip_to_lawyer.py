"""
Skip-to-lawyer - lets a client bypass the guided intake.

When the client asks to go straight to a lawyer and we do not yet hold a
name plus a way to reach them, answer with the contact-form prompt instead
of continuing the interview.
"""

import logging
from typing import Dict, Optional, Sequence

from ..context import ConversationContext, TeamConfig
from .base import IntakeMiddleware, MiddlewareResult, contains_any, latest_user_message

logger = logging.getLogger(__name__)

SKIP_KEYWORDS = [
    "skip the intake",
    "skip intake",
    "go directly to a lawyer",
    "find a lawyer",
    "need a lawyer",
    "want a lawyer",
    "connect with a lawyer",
    "speak to a lawyer",
    "talk to a lawyer",
    "get a lawyer",
    "hire a lawyer",
    "lawyer now",
    "urgent lawyer",
    "immediate lawyer",
]

MATTER_TYPE_KEYWORDS = [
    "family law",
    "employment law",
    "business law",
    "contract review",
    "intellectual property",
    "personal injury",
    "criminal law",
    "civil law",
    "real estate",
    "estate planning",
    "immigration",
    "bankruptcy",
]

REASON_MAX_CHARS = 100


def matter_type_from_text(text: str, default: Optional[str] = "General Consultation") -> Optional[str]:
    lowered = text.lower()
    for keyword in MATTER_TYPE_KEYWORDS:
        if keyword in lowered:
            return keyword.title()
    return default


def contact_form_response(reason: str, matter_type: str, firm_name: str) -> str:
    return (
        f"I understand you want to skip the intake process and connect directly with {firm_name}. "
        f"{reason}. I'll show you our contact form so we can get in touch with you right away.\n\n"
        "**Contact Information Required:**\n"
        "• Full Name\n"
        "• Email Address\n"
        "• Phone Number\n"
        "• Location (City, State)\n"
        f"• Brief description of your {matter_type} matter\n\n"
        "**What happens next:**\n"
        "• Our team will review your information\n"
        "• A qualified attorney will contact you within 24 hours\n"
        "• We'll schedule a consultation to discuss your case\n"
        "• You'll receive personalized legal guidance\n\n"
        "Please fill out the contact form below and we'll connect you with the right attorney "
        f"for your {matter_type} needs."
    )


class SkipToLawyerMiddleware(IntakeMiddleware):
    priority = 20
    name = "skip_to_lawyer"

    def process(
        self,
        messages: Sequence[Dict[str, str]],
        context: ConversationContext,
        team_config: TeamConfig,
    ) -> MiddlewareResult:
        message = latest_user_message(messages)
        if not contains_any(message, SKIP_KEYWORDS):
            return MiddlewareResult.passthrough(context)

        # Already reachable: let the normal flow create the matter
        if context.contact_info.name and context.contact_info.has_contact_method:
            return MiddlewareResult.passthrough(context)

        matter_type = matter_type_from_text(message, default=context.primary_matter_type or "General Consultation")
        reason = message.strip().rstrip(".!?")
        if len(reason) > REASON_MAX_CHARS:
            reason = reason[:REASON_MAX_CHARS] + "..."

        logger.info(f"Skip-to-lawyer requested session={context.session_id} matter_type={matter_type}")
        firm_name = team_config.name or "our legal team"
        return MiddlewareResult.stop(context, contact_form_response(reason, matter_type, firm_name))
