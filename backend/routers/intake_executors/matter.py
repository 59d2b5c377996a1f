"""
Intake Executors - Matter

create_matter and collect_contact_info. Parameters arrive already validated
by the ValidationService.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from errors import handle_async_tool_errors, MatterCreationError, Result
from logging_config import log_tool
from tools.validators import normalize_matter_type
from ..intake_orchestration.context import (
    ArtifactInfo,
    ContactInfo,
    ConversationPhase,
    merge_value,
)
from .common import ToolContext, ToolOutcome, client_info, run_side_effect

logger = logging.getLogger(__name__)

CONTACT_THANKS = (
    "Thank you {name}! I have your contact information. Now I need to understand your legal situation. "
    "Could you briefly describe what you need help with?"
)


def build_summary(
    name: str,
    matter_type: str,
    description: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    location: Optional[str] = None,
    opposing_party: Optional[str] = None,
) -> str:
    """Client-facing confirmation listing what will be submitted."""
    contact = ", ".join(v for v in (phone or "Not provided", email, location) if v)
    lines = [
        "Perfect! I have all the information I need. Here's a summary of your matter:",
        "",
        "**Client Information:**",
        f"- Name: {name}",
        f"- Contact: {contact}",
    ]
    if opposing_party:
        lines.append(f"- Opposing Party: {opposing_party}")
    lines.extend([
        "",
        "**Matter Details:**",
        f"- Type: {matter_type}",
        f"- Description: {description}",
        "",
        "I'll submit this to our legal team for review. A lawyer will contact you within 24 hours to discuss your case.",
    ])
    return "\n".join(lines)


@handle_async_tool_errors("create_matter", logger)
async def execute_create_matter(
    name: str,
    matter_type: str,
    description: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    location: Optional[str] = None,
    opposing_party: Optional[str] = None,
    tool_context: ToolContext = None,
) -> Result:
    """Submit the matter, then notify and render the case artifact (both fail soft)."""
    ctx = tool_context.context
    collaborators = tool_context.collaborators
    matter_type = normalize_matter_type(matter_type)

    matter = {
        "session_id": ctx.session_id,
        "team_id": ctx.team_id,
        "matter_type": matter_type,
        "description": description,
        "opposing_party": opposing_party,
        "jurisdiction": ctx.jurisdiction,
        "urgency": ctx.case_draft.urgency if ctx.case_draft else "medium",
        "client": {"name": name, "email": email, "phone": phone, "location": location},
        "safety_flags": list(ctx.safety_flags),
    }
    log_tool(logger, "create_matter", "start", matter_type=matter_type, name=name)

    submitted = await collaborators.submitter.submit(matter)
    if not submitted.success:
        error = submitted.error
        if not isinstance(error, MatterCreationError):
            error = MatterCreationError("Matter submission failed", details=str(error))
        raise error

    reference = (submitted.data or {}).get("reference")
    updated = ctx.copy(
        matter_created=True,
        matter_reference=reference,
        conversation_phase=ConversationPhase.COMPLETED,
        contact_info=ctx.contact_info.merge(ContactInfo(name=name, email=email, phone=phone, location=location)),
        issue_description=merge_value(ctx.issue_description, description),
    )
    await run_side_effect(
        "notify_matter_created",
        collaborators.notifier.notify(
            "matter_created",
            {"reference": reference, "matter_type": matter_type, "team_id": ctx.team_id},
            client_info(updated),
        ),
        tool_context.side_effect_timeout,
    )

    if updated.case_draft is not None:
        renderer = collaborators.renderer
        content = await run_side_effect(
            "render_case_artifact",
            renderer.render(vars(updated.case_draft), name, tool_context.team_config.branding),
            tool_context.side_effect_timeout,
        )
        if content:
            updated.generated_artifact = ArtifactInfo(
                filename=f"case-summary-{reference or ctx.session_id}.{renderer.extension}",
                size=len(content),
                generated_at=datetime.now(timezone.utc).isoformat(),
            )

    log_tool(logger, "create_matter", "complete", reference=reference)
    message = build_summary(name, matter_type, description, email, phone, location, opposing_party)
    return Result.ok(ToolOutcome(message=message, context=updated, data={"reference": reference}))


@handle_async_tool_errors("collect_contact_info", logger)
async def execute_collect_contact_info(
    name: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    location: Optional[str] = None,
    tool_context: ToolContext = None,
) -> Result:
    ctx = tool_context.context
    updated = ctx.copy(
        contact_info=ctx.contact_info.merge(ContactInfo(name=name, email=email, phone=phone, location=location))
    )
    log_tool(logger, "collect_contact_info", "complete", name=name)
    return Result.ok(ToolOutcome(message=CONTACT_THANKS.format(name=name), context=updated))
