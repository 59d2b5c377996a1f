"""
Intake Executors - Lawyer Review

Escalates a matter to a human. The notification is best effort; the
client is told a review was requested either way.
"""

import logging
from typing import Optional

from errors import handle_async_tool_errors, Result
from logging_config import log_tool
from .common import ToolContext, ToolOutcome, client_info, run_side_effect

logger = logging.getLogger(__name__)

REVIEW_MESSAGE = (
    "I've requested a lawyer review for your case due to its urgent nature. "
    "A lawyer will review your case and contact you to discuss further."
)


@handle_async_tool_errors("request_lawyer_review", logger)
async def execute_request_lawyer_review(
    urgency: Optional[str] = None,
    complexity: Optional[str] = None,
    matter_type: Optional[str] = None,
    tool_context: ToolContext = None,
) -> Result:
    ctx = tool_context.context
    matter_info = {
        "matter_type": matter_type or ctx.primary_matter_type,
        "urgency": urgency or "medium",
        "complexity": complexity,
        "team_id": ctx.team_id,
        "session_id": ctx.session_id,
    }

    delivered = None
    if tool_context.team_config.notify_on_review:
        delivered = await run_side_effect(
            "notify_lawyer_review",
            tool_context.collaborators.notifier.notify("lawyer_review", matter_info, client_info(ctx)),
            tool_context.side_effect_timeout,
        )

    log_tool(logger, "request_lawyer_review", "complete", urgency=matter_info["urgency"], notified=bool(delivered))
    return Result.ok(ToolOutcome(message=REVIEW_MESSAGE, context=ctx, data={"notified": bool(delivered)}))
