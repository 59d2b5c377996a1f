"""
Intake Executors - Documents

analyze_document: extract text from an uploaded file and steer the client
toward creating a matter of the suggested type.
"""

import asyncio
import logging
from typing import Optional

from errors import handle_async_tool_errors, ExternalServiceError, Result
from logging_config import log_tool
from .common import ToolContext, ToolOutcome

logger = logging.getLogger(__name__)

# (analysis_type, text keyword, suggested matter type), first match wins
MATTER_SUGGESTIONS = [
    ("contract", "contract", "Contract Review"),
    ("medical_document", "medical", "Personal Injury"),
    ("government_form", "form", "Administrative Law"),
    ("image", "accident", "Personal Injury"),
    ("image", "property", "Property Law"),
]

SUMMARY_MAX_CHARS = 600


def suggest_matter_type(analysis_type: Optional[str], text: str) -> str:
    lowered = (text or "").lower()
    for kind, keyword, matter_type in MATTER_SUGGESTIONS:
        if analysis_type == kind:
            return matter_type
    for kind, keyword, matter_type in MATTER_SUGGESTIONS:
        if keyword in lowered:
            return matter_type
    return "General Consultation"


def render_analysis(summary: str, matter_type: str, question: Optional[str] = None) -> str:
    lines = ["I've analyzed your document and here's what I found:", ""]
    if summary:
        lines.extend([f"**Document Analysis:** {summary}", ""])
    if question:
        lines.extend([f"**Your Question:** {question}", ""])
    lines.extend([
        f"**Suggested Legal Matter Type:** {matter_type}",
        "",
        "Based on this analysis, I can help you:",
        "• Create a legal matter for attorney review",
        "• Identify potential legal issues or concerns",
        "• Determine appropriate legal services needed",
        "• Prepare for consultation with an attorney",
        "",
        f"Would you like me to create a legal matter for this {matter_type.lower()} case? "
        "I'll need your contact information to get started.",
    ])
    return "\n".join(lines)


@handle_async_tool_errors("analyze_document", logger)
async def execute_analyze_document(
    file_id: str,
    analysis_type: Optional[str] = None,
    specific_question: Optional[str] = None,
    tool_context: ToolContext = None,
) -> Result:
    extractor = tool_context.collaborators.extractor
    log_tool(logger, "analyze_document", "start", file_id=file_id, analysis_type=analysis_type)

    try:
        extracted = await asyncio.wait_for(extractor.fetch_and_extract(file_id), timeout=tool_context.extraction_timeout)
    except asyncio.TimeoutError as e:
        raise ExternalServiceError(
            "Document extraction timed out", service="document_extraction", timeout=True, file_id=file_id
        ) from e

    if not extracted.success:
        raise extracted.error

    text = (extracted.data or {}).get("text") or ""
    summary = " ".join(text.split())
    if len(summary) > SUMMARY_MAX_CHARS:
        summary = summary[:SUMMARY_MAX_CHARS].rstrip() + "..."

    matter_type = suggest_matter_type(analysis_type, text)
    log_tool(logger, "analyze_document", "complete", suggested=matter_type, chars=len(text))
    return Result.ok(
        ToolOutcome(
            message=render_analysis(summary, matter_type, specific_question),
            context=tool_context.context,
            data={"suggested_matter_type": matter_type},
        )
    )
