"""
Document Checklist - answers "what documents do I need" deterministically.

The checklist is the base identity documents plus a static per-matter table.
Matters without a table get the base documents only.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from ..context import ConversationContext, DocumentChecklist, TeamConfig
from .base import IntakeMiddleware, MiddlewareResult, contains_any, latest_user_message
from .skip_to_lawyer import matter_type_from_text

logger = logging.getLogger(__name__)

DOCUMENT_KEYWORDS = [
    "document checklist",
    "what documents do i need",
    "required documents",
    "gather documents",
    "document requirements",
    "what papers do i need",
    "document preparation",
    "required paperwork",
    "document list",
    "what files do i need",
]


@dataclass(frozen=True)
class DocumentRequirement:
    name: str
    description: str
    required: bool = True


BASE_DOCUMENTS = [
    DocumentRequirement("Government ID", "Driver's license, passport, or state ID"),
    DocumentRequirement("Contact Information", "Current address, phone number, email"),
]

# Keyed by lowercase matter label
MATTER_DOCUMENTS: Dict[str, List[DocumentRequirement]] = {
    "family law": [
        DocumentRequirement("Marriage Certificate", "Copy of marriage certificate"),
        DocumentRequirement("Children's Birth Certificates", "Birth certificates for all children"),
        DocumentRequirement("Financial Documents", "Bank statements, tax returns, pay stubs"),
        DocumentRequirement("Property Documents", "Deeds, mortgage statements, property appraisals", False),
    ],
    "employment law": [
        DocumentRequirement("Employment Contract", "Original or copy of employment contract"),
        DocumentRequirement("Pay Stubs", "Recent pay stubs showing income and deductions"),
        DocumentRequirement("Termination Letter", "Copy of termination letter or notice"),
        DocumentRequirement("Performance Reviews", "Copies of performance reviews or evaluations", False),
        DocumentRequirement("Benefits Information", "Information about health insurance, retirement plans, etc.", False),
    ],
    "personal injury": [
        DocumentRequirement("Medical Records", "All medical records related to the injury"),
        DocumentRequirement("Police Report", "Copy of police report if applicable"),
        DocumentRequirement("Insurance Information", "Insurance policy information and correspondence"),
        DocumentRequirement("Witness Statements", "Statements from any witnesses", False),
        DocumentRequirement("Photos and Evidence", "Photos of injuries, accident scene, property damage", False),
    ],
    "business law": [
        DocumentRequirement("Business Formation Documents", "Articles of incorporation, operating agreements, etc."),
        DocumentRequirement("Contracts and Agreements", "Relevant business contracts and agreements"),
        DocumentRequirement("Financial Records", "Business financial statements, tax returns"),
        DocumentRequirement("Correspondence", "Relevant emails, letters, and communications", False),
    ],
}


def determine_matter_type(conversation_text: str, context: ConversationContext) -> str:
    """Case draft, then first established matter, then a text search."""
    if context.case_draft and context.case_draft.matter_type:
        return context.case_draft.matter_type
    if context.established_matters:
        return context.established_matters[0]
    return matter_type_from_text(conversation_text)


def documents_for(matter_type: str) -> List[DocumentRequirement]:
    return BASE_DOCUMENTS + MATTER_DOCUMENTS.get(matter_type.lower(), [])


def render_checklist(matter_type: str, documents: List[DocumentRequirement]) -> str:
    required = [d for d in documents if d.required]
    optional = [d for d in documents if not d.required]

    lines = [f"I've prepared a document checklist for your {matter_type} case. Here are the documents you'll need:", ""]
    if required:
        lines.append("**Required Documents:**")
        lines.extend(f"{i}. **{d.name}** - {d.description}" for i, d in enumerate(required, 1))
    if optional:
        lines.append("")
        lines.append("**Optional Documents (helpful but not required):**")
        lines.extend(f"{i}. **{d.name}** - {d.description}" for i, d in enumerate(optional, 1))
    lines.extend([
        "",
        "**Next Steps:**",
        "• Gather the required documents first",
        "• Organize documents in a logical order",
        "• Make copies of important originals",
        "• Contact me if you need help obtaining any documents",
        "",
        "Would you like me to help you with any specific document requirements or case preparation?",
    ])
    return "\n".join(lines)


class DocumentChecklistMiddleware(IntakeMiddleware):
    priority = 30
    name = "document_checklist"

    def process(
        self,
        messages: Sequence[Dict[str, str]],
        context: ConversationContext,
        team_config: TeamConfig,
    ) -> MiddlewareResult:
        if not contains_any(latest_user_message(messages), DOCUMENT_KEYWORDS):
            return MiddlewareResult.passthrough(context)

        conversation_text = " ".join((m.get("content") or "") for m in messages)
        matter_type = determine_matter_type(conversation_text, context)
        documents = documents_for(matter_type)
        required = [d.name for d in documents if d.required]

        checklist = DocumentChecklist(
            matter_type=matter_type,
            required=required,
            optional=[d.name for d in documents if not d.required],
            provided=[],
            missing=list(required),
            last_updated=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(f"Document checklist generated for {matter_type}: {len(required)} required")
        return MiddlewareResult.stop(context.copy(document_checklist=checklist), render_checklist(matter_type, documents))
