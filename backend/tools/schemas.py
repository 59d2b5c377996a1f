"""
Per-tool parameter schemas enforced at the parse boundary.

Only shape is checked here (known fields, string values). Required fields,
placeholder rejection and formats are the ValidationService's job so that a
missing value produces a polite follow-up instead of a dropped tool call.
"""

from typing import Dict, Optional, Type

from pydantic import BaseModel, ConfigDict


class ToolParams(BaseModel):
    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True, str_strip_whitespace=True)


class CreateMatterParams(ToolParams):
    name: Optional[str] = None
    matter_type: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    opposing_party: Optional[str] = None


class CollectContactInfoParams(ToolParams):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None


class RequestLawyerReviewParams(ToolParams):
    urgency: Optional[str] = None
    complexity: Optional[str] = None
    matter_type: Optional[str] = None


class AnalyzeDocumentParams(ToolParams):
    file_id: Optional[str] = None
    analysis_type: Optional[str] = None
    specific_question: Optional[str] = None


TOOL_SCHEMAS: Dict[str, Type[ToolParams]] = {
    "create_matter": CreateMatterParams,
    "collect_contact_info": CollectContactInfoParams,
    "request_lawyer_review": RequestLawyerReviewParams,
    "analyze_document": AnalyzeDocumentParams,
}
