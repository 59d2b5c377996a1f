"""
Deterministic responders that run before the AI collaborator.
"""

from .base import IntakeMiddleware, MiddlewareResult, latest_user_message
from .pipeline import MiddlewarePipeline, PipelineResult, get_pipeline
from .content_policy import ContentPolicyFilter
from .skip_to_lawyer import SkipToLawyerMiddleware
from .document_checklist import DocumentChecklistMiddleware
from .case_draft import CaseDraftMiddleware

__all__ = [
    "IntakeMiddleware",
    "MiddlewareResult",
    "latest_user_message",
    "MiddlewarePipeline",
    "PipelineResult",
    "get_pipeline",
    "ContentPolicyFilter",
    "SkipToLawyerMiddleware",
    "DocumentChecklistMiddleware",
    "CaseDraftMiddleware",
]
