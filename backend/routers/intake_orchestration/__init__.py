"""
Intake Orchestration - conversation turn components

Components:
- ConversationContext / TeamConfig: Session state and per-team settings
- update_context: Heuristic extraction from the message history
- IntakeState / derive_state: How far the intake has progressed
- MiddlewarePipeline: Deterministic responders ahead of the AI
- parse_tool_call: TOOL_CALL / PARAMETERS text protocol
- build_system_prompt: Persona, context and tools sections
- IntakeOrchestrator (orchestrator.py): Runs one turn end to end; import it
  from the module directly, it depends on services/ which depends on context

Turn flow:
    load context -> extract -> middleware -> (completed? ready?) -> AI -> dispatch -> save

The AI is never called when middleware answers, when a matter already
exists, or when the intake is ready and the matter can be created directly.
"""

from .context import (
    ArtifactInfo,
    CaseDraft,
    ContactInfo,
    ConversationContext,
    ConversationPhase,
    DocumentChecklist,
    TeamConfig,
    UserIntent,
)
from .extractor import update_context
from .state_machine import IntakeFlags, IntakeState, derive_state, state_for
from .tool_call_parser import ToolInvocation, parse_tool_call
from .prompts import PersonaTemplate, build_system_prompt, sanitize_prompt_value

__all__ = [
    "ArtifactInfo",
    "CaseDraft",
    "ContactInfo",
    "ConversationContext",
    "ConversationPhase",
    "DocumentChecklist",
    "TeamConfig",
    "UserIntent",
    "update_context",
    "IntakeFlags",
    "IntakeState",
    "derive_state",
    "state_for",
    "ToolInvocation",
    "parse_tool_call",
    "PersonaTemplate",
    "build_system_prompt",
    "sanitize_prompt_value",
]
