"""
Intake Router - HTTP entry point for conversation turns

POST /api/intake/turn takes the full message history for a session and
returns the assistant's reply plus the updated intake state. All turn logic
lives in intake_orchestration/.
"""

import logging
import re
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator

from errors import GENERIC_RETRY_MESSAGE
from .intake_orchestration import TeamConfig
from .intake_orchestration.orchestrator import IntakeOrchestrator, get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/intake", tags=["intake"])

# Session / team id: alphanumeric, hyphens, underscores, dots, colons; max 128 chars
_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]{1,128}$")

MAX_MESSAGES = 200


class IntakeMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str = ""


class TeamConfigPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    persona: Optional[str] = None
    intro: str = ""
    branding: Dict[str, Any] = Field(default_factory=dict)
    available_services: List[str] = Field(default_factory=list)
    notify_on_review: bool = True


class IntakeTurnRequest(BaseModel):
    messages: List[IntakeMessage] = Field(min_length=1, max_length=MAX_MESSAGES)
    session_id: str
    team_id: str
    team_config: Optional[TeamConfigPayload] = None

    @field_validator("session_id", "team_id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not _ID_PATTERN.match(value):
            raise ValueError("must be 1-128 characters: letters, digits, '_', '-', '.', ':'")
        return value


class IntakeTurnResponse(BaseModel):
    response: str
    state: str
    source: str
    tool_invoked: Optional[str] = None
    tool_success: Optional[bool] = None
    matter_created: bool = False
    matter_reference: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)


@router.post("/turn", response_model=IntakeTurnResponse)
async def intake_turn(
    request: IntakeTurnRequest,
    orchestrator: IntakeOrchestrator = Depends(get_orchestrator),
) -> IntakeTurnResponse:
    """Handle one conversation turn."""
    payload = request.team_config.model_dump() if request.team_config else None
    team_config = TeamConfig.from_dict(request.team_id, payload)
    messages = [m.model_dump() for m in request.messages]

    result = await orchestrator.handle_turn(messages, request.session_id, request.team_id, team_config)

    if not result.response_text:
        logger.error(f"Empty response for session {request.session_id} (source={result.source})")

    ctx = result.updated_context
    return IntakeTurnResponse(
        response=result.response_text or GENERIC_RETRY_MESSAGE,
        state=result.state.value,
        source=result.source,
        tool_invoked=result.tool_invoked,
        tool_success=result.tool_result.success if result.tool_result is not None else None,
        matter_created=ctx.matter_created,
        matter_reference=ctx.matter_reference,
        context=ctx.to_dict(),
    )
