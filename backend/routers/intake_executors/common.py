"""
Intake Executors - Common Utilities

Shared types and helpers used by every tool executor.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, Optional, TypeVar

from services.collaborators import Collaborators
from ..intake_orchestration.context import ConversationContext, TeamConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ToolContext:
    """Everything an executor may need besides its own parameters."""

    context: ConversationContext
    team_config: TeamConfig
    collaborators: Collaborators
    side_effect_timeout: float = 5.0
    extraction_timeout: float = 10.0


@dataclass
class ToolOutcome:
    """Successful executor output: the reply, the updated context, and any extra data."""

    message: str
    context: ConversationContext
    data: Dict[str, Any] = field(default_factory=dict)


async def run_side_effect(name: str, awaitable: Awaitable[T], timeout: float) -> Optional[T]:
    """Await a non-essential effect with a deadline; failures are logged and yield None."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Side effect {name} timed out after {timeout}s; continuing")
    except Exception as e:
        logger.warning(f"Side effect {name} failed; continuing: {type(e).__name__}: {e}")
    return None


def client_info(context: ConversationContext, **overrides: Optional[str]) -> Dict[str, Optional[str]]:
    info = context.contact_info.to_dict()
    info.update({k: v for k, v in overrides.items() if v})
    return info
