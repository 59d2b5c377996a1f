"""
Base Middleware - Abstract base class for deterministic responders.

Each middleware unit knows how to:
1. Inspect the latest messages and the current context
2. Return an (optionally) updated context
3. Optionally answer the turn itself and stop the pipeline

Units run before the AI collaborator is consulted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..context import ConversationContext, TeamConfig


@dataclass
class MiddlewareResult:
    """Outcome of one middleware unit."""

    context: ConversationContext
    response: Optional[str] = None
    should_stop: bool = False

    @classmethod
    def passthrough(cls, context: ConversationContext) -> "MiddlewareResult":
        return cls(context=context)

    @classmethod
    def stop(cls, context: ConversationContext, response: str) -> "MiddlewareResult":
        return cls(context=context, response=response, should_stop=True)


def latest_user_message(messages: Sequence[Dict[str, str]]) -> str:
    """Content of the most recent user message, or '' if there is none."""
    for message in reversed(messages):
        if message.get("role", "user") == "user":
            return message.get("content") or ""
    return ""


def contains_any(text: str, keywords: List[str]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


class IntakeMiddleware(ABC):
    """
    Abstract base class for middleware units.

    Units run in priority order (lowest first). The first unit whose result
    has should_stop=True answers the turn.
    """

    priority: int = 100
    name: str = "base"

    @abstractmethod
    def process(
        self,
        messages: Sequence[Dict[str, str]],
        context: ConversationContext,
        team_config: TeamConfig,
    ) -> MiddlewareResult:
        """
        Inspect the turn and return a result.

        Must always return a context, even when not stopping. Exceptions are
        caught by the pipeline and treated as "no match".
        """
        pass
