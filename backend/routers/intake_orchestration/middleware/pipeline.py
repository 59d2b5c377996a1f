"""
Middleware Pipeline - ordered, short-circuiting chain of responders.

Iterates units by priority (lowest first). Each unit sees the context
produced by the one before it; the first unit that stops answers the turn.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from logging_config import log_middleware
from ..context import ConversationContext, TeamConfig
from .base import IntakeMiddleware

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    context: ConversationContext
    response: Optional[str] = None
    stopped_by: Optional[str] = None
    middleware_used: List[str] = field(default_factory=list)

    @property
    def short_circuited(self) -> bool:
        return self.stopped_by is not None


class MiddlewarePipeline:
    """
    Runs middleware units in priority order.

    Usage:
        pipeline = MiddlewarePipeline()
        pipeline.register(ContentPolicyFilter())
        pipeline.register(DocumentChecklistMiddleware())

        result = pipeline.run(messages, context, team_config)
        if result.short_circuited:
            return result.response
    """

    def __init__(self):
        self._units: List[IntakeMiddleware] = []
        self._sorted = False

    def register(self, unit: IntakeMiddleware) -> None:
        """Register a middleware unit."""
        self._units.append(unit)
        self._sorted = False
        logger.debug(f"Registered middleware: {unit.name} (priority {unit.priority})")

    def _ensure_sorted(self) -> None:
        if not self._sorted:
            self._units.sort(key=lambda u: u.priority)
            self._sorted = True

    def run(
        self,
        messages: Sequence[Dict[str, str]],
        context: ConversationContext,
        team_config: TeamConfig,
    ) -> PipelineResult:
        """Run units until one stops. A failing unit counts as no match."""
        self._ensure_sorted()
        current = context
        used: List[str] = []

        for unit in self._units:
            try:
                result = unit.process(messages, current, team_config)
            except Exception as e:
                logger.warning(f"Middleware {unit.name} failed, continuing: {type(e).__name__}: {e}")
                continue

            if result is None or result.context is None:
                logger.warning(f"Middleware {unit.name} returned no context, ignoring its result")
                continue

            current = result.context
            used.append(unit.name)

            if result.should_stop and result.response:
                log_middleware(logger, unit.name, stopped=True)
                return PipelineResult(
                    context=current,
                    response=result.response,
                    stopped_by=unit.name,
                    middleware_used=used,
                )
            log_middleware(logger, unit.name, stopped=False)

        return PipelineResult(context=current, middleware_used=used)

    def get_units(self) -> List[IntakeMiddleware]:
        """Get all registered units (sorted by priority)."""
        self._ensure_sorted()
        return self._units.copy()


# Global pipeline instance with all units registered
_pipeline: Optional[MiddlewarePipeline] = None


def get_pipeline() -> MiddlewarePipeline:
    """Get or create the global pipeline with the standard units."""
    global _pipeline

    if _pipeline is None:
        from .content_policy import ContentPolicyFilter
        from .skip_to_lawyer import SkipToLawyerMiddleware
        from .document_checklist import DocumentChecklistMiddleware
        from .case_draft import CaseDraftMiddleware

        _pipeline = MiddlewarePipeline()
        _pipeline.register(ContentPolicyFilter())
        _pipeline.register(SkipToLawyerMiddleware())
        _pipeline.register(DocumentChecklistMiddleware())
        _pipeline.register(CaseDraftMiddleware())

        logger.info(f"MiddlewarePipeline initialized with {len(_pipeline._units)} units")

    return _pipeline
