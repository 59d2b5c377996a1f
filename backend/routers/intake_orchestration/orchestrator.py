"""
Intake Orchestrator - one conversation turn, end to end

Handles a turn in this order:
1. Serialize per session, load the stored context, run the extractor
2. Middleware pipeline (may answer on its own)
3. Completion short-circuit once a matter exists
4. Direct create_matter when the intake is ready (no AI call)
5. AI path: persona prompt -> AI collaborator -> tool-call parse -> dispatch
6. Save the context with its own deadline

Also manages:
- AI timeouts, transient-error retry and the circuit breaker
- Cancellation (the AI task is cancelled, the save still runs)
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from openai import APIConnectionError, APITimeoutError, InternalServerError, RateLimitError

from config import RuntimeConfig, runtime_config
from errors import AIServiceError, GENERIC_RETRY_MESSAGE, IntakeError, Result
from logging_config import log_llm, log_message_in, log_message_out, log_state
from services.collaborators import Collaborators, get_collaborators
from services.context_store import ContextStore, SessionLocks, get_context_store
from services.llm_client import AICollaborator, get_llm_client
from ..intake_executors import ToolContext, ToolOutcome, execute_tool
from .context import ConversationContext, TeamConfig
from .extractor import update_context
from .middleware import MiddlewarePipeline, get_pipeline, latest_user_message
from .prompts import build_system_prompt
from .state_machine import IntakeState, is_general_inquiry, state_for
from .tool_call_parser import ToolInvocation, parse_tool_call, strip_tool_directive

logger = logging.getLogger(__name__)

ALREADY_CREATED_MESSAGE = (
    "I've already helped you create a matter for your case. A lawyer will contact you within 24 hours "
    "to discuss your situation further. Is there anything else I can help you with?"
)

URGENT_CONTACT_MESSAGE = (
    "I understand this is urgent, and I want to get a lawyer on this right away. "
    "What is the best phone number or email address for a lawyer to reach you?"
)

EMPTY_REPLY_MESSAGE = "I'm sorry, I didn't quite catch that. Could you tell me a little more about your situation?"


_PERMANENT_ERROR_PATTERNS = [
    "model not found",
    "does not exist",
    "invalid model",
    "invalid api key",
]

_TRANSIENT_ERROR_PATTERNS = [
    "model is loading",
    "connection refused",
    "connection reset",
    "temporarily unavailable",
    "overloaded",
    "rate limit",
]

_RETRYABLE_EXCEPTIONS = (APIConnectionError, APITimeoutError, RateLimitError, InternalServerError, ConnectionError)


def is_retryable_error(error: Exception) -> bool:
    """Check if error is transient and worth retrying (not permanent failures)."""
    error_str = str(error).lower()
    if any(p in error_str for p in _PERMANENT_ERROR_PATTERNS):
        return False
    if isinstance(error, _RETRYABLE_EXCEPTIONS):
        return True
    return any(p in error_str for p in _TRANSIENT_ERROR_PATTERNS)


class _CircuitBreaker:
    """Prevents cascading failures when the AI service is down."""

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 30):
        self.failures = 0
        self.threshold = failure_threshold
        self.timeout = recovery_timeout
        self.last_failure_time = 0.0
        self.state = "closed"  # closed, open, half_open

    def is_open(self) -> bool:
        if self.state == "open":
            if time.time() - self.last_failure_time > self.timeout:
                self.state = "half_open"
                return False
            return True
        return False

    def record_success(self) -> None:
        self.failures = 0
        self.state = "closed"

    def record_failure(self) -> None:
        self.failures += 1
        self.last_failure_time = time.time()
        if self.failures >= self.threshold or self.state == "half_open":
            if self.state != "open":
                logger.error("Circuit breaker OPEN - AI service unavailable")
            self.state = "open"


@dataclass
class TurnResult:
    """Outcome of one handled turn."""

    response_text: str
    updated_context: ConversationContext
    state: IntakeState
    tool_invoked: Optional[str] = None
    tool_result: Optional[Result] = None
    source: str = "ai"  # middleware name, "completed", "bypass", "ai" or "ai_error"


class IntakeOrchestrator:
    """Runs intake turns against injected collaborators.

    Every collaborator defaults to its configured singleton, so tests pass
    fakes and the HTTP layer passes nothing.
    """

    def __init__(
        self,
        store: Optional[ContextStore] = None,
        llm: Optional[AICollaborator] = None,
        collaborators: Optional[Collaborators] = None,
        pipeline: Optional[MiddlewarePipeline] = None,
        config: Optional[RuntimeConfig] = None,
        locks: Optional[SessionLocks] = None,
    ):
        self.config = config or runtime_config
        # Stores and lock registries define __len__, so test for None explicitly
        self.store = store if store is not None else get_context_store()
        self.llm = llm if llm is not None else get_llm_client()
        self.collaborators = collaborators if collaborators is not None else get_collaborators()
        self.pipeline = pipeline if pipeline is not None else get_pipeline()
        self.locks = locks if locks is not None else SessionLocks()
        self.circuit = _CircuitBreaker(
            failure_threshold=self.config.circuit_failure_threshold,
            recovery_timeout=self.config.circuit_recovery_seconds,
        )

    async def handle_turn(
        self,
        messages: Sequence[Dict[str, str]],
        session_id: str,
        team_id: str,
        team_config: Optional[TeamConfig] = None,
    ) -> TurnResult:
        """Handle one turn. Concurrent turns for the same session run one at a time."""
        team_config = team_config or TeamConfig(team_id=team_id)
        if not self.config.session_locking:
            return await self._run_turn(messages, session_id, team_id, team_config)
        async with self.locks.hold(session_id, team_id):
            return await self._run_turn(messages, session_id, team_id, team_config)

    async def _run_turn(
        self,
        messages: Sequence[Dict[str, str]],
        session_id: str,
        team_id: str,
        team_config: TeamConfig,
    ) -> TurnResult:
        latest = latest_user_message(messages)
        log_message_in(logger, latest, session=session_id, team=team_id, count=len(messages))

        stored = await self.store.load(session_id, team_id)
        previous_state = state_for(stored)
        context = update_context(stored, messages)
        log_state(logger, previous_state.value, state_for(context).value, session=session_id)

        try:
            result = await self._respond(messages, context, team_config, latest)
        except asyncio.CancelledError:
            logger.warning(f"Turn cancelled for session {session_id}; saving extracted context")
            await asyncio.shield(self._save(context))
            raise

        await self._save(result.updated_context)
        log_message_out(logger, result.source, tool=result.tool_invoked, state=result.state.value)
        return result

    async def _respond(
        self,
        messages: Sequence[Dict[str, str]],
        context: ConversationContext,
        team_config: TeamConfig,
        latest: str,
    ) -> TurnResult:
        piped = self.pipeline.run(messages, context, team_config)
        context = piped.context
        if piped.short_circuited:
            return TurnResult(piped.response, context, state_for(context), source=piped.stopped_by)

        if context.matter_created:
            return TurnResult(ALREADY_CREATED_MESSAGE, context, IntakeState.COMPLETED, source="completed")

        state = state_for(context)
        general_inquiry = is_general_inquiry(latest)

        if state == IntakeState.READY_TO_CREATE_MATTER and self.config.auto_create_when_ready and not general_inquiry:
            if not context.contact_info.has_contact_method:
                # Sensitive matters reach READY without a contact method
                return TurnResult(URGENT_CONTACT_MESSAGE, context, state, source="bypass")
            invocation = self._synthesize_create_matter(context)
            logger.info(f"Intake ready, creating matter directly for session {context.session_id}")
            return await self._dispatch(invocation, context, team_config, source="bypass")

        system_prompt = build_system_prompt(
            context,
            state,
            team_config,
            latest_message=latest,
            firm_name=self.config.firm_name,
            default_persona=self.config.default_persona,
        )
        try:
            reply = await self._call_ai(system_prompt, messages)
        except AIServiceError as e:
            e.log(logger)
            return TurnResult(e.to_user_response(), context, state, source="ai_error")

        invocation = parse_tool_call(reply)
        if invocation is not None and general_inquiry:
            logger.info(f"Ignoring {invocation.tool_name} call on a general inquiry turn")
            invocation = None

        if invocation is None:
            text = strip_tool_directive(reply).strip() or EMPTY_REPLY_MESSAGE
            return TurnResult(text, context, state, source="ai")

        return await self._dispatch(invocation, context, team_config, source="ai")

    @staticmethod
    def _synthesize_create_matter(context: ConversationContext) -> ToolInvocation:
        contact = context.contact_info
        if context.established_matters:
            matter_type = context.established_matters[0]
        else:
            matter_type = context.primary_matter_type
        params = {
            "name": contact.name,
            "matter_type": matter_type,
            "description": context.issue_description,
            "email": contact.email,
            "phone": contact.phone,
            "location": contact.location or context.jurisdiction,
        }
        return ToolInvocation(tool_name="create_matter", parameters={k: v for k, v in params.items() if v})

    async def _dispatch(
        self,
        invocation: ToolInvocation,
        context: ConversationContext,
        team_config: TeamConfig,
        source: str,
    ) -> TurnResult:
        tool_context = ToolContext(
            context=context,
            team_config=team_config,
            collaborators=self.collaborators,
            side_effect_timeout=self.config.side_effect_timeout,
            extraction_timeout=self.config.http_timeout,
        )
        result = await execute_tool(invocation.tool_name, dict(invocation.parameters), tool_context)

        if result.success and isinstance(result.data, ToolOutcome):
            updated = result.data.context
            return TurnResult(
                result.data.message,
                updated,
                state_for(updated),
                tool_invoked=invocation.tool_name,
                tool_result=result,
                source=source,
            )

        error = result.error
        message = error.to_user_response() if isinstance(error, IntakeError) else GENERIC_RETRY_MESSAGE
        return TurnResult(
            message,
            context,
            state_for(context),
            tool_invoked=invocation.tool_name,
            tool_result=result,
            source=source,
        )

    async def _call_ai(self, system_prompt: str, messages: Sequence[Dict[str, str]]) -> str:
        """Call the AI collaborator with timeout, retry and circuit breaking.

        Raises:
            AIServiceError: On timeout, open circuit, or a non-retryable failure
        """
        model = getattr(self.llm, "model", type(self.llm).__name__)
        if self.circuit.is_open():
            raise AIServiceError("AI circuit breaker is open", model=model, error_type="circuit_open")

        attempts = max(1, self.config.ai_retry_max)
        timeout = self.config.ai_timeout

        for attempt in range(attempts):
            if attempt > 0:
                delay = self.config.ai_retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retry {attempt}/{attempts - 1} for {model} after {delay:.1f}s")
                await asyncio.sleep(delay)

            start_time = time.time()
            log_llm(logger, "start", model=model)
            try:
                reply = await asyncio.wait_for(self.llm.complete(system_prompt, messages), timeout=timeout)
            except asyncio.TimeoutError:
                self.circuit.record_failure()
                raise AIServiceError(
                    f"AI response timed out after {timeout}s",
                    model=model,
                    error_type="timeout",
                ) from None
            except Exception as e:
                self.circuit.record_failure()
                if is_retryable_error(e) and attempt < attempts - 1:
                    logger.warning(f"Retryable error on {model}: {type(e).__name__}: {e}")
                    continue
                raise AIServiceError(
                    "AI collaborator failed",
                    details=f"{type(e).__name__}: {e}",
                    model=model,
                ) from e

            log_llm(logger, "end", model=model, duration=time.time() - start_time)
            self.circuit.record_success()
            return reply or ""

        raise AIServiceError("AI collaborator failed", model=model)

    async def _save(self, context: ConversationContext) -> bool:
        """Persist the context; a slow or failing store never fails the turn."""
        timeout = self.config.store_save_timeout
        try:
            return await asyncio.wait_for(self.store.save(context), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Context save timed out after {timeout}s for session {context.session_id}; "
                "returning in-memory context"
            )
            return False


# Global orchestrator instance
_orchestrator: Optional[IntakeOrchestrator] = None


def get_orchestrator() -> IntakeOrchestrator:
    """Get the orchestrator singleton wired to the configured collaborators."""
    global _orchestrator

    if _orchestrator is None:
        _orchestrator = IntakeOrchestrator()
    return _orchestrator


def reset_orchestrator() -> None:
    global _orchestrator
    _orchestrator = None
