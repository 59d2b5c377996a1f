"""
Intake Executors - Unified Tool Dispatch

This module provides a unified interface for executing the intake tools.
It re-exports the executors and provides the main execute_tool() function.

execute_tool() validates parameters with the ValidationService before any
executor runs, then dispatches through the ToolRegistry.
"""

import inspect
import logging
from typing import Any, Dict

from errors import Result, ValidationError
from tools.registry import ToolRegistry, register_all_tools
from tools.validators import ValidationService

from .common import ToolContext, ToolOutcome, run_side_effect, client_info
from .matter import execute_create_matter, execute_collect_contact_info
from .review import execute_request_lawyer_review
from .document import execute_analyze_document

logger = logging.getLogger(__name__)


def _filter_kwargs_for_executor(executor, all_kwargs: Dict[str, Any]) -> Dict[str, Any]:
    """Filter kwargs to only those accepted by the executor function.

    Executors receive the validated parameters plus tool_context, and each
    one only gets the names it actually declares.
    """
    sig = inspect.signature(executor)
    accepts_var_keyword = any(p.kind == inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values())

    if accepts_var_keyword:
        return all_kwargs

    accepted_params = set(sig.parameters.keys())
    return {k: v for k, v in all_kwargs.items() if k in accepted_params}


async def execute_tool(tool_name: str, params: Dict[str, Any], tool_context: ToolContext) -> Result:
    """
    Validate and execute one tool invocation.

    Returns:
        Result.ok(ToolOutcome) on success, or Result.fail(IntakeError) when
        validation or the executor fails. Validation failures never reach an
        executor, so no side effect happens for invalid parameters.
    """
    register_all_tools()

    tool_def = ToolRegistry.get_tool(tool_name)
    if not tool_def:
        return Result.fail(
            ValidationError(
                "I'm not able to do that right now. Could you tell me more about how I can help?",
                details=f"Unknown tool: {tool_name}",
                reason="unknown_tool",
                tool=tool_name,
            )
        )

    validated = ValidationService.validate(tool_name, params)
    if not validated.success:
        return validated

    all_kwargs = {**validated.data, "tool_context": tool_context}
    filtered_kwargs = _filter_kwargs_for_executor(tool_def.executor, all_kwargs)

    dropped = set(all_kwargs) - set(filtered_kwargs)
    if dropped:
        logger.debug(f"{tool_name}: ignoring parameters {sorted(dropped)}")

    return await tool_def.executor(**filtered_kwargs)


__all__ = [
    # Main dispatch
    "execute_tool",
    # Shared types
    "ToolContext",
    "ToolOutcome",
    "run_side_effect",
    "client_info",
    # Executors
    "execute_create_matter",
    "execute_collect_contact_info",
    "execute_request_lawyer_review",
    "execute_analyze_document",
]
