"""
Startup Validation - Configuration and Wiring Checks

Validates critical configuration at startup so wiring problems fail the
boot instead of a client's conversation turn.

Usage:
    from validation import validate_startup
    result = validate_startup()
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import RuntimeConfig, runtime_config
from errors import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# VALIDATION RESULT TYPES
# =============================================================================


@dataclass
class ValidationIssue:
    """A single validation issue."""

    category: str
    severity: str  # "critical" or "warning"
    message: str
    details: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of startup validation."""

    success: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    checks_performed: Dict[str, bool] = field(default_factory=dict)
    duration_ms: float = 0.0

    def add_issue(self, category: str, severity: str, message: str, details: Optional[str] = None) -> None:
        self.issues.append(ValidationIssue(category=category, severity=severity, message=message, details=details))

    def has_critical_issues(self) -> bool:
        return any(i.severity == "critical" for i in self.issues)

    def get_warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    def get_critical(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "duration_ms": round(self.duration_ms, 2),
            "checks_performed": self.checks_performed,
            "critical_count": len(self.get_critical()),
            "warning_count": len(self.get_warnings()),
            "issues": [
                {"category": i.category, "severity": i.severity, "message": i.message, "details": i.details}
                for i in self.issues
            ],
        }


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================


def validate_tool_registry(result: ValidationResult) -> None:
    """
    Validate tool registry consistency.

    Checks:
    - Every registered tool has a callable executor
    - Every tool has validation requirements and a parameter schema
    - Required params are declared in the tool's parameters
    """
    from tools.registry import ToolRegistry, register_all_tools
    from tools.schemas import TOOL_SCHEMAS
    from tools.validators import TOOL_REQUIREMENTS

    register_all_tools()

    tools = ToolRegistry.get_all_tools()
    if not tools:
        result.add_issue("tool_registry", "critical", "No tools registered in ToolRegistry")
        result.checks_performed["tool_registry"] = False
        return

    for name, tool_def in tools.items():
        if not callable(tool_def.executor):
            result.add_issue("tool_registry", "critical", f"Tool '{name}' executor is not callable")
        if name not in TOOL_REQUIREMENTS:
            result.add_issue("tool_registry", "critical", f"Tool '{name}' has no validation requirements")
        if name not in TOOL_SCHEMAS:
            result.add_issue("tool_registry", "critical", f"Tool '{name}' has no parameter schema")

        for req_param in tool_def.required_params:
            if req_param not in tool_def.parameters:
                result.add_issue(
                    "tool_registry",
                    "warning",
                    f"Tool '{name}' requires '{req_param}' but it's not in parameters",
                    details=f"Required: {tool_def.required_params}, Defined: {list(tool_def.parameters.keys())}",
                )

    result.checks_performed["tool_registry"] = not result.has_critical_issues()


def validate_personas(result: ValidationResult, config: RuntimeConfig) -> None:
    """Every persona must render with the standard placeholders."""
    from routers.intake_orchestration.prompts import PERSONAS

    if config.default_persona not in PERSONAS:
        result.add_issue(
            "personas",
            "critical",
            f"Default persona '{config.default_persona}' is not registered",
            details=f"Available: {sorted(PERSONAS)}",
        )

    for key, persona in PERSONAS.items():
        try:
            persona.render(
                firm_name="Validation Firm",
                intro="",
                context_section="- Name: MISSING",
                rules_section="- rule",
                tools_section="TOOLS",
            )
        except ConfigurationError as e:
            result.add_issue("personas", "critical", f"Persona '{key}' does not render", details=e.details)

    result.checks_performed["personas"] = True


def validate_config(result: ValidationResult, config: RuntimeConfig) -> None:
    """Check startup values against the same ranges update() enforces."""
    for key, (lo, hi) in config._VALIDATION_RANGES.items():
        value = getattr(config, key)
        if not (lo <= value <= hi):
            result.add_issue("config", "critical", f"{key}={value} is out of range", details=f"must be {lo}-{hi}")

    if config.context_backend not in ("redis", "memory"):
        result.add_issue(
            "config",
            "critical",
            f"Unknown context backend '{config.context_backend}'",
            details="INTAKE_CONTEXT_BACKEND must be 'redis' or 'memory'",
        )

    if not config.llm_base_url.startswith(("http://", "https://")):
        result.add_issue("config", "critical", f"Invalid LLM base URL: {config.llm_base_url!r}")

    for key in ("matter_submission_url", "notification_webhook_url", "artifact_render_url", "document_extraction_url"):
        value = getattr(config, key)
        if value and not value.startswith(("http://", "https://")):
            result.add_issue("config", "critical", f"Invalid collaborator URL for {key}: {value!r}")

    if not config.matter_submission_url:
        result.add_issue(
            "config",
            "warning",
            "No matter submission URL configured; matters will only be logged",
        )

    if config.circuit_failure_threshold < 1:
        result.add_issue("config", "critical", "circuit_failure_threshold must be at least 1")

    result.checks_performed["config"] = True


# =============================================================================
# MAIN VALIDATION FUNCTION
# =============================================================================


def validate_startup(config: Optional[RuntimeConfig] = None) -> Dict[str, Any]:
    """
    Run all startup validation checks.

    Returns:
        Dict with validation results summary

    Raises:
        ConfigurationError: If any critical issues are found
    """
    config = config or runtime_config
    start_time = time.perf_counter()
    result = ValidationResult(success=True)

    logger.info("Running startup validation...")

    validate_config(result, config)
    validate_tool_registry(result)
    validate_personas(result, config)

    result.duration_ms = (time.perf_counter() - start_time) * 1000

    warnings = result.get_warnings()
    for w in warnings:
        logger.warning(f"Validation warning [{w.category}]: {w.message}")
        if w.details:
            logger.warning(f"  Details: {w.details}")

    critical = result.get_critical()
    if critical:
        result.success = False
        error_msgs = []
        for c in critical:
            error_msgs.append(f"[{c.category}] {c.message}")
            logger.error(f"Validation CRITICAL [{c.category}]: {c.message}")
            if c.details:
                logger.error(f"  Details: {c.details}")

        raise ConfigurationError(
            f"Startup validation failed with {len(critical)} critical issue(s)",
            details="\n".join(f"  - {m}" for m in error_msgs),
            setting=critical[0].category,
        )

    checks_passed = sum(1 for v in result.checks_performed.values() if v)
    total_checks = len(result.checks_performed)
    logger.info(
        f"Startup validation complete: {checks_passed}/{total_checks} checks passed, "
        f"{len(warnings)} warnings in {result.duration_ms:.1f}ms"
    )

    return result.to_dict()
