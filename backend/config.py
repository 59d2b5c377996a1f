"""
Runtime Configuration for the intake service.

Provides a singleton RuntimeConfig class built from environment variables
that allows dynamic adjustment of selected parameters at runtime, without
requiring a service restart.

Usage:
    from config import runtime_config
    timeout = runtime_config.ai_timeout
    runtime_config.update(temperature=0.2)
"""

import os
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Any
from threading import Lock

logger = logging.getLogger(__name__)


def _first_env(*keys: str, default: str) -> str:
    """Return the first non-empty environment value from keys, else default."""
    for key in keys:
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return default


def _env_bool(key: str, default: str) -> bool:
    return os.environ.get(key, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class RuntimeConfig:
    """
    Singleton configuration for runtime-adjustable parameters.

    All values have defaults from environment variables, but can be
    changed at runtime via the update() method.
    """

    # AI collaborator (OpenAI-compatible endpoint)
    llm_base_url: str = field(
        default_factory=lambda: _first_env("INTAKE_LLM_BASE_URL", "LLM_BASE_URL", default="http://localhost:8081/v1")
    )
    llm_api_key: str = field(default_factory=lambda: _first_env("INTAKE_LLM_API_KEY", "OPENAI_API_KEY", default="not-needed"))
    model_chat: str = field(default_factory=lambda: _first_env("INTAKE_LLM_MODEL", "LLM_CHAT_MODEL", default="default"))
    temperature: float = field(default_factory=lambda: float(os.environ.get("INTAKE_LLM_TEMPERATURE", "0.1")))
    max_output_tokens: int = field(default_factory=lambda: int(os.environ.get("INTAKE_LLM_MAX_TOKENS", "500")))

    # AI call resilience
    ai_timeout: float = field(default_factory=lambda: float(os.environ.get("INTAKE_AI_TIMEOUT", "30")))
    ai_retry_max: int = field(default_factory=lambda: int(os.environ.get("INTAKE_AI_RETRY_MAX", "3")))
    ai_retry_delay: float = field(default_factory=lambda: float(os.environ.get("INTAKE_AI_RETRY_DELAY", "1.0")))
    circuit_failure_threshold: int = field(
        default_factory=lambda: int(os.environ.get("INTAKE_CIRCUIT_FAILURE_THRESHOLD", "5"))
    )
    circuit_recovery_seconds: int = field(
        default_factory=lambda: int(os.environ.get("INTAKE_CIRCUIT_RECOVERY_SECONDS", "30"))
    )

    # Redis / context store
    redis_url: str = field(default_factory=lambda: os.environ.get("REDIS_URL", "redis://localhost:6379/0"))
    redis_enabled: bool = field(default_factory=lambda: _env_bool("REDIS_ENABLED", "true"))
    context_backend: str = field(default_factory=lambda: os.environ.get("INTAKE_CONTEXT_BACKEND", "redis").lower())
    context_ttl: int = field(default_factory=lambda: int(os.environ.get("INTAKE_CONTEXT_TTL", "3600")))
    context_key_prefix: str = field(default_factory=lambda: os.environ.get("INTAKE_CONTEXT_PREFIX", "intake:ctx:"))
    store_save_timeout: float = field(
        default_factory=lambda: float(os.environ.get("INTAKE_STORE_SAVE_TIMEOUT", "2.0"))
    )

    # Concurrency: per-session single-flight (False = last-write-wins)
    session_locking: bool = field(default_factory=lambda: _env_bool("INTAKE_SESSION_LOCKING", "true"))

    # Bypass the AI and create the matter as soon as every field is known
    auto_create_when_ready: bool = field(default_factory=lambda: _env_bool("INTAKE_AUTO_CREATE", "true"))

    # Downstream collaborators (empty URL = local logging-only implementation)
    matter_submission_url: str = field(default_factory=lambda: os.environ.get("INTAKE_MATTER_SUBMISSION_URL", ""))
    notification_webhook_url: str = field(default_factory=lambda: os.environ.get("INTAKE_NOTIFICATION_URL", ""))
    artifact_render_url: str = field(default_factory=lambda: os.environ.get("INTAKE_ARTIFACT_RENDER_URL", ""))
    document_extraction_url: str = field(default_factory=lambda: os.environ.get("INTAKE_DOCUMENT_EXTRACTION_URL", ""))
    collaborator_token: str = field(default_factory=lambda: os.environ.get("INTAKE_COLLABORATOR_TOKEN", ""))
    http_timeout: float = field(default_factory=lambda: float(os.environ.get("INTAKE_HTTP_TIMEOUT", "10")))
    side_effect_timeout: float = field(
        default_factory=lambda: float(os.environ.get("INTAKE_SIDE_EFFECT_TIMEOUT", "5"))
    )

    # Persona
    default_persona: str = field(default_factory=lambda: os.environ.get("INTAKE_DEFAULT_PERSONA", "default"))
    firm_name: str = field(default_factory=lambda: os.environ.get("INTAKE_FIRM_NAME", "our firm"))

    # Internal state
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)
    _update_count: int = field(default=0, repr=False)

    # Validation ranges for numeric config values
    _VALIDATION_RANGES: Dict[str, tuple] = field(default_factory=lambda: {
        "temperature": (0.0, 2.0),
        "max_output_tokens": (64, 8192),
        "ai_timeout": (1.0, 600.0),
        "ai_retry_max": (0, 10),
        "context_ttl": (60, 7 * 86400),
        "store_save_timeout": (0.1, 60.0),
        "side_effect_timeout": (0.1, 120.0),
        "http_timeout": (0.5, 120.0),
    }, repr=False, compare=False)

    def update(self, **kwargs) -> Dict[str, Any]:
        """
        Update configuration values at runtime.

        Args:
            **kwargs: Key-value pairs to update (e.g., temperature=0.2)

        Returns:
            Dict with 'updated' (changed keys) and 'ignored' (unknown or rejected keys)
        """
        updated = []
        ignored = []

        with self._lock:
            for key, value in kwargs.items():
                if key.startswith("_") or not hasattr(self, key):
                    ignored.append(key)
                    logger.warning(f"Config ignored unknown key: {key}")
                    continue

                if key.endswith("_url") and isinstance(value, str) and value:
                    cleaned = value.strip()
                    if not cleaned.startswith(("http://", "https://", "redis://", "rediss://")):
                        ignored.append(key)
                        logger.warning(f"Config rejected invalid URL: {key}={value!r}")
                        continue
                    value = cleaned.rstrip("/")

                if key == "model_chat" and isinstance(value, str):
                    if not re.match(r"^[a-zA-Z0-9._:/-]+$", value) or len(value) > 100:
                        ignored.append(key)
                        logger.warning(f"Config rejected invalid model name: {key}={value!r}")
                        continue

                if key in self._VALIDATION_RANGES:
                    lo, hi = self._VALIDATION_RANGES[key]
                    if not (lo <= value <= hi):
                        ignored.append(key)
                        logger.warning(f"Config rejected {key}={value} (must be {lo}-{hi})")
                        continue

                old_value = getattr(self, key)
                setattr(self, key, value)
                updated.append(key)
                logger.info(f"Config updated: {key} = {value} (was {old_value})")

            self._update_count += 1

        return {"updated": updated, "ignored": ignored, "update_count": self._update_count}

    def get_llm_params(self) -> Dict[str, Any]:
        """Get generation parameters for the AI collaborator."""
        return {
            "temperature": self.temperature,
            "max_tokens": self.max_output_tokens,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Export current config as dict (excludes internal fields and secrets)."""
        from dataclasses import fields as dataclass_fields

        result = {}
        for field_info in dataclass_fields(self):
            if field_info.name.startswith("_"):
                continue
            if field_info.name in ("llm_api_key", "collaborator_token"):
                result[field_info.name] = "***" if getattr(self, field_info.name) else ""
                continue
            result[field_info.name] = getattr(self, field_info.name)
        return result


# Singleton instance
runtime_config = RuntimeConfig()


def get_config() -> RuntimeConfig:
    """Get the singleton config instance."""
    return runtime_config
