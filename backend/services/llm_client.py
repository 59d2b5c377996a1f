"""
LLM Client - the AI collaborator, over the OpenAI SDK.

Talks to any OpenAI-compatible chat endpoint (llama-server, vLLM, OpenAI).
The orchestrator only depends on the AICollaborator interface:

    reply = await collaborator.complete(system_prompt, messages)

Key translations:
- Conversation history: only user/assistant turns are forwarded; the
  system prompt is always the one built for this turn
- Thinking: <think>...</think> inline tags are stripped from the reply
- Options: temperature / max_tokens from runtime_config
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import httpx
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

_THINK_RE = re.compile(r"<think>(.*?)</think>", re.DOTALL)
_FORWARDED_ROLES = ("user", "assistant")


class AICollaborator(ABC):
    """Anything that can turn a system prompt plus history into reply text."""

    @abstractmethod
    async def complete(self, system_prompt: str, messages: Sequence[Dict[str, str]]) -> str:
        pass


def strip_thinking(content: str) -> str:
    """Drop inline <think> blocks some local models emit."""
    if not content:
        return ""
    return _THINK_RE.sub("", content).strip()


def build_chat_messages(system_prompt: str, messages: Sequence[Dict[str, str]]) -> List[Dict[str, str]]:
    """System prompt first, then the conversation without any caller-supplied system turns."""
    chat = [{"role": "system", "content": system_prompt}]
    for message in messages:
        role = message.get("role", "user")
        if role not in _FORWARDED_ROLES:
            continue
        chat.append({"role": role, "content": message.get("content") or ""})
    return chat


class LLMClient(AICollaborator):
    """Wraps AsyncOpenAI pointing at an OpenAI-compatible server."""

    def __init__(
        self,
        base_url: str,
        model: str = "default",
        api_key: str = "not-needed",
        temperature: float = 0.1,
        max_tokens: int = 500,
        timeout: float = 60.0,
    ):
        """
        Args:
            base_url: API root including /v1 (e.g. "http://localhost:8081/v1")
            model: Model name sent with every request
            api_key: Bearer token; local servers ignore it
            timeout: Transport timeout. The orchestrator applies its own, shorter one.
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._openai = AsyncOpenAI(base_url=self.base_url, api_key=api_key, timeout=timeout, max_retries=0)

    async def complete(self, system_prompt: str, messages: Sequence[Dict[str, str]]) -> str:
        response = await self._openai.chat.completions.create(
            model=self.model,
            messages=build_chat_messages(system_prompt, messages),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stream=False,
        )
        if not response.choices:
            return ""
        return strip_thinking(response.choices[0].message.content or "")

    async def is_healthy(self, timeout: float = 3.0) -> bool:
        """Best-effort check of the server's /models listing."""
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.get(f"{self.base_url}/models")
            return resp.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"LLM health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._openai.close()


_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get the LLM client singleton built from runtime_config."""
    global _llm_client

    if _llm_client is None:
        from config import runtime_config

        params = runtime_config.get_llm_params()
        _llm_client = LLMClient(
            base_url=runtime_config.llm_base_url,
            model=runtime_config.model_chat,
            api_key=runtime_config.llm_api_key,
            temperature=params["temperature"],
            max_tokens=params["max_tokens"],
        )
        logger.info(f"LLM client: {runtime_config.llm_base_url} model={runtime_config.model_chat}")

    return _llm_client
