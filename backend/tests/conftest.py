"""
Shared pytest fixtures for the intake service tests.

Everything the orchestrator talks to is replaced by an in-memory fake so
turns run without Redis, an AI endpoint, or any HTTP collaborator.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

from config import RuntimeConfig
from errors import ExternalServiceError, MatterCreationError, Result
from routers.intake_orchestration.middleware import get_pipeline
from routers.intake_orchestration.orchestrator import IntakeOrchestrator
from services.collaborators import (
    ArtifactRenderer,
    Collaborators,
    DocumentExtractor,
    MatterSubmitter,
    Notifier,
)
from services.context_store import InMemoryContextStore, SessionLocks
from services.llm_client import AICollaborator


def user(content: str) -> Dict[str, str]:
    return {"role": "user", "content": content}


def assistant(content: str) -> Dict[str, str]:
    return {"role": "assistant", "content": content}


class FakeLLM(AICollaborator):
    """Scripted AI collaborator.

    replies may be a list (consumed in order, last one repeats) or a
    callable taking (system_prompt, messages). An exception instance in the
    list is raised instead of returned.
    """

    model = "fake-model"

    def __init__(
        self,
        replies: Union[List[Any], Callable[[str, Sequence[Dict[str, str]]], str], None] = None,
        delay: float = 0.0,
    ):
        self.replies = replies if replies is not None else ["How can I help you today?"]
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, system_prompt: str, messages: Sequence[Dict[str, str]]) -> str:
        self.calls.append({"system_prompt": system_prompt, "messages": list(messages)})
        if self.delay:
            await asyncio.sleep(self.delay)
        if callable(self.replies):
            return self.replies(system_prompt, messages)
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class RecordingSubmitter(MatterSubmitter):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.matters: List[Dict[str, Any]] = []

    async def submit(self, matter: Dict[str, Any]) -> Result:
        self.matters.append(matter)
        if self.fail:
            return Result.fail(MatterCreationError("Matter submission failed", details="HTTP 503"))
        return Result.ok({"reference": f"MAT-TEST-{len(self.matters)}"})


class RecordingNotifier(Notifier):
    def __init__(self, delay: float = 0.0, raises: Optional[Exception] = None):
        self.delay = delay
        self.raises = raises
        self.events: List[Dict[str, Any]] = []

    async def notify(self, event_type: str, matter_info: Dict[str, Any], client_info: Dict[str, Any]) -> bool:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        self.events.append({"event": event_type, "matter": matter_info, "client": client_info})
        return True


class FakeRenderer(ArtifactRenderer):
    extension = "pdf"

    def __init__(self):
        self.rendered: List[Dict[str, Any]] = []

    async def render(self, case_draft: Dict[str, Any], client_name: str, branding: Dict[str, Any]) -> bytes:
        self.rendered.append({"case_draft": case_draft, "client_name": client_name, "branding": branding})
        return b"%PDF-fake"


class FakeExtractor(DocumentExtractor):
    def __init__(self, text: str = "", fail: bool = False, delay: float = 0.0):
        self.text = text
        self.fail = fail
        self.delay = delay
        self.requested: List[str] = []

    async def extract(self, file_bytes: bytes, mime_type: str) -> Result:
        return Result.ok({"text": self.text, "pages": 1})

    async def fetch_and_extract(self, file_id: str) -> Result:
        self.requested.append(file_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            return Result.fail(ExternalServiceError("Extractor unavailable", service="document_extraction"))
        return Result.ok({"text": self.text, "pages": 1})


class SlowStore(InMemoryContextStore):
    """Store whose writes take longer than any sane save deadline."""

    def __init__(self, delay: float = 1.0):
        super().__init__()
        self.delay = delay

    async def _write(self, key: str, value: str, ttl: int) -> bool:
        await asyncio.sleep(self.delay)
        return await super()._write(key, value, ttl)


@pytest.fixture
def test_config():
    """Runtime config with tight deadlines and no retry delay."""
    return RuntimeConfig(
        ai_timeout=1.0,
        ai_retry_max=3,
        ai_retry_delay=0.0,
        circuit_failure_threshold=5,
        circuit_recovery_seconds=30,
        context_backend="memory",
        store_save_timeout=0.2,
        side_effect_timeout=0.2,
        http_timeout=0.5,
        session_locking=True,
        auto_create_when_ready=True,
        firm_name="Test Law Group",
        matter_submission_url="",
        notification_webhook_url="",
        artifact_render_url="",
        document_extraction_url="",
    )


@pytest.fixture
def submitter():
    return RecordingSubmitter()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def extractor():
    return FakeExtractor(text="This employment contract contains a non-compete clause.")


@pytest.fixture
def collaborators(submitter, notifier, renderer, extractor):
    return Collaborators(submitter=submitter, notifier=notifier, renderer=renderer, extractor=extractor)


@pytest.fixture
def store():
    return InMemoryContextStore()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def make_orchestrator(store, collaborators, test_config):
    """Factory building an orchestrator around the shared fakes."""

    def _make(llm: Optional[AICollaborator] = None, **overrides) -> IntakeOrchestrator:
        kwargs = {
            "store": store,
            "llm": llm or FakeLLM(),
            "collaborators": collaborators,
            "pipeline": get_pipeline(),
            "config": test_config,
            "locks": SessionLocks(),
        }
        kwargs.update(overrides)
        return IntakeOrchestrator(**kwargs)

    return _make
