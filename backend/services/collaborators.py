"""
Downstream collaborators - matter submission, notifications, artifacts, documents.

Each collaborator is an interface with an httpx implementation and a local
one used when its URL is not configured:

| Interface          | HTTP                    | Local (no URL)             |
|--------------------|-------------------------|----------------------------|
| MatterSubmitter    | HttpMatterSubmitter     | LocalMatterSubmitter       |
| Notifier           | WebhookNotifier         | LoggingNotifier            |
| ArtifactRenderer   | HttpArtifactRenderer    | TextArtifactRenderer       |
| DocumentExtractor  | HttpDocumentExtractor   | UnavailableDocumentExtractor |

Tests substitute in-memory fakes through the Collaborators bundle.
"""

import base64
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from errors import ExternalServiceError, MatterCreationError, Result
from utils.redaction import redact_parameters

logger = logging.getLogger(__name__)


class _HttpCollaborator:
    """Shared URL / auth / timeout handling."""

    service_name = "collaborator"

    def __init__(self, url: str, token: str = "", timeout: float = 10.0):
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _post(self, path: str, **kwargs) -> httpx.Response:
        """POST and raise ExternalServiceError on transport or HTTP failure."""
        target = f"{self.url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(target, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as e:
            raise ExternalServiceError(
                f"{self.service_name} timed out", details=str(e), service=self.service_name, timeout=True
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"{self.service_name} unreachable", details=f"{type(e).__name__}: {e}", service=self.service_name
            ) from e

        if resp.status_code >= 400:
            raise ExternalServiceError(
                f"{self.service_name} returned HTTP {resp.status_code}",
                details=resp.text[:200],
                service=self.service_name,
                status_code=resp.status_code,
            )
        return resp


# =============================================================================
# Matter submission
# =============================================================================

class MatterSubmitter(ABC):
    @abstractmethod
    async def submit(self, matter: Dict[str, Any]) -> Result:
        """Persist the matter downstream. Result data carries {"reference": ...}."""


def new_matter_reference() -> str:
    return f"MAT-{datetime.now(timezone.utc):%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


class HttpMatterSubmitter(_HttpCollaborator, MatterSubmitter):
    service_name = "matter_submission"

    async def submit(self, matter: Dict[str, Any]) -> Result:
        try:
            resp = await self._post("", json=matter)
        except ExternalServiceError as e:
            e.log(logger)
            return Result.fail(MatterCreationError("Matter submission failed", details=str(e), service=e.service))

        try:
            body = resp.json()
        except ValueError:
            body = {}
        reference = body.get("reference") or body.get("id") or new_matter_reference()
        logger.info(f"Matter submitted: reference={reference}")
        return Result.ok({"reference": str(reference)})


class LocalMatterSubmitter(MatterSubmitter):
    """Logs the matter and mints a reference. Used when no submission URL is set."""

    async def submit(self, matter: Dict[str, Any]) -> Result:
        reference = new_matter_reference()
        logger.info(f"Matter recorded locally: reference={reference} matter={redact_parameters(matter)}")
        return Result.ok({"reference": reference})


# =============================================================================
# Notifications
# =============================================================================

class Notifier(ABC):
    @abstractmethod
    async def notify(self, event_type: str, matter_info: Dict[str, Any], client_info: Dict[str, Any]) -> bool:
        """Deliver an event. Never raises; returns False when delivery failed."""


class WebhookNotifier(_HttpCollaborator, Notifier):
    service_name = "notification"

    async def notify(self, event_type: str, matter_info: Dict[str, Any], client_info: Dict[str, Any]) -> bool:
        payload = {
            "event": event_type,
            "matter": matter_info,
            "client": client_info,
            "sent_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self._post("", json=payload)
        except ExternalServiceError as e:
            e.log(logger, level=logging.WARNING)
            return False
        logger.info(f"Notification sent: {event_type}")
        return True


class LoggingNotifier(Notifier):
    async def notify(self, event_type: str, matter_info: Dict[str, Any], client_info: Dict[str, Any]) -> bool:
        logger.info(
            f"Notification ({event_type}) matter={redact_parameters(matter_info)} client={redact_parameters(client_info)}"
        )
        return True


# =============================================================================
# Artifact rendering
# =============================================================================

class ArtifactRenderer(ABC):
    content_type = "application/octet-stream"
    extension = "bin"

    @abstractmethod
    async def render(self, case_draft: Dict[str, Any], client_name: str, branding: Dict[str, Any]) -> bytes:
        """Render a case summary document. Raises ExternalServiceError on failure."""


class HttpArtifactRenderer(_HttpCollaborator, ArtifactRenderer):
    service_name = "artifact_render"
    content_type = "application/pdf"
    extension = "pdf"

    async def render(self, case_draft: Dict[str, Any], client_name: str, branding: Dict[str, Any]) -> bytes:
        resp = await self._post("", json={"case_draft": case_draft, "client_name": client_name, "branding": branding})
        if not resp.content:
            raise ExternalServiceError("Renderer returned an empty document", service=self.service_name)
        return resp.content


class TextArtifactRenderer(ArtifactRenderer):
    """Plain-text case summary for deployments without a PDF service."""

    content_type = "text/plain"
    extension = "txt"

    async def render(self, case_draft: Dict[str, Any], client_name: str, branding: Dict[str, Any]) -> bytes:
        firm = branding.get("firm_name") or branding.get("name") or "Case Summary"
        lines = [
            firm,
            "=" * len(firm),
            f"Client: {client_name}",
            f"Matter type: {case_draft.get('matter_type') or 'General Consultation'}",
            f"Jurisdiction: {case_draft.get('jurisdiction') or 'Not specified'}",
            f"Urgency: {case_draft.get('urgency') or 'medium'}",
            "",
            "Key facts:",
        ]
        facts = case_draft.get("key_facts") or []
        lines.extend(f"  {i}. {fact}" for i, fact in enumerate(facts, 1))
        if not facts:
            lines.append("  (none recorded)")
        return ("\n".join(lines) + "\n").encode("utf-8")


# =============================================================================
# Document extraction
# =============================================================================

class DocumentExtractor(ABC):
    @abstractmethod
    async def extract(self, file_bytes: bytes, mime_type: str) -> Result:
        """Extract text. Result data carries {"text": ..., "pages": ...}."""

    @abstractmethod
    async def fetch_and_extract(self, file_id: str) -> Result:
        """Extract text from a previously uploaded file."""


class HttpDocumentExtractor(_HttpCollaborator, DocumentExtractor):
    service_name = "document_extraction"

    async def extract(self, file_bytes: bytes, mime_type: str) -> Result:
        payload = {"content_b64": base64.b64encode(file_bytes).decode("ascii"), "mime_type": mime_type}
        return await self._extract("/extract", payload)

    async def fetch_and_extract(self, file_id: str) -> Result:
        return await self._extract("/extract", {"file_id": file_id})

    async def _extract(self, path: str, payload: Dict[str, Any]) -> Result:
        try:
            resp = await self._post(path, json=payload)
            body = resp.json()
        except ExternalServiceError as e:
            return Result.fail(e)
        except ValueError as e:
            return Result.fail(
                ExternalServiceError("Extractor returned invalid JSON", details=str(e), service=self.service_name)
            )
        return Result.ok({"text": body.get("text") or "", "pages": body.get("pages")})


class UnavailableDocumentExtractor(DocumentExtractor):
    async def extract(self, file_bytes: bytes, mime_type: str) -> Result:
        return self._fail()

    async def fetch_and_extract(self, file_id: str) -> Result:
        return self._fail()

    @staticmethod
    def _fail() -> Result:
        return Result.fail(
            ExternalServiceError("Document extraction is not configured", service="document_extraction")
        )


# =============================================================================
# Bundle
# =============================================================================

@dataclass
class Collaborators:
    submitter: MatterSubmitter
    notifier: Notifier
    renderer: ArtifactRenderer
    extractor: DocumentExtractor

    @classmethod
    def from_config(cls, config=None) -> "Collaborators":
        if config is None:
            from config import runtime_config as config

        token = config.collaborator_token
        timeout = config.http_timeout

        def build(url: str, http_cls, local):
            return http_cls(url, token=token, timeout=timeout) if url else local

        return cls(
            submitter=build(config.matter_submission_url, HttpMatterSubmitter, LocalMatterSubmitter()),
            notifier=build(config.notification_webhook_url, WebhookNotifier, LoggingNotifier()),
            renderer=build(config.artifact_render_url, HttpArtifactRenderer, TextArtifactRenderer()),
            extractor=build(config.document_extraction_url, HttpDocumentExtractor, UnavailableDocumentExtractor()),
        )


_collaborators: Optional[Collaborators] = None


def get_collaborators() -> Collaborators:
    global _collaborators
    if _collaborators is None:
        _collaborators = Collaborators.from_config()
        logger.info(
            "Collaborators: "
            + ", ".join(f"{name}={type(obj).__name__}" for name, obj in vars(_collaborators).items())
        )
    return _collaborators
