"""
Tests for the HTTP and local collaborator implementations.

httpx.AsyncClient is patched to route through an httpx.MockTransport so the
real request/response handling runs without a network.
"""

import asyncio
import json
from unittest.mock import patch

import httpx

from config import RuntimeConfig
from errors import ErrorCode
from services.collaborators import (
    Collaborators,
    HttpArtifactRenderer,
    HttpDocumentExtractor,
    HttpMatterSubmitter,
    LocalMatterSubmitter,
    LoggingNotifier,
    TextArtifactRenderer,
    UnavailableDocumentExtractor,
    WebhookNotifier,
)

_RealAsyncClient = httpx.AsyncClient


def mock_http(handler):
    """Patch httpx.AsyncClient so every request goes to handler."""

    def factory(**kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return patch.object(httpx, "AsyncClient", factory)


class TestHttpMatterSubmitter:
    """Test matter submission over HTTP."""

    def test_success_uses_reference(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"reference": "MAT-42"})

        submitter = HttpMatterSubmitter("https://matters.example.org/api/", token="tok")
        with mock_http(handler):
            result = asyncio.run(submitter.submit({"client": {"name": "Jane Doe"}}))

        assert result.success
        assert result.data == {"reference": "MAT-42"}
        assert seen["auth"] == "Bearer tok"
        assert seen["body"]["client"]["name"] == "Jane Doe"

    def test_missing_reference_is_minted(self):
        submitter = HttpMatterSubmitter("https://matters.example.org")
        with mock_http(lambda request: httpx.Response(200, text="ok")):
            result = asyncio.run(submitter.submit({}))
        assert result.data["reference"].startswith("MAT-")

    def test_http_error_becomes_matter_creation_error(self):
        submitter = HttpMatterSubmitter("https://matters.example.org")
        with mock_http(lambda request: httpx.Response(503, text="down")):
            result = asyncio.run(submitter.submit({}))
        assert not result.success
        assert result.error.code == ErrorCode.MATTER_CREATION_ERROR
        assert "HTTP 503" in result.error.details

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        submitter = HttpMatterSubmitter("https://matters.example.org")
        with mock_http(handler):
            result = asyncio.run(submitter.submit({}))
        assert result.error.code == ErrorCode.MATTER_CREATION_ERROR


class TestWebhookNotifier:
    """Notification delivery never raises."""

    def test_delivered(self):
        events = []

        def handler(request):
            events.append(json.loads(request.content))
            return httpx.Response(204)

        notifier = WebhookNotifier("https://hooks.example.org/intake")
        with mock_http(handler):
            assert asyncio.run(notifier.notify("matter_created", {"id": 1}, {"name": "Jane"})) is True
        assert events[0]["event"] == "matter_created"
        assert "sent_at" in events[0]

    def test_timeout_returns_false(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        notifier = WebhookNotifier("https://hooks.example.org/intake")
        with mock_http(handler):
            assert asyncio.run(notifier.notify("lawyer_review", {}, {})) is False


class TestArtifactRenderers:
    """Test HTTP and text rendering."""

    def test_http_renderer_returns_bytes(self):
        renderer = HttpArtifactRenderer("https://render.example.org")
        with mock_http(lambda request: httpx.Response(200, content=b"%PDF-1.7")):
            assert asyncio.run(renderer.render({}, "Jane", {})) == b"%PDF-1.7"

    def test_text_renderer(self):
        draft = {"matter_type": "Family Law", "key_facts": ["Divorce proceedings"], "jurisdiction": "TX"}
        text = asyncio.run(TextArtifactRenderer().render(draft, "Jane Doe", {"firm_name": "Acme Legal"})).decode()
        assert text.startswith("Acme Legal\n==========\n")
        assert "Client: Jane Doe" in text
        assert "  1. Divorce proceedings" in text


class TestDocumentExtractors:
    """Test document extraction."""

    def test_fetch_and_extract(self):
        def handler(request):
            assert json.loads(request.content) == {"file_id": "file-9"}
            return httpx.Response(200, json={"text": "Lease agreement", "pages": 3})

        extractor = HttpDocumentExtractor("https://extract.example.org")
        with mock_http(handler):
            result = asyncio.run(extractor.fetch_and_extract("file-9"))
        assert result.data == {"text": "Lease agreement", "pages": 3}

    def test_invalid_json(self):
        extractor = HttpDocumentExtractor("https://extract.example.org")
        with mock_http(lambda request: httpx.Response(200, text="<html>")):
            result = asyncio.run(extractor.extract(b"data", "application/pdf"))
        assert not result.success
        assert result.error.code == ErrorCode.EXTERNAL_SERVICE_ERROR

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        extractor = HttpDocumentExtractor("https://extract.example.org")
        with mock_http(handler):
            result = asyncio.run(extractor.fetch_and_extract("f"))
        assert result.error.code == ErrorCode.EXTERNAL_TIMEOUT

    def test_unavailable(self):
        result = asyncio.run(UnavailableDocumentExtractor().fetch_and_extract("f"))
        assert not result.success


class TestCollaboratorsFromConfig:
    """Empty URLs select the local implementations."""

    def test_local_defaults(self):
        config = RuntimeConfig(
            matter_submission_url="",
            notification_webhook_url="",
            artifact_render_url="",
            document_extraction_url="",
        )
        bundle = Collaborators.from_config(config)
        assert isinstance(bundle.submitter, LocalMatterSubmitter)
        assert isinstance(bundle.notifier, LoggingNotifier)
        assert isinstance(bundle.renderer, TextArtifactRenderer)
        assert isinstance(bundle.extractor, UnavailableDocumentExtractor)

    def test_http_when_configured(self):
        config = RuntimeConfig(
            matter_submission_url="https://matters.example.org/",
            notification_webhook_url="https://hooks.example.org",
            artifact_render_url="",
            document_extraction_url="",
            collaborator_token="tok",
            http_timeout=3.0,
        )
        bundle = Collaborators.from_config(config)
        assert isinstance(bundle.submitter, HttpMatterSubmitter)
        assert bundle.submitter.url == "https://matters.example.org"
        assert bundle.submitter.timeout == 3.0
        assert isinstance(bundle.notifier, WebhookNotifier)

    def test_local_submitter_mints_reference(self):
        result = asyncio.run(LocalMatterSubmitter().submit({"client": {"email": "jane@example.com"}}))
        assert result.data["reference"].startswith("MAT-")
