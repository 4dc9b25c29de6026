import json
import pytest
from unittest.mock import AsyncMock, MagicMock
from httpx import AsyncClient, ASGITransport

from config import Settings
from errors import ConfigurationError, InvalidUrl
from main import app, build_services, get_services, lifespan, _rate_limit_store, Services
from infographic import InfographicService
from orchestrator import AnalysisOrchestrator
from prompts import NO_INFORMATION_SENTINEL
from translation import TranslationService
from youtube_source import TranscriptLookup


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def clear_rate_limits():
    _rate_limit_store.clear()
    yield
    _rate_limit_store.clear()


@pytest.fixture
def resolver():
    resolver = MagicMock()
    resolver.resolve_transcript = AsyncMock(
        return_value=TranscriptLookup(transcript="Welcome to the channel.", video_id="abc12345678")
    )
    return resolver


@pytest.fixture
def services(fake_llm, resolver, settings):
    remote = MagicMock()
    remote.transcribe_remote = AsyncMock(return_value="Audio text.")
    return Services(
        settings=settings,
        orchestrator=AnalysisOrchestrator(fake_llm, resolver, remote, settings),
        translator=TranslationService(fake_llm, settings),
        infographics=InfographicService(fake_llm, language=settings.report_language),
    )


@pytest.fixture
async def client(services):
    app.dependency_overrides[get_services] = lambda: services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    @pytest.mark.asyncio
    async def test_health_has_security_headers(self, client):
        response = await client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestAnalyzeEndpoint:
    @pytest.mark.asyncio
    async def test_analyze_title(self, client):
        response = await client.post("/analyze", json={"type": "title", "value": "Parasite"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "analyzed"
        assert "suggestion" not in data
        report = data["report"]
        assert report["title"] == "Parasite"
        assert report["overallConcernLevel"] == 62
        assert report["thematicAnalysis"][0]["concernLevel"] == 40
        assert report["source"] == "Parasite"
        assert report["analysisDate"]

    @pytest.mark.asyncio
    async def test_analyze_unknown_title(self, client, fake_llm):
        fake_llm.generate_structured_content.return_value = json.dumps({
            "title": "Unknown Film 3000",
            "overallSummary": NO_INFORMATION_SENTINEL,
            "overallConcernLevel": 0,
            "thematicAnalysis": [],
            "positiveAspectsSummary": "n/a",
            "concludingRemarks": "n/a",
        })

        response = await client.post("/analyze", json={"type": "title", "value": "Unknown Film 3000"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "subject_unknown"
        assert "Unknown Film 3000" in data["suggestion"]
        assert "report" not in data

    @pytest.mark.asyncio
    async def test_analyze_url(self, client, fake_llm):
        response = await client.post("/analyze", json={
            "type": "url", "value": "https://youtu.be/abc12345678",
        })

        assert response.status_code == 200
        assert response.json()["report"]["source"] == "https://youtu.be/abc12345678"
        request = fake_llm.generate_structured_content.await_args.args[0]
        assert "Welcome to the channel." in request.user_text

    @pytest.mark.asyncio
    async def test_invalid_url_is_400(self, client, resolver):
        resolver.resolve_transcript.side_effect = InvalidUrl()

        response = await client.post("/analyze", json={"type": "url", "value": "https://example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidUrl"

    @pytest.mark.asyncio
    async def test_malformed_reply_is_502(self, client, fake_llm):
        fake_llm.generate_structured_content.return_value = "not json"

        response = await client.post("/analyze", json={"type": "title", "value": "Parasite"})

        assert response.status_code == 502
        assert response.json()["error"] == "MalformedResponse"

    @pytest.mark.asyncio
    async def test_llm_failure_is_502(self, client, fake_llm):
        fake_llm.generate_structured_content.side_effect = RuntimeError("quota exceeded")

        response = await client.post("/analyze", json={"type": "title", "value": "Parasite"})

        assert response.status_code == 502
        assert "quota exceeded" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_unknown_input_type(self, client):
        response = await client.post("/analyze", json={"type": "podcast", "value": "x"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_empty_value(self, client):
        response = await client.post("/analyze", json={"type": "title", "value": ""})
        assert response.status_code == 422


class TestAnalyzeFileEndpoint:
    @pytest.mark.asyncio
    async def test_audio_file(self, client, fake_llm):
        response = await client.post(
            "/analyze/file", files={"file": ("interview.mp3", b"ID3audio", "audio/mpeg")}
        )

        assert response.status_code == 200
        assert response.json()["report"]["source"] == "interview.mp3"
        args = fake_llm.generate_from_media.await_args.args
        assert args[0] == b"ID3audio"
        assert args[1] == "audio/mpeg"

    @pytest.mark.asyncio
    async def test_rejects_non_media(self, client):
        response = await client.post(
            "/analyze/file", files={"file": ("notes.txt", b"hello", "text/plain")}
        )
        assert response.status_code == 415

    @pytest.mark.asyncio
    async def test_rejects_large_file(self, client, services):
        services.settings.max_upload_mb = 1
        payload = b"0" * (1024 * 1024 + 1)

        response = await client.post(
            "/analyze/file", files={"file": ("big.mp4", payload, "video/mp4")}
        )
        assert response.status_code == 413

    @pytest.mark.asyncio
    async def test_no_transcript_is_422(self, client, fake_llm):
        fake_llm.generate_from_media.return_value = ""

        response = await client.post(
            "/analyze/file", files={"file": ("silence.wav", b"RIFF", "audio/wav")}
        )

        assert response.status_code == 422
        assert response.json()["error"] == "NoTranscriptProduced"


class TestTranslateEndpoint:
    @pytest.mark.asyncio
    async def test_translate(self, client, fake_llm, sample_report_data, sample_translation_data):
        fake_llm.generate_structured_content.return_value = json.dumps(sample_translation_data)

        response = await client.post("/translate", json={"report": sample_report_data, "language": "Spanish"})

        assert response.status_code == 200
        data = response.json()
        assert data["overallSummary"] == sample_report_data["overallSummary"]
        assert data["translated"]["language"] == "Spanish"
        assert len(data["translated"]["thematicAnalysis"]) == 2

    @pytest.mark.asyncio
    async def test_translation_count_mismatch(self, client, fake_llm, sample_report_data, sample_translation_data):
        sample_translation_data["thematicAnalysis"] = sample_translation_data["thematicAnalysis"][:1]
        fake_llm.generate_structured_content.return_value = json.dumps(sample_translation_data)

        response = await client.post("/translate", json={"report": sample_report_data})

        assert response.status_code == 502


class TestExportEndpoints:
    @pytest.mark.asyncio
    async def test_docx(self, client, sample_report_data):
        response = await client.post("/export/docx", json=sample_report_data)

        assert response.status_code == 200
        assert response.content[:2] == b"PK"
        assert 'filename="ethical_report_Parasite.docx"' in response.headers["content-disposition"]

    @pytest.mark.asyncio
    async def test_infographic(self, client, sample_report_data):
        response = await client.post("/export/infographic", json=sample_report_data)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert response.text.startswith("<svg")

    @pytest.mark.asyncio
    async def test_infographic_invalid_markup_is_502(self, client, fake_llm, sample_report_data):
        fake_llm.generate_text.return_value = "Sorry, no."

        response = await client.post("/export/infographic", json=sample_report_data)

        assert response.status_code == 502
        assert response.json()["error"] == "InvalidGraphic"

    @pytest.mark.asyncio
    async def test_report_page(self, client, sample_report_data):
        response = await client.post("/report", json={"report": sample_report_data})

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Ethical Analysis: Parasite" in response.text
        assert "62%" in response.text


class TestMisalignedTranslation:
    @pytest.fixture
    def misaligned(self, sample_report_data, sample_translation_data):
        sample_translation_data["language"] = "Spanish"
        sample_translation_data["thematicAnalysis"] = [{"analysis": "only one"}]
        sample_report_data["translated"] = sample_translation_data
        return sample_report_data

    @pytest.mark.asyncio
    async def test_report_page_rejects_it(self, client, misaligned):
        response = await client.post("/report", json={"report": misaligned, "useTranslation": True})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_docx_rejects_it(self, client, misaligned):
        response = await client.post("/export/docx", json=misaligned)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_translate_rejects_it(self, client, fake_llm, misaligned):
        response = await client.post("/translate", json={"report": misaligned, "language": "Spanish"})

        assert response.status_code == 422
        fake_llm.generate_structured_content.assert_not_awaited()


class TestServiceWiring:
    @pytest.mark.asyncio
    async def test_unconfigured_app_returns_503(self):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.post("/analyze", json={"type": "title", "value": "Parasite"})
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_lifespan_fails_fast_without_key(self, monkeypatch):
        monkeypatch.setattr(app.state, "settings", Settings(provider="gemini", api_key=None))

        with pytest.raises(ConfigurationError):
            async with lifespan(app):
                pass

    @pytest.mark.asyncio
    async def test_lifespan_builds_services(self, monkeypatch):
        monkeypatch.setattr(app.state, "settings", Settings(provider="gemini", api_key="test-key"))
        monkeypatch.setattr("main.LLMClient", MagicMock())

        try:
            async with lifespan(app):
                assert isinstance(app.state.services, Services)
                assert app.state.services.settings.api_key == "test-key"
        finally:
            del app.state.services

    @pytest.mark.asyncio
    async def test_cors_uses_settings_origins(self):
        assert isinstance(app.state.settings, Settings)
        origin = app.state.settings.allowed_origins[0]
        preflight_headers = {"Access-Control-Request-Method": "POST"}

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            allowed = await c.options("/analyze", headers={"Origin": origin, **preflight_headers})
            denied = await c.options("/analyze", headers={"Origin": "https://evil.example", **preflight_headers})

        assert allowed.status_code == 200
        assert allowed.headers["access-control-allow-origin"] == origin
        assert denied.status_code == 400

    def test_build_services_shares_one_client(self, monkeypatch, settings):
        llm_class = MagicMock()
        monkeypatch.setattr("main.LLMClient", llm_class)

        services = build_services(settings)

        llm_class.assert_called_once_with(settings)
        assert services.orchestrator.llm is llm_class.return_value
        assert services.translator.llm is llm_class.return_value
        assert services.infographics.llm is llm_class.return_value
        assert services.orchestrator.remote_transcriber.llm is llm_class.return_value
