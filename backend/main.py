"""
Ethical Media Analyzer - Backend API
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

FastAPI server that sends a title, a video URL or an uploaded media file to
an LLM and returns a structured ethical analysis report, plus translation,
DOCX, SVG infographic and HTML renderings of that report.
"""

import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

import time
import asyncio
import secrets
from contextlib import asynccontextmanager
from dataclasses import dataclass
from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Literal, Optional
import uvicorn

from config import Settings
from errors import (
    ExportFailed,
    InvalidUrl,
    MalformedResponse,
    MediaAnalyzerError,
    NoTranscriptProduced,
    AnalysisFailed,
    TranslationFailed,
)
from export_docx import render_document, report_filename
from infographic import InfographicService
from llm_client import LLMClient
from orchestrator import AnalysisOrchestrator, Analyzed, FileInput, TitleInput, UrlInput
from report_schema import Report, concern_band
from translation import TranslationService
from youtube_source import RemoteTranscriber, TranscriptResolver

APP_VERSION = "1.0.0"

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
ACCEPTED_MEDIA_PREFIXES = ("audio/", "video/")

# Status codes surfaced for each error kind (first match wins, so subclasses go first)
ERROR_STATUS_CODES = (
    (InvalidUrl, 400),
    (NoTranscriptProduced, 422),
    (MalformedResponse, 502),
    (AnalysisFailed, 502),
    (TranslationFailed, 502),
    (ExportFailed, 502),
)


@dataclass
class Services:
    settings: Settings
    orchestrator: AnalysisOrchestrator
    translator: TranslationService
    infographics: InfographicService


def build_services(settings: Settings) -> Services:
    """Wire every component from one validated settings object."""
    llm = LLMClient(settings)
    return Services(
        settings=settings,
        orchestrator=AnalysisOrchestrator(
            llm=llm,
            transcript_resolver=TranscriptResolver(settings.transcript_languages),
            remote_transcriber=RemoteTranscriber(llm, max_media_bytes=settings.max_media_bytes),
            settings=settings,
        ),
        translator=TranslationService(llm, settings),
        infographics=InfographicService(llm, language=settings.report_language),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails fast (ConfigurationError) when the API credential is missing
    settings = app.state.settings.validate()
    app.state.services = build_services(settings)

    logger.info("=== Feature Availability ===")
    logger.info(f"  ai_provider: {settings.provider}")
    logger.info(f"  ai_model: {settings.model}")
    logger.info(f"  file_analysis: {'ENABLED' if settings.provider != 'anthropic' else 'DISABLED'}")
    logger.info(f"  report_language: {settings.report_language}")
    logger.info(f"  translation_language: {settings.translation_language}")
    yield


app = FastAPI(
    title="Ethical Media Analyzer API",
    description="Ethical analysis reports for movies, series, videos and media files",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Read once at import (CORS needs it before startup), validated in lifespan
app.state.settings = Settings.from_env()


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Analyzer is not configured")
    return services


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Attach security headers (X-Content-Type-Options, X-Frame-Options, etc.)."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
    return response

# Endpoints that don't require authentication
_PUBLIC_ENDPOINTS = {"/health", "/docs", "/openapi.json", "/redoc"}

@app.middleware("http")
async def api_key_middleware(request: Request, call_next):
    """Require X-API-Key header on protected endpoints when API_SECRET_KEY is configured."""
    services = getattr(request.app.state, "services", None)
    api_secret = services.settings.api_secret_key if services else None
    if not api_secret:
        return await call_next(request)

    path = request.url.path.rstrip("/")
    if path in _PUBLIC_ENDPOINTS or request.method == "OPTIONS":
        return await call_next(request)

    provided_key = request.headers.get("X-API-Key", "")
    if not secrets.compare_digest(provided_key, api_secret):
        return JSONResponse(status_code=401, content={"detail": "Invalid or missing API key"})

    return await call_next(request)

# Per-IP rate limiting middleware
_rate_limit_store: dict[str, list[float]] = {}
RATE_LIMIT_WINDOW = 60  # seconds
RATE_LIMITS = {
    "/analyze": 10,             # 10 requests per minute
    "/analyze/file": 5,
    "/translate": 15,
    "/export/infographic": 10,
    "/health": 60,
}
DEFAULT_RATE_LIMIT = 30  # For unlisted endpoints

@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Enforce per-IP, per-endpoint rate limits using a sliding window."""
    client_ip = request.client.host if request.client else "unknown"
    path = request.url.path.rstrip("/")
    limit = RATE_LIMITS.get(path, DEFAULT_RATE_LIMIT)
    key = f"{client_ip}:{path}"

    now = time.time()
    timestamps = _rate_limit_store.get(key, [])
    # Remove old timestamps outside the window
    timestamps = [t for t in timestamps if now - t < RATE_LIMIT_WINDOW]

    if len(timestamps) >= limit:
        return JSONResponse(
            status_code=429,
            content={"detail": f"Rate limit exceeded. Max {limit} requests per minute for {path}."}
        )

    timestamps.append(now)
    _rate_limit_store[key] = timestamps

    # Periodic cleanup of old entries (every ~200 keys)
    if len(_rate_limit_store) > 200:
        cutoff = now - RATE_LIMIT_WINDOW
        stale_keys = [
            k for k, v in _rate_limit_store.items()
            if not v or v[-1] < cutoff
        ]
        for k in stale_keys:
            del _rate_limit_store[k]

    return await call_next(request)

# CORS for the browser front end (comma-separated ALLOWED_ORIGINS in .env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=app.state.settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-API-Key"],
)


@app.exception_handler(MediaAnalyzerError)
async def media_analyzer_error_handler(request: Request, exc: MediaAnalyzerError):
    """Surface domain errors with their user-facing message."""
    status_code = next((code for cls, code in ERROR_STATUS_CODES if isinstance(exc, cls)), 500)
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# Request/Response models
class AnalyzeRequest(BaseModel):
    type: Literal["title", "url"]
    value: str = Field(..., min_length=1, max_length=2000)


class AnalysisResponse(BaseModel):
    status: Literal["analyzed", "subject_unknown"]
    report: Optional[Report] = None
    suggestion: Optional[str] = None


class _CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranslateRequest(_CamelRequest):
    report: Report
    language: Optional[str] = Field(None, max_length=50)


class ReportViewRequest(_CamelRequest):
    report: Report
    use_translation: bool = False


def _to_response(outcome) -> AnalysisResponse:
    if isinstance(outcome, Analyzed):
        return AnalysisResponse(status=outcome.status, report=outcome.report)
    return AnalysisResponse(status=outcome.status, suggestion=outcome.suggestion)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": APP_VERSION
    }


@app.post("/analyze", response_model=AnalysisResponse, response_model_exclude_none=True)
async def analyze(request: AnalyzeRequest, services: Services = Depends(get_services)):
    """
    Analyze a movie/series title or a YouTube URL.

    Returns either the finished report or, when the title is unknown to
    the model, a suggestion to analyze a video or file instead.
    """
    if request.type == "title":
        analysis_input = TitleInput(request.value)
    else:
        analysis_input = UrlInput(request.value)

    try:
        outcome = await services.orchestrator.analyze(analysis_input)
    except MediaAnalyzerError:
        raise
    except Exception as e:
        logger.error(f"Analysis endpoint error: {e}")
        raise HTTPException(status_code=500, detail="Internal analysis error")
    return _to_response(outcome)


@app.post("/analyze/file", response_model=AnalysisResponse, response_model_exclude_none=True)
async def analyze_file(file: UploadFile = File(...), services: Services = Depends(get_services)):
    """Transcribe an uploaded audio/video file and analyze the transcript."""
    mime_type = (file.content_type or "").lower()
    if not mime_type.startswith(ACCEPTED_MEDIA_PREFIXES):
        raise HTTPException(status_code=415, detail="Only audio or video files are accepted.")

    content = await file.read()
    max_bytes = services.settings.max_media_bytes
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {services.settings.max_upload_mb}MB."
        )
    if not content:
        raise HTTPException(status_code=400, detail="The uploaded file is empty.")

    analysis_input = FileInput(filename=file.filename or "upload", content=content, mime_type=mime_type)
    try:
        outcome = await services.orchestrator.analyze(analysis_input)
    except MediaAnalyzerError:
        raise
    except Exception as e:
        logger.error(f"File analysis endpoint error: {e}")
        raise HTTPException(status_code=500, detail="Internal analysis error")
    return _to_response(outcome)


@app.post("/translate", response_model=Report)
async def translate_report(request: TranslateRequest, services: Services = Depends(get_services)):
    """Attach a translation overlay to a report (reused if already present)."""
    return await services.translator.attach(request.report, request.language)


@app.post("/export/docx")
async def export_docx(report: Report, use_translation: bool = False, services: Services = Depends(get_services)):
    """Download the report as a Word document."""
    loop = asyncio.get_running_loop()
    data = await loop.run_in_executor(
        None,
        lambda: render_document(report, use_translation=use_translation, author=services.settings.report_author),
    )
    return Response(
        content=data,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{report_filename(report)}"'},
    )


@app.post("/export/infographic")
async def export_infographic(report: Report, services: Services = Depends(get_services)):
    """Render the report's concern levels as an SVG infographic."""
    svg = await services.infographics.generate(report)
    return Response(content=svg, media_type="image/svg+xml")


@app.post("/report", response_class=HTMLResponse)
async def report_page(request: ReportViewRequest, services: Services = Depends(get_services)):
    """Render a report as a standalone HTML page."""
    return generate_report_html(
        request.report,
        use_translation=request.use_translation,
        author=services.settings.report_author,
    )


def generate_report_html(report: Report, use_translation: bool = False, author: str = "Polanco, M.") -> str:
    """Generate a detailed HTML report"""
    import html

    view = report.content_view(use_translation=use_translation and report.translated is not None)

    level = view['overall_concern_level']
    level_class, _ = concern_band(level)

    themes_html = ""
    for item in view['thematic_analysis']:
        band, _ = concern_band(item['concern_level'])
        theme = html.escape(str(item['theme']))
        analysis = html.escape(str(item['analysis']))

        themes_html += f"""
        <div class="theme-item {band}">
            <div class="theme-header">
                <span class="concern-badge">{item['concern_level']}%</span>
                <span class="theme">{theme}</span>
            </div>
            <p>{analysis}</p>
        </div>
        """

    if not themes_html:
        themes_html = '<p class="no-themes">No thematic analysis was provided.</p>'

    title_safe = html.escape(view['title'])
    summary_safe = html.escape(view['overall_summary'])
    positive_safe = html.escape(view['positive_aspects_summary'])
    remarks_safe = html.escape(view['concluding_remarks'])

    reference_html = ""
    reference = report.bibliographic_reference(author)
    if reference:
        reference_html = f"""
            <div class="section">
                <h2>Bibliographic Reference (APA Style)</h2>
                <p class="reference">{html.escape(reference)}</p>
            </div>
        """

    language_note = ""
    if use_translation and report.translated is not None:
        language_note = f'<p class="source">Translated to {html.escape(report.translated.language)}</p>'

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Ethical Analysis - {title_safe}</title>
        <style>
            * {{ margin: 0; padding: 0; box-sizing: border-box; }}
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                background: linear-gradient(135deg, #0f172a 0%, #1e293b 100%);
                color: #e2e8f0;
                min-height: 100vh;
                padding: 40px;
            }}
            .container {{ max-width: 800px; margin: 0 auto; }}
            header {{ text-align: center; margin-bottom: 40px; }}
            h1 {{ font-size: 32px; margin-bottom: 10px; }}
            .source {{ color: #94a3b8; font-size: 14px; }}
            .concern-section {{ text-align: center; margin-bottom: 40px; }}
            .concern-circle {{
                width: 150px;
                height: 150px;
                border-radius: 50%;
                display: flex;
                flex-direction: column;
                align-items: center;
                justify-content: center;
                margin: 0 auto 15px;
                font-size: 44px;
                font-weight: 700;
            }}
            .concern-circle.low {{ border: 4px solid #22c55e; color: #22c55e; }}
            .concern-circle.moderate {{ border: 4px solid #eab308; color: #eab308; }}
            .concern-circle.high {{ border: 4px solid #ef4444; color: #ef4444; }}
            .concern-label {{ font-size: 12px; letter-spacing: 2px; }}
            .section {{
                background: rgba(255,255,255,0.05);
                border-radius: 15px;
                padding: 25px;
                margin-bottom: 25px;
            }}
            .section h2 {{
                font-size: 20px;
                margin-bottom: 20px;
                padding-bottom: 10px;
                border-bottom: 1px solid rgba(255,255,255,0.1);
            }}
            .section p {{ line-height: 1.6; color: #cbd5e1; white-space: pre-wrap; }}
            .theme-item {{
                padding: 15px;
                margin-bottom: 15px;
                border-radius: 10px;
                border-left: 4px solid;
            }}
            .theme-item.low {{ border-color: #22c55e; }}
            .theme-item.moderate {{ border-color: #eab308; }}
            .theme-item.high {{ border-color: #ef4444; }}
            .theme-header {{ display: flex; gap: 10px; margin-bottom: 8px; }}
            .concern-badge {{
                padding: 3px 8px;
                border-radius: 4px;
                font-size: 11px;
                font-weight: 600;
                background: #334155;
            }}
            .theme {{ font-weight: 600; }}
            .no-themes {{ text-align: center; padding: 20px; }}
            .reference {{ font-family: monospace; font-size: 13px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <header>
                <h1>Ethical Analysis: {title_safe}</h1>
                <p class="source">{html.escape(report.source or '')} {html.escape(report.analysis_date or '')}</p>
                {language_note}
            </header>

            <div class="concern-section">
                <div class="concern-circle {level_class}">
                    {level}%
                    <span class="concern-label">OVERALL CONCERN</span>
                </div>
            </div>

            <div class="section">
                <h2>Overall Summary</h2>
                <p>{summary_safe}</p>
            </div>

            <div class="section">
                <h2>Thematic Analysis</h2>
                {themes_html}
            </div>

            <div class="section">
                <h2>Positive Aspects</h2>
                <p>{positive_safe}</p>
            </div>

            <div class="section">
                <h2>Concluding Remarks</h2>
                <p>{remarks_safe}</p>
            </div>
            {reference_html}
        </div>
    </body>
    </html>
    """


if __name__ == "__main__":
    logger.info("Ethical Media Analyzer API")
    logger.info("Starting server at http://127.0.0.1:8000")
    logger.info("API docs: http://127.0.0.1:8000/docs")
    # SECURITY: bind to localhost only, never 0.0.0.0 without authentication
    uvicorn.run(app, host="127.0.0.1", port=8000)
