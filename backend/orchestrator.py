"""Ethical Media Analyzer - Analysis orchestrator
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Runs one analysis request end to end:
  1. Pick a transcript path from the input kind (title / url / file)
  2. Build the prompt and call the LLM
  3. Validate the reply into a Report
  4. Turn the "no information" sentinel into SubjectUnknown
  5. Stamp provenance (source + analysis date)
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union, TYPE_CHECKING

from errors import (
    AnalysisFailed,
    MediaAnalyzerError,
    NoTranscriptProduced,
    UnknownSubject,
)
from prompts import (
    AnalysisMode,
    TRANSCRIPTION_INSTRUCTION,
    build_prompt,
    no_information_sentinel,
)
from report_schema import Report
from response_parser import parse_report

if TYPE_CHECKING:
    from config import Settings
    from llm_client import LLMClient
    from youtube_source import RemoteTranscriber, TranscriptResolver

logger = logging.getLogger(__name__)

MONTH_NAMES = {
    "es": ["enero", "febrero", "marzo", "abril", "mayo", "junio", "julio",
           "agosto", "septiembre", "octubre", "noviembre", "diciembre"],
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
}

UNKNOWN_SUBJECT_SUGGESTION = (
    'No information was found for "{title}". '
    "Please try uploading a sample file or a video URL to analyze instead."
)


def format_analysis_date(day: date, locale: str = "es") -> str:
    """Long-form date, e.g. '19 de octubre de 2026' (es) or 'October 19, 2026' (en)."""
    if locale == "en":
        return f"{MONTH_NAMES['en'][day.month - 1]} {day.day}, {day.year}"
    return f"{day.day} de {MONTH_NAMES['es'][day.month - 1]} de {day.year}"


# --- Caller input kinds ---

@dataclass(frozen=True)
class TitleInput:
    value: str
    type: str = "title"


@dataclass(frozen=True)
class UrlInput:
    value: str
    type: str = "url"


@dataclass(frozen=True)
class FileInput:
    filename: str
    content: bytes
    mime_type: str
    type: str = "file"


AnalysisInput = Union[TitleInput, UrlInput, FileInput]


# --- Outcomes ---

@dataclass
class Analyzed:
    report: Report
    status: str = "analyzed"


@dataclass
class SubjectUnknown:
    suggestion: str
    status: str = "subject_unknown"


AnalysisOutcome = Union[Analyzed, SubjectUnknown]


class AnalysisOrchestrator:
    """
    Chooses the transcript path for an input and turns the LLM reply into a
    finished Report.

    Transcript acquisition always completes before the analysis call.
    Nothing here retries; every error is terminal for the request.
    """

    def __init__(
        self,
        llm: "LLMClient",
        transcript_resolver: "TranscriptResolver",
        remote_transcriber: "RemoteTranscriber",
        settings: "Settings",
    ):
        self.llm = llm
        self.transcript_resolver = transcript_resolver
        self.remote_transcriber = remote_transcriber
        self.settings = settings

    async def analyze(self, analysis_input: AnalysisInput, today: Optional[date] = None) -> AnalysisOutcome:
        """
        Analyze one input.

        Returns Analyzed(report) or SubjectUnknown(suggestion). Everything
        else is raised as a MediaAnalyzerError subclass.
        """
        try:
            if isinstance(analysis_input, TitleInput):
                report = await self.analyze_title(analysis_input.value, today=today)
            elif isinstance(analysis_input, UrlInput):
                report = await self.analyze_url(analysis_input.value, today=today)
            elif isinstance(analysis_input, FileInput):
                report = await self.analyze_file(analysis_input, today=today)
            else:
                raise TypeError(f"Unsupported analysis input: {type(analysis_input).__name__}")
        except UnknownSubject as e:
            logger.info(f"❓ Subject unknown: {e.suggestion}")
            return SubjectUnknown(suggestion=e.suggestion)

        return Analyzed(report=report)

    # ------------------------------------------------------------------ #
    #  Paths                                                             #
    # ------------------------------------------------------------------ #

    async def analyze_title(self, title: str, today: Optional[date] = None) -> Report:
        """Research a movie/series by title. Raises UnknownSubject for the sentinel reply."""
        title = (title or "").strip()
        if not title:
            raise AnalysisFailed(message="No valid input was provided. Please enter a title, URL or select a file.")

        logger.info(f"🎬 Analyzing title: '{title}'")
        request = build_prompt(AnalysisMode.BY_SUBJECT_TITLE, title, language=self.settings.report_language)
        raw_text = await self._call_llm(request)
        report = parse_report(raw_text)

        if report.overall_summary.strip() == no_information_sentinel(self.settings.report_language):
            raise UnknownSubject(UNKNOWN_SUBJECT_SUGGESTION.format(title=title))

        return self._finalize(report, source=title, today=today)

    async def analyze_url(self, url: str, today: Optional[date] = None) -> Report:
        """Analyze a video URL: captions if they exist, otherwise a remote transcription."""
        url = (url or "").strip()
        logger.info(f"🔗 Analyzing URL: {url}")

        lookup = await self.transcript_resolver.resolve_transcript(url)
        transcript = lookup.transcript
        if not transcript:
            logger.info(f"No captions for {lookup.video_id}, transcribing audio")
            try:
                transcript = await self.remote_transcriber.transcribe_remote(lookup.video_id)
            except MediaAnalyzerError:
                raise
            except Exception as e:
                logger.error(f"Remote transcription failed for {lookup.video_id}: {e}")
                raise AnalysisFailed(e) from e
            if not transcript:
                raise NoTranscriptProduced("Could not generate a transcript from the video.")

        return await self._analyze_transcript(transcript, source=url, today=today)

    async def analyze_file(self, file_input: FileInput, today: Optional[date] = None) -> Report:
        """Transcribe an uploaded audio/video file, then analyze the transcript."""
        logger.info(f"📁 Analyzing file: {file_input.filename} ({file_input.mime_type}, {len(file_input.content)} bytes)")
        try:
            transcript = await self.llm.generate_from_media(
                file_input.content,
                file_input.mime_type,
                TRANSCRIPTION_INSTRUCTION,
                filename=file_input.filename,
            )
        except Exception as e:
            logger.error(f"File transcription failed for {file_input.filename}: {e}")
            raise AnalysisFailed(
                e,
                message="Failed to transcribe the file. It may be unsupported, corrupted or too large.",
            ) from e

        if not transcript or not transcript.strip():
            raise NoTranscriptProduced("Could not generate a transcript from the provided file.")

        return await self._analyze_transcript(transcript, source=file_input.filename, today=today)

    # ------------------------------------------------------------------ #
    #  Helpers                                                           #
    # ------------------------------------------------------------------ #

    async def _analyze_transcript(self, transcript: str, source: str, today: Optional[date]) -> Report:
        request = build_prompt(
            AnalysisMode.FROM_TRANSCRIPT,
            (source, transcript),
            language=self.settings.report_language,
        )
        raw_text = await self._call_llm(request)
        report = parse_report(raw_text)
        return self._finalize(report, source=source, today=today)

    async def _call_llm(self, request) -> str:
        try:
            return await self.llm.generate_structured_content(request)
        except Exception as e:
            logger.error(f"LLM analysis call failed: {e}")
            raise AnalysisFailed(e) from e

    def _finalize(self, report: Report, source: str, today: Optional[date]) -> Report:
        report.source = source
        report.analysis_date = format_analysis_date(today or date.today(), self.settings.date_locale)
        logger.info(f"✅ Report ready: '{report.title}' concern={report.overall_concern_level}% "
                    f"themes={len(report.thematic_analysis)}")
        return report
