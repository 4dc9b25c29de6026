"""Ethical Media Analyzer - Translation overlay
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Translates the free-text fields of an existing report and attaches the
result next to the original, so a view can switch language without
re-running the analysis.
"""

import logging
from typing import Optional, TYPE_CHECKING

from errors import TranslationFailed
from prompts import build_translation_prompt
from report_schema import Report, TranslatedOverlay
from response_parser import parse_translation

if TYPE_CHECKING:
    from config import Settings
    from llm_client import LLMClient

logger = logging.getLogger(__name__)


class TranslationService:
    def __init__(self, llm: "LLMClient", settings: "Settings"):
        self.llm = llm
        self.settings = settings

    async def translate(self, report: Report, language: Optional[str] = None) -> TranslatedOverlay:
        """
        Request a translation of the report's free text.

        Raises:
            TranslationFailed: the LLM call failed
            MalformedResponse: wrong shape, or a different number of analyses
        """
        language = language or self.settings.translation_language
        request = build_translation_prompt(report, language)

        logger.info(f"🌐 Translating '{report.title}' to {language} "
                    f"({len(report.thematic_analysis)} analyses)")
        try:
            raw_text = await self.llm.generate_structured_content(request)
        except Exception as e:
            logger.error(f"Translation call failed: {e}")
            raise TranslationFailed(e) from e

        return parse_translation(raw_text, expected_items=len(report.thematic_analysis), language=language)

    async def attach(self, report: Report, language: Optional[str] = None) -> Report:
        """Attach an overlay to the report, reusing one already present for the same language."""
        language = language or self.settings.translation_language
        cached = report.translated
        if (cached is not None and cached.language == language
                and len(cached.thematic_analysis) == len(report.thematic_analysis)):
            logger.info(f"Reusing cached {language} translation for '{report.title}'")
            return report

        report.translated = await self.translate(report, language)
        return report
