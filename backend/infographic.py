"""Ethical Media Analyzer - Infographic export
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Asks the LLM for SVG markup summarizing a report's concern levels.
"""

import logging
from typing import TYPE_CHECKING

from errors import ExportFailed
from prompts import INFOGRAPHIC_TEMPERATURE, build_infographic_prompt
from report_schema import Report
from response_parser import extract_svg

if TYPE_CHECKING:
    from llm_client import LLMClient

logger = logging.getLogger(__name__)


class InfographicService:
    def __init__(self, llm: "LLMClient", language: str = "Spanish"):
        self.llm = llm
        self.language = language

    async def generate(self, report: Report) -> str:
        """
        Return a standalone SVG document for the report.

        Raises:
            ExportFailed: the LLM call failed
            InvalidGraphic: the reply was not an <svg>...</svg> document
        """
        prompt = build_infographic_prompt(report, language=self.language)
        try:
            raw_text = await self.llm.generate_text(prompt, temperature=INFOGRAPHIC_TEMPERATURE)
        except Exception as e:
            logger.error(f"Infographic generation failed: {e}")
            raise ExportFailed(e, message=f"Could not generate the infographic: {e}") from e

        svg = extract_svg(raw_text)
        logger.info(f"🖼️ Infographic for '{report.title}': {len(svg)} chars")
        return svg
