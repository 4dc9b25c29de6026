"""Ethical Media Analyzer - Response validator
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Turns raw LLM text into validated models. Validation is all-or-nothing:
either a complete model comes back or MalformedResponse is raised.
"""

import json
import re
import logging
from typing import Optional
from pydantic import ValidationError

from errors import InvalidGraphic, MalformedResponse
from report_schema import Report, ReportContent, TranslatedOverlay

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```(?:[a-zA-Z]+)?\s*([\s\S]*?)\s*```")
SVG_PATTERN = re.compile(r"<svg\b.*</svg>", re.DOTALL | re.IGNORECASE)

# Raw text excerpt length in log lines
LOG_EXCERPT_LENGTH = 200


def strip_code_fence(raw_text: str) -> str:
    """Return the body of the first ``` fence if there is one, else the trimmed text."""
    text = (raw_text or "").strip()
    match = CODE_FENCE_PATTERN.search(text)
    return (match.group(1) if match else text).strip()


def extract_json_text(raw_text: str) -> str:
    """
    Find a JSON object in the model reply.

    Tries the raw text, then the fence-stripped text, then the span from the
    first '{' to the last '}' for replies with chatter around the object.
    """
    text = strip_code_fence(raw_text)
    candidates = [(raw_text or "").strip(), text]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(value, dict):
            return candidate

    logger.error(f"Could not extract a JSON object. Raw text: {text[:LOG_EXCERPT_LENGTH]!r}")
    raise MalformedResponse("The AI returned a response that was not valid JSON. Please try again.")


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors()[:3]:
        location = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{location}: {err.get('msg')}")
    return "; ".join(parts)


def parse_report(raw_text: str) -> Report:
    """Parse and validate an analysis reply into a Report (without provenance)."""
    json_text = extract_json_text(raw_text)
    try:
        content = ReportContent.model_validate_json(json_text, strict=True)
    except ValidationError as e:
        logger.error(f"AI report failed validation: {_describe(e)}")
        raise MalformedResponse(
            "The AI response is missing required fields or has an invalid format."
        ) from e
    return Report.from_content(content)


def parse_translation(raw_text: str, expected_items: int, language: Optional[str] = None) -> TranslatedOverlay:
    """Parse a translation reply; the analyses must line up one-to-one with the report."""
    json_text = extract_json_text(raw_text)
    try:
        overlay = TranslatedOverlay.model_validate_json(json_text, strict=True)
    except ValidationError as e:
        logger.error(f"AI translation failed validation: {_describe(e)}")
        raise MalformedResponse(
            "The AI translation is missing required fields or has an invalid format."
        ) from e

    if len(overlay.thematic_analysis) != expected_items:
        logger.error(f"Translation returned {len(overlay.thematic_analysis)} analyses, "
                     f"expected {expected_items}")
        raise MalformedResponse(
            f"The AI translation returned {len(overlay.thematic_analysis)} thematic analyses "
            f"instead of {expected_items}. Please try again."
        )

    if language:
        overlay.language = language
    return overlay


def extract_svg(raw_text: str) -> str:
    """Pull the <svg>...</svg> document out of a reply, or raise InvalidGraphic."""
    text = (raw_text or "").strip()
    match = SVG_PATTERN.search(text)
    if match:
        text = match.group(0)

    if not (text.startswith("<svg") and text.endswith("</svg>")):
        logger.error(f"Invalid SVG response: {text[:LOG_EXCERPT_LENGTH]!r}")
        raise InvalidGraphic(message="The AI did not return a valid SVG structure.")
    return text
