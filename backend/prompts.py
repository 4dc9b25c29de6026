"""Ethical Media Analyzer - Prompt builder
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Pure functions from (mode, subject) to a request description. Nothing in
this module performs I/O.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

from report_schema import REPORT_SCHEMA, TRANSLATION_SCHEMA

if TYPE_CHECKING:
    from report_schema import Report

DEFAULT_REPORT_LANGUAGE = "Spanish"

# Exact overallSummary the model must emit when it knows nothing about a title,
# one per report language
NO_INFORMATION_SENTINELS = {
    "spanish": "No se encontró información concluyente sobre el título proporcionado.",
    "english": "No conclusive information was found about the provided title.",
}
NOT_APPLICABLE_TEXTS = {
    "spanish": "No aplicable por falta de información.",
    "english": "Not applicable due to lack of information.",
}

NO_INFORMATION_SENTINEL = NO_INFORMATION_SENTINELS["spanish"]
NOT_APPLICABLE_TEXT = NOT_APPLICABLE_TEXTS["spanish"]

TITLE_TEMPERATURE = 0.3
TRANSCRIPT_TEMPERATURE = 0.5
TRANSLATION_TEMPERATURE = 0.2
INFOGRAPHIC_TEMPERATURE = 0.1

MAX_INFOGRAPHIC_THEMES = 5


def no_information_sentinel(language: str = DEFAULT_REPORT_LANGUAGE) -> str:
    """Sentinel summary for a report language (Spanish for languages without one)."""
    return NO_INFORMATION_SENTINELS.get((language or "").strip().lower(), NO_INFORMATION_SENTINEL)


def not_applicable_text(language: str = DEFAULT_REPORT_LANGUAGE) -> str:
    return NOT_APPLICABLE_TEXTS.get((language or "").strip().lower(), NOT_APPLICABLE_TEXT)


class AnalysisMode(str, Enum):
    BY_SUBJECT_TITLE = "by_subject_title"
    FROM_TRANSCRIPT = "from_transcript"


@dataclass(frozen=True)
class PromptRequest:
    instruction_text: str
    user_text: str
    schema: dict = field(hash=False)
    temperature: float = 0.3


# --- Taxonomy ---
LANGUAGE_AND_COMMUNICATION = (
    "**Language and Communication**: Evaluate the dialogue. Is it respectful? Does it contain "
    "excessive profanity, hate speech or derogatory terms?"
)
BEHAVIORAL_MODELING = (
    "**Behavioral Modeling and Attitudes**: Analyze the behaviors, values and attitudes promoted. "
    "Does the content glorify violence, substance abuse or other harmful behavior?"
)
SOCIAL_RELATIONSHIPS = (
    "**Socialization and Interpersonal Relationships**: Examine how relationships are portrayed. "
    "Does the content model healthy conflict resolution?"
)
REPRESENTATION = (
    "**Representation, Stereotypes and Discrimination**: Evaluate how different groups are portrayed. "
    "Does the content reinforce harmful stereotypes?"
)
AUDIENCE_SUITABILITY = (
    "**Target Audience Suitability**: Based on your analysis, discuss suitability for different age groups."
)

TITLE_TAXONOMY = (
    LANGUAGE_AND_COMMUNICATION,
    BEHAVIORAL_MODELING,
    SOCIAL_RELATIONSHIPS,
    REPRESENTATION,
    AUDIENCE_SUITABILITY,
)
TRANSCRIPT_TAXONOMY = TITLE_TAXONOMY[:-1]

SCORING_RULES = (
    "Based on your complete analysis, assign an 'overallConcernLevel' as an integer percentage (0-100). "
    "For every item in 'thematicAnalysis', assign a 'concernLevel' as an integer percentage (0-100). "
    "A higher percentage means a higher level of ethical concern."
)

POSITIVE_ASPECTS_RULE = (
    "Separately, in the 'positiveAspectsSummary' field, summarize any prosocial messages, positive "
    "values or ethical lessons the content offers."
)

TITLE_SYSTEM_TEMPLATE = """You are an expert in media ethics, sociology and cultural studies. Your task is to produce a thorough ethical analysis of a given movie or TV series. Your analysis must be complete, balanced and consider multiple points of view. All output must be written in {language}.

If you CANNOT find any conclusive or reliable information about the provided title, you MUST produce a report with these characteristics:
- 'title': The title the user provided.
- 'overallSummary': Exactly the text '{sentinel}' (do not translate it).
- 'overallConcernLevel': 0
- 'thematicAnalysis': An empty array [].
- 'positiveAspectsSummary': '{not_applicable}'
- 'concludingRemarks': '{not_applicable}'

If you DO find information, analyze the title and produce a detailed report. Focus on the following key areas to identify CONCERNS in 'thematicAnalysis':
{taxonomy}

{positive_rule}

{scoring_rules}

Your answer MUST be a single raw JSON object matching the provided schema. Do not add any text before or after the JSON object and do not use markdown formatting such as ```json."""

TRANSCRIPT_SYSTEM_TEMPLATE = """You are an expert in media ethics and communication. Your task is to produce a thorough ethical analysis of the provided transcript. Your analysis must be complete, balanced and focused on the text itself. All output must be written in {language}.

Analyze the transcript and produce a detailed report. Focus on the following key areas to identify CONCERNS in 'thematicAnalysis':
{taxonomy}

{positive_rule}

{scoring_rules}

Structure your findings strictly according to the provided JSON schema. The 'title' field of your answer must be the source name provided by the user."""

TITLE_USER_TEMPLATE = 'Please produce a thorough ethical analysis of the following series/movie: "{title}".'

TRANSCRIPT_USER_TEMPLATE = (
    'The user provided a transcript from the source: "{source}". '
    "Please analyze the following content:\n\n---\n\n{transcript}"
)

TRANSLATION_SYSTEM_TEMPLATE = """You are a professional translator. Translate every string value of the JSON object you receive into {language}. Keep the meaning, tone and paragraph breaks. Return a JSON object with the same keys. 'thematicAnalysis' must contain exactly {count} entries, in the same order as the input. Return only the raw JSON object."""

TRANSCRIPTION_INSTRUCTION = (
    "Transcribe this audio file accurately. If the audio is unclear or contains no speech, "
    "return an empty response."
)


def _numbered(items) -> str:
    return "\n".join(f"{i}.  {text}" for i, text in enumerate(items, start=1))


def build_prompt(
    mode: AnalysisMode,
    subject: Union[str, tuple[str, str]],
    language: str = DEFAULT_REPORT_LANGUAGE,
) -> PromptRequest:
    """
    Build the analysis request for a mode.

    Args:
        mode: BY_SUBJECT_TITLE or FROM_TRANSCRIPT
        subject: the title for BY_SUBJECT_TITLE, or (source_name, transcript)
            for FROM_TRANSCRIPT
        language: language the report should be written in
    """
    mode = AnalysisMode(mode)

    if mode is AnalysisMode.BY_SUBJECT_TITLE:
        if not isinstance(subject, str):
            raise TypeError("BY_SUBJECT_TITLE expects the title as a string")
        instruction = TITLE_SYSTEM_TEMPLATE.format(
            language=language,
            sentinel=no_information_sentinel(language),
            not_applicable=not_applicable_text(language),
            taxonomy=_numbered(TITLE_TAXONOMY),
            positive_rule=POSITIVE_ASPECTS_RULE,
            scoring_rules=SCORING_RULES,
        )
        return PromptRequest(
            instruction_text=instruction,
            user_text=TITLE_USER_TEMPLATE.format(title=subject),
            schema=REPORT_SCHEMA,
            temperature=TITLE_TEMPERATURE,
        )

    if isinstance(subject, str) or len(subject) != 2:
        raise TypeError("FROM_TRANSCRIPT expects a (source_name, transcript) pair")
    source_name, transcript = subject
    instruction = TRANSCRIPT_SYSTEM_TEMPLATE.format(
        language=language,
        taxonomy=_numbered(TRANSCRIPT_TAXONOMY),
        positive_rule=POSITIVE_ASPECTS_RULE,
        scoring_rules=SCORING_RULES,
    )
    return PromptRequest(
        instruction_text=instruction,
        user_text=TRANSCRIPT_USER_TEMPLATE.format(source=source_name, transcript=transcript),
        schema=REPORT_SCHEMA,
        temperature=TRANSCRIPT_TEMPERATURE,
    )


def build_translation_prompt(report: "Report", language: str) -> PromptRequest:
    """Request a translation of the free-text fields only."""
    payload = {
        "overallSummary": report.overall_summary,
        "positiveAspectsSummary": report.positive_aspects_summary,
        "thematicAnalysis": [{"analysis": item.analysis} for item in report.thematic_analysis],
        "concludingRemarks": report.concluding_remarks,
    }
    return PromptRequest(
        instruction_text=TRANSLATION_SYSTEM_TEMPLATE.format(
            language=language, count=len(report.thematic_analysis)
        ),
        user_text=json.dumps(payload, ensure_ascii=False),
        schema=TRANSLATION_SCHEMA,
        temperature=TRANSLATION_TEMPERATURE,
    )


INFOGRAPHIC_TEMPLATE = """You are a world-class expert in data visualization and graphic design, specialized in polished, easy-to-read SVG infographics. Create a single self-contained SVG infographic from the JSON data below. The infographic text must be in {language}.

**Strict design brief:**

1.  **Viewport:** exactly "0 0 800 600".
2.  **Look:** dark, modern theme. Background: a subtle radial gradient defined in <defs> (#1e293b to #0f172a) applied to a background <rect>. Font: 'Inter', 'Helvetica Neue', sans-serif. Primary text '#e2e8f0', secondary text '#94a3b8'.
3.  **Accessibility:** include meaningful <title> and <desc> elements.
4.  **Header:** at y~45, x="400", text-anchor middle, 28px bold: "Ethical Analysis: {title}". Below at y~70, 16px, fill '#94a3b8': "Summary of Potential Concerns".
5.  **Left column (x 40-360):** overall concern gauge built with stroke-dasharray. Circle r="100", cx="200", cy="250". Background track circle: fill none, stroke '#334155', stroke-width 25. Progress circle on top: fill none, stroke-width 25, stroke-dasharray="628", stroke-dashoffset = 628 * (1 - {level} / 100). Both circles get transform="rotate(-90 200 250)". Stroke color: 0-33 '#22c55e', 34-66 '#eab308', 67-100 '#ef4444'. Centre text "{level}%" at x="200" y="255", 52px bold, same color. Below it, a two-line label "Overall / Concern" using <tspan> elements, 18px, fill '#94a3b8'.
6.  **Right column (x 390-780):** heading "Thematic Breakdown" at y~140, 20px bold. For each theme (max {max_themes}), ~75px apart: the theme name (15px, wrapped onto two <tspan> lines if long), a background bar at x="390" width="350" height 18 rx 4 fill '#334155', a progress bar on top whose width is concernLevel percent of 350 colored with the same bands, and the percentage at x="780" text-anchor end, 14px bold, same color.
7.  **Footer:** at y~580, x="400", 12px, fill '#475569', text-anchor middle: "Generated by the Ethical Media Analyzer".
8.  **Output:** respond ONLY with the raw SVG code. No markdown fences, no XML declaration, no comments, no explanations. The whole answer MUST start with <svg and end with </svg>.

**JSON data:**
{data}
"""


def build_infographic_prompt(report: "Report", language: str = DEFAULT_REPORT_LANGUAGE) -> str:
    data = {
        "title": report.title,
        "overallConcernLevel": report.overall_concern_level,
        "thematicAnalysis": [
            {"theme": item.theme, "concernLevel": item.concern_level}
            for item in report.thematic_analysis[:MAX_INFOGRAPHIC_THEMES]
        ],
    }
    return INFOGRAPHIC_TEMPLATE.format(
        language=language,
        title=report.title,
        level=report.overall_concern_level,
        max_themes=MAX_INFOGRAPHIC_THEMES,
        data=json.dumps(data, ensure_ascii=False),
    )
