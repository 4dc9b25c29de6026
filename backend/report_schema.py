"""Ethical Media Analyzer - Report schema
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

The canonical shape of an analysis result. ``REPORT_SCHEMA`` is handed to
the LLM verbatim; the pydantic models below enforce the same contract on
whatever comes back.
"""

import re
from datetime import date
from typing import Annotated, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Only the extended variant (concern levels + positive aspects) is supported
SCHEMA_VERSION = "extended"

# Concern bands: 0-33 low, 34-66 moderate, 67-100 high
CONCERN_BANDS = (
    (33, "low", "#22c55e"),
    (66, "moderate", "#eab308"),
    (100, "high", "#ef4444"),
)

ANALYSIS_YEAR_PATTERN = re.compile(r"\b(\d{4})\s*$")

ConcernLevel = Annotated[int, Field(ge=0, le=100)]
NonEmptyStr = Annotated[str, Field(min_length=1)]


def concern_band(level: int) -> tuple[str, str]:
    """Return (label, hex color) for a concern percentage."""
    for upper, label, color in CONCERN_BANDS:
        if level <= upper:
            return label, color
    return CONCERN_BANDS[-1][1], CONCERN_BANDS[-1][2]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ThematicItem(_WireModel):
    theme: NonEmptyStr
    analysis: NonEmptyStr
    concern_level: ConcernLevel


class ReportContent(_WireModel):
    """The fields produced by the LLM."""

    title: NonEmptyStr
    overall_summary: str
    overall_concern_level: ConcernLevel
    thematic_analysis: list[ThematicItem]
    positive_aspects_summary: str
    concluding_remarks: str


class TranslatedAnalysis(_WireModel):
    analysis: NonEmptyStr


class TranslatedOverlay(_WireModel):
    language: str = ""
    overall_summary: str
    positive_aspects_summary: str
    concluding_remarks: str
    thematic_analysis: list[TranslatedAnalysis]


class Report(ReportContent):
    """A validated report plus provenance and an optional translation.

    LLM-derived fields are frozen; only provenance and the overlay can be
    attached after construction.
    """

    model_config = ConfigDict(validate_assignment=True)

    title: NonEmptyStr = Field(frozen=True)
    overall_summary: str = Field(frozen=True)
    overall_concern_level: ConcernLevel = Field(frozen=True)
    thematic_analysis: list[ThematicItem] = Field(frozen=True)
    positive_aspects_summary: str = Field(frozen=True)
    concluding_remarks: str = Field(frozen=True)

    source: Optional[str] = None
    analysis_date: Optional[str] = None
    translated: Optional[TranslatedOverlay] = None

    @classmethod
    def from_content(cls, content: ReportContent) -> "Report":
        return cls(**content.model_dump())

    @model_validator(mode="after")
    def _overlay_matches_analyses(self) -> "Report":
        if self.translated is not None and len(self.translated.thematic_analysis) != len(self.thematic_analysis):
            raise ValueError(
                f"translated.thematicAnalysis has {len(self.translated.thematic_analysis)} entries, "
                f"expected {len(self.thematic_analysis)}"
            )
        return self

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    def content_view(self, use_translation: bool = False) -> dict:
        """Flatten into the fields a view renders, optionally in the translated language.

        Themes and concern levels always come from the base report.
        """
        overlay = self.translated if use_translation else None
        items = []
        for i, item in enumerate(self.thematic_analysis):
            analysis = overlay.thematic_analysis[i].analysis if overlay else item.analysis
            items.append({"theme": item.theme, "analysis": analysis, "concern_level": item.concern_level})
        return {
            "title": self.title,
            "overall_summary": overlay.overall_summary if overlay else self.overall_summary,
            "overall_concern_level": self.overall_concern_level,
            "positive_aspects_summary": (
                overlay.positive_aspects_summary if overlay else self.positive_aspects_summary
            ),
            "concluding_remarks": overlay.concluding_remarks if overlay else self.concluding_remarks,
            "thematic_analysis": items,
        }

    def analysis_year(self) -> Optional[int]:
        """Year of the stamped analysis date (both locales end with it)."""
        match = ANALYSIS_YEAR_PATTERN.search(self.analysis_date or "")
        return int(match.group(1)) if match else None

    def bibliographic_reference(self, author: str, year: Optional[int] = None) -> Optional[str]:
        """APA-style citation; only available once provenance is set."""
        if not (self.source and self.analysis_date):
            return None
        year = year or self.analysis_year() or date.today().year
        return (
            f"{author} ({year}). Ethical Analysis of '{self.source}'. "
            f"Ethical Media Analyzer. Retrieved {self.analysis_date}, from this application."
        )


_CONCERN_DESCRIPTION = "percentage from 0 (no concern) to 100 (maximum concern)"

REPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "The title of the movie, series or source video/document being analyzed.",
        },
        "overallSummary": {
            "type": "string",
            "description": (
                "A one-paragraph executive summary of the overall ethical landscape of the content. "
                "If no information about the title is found, this field must contain exactly the "
                "sentinel text given in the instructions."
            ),
        },
        "overallConcernLevel": {
            "type": "integer",
            "minimum": 0,
            "maximum": 100,
            "description": f"Overall ethical concern as a {_CONCERN_DESCRIPTION}.",
        },
        "thematicAnalysis": {
            "type": "array",
            "description": (
                "Detailed analyses of individual ethical concerns. Do not include positive themes here. "
                "Must be an empty array when no information about the title was found."
            ),
            "items": {
                "type": "object",
                "properties": {
                    "theme": {
                        "type": "string",
                        "description": "Name of the concern theme (e.g. 'Language and Communication').",
                    },
                    "analysis": {
                        "type": "string",
                        "description": "A detailed, multi-sentence analysis of this specific concern.",
                    },
                    "concernLevel": {
                        "type": "integer",
                        "minimum": 0,
                        "maximum": 100,
                        "description": f"Concern for this theme as a {_CONCERN_DESCRIPTION}.",
                    },
                },
                "required": ["theme", "analysis", "concernLevel"],
            },
        },
        "positiveAspectsSummary": {
            "type": "string",
            "description": (
                "One paragraph summarizing positive ethical aspects, prosocial messages or constructive "
                "values. If there are none, state that no notable positive aspects were found."
            ),
        },
        "concludingRemarks": {
            "type": "string",
            "description": "Final reflections summarizing the main ethical strengths and weaknesses.",
        },
    },
    "required": [
        "title",
        "overallSummary",
        "overallConcernLevel",
        "thematicAnalysis",
        "positiveAspectsSummary",
        "concludingRemarks",
    ],
}

TRANSLATION_SCHEMA = {
    "type": "object",
    "properties": {
        "overallSummary": {"type": "string"},
        "positiveAspectsSummary": {"type": "string"},
        "thematicAnalysis": {
            "type": "array",
            "description": "One entry per input analysis, in the same order.",
            "items": {
                "type": "object",
                "properties": {"analysis": {"type": "string"}},
                "required": ["analysis"],
            },
        },
        "concludingRemarks": {"type": "string"},
    },
    "required": ["overallSummary", "positiveAspectsSummary", "thematicAnalysis", "concludingRemarks"],
}
