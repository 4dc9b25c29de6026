"""Ethical Media Analyzer - DOCX export
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Renders a Report as a Word document with python-docx.
"""

import io
import re
import logging
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor

from errors import ExportFailed
from report_schema import Report, concern_band

logger = logging.getLogger(__name__)

DOCUMENT_TITLE = "Comprehensive Ethical Analysis Report"
BODY_FONT_SIZE = Pt(11)
THEME_FONT_SIZE = Pt(14)
MAX_FILENAME_TITLE_LENGTH = 50


def report_filename(report: Report) -> str:
    """ethical_report_<title with non-alphanumerics replaced>.docx"""
    sanitized = re.sub(r"[^a-zA-Z0-9]", "_", report.title)[:MAX_FILENAME_TITLE_LENGTH]
    return f"ethical_report_{sanitized}.docx"


def _hex_to_rgb(color: str) -> RGBColor:
    return RGBColor.from_string(color.lstrip("#").upper())


def _add_text(doc, text: str):
    """One justified paragraph per line of text."""
    for line in (text or "").split("\n"):
        paragraph = doc.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
        paragraph.paragraph_format.space_after = Pt(6)
        run = paragraph.add_run(line)
        run.font.size = BODY_FONT_SIZE


def _add_concern(doc, label: str, level: int):
    band, color = concern_band(level)
    paragraph = doc.add_paragraph()
    paragraph.add_run(f"{label}: ").bold = True
    run = paragraph.add_run(f"{level}% ({band})")
    run.bold = True
    run.font.color.rgb = _hex_to_rgb(color)


def render_document(report: Report, use_translation: bool = False, author: str = "Polanco, M.") -> bytes:
    """
    Build the .docx file for a report and return its bytes.

    Args:
        report: a finished report
        use_translation: render the translated free text when an overlay exists
        author: author used in the bibliographic reference
    """
    try:
        view = report.content_view(use_translation=use_translation and report.translated is not None)

        doc = Document()
        heading = doc.add_heading(DOCUMENT_TITLE, 0)
        heading.alignment = WD_ALIGN_PARAGRAPH.CENTER

        doc.add_heading("Analyzed Content", level=1)
        title_paragraph = doc.add_paragraph()
        title_run = title_paragraph.add_run(view["title"])
        title_run.bold = True
        title_run.font.size = Pt(12)
        _add_concern(doc, "Overall concern level", view["overall_concern_level"])

        doc.add_heading("Overall Summary", level=1)
        _add_text(doc, view["overall_summary"])

        doc.add_heading("Detailed Thematic Analysis", level=1)
        if view["thematic_analysis"]:
            for item in view["thematic_analysis"]:
                theme_heading = doc.add_heading(level=2)
                theme_run = theme_heading.add_run(item["theme"])
                theme_run.font.size = THEME_FONT_SIZE
                _add_concern(doc, "Concern level", item["concern_level"])
                _add_text(doc, item["analysis"])
                doc.add_paragraph()  # Spacer
        else:
            _add_text(doc, "No thematic analysis was provided.")

        doc.add_heading("Positive Aspects", level=1)
        _add_text(doc, view["positive_aspects_summary"])

        doc.add_heading("Concluding Remarks", level=1)
        _add_text(doc, view["concluding_remarks"])

        reference = report.bibliographic_reference(author)
        if reference:
            doc.add_heading("Bibliographic Reference (APA Style)", level=1)
            _add_text(doc, reference)

        buffer = io.BytesIO()
        doc.save(buffer)
    except Exception as e:
        logger.error(f"DOCX export failed for '{report.title}': {e}")
        raise ExportFailed(e) from e

    data = buffer.getvalue()
    logger.info(f"📄 Exported '{report.title}' to DOCX ({len(data)} bytes)")
    return data
