"""Tests for the response validator: JSON extraction, schema enforcement, SVG extraction."""

import json
import pytest

from errors import InvalidGraphic, MalformedResponse
from response_parser import (
    extract_json_text,
    extract_svg,
    parse_report,
    parse_translation,
    strip_code_fence,
)


class TestExtractJson:
    def test_plain_object(self):
        assert extract_json_text('{"a": 1}') == '{"a": 1}'

    def test_json_fence(self):
        assert json.loads(extract_json_text('```json\n{"a": 1}\n```')) == {"a": 1}

    def test_bare_fence(self):
        assert json.loads(extract_json_text('```\n{"a": 1}\n```')) == {"a": 1}

    def test_chatter_around_object(self):
        text = 'Here is your report: {"a": {"b": 2}} Hope it helps!'
        assert json.loads(extract_json_text(text)) == {"a": {"b": 2}}

    def test_not_json(self):
        with pytest.raises(MalformedResponse):
            extract_json_text("not json")

    def test_array_is_not_an_object(self):
        with pytest.raises(MalformedResponse):
            extract_json_text("[1, 2, 3]")

    def test_empty(self):
        with pytest.raises(MalformedResponse):
            extract_json_text("")

    def test_strip_code_fence_without_fence(self):
        assert strip_code_fence("  hello  ") == "hello"


class TestParseReport:
    def test_valid_report(self, sample_report_json):
        report = parse_report(sample_report_json)
        assert report.title == "Parasite"
        assert report.overall_concern_level == 62
        assert len(report.thematic_analysis) == 2
        assert report.thematic_analysis[1].concern_level == 70
        assert report.source is None
        assert report.analysis_date is None
        assert report.translated is None

    def test_fenced_report(self, sample_report_json):
        report = parse_report(f"```json\n{sample_report_json}\n```")
        assert report.title == "Parasite"

    def test_missing_positive_aspects(self, sample_report_data):
        del sample_report_data["positiveAspectsSummary"]
        with pytest.raises(MalformedResponse):
            parse_report(json.dumps(sample_report_data))

    def test_concern_level_out_of_range(self, sample_report_data):
        sample_report_data["overallConcernLevel"] = 150
        with pytest.raises(MalformedResponse):
            parse_report(json.dumps(sample_report_data))

    def test_negative_theme_concern(self, sample_report_data):
        sample_report_data["thematicAnalysis"][0]["concernLevel"] = -5
        with pytest.raises(MalformedResponse):
            parse_report(json.dumps(sample_report_data))

    def test_boolean_is_not_an_integer(self, sample_report_data):
        sample_report_data["overallConcernLevel"] = True
        with pytest.raises(MalformedResponse):
            parse_report(json.dumps(sample_report_data))

    def test_numeric_string_rejected(self, sample_report_data):
        sample_report_data["overallConcernLevel"] = "62"
        with pytest.raises(MalformedResponse):
            parse_report(json.dumps(sample_report_data))

    def test_empty_theme_rejected(self, sample_report_data):
        sample_report_data["thematicAnalysis"][0]["theme"] = ""
        with pytest.raises(MalformedResponse):
            parse_report(json.dumps(sample_report_data))

    def test_boundary_levels_accepted(self, sample_report_data):
        sample_report_data["overallConcernLevel"] = 0
        sample_report_data["thematicAnalysis"][0]["concernLevel"] = 100
        report = parse_report(json.dumps(sample_report_data))
        assert report.overall_concern_level == 0
        assert report.thematic_analysis[0].concern_level == 100

    def test_empty_thematic_analysis_allowed(self, sample_report_data):
        sample_report_data["thematicAnalysis"] = []
        report = parse_report(json.dumps(sample_report_data))
        assert report.thematic_analysis == []

    def test_garbage(self):
        with pytest.raises(MalformedResponse):
            parse_report("not json")


class TestParseTranslation:
    def test_valid(self, sample_translation_data):
        overlay = parse_translation(json.dumps(sample_translation_data), expected_items=2, language="Spanish")
        assert overlay.language == "Spanish"
        assert overlay.thematic_analysis[0].analysis == "Lenguaje soez frecuente."

    def test_count_mismatch(self, sample_translation_data):
        with pytest.raises(MalformedResponse):
            parse_translation(json.dumps(sample_translation_data), expected_items=3)

    def test_missing_field(self, sample_translation_data):
        del sample_translation_data["concludingRemarks"]
        with pytest.raises(MalformedResponse):
            parse_translation(json.dumps(sample_translation_data), expected_items=2)


class TestExtractSvg:
    def test_plain_svg(self):
        svg = '<svg viewBox="0 0 800 600"><rect/></svg>'
        assert extract_svg(svg) == svg

    def test_fenced_svg(self):
        svg = '<svg viewBox="0 0 800 600"><rect/></svg>'
        assert extract_svg(f"```svg\n{svg}\n```") == svg

    def test_svg_with_chatter(self):
        svg = "<svg><text>Hi</text></svg>"
        assert extract_svg(f"Sure! Here it is:\n{svg}\nEnjoy.") == svg

    def test_not_svg(self):
        with pytest.raises(InvalidGraphic):
            extract_svg("<div>nope</div>")

    def test_invalid_graphic_is_export_failure(self):
        from errors import ExportFailed
        with pytest.raises(ExportFailed):
            extract_svg("")
