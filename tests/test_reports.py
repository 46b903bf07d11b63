"""
Tests for pulse/reports.py

Run with: pytest tests/test_reports.py
"""

import json

import pytest

from pulse.errors import ReportParseError
from pulse.reports import (
    AdReport,
    CommentReport,
    ForumReport,
    MarketingInsightReport,
    NewsReport,
    parse_report,
    strip_code_fence,
)


@pytest.fixture
def forum_payload() -> dict:
    return {
        "overview": "Buyers compare battery life above all.",
        "sentiment": {"score": "0.4", "label": "positive", "confidence": 0.8},
        "pain_points": [
            {
                "title": "Battery drain",
                "description": "Dies after six hours",
                "frequency": "8/10",
                "impact": 7,
                "possible_solutions": "Ship a bigger cell",
            }
        ],
        "expert_opinions": [{"author": "Jane", "stance": "pro", "credibility": "9"}],
    }


class TestParseReport:
    def test_valid_report(self, forum_payload):
        report = parse_report(json.dumps(forum_payload), ForumReport)

        assert report.overview.startswith("Buyers")
        assert report.sentiment.score == 0.4
        assert report.pain_points[0].frequency == 8.0
        assert report.pain_points[0].possible_solutions == ["Ship a bigger cell"]
        assert report.expert_opinions[0].credibility == 9.0
        assert report.recommendations == []

    def test_unknown_keys_are_kept(self, forum_payload):
        forum_payload["bonus"] = {"x": 1}
        report = parse_report(json.dumps(forum_payload), ForumReport)
        assert report.model_dump()["bonus"] == {"x": 1}

    def test_unparseable_number_becomes_zero(self, forum_payload):
        forum_payload["pain_points"][0]["impact"] = "very high"
        report = parse_report(json.dumps(forum_payload), ForumReport)
        assert report.pain_points[0].impact == 0.0

    def test_missing_required_section(self, forum_payload):
        del forum_payload["pain_points"]
        with pytest.raises(ReportParseError, match="pain_points"):
            parse_report(json.dumps(forum_payload), ForumReport)

    def test_wrong_container_type(self):
        payload = {
            "overview": "o",
            "pain_points": "none",
            "user_experiences": [],
            "emotional_triggers": [],
        }
        with pytest.raises(ReportParseError, match="schema error"):
            parse_report(json.dumps(payload), CommentReport)

    def test_invalid_json(self):
        with pytest.raises(ReportParseError, match="Failed to parse analysis result: invalid JSON"):
            parse_report("Sure! Here is your analysis:", ForumReport)

    def test_non_object(self):
        with pytest.raises(ReportParseError, match="got list"):
            parse_report("[1, 2]", ForumReport)

    def test_keeps_raw_text(self):
        with pytest.raises(ReportParseError) as info:
            parse_report("not json", NewsReport)
        assert info.value.raw == "not json"

    def test_round_trip(self, forum_payload):
        report = parse_report(json.dumps(forum_payload), ForumReport)
        again = parse_report(report.model_dump_json(), ForumReport)
        assert again == report

    def test_marketing_report_defaults(self):
        payload = {
            "overview": "o",
            "recurring_pain_points": [{"issue": "price"}],
            "niche_communities": [],
            "sentiment_analysis": {"overall_sentiment": "65%"},
        }
        report = parse_report(json.dumps(payload), MarketingInsightReport)
        assert report.sentiment_analysis.overall_sentiment == 65.0
        assert report.competitive_intelligence.share_of_voice == 0.0

    def test_ad_report_requires_targeting(self):
        payload = {"overview": "o", "messaging_strategies": []}
        with pytest.raises(ReportParseError, match="audience_targeting"):
            parse_report(json.dumps(payload), AdReport)


class TestStripCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('Here:\n```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fence('{"a": 1}') == '{"a": 1}'

    def test_fence_inside_string_value_is_kept(self):
        text = json.dumps({"a": 'paste ```json {"eq": 3}``` here'})
        assert strip_code_fence(text) == text

    def test_fenced_report_quoting_a_fence(self):
        inner = json.dumps({"a": "see ```x``` above"})
        assert strip_code_fence(f"```json\n{inner}\n```\nHope this helps.") == inner

    def test_report_with_quoted_snippet_parses(self, forum_payload):
        forum_payload["overview"] = 'Users paste configs like ```json {"eq": 3}``` in answers'
        text = json.dumps(forum_payload)
        report = parse_report(strip_code_fence(text).strip(), ForumReport)
        assert report.overview == forum_payload["overview"]
