"""Tests for deep_review/models.py"""

import json

import pytest

from deep_review.models import Issue, PullRequest, issues_from_json, issues_to_json


def _issue(**overrides) -> Issue:
    values = dict(
        id="SEC-101", type="INJECTION", file="app.js", severity_score=8.5,
        confidence=90, impact="data leak", fix_summary="sanitize input",
        raw_content="SEC-101 - INJECTION\nFile: app.js (line 5)",
    )
    values.update(overrides)
    return Issue(**values)


def test_to_dict_uses_camel_case_keys():
    assert _issue().to_dict() == {
        "id": "SEC-101",
        "type": "INJECTION",
        "file": "app.js",
        "severityScore": 8.5,
        "confidence": 90,
        "impact": "data leak",
        "fixSummary": "sanitize input",
        "rawContent": "SEC-101 - INJECTION\nFile: app.js (line 5)",
    }


def test_json_round_trip_preserves_every_field():
    issues = [_issue(), _issue(id="PERF-2", type="LEAK", file="", severity_score=0, confidence=0)]
    assert issues_from_json(issues_to_json(issues)) == issues


def test_json_keeps_emoji_unescaped():
    text = issues_to_json([_issue(raw_content="\U0001F534 marker")])
    assert "\U0001F534" in text


def test_from_dict_applies_defaults():
    issue = Issue.from_dict({"id": "SEC-1", "type": "XSS"})
    assert issue.file == ""
    assert issue.severity_score == 0
    assert issue.confidence == 0
    assert issue.raw_content == ""


def test_issues_from_json_rejects_non_array():
    with pytest.raises(ValueError, match="JSON array"):
        issues_from_json(json.dumps({"id": "SEC-1"}))


def test_issues_from_json_rejects_invalid_json():
    with pytest.raises(ValueError):
        issues_from_json("not json")


def test_pull_request_url_fallback():
    pr = PullRequest(owner="octo", repo="app", number=7)
    assert pr.url == "https://github.com/octo/app/pull/7"
    assert PullRequest("octo", "app", 7, "https://ghe.local/octo/app/pull/7").url == \
        "https://ghe.local/octo/app/pull/7"


def test_json_is_compact_with_whole_scores_as_integers():
    text = issues_to_json([_issue(severity_score=9.0, raw_content="r")])
    assert text.startswith('[{"id":"SEC-101","type":"INJECTION","file":"app.js","severityScore":9,')
    assert '"severityScore":8.5' in issues_to_json([_issue()])


def test_pretty_json_keeps_indentation():
    assert '\n  {\n    "id": "SEC-101"' in issues_to_json([_issue()], indent=2)


@pytest.mark.parametrize("record", [{"type": "XSS"}, {"id": "", "type": "XSS"}, {"id": None}])
def test_from_dict_requires_id(record):
    with pytest.raises(ValueError, match="without an id"):
        Issue.from_dict(record)
