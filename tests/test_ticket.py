"""Tests for deep_review/steps/ticket.py"""

import pytest

from deep_review.actions import ActionsContext
from deep_review.config import Config
from deep_review.models import Issue, PullRequest, issues_to_json
from deep_review.steps.ticket import (
    build_description,
    build_summary,
    build_ticket_payload,
    count_affected_files,
    create_ticket,
    format_score,
)

JIRA = "https://example.atlassian.net"
PR = PullRequest(owner="octo", repo="app", number=7, html_url="https://github.com/octo/app/pull/7")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _issue(id_="SEC-1", type_="XSS", file="a.js", score=8.5, raw="SEC-1 - XSS") -> Issue:
    return Issue(id=id_, type=type_, file=file, severity_score=score, raw_content=raw)


def _config(**jira) -> Config:
    config = Config()
    config.jira.base_url = JIRA
    config.jira.token = "jira_test"
    config.jira.assignee_email = "dev@example.com"
    config.jira.board_key = "PROJ"
    for name, value in jira.items():
        setattr(config.jira, name, value)
    return config


@pytest.fixture
def user_search(requests_mock):
    return requests_mock.get(f"{JIRA}/rest/api/3/user/search", json=[{"accountId": "acc-1"}])


# ---------------------------------------------------------------------------
# Payload construction
# ---------------------------------------------------------------------------

def test_affected_files_counts_distinct_paths():
    issues = [_issue(file="a.js"), _issue(file="a.js"), _issue(file="b.js"), _issue(file="")]
    assert count_affected_files(issues) == 3
    assert count_affected_files([]) == 0


def test_summary_line():
    assert build_summary(PR, 3) == "PR #7 - app: 3 Critical Issues Found"


def test_description_template():
    issues = [_issue(), _issue(id_="SEC-2", type_="AUTH", file="b.py", score=9, raw="SEC-2 - AUTH")]
    assert build_description(issues) == (
        "Critical issues found in PR review:\n\n"
        "\U0001F534 XSS Issue (Severity: 8.5)\nFile: a.js\n\nSEC-1 - XSS\n\n---\n\n"
        "\U0001F534 AUTH Issue (Severity: 9)\nFile: b.py\n\nSEC-2 - AUTH\n\n---\n\n"
    )


def test_format_score():
    assert format_score(9.0) == "9"
    assert format_score(0) == "0"
    assert format_score(7.25) == "7.25"


def test_payload_shape():
    payload = build_ticket_payload(
        board_key="PROJ", summary="S", description="D", pr_url=PR.url,
        account_id="acc-1", affected_files=1,
    )
    fields = payload["fields"]
    assert fields["project"] == {"key": "PROJ"}
    assert fields["summary"] == "S"
    assert fields["issuetype"] == {"name": "Task"}
    assert fields["assignee"] == {"accountId": "acc-1"}
    assert fields["labels"] == ["deep-review", "security", "automated"]

    doc = fields["description"]
    assert (doc["type"], doc["version"]) == ("doc", 1)
    summary, details, link = doc["content"]

    strong = [n["text"] for n in summary["content"] if n.get("marks") == [{"type": "strong"}]]
    assert strong == ["S", "1"]
    assert details == {
        "type": "codeBlock",
        "attrs": {"language": "text"},
        "content": [{"type": "text", "text": "D"}],
    }
    assert link["content"][-1]["marks"] == [{"type": "link", "attrs": {"href": PR.url}}]


# ---------------------------------------------------------------------------
# create_ticket
# ---------------------------------------------------------------------------

def test_create_ticket_success(requests_mock, user_search):
    create = requests_mock.post(f"{JIRA}/rest/api/3/issue", status_code=201, json={"key": "PROJ-42"})
    pipeline = ActionsContext({})
    issues = [_issue(file="a.js"), _issue(id_="SEC-2", file="a.js")]

    key = create_ticket(_config(), PR, issues_to_json(issues), pipeline)

    assert key == "PROJ-42"
    assert pipeline.outputs == {"ticket-key": "PROJ-42"}
    assert pipeline.failed is False

    fields = create.last_request.json()["fields"]
    assert fields["summary"] == "PR #7 - app: 2 Critical Issues Found"
    assert fields["assignee"] == {"accountId": "acc-1"}
    total = fields["description"]["content"][0]["content"][1]
    assert total == {"type": "text", "text": "PR #7 - app: 2 Critical Issues Found",
                     "marks": [{"type": "strong"}]}
    assert create.last_request.headers["Authorization"].startswith("Basic ")
    assert user_search.last_request.qs["query"] == ["dev@example.com"]


def test_create_ticket_uses_configured_type_and_labels(requests_mock, user_search):
    create = requests_mock.post(f"{JIRA}/rest/api/3/issue", status_code=201, json={"key": "OPS-1"})
    config = _config(issue_type="Bug", labels=["review"])

    create_ticket(config, PR, "[]", ActionsContext({}))

    fields = create.last_request.json()["fields"]
    assert fields["issuetype"] == {"name": "Bug"}
    assert fields["labels"] == ["review"]


def test_create_ticket_failure_status_reports_body(requests_mock, user_search, capsys):
    requests_mock.post(f"{JIRA}/rest/api/3/issue", status_code=400, text="Field 'project' is invalid")
    pipeline = ActionsContext({})

    assert create_ticket(_config(), PR, "[]", pipeline) is None

    assert pipeline.failed is True
    assert "Field 'project' is invalid" in pipeline.failure_message
    assert "ticket-key" not in pipeline.outputs
    assert "Error response" in capsys.readouterr().err


@pytest.mark.parametrize("setting, env_var", [
    ("assignee_email", "JIRA_ASSIGNEE_EMAIL"),
    ("board_key", "JIRA_BOARD_KEY"),
    ("base_url", "JIRA_BASE_URL"),
    ("token", "JIRA_API_TOKEN"),
])
def test_create_ticket_missing_setting(requests_mock, setting, env_var):
    pipeline = ActionsContext({})

    assert create_ticket(_config(**{setting: ""}), PR, "[]", pipeline) is None

    assert pipeline.failure_message == f"{env_var} environment variable is required"
    assert requests_mock.call_count == 0


def test_create_ticket_unknown_assignee(requests_mock):
    requests_mock.get(f"{JIRA}/rest/api/3/user/search", json=[])
    pipeline = ActionsContext({})

    assert create_ticket(_config(), PR, "[]", pipeline) is None
    assert pipeline.failure_message == "Failed to get JIRA account ID"


def test_create_ticket_invalid_issues_json(requests_mock):
    pipeline = ActionsContext({})

    assert create_ticket(_config(), PR, "{oops", pipeline) is None
    assert pipeline.failed is True
    assert requests_mock.call_count == 0


def test_create_ticket_rejects_issue_without_id(requests_mock):
    pipeline = ActionsContext({})

    assert create_ticket(_config(), PR, '[{"id": "", "type": "XSS"}]', pipeline) is None
    assert "without an id" in pipeline.failure_message
    assert requests_mock.call_count == 0
