"""Jira ticket creation for the critical issues of a review.

Functions:
    create_ticket(config, pr, issues_json, pipeline)   -> str | None
    build_ticket_payload(...)                          -> dict

The description is an Atlassian Document Format (ADF) document: a summary
paragraph, the per-issue details in a plain-text code block and a link back
to the pull request.
"""

from typing import Any

import click

from deep_review.actions import ActionsContext
from deep_review.client import JiraClient
from deep_review.config import DEFAULT_ISSUE_TYPE, DEFAULT_LABELS, Config
from deep_review.models import Issue, PullRequest, issues_from_json, whole_number

DESCRIPTION_HEADER = "Critical issues found in PR review:\n\n"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_ticket(
    config: Config,
    pr: PullRequest,
    issues_json: str,
    pipeline: ActionsContext,
    client: JiraClient | None = None,
) -> str | None:
    """Open a Jira ticket for the issues in *issues_json*.

    Never raises: any failure is reported through ``pipeline.set_failed``
    and logged, and None is returned. On success the ticket key is
    published as the ``ticket-key`` output and returned.
    """
    try:
        email = config.require("jira", "assignee_email")
        board_key = config.require("jira", "board_key")
        base_url = config.require("jira", "base_url")
        token = config.require("jira", "token")
        issues = issues_from_json(issues_json)

        if client is None:
            client = JiraClient(url=base_url, token=token)

        click.echo(f"Getting JIRA account ID for {email}...", err=True)
        account_id = client.find_account_id(email)
        click.echo(f"Found JIRA account ID: {account_id}", err=True)

        payload = build_ticket_payload(
            board_key=board_key,
            summary=build_summary(pr, len(issues)),
            description=build_description(issues),
            pr_url=pr.url,
            account_id=account_id,
            affected_files=count_affected_files(issues),
            issue_type=config.jira.issue_type or DEFAULT_ISSUE_TYPE,
            labels=config.jira.labels,
        )

        ticket_key = client.create_issue(payload)
        click.echo(f"Created JIRA ticket: {ticket_key}", err=True)
        pipeline.set_output("ticket-key", ticket_key)
        return ticket_key
    except Exception as exc:
        pipeline.set_failed(str(exc))
        click.echo(f"Error response: {exc!r}", err=True)
        return None


def count_affected_files(issues: list[Issue]) -> int:
    return len({i.file for i in issues})


def build_summary(pr: PullRequest, issue_count: int) -> str:
    return f"PR #{pr.number} - {pr.repo}: {issue_count} Critical Issues Found"


def build_description(issues: list[Issue]) -> str:
    """Plain-text details of every issue, one block per issue."""
    blocks = [
        f"\U0001F534 {i.type} Issue (Severity: {format_score(i.severity_score)})\n"
        f"File: {i.file}\n\n"
        f"{i.raw_content}\n\n---\n\n"
        for i in issues
    ]
    return DESCRIPTION_HEADER + "".join(blocks)


def format_score(value: float) -> str:
    """Render 8.0 as "8" and 8.5 as "8.5"."""
    return str(whole_number(float(value)))


def build_ticket_payload(
    board_key: str,
    summary: str,
    description: str,
    pr_url: str,
    account_id: str,
    affected_files: int,
    issue_type: str = DEFAULT_ISSUE_TYPE,
    labels: list[str] | None = None,
) -> dict:
    """Return the body of ``POST /rest/api/3/issue``."""
    return {
        "fields": {
            "project":     {"key": board_key},
            "summary":     summary,
            "description": _adf_document(summary, description, pr_url, affected_files),
            "issuetype":   {"name": issue_type},
            "assignee":    {"accountId": account_id},
            "labels":      list(DEFAULT_LABELS) if labels is None else list(labels),
        },
    }


# ---------------------------------------------------------------------------
# ADF helpers
# ---------------------------------------------------------------------------

def _text(text: str, *marks: dict) -> dict[str, Any]:
    node: dict[str, Any] = {"type": "text", "text": text}
    if marks:
        node["marks"] = list(marks)
    return node


_STRONG = {"type": "strong"}


def _adf_document(summary_line: str, description: str, pr_url: str,
                  affected_files: int) -> dict:
    summary = {
        "type": "paragraph",
        "content": [
            _text("\U0001F6A8 Summary:\n• Total Issues: "),
            _text(summary_line, _STRONG),
            _text("\n• Affected Files: "),
            _text(str(affected_files), _STRONG),
            _text("\n\n\U0001F4DD Detailed Issues:\n\n"),
        ],
    }
    details = {
        "type": "codeBlock",
        "attrs": {"language": "text"},
        "content": [_text(description)],
    }
    link = {
        "type": "paragraph",
        "content": [
            _text("\n\U0001F517 PR Link: "),
            _text(pr_url, {"type": "link", "attrs": {"href": pr_url}}),
        ],
    }
    return {"type": "doc", "version": 1, "content": [summary, details, link]}
