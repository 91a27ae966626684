"""Locate the DeepReview comment on a pull request and publish its issues."""

from typing import Iterable

import click

from deep_review.actions import ActionsContext
from deep_review.client import GitHubClient
from deep_review.config import DEFAULT_MARKER
from deep_review.models import Issue, PullRequest, issues_to_json
from deep_review.parser import parse_critical_issues


def find_marker_comment(comments: Iterable[dict], marker: str = DEFAULT_MARKER) -> str | None:
    """Return the body of the first comment containing *marker*, in host order."""
    for comment in comments:
        body = comment.get("body") or ""
        if marker in body:
            return body
    return None


def parse_issues(
    client: GitHubClient,
    pr: PullRequest,
    pipeline: ActionsContext,
    marker: str = DEFAULT_MARKER,
    verbose: bool = False,
) -> list[Issue]:
    """Find the review comment, extract its critical issues and publish them.

    API errors propagate. A missing comment fails the step without raising.
    """
    comments = client.list_issue_comments(pr.owner, pr.repo, pr.number)
    body = find_marker_comment(comments, marker)

    if body is None:
        pipeline.set_failed("Deep Review comment not found")
        return []

    click.echo(f"Found {marker} comment", err=True)
    if verbose:
        click.echo(f"[verbose] Comment content:\n{body}", err=True)

    issues = parse_critical_issues(body)
    click.echo(f"Found {len(issues)} critical issue(s)", err=True)

    if issues:
        pipeline.set_output("has-issues", "true")
        pipeline.set_output("issues", issues_to_json(issues))
        # Consumed by later steps of the same job
        pipeline.export_variable("DEEP_REVIEW_CONTENT", body)

    return issues
