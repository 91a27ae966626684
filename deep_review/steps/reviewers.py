"""Request a human reviewer on the pull request."""

from typing import Callable

import click

from deep_review.actions import ActionsContext
from deep_review.client import GitHubClient
from deep_review.config import Config, MissingConfigError
from deep_review.models import PullRequest


def add_reviewer(
    config: Config,
    make_client: Callable[[], GitHubClient],
    pr: PullRequest,
    pipeline: ActionsContext,
) -> bool:
    """Add the configured reviewer to *pr*.

    The client is only built once the reviewer is known, so a missing
    REVIEWER_NAME fails the step before any API call. API errors propagate.
    """
    try:
        reviewer = config.require("review", "reviewer")
    except MissingConfigError as exc:
        pipeline.set_failed(str(exc))
        return False

    make_client().request_reviewers(pr.owner, pr.repo, pr.number, [reviewer])
    click.echo(f"Added reviewer {reviewer} to PR #{pr.number}", err=True)
    return True
