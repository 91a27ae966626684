"""GitHub Actions runtime glue.

Usage:
    pipeline = ActionsContext()
    pipeline.set_output("has-issues", "true")
    pipeline.export_variable("DEEP_REVIEW_CONTENT", body)
    pipeline.set_failed("Deep Review comment not found")

    pr = load_pull_request(repo="octo/repo", number=42)

Outputs and exported variables are written with the runner's file commands
(``GITHUB_OUTPUT`` / ``GITHUB_ENV``). Outside a runner those variables are
unset and values are only kept in memory.
"""

import json
import os
import uuid
from typing import MutableMapping

import click

from deep_review.models import PullRequest


class ActionsError(Exception):
    """Raised when the pull request context cannot be determined."""


class ActionsContext:
    """The subset of ``@actions/core`` the review steps rely on."""

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ
        self.outputs: dict[str, str] = {}
        self.exported: dict[str, str] = {}
        self.failed = False
        self.failure_message: str | None = None

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value
        _append_file_command(self.environ.get("GITHUB_OUTPUT"), name, value)

    def export_variable(self, name: str, value: str) -> None:
        self.exported[name] = value
        self.environ[name] = value
        _append_file_command(self.environ.get("GITHUB_ENV"), name, value)

    def set_failed(self, message: str) -> None:
        """Emit an error annotation and mark the step as failed."""
        self.failed = True
        self.failure_message = message
        click.echo(f"::error::{escape_data(message)}")


def escape_data(value: str) -> str:
    """Escape a workflow command payload."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _append_file_command(path: str | None, name: str, value: str) -> None:
    if not path:
        return
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


# ---------------------------------------------------------------------------
# Pull request context
# ---------------------------------------------------------------------------

def load_pull_request(
    repo: str | None = None,
    number: int | None = None,
    html_url: str | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> PullRequest:
    """Resolve the pull request this run is about.

    Explicit arguments win; otherwise ``GITHUB_REPOSITORY`` and the event
    payload at ``GITHUB_EVENT_PATH`` are used. Both ``pull_request`` events
    and ``issue_comment`` events on a PR are understood.

    Raises:
        ActionsError: if the repository or PR number cannot be determined.
    """
    env = os.environ if environ is None else environ
    event = _read_event(env.get("GITHUB_EVENT_PATH"))

    pr_data = event.get("pull_request") or {}
    issue_data = event.get("issue") or {}

    repo = repo or env.get("GITHUB_REPOSITORY", "")
    if "/" not in repo:
        raise ActionsError(
            "Repository is unknown: pass --repo owner/name or set GITHUB_REPOSITORY."
        )
    owner, name = repo.split("/", 1)

    number = number or pr_data.get("number") or issue_data.get("number")
    if not number:
        raise ActionsError(
            "Pull request number is unknown: pass --pr or run on a pull_request event."
        )

    html_url = (
        html_url
        or pr_data.get("html_url")
        or (issue_data.get("pull_request") or {}).get("html_url")
        or ""
    )
    return PullRequest(owner=owner, repo=name, number=int(number), html_url=html_url)


def _read_event(path: str | None) -> dict:
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            event = json.load(f)
    except (OSError, ValueError) as exc:
        raise ActionsError(f"Unable to read event payload '{path}': {exc}") from exc
    return event if isinstance(event, dict) else {}
