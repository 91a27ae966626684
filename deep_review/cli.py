"""CLI entry point: command definitions using Click.

Commands:
    init           Generate a template config file
    parse-issues   Extract critical issues from the DeepReview PR comment
    add-reviewer   Request REVIEWER_NAME as a reviewer on the PR
    create-ticket  Open a Jira ticket for the extracted issues
"""

import functools
import os
import sys

import click

from deep_review import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all pipeline commands
# ---------------------------------------------------------------------------

def _load_config(ctx: click.Context):
    """Load config. Exits on error."""
    from deep_review.config import ConfigError, load

    try:
        return load(ctx.obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


def _make_github_client(config):
    """Return a ready GitHubClient. Exits when no token is configured."""
    from deep_review.client import GitHubClient
    from deep_review.config import ConfigError

    try:
        token = config.require("github", "token")
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)
    return GitHubClient(token=token, url=config.github.api_url)


def _load_pull_request(repo: str | None, pr_number: int | None, pr_url: str | None = None):
    from deep_review.actions import ActionsError, load_pull_request

    try:
        return load_pull_request(repo=repo, number=pr_number, html_url=pr_url)
    except ActionsError as exc:
        click.echo(f"Pull request error: {exc}", err=True)
        sys.exit(1)


def _emit_json(text: str, output_path: str | None) -> None:
    """Write JSON to stdout or to *output_path*."""
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Issues written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _exit_if_failed(pipeline) -> None:
    if pipeline.failed:
        sys.exit(1)


def _handle_client_errors(func):
    """Decorator that catches API client exceptions and exits cleanly."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from deep_review.client import (
            ApiClientError,
            AuthenticationError,
            NetworkError,
            NotFoundError,
        )

        try:
            return func(*args, **kwargs)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except ApiClientError as exc:
            click.echo(f"API error: {exc}", err=True)
            sys.exit(1)

    return wrapper


pr_options = [
    click.option("--repo", default=None,
                 help="Repository as owner/name (defaults to GITHUB_REPOSITORY)."),
    click.option("--pr", "pr_number", type=int, default=None,
                 help="Pull request number (defaults to the triggering event)."),
]


def _with_pr_options(func):
    for option in reversed(pr_options):
        func = option(func)
    return func


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=None, envvar="DEEP_REVIEW_CONFIG",
              help="Optional YAML config file; environment variables override it.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="deep-review")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """DeepReview CI helpers: parse review findings, request reviewers, file Jira tickets."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="deep-review.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template deep-review.yaml file."""
    from deep_review.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your Jira site, board key and reviewer.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# parse-issues
# ---------------------------------------------------------------------------

@cli.command("parse-issues")
@_with_pr_options
@click.option("--output", "output_path", default=None,
              help="Write the issues JSON to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.pass_context
@_handle_client_errors
def parse_issues_command(ctx: click.Context, repo: str | None, pr_number: int | None,
                         output_path: str | None, pretty: bool) -> None:
    """Extract critical issues from the DeepReview comment of a pull request."""
    from deep_review.actions import ActionsContext
    from deep_review.models import issues_to_json
    from deep_review.steps.comments import parse_issues

    config = _load_config(ctx)
    pr = _load_pull_request(repo, pr_number)
    client = _make_github_client(config)
    pipeline = ActionsContext()

    if ctx.obj["verbose"]:
        click.echo(f"[verbose] Listing comments of {pr.owner}/{pr.repo}#{pr.number}", err=True)

    issues = parse_issues(client, pr, pipeline, marker=config.review.marker,
                          verbose=ctx.obj["verbose"])
    _exit_if_failed(pipeline)
    _emit_json(issues_to_json(issues, indent=2 if pretty else None), output_path)


# ---------------------------------------------------------------------------
# add-reviewer
# ---------------------------------------------------------------------------

@cli.command("add-reviewer")
@_with_pr_options
@click.pass_context
@_handle_client_errors
def add_reviewer_command(ctx: click.Context, repo: str | None, pr_number: int | None) -> None:
    """Request REVIEWER_NAME as a reviewer on the pull request."""
    from deep_review.actions import ActionsContext
    from deep_review.steps.reviewers import add_reviewer

    config = _load_config(ctx)
    pr = _load_pull_request(repo, pr_number)
    pipeline = ActionsContext()

    add_reviewer(config, lambda: _make_github_client(config), pr, pipeline)
    _exit_if_failed(pipeline)


# ---------------------------------------------------------------------------
# create-ticket
# ---------------------------------------------------------------------------

@cli.command("create-ticket")
@_with_pr_options
@click.option("--pr-url", default=None,
              help="Pull request web URL (defaults to the triggering event).")
@click.option("--issues-file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Read the issues JSON from a file instead of the ISSUES variable.")
@click.pass_context
def create_ticket_command(ctx: click.Context, repo: str | None, pr_number: int | None,
                          pr_url: str | None, issues_file: str | None) -> None:
    """Open a Jira ticket summarising the critical issues."""
    from deep_review.actions import ActionsContext
    from deep_review.steps.ticket import create_ticket

    config = _load_config(ctx)
    pr = _load_pull_request(repo, pr_number, pr_url)
    pipeline = ActionsContext()

    if issues_file:
        with open(issues_file, encoding="utf-8") as f:
            issues_json = f.read()
    else:
        issues_json = os.environ.get("ISSUES") or "[]"

    if ctx.obj["verbose"]:
        click.echo(f"[verbose] Filing ticket on {config.jira.base_url or '(unset)'}", err=True)

    ticket_key = create_ticket(config, pr, issues_json, pipeline)
    _exit_if_failed(pipeline)
    click.echo(ticket_key)
