"""Configuration loading and validation.

Usage:
    config = load("deep-review.yaml")              # file is optional
    email  = config.require("jira", "assignee_email")
    generate_template("deep-review.yaml")          # writes example file to disk

Every setting can come from the YAML file or from the environment; the
environment wins. In GitHub Actions the file is usually omitted and the
workflow passes secrets as environment variables.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Mapping

import yaml

DEFAULT_MARKER = "DeepReview"
DEFAULT_ISSUE_TYPE = "Task"
DEFAULT_LABELS = ("deep-review", "security", "automated")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


class MissingConfigError(ConfigError):
    """Raised when an operation needs a setting that was not provided."""

    def __init__(self, setting: str, env_var: str) -> None:
        self.setting = setting
        self.env_var = env_var
        super().__init__(f"{env_var} environment variable is required")


# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------

@dataclass
class GitHubSettings:
    token: str = ""
    api_url: str = "https://api.github.com"


@dataclass
class ReviewSettings:
    marker: str = DEFAULT_MARKER
    reviewer: str = ""


@dataclass
class JiraSettings:
    base_url: str = ""
    token: str = ""
    assignee_email: str = ""
    board_key: str = ""
    issue_type: str = DEFAULT_ISSUE_TYPE
    labels: list[str] = field(default_factory=lambda: list(DEFAULT_LABELS))


@dataclass
class Config:
    github: GitHubSettings = field(default_factory=GitHubSettings)
    review: ReviewSettings = field(default_factory=ReviewSettings)
    jira: JiraSettings = field(default_factory=JiraSettings)

    def require(self, section: str, name: str) -> str:
        """Return a required setting or raise MissingConfigError."""
        value = getattr(getattr(self, section), name)
        if not value:
            env_var = ENV_OVERRIDES.get((section, name), f"{section}.{name}".upper())
            raise MissingConfigError(f"{section}.{name}", env_var)
        return value


#: (section, setting) -> environment variable that overrides it
ENV_OVERRIDES: dict[tuple[str, str], str] = {
    ("github", "token"):          "GITHUB_TOKEN",
    ("github", "api_url"):        "GITHUB_API_URL",
    ("review", "reviewer"):       "REVIEWER_NAME",
    ("jira",   "base_url"):       "JIRA_BASE_URL",
    ("jira",   "token"):          "JIRA_API_TOKEN",
    ("jira",   "assignee_email"): "JIRA_ASSIGNEE_EMAIL",
    ("jira",   "board_key"):      "JIRA_BOARD_KEY",
}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from an optional YAML file plus environment overrides.

    Raises:
        ConfigError: if *config_path* is given but missing or malformed.
    """
    env = os.environ if environ is None else environ
    raw: dict = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(
                f"Config file not found: '{config_path}'\n"
                "Run `deep-review init` to generate a template."
            )
        try:
            with path.open(encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    config = Config(
        github=_section(GitHubSettings, raw, "github"),
        review=_section(ReviewSettings, raw, "review"),
        jira=_section(JiraSettings, raw, "jira"),
    )

    for (section, name), env_var in ENV_OVERRIDES.items():
        value = (env.get(env_var) or "").strip()
        if value:
            setattr(getattr(config, section), name, value)

    config.github.api_url = config.github.api_url.rstrip("/")
    config.jira.base_url = config.jira.base_url.rstrip("/")
    return config


def _section(cls, raw: dict, key: str):
    data = raw.get(key) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"'{key}' must be a YAML mapping.")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s) in '{key}': {', '.join(unknown)}")

    values = {}
    for name, value in data.items():
        if value is None:
            continue
        if name == "labels":
            if not isinstance(value, list):
                raise ConfigError("'jira.labels' must be a list of strings.")
            values[name] = [str(v) for v in value]
        else:
            values[name] = str(value).strip()
    return cls(**values)


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
# Every value below can also be supplied through the environment variable
# named in the comment; environment variables take precedence.

github:
  token: ""                       # GITHUB_TOKEN
  api_url: "https://api.github.com"   # GITHUB_API_URL

review:
  marker: "DeepReview"            # text identifying the review comment
  reviewer: ""                    # REVIEWER_NAME

jira:
  base_url: "https://example.atlassian.net"   # JIRA_BASE_URL
  token: ""                       # JIRA_API_TOKEN
  assignee_email: ""              # JIRA_ASSIGNEE_EMAIL
  board_key: "PROJ"               # JIRA_BOARD_KEY
  issue_type: "Task"
  labels: ["deep-review", "security", "automated"]
"""


def generate_template(output_path: str = "deep-review.yaml") -> None:
    """Write a template deep-review.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
