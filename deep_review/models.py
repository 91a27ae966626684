"""Data models shared by the pipeline steps.

Contains:
    - Issue         one critical finding extracted from a review comment
    - PullRequest   owner/repo/number reference for the current run

Issues travel between CI steps as a JSON array (the ``issues`` output,
read back from the ``ISSUES`` variable) using camelCase keys.
"""

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Issue:
    id: str
    type: str
    file: str = ""
    severity_score: float = 0
    confidence: int = 0
    impact: str = ""
    fix_summary: str = ""
    raw_content: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id":            self.id,
            "type":          self.type,
            "file":          self.file,
            "severityScore": self.severity_score,
            "confidence":    self.confidence,
            "impact":        self.impact,
            "fixSummary":    self.fix_summary,
            "rawContent":    self.raw_content,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Issue":
        """Build an Issue from its JSON shape.

        Raises:
            ValueError: if the record has no ``id``.
        """
        if not data.get("id"):
            raise ValueError(f"Issue record without an id: {data!r}")
        return cls(
            id=str(data["id"]),
            type=str(data.get("type") or ""),
            file=str(data.get("file") or ""),
            severity_score=data.get("severityScore") or 0,
            confidence=data.get("confidence") or 0,
            impact=str(data.get("impact") or ""),
            fix_summary=str(data.get("fixSummary") or ""),
            raw_content=str(data.get("rawContent") or ""),
        )


def whole_number(value: float) -> float | int:
    """Return 8.0 as 8, leave 8.5 untouched."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def issues_to_json(issues: list[Issue], indent: int | None = None) -> str:
    """Serialise *issues*; compact unless *indent* is given."""
    records = []
    for issue in issues:
        record = issue.to_dict()
        record["severityScore"] = whole_number(record["severityScore"])
        records.append(record)
    separators = None if indent is not None else (",", ":")
    return json.dumps(records, indent=indent, separators=separators, ensure_ascii=False)


def issues_from_json(text: str) -> list[Issue]:
    """Parse a JSON array produced by :func:`issues_to_json`.

    Raises:
        ValueError: if *text* is not valid JSON or not an array of objects.
    """
    data = json.loads(text)
    if not isinstance(data, list) or not all(isinstance(i, dict) for i in data):
        raise ValueError("Issues must be a JSON array of objects")
    return [Issue.from_dict(i) for i in data]


@dataclass(frozen=True)
class PullRequest:
    owner: str
    repo: str
    number: int
    html_url: str = ""

    @property
    def url(self) -> str:
        """PR web URL, falling back to the github.com URL when unknown."""
        if self.html_url:
            return self.html_url
        return f"https://github.com/{self.owner}/{self.repo}/pull/{self.number}"
