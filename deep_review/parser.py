"""Critical issue extraction from a DeepReview comment body.

Usage:
    issues = parse_critical_issues(comment_body)    # -> list[Issue]

Each critical issue starts with a red circle. Its block runs until the next
section glyph (yellow circle, chart, bulb) or the next red circle. Fields
are then pulled out of the block by independent patterns; a block without
an ``ABC-123 - TYPE`` identifier is dropped.
"""

import re

from deep_review.models import Issue

CRITICAL_MARKER = "\U0001F534"   # red circle
SECTION_MARKERS = (
    "\U0001F7E1",                # yellow circle
    "\U0001F4CA",                # bar chart
    "\U0001F4A1",                # light bulb
    CRITICAL_MARKER,
)

# Digits are [0-9] only; \d would also accept digits of other scripts.
_ID_RE         = re.compile(r"([A-Z]+-[0-9]+)\s+-\s+([A-Z]+)")
_FILE_RE       = re.compile(r"File:\s+(.+?)\s+\(")
_SEVERITY_RE   = re.compile(r"Severity Score:\s+([0-9.]+)")
_CONFIDENCE_RE = re.compile(r"Confidence:\s+([0-9]+)%")
_IMPACT_RE     = re.compile(r"Impact:\s+([^\n]+)")
_FIX_RE        = re.compile(r"Fix Summary:\s+([^\n]+)")

_LEADING_DECIMAL_RE = re.compile(r"[0-9]*\.?[0-9]*")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_critical_issues(body: str) -> list[Issue]:
    """Return every well-formed critical issue found in *body*, in order."""
    issues: list[Issue] = []
    for block in split_issue_blocks(body):
        issue = parse_issue_block(block)
        if issue is not None:
            issues.append(issue)
    return issues


def split_issue_blocks(body: str) -> list[str]:
    """Split *body* into stripped per-issue text blocks.

    Text before the first red circle is discarded. A red circle inside a
    segment cannot occur after splitting, but it stays in the terminator set.
    """
    blocks = []
    for part in body.split(CRITICAL_MARKER)[1:]:
        end = len(part)
        for marker in SECTION_MARKERS:
            index = part.find(marker)
            if index != -1 and index < end:
                end = index
        blocks.append(part[:end].strip())
    return blocks


def parse_issue_block(block: str) -> Issue | None:
    """Build an Issue from one block, or None when it carries no identifier."""
    ident = extract_id_and_type(block)
    if ident is None:
        return None
    issue_id, issue_type = ident
    return Issue(
        id=issue_id,
        type=issue_type,
        file=extract_file(block),
        severity_score=extract_severity_score(block),
        confidence=extract_confidence(block),
        impact=extract_impact(block),
        fix_summary=extract_fix_summary(block),
        raw_content=block,
    )


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------

def extract_id_and_type(block: str) -> tuple[str, str] | None:
    match = _ID_RE.search(block)
    if not match:
        return None
    return match.group(1), match.group(2)


def extract_file(block: str) -> str:
    match = _FILE_RE.search(block)
    return match.group(1) if match else ""


def extract_severity_score(block: str) -> float:
    """Leading decimal after ``Severity Score:``; 0 when absent or unparseable.

    ``8.5.1`` reads as 8.5 and a lone ``.`` as 0.
    """
    match = _SEVERITY_RE.search(block)
    if not match:
        return 0
    leading = _LEADING_DECIMAL_RE.match(match.group(1)).group(0)
    try:
        return float(leading)
    except ValueError:
        return 0


def extract_confidence(block: str) -> int:
    match = _CONFIDENCE_RE.search(block)
    return int(match.group(1)) if match else 0


def extract_impact(block: str) -> str:
    match = _IMPACT_RE.search(block)
    return match.group(1).strip() if match else ""


def extract_fix_summary(block: str) -> str:
    match = _FIX_RE.search(block)
    return match.group(1).strip() if match else ""
