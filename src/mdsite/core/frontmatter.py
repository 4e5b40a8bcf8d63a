"""Frontmatter extraction, validation and date normalization"""

import re
from datetime import date, datetime, time, timezone
from typing import Any, Iterable

import yaml

from mdsite.core.errors import MalformedFrontmatter, MissingDate, MissingRequiredField


FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)\r?\n?^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)
REQUIRED_FIELDS = ("title", "date")


def _strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with YAML header removed."""
    m = FRONTMATTER_RE.match(text)
    if not m:
        return {}, text
    try:
        fm = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise MalformedFrontmatter(f"invalid YAML frontmatter: {e}") from e
    if not isinstance(fm, dict):
        raise MalformedFrontmatter(f"invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
    return {str(k): v for k, v in fm.items()}, text[m.end():]


def normalize_date(value: Any) -> datetime:
    """Return value as a timezone-aware datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time())
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise MalformedFrontmatter(f"invalid date {value!r}: expected ISO 8601") from e
    else:
        raise MalformedFrontmatter(f"invalid date {value!r}: expected ISO 8601")
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def normalize_tags(value: Any) -> list[str]:
    """Return tags as a list of strings; a comma separated string is split."""
    if value is None:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, list) and all(isinstance(t, (str, int, float)) for t in value):
        return [str(t) for t in value]
    raise MalformedFrontmatter(f"invalid tags {value!r}: expected a list of strings")


def parse_frontmatter(raw: str, required: Iterable[str] = REQUIRED_FIELDS) -> tuple[dict[str, Any], str]:
    """Split raw text into (frontmatter, body), validating required fields and normalizing types.

    Raises MalformedFrontmatter, MissingDate or MissingRequiredField.
    """
    fm, body = _strip_frontmatter(raw)
    for name in required:
        if fm.get(name) in (None, ""):
            raise MissingDate() if name == "date" else MissingRequiredField(name)

    if fm.get("date") is not None:
        fm["date"] = normalize_date(fm["date"])
    if "tags" in fm:
        fm["tags"] = normalize_tags(fm["tags"])
    for name in ("title", "description", "slug"):
        if fm.get(name) is not None and not isinstance(fm[name], str):
            fm[name] = str(fm[name])
    return fm, body
