"""Derived metadata: excerpt, normalized tags, canonical timestamp, reading time"""

import math
from typing import Any, Iterable

from mdsite.core.errors import MissingDate
from mdsite.core.frontmatter import normalize_date
from mdsite.core.models import DerivedMetadata, Document
from mdsite.core.utils.text import count_words, html_to_text, prune


EXCERPT_LENGTH = 140
WORDS_PER_MINUTE = 265


def normalize_tags(tags: Iterable[Any]) -> list[str]:
    """Lower-case, strip and de-duplicate tags, keeping first-seen order."""
    return list(dict.fromkeys(t for t in (str(tag).strip().lower() for tag in tags) if t))


def derive(doc: Document, excerpt_length: int = EXCERPT_LENGTH) -> DerivedMetadata:
    """Compute derived fields from a document whose HTML has been rendered.

    Raises MissingDate when the frontmatter has no date.
    """
    if doc.html is None:
        raise ValueError(f"{doc.identity} must be rendered before deriving metadata")
    date = doc.frontmatter.get("date")
    if date is None:
        raise MissingDate(doc.identity)

    text = html_to_text(doc.html)
    words = count_words(text)
    description = str(doc.frontmatter.get("description") or "").strip()
    return DerivedMetadata(
        excerpt=description or prune(text, excerpt_length),
        tags=normalize_tags(doc.frontmatter.get("tags") or []),
        timestamp=normalize_date(date),
        word_count=words,
        time_to_read=max(1, math.ceil(words / WORDS_PER_MINUTE)),
    )
