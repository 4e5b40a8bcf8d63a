"""Slug generation for document identifiers"""

import re
from pathlib import Path


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def path_slug(relative: Path) -> str:
    """Return the URL slug for a content path relative to its source root.

    'hello-world/index.md' -> '/hello-world/', 'notes/first.md' -> '/notes/first/'.
    """
    parts = list(relative.with_suffix('').parts)
    if parts and parts[-1] == 'index':
        parts.pop()
    segments = [slugify(p) for p in parts]
    return '/' + ''.join(f'{s}/' for s in segments if s)


def normalize_slug(slug: str) -> str:
    """Return an explicit frontmatter slug with leading and trailing slashes."""
    return '/' + slug.strip().strip('/') + '/' if slug.strip('/ ') else '/'
