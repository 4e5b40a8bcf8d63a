"""Document discovery under configured content roots"""

import logging
from pathlib import Path
from typing import Iterable, Iterator

from mdsite.core.errors import DocumentError, SourceUnavailable, UnreadableDocument
from mdsite.core.models import Document, SourceDocument
from mdsite.core.frontmatter import parse_frontmatter, REQUIRED_FIELDS
from mdsite.core.utils.slug import normalize_slug, path_slug


logger = logging.getLogger(__name__)

MD_EXTENSIONS = {'.md', '.mdx'}


def check_roots(roots: Iterable[tuple[Path, str]]) -> None:
    """Raise SourceUnavailable for the first configured root that is not a directory."""
    for root, collection in roots:
        if not root.is_dir():
            raise SourceUnavailable(root, collection)


def discover_files(root: Path) -> list[Path]:
    """Return sorted .md/.mdx files under root."""
    return sorted(p for p in root.rglob('*') if p.is_file() and p.suffix.lower() in MD_EXTENSIONS)


def discover(roots: Iterable[tuple[Path, str]]) -> Iterator[SourceDocument]:
    """Yield every markdown document under the (root, collection) pairs.

    All roots are checked before the first document is yielded. Files are
    read later by load_document, so a bad file only fails its own document.
    Each call walks the filesystem again, so the sequence can be restarted.
    """
    roots = list(roots)
    check_roots(roots)
    for root, collection in roots:
        files = discover_files(root)
        logger.debug("Found %d document(s) in %s (%s)", len(files), root, collection)
        for path in files:
            yield SourceDocument(path=path, root=root, collection=collection)


def document_slug(source: SourceDocument, frontmatter: dict) -> str:
    """Return the frontmatter slug if set, else the slug derived from the path under its root."""
    if frontmatter.get('slug'):
        return normalize_slug(frontmatter['slug'])
    return path_slug(source.path.relative_to(source.root))


def read_source(source: SourceDocument) -> str:
    """Return the text of a source, reading it as UTF-8 if it was not given.

    Raises UnreadableDocument for undecodable or unreadable files.
    """
    if source.raw is not None:
        return source.raw
    try:
        return source.path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise UnreadableDocument(f"not valid UTF-8: {e.reason} at byte {e.start}") from e
    except OSError as e:
        raise UnreadableDocument(f"cannot read file: {e.strerror or e}") from e


def load_document(source: SourceDocument, required: Iterable[str] = REQUIRED_FIELDS) -> Document:
    """Parse a discovered source into a Document. Errors carry the source path as identity."""
    try:
        frontmatter, body = parse_frontmatter(read_source(source), required)
    except DocumentError as e:
        e.identity = e.identity or str(source.path)
        raise
    return Document(
        collection=source.collection,
        slug=document_slug(source, frontmatter),
        path=source.path,
        body=body,
        frontmatter=frontmatter,
    )
