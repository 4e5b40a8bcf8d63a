"""Data models for the load, transform, derive and emit pipeline"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class SourceDocument:
    """Document as discovered on disk; not yet read or parsed."""
    path:       Path
    root:       Path
    collection: str
    raw:        Optional[str] = None    # read by the loader when not given


class DerivedMetadata(BaseModel):
    """Fields computed from a fully transformed document."""
    model_config = ConfigDict(frozen=True)

    excerpt:      str
    tags:         list[str] = []
    timestamp:    datetime
    word_count:   int = 0
    time_to_read: int = 1


@dataclass
class Document:
    """A document while it moves through the pipeline; only the pipeline and deriver mutate it."""
    collection:  str
    slug:        str
    path:        Path
    body:        str                        # markdown without frontmatter
    frontmatter: dict[str, Any]
    assets:      list[str] = field(default_factory=list)
    html:        Optional[str] = None       # set once every stage has run
    derived:     Optional[DerivedMetadata] = None

    @property
    def identity(self) -> str:
        return f"{self.collection}:{self.slug}"

    def freeze(self) -> "DocumentRecord":
        """Return the immutable record handed to the renderer and emitter."""
        if self.html is None or self.derived is None:
            raise ValueError(f"{self.identity} has not been transformed and derived")
        return DocumentRecord(
            collection=self.collection,
            slug=self.slug,
            path=str(self.path),
            frontmatter=self.frontmatter,
            derived=self.derived,
            html=self.html,
            assets=list(self.assets),
        )


class DocumentRecord(BaseModel):
    """Public per-document output contract consumed by the external renderer."""
    model_config = ConfigDict(frozen=True)

    collection:  str
    slug:        str
    path:        str
    frontmatter: dict[str, Any] = {}
    derived:     DerivedMetadata
    html:        str
    assets:      list[str] = []

    @property
    def identity(self) -> str:
        return f"{self.collection}:{self.slug}"


class FeedEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id:      str
    title:   str
    link:    str
    date:    datetime
    summary: str
    content: str
    categories: list[str] = []


class Feed(BaseModel):
    model_config = ConfigDict(frozen=True)

    title:       str
    link:        str
    description: str
    feed_url:    str
    updated:     Optional[datetime] = None
    entries:     list[FeedEntry] = []
