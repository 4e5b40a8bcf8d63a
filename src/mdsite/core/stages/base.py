"""Stage contract: options model, per-document context and token helpers"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Iterator, Optional

from markdown_it.token import Token
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from mdsite.core.assets import AssetStore, resolve_reference
from mdsite.core.errors import AssetNotFound, StageConfigurationError


logger = logging.getLogger(__name__)


class StageOptions(BaseModel):
    """Base for stage options; camelCase keys from the site config are accepted."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)


@dataclass
class StageContext:
    """What a stage may see of the document it transforms.

    Exposes identity and asset handling only; other documents are never reachable.
    """
    identity:      str
    path:          Path
    roots:         list[Path]
    store:         AssetStore
    strict_assets: bool = True
    assets:        list[str] = field(default_factory=list)
    env:           dict[str, Any] = field(default_factory=dict)

    def record_asset(self, reference: str) -> None:
        if reference not in self.assets:
            self.assets.append(reference)

    def resolve_asset(self, reference: str) -> Optional[Path]:
        """Return the file for a local reference.

        Raises AssetNotFound under the strict policy; otherwise logs and returns None.
        """
        path = resolve_reference(reference, self.path, self.roots)
        if path is None:
            if self.strict_assets:
                raise AssetNotFound(reference, self.identity)
            logger.warning("%s: asset not found, left as-is: %s", self.identity, reference)
        return path

    def publish_asset(self, reference: str, destination: str = None) -> Optional[str]:
        """Resolve, publish and record a local reference; return its public URL."""
        path = self.resolve_asset(reference)
        if path is None:
            return None
        url = self.store.publish(path, destination)
        self.record_asset(reference)
        return url


class Stage(ABC):
    """A named, configured transformation of a document's markdown-it token stream."""
    id: ClassVar[str]
    Options: ClassVar[type[StageOptions]] = StageOptions

    def __init__(self, options: StageOptions = None, name: str = None):
        self.options = options if options is not None else self.Options()
        self.name = name or self.id

    @classmethod
    def from_spec(cls, options: dict[str, Any] = None, name: str = None) -> "Stage":
        """Build a stage from raw config options, raising StageConfigurationError on bad values."""
        try:
            opts = cls.Options.model_validate(options or {})
        except ValidationError as e:
            raise StageConfigurationError(f"Invalid options for stage '{name or cls.id}': {e}") from e
        return cls(opts, name)

    @abstractmethod
    def apply(self, tokens: list[Token], ctx: StageContext) -> list[Token]:
        """Return the transformed token stream; may mutate and return tokens."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def html_token(content: str, block: bool = False) -> Token:
    """Return a raw HTML token rendered verbatim by markdown-it."""
    if block:
        return Token("html_block", "", 0, content=content, block=True)
    return Token("html_inline", "", 0, content=content)


def inline_children(tokens: list[Token]) -> Iterator[list[Token]]:
    """Yield the children list of every inline token (mutable in place)."""
    for tok in tokens:
        if tok.type == "inline" and tok.children is not None:
            yield tok.children

