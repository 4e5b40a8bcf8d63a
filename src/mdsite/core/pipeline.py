"""Transform pipeline: parse a document body, run the ordered stages, render HTML"""

import logging
from pathlib import Path
from typing import Iterable

from markdown_it import MarkdownIt

from mdsite.config import StageSpec
from mdsite.core.assets import AssetStore
from mdsite.core.errors import DocumentError, StageConfigurationError, StageFailed
from mdsite.core.models import Document
from mdsite.core.stages.base import Stage, StageContext
from mdsite.core.stages.registry import build_stages


logger = logging.getLogger(__name__)


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False, "html": True})


class Pipeline:
    """Ordered stages applied to one document at a time.

    A run holds no state shared with other documents apart from the asset
    store passed in through the context, so documents can run in parallel.
    """

    def __init__(self, stages: list[Stage], parser_config: str = "gfm-like"):
        names = [s.name for s in stages]
        if len(names) != len(set(names)):
            raise StageConfigurationError(f"Stage names must be unique: {names}")
        try:
            _make_parser(parser_config)
        except (KeyError, ValueError) as e:
            raise StageConfigurationError(f"Unknown parser preset '{parser_config}'") from e
        self.stages = stages
        self.parser_config = parser_config

    @classmethod
    def from_specs(cls, specs: Iterable[StageSpec], parser_config: str = "gfm-like") -> "Pipeline":
        return cls(build_stages(specs), parser_config)

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.stages]

    def context(self, doc: Document, roots: Iterable[Path], store: AssetStore, strict_assets: bool = True) -> StageContext:
        return StageContext(identity=doc.identity, path=doc.path, roots=list(roots),
                            store=store, strict_assets=strict_assets)

    def run(self, doc: Document, ctx: StageContext) -> Document:
        """Run every stage in order on doc and set its rendered HTML and asset list.

        Raises a DocumentError naming the document and the failing stage.
        """
        md = _make_parser(self.parser_config)
        tokens = md.parse(doc.body, ctx.env)
        for stage in self.stages:
            try:
                tokens = stage.apply(tokens, ctx)
            except DocumentError as e:
                e.identity = e.identity or doc.identity
                e.stage = e.stage or stage.name
                raise
            except Exception as e:
                raise StageFailed(doc.identity, stage.name, e) from e
            logger.debug("%s: stage '%s' done", doc.identity, stage.name)
        doc.html = md.renderer.render(tokens, md.options, ctx.env)
        doc.assets = list(ctx.assets)
        return doc
