"""Shared fixtures for core unit tests: parser, asset store and stage context"""

import pytest
from markdown_it import MarkdownIt

from mdsite.core.assets import AssetStore
from mdsite.core.stages.base import StageContext


@pytest.fixture(name="parser")
def parser_fixture():
    return MarkdownIt("gfm-like", options_update={"linkify": False, "html": True})


@pytest.fixture(name="blog_root")
def blog_root_fixture(tmp_path):
    root = tmp_path / "content" / "blog"
    (root / "post").mkdir(parents=True)
    return root


@pytest.fixture(name="doc_dir")
def doc_dir_fixture(blog_root):
    """Directory of the document under test; local references resolve from here."""
    return blog_root / "post"


@pytest.fixture(name="store")
def store_fixture(tmp_path):
    with AssetStore(tmp_path / "public") as store:
        yield store


@pytest.fixture(name="ctx")
def ctx_fixture(doc_dir, blog_root, store):
    return StageContext(identity="blog:/post/", path=doc_dir / "index.md", roots=[blog_root], store=store)


@pytest.fixture(name="run")
def run_fixture(parser, ctx):
    """Parse text, apply the given stages in order and render HTML."""
    def run(stages, text: str) -> str:
        tokens = parser.parse(text, ctx.env)
        for stage in stages:
            tokens = stage.apply(tokens, ctx)
        return parser.renderer.render(tokens, parser.options, ctx.env)
    return run
