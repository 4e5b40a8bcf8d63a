"""Unit tests for core/pipeline.py"""

import pytest

from mdsite.config import StageSpec
from mdsite.core.errors import AssetNotFound, StageConfigurationError, StageFailed
from mdsite.core.models import Document
from mdsite.core.pipeline import Pipeline
from mdsite.core.stages.base import Stage
from mdsite.core.stages.typography import SmartypantsStage


class ExplodingStage(Stage):
    id = "exploding"

    def apply(self, tokens, ctx):
        raise RuntimeError("kaboom")


@pytest.fixture(name="doc")
def doc_fixture(doc_dir):
    return Document(
        collection="blog", slug="/post/", path=doc_dir / "index.md",
        body='Hello "world" :tada:\n\n[d](./diagram.pdf)\n', frontmatter={"title": "Post"},
    )


def _pipeline(*entries) -> Pipeline:
    return Pipeline.from_specs([StageSpec.model_validate(e) for e in entries])


def test_run_renders_html_and_assets(doc, doc_dir, blog_root, store):
    (doc_dir / "diagram.pdf").write_bytes(b"%PDF")
    pipeline = _pipeline("emojis", "copy-linked-files", "copy-linked-files", "smartypants")
    pipeline.run(doc, pipeline.context(doc, [blog_root], store))
    assert "“world”" in doc.html
    assert 'alt="🎉"' in doc.html
    assert 'href="/static/' in doc.html
    assert doc.assets == ["./diagram.pdf"]


def test_empty_pipeline_renders_plain_markdown(doc, blog_root, store):
    pipeline = Pipeline([])
    pipeline.run(doc, pipeline.context(doc, [blog_root], store))
    assert doc.html.startswith("<p>Hello")
    assert 'href="./diagram.pdf"' in doc.html


def test_unexpected_exception_becomes_stage_failed(doc, blog_root, store):
    """Any other exception is wrapped with the document identity and stage name."""
    pipeline = Pipeline([SmartypantsStage(), ExplodingStage()])
    with pytest.raises(StageFailed) as exc:
        pipeline.run(doc, pipeline.context(doc, [blog_root], store))
    assert exc.value.identity == "blog:/post/"
    assert exc.value.stage == "exploding"
    assert "RuntimeError: kaboom" in str(exc.value)
    assert doc.html is None


def test_document_error_keeps_type_and_gains_stage(doc, blog_root, store):
    pipeline = _pipeline("copy-linked-files")
    with pytest.raises(AssetNotFound) as exc:
        pipeline.run(doc, pipeline.context(doc, [blog_root], store))
    assert exc.value.identity == "blog:/post/"
    assert exc.value.stage == "copy-linked-files"


def test_lenient_assets_leave_reference(doc, blog_root, store):
    pipeline = _pipeline("copy-linked-files")
    pipeline.run(doc, pipeline.context(doc, [blog_root], store, strict_assets=False))
    assert 'href="./diagram.pdf"' in doc.html


def test_unknown_parser_preset():
    with pytest.raises(StageConfigurationError, match="parser preset"):
        Pipeline([], parser_config="no-such-preset")


def test_duplicate_stage_names_rejected():
    with pytest.raises(StageConfigurationError, match="unique"):
        Pipeline([SmartypantsStage(), SmartypantsStage()])


def test_names():
    assert _pipeline("images", "copy-linked-files", "copy-linked-files").names == [
        "images", "copy-linked-files", "copy-linked-files#2",
    ]
