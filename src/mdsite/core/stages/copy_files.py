"""Copy linked local files into the build output and rewrite their references"""

from html import escape
from pathlib import PurePosixPath

from bs4 import BeautifulSoup, Tag
from markdown_it.token import Token

from mdsite.core.assets import is_external, reference_path
from mdsite.core.stages.base import Stage, StageContext, StageOptions, inline_children


MEDIA_TAGS = ["a", "img", "video", "audio", "source"]
URL_ATTRS = ("href", "src", "poster")
DOCUMENT_EXTENSIONS = {"md", "mdx", "html", "htm"}


def opening_tag(tag: Tag) -> str:
    """Serialize only the start tag of an element, as html_inline tokens hold one tag each."""
    attrs = "".join(
        f' {k}="{escape(" ".join(v) if isinstance(v, list) else v)}"' for k, v in tag.attrs.items())
    return f"<{tag.name}{attrs}>"


class CopyFilesOptions(StageOptions):
    destination_dir:        str = "static"
    ignore_file_extensions: list[str] = []


class CopyLinkedFilesStage(Stage):
    """Publish files referenced by links, leftover images and raw HTML media tags.

    References already pointing into the asset store are skipped, which makes a
    second registration of this stage a no-op.
    """
    id = "copy-linked-files"
    Options = CopyFilesOptions

    def _handles(self, ref: str, ctx: StageContext) -> bool:
        if is_external(ref) or ctx.store.is_published(ref):
            return False
        ext = PurePosixPath(reference_path(ref)).suffix.lower().lstrip(".")
        ignored = {e.lower().lstrip(".") for e in self.options.ignore_file_extensions}
        return bool(ext) and ext not in DOCUMENT_EXTENSIONS and ext not in ignored

    def _rewrite(self, ref: str, ctx: StageContext) -> str:
        if not self._handles(ref, ctx):
            return ref
        return ctx.publish_asset(ref, self.options.destination_dir) or ref

    def _rewrite_attrs(self, tag: Tag, ctx: StageContext) -> bool:
        changed = False
        for attr in URL_ATTRS:
            if tag.has_attr(attr):
                url = self._rewrite(tag[attr], ctx)
                if url != tag[attr]:
                    tag[attr] = url
                    changed = True
        return changed

    def _rewrite_html(self, content: str, ctx: StageContext) -> str:
        soup = BeautifulSoup(content, "html.parser")
        changed = [self._rewrite_attrs(tag, ctx) for tag in soup.find_all(MEDIA_TAGS)]
        return str(soup) if any(changed) else content

    def _rewrite_inline(self, content: str, ctx: StageContext) -> str:
        tag = BeautifulSoup(content, "html.parser").find(MEDIA_TAGS)
        if tag is None or not self._rewrite_attrs(tag, ctx):
            return content
        return opening_tag(tag)

    def apply(self, tokens: list[Token], ctx: StageContext) -> list[Token]:
        for tok in tokens:
            if tok.type == "html_block":
                tok.content = self._rewrite_html(tok.content, ctx)
        for children in inline_children(tokens):
            for tok in children:
                if tok.type == "link_open":
                    tok.attrSet("href", self._rewrite(tok.attrGet("href") or "", ctx))
                elif tok.type == "image":
                    tok.attrSet("src", self._rewrite(tok.attrGet("src") or "", ctx))
                elif tok.type == "html_inline":
                    tok.content = self._rewrite_inline(tok.content, ctx)
        return tokens
