"""Local image references -> published, wrapped responsive image markup"""

from html import escape
from pathlib import PurePosixPath

from markdown_it.token import Token
from pydantic import Field

from mdsite.core.assets import is_external, reference_path
from mdsite.core.stages.base import Stage, StageContext, StageOptions, html_token, inline_children


DEFAULT_EXTENSIONS = ["png", "jpg", "jpeg", "webp", "tif", "tiff", "avif"]


class ImagesOptions(StageOptions):
    max_width:               int = Field(default=650, ge=1, description="Max presentation width in px")
    link_images_to_original: bool = True
    show_captions:           bool = False
    background_color:        str = "white"
    wrapper_style:           str = ""
    extensions:              list[str] = Field(default=DEFAULT_EXTENSIONS, min_length=1)


class ImagesStage(Stage):
    """Resolve local images, publish them and wrap them in a max-width container.

    External references and extensions not listed in options are left untouched.
    """
    id = "images"
    Options = ImagesOptions

    def _handles(self, src: str, ctx: StageContext) -> bool:
        if is_external(src) or ctx.store.is_published(src):
            return False
        ext = PurePosixPath(reference_path(src)).suffix.lower().lstrip(".")
        return ext in {e.lower().lstrip(".") for e in self.options.extensions}

    def _render(self, url: str, alt: str, title: str) -> str:
        o = self.options
        wrapper = (
            f"position: relative; display: block; margin-left: auto; margin-right: auto; "
            f"max-width: {o.max_width}px; background-color: {o.background_color};"
        )
        if o.wrapper_style:
            wrapper += f" {o.wrapper_style}"
        title_attr = f' title="{escape(title)}"' if title else ""
        img = (
            f'<img class="resp-image" src="{escape(url)}" alt="{escape(alt)}"{title_attr} '
            f'style="width: 100%; height: auto; margin: 0; vertical-align: middle;" loading="lazy">'
        )
        if o.link_images_to_original:
            img = f'<a class="resp-image-link" href="{escape(url)}" target="_blank" rel="noopener">{img}</a>'
        html = f'<span class="resp-image-wrapper" style="{wrapper}">{img}</span>'
        if o.show_captions and (title or alt):
            html = f'<figure class="resp-image-figure">{html}<figcaption>{escape(title or alt)}</figcaption></figure>'
        return html

    def apply(self, tokens: list[Token], ctx: StageContext) -> list[Token]:
        for children in inline_children(tokens):
            for i, tok in enumerate(children):
                if tok.type != "image":
                    continue
                src = tok.attrGet("src") or ""
                if not self._handles(src, ctx):
                    continue
                url = ctx.publish_asset(src)
                if url is None:
                    continue
                alt = "".join(c.content for c in tok.children or []) or tok.content
                children[i] = html_token(self._render(url, alt, tok.attrGet("title") or ""))
        return tokens
