"""Wrap embedded iframes in an aspect-ratio container"""

import re

from bs4 import BeautifulSoup
from markdown_it.token import Token

from mdsite.core.stages.base import Stage, StageContext, StageOptions, inline_children


NUMBER_RE = re.compile(r'\s*(\d+(?:\.\d+)?)')
MARKER = "data-resp-iframe"
WRAPPER_CLASS = "resp-iframe-wrapper"
DEFAULT_RATIO = 56.25  # 16:9

IFRAME_STYLE = "position: absolute; top: 0; left: 0; width: 100%; height: 100%;"


def _dimension(value) -> float | None:
    m = NUMBER_RE.match(value or "")
    return float(m.group(1)) if m else None


class IframeOptions(StageOptions):
    wrapper_style: str = ""


class ResponsiveIframeStage(Stage):
    """Wrap each complete <iframe> element of raw HTML in a responsive container.

    Wrapped iframes carry a marker attribute and are skipped on later runs.
    """
    id = "responsive-iframe"
    Options = IframeOptions

    def _wrapper_style(self, iframe) -> str:
        width, height = _dimension(iframe.get("width")), _dimension(iframe.get("height"))
        ratio = height / width * 100 if width and height else DEFAULT_RATIO
        style = f"padding-bottom: {ratio:g}%; position: relative; height: 0; overflow: hidden;"
        if self.options.wrapper_style:
            style += f" {self.options.wrapper_style}"
        return style

    def _rewrite(self, content: str) -> str:
        lowered = content.lower()
        if "<iframe" not in lowered or "</iframe" not in lowered:
            return content

        soup = BeautifulSoup(content, "html.parser")
        wrapped = 0
        for iframe in soup.find_all("iframe"):
            if iframe.has_attr(MARKER) or iframe.find_parent(class_=WRAPPER_CLASS):
                continue
            wrapper = soup.new_tag("div", attrs={"class": WRAPPER_CLASS, "style": self._wrapper_style(iframe)})
            iframe[MARKER] = ""
            iframe["style"] = IFRAME_STYLE
            iframe.wrap(wrapper)
            wrapped += 1
        return str(soup) if wrapped else content

    def apply(self, tokens: list[Token], ctx: StageContext) -> list[Token]:
        for tok in tokens:
            if tok.type == "html_block":
                tok.content = self._rewrite(tok.content)
        for children in inline_children(tokens):
            for tok in children:
                if tok.type == "html_inline":
                    tok.content = self._rewrite(tok.content)
        return tokens
