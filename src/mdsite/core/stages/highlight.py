"""Syntax highlighting of fenced, indented and marked inline code with Pygments"""

import re
from html import escape
from typing import Optional

from markdown_it.token import Token
from pydantic import Field, field_validator
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from mdsite.core.stages.base import Stage, StageContext, StageOptions, html_token, inline_children


INFO_RE = re.compile(r'^(?P<lang>[^\s{]*)\s*(?:\{(?P<opts>[^}]*)\})?')
NUMBER_LINES_RE = re.compile(r'numberLines\s*:\s*(true|\d+)', re.IGNORECASE)
RANGE_RE = re.compile(r'^(\d+)(?:-(\d+))?$')
LANG_RE = re.compile(r'^[\w+#.-]*$')


def parse_info(info: str) -> tuple[str, list[int], Optional[int]]:
    """Parse a fence info string like 'js{1,3-4}' or 'py{numberLines: 5}'.

    Returns (language, highlighted line numbers, first line number or None).
    """
    m = INFO_RE.match(info.strip())
    lang = m.group("lang") if m else ""
    opts = (m.group("opts") or "") if m else ""
    start = None
    if n := NUMBER_LINES_RE.search(opts):
        start = 1 if n.group(1).lower() == "true" else int(n.group(1))
        opts = NUMBER_LINES_RE.sub("", opts)
    lines: list[int] = []
    for part in opts.split(","):
        if r := RANGE_RE.match(part.strip()):
            first, last = int(r.group(1)), int(r.group(2) or r.group(1))
            lines.extend(range(first, last + 1))
    return lang, lines, start


class HighlightOptions(StageOptions):
    class_prefix:        str = "language-"
    inline_code_marker:  Optional[str] = Field(default=None, description="Separates language from inline code")
    show_line_numbers:   bool = False
    no_inline_highlight: bool = False
    aliases:             dict[str, str] = {}

    @field_validator("inline_code_marker")
    @classmethod
    def _single_char(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and (len(v) != 1 or v.isspace() or v == "`"):
            raise ValueError("inlineCodeMarker must be a single non-space character other than '`'")
        return v


class HighlightStage(Stage):
    """Highlight code with Pygments, wrapping it in prism-compatible markup.

    Only the markup around the code changes; its text content is preserved.
    """
    id = "prismjs"
    Options = HighlightOptions

    def _lexer(self, lang: str) -> Lexer:
        lang = self.options.aliases.get(lang, lang) or "text"
        try:
            return get_lexer_by_name(lang, stripnl=False)
        except ClassNotFound:
            return TextLexer(stripnl=False)

    def _highlight(self, code: str, lang: str, hl_lines: list[int] = ()) -> str:
        return highlight(code, self._lexer(lang), HtmlFormatter(nowrap=True, hl_lines=list(hl_lines)))

    def _block(self, code: str, info: str) -> str:
        lang, hl_lines, start = parse_info(info)
        lang = lang or "text"
        cls = escape(f"{self.options.class_prefix}{lang}")
        numbered = start is not None or self.options.show_line_numbers
        body = self._highlight(code, lang, hl_lines)
        rows = ""
        pre_cls = cls
        if numbered:
            count = max(code.count("\n"), 1) if code.endswith("\n") else code.count("\n") + 1
            rows = (
                f'<span aria-hidden="true" class="line-numbers-rows" '
                f'style="counter-reset: linenumber {(start or 1) - 1}">' + "<span></span>" * count + "</span>"
            )
            pre_cls += " line-numbers"
        return (
            f'<div class="code-highlight" data-language="{escape(lang)}">'
            f'<pre class="{pre_cls}"><code class="{cls}">{body}</code>{rows}</pre></div>\n'
        )

    def _inline(self, content: str) -> str:
        lang, code = "text", content
        marker = self.options.inline_code_marker
        if marker and marker in content:
            prefix, _, rest = content.partition(marker)
            if LANG_RE.match(prefix):
                lang, code = prefix or "text", rest
        cls = escape(f"{self.options.class_prefix}{lang}")
        body = self._highlight(code, lang)
        if body.endswith("\n") and not code.endswith("\n"):
            body = body[:-1]
        return f'<code class="{cls}">{body}</code>'

    def apply(self, tokens: list[Token], ctx: StageContext) -> list[Token]:
        for i, tok in enumerate(tokens):
            if tok.type == "fence":
                tokens[i] = html_token(self._block(tok.content, tok.info), block=True)
            elif tok.type == "code_block":
                tokens[i] = html_token(self._block(tok.content, ""), block=True)
        if self.options.no_inline_highlight:
            return tokens
        for children in inline_children(tokens):
            for i, tok in enumerate(children):
                if tok.type == "code_inline":
                    children[i] = html_token(self._inline(tok.content))
        return tokens
