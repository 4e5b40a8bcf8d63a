"""Replace :shortcode: emoji in prose with styled inline images"""

import re
from html import escape
from typing import Literal

import emoji
from markdown_it.token import Token
from pydantic import Field

from mdsite.core.stages.base import Stage, StageContext, StageOptions, html_token, inline_children


SHORTCODE_RE = re.compile(r':([a-z0-9_+\-]+):', re.IGNORECASE)


def codepoints(char: str) -> str:
    """Return the twemoji-style file stem for an emoji ('1f44d', '1f1e7-1f1f7')."""
    return "-".join(f"{ord(c):x}" for c in char if c != "\ufe0f")


class EmojiOptions(StageOptions):
    active:     bool = True
    class_name: str = Field(default="emoji-icon", alias="class")
    size:       Literal[16, 24, 32, 64] = 64
    styles:     dict[str, str | int | float] = {}
    base_url:   str = "https://cdn.jsdelivr.net/gh/twitter/twemoji@14.0.2/assets/72x72"


class EmojiStage(Stage):
    """Swap recognized shortcodes in text tokens for an <img>; unknown shortcodes stay verbatim."""
    id = "emojis"
    Options = EmojiOptions

    def _render(self, shortcode: str, char: str) -> str:
        o = self.options
        style = "; ".join(f"{k}: {v}" for k, v in o.styles.items())
        style_attr = f' style="{escape(style)};"' if style else ""
        src = f"{o.base_url.rstrip('/')}/{codepoints(char)}.png"
        return (
            f'<img class="{escape(o.class_name)}" alt="{char}" title="{escape(shortcode)}" '
            f'src="{escape(src)}" width="{o.size}" height="{o.size}"{style_attr}>'
        )

    def _split(self, text: str) -> list[Token] | None:
        """Return replacement tokens for text, or None when nothing was recognized."""
        out: list[Token] = []
        last = 0
        for m in SHORTCODE_RE.finditer(text):
            char = emoji.emojize(m.group(0), language="alias")
            if char == m.group(0):
                continue
            if m.start() > last:
                out.append(Token("text", "", 0, content=text[last:m.start()]))
            out.append(html_token(self._render(m.group(0), char)))
            last = m.end()
        if not out:
            return None
        if last < len(text):
            out.append(Token("text", "", 0, content=text[last:]))
        return out

    def apply(self, tokens: list[Token], ctx: StageContext) -> list[Token]:
        if not self.options.active:
            return tokens
        for children in inline_children(tokens):
            i = 0
            while i < len(children):
                tok = children[i]
                replacement = self._split(tok.content) if tok.type == "text" and ":" in tok.content else None
                if replacement:
                    children[i:i + 1] = replacement
                    i += len(replacement)
                else:
                    i += 1
        return tokens
