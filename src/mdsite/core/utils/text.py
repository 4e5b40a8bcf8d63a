"""Plain-text helpers for excerpts and reading time"""

import re

from bs4 import BeautifulSoup


WS_RE = re.compile(r'\s+')
ELLIPSIS = '…'


def html_to_text(markup: str) -> str:
    """Text content of markup with entities decoded and whitespace collapsed."""
    text = BeautifulSoup(markup, "html.parser").get_text(" ", strip=True)
    return WS_RE.sub(' ', text).strip()


def prune(text: str, length: int) -> str:
    """Cut text to at most length characters on a word boundary, appending an ellipsis."""
    if len(text) <= length:
        return text
    cut = text[:length]
    if ' ' in cut and not text[length].isspace():
        cut = cut.rsplit(' ', 1)[0]
    return cut.rstrip(' ,.;:-') + ELLIPSIS


def count_words(text: str) -> int:
    return len(text.split())
