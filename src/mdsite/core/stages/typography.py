"""Smart quotes, dashes and ellipses via markdown-it's typographer rules"""

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore, replace, smartquotes
from markdown_it.token import Token
from pydantic import Field

from mdsite.core.stages.base import Stage, StageContext, StageOptions


class TypographyOptions(StageOptions):
    quotes: str = Field(default="“”‘’", min_length=4, max_length=4, description="Double open/close, single open/close")


class SmartypantsStage(Stage):
    """Apply typographic replacements to prose text tokens.

    The rules only visit 'text' children of inline tokens, so inline code,
    code blocks and raw HTML keep their exact bytes whatever the stage order.
    """
    id = "smartypants"
    Options = TypographyOptions

    def __init__(self, options: TypographyOptions = None, name: str = None):
        super().__init__(options, name)
        self._md = MarkdownIt("commonmark", options_update={"typographer": True, "quotes": self.options.quotes})

    def apply(self, tokens: list[Token], ctx: StageContext) -> list[Token]:
        state = StateCore("", self._md, ctx.env)
        state.tokens = tokens
        replace(state)
        smartquotes(state)
        return state.tokens
