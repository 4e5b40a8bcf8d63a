"""Static stage registry: identifier -> implementation, and ordered stage construction"""

from collections import Counter
from typing import Iterable

from mdsite.config import StageSpec
from mdsite.core.errors import StageConfigurationError
from mdsite.core.stages.base import Stage
from mdsite.core.stages.copy_files import CopyLinkedFilesStage
from mdsite.core.stages.emoji import EmojiStage
from mdsite.core.stages.highlight import HighlightStage
from mdsite.core.stages.iframes import ResponsiveIframeStage
from mdsite.core.stages.images import ImagesStage
from mdsite.core.stages.typography import SmartypantsStage


STAGES: dict[str, type[Stage]] = {
    cls.id: cls
    for cls in (
        ImagesStage,
        ResponsiveIframeStage,
        HighlightStage,
        EmojiStage,
        CopyLinkedFilesStage,
        SmartypantsStage,
    )
}

ALIASES: dict[str, str] = {
    "gatsby-remark-images":             "images",
    "gatsby-remark-responsive-iframe":  "responsive-iframe",
    "gatsby-remark-prismjs":            "prismjs",
    "gatsby-remark-emojis":             "emojis",
    "gatsby-remark-copy-linked-files":  "copy-linked-files",
    "gatsby-remark-smartypants":        "smartypants",
}


def lookup(identifier: str) -> type[Stage]:
    """Return the stage class for an identifier or alias."""
    key = ALIASES.get(identifier, identifier)
    try:
        return STAGES[key]
    except KeyError:
        known = ", ".join(sorted(STAGES))
        raise StageConfigurationError(f"Unknown stage '{identifier}' (known: {known})") from None


def build_stages(specs: Iterable[StageSpec]) -> list[Stage]:
    """Instantiate declared stages in order.

    Repeated identifiers are kept (no dedup) and get '#2', '#3', ... appended to
    their name so names stay unique. Explicit names must be unique.
    """
    stages: list[Stage] = []
    seen: Counter = Counter()
    names: set[str] = set()
    for spec in specs:
        cls = lookup(spec.resolve)
        if spec.name:
            name = spec.name
        else:
            seen[cls.id] += 1
            name = cls.id if seen[cls.id] == 1 else f"{cls.id}#{seen[cls.id]}"
        if name in names:
            raise StageConfigurationError(f"Duplicate stage name '{name}'")
        names.add(name)
        stages.append(cls.from_spec(spec.options, name))
    return stages
