from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParseLimits:
    """
    Bounds applied while turning a byte buffer into a record tree.

    Legitimate decks nest a handful of levels deep; the depth limit exists so
    a crafted stream cannot drive the parser into unbounded recursion.
    """

    max_depth: int = 64
    max_records: int = 1_000_000


DEFAULT_PARSE_LIMITS = ParseLimits()


@dataclass(frozen=True)
class TextDefaults:
    """
    Character attributes reported for runs whose style table is silent.

    Master-slide inheritance is not resolved, so these stand in for it.
    """

    font_family: str = "Arial"
    font_size: int = 18
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    font_color: tuple[int, int, int] = (0, 0, 0)


DEFAULT_TEXT_DEFAULTS = TextDefaults()
