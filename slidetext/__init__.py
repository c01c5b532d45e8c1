"""
slidetext: the text model of legacy binary PowerPoint (.ppt) files.

Reads the record tree of the "PowerPoint Document" stream, exposes the text
of each slide as paragraphs and styled runs, and writes every edit straight
back into the records, keeping the text atoms and style tables consistent.
"""

import io
from typing import Any, Generator

from slidetext.config import (
    DEFAULT_PARSE_LIMITS,
    DEFAULT_TEXT_DEFAULTS,
    ParseLimits,
    TextDefaults,
)
from slidetext.exceptions import (
    CorruptRecordError,
    LegacyMicrosoftParsingError,
    OutOfRangeError,
    SlideTextError,
)
from slidetext.model.paragraph import (
    TextBlock,
    TextParagraph,
    TextRun,
    append_text,
    find_text_blocks,
    get_raw_text,
    get_text,
    set_text,
)
from slidetext.model.slideshow import PptMetadata, Slide, SlideShow
from slidetext.model.text_props import StyleEntry, StylePropertyCollection, StyleScope
from slidetext.records import RecordTree, parse_records

__version__ = "0.1.0"


def read_ppt(
    file_like: io.BytesIO,
    path: str | None = None,
    *,
    limits: ParseLimits = DEFAULT_PARSE_LIMITS,
    text_defaults: TextDefaults = DEFAULT_TEXT_DEFAULTS,
) -> Generator[SlideShow, Any, None]:
    """Open a legacy PowerPoint file."""
    from slidetext.model.slideshow import read_ppt as _read_ppt

    return _read_ppt(file_like, path, limits=limits, text_defaults=text_defaults)


__all__ = [
    "DEFAULT_PARSE_LIMITS",
    "DEFAULT_TEXT_DEFAULTS",
    "ParseLimits",
    "TextDefaults",
    "CorruptRecordError",
    "LegacyMicrosoftParsingError",
    "OutOfRangeError",
    "SlideTextError",
    "TextBlock",
    "TextParagraph",
    "TextRun",
    "append_text",
    "find_text_blocks",
    "get_raw_text",
    "get_text",
    "set_text",
    "PptMetadata",
    "Slide",
    "SlideShow",
    "StyleEntry",
    "StylePropertyCollection",
    "StyleScope",
    "RecordTree",
    "parse_records",
    "read_ppt",
    "__version__",
]
