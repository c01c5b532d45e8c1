"""
Binary records of the "PowerPoint Document" stream.

Importing this package registers the typed atom classes, so parsed trees
contain TextHeaderAtom, StyleTextPropAtom, ... instead of opaque atoms.
"""

from slidetext.records.record import (
    HEADER_SIZE,
    Atom,
    Container,
    Record,
    RecordTree,
    create_atom,
    parse_records,
)
from slidetext.records.fonts import FontCollection, FontEntityAtom
from slidetext.records.slide_atoms import SlidePersistAtom
from slidetext.records.style_atom import StyleTextPropAtom
from slidetext.records.text_atoms import (
    PARAGRAPH_SEPARATOR,
    TextAtom,
    TextBytesAtom,
    TextCharsAtom,
    TextEncoding,
    TextHeaderAtom,
    decode_text,
    encode_text,
    is_narrow_representable,
)
from slidetext.records.text_spec_info import TextSpecInfoAtom

__all__ = [
    "HEADER_SIZE",
    "Atom",
    "Container",
    "Record",
    "RecordTree",
    "create_atom",
    "parse_records",
    "FontCollection",
    "FontEntityAtom",
    "SlidePersistAtom",
    "StyleTextPropAtom",
    "PARAGRAPH_SEPARATOR",
    "TextAtom",
    "TextBytesAtom",
    "TextCharsAtom",
    "TextEncoding",
    "TextHeaderAtom",
    "decode_text",
    "encode_text",
    "is_narrow_representable",
    "TextSpecInfoAtom",
]
