"""
Decks assembled record by record.

No .ppt samples ship with the package, so the streams used by the tests
are built here from the same record classes the parser produces.
"""

import struct

from slidetext.records.fonts import FontEntityAtom
from slidetext.records.record import Atom, Container, Record, RecordTree
from slidetext.records.record_types import (
    RT_CLIENT_TEXTBOX,
    RT_DOCUMENT_CONTAINER,
    RT_ENVIRONMENT,
    RT_FONT_COLLECTION,
    RT_PP_DRAWING,
    RT_SLIDE_CONTAINER,
    RT_SLIDE_LIST_WITH_TEXT,
    SLIDE_LIST_SLIDES,
    TEXT_TYPE_CENTER_BODY,
    TEXT_TYPE_OTHER,
    TEXT_TYPE_TITLE,
    TEXT_TYPE_BODY,
)
from slidetext.records.slide_atoms import SlidePersistAtom
from slidetext.records.style_atom import StyleTextPropAtom
from slidetext.records.text_atoms import TextBytesAtom, TextCharsAtom, TextHeaderAtom
from slidetext.records.text_spec_info import TextSpecInfoAtom

# Escher containers between PPDrawing and a shape's client textbox
RT_ESCHER_DG_CONTAINER = 0xF002
RT_ESCHER_SPGR_CONTAINER = 0xF003
RT_ESCHER_SP_CONTAINER = 0xF004

# An atom type nothing in slidetext knows about
RT_UNKNOWN_ATOM = 0x0BAD

BASIC_TITLE = "This is a test title"
BASIC_BODY = "This is a test subtitle\rThis is on page 1"
BASIC_TITLE_2 = "This is the title on page 2"
BASIC_BODY_2 = "This is page two\rIt has several blocks of text\rNone of them have formatting"
BASIC_TEXT_BOX = "A text box on slide one"

RICH_TITLE = "This is a title, it’s in black"
RICH_RUNS = (
    "This is the subtitle, in bold\r",
    "This bit is blue and italic\r",
    "This bit is red (normal)",
)

INDENT_TITLE = "sdfsdfsdf"
INDENT_BODY = "Sdfsdfsdf\rDfgdfg\rDfgdfgdfg\rSdfsdfs\rSdfsdf"

BLUE = 0xFE000000 | (0xFF << 16)
RED = 0xFE000000 | 0xFF


def paragraph_run(count: int, indent: int = 0, mask: int = 0, values: bytes = b"") -> bytes:
    return struct.pack("<IHI", count, indent, mask) + values


def character_run(count: int, mask: int = 0, values: bytes = b"") -> bytes:
    return struct.pack("<II", count, mask) + values


def text_block(
    text: str,
    text_type: int = TEXT_TYPE_OTHER,
    *,
    wide: bool = False,
    style: bytes | None = None,
    extra: tuple[Record, ...] = (),
) -> list[Record]:
    header = TextHeaderAtom(struct.pack("<I", text_type))
    if wide:
        atom = TextCharsAtom(text.encode("utf-16-le"))
    else:
        atom = TextBytesAtom(text.encode("latin-1"))
    records: list[Record] = [header, atom]
    if style is not None:
        records.append(StyleTextPropAtom(style))
    records.extend(extra)
    return records


def spec_info(*runs: tuple[int, int, bytes]) -> TextSpecInfoAtom:
    payload = b"".join(
        struct.pack("<II", length, mask) + body for length, mask, body in runs
    )
    return TextSpecInfoAtom(payload)


def client_textbox(records: list[Record]) -> Container:
    return Container(RT_CLIENT_TEXTBOX, records)


def slide_container(textboxes: list[Container]) -> Container:
    shapes = [Container(RT_ESCHER_SP_CONTAINER, [box]) for box in textboxes]
    drawing = Container(
        RT_PP_DRAWING,
        [Container(RT_ESCHER_DG_CONTAINER, [Container(RT_ESCHER_SPGR_CONTAINER, shapes)])],
    )
    return Container(RT_SLIDE_CONTAINER, [drawing])


def build_deck(
    slides: list[list[list[Record]]],
    *,
    fonts: tuple[str, ...] = ("Arial",),
    slide_containers: list[Container] = (),
) -> bytes:
    """Stream bytes for a deck whose slides hold the given text blocks."""
    font_atoms = [FontEntityAtom.create(name, idx) for idx, name in enumerate(fonts)]
    environment = Container(RT_ENVIRONMENT, [Container(RT_FONT_COLLECTION, font_atoms)])

    slide_list: list[Record] = []
    for idx, blocks in enumerate(slides):
        persist = struct.pack("<IIiI", idx + 1, 0, len(blocks), 256 + idx)
        slide_list.append(SlidePersistAtom(persist))
        for block in blocks:
            slide_list.extend(block)

    document = Container(
        RT_DOCUMENT_CONTAINER,
        [
            environment,
            Container(RT_SLIDE_LIST_WITH_TEXT, slide_list, instance=SLIDE_LIST_SLIDES),
            Atom(RT_UNKNOWN_ATOM, b"\x01\x02\x03"),
        ],
    )
    return RecordTree([document, *slide_containers]).to_bytes()


def basic_deck() -> bytes:
    """Two plain slides; no style tables, one text box on slide one."""
    return build_deck(
        [
            [
                text_block(
                    BASIC_TITLE,
                    TEXT_TYPE_TITLE,
                    extra=(spec_info((len(BASIC_TITLE) + 1, 0x2, b"\x09\x04")),),
                ),
                text_block(BASIC_BODY, TEXT_TYPE_CENTER_BODY),
            ],
            [
                text_block(BASIC_TITLE_2, TEXT_TYPE_TITLE),
                text_block(BASIC_BODY_2, TEXT_TYPE_BODY),
            ],
        ],
        slide_containers=[
            slide_container([client_textbox(text_block(BASIC_TEXT_BOX))]),
        ],
    )


def rich_deck() -> bytes:
    """A wide title and a three-run body: bold, blue italic, red."""
    body = "".join(RICH_RUNS)
    style = (
        paragraph_run(len(body) + 1)
        + character_run(len(RICH_RUNS[0]), 0x0001, struct.pack("<H", 0x0001))
        + character_run(
            len(RICH_RUNS[1]), 0x00040002, struct.pack("<HI", 0x0002, BLUE)
        )
        + character_run(len(RICH_RUNS[2]) + 1, 0x00040000, struct.pack("<I", RED))
    )
    return build_deck(
        [
            [
                text_block(RICH_TITLE, TEXT_TYPE_TITLE, wide=True),
                text_block(body, TEXT_TYPE_CENTER_BODY, style=style),
            ]
        ],
        fonts=("Arial", "Times New Roman"),
    )


def indent_deck(undercount: bool = False) -> bytes:
    """
    Five paragraphs in two indent groups, levels 0,0,0,1,1.

    With ``undercount`` the second group stops short of the last paragraph
    and there is no character table.
    """
    first_group = len("Sdfsdfsdf\rDfgdfg\rDfgdfgdfg\r")
    second_group = len(INDENT_BODY) - first_group + 1
    if undercount:
        style = paragraph_run(first_group) + paragraph_run(len("Sdfsdfs\r"), indent=1)
    else:
        style = (
            paragraph_run(first_group)
            + paragraph_run(second_group, indent=1)
            + character_run(len(INDENT_BODY) + 1)
        )
    return build_deck(
        [
            [
                text_block(INDENT_TITLE, TEXT_TYPE_TITLE),
                text_block(INDENT_BODY, TEXT_TYPE_BODY, style=style),
            ]
        ]
    )


def empty_styled_deck() -> bytes:
    """An empty placeholder whose tables only cover the terminator."""
    style = paragraph_run(1, indent=2) + character_run(1, 0x0001, struct.pack("<H", 0x0001))
    return build_deck([[text_block("", TEXT_TYPE_BODY, style=style)]])
