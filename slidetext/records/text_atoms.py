"""
Text atoms and the narrow/wide text codec.

A text box stores its characters in exactly one of two atoms:
    - TextBytesAtom (0x0FA8): one byte per character, the low byte of the
      code point (i.e. Latin-1)
    - TextCharsAtom (0x0FA0): UTF-16LE, two bytes per character

Paragraphs inside the text are terminated by ``\\r``. The atom does not
store the terminator of the last paragraph.

Encoding only ever moves from narrow to wide on its own. Text that gains a
character above U+00FF is promoted to a TextCharsAtom; text that later
shrinks back into Latin-1 stays wide until the caller asks for demotion
with ``force_narrow=True``, so saving an edited deck does not flip bytes
the caller did not touch.
"""

import enum
import logging
import struct

from slidetext.exceptions import CorruptRecordError
from slidetext.records.record import Atom, Record, register_atom
from slidetext.records.record_types import (
    RT_TEXT_BYTES_ATOM,
    RT_TEXT_CHARS_ATOM,
    RT_TEXT_HEADER_ATOM,
    TEXT_TYPE_BODY,
    TEXT_TYPE_CENTER_BODY,
    TEXT_TYPE_CENTER_TITLE,
    TEXT_TYPE_HALF_BODY,
    TEXT_TYPE_NOTES,
    TEXT_TYPE_OTHER,
    TEXT_TYPE_QUARTER_BODY,
    TEXT_TYPE_TITLE,
)

logger = logging.getLogger(__name__)

NARROW_ENCODING = "latin-1"
WIDE_ENCODING = "utf-16-le"

PARAGRAPH_SEPARATOR = "\r"


class TextEncoding(enum.Enum):
    NARROW = "narrow"
    WIDE = "wide"


@register_atom(RT_TEXT_HEADER_ATOM)
class TextHeaderAtom(Atom):
    """Starts a text block; holds the placeholder text type."""

    _TYPE_NAMES = {
        TEXT_TYPE_TITLE: "title",
        TEXT_TYPE_BODY: "body",
        TEXT_TYPE_NOTES: "notes",
        TEXT_TYPE_OTHER: "other",
        TEXT_TYPE_CENTER_BODY: "subtitle",
        TEXT_TYPE_CENTER_TITLE: "center_title",
        TEXT_TYPE_HALF_BODY: "half_body",
        TEXT_TYPE_QUARTER_BODY: "quarter_body",
    }

    def __init__(self, payload: bytes = None, *, version: int = 0, instance: int = 0):
        if payload is None:
            payload = struct.pack("<I", TEXT_TYPE_OTHER)
        super().__init__(RT_TEXT_HEADER_ATOM, payload, version=version, instance=instance)

    @property
    def text_type(self) -> int | None:
        if len(self.payload) < 4:
            return None
        return struct.unpack_from("<I", self.payload, 0)[0]

    @text_type.setter
    def text_type(self, value: int) -> None:
        self.payload = struct.pack("<I", value) + self.payload[4:]

    @property
    def type_name(self) -> str:
        return self._TYPE_NAMES.get(self.text_type, "unknown")

    @property
    def is_title(self) -> bool:
        return self.text_type in (TEXT_TYPE_TITLE, TEXT_TYPE_CENTER_TITLE)


class TextAtom(Atom):
    """Common base of the two text encodings."""

    encoding: TextEncoding

    @property
    def text(self) -> str:
        raise NotImplementedError

    @text.setter
    def text(self, value: str) -> None:
        raise NotImplementedError


@register_atom(RT_TEXT_BYTES_ATOM)
class TextBytesAtom(TextAtom):
    encoding = TextEncoding.NARROW

    def __init__(self, payload: bytes = b"", *, version: int = 0, instance: int = 0):
        super().__init__(RT_TEXT_BYTES_ATOM, payload, version=version, instance=instance)

    @property
    def text(self) -> str:
        return self.payload.decode(NARROW_ENCODING)

    @text.setter
    def text(self, value: str) -> None:
        self.payload = value.encode(NARROW_ENCODING)


@register_atom(RT_TEXT_CHARS_ATOM)
class TextCharsAtom(TextAtom):
    encoding = TextEncoding.WIDE

    def __init__(self, payload: bytes = b"", *, version: int = 0, instance: int = 0):
        super().__init__(RT_TEXT_CHARS_ATOM, payload, version=version, instance=instance)

    @property
    def text(self) -> str:
        if len(self.payload) % 2:
            raise CorruptRecordError(
                f"TextCharsAtom holds an odd number of bytes ({len(self.payload)})"
            )
        return self.payload.decode(WIDE_ENCODING, errors="surrogatepass")

    @text.setter
    def text(self, value: str) -> None:
        self.payload = value.encode(WIDE_ENCODING, errors="surrogatepass")


def is_text_atom(record: Record) -> bool:
    return isinstance(record, TextAtom)


def is_narrow_representable(text: str) -> bool:
    """True when every character fits the one-byte code space."""
    return all(ord(char) <= 0xFF for char in text)


def decode_text(atom: TextAtom) -> str:
    if not isinstance(atom, TextAtom):
        raise TypeError(f"Not a text atom: {atom!r}")
    return atom.text


def encode_text(
    text: str, *, current: TextAtom | None = None, force_narrow: bool = False
) -> TextAtom:
    """
    Store ``text`` in an atom of the right encoding.

    Args:
        text: The raw text, paragraph separators included.
        current: The atom presently holding the block's text. It is reused
            when the encoding does not change.
        force_narrow: Demote a wide atom when the text fits one byte per
            character. Has no effect on text that does not fit.

    Returns:
        ``current`` updated in place, or a new atom of the other encoding.
    """
    narrow = is_narrow_representable(text)
    if narrow and isinstance(current, TextCharsAtom) and not force_narrow:
        narrow = False
    if force_narrow and not narrow:
        logger.debug("Text needs two bytes per character, keeping wide encoding")

    if narrow:
        atom = current if isinstance(current, TextBytesAtom) else TextBytesAtom()
    else:
        atom = current if isinstance(current, TextCharsAtom) else TextCharsAtom()

    if current is not None and atom is not current:
        logger.debug(
            "Switching text atom encoding %s -> %s",
            current.encoding.value,
            atom.encoding.value,
        )

    atom.text = text
    return atom
