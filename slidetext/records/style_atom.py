"""
StyleTextPropAtom (0x0FA1): the paragraph and character style tables of a
text block.

Layout of the payload:
    - paragraph runs, repeated: u32 count, u16 indent level, u32 mask,
      then the masked TextPFException fields
    - character runs, repeated: u32 count, u32 mask, then the masked
      TextCFException fields
    - anything left over is kept verbatim

There is no count of runs. Each section is read until it covers the text
length of the block, plus one more character when more data follows (the
tables describe an implicit terminator after the last character). The
payload therefore cannot be interpreted without the parent text length,
which is why parsing happens in ``set_parent_text_size`` and not on load.
"""

import logging
import struct

from slidetext.exceptions import CorruptRecordError, SlideTextError
from slidetext.model.text_props import (
    StyleEntry,
    StylePropertyCollection,
    StyleScope,
    read_properties,
    write_properties,
)
from slidetext.records.record import Atom, register_atom
from slidetext.records.record_types import RT_STYLE_TEXT_PROP_ATOM

logger = logging.getLogger(__name__)


@register_atom(RT_STYLE_TEXT_PROP_ATOM)
class StyleTextPropAtom(Atom):
    def __init__(self, payload: bytes = b"", *, version: int = 0, instance: int = 0):
        super().__init__(
            RT_STYLE_TEXT_PROP_ATOM, payload, version=version, instance=instance
        )
        self._paragraph_styles = StylePropertyCollection(StyleScope.PARAGRAPH)
        self._character_styles = StylePropertyCollection(StyleScope.CHARACTER)
        self._reserved = b""
        self._initialised = False

    @property
    def initialised(self) -> bool:
        return self._initialised

    @property
    def paragraph_styles(self) -> StylePropertyCollection:
        self._check_initialised()
        return self._paragraph_styles

    @property
    def character_styles(self) -> StylePropertyCollection:
        self._check_initialised()
        return self._character_styles

    def _check_initialised(self) -> None:
        if not self._initialised:
            raise SlideTextError(
                "Style table read before set_parent_text_size was called"
            )

    def set_parent_text_size(self, size: int) -> None:
        """Interpret the payload for a block of ``size`` characters."""
        data = self.payload
        pos = 0
        self._paragraph_styles = StylePropertyCollection(StyleScope.PARAGRAPH)
        self._character_styles = StylePropertyCollection(StyleScope.CHARACTER)

        try:
            handled = 0
            limit = size
            while pos < len(data) and (
                handled < limit or not self._paragraph_styles.entries
            ):
                count, indent, mask = struct.unpack_from("<IHI", data, pos)
                pos += 10
                count = _check_text_length(count, handled, size)
                handled += count
                entry = StyleEntry(
                    count, scope=StyleScope.PARAGRAPH, indent_level=indent
                )
                pos += read_properties(entry, mask, data, pos)
                self._paragraph_styles.entries.append(entry)
                # The last paragraph run also covers the terminator
                if pos < len(data) and handled == size:
                    limit += 1

            if data and handled != size + 1:
                logger.warning(
                    "Problem reading paragraph style runs: covered %d, text size+1 = %d",
                    handled,
                    size + 1,
                )

            handled = 0
            limit = size
            while pos < len(data) and (
                handled < limit or not self._character_styles.entries
            ):
                count, mask = struct.unpack_from("<II", data, pos)
                pos += 8
                count = _check_text_length(count, handled, size)
                handled += count
                entry = StyleEntry(count, scope=StyleScope.CHARACTER)
                pos += read_properties(entry, mask, data, pos)
                self._character_styles.entries.append(entry)
                if pos < len(data) and handled == size:
                    limit += 1

            if data and handled != size + 1:
                logger.warning(
                    "Problem reading character style runs: covered %d, text size+1 = %d",
                    handled,
                    size + 1,
                )
        except struct.error as exc:
            raise CorruptRecordError(
                f"Style table truncated at byte {pos} of {len(data)}", cause=exc
            ) from exc

        self._reserved = data[pos:]
        self._initialised = True

    def clear_styles(self) -> None:
        self._paragraph_styles.clear()
        self._character_styles.clear()
        self._initialised = True

    def add_paragraph_style(self, characters_covered: int = 0) -> StyleEntry:
        self._initialised = True
        return self._paragraph_styles.add_entry(characters_covered)

    def add_character_style(self, characters_covered: int = 0) -> StyleEntry:
        self._initialised = True
        return self._character_styles.add_entry(characters_covered)

    def update_payload(self) -> None:
        """Write the style tables back into the payload."""
        self._check_initialised()
        parts = []
        for entry in self._paragraph_styles:
            parts.append(
                struct.pack(
                    "<IHI", entry.characters_covered, entry.indent_level, entry.mask
                )
            )
            parts.append(write_properties(entry))
        for entry in self._character_styles:
            parts.append(struct.pack("<II", entry.characters_covered, entry.mask))
            parts.append(write_properties(entry))
        parts.append(self._reserved)
        self.payload = b"".join(parts)


def _check_text_length(count: int, handled: int, size: int) -> int:
    if handled + count > size + 1:
        logger.warning(
            "Style run of %d characters overruns the text (%d already covered, size %d)",
            count,
            handled,
            size,
        )
    return count
