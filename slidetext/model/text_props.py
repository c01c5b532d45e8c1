"""
Style property collections.

A style table is an ordered list of entries, each claiming a number of
characters (its coverage) and a set of properties. There are two scopes:

    - paragraph: TextPFException properties plus an indent level
    - character: TextCFException properties

Which properties are present in an entry is given by a 32-bit mask. The
property values follow the mask in a fixed order that is *not* the bit
order, so the definition tables below list them in stream order. The
tables must be complete: a bit that is present but unknown here shifts
every following field and corrupts the rest of the table.
"""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass, field
from typing import Iterator, Union

from slidetext.exceptions import CorruptRecordError, OutOfRangeError

logger = logging.getLogger(__name__)

VARIABLE_SIZE = -1

PropValue = Union[int, bool, tuple]


class StyleScope(enum.Enum):
    PARAGRAPH = "paragraph"
    CHARACTER = "character"


@dataclass(frozen=True)
class TextPropDef:
    name: str
    mask: int
    size: int  # 0 = flag without data, VARIABLE_SIZE = tab stop list
    bitmask: bool = False


# TextPFException field order
PARAGRAPH_PROPS: tuple[TextPropDef, ...] = (
    TextPropDef("bullet_flags", 0x0000000F, 2, bitmask=True),
    TextPropDef("bullet_char", 0x00000080, 2),
    TextPropDef("bullet_font", 0x00000010, 2),
    TextPropDef("bullet_size", 0x00000040, 2),
    TextPropDef("bullet_color", 0x00000020, 4),
    TextPropDef("alignment", 0x00000800, 2),
    TextPropDef("line_spacing", 0x00001000, 2),
    TextPropDef("space_before", 0x00002000, 2),
    TextPropDef("space_after", 0x00004000, 2),
    TextPropDef("left_margin", 0x00000100, 2),
    TextPropDef("indent", 0x00000400, 2),
    TextPropDef("default_tab_size", 0x00008000, 2),
    TextPropDef("tab_stops", 0x00100000, VARIABLE_SIZE),
    TextPropDef("font_align", 0x00010000, 2),
    TextPropDef("wrap_flags", 0x000E0000, 2, bitmask=True),
    TextPropDef("text_direction", 0x00200000, 2),
    # These live in TextPFException9; the bits only flag them here
    TextPropDef("bullet_blip", 0x00800000, 0),
    TextPropDef("bullet_scheme", 0x01000000, 0),
    TextPropDef("has_bullet_scheme", 0x02000000, 0),
)

# TextCFException field order
CHARACTER_PROPS: tuple[TextPropDef, ...] = (
    TextPropDef("pp10ext", 0x00100000, 0),
    TextPropDef("new_asian_font_index", 0x01000000, 0),
    TextPropDef("cs_font_index", 0x02000000, 0),
    TextPropDef("pp11ext", 0x04000000, 0),
    TextPropDef("char_flags", 0x0000FFFF, 2, bitmask=True),
    TextPropDef("font_index", 0x00010000, 2),
    TextPropDef("asian_font_index", 0x00200000, 2),
    TextPropDef("ansi_font_index", 0x00400000, 2),
    TextPropDef("symbol_font_index", 0x00800000, 2),
    TextPropDef("font_size", 0x00020000, 2),
    TextPropDef("font_color", 0x00040000, 4),
    TextPropDef("superscript", 0x00080000, 2),
)

# char_flags bits
CHAR_FLAG_BOLD = 0x0001
CHAR_FLAG_ITALIC = 0x0002
CHAR_FLAG_UNDERLINE = 0x0004
CHAR_FLAG_SHADOW = 0x0010
CHAR_FLAG_STRIKETHROUGH = 0x0100
CHAR_FLAG_EMBOSS = 0x0200

_DEFS_BY_SCOPE = {
    StyleScope.PARAGRAPH: PARAGRAPH_PROPS,
    StyleScope.CHARACTER: CHARACTER_PROPS,
}


def prop_defs(scope: StyleScope) -> tuple[TextPropDef, ...]:
    return _DEFS_BY_SCOPE[scope]


def find_prop_def(scope: StyleScope, name: str) -> TextPropDef:
    for prop in _DEFS_BY_SCOPE[scope]:
        if prop.name == name:
            return prop
    raise KeyError(f"Unknown {scope.value} property: {name}")


def _known_mask(scope: StyleScope) -> int:
    mask = 0
    for prop in _DEFS_BY_SCOPE[scope]:
        mask |= prop.mask
    return mask


@dataclass(eq=False)
class StyleEntry:
    """One row of a style table: a coverage count and its properties."""

    characters_covered: int
    scope: StyleScope = StyleScope.CHARACTER
    properties: dict[str, PropValue] = field(default_factory=dict)
    # For bitmask properties: the mask bits that were actually present
    flag_masks: dict[str, int] = field(default_factory=dict)
    # Mask bits no definition claims; written back untouched
    unknown_mask: int = 0
    indent_level: int = 0

    @property
    def mask(self) -> int:
        mask = self.unknown_mask
        for prop in prop_defs(self.scope):
            if prop.name not in self.properties:
                continue
            if prop.bitmask:
                mask |= self.flag_masks.get(prop.name, 0)
            else:
                mask |= prop.mask
        return mask

    def get(self, name: str, default: PropValue | None = None) -> PropValue | None:
        return self.properties.get(name, default)

    def set(self, name: str, value: PropValue) -> None:
        prop = find_prop_def(self.scope, name)
        if prop.bitmask:
            raise ValueError(f"{name} is a bitmask property, use set_flag")
        self.properties[name] = value

    def remove(self, name: str) -> None:
        self.properties.pop(name, None)
        self.flag_masks.pop(name, None)

    def get_flag(self, name: str, bit: int) -> bool | None:
        """Value of one bit of a bitmask property, None when not defined."""
        if not self.flag_masks.get(name, 0) & bit:
            return None
        return bool(self.properties.get(name, 0) & bit)

    def set_flag(self, name: str, bit: int, on: bool) -> None:
        value = self.properties.get(name, 0)
        value = value | bit if on else value & ~bit
        self.properties[name] = value
        self.flag_masks[name] = self.flag_masks.get(name, 0) | bit

    def same_style(self, other: "StyleEntry | None") -> bool:
        """Structural comparison; coverage is not part of a style."""
        if other is None:
            return False
        return (
            self.scope == other.scope
            and self.indent_level == other.indent_level
            and self.unknown_mask == other.unknown_mask
            and self.properties == other.properties
            and self.flag_masks == other.flag_masks
        )

    def copy(self, characters_covered: int | None = None) -> "StyleEntry":
        return StyleEntry(
            characters_covered=(
                self.characters_covered
                if characters_covered is None
                else characters_covered
            ),
            scope=self.scope,
            properties=dict(self.properties),
            flag_masks=dict(self.flag_masks),
            unknown_mask=self.unknown_mask,
            indent_level=self.indent_level,
        )

    def __repr__(self) -> str:
        return (
            f"StyleEntry({self.scope.value}, covered={self.characters_covered}, "
            f"indent={self.indent_level}, props={self.properties})"
        )


def read_properties(entry: StyleEntry, mask: int, data: bytes, pos: int) -> int:
    """
    Fill ``entry`` from the property values following a mask.

    Returns:
        Number of bytes consumed.
    """
    start = pos
    for prop in prop_defs(entry.scope):
        present = mask & prop.mask
        if not present:
            continue
        if prop.bitmask:
            entry.flag_masks[prop.name] = present
        if prop.size == 0:
            entry.properties[prop.name] = True
            continue
        try:
            if prop.size == VARIABLE_SIZE:
                (count,) = struct.unpack_from("<H", data, pos)
                pos += 2
                stops = []
                for _ in range(count):
                    stops.append(struct.unpack_from("<HH", data, pos))
                    pos += 4
                entry.properties[prop.name] = tuple(stops)
            elif prop.size == 2:
                entry.properties[prop.name] = struct.unpack_from("<H", data, pos)[0]
                pos += 2
            else:
                entry.properties[prop.name] = struct.unpack_from("<I", data, pos)[0]
                pos += 4
        except struct.error as exc:
            raise CorruptRecordError(
                f"Style table ends inside {entry.scope.value} property {prop.name}",
                cause=exc,
            ) from exc

    entry.unknown_mask = mask & ~_known_mask(entry.scope)
    if entry.unknown_mask:
        logger.debug(
            "Unknown %s style mask bits 0x%08X kept as-is",
            entry.scope.value,
            entry.unknown_mask,
        )
    return pos - start


def write_properties(entry: StyleEntry) -> bytes:
    parts = []
    for prop in prop_defs(entry.scope):
        if prop.name not in entry.properties or prop.size == 0:
            continue
        if prop.bitmask and not entry.flag_masks.get(prop.name):
            continue
        value = entry.properties[prop.name]
        if prop.size == VARIABLE_SIZE:
            parts.append(struct.pack("<H", len(value)))
            for position, kind in value:
                parts.append(struct.pack("<HH", position, kind))
        elif prop.size == 2:
            parts.append(struct.pack("<H", value & 0xFFFF))
        else:
            parts.append(struct.pack("<I", value & 0xFFFFFFFF))
    return b"".join(parts)


class StylePropertyCollection:
    """
    Ordered style entries describing a span of text.

    The sum of the entries' coverage is the number of characters described.
    Entries are addressed by character offset, never by byte offset.
    """

    def __init__(
        self,
        scope: StyleScope,
        entries: list[StyleEntry] | None = None,
        *,
        group_id: int | None = None,
    ):
        self.scope = scope
        self.entries: list[StyleEntry] = list(entries or [])
        # Index of the style table entry this collection was copied from
        self.group_id = group_id

    @classmethod
    def single(
        cls, scope: StyleScope, characters_covered: int = 0, **kwargs
    ) -> "StylePropertyCollection":
        return cls(scope, [StyleEntry(characters_covered, scope=scope)], **kwargs)

    @property
    def total_covered(self) -> int:
        return sum(entry.characters_covered for entry in self.entries)

    @property
    def first(self) -> StyleEntry:
        if not self.entries:
            raise OutOfRangeError(0, 0, "Style collection has no entries")
        return self.entries[0]

    def add_entry(self, characters_covered: int = 0) -> StyleEntry:
        entry = StyleEntry(characters_covered, scope=self.scope)
        self.entries.append(entry)
        return entry

    def clear(self) -> None:
        self.entries.clear()

    def _locate(self, offset: int) -> tuple[int, int]:
        """Index of the entry holding ``offset`` and the offset it starts at."""
        total = self.total_covered
        if offset < 0 or offset >= total:
            raise OutOfRangeError(offset, total)
        start = 0
        for idx, entry in enumerate(self.entries):
            if offset < start + entry.characters_covered:
                return idx, start
            start += entry.characters_covered
        raise OutOfRangeError(offset, total)

    def properties_at(self, offset: int) -> StyleEntry:
        idx, _ = self._locate(offset)
        return self.entries[idx]

    def split_at(self, offset: int) -> None:
        """
        Cut the entry containing ``offset`` in two identical halves.

        Does nothing when ``offset`` already starts an entry or equals the
        total coverage.
        """
        if offset == self.total_covered:
            return
        idx, start = self._locate(offset)
        if offset == start:
            return
        entry = self.entries[idx]
        head = offset - start
        tail = entry.copy(entry.characters_covered - head)
        entry.characters_covered = head
        self.entries.insert(idx + 1, tail)

    def resize(self, delta: int, at_offset: int = 0) -> None:
        """
        Account for ``delta`` characters inserted (or removed) at ``at_offset``.

        Only the entry containing the offset changes; an offset equal to the
        total coverage addresses the last entry.
        """
        total = self.total_covered
        if not self.entries or at_offset < 0 or at_offset > total:
            raise OutOfRangeError(at_offset, total)
        if at_offset == total:
            idx = len(self.entries) - 1
        else:
            idx, _ = self._locate(at_offset)
        entry = self.entries[idx]
        if entry.characters_covered + delta < 0:
            raise OutOfRangeError(
                at_offset,
                total,
                f"Cannot remove {-delta} characters from an entry covering "
                f"{entry.characters_covered}",
            )
        entry.characters_covered += delta

    def update_text_size(self, characters_covered: int) -> None:
        """Set the coverage of a single-entry collection."""
        self.first.characters_covered = characters_covered

    def copy(self) -> "StylePropertyCollection":
        return StylePropertyCollection(
            self.scope,
            [entry.copy() for entry in self.entries],
            group_id=self.group_id,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StylePropertyCollection):
            return NotImplemented
        if self.scope != other.scope or len(self.entries) != len(other.entries):
            return False
        return all(a.same_style(b) for a, b in zip(self.entries, other.entries))

    __hash__ = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[StyleEntry]:
        return iter(self.entries)

    def __repr__(self) -> str:
        return (
            f"StylePropertyCollection({self.scope.value}, group={self.group_id}, "
            f"entries={self.entries})"
        )
