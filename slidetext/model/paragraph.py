"""
Paragraphs and runs of a text block.

A text block is the group of records following a TextHeaderAtom: the text
atom, an optional StyleTextPropAtom, an optional TextSpecInfoAtom and
whatever else PowerPoint put there. ``TextBlock`` keeps the container and
the header and finds the other records each time it needs them, so swapping
the text atom for one of the other encoding never leaves a stale reference
behind.

The paragraphs are a view derived from those records:
    - the text is split after every ``\\r``; each piece is a paragraph
    - runs are cut wherever the character style table starts a new entry
    - each paragraph and run owns a copy of the style entry it falls in

Every mutation writes straight back into the records (``store_text``), so
serializing the tree at any point yields a consistent file.
"""

from __future__ import annotations

import logging

from slidetext.config import DEFAULT_TEXT_DEFAULTS, TextDefaults
from slidetext.exceptions import SlideTextError
from slidetext.model.text_props import (
    CHAR_FLAG_BOLD,
    CHAR_FLAG_ITALIC,
    CHAR_FLAG_UNDERLINE,
    StyleEntry,
    StylePropertyCollection,
    StyleScope,
)
from slidetext.records.fonts import FontCollection
from slidetext.records.record import Container, Record
from slidetext.records.slide_atoms import SlidePersistAtom
from slidetext.records.style_atom import StyleTextPropAtom
from slidetext.records.text_atoms import (
    PARAGRAPH_SEPARATOR,
    TextAtom,
    TextCharsAtom,
    TextHeaderAtom,
    encode_text,
    is_narrow_representable,
)
from slidetext.records.text_spec_info import TextSpecInfoAtom

logger = logging.getLogger(__name__)

# ColorIndexStruct index value meaning "the RGB bytes are the colour"
COLOR_INDEX_RGB = 0xFE


def split_paragraphs(text: str) -> list[str]:
    """
    Cut raw text after each paragraph separator.

    The separator stays with the paragraph it ends. Text ending in a
    separator does not produce an extra empty paragraph; empty text is one
    empty paragraph.
    """
    pieces = text.split(PARAGRAPH_SEPARATOR)
    paragraphs = [piece + PARAGRAPH_SEPARATOR for piece in pieces[:-1]]
    if pieces[-1] or not paragraphs:
        paragraphs.append(pieces[-1])
    return paragraphs


def to_internal_string(text: str) -> str:
    """Map newlines to the paragraph separator without changing the length."""
    return text.replace("\n", PARAGRAPH_SEPARATOR)


def to_external_string(text: str) -> str:
    return text.replace(PARAGRAPH_SEPARATOR, "\n")


def get_raw_text(paragraphs: list["TextParagraph"]) -> str:
    return "".join(paragraph.get_raw_text() for paragraph in paragraphs)


def get_text(paragraphs: list["TextParagraph"]) -> str:
    """Raw text with paragraph separators shown as newlines."""
    return to_external_string(get_raw_text(paragraphs))


def set_text(paragraphs: list["TextParagraph"], text: str) -> "TextRun":
    """
    Replace the whole text of a block.

    Only the first paragraph and its first run survive; the new text gets
    one run per paragraph, each copying those surviving styles. The list is
    modified in place.

    Returns:
        The last run of the new text.
    """
    if not paragraphs:
        raise ValueError("Cannot set text on an empty paragraph list")

    first = paragraphs[0]
    del paragraphs[1:]
    if first.text_runs:
        first.text_runs[0]._text = ""
        del first.text_runs[1:]
    else:
        first.add_text_run(TextRun(first))

    return append_text(paragraphs, text, new_paragraph=False)


def append_text(
    paragraphs: list["TextParagraph"], text: str, new_paragraph: bool = False
) -> "TextRun":
    """
    Add text after the last run of a block.

    Args:
        paragraphs: The block's paragraphs, modified in place.
        text: Text to add; ``\\r`` or ``\\n`` start new paragraphs.
        new_paragraph: Start the text in a new paragraph instead of
            continuing the last one.

    Returns:
        The last run written to.
    """
    if not paragraphs or not paragraphs[-1].text_runs:
        raise ValueError("Cannot append text to a block without runs")

    block = paragraphs[0].block
    paragraph = paragraphs[-1]
    run = paragraph.text_runs[-1]

    add_paragraph = new_paragraph
    for piece in split_paragraphs(to_internal_string(text)):
        last_run_empty = run.length == 0
        last_paragraph_empty = last_run_empty and len(paragraph.text_runs) == 1

        if add_paragraph and not last_paragraph_empty:
            if not paragraph.get_raw_text().endswith(PARAGRAPH_SEPARATOR):
                run._text += PARAGRAPH_SEPARATOR
            paragraph = TextParagraph(
                block, paragraph_style=paragraph.paragraph_style.copy()
            )
            paragraphs.append(paragraph)
            run = paragraph.add_text_run(
                TextRun(paragraph, character_style=run.character_style.copy())
            )
        elif not last_run_empty:
            run = paragraph.add_text_run(
                TextRun(paragraph, character_style=run.character_style.copy())
            )
        add_paragraph = True
        run._text = piece

    block.store_text(paragraphs)
    return run


class TextBlock:
    """The records of one text box and the paragraphs derived from them."""

    def __init__(
        self,
        container: Container,
        header: TextHeaderAtom,
        *,
        fonts: FontCollection | None = None,
        text_defaults: TextDefaults = DEFAULT_TEXT_DEFAULTS,
    ):
        self.container = container
        self.header = header
        self.fonts = fonts
        self.text_defaults = text_defaults
        self._paragraphs: list[TextParagraph] | None = None

    @classmethod
    def from_container(
        cls,
        container: Container,
        header: TextHeaderAtom | None = None,
        *,
        fonts: FontCollection | None = None,
        text_defaults: TextDefaults = DEFAULT_TEXT_DEFAULTS,
    ) -> "TextBlock":
        """Block starting at ``header``, or at the first header of ``container``."""
        if header is None:
            header = next(
                (child for child in container.children if isinstance(child, TextHeaderAtom)),
                None,
            )
            if header is None:
                raise SlideTextError(f"No TextHeaderAtom in {container!r}")
        return cls(container, header, fonts=fonts, text_defaults=text_defaults)

    @property
    def text_type(self) -> int | None:
        return self.header.text_type

    @property
    def records(self) -> list[Record]:
        """The header and the records after it, up to the next block."""
        children = self.container.children
        start = self.container.index_of(self.header)
        end = start + 1
        while end < len(children) and not isinstance(
            children[end], (TextHeaderAtom, SlidePersistAtom)
        ):
            end += 1
        return children[start:end]

    def _find(self, cls: type) -> Record | None:
        for record in self.records[1:]:
            if isinstance(record, cls):
                return record
        return None

    @property
    def text_atom(self) -> TextAtom | None:
        return self._find(TextAtom)

    @property
    def style_atom(self) -> StyleTextPropAtom | None:
        return self._find(StyleTextPropAtom)

    @property
    def text_spec_info(self) -> TextSpecInfoAtom | None:
        return self._find(TextSpecInfoAtom)

    @property
    def is_wide(self) -> bool:
        return isinstance(self.text_atom, TextCharsAtom)

    def get_stored_text(self) -> str:
        """Text exactly as held by the text atom."""
        atom = self.text_atom
        return atom.text if atom is not None else ""

    def get_paragraphs(self) -> list["TextParagraph"]:
        if self._paragraphs is None:
            self._paragraphs = self._build_paragraphs()
        return self._paragraphs

    paragraphs = property(get_paragraphs)

    def _build_paragraphs(self) -> list["TextParagraph"]:
        text = self.get_stored_text()
        paragraphs = []
        for piece in split_paragraphs(text):
            paragraph = TextParagraph(self)
            paragraph.add_text_run(TextRun(paragraph, piece))
            paragraphs.append(paragraph)

        style = self.style_atom
        if style is not None:
            if not style.initialised:
                style.set_parent_text_size(len(text))
            _apply_paragraph_styles(paragraphs, style.paragraph_styles)
            _apply_character_styles(paragraphs, style.character_styles)

        _update_coverage(paragraphs)
        logger.debug(
            "Built %d paragraphs for text block of type %s",
            len(paragraphs),
            self.header.type_name,
        )
        return paragraphs

    def store_text(self, paragraphs: list["TextParagraph"] | None = None) -> None:
        """
        Write the paragraphs back into the records.

        Re-encodes the text atom (promoting it to wide when needed),
        regenerates the style tables and resizes the text spec info.
        """
        if paragraphs is not None:
            self._paragraphs = paragraphs
        paragraphs = self.get_paragraphs()
        if not paragraphs:
            raise SlideTextError("A text block needs at least one paragraph")

        raw_text = to_internal_string(get_raw_text(paragraphs))
        _update_coverage(paragraphs)

        old_atom = self.text_atom
        atom = encode_text(raw_text, current=old_atom)
        if old_atom is None:
            self.container.add_child_after(atom, self.header)
        elif atom is not old_atom:
            self.container.replace_child(old_atom, atom)

        style = self.style_atom
        if style is None and _has_styling(paragraphs):
            style = StyleTextPropAtom()
            self.container.add_child_after(style, atom)
        if style is not None:
            _write_styles(style, paragraphs)

        spec_info = self.text_spec_info
        if spec_info is not None:
            spec_info.set_parent_size(len(raw_text) + 1)

    def demote_encoding(self) -> bool:
        """
        Store the text one byte per character if it fits.

        Returns:
            True when the atom was replaced by a narrow one.
        """
        atom = self.text_atom
        if not isinstance(atom, TextCharsAtom):
            return False
        text = atom.text
        if not is_narrow_representable(text):
            return False
        narrow = encode_text(text, current=atom, force_narrow=True)
        self.container.replace_child(atom, narrow)
        return True

    def __repr__(self) -> str:
        return f"TextBlock(type={self.header.type_name}, text={self.get_stored_text()!r})"


class TextParagraph:
    def __init__(
        self,
        block: TextBlock,
        paragraph_style: StylePropertyCollection | None = None,
    ):
        self._block = block
        self.text_runs: list[TextRun] = []
        if paragraph_style is None:
            paragraph_style = StylePropertyCollection.single(StyleScope.PARAGRAPH)
        self.paragraph_style = paragraph_style

    @property
    def block(self) -> TextBlock:
        return self._block

    @property
    def length(self) -> int:
        return sum(run.length for run in self.text_runs)

    def add_text_run(self, run: "TextRun") -> "TextRun":
        self.text_runs.append(run)
        return run

    def get_raw_text(self) -> str:
        return "".join(run.get_raw_text() for run in self.text_runs)

    def get_text(self) -> str:
        return to_external_string(self.get_raw_text())

    def get_paragraph_style(self) -> StylePropertyCollection:
        return self.paragraph_style

    def get_indent_level(self) -> int:
        if not self.paragraph_style.entries:
            return 0
        return self.paragraph_style.first.indent_level

    def set_indent_level(self, level: int) -> None:
        if not 0 <= level <= 0xFFFF:
            raise ValueError(f"Indent level out of range: {level}")
        self.paragraph_style.first.indent_level = level
        self._block.store_text()

    def __repr__(self) -> str:
        return f"TextParagraph({self.get_raw_text()!r}, indent={self.get_indent_level()})"


class TextRun:
    def __init__(
        self,
        paragraph: TextParagraph,
        text: str = "",
        character_style: StylePropertyCollection | None = None,
    ):
        self._paragraph = paragraph
        self._text = text
        if character_style is None:
            character_style = StylePropertyCollection.single(
                StyleScope.CHARACTER, len(text)
            )
        self.character_style = character_style

    @property
    def paragraph(self) -> TextParagraph:
        return self._paragraph

    @property
    def length(self) -> int:
        return len(self._text)

    def get_raw_text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        """
        Replace this run's text, keeping it verbatim.

        Sibling runs and the paragraph style keep their values; the run's
        character style grows or shrinks by the change in length.
        """
        delta = len(text) - len(self._text)
        self._text = text
        self.character_style.resize(delta, 0)
        self._paragraph.block.store_text()

    def get_character_style(self) -> StylePropertyCollection:
        return self.character_style

    @property
    def _style(self) -> StyleEntry:
        return self.character_style.first

    @property
    def _defaults(self) -> TextDefaults:
        return self._paragraph.block.text_defaults

    def _store(self) -> None:
        self._paragraph.block.store_text()

    def get_font_family(self) -> str:
        index = self._style.get("font_index")
        fonts = self._paragraph.block.fonts
        if index is not None and fonts is not None:
            name = fonts.get_font_name(index)
            if name:
                return name
        return self._defaults.font_family

    def set_font_family(self, name: str) -> None:
        fonts = self._paragraph.block.fonts
        if fonts is None:
            raise SlideTextError(
                f"Cannot set font {name!r}: text block has no font collection"
            )
        self._style.set("font_index", fonts.add_font(name))
        self._store()

    def get_font_size(self) -> int:
        return self._style.get("font_size", self._defaults.font_size)

    def set_font_size(self, size: int) -> None:
        if not 0 < size <= 0xFFFF:
            raise ValueError(f"Font size out of range: {size}")
        self._style.set("font_size", int(size))
        self._store()

    def _get_flag(self, bit: int, default: bool) -> bool:
        value = self._style.get_flag("char_flags", bit)
        return default if value is None else value

    def _set_flag(self, bit: int, on: bool) -> None:
        self._style.set_flag("char_flags", bit, on)
        self._store()

    def is_bold(self) -> bool:
        return self._get_flag(CHAR_FLAG_BOLD, self._defaults.bold)

    def set_bold(self, bold: bool) -> None:
        self._set_flag(CHAR_FLAG_BOLD, bold)

    def is_italic(self) -> bool:
        return self._get_flag(CHAR_FLAG_ITALIC, self._defaults.italic)

    def set_italic(self, italic: bool) -> None:
        self._set_flag(CHAR_FLAG_ITALIC, italic)

    def is_underlined(self) -> bool:
        return self._get_flag(CHAR_FLAG_UNDERLINE, self._defaults.underlined)

    def set_underlined(self, underlined: bool) -> None:
        self._set_flag(CHAR_FLAG_UNDERLINE, underlined)

    def get_font_color(self) -> tuple[int, int, int]:
        value = self._style.get("font_color")
        if value is None:
            return self._defaults.font_color
        index = (value >> 24) & 0xFF
        if index != COLOR_INDEX_RGB:
            # Scheme colours live in the master, which is not resolved here
            logger.debug("Font colour uses scheme index %d, using default", index)
            return self._defaults.font_color
        return (value & 0xFF, (value >> 8) & 0xFF, (value >> 16) & 0xFF)

    def set_font_color(self, red: int, green: int, blue: int) -> None:
        for component in (red, green, blue):
            if not 0 <= component <= 0xFF:
                raise ValueError(f"Colour component out of range: {component}")
        value = (COLOR_INDEX_RGB << 24) | (blue << 16) | (green << 8) | red
        self._style.set("font_color", value)
        self._store()

    def __repr__(self) -> str:
        return f"TextRun({self._text!r})"


def find_text_blocks(
    container: Container,
    *,
    fonts: FontCollection | None = None,
    text_defaults: TextDefaults = DEFAULT_TEXT_DEFAULTS,
) -> list[TextBlock]:
    """One TextBlock per TextHeaderAtom directly inside ``container``."""
    return [
        TextBlock(container, child, fonts=fonts, text_defaults=text_defaults)
        for child in container.children
        if isinstance(child, TextHeaderAtom)
    ]


def _entry_index_at(starts: list[int], entries: list[StyleEntry], offset: int) -> int:
    """Entry covering ``offset``; past the end of the table, the last one."""
    for idx, entry in enumerate(entries):
        if offset < starts[idx] + entry.characters_covered:
            return idx
    return len(entries) - 1


def _entry_starts(entries: list[StyleEntry]) -> list[int]:
    starts = []
    offset = 0
    for entry in entries:
        starts.append(offset)
        offset += entry.characters_covered
    return starts


def _apply_paragraph_styles(
    paragraphs: list[TextParagraph], styles: StylePropertyCollection
) -> None:
    entries = styles.entries
    if not entries:
        return
    starts = _entry_starts(entries)
    if starts[-1] + entries[-1].characters_covered < len(get_raw_text(paragraphs)):
        logger.debug("Paragraph style table is short, last entry covers the rest")

    offset = 0
    for paragraph in paragraphs:
        idx = _entry_index_at(starts, entries, offset)
        paragraph.paragraph_style = StylePropertyCollection(
            StyleScope.PARAGRAPH, [entries[idx].copy()], group_id=idx
        )
        offset += paragraph.length


def _apply_character_styles(
    paragraphs: list[TextParagraph], styles: StylePropertyCollection
) -> None:
    entries = styles.entries
    if not entries:
        return
    starts = _entry_starts(entries)

    offset = 0
    for paragraph in paragraphs:
        runs = []
        for run in paragraph.text_runs:
            text = run.get_raw_text()
            pos = 0
            while True:
                idx = _entry_index_at(starts, entries, offset + pos)
                entry_end = starts[idx] + entries[idx].characters_covered
                remaining = len(text) - pos
                take = remaining
                if idx < len(entries) - 1:
                    take = min(remaining, entry_end - (offset + pos))
                runs.append(
                    TextRun(
                        paragraph,
                        text[pos : pos + take],
                        StylePropertyCollection(
                            StyleScope.CHARACTER, [entries[idx].copy()], group_id=idx
                        ),
                    )
                )
                pos += take
                if pos >= len(text):
                    break
            offset += len(text)
        paragraph.text_runs = runs

    # A style that starts exactly at the end of the text belongs to the
    # terminator; keep it alive as an empty trailing run
    last_paragraph = paragraphs[-1]
    last_run = last_paragraph.text_runs[-1]
    idx = _entry_index_at(starts, entries, offset)
    if starts[idx] == offset and idx != last_run.character_style.group_id:
        last_paragraph.add_text_run(
            TextRun(
                last_paragraph,
                "",
                StylePropertyCollection(
                    StyleScope.CHARACTER, [entries[idx].copy()], group_id=idx
                ),
            )
        )


def _update_coverage(paragraphs: list[TextParagraph]) -> None:
    """Make every collection cover its own text, the very last one +1."""
    for p_idx, paragraph in enumerate(paragraphs):
        is_last_paragraph = p_idx == len(paragraphs) - 1
        for r_idx, run in enumerate(paragraph.text_runs):
            extra = 1 if is_last_paragraph and r_idx == len(paragraph.text_runs) - 1 else 0
            run.character_style.update_text_size(run.length + extra)
        extra = 1 if is_last_paragraph else 0
        paragraph.paragraph_style.update_text_size(paragraph.length + extra)


def _has_styling(paragraphs: list[TextParagraph]) -> bool:
    for paragraph in paragraphs:
        entry = paragraph.paragraph_style.first
        if entry.properties or entry.indent_level or entry.unknown_mask:
            return True
        for run in paragraph.text_runs:
            entry = run.character_style.first
            if entry.properties or entry.unknown_mask:
                return True
    return False


def _write_styles(style: StyleTextPropAtom, paragraphs: list[TextParagraph]) -> None:
    """Rebuild the style tables, merging neighbours that look the same."""
    style.clear_styles()
    last_paragraph_entry = None
    last_run_entry = None
    for paragraph in paragraphs:
        entry = paragraph.paragraph_style.first
        if not entry.same_style(last_paragraph_entry):
            last_paragraph_entry = entry.copy(0)
            style.paragraph_styles.entries.append(last_paragraph_entry)
        last_paragraph_entry.characters_covered += entry.characters_covered

        for run in paragraph.text_runs:
            entry = run.character_style.first
            if not entry.same_style(last_run_entry):
                last_run_entry = entry.copy(0)
                style.character_styles.entries.append(last_run_entry)
            last_run_entry.characters_covered += entry.characters_covered

    style.update_payload()
