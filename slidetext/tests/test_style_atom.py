import logging
import struct
import unittest

import pytest

from slidetext.exceptions import CorruptRecordError, SlideTextError
from slidetext.model.text_props import CHAR_FLAG_BOLD
from slidetext.records import StyleTextPropAtom
from slidetext.tests.builders import (
    BLUE,
    INDENT_BODY,
    RICH_RUNS,
    character_run,
    paragraph_run,
)

tc = unittest.TestCase()

RICH_STYLE = (
    paragraph_run(83)
    + character_run(30, 0x0001, struct.pack("<H", CHAR_FLAG_BOLD))
    + character_run(28, 0x00040002, struct.pack("<HI", 0x0002, BLUE))
    + character_run(25, 0x00040000, struct.pack("<I", 0xFE0000FF))
)


def _coverage(collection) -> list[int]:
    return [entry.characters_covered for entry in collection]


def test_tables_are_read_against_the_text_size() -> None:
    atom = StyleTextPropAtom(RICH_STYLE)

    atom.set_parent_text_size(len("".join(RICH_RUNS)))

    tc.assertTrue(atom.initialised)
    tc.assertEqual([83], _coverage(atom.paragraph_styles))
    tc.assertEqual([30, 28, 25], _coverage(atom.character_styles))
    tc.assertEqual(BLUE, atom.character_styles.entries[1].get("font_color"))


def test_rewritten_payload_is_identical() -> None:
    atom = StyleTextPropAtom(RICH_STYLE)
    atom.set_parent_text_size(82)

    atom.update_payload()

    tc.assertEqual(RICH_STYLE, atom.payload)


def test_unknown_bits_and_trailing_bytes_are_kept() -> None:
    payload = paragraph_run(6, 2, 0x40000000) + character_run(6) + b"\x00\x00"
    atom = StyleTextPropAtom(payload)
    atom.set_parent_text_size(5)

    tc.assertEqual(2, atom.paragraph_styles.first.indent_level)
    atom.update_payload()

    tc.assertEqual(payload, atom.payload)


def test_tables_are_unavailable_before_the_text_size_is_known() -> None:
    atom = StyleTextPropAtom(RICH_STYLE)

    with pytest.raises(SlideTextError):
        atom.paragraph_styles
    with pytest.raises(SlideTextError):
        atom.update_payload()


def test_truncated_table_is_corrupt() -> None:
    atom = StyleTextPropAtom(b"\x06\x00\x00")

    with pytest.raises(CorruptRecordError):
        atom.set_parent_text_size(5)


def test_short_table_logs_and_carries_on(caplog) -> None:
    payload = paragraph_run(27) + paragraph_run(8, indent=1)
    atom = StyleTextPropAtom(payload)

    with caplog.at_level(logging.WARNING, logger="slidetext.records.style_atom"):
        atom.set_parent_text_size(len(INDENT_BODY))

    tc.assertEqual([27, 8], _coverage(atom.paragraph_styles))
    tc.assertEqual(0, len(atom.character_styles))
    tc.assertIn("paragraph style runs", caplog.text)


def test_new_tables_are_written_from_scratch() -> None:
    atom = StyleTextPropAtom()
    atom.add_paragraph_style(4).indent_level = 1
    atom.add_character_style(4).set("font_size", 20)

    atom.update_payload()

    tc.assertEqual(
        paragraph_run(4, indent=1) + character_run(4, 0x00020000, struct.pack("<H", 20)),
        atom.payload,
    )


def test_clear_styles_empties_both_tables() -> None:
    atom = StyleTextPropAtom(RICH_STYLE)
    atom.set_parent_text_size(82)

    atom.clear_styles()
    atom.update_payload()

    tc.assertEqual(b"", atom.payload)


def test_empty_text_still_reads_the_terminator_entries() -> None:
    payload = paragraph_run(1, indent=2) + character_run(1, 0x0001, struct.pack("<H", CHAR_FLAG_BOLD))
    atom = StyleTextPropAtom(payload)

    atom.set_parent_text_size(0)

    tc.assertEqual([1], _coverage(atom.paragraph_styles))
    tc.assertEqual(2, atom.paragraph_styles.first.indent_level)
    tc.assertEqual([1], _coverage(atom.character_styles))
    tc.assertTrue(atom.character_styles.first.get_flag("char_flags", CHAR_FLAG_BOLD))
    tc.assertEqual(b"", atom._reserved)
    atom.update_payload()
    tc.assertEqual(payload, atom.payload)
