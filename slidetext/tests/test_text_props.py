import struct
import unittest

import pytest

from slidetext.exceptions import CorruptRecordError, OutOfRangeError
from slidetext.model.text_props import (
    CHAR_FLAG_BOLD,
    CHAR_FLAG_ITALIC,
    CHAR_FLAG_UNDERLINE,
    StyleEntry,
    StylePropertyCollection,
    StyleScope,
    find_prop_def,
    read_properties,
    write_properties,
)

tc = unittest.TestCase()


def _collection(*coverage: int) -> StylePropertyCollection:
    collection = StylePropertyCollection(StyleScope.CHARACTER)
    for idx, covered in enumerate(coverage):
        collection.add_entry(covered).set("font_size", 10 + idx)
    return collection


def test_properties_at_finds_entry_by_character_offset() -> None:
    collection = _collection(5, 3)

    tc.assertEqual(10, collection.properties_at(0).get("font_size"))
    tc.assertEqual(10, collection.properties_at(4).get("font_size"))
    tc.assertEqual(11, collection.properties_at(5).get("font_size"))
    tc.assertEqual(11, collection.properties_at(7).get("font_size"))


def test_properties_at_outside_coverage_raises() -> None:
    collection = _collection(5, 3)

    with pytest.raises(OutOfRangeError):
        collection.properties_at(8)
    with pytest.raises(IndexError):
        collection.properties_at(-1)
    with pytest.raises(OutOfRangeError):
        StylePropertyCollection(StyleScope.PARAGRAPH).first


def test_split_at_cuts_one_entry_into_identical_halves() -> None:
    collection = _collection(5, 3)

    collection.split_at(2)

    tc.assertEqual([2, 3, 3], [entry.characters_covered for entry in collection])
    tc.assertTrue(collection.entries[0].same_style(collection.entries[1]))
    tc.assertIsNot(collection.entries[0].properties, collection.entries[1].properties)


def test_split_at_boundaries_is_a_no_op() -> None:
    collection = _collection(5, 3)

    collection.split_at(0)
    collection.split_at(5)
    collection.split_at(8)

    tc.assertEqual([5, 3], [entry.characters_covered for entry in collection])
    with pytest.raises(OutOfRangeError):
        collection.split_at(9)


def test_resize_touches_only_the_containing_entry() -> None:
    collection = _collection(5, 3)

    collection.resize(4, at_offset=6)
    tc.assertEqual([5, 7], [entry.characters_covered for entry in collection])

    collection.resize(-2, at_offset=1)
    tc.assertEqual([3, 7], [entry.characters_covered for entry in collection])

    collection.resize(1, at_offset=collection.total_covered)
    tc.assertEqual([3, 8], [entry.characters_covered for entry in collection])


def test_resize_cannot_go_negative_or_out_of_range() -> None:
    collection = _collection(5, 3)

    with pytest.raises(OutOfRangeError):
        collection.resize(-6, at_offset=0)
    with pytest.raises(OutOfRangeError):
        collection.resize(1, at_offset=9)
    tc.assertEqual([5, 3], [entry.characters_covered for entry in collection])


def test_same_style_ignores_coverage_but_not_indent() -> None:
    left = StyleEntry(3, scope=StyleScope.PARAGRAPH)
    right = left.copy(40)

    tc.assertTrue(left.same_style(right))
    tc.assertFalse(left.same_style(None))

    right.indent_level = 1
    tc.assertFalse(left.same_style(right))


def test_collection_equality_is_structural() -> None:
    first = _collection(5, 3)
    second = _collection(1, 1)
    second.group_id = 7

    tc.assertEqual(first, second)
    second.entries[1].set("font_size", 99)
    tc.assertNotEqual(first, second)
    tc.assertEqual(first, first.copy())


def test_flags_are_tracked_per_bit() -> None:
    entry = StyleEntry(1)

    tc.assertIsNone(entry.get_flag("char_flags", CHAR_FLAG_BOLD))
    entry.set_flag("char_flags", CHAR_FLAG_BOLD, True)
    entry.set_flag("char_flags", CHAR_FLAG_ITALIC, False)

    tc.assertTrue(entry.get_flag("char_flags", CHAR_FLAG_BOLD))
    tc.assertFalse(entry.get_flag("char_flags", CHAR_FLAG_ITALIC))
    tc.assertIsNone(entry.get_flag("char_flags", CHAR_FLAG_UNDERLINE))
    tc.assertEqual(0x0003, entry.mask)
    with pytest.raises(ValueError):
        entry.set("char_flags", 1)
    with pytest.raises(KeyError):
        find_prop_def(StyleScope.CHARACTER, "no_such_property")


def test_character_properties_read_and_write_back() -> None:
    mask = 0x0003 | 0x00020000 | 0x00040000
    values = struct.pack("<HHI", CHAR_FLAG_BOLD, 24, 0xFE0000FF)
    entry = StyleEntry(10, scope=StyleScope.CHARACTER)

    consumed = read_properties(entry, mask, values + b"\xff", 0)

    tc.assertEqual(len(values), consumed)
    tc.assertEqual(24, entry.get("font_size"))
    tc.assertTrue(entry.get_flag("char_flags", CHAR_FLAG_BOLD))
    tc.assertFalse(entry.get_flag("char_flags", CHAR_FLAG_ITALIC))
    tc.assertEqual(mask, entry.mask)
    tc.assertEqual(values, write_properties(entry))


def test_tab_stops_and_unknown_bits_survive() -> None:
    mask = 0x00100000 | 0x40000000
    values = struct.pack("<HHHHH", 2, 100, 0, 200, 1)
    entry = StyleEntry(4, scope=StyleScope.PARAGRAPH)

    consumed = read_properties(entry, mask, values, 0)

    tc.assertEqual(10, consumed)
    tc.assertEqual(((100, 0), (200, 1)), entry.get("tab_stops"))
    tc.assertEqual(0x40000000, entry.unknown_mask)
    tc.assertEqual(mask, entry.mask)
    tc.assertEqual(values, write_properties(entry))


def test_truncated_property_values_are_corrupt() -> None:
    entry = StyleEntry(1, scope=StyleScope.CHARACTER)
    with pytest.raises(CorruptRecordError, match="font_size"):
        read_properties(entry, 0x00020000, b"\x01", 0)
