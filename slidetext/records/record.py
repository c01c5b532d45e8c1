"""
Record Tree
===========

The "PowerPoint Document" stream is a sequence of records, each with an
8-byte header:
    - Bytes 0-1: Version (low 4 bits) and instance (high 12 bits)
    - Bytes 2-3: Record type (identifies what the record contains)
    - Bytes 4-7: Record length (not including header)

A record whose version nibble is 0xF is a container: its body is itself a
sequence of records. Every other record is an atom holding opaque bytes.

Parsing is strict. A header that claims more bytes than are left, a
container whose children do not fill it exactly, or a truncated header all
raise CorruptRecordError; nothing is skipped or guessed at. Record types
without a dedicated class survive as plain Atom/Container objects, so
``parse_records(data).to_bytes() == data`` for any well-formed stream.

Records never hold a reference to their parent. Code that needs to swap a
record (e.g. when a text atom changes encoding) keeps the container and
uses ``replace_child``.
"""

from __future__ import annotations

import logging
import struct
from typing import Iterator

from slidetext.config import DEFAULT_PARSE_LIMITS, ParseLimits
from slidetext.exceptions import CorruptRecordError
from slidetext.records.record_types import CONTAINER_VERSION

logger = logging.getLogger(__name__)

HEADER = struct.Struct("<HHI")
HEADER_SIZE = HEADER.size

# Registry mapping record types to their Atom subclasses (see register_atom)
_ATOM_TYPES: dict[int, type["Atom"]] = {}


def register_atom(type_code: int):
    """Class decorator binding an Atom subclass to a record type."""

    def decorator(cls):
        cls.TYPE_CODE = type_code
        _ATOM_TYPES[type_code] = cls
        return cls

    return decorator


class Record:
    """A node in the record tree."""

    is_container = False

    def __init__(self, type_code: int, *, version: int = 0, instance: int = 0):
        self.type_code = type_code
        self.version = version
        self.instance = instance

    @property
    def length(self) -> int:
        """Length written into the header (body only)."""
        raise NotImplementedError

    def _header_bytes(self, length: int) -> bytes:
        ver_instance = (self.version & 0x0F) | ((self.instance & 0x0FFF) << 4)
        return HEADER.pack(ver_instance, self.type_code, length)

    def to_bytes(self) -> bytes:
        raise NotImplementedError

    def walk(self) -> Iterator["Record"]:
        yield self

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(type=0x{self.type_code:04X}, "
            f"instance={self.instance}, length={self.length})"
        )


class Atom(Record):
    """Leaf record carrying raw bytes."""

    def __init__(
        self,
        type_code: int,
        payload: bytes = b"",
        *,
        version: int = 0,
        instance: int = 0,
    ):
        super().__init__(type_code, version=version, instance=instance)
        self._payload = bytes(payload)

    @property
    def payload(self) -> bytes:
        return self._payload

    @payload.setter
    def payload(self, value: bytes) -> None:
        self._payload = bytes(value)

    @property
    def length(self) -> int:
        return len(self.payload)

    def to_bytes(self) -> bytes:
        payload = self.payload
        return self._header_bytes(len(payload)) + payload


class Container(Record):
    """Record whose body is an ordered list of child records."""

    is_container = True

    def __init__(
        self,
        type_code: int,
        children: list[Record] | None = None,
        *,
        instance: int = 0,
    ):
        super().__init__(type_code, version=CONTAINER_VERSION, instance=instance)
        self.children: list[Record] = list(children or [])

    @property
    def length(self) -> int:
        return sum(HEADER_SIZE + child.length for child in self.children)

    def to_bytes(self) -> bytes:
        body = b"".join(child.to_bytes() for child in self.children)
        return self._header_bytes(len(body)) + body

    def walk(self) -> Iterator[Record]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find_children_by_type(self, type_code: int) -> list[Record]:
        return [child for child in self.children if child.type_code == type_code]

    def find_first_of_type(self, type_code: int) -> Record | None:
        for child in self.children:
            if child.type_code == type_code:
                return child
        return None

    def index_of(self, child: Record) -> int:
        """Position of ``child`` by identity; ValueError when absent."""
        for idx, candidate in enumerate(self.children):
            if candidate is child:
                return idx
        raise ValueError(f"{child!r} is not a child of {self!r}")

    def replace_child(self, old: Record, new: Record) -> None:
        self.children[self.index_of(old)] = new

    def add_child_after(self, new: Record, anchor: Record) -> None:
        self.children.insert(self.index_of(anchor) + 1, new)

    def append_child(self, new: Record) -> None:
        self.children.append(new)


class RecordTree:
    """The top-level records of a stream."""

    def __init__(self, records: list[Record] | None = None):
        self.records: list[Record] = list(records or [])

    def to_bytes(self) -> bytes:
        return b"".join(record.to_bytes() for record in self.records)

    serialize = to_bytes

    def walk(self) -> Iterator[Record]:
        for record in self.records:
            yield from record.walk()

    def find_children_by_type(self, type_code: int) -> list[Record]:
        return [record for record in self.records if record.type_code == type_code]

    def find_first_of_type(self, type_code: int) -> Record | None:
        for record in self.records:
            if record.type_code == type_code:
                return record
        return None

    def replace_child(self, old: Record, new: Record) -> None:
        for idx, candidate in enumerate(self.records):
            if candidate is old:
                self.records[idx] = new
                return
        raise ValueError(f"{old!r} is not a top-level record")

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)


def create_atom(
    type_code: int, payload: bytes, *, version: int = 0, instance: int = 0
) -> Atom:
    """Build the typed Atom for ``type_code``, or an opaque one."""
    cls = _ATOM_TYPES.get(type_code)
    if cls is None:
        return Atom(type_code, payload, version=version, instance=instance)
    return cls(payload, version=version, instance=instance)


def parse_records(
    data: bytes, *, limits: ParseLimits = DEFAULT_PARSE_LIMITS
) -> RecordTree:
    """
    Parse a buffer holding a sequence of records.

    Args:
        data: Raw bytes, e.g. the "PowerPoint Document" stream.
        limits: Nesting depth and record count bounds.

    Returns:
        RecordTree with the top-level records in stream order.

    Raises:
        CorruptRecordError: If any header disagrees with the buffer.
    """
    counter = [0]
    records = _parse_span(bytes(data), 0, len(data), 0, limits, counter)
    logger.debug("Parsed %d records from %d bytes", counter[0], len(data))
    return RecordTree(records)


def _parse_span(
    data: bytes,
    start: int,
    end: int,
    depth: int,
    limits: ParseLimits,
    counter: list[int],
) -> list[Record]:
    records: list[Record] = []
    offset = start

    while offset < end:
        if end - offset < HEADER_SIZE:
            raise CorruptRecordError(
                f"Truncated record header ({end - offset} bytes left)",
                offset=offset,
            )

        ver_instance, rec_type, rec_len = HEADER.unpack_from(data, offset)
        body_start = offset + HEADER_SIZE

        if rec_len > end - body_start:
            raise CorruptRecordError(
                f"Record 0x{rec_type:04X} declares {rec_len} bytes "
                f"but only {end - body_start} remain",
                offset=offset,
            )

        counter[0] += 1
        if counter[0] > limits.max_records:
            raise CorruptRecordError(
                f"Too many records ({counter[0]} > {limits.max_records})",
                offset=offset,
            )

        rec_ver = ver_instance & 0x0F
        rec_instance = (ver_instance >> 4) & 0x0FFF
        body_end = body_start + rec_len

        if rec_ver == CONTAINER_VERSION:
            if depth >= limits.max_depth:
                raise CorruptRecordError(
                    f"Containers nested deeper than {limits.max_depth}",
                    offset=offset,
                )
            children = _parse_span(data, body_start, body_end, depth + 1, limits, counter)
            record: Record = Container(rec_type, children, instance=rec_instance)
        else:
            record = create_atom(
                rec_type,
                data[body_start:body_end],
                version=rec_ver,
                instance=rec_instance,
            )

        records.append(record)
        offset = body_end

    return records
