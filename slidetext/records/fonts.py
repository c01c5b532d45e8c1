import logging
import struct

from slidetext.records.record import Atom, Container, register_atom
from slidetext.records.record_types import RT_FONT_COLLECTION, RT_FONT_ENTITY_ATOM

logger = logging.getLogger(__name__)

FACE_NAME_BYTES = 64
FONT_ENTITY_SIZE = 68

# Defaults PowerPoint writes for a TrueType font added by hand
DEFAULT_CHARSET = 0
DEFAULT_FLAGS = 0
DEFAULT_FONT_TYPE = 4
DEFAULT_PITCH_AND_FAMILY = 34


@register_atom(RT_FONT_ENTITY_ATOM)
class FontEntityAtom(Atom):
    """A font face; the record instance is the index runs refer to."""

    def __init__(self, payload: bytes = None, *, version: int = 0, instance: int = 0):
        if payload is None:
            payload = bytes(FONT_ENTITY_SIZE)
        super().__init__(RT_FONT_ENTITY_ATOM, payload, version=version, instance=instance)

    @property
    def font_name(self) -> str:
        raw = self.payload[:FACE_NAME_BYTES].decode("utf-16-le", errors="replace")
        return raw.split("\x00", 1)[0]

    @font_name.setter
    def font_name(self, name: str) -> None:
        encoded = name.encode("utf-16-le")
        if len(encoded) >= FACE_NAME_BYTES:
            raise ValueError(f"Font name too long: {name!r}")
        face = encoded.ljust(FACE_NAME_BYTES, b"\x00")
        tail = self.payload[FACE_NAME_BYTES:].ljust(FONT_ENTITY_SIZE - FACE_NAME_BYTES, b"\x00")
        self.payload = face + tail

    @classmethod
    def create(cls, name: str, index: int) -> "FontEntityAtom":
        atom = cls(instance=index)
        atom.font_name = name
        atom.payload = atom.payload[:FACE_NAME_BYTES] + struct.pack(
            "<BBBB",
            DEFAULT_CHARSET,
            DEFAULT_FLAGS,
            DEFAULT_FONT_TYPE,
            DEFAULT_PITCH_AND_FAMILY,
        )
        return atom


class FontCollection:
    """View over the FontCollection container of the document environment."""

    def __init__(self, container: Container | None = None):
        if container is None:
            container = Container(RT_FONT_COLLECTION)
        self.container = container

    @property
    def fonts(self) -> list[FontEntityAtom]:
        return [
            child
            for child in self.container.children
            if isinstance(child, FontEntityAtom)
        ]

    def get_font_name(self, index: int) -> str | None:
        fonts = self.fonts
        for atom in fonts:
            if atom.instance == index:
                return atom.font_name
        if 0 <= index < len(fonts):
            return fonts[index].font_name
        logger.debug("Font index %d not present in font collection", index)
        return None

    def get_font_index(self, name: str) -> int | None:
        for atom in self.fonts:
            if atom.font_name == name:
                return atom.instance
        return None

    def add_font(self, name: str) -> int:
        """Index of ``name``, registering the font when it is new."""
        index = self.get_font_index(name)
        if index is not None:
            return index
        index = max((atom.instance for atom in self.fonts), default=-1) + 1
        self.container.append_child(FontEntityAtom.create(name, index))
        logger.debug("Added font %r at index %d", name, index)
        return index

    def __len__(self) -> int:
        return len(self.fonts)
