import struct

from slidetext.records.record import Atom, register_atom
from slidetext.records.record_types import RT_SLIDE_PERSIST_ATOM

_PERSIST = struct.Struct("<IIiI")


@register_atom(RT_SLIDE_PERSIST_ATOM)
class SlidePersistAtom(Atom):
    """Opens the text of one slide inside a SlideListWithText."""

    def __init__(self, payload: bytes = None, *, version: int = 0, instance: int = 0):
        if payload is None:
            payload = bytes(20)
        super().__init__(RT_SLIDE_PERSIST_ATOM, payload, version=version, instance=instance)

    def _field(self, idx: int) -> int | None:
        if len(self.payload) < _PERSIST.size:
            return None
        return _PERSIST.unpack_from(self.payload, 0)[idx]

    @property
    def persist_id(self) -> int | None:
        return self._field(0)

    @property
    def number_of_texts(self) -> int | None:
        return self._field(2)

    @property
    def slide_id(self) -> int | None:
        return self._field(3)
