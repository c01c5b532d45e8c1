import logging
import struct
from dataclasses import dataclass

from slidetext.exceptions import CorruptRecordError
from slidetext.records.record import Atom, register_atom
from slidetext.records.record_types import RT_TEXT_SPEC_INFO_ATOM

logger = logging.getLogger(__name__)

# TextSIException mask bits and the size of the field each one switches on
_SI_FIELDS = (
    (0x0001, 2),  # spellInfo
    (0x0002, 2),  # lid
    (0x0004, 2),  # altLid
    (0x0040, 2),  # bidi
    (0x0020, 4),  # pp10runid, grammarError
)
_SI_SMART_TAGS = 0x0200


@dataclass
class TextSpecInfoRun:
    length: int
    mask: int
    body: bytes = b""

    def to_bytes(self) -> bytes:
        return struct.pack("<II", self.length, self.mask) + self.body


@register_atom(RT_TEXT_SPEC_INFO_ATOM)
class TextSpecInfoAtom(Atom):
    """
    Language and spelling runs of a text block.

    PowerPoint refuses files where these runs do not cover the text, so
    every text edit has to call ``set_parent_size``.
    """

    def __init__(self, payload: bytes = b"", *, version: int = 0, instance: int = 0):
        super().__init__(
            RT_TEXT_SPEC_INFO_ATOM, payload, version=version, instance=instance
        )

    def get_runs(self) -> list[TextSpecInfoRun]:
        data = self.payload
        runs = []
        pos = 0
        try:
            while pos < len(data):
                length, mask = struct.unpack_from("<II", data, pos)
                start = pos + 8
                end = start
                for bit, size in _SI_FIELDS:
                    if mask & bit:
                        end += size
                if mask & _SI_SMART_TAGS:
                    (count,) = struct.unpack_from("<I", data, end)
                    end += 4 + 4 * count
                if end > len(data):
                    raise CorruptRecordError(
                        f"TextSpecInfoAtom run at byte {pos} overruns the record"
                    )
                runs.append(TextSpecInfoRun(length, mask, data[start:end]))
                pos = end
        except struct.error as exc:
            raise CorruptRecordError(
                "TextSpecInfoAtom truncated", cause=exc
            ) from exc
        return runs

    @property
    def characters_covered(self) -> int:
        return sum(run.length for run in self.get_runs())

    def set_parent_size(self, size: int) -> None:
        """Trim or stretch the runs so they cover exactly ``size`` characters."""
        runs = self.get_runs()
        if not runs:
            self.payload = TextSpecInfoRun(size, 0).to_bytes()
            return

        kept = []
        covered = 0
        for idx, run in enumerate(runs):
            if covered >= size:
                break
            if covered + run.length > size or idx == len(runs) - 1:
                run.length = size - covered
            covered += run.length
            kept.append(run)

        if not kept:
            runs[0].length = size
            kept = [runs[0]]

        logger.debug("Resized text spec info to %d characters", size)
        self.payload = b"".join(run.to_bytes() for run in kept)
