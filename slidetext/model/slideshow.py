"""
Legacy PowerPoint (.ppt) slide show access.

A .ppt file is an OLE compound document. The slide text lives in the
"PowerPoint Document" stream as a tree of records; this module opens the
container with olefile, parses the stream into a RecordTree and groups the
text blocks by slide.

Where the text of a slide lives:
    - SlideListWithText (instance 0) in the DocumentContainer holds a
      SlidePersistAtom per slide followed by that slide's outline text
    - text boxes drawn on the slide keep their atoms in ClientTextbox
      records inside the slide's own SlideContainer

Only the stream is re-serialized (``to_stream_bytes``); writing a complete
OLE file back is left to the caller.

Dependencies:
    olefile: https://github.com/decalage2/olefile
        pip install olefile
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Generator

import olefile

from slidetext.config import (
    DEFAULT_PARSE_LIMITS,
    DEFAULT_TEXT_DEFAULTS,
    ParseLimits,
    TextDefaults,
)
from slidetext.exceptions import LegacyMicrosoftParsingError
from slidetext.model.paragraph import TextBlock, TextParagraph
from slidetext.records.fonts import FontCollection
from slidetext.records.record import Container, RecordTree, parse_records
from slidetext.records.record_types import (
    RT_CLIENT_TEXTBOX,
    RT_DOCUMENT_CONTAINER,
    RT_ENVIRONMENT,
    RT_FONT_COLLECTION,
    RT_SLIDE_CONTAINER,
    RT_SLIDE_LIST_WITH_TEXT,
    SLIDE_LIST_SLIDES,
)
from slidetext.records.slide_atoms import SlidePersistAtom
from slidetext.records.text_atoms import TextHeaderAtom

logger = logging.getLogger(__name__)

PPT_DOCUMENT_STREAM = "PowerPoint Document"


@dataclass
class PptMetadata:
    """Metadata from the OLE SummaryInformation stream and the file path."""

    title: str = ""
    subject: str = ""
    author: str = ""
    keywords: str = ""
    comments: str = ""
    last_saved_by: str = ""
    created: str = ""
    modified: str = ""
    revision_number: str = ""
    category: str = ""
    company: str = ""
    manager: str = ""
    creating_application: str = ""
    num_slides: int = 0
    num_notes: int = 0
    num_hidden_slides: int = 0
    filename: str | None = None
    file_extension: str | None = None
    file_path: str | None = None
    folder_path: str | None = None

    def populate_from_path(self, path: str | Path | None) -> None:
        if path is None:
            return
        p = Path(path)
        self.filename = p.name
        self.file_extension = p.suffix
        self.file_path = str(p.resolve()) if p.exists() else str(p)
        self.folder_path = (
            str(p.parent.resolve()) if p.parent.exists() else str(p.parent)
        )

    def to_dict(self) -> dict:
        return asdict(self)


class Slide:
    def __init__(self, slide_number: int, persist: SlidePersistAtom | None = None):
        self.slide_number = slide_number
        self.persist = persist
        self.text_blocks: list[TextBlock] = []

    def get_text_paragraphs(self) -> list[list[TextParagraph]]:
        """One paragraph list per text block, outline text first."""
        return [block.get_paragraphs() for block in self.text_blocks]

    def get_text(self) -> list[str]:
        return [
            "".join(paragraph.get_text() for paragraph in paragraphs)
            for paragraphs in self.get_text_paragraphs()
        ]

    def __repr__(self) -> str:
        return f"Slide({self.slide_number}, blocks={len(self.text_blocks)})"


class SlideShow:
    """The record tree of a "PowerPoint Document" stream, viewed as slides."""

    def __init__(
        self,
        records: RecordTree,
        *,
        text_defaults: TextDefaults = DEFAULT_TEXT_DEFAULTS,
    ):
        self.records = records
        self.text_defaults = text_defaults
        self.metadata = PptMetadata()
        self.document = records.find_first_of_type(RT_DOCUMENT_CONTAINER)
        self.fonts = self._find_fonts()
        self.slides = self._build_slides()
        logger.info(
            "Loaded slide show with %d slides and %d fonts",
            len(self.slides),
            len(self.fonts) if self.fonts is not None else 0,
        )

    @classmethod
    def from_stream_bytes(
        cls,
        data: bytes,
        *,
        limits: ParseLimits = DEFAULT_PARSE_LIMITS,
        text_defaults: TextDefaults = DEFAULT_TEXT_DEFAULTS,
    ) -> "SlideShow":
        return cls(parse_records(data, limits=limits), text_defaults=text_defaults)

    def to_stream_bytes(self) -> bytes:
        return self.records.to_bytes()

    def _find_fonts(self) -> FontCollection | None:
        if not isinstance(self.document, Container):
            return None
        environment = self.document.find_first_of_type(RT_ENVIRONMENT)
        if not isinstance(environment, Container):
            return None
        collection = environment.find_first_of_type(RT_FONT_COLLECTION)
        if not isinstance(collection, Container):
            return None
        return FontCollection(collection)

    def _new_block(self, container: Container, header: TextHeaderAtom) -> TextBlock:
        return TextBlock(
            container, header, fonts=self.fonts, text_defaults=self.text_defaults
        )

    def _build_slides(self) -> list[Slide]:
        slides: list[Slide] = []
        if not isinstance(self.document, Container):
            logger.debug("No DocumentContainer in stream, no slides")
            return slides

        for slide_list in self.document.find_children_by_type(RT_SLIDE_LIST_WITH_TEXT):
            if slide_list.instance != SLIDE_LIST_SLIDES or not isinstance(
                slide_list, Container
            ):
                continue
            current = None
            for child in slide_list.children:
                if isinstance(child, SlidePersistAtom):
                    current = Slide(len(slides) + 1, child)
                    slides.append(current)
                elif isinstance(child, TextHeaderAtom):
                    if current is None:
                        logger.debug("Text header before any slide, skipped")
                        continue
                    current.text_blocks.append(self._new_block(slide_list, child))

        slide_containers = [
            record
            for record in self.records
            if record.type_code == RT_SLIDE_CONTAINER and isinstance(record, Container)
        ]
        for idx, slide_container in enumerate(slide_containers):
            if idx >= len(slides):
                slides.append(Slide(len(slides) + 1))
            for record in slide_container.walk():
                if record.type_code != RT_CLIENT_TEXTBOX or not isinstance(
                    record, Container
                ):
                    continue
                for child in record.children:
                    if isinstance(child, TextHeaderAtom):
                        slides[idx].text_blocks.append(self._new_block(record, child))

        return slides

    @property
    def text_blocks(self) -> list[TextBlock]:
        return [block for slide in self.slides for block in slide.text_blocks]


def read_ppt(
    file_like: BinaryIO,
    path: str | None = None,
    *,
    limits: ParseLimits = DEFAULT_PARSE_LIMITS,
    text_defaults: TextDefaults = DEFAULT_TEXT_DEFAULTS,
) -> Generator[SlideShow, Any, None]:
    """
    Open a legacy PowerPoint file.

    A generator for symmetry with the other readers, even though a file holds
    exactly one presentation.

    Args:
        file_like: File-like object with the complete .ppt data. The stream
            position is reset before reading.
        path: Optional filesystem path, used to fill the file fields of
            the metadata.

    Yields:
        SlideShow: The parsed "PowerPoint Document" stream with metadata.

    Raises:
        LegacyMicrosoftParsingError: If the data is not an OLE file or has no
            "PowerPoint Document" stream.
        CorruptRecordError: If the stream's records are malformed.

    Example:
        >>> import io
        >>> with open("slides.ppt", "rb") as f:
        ...     for show in read_ppt(io.BytesIO(f.read()), path="slides.ppt"):
        ...         for slide in show.slides:
        ...             print(slide.slide_number, slide.get_text())
    """
    file_like.seek(0)
    if not olefile.isOleFile(file_like):
        raise LegacyMicrosoftParsingError(
            message="Not a valid OLE file (legacy PowerPoint format)"
        )
    file_like.seek(0)

    with olefile.OleFileIO(file_like) as ole:
        metadata = _extract_metadata(ole)
        if not ole.exists(PPT_DOCUMENT_STREAM):
            raise LegacyMicrosoftParsingError(
                message="No 'PowerPoint Document' stream found - may not be a valid PPT file"
            )
        stream_data = ole.openstream(PPT_DOCUMENT_STREAM).read()

    show = SlideShow.from_stream_bytes(
        stream_data, limits=limits, text_defaults=text_defaults
    )
    show.metadata = metadata
    show.metadata.populate_from_path(path)
    yield show


def _extract_metadata(ole: olefile.OleFileIO) -> PptMetadata:
    """
    Read the SummaryInformation properties.

    Missing or unreadable properties are left empty; the failure is logged.
    """
    result = PptMetadata()

    try:
        meta = ole.get_metadata()

        def decode_if_bytes(value) -> str:
            if isinstance(value, bytes):
                return value.decode("utf-8", errors="replace")
            return str(value) if value else ""

        for name in (
            "title",
            "subject",
            "author",
            "keywords",
            "comments",
            "last_saved_by",
            "revision_number",
            "category",
            "company",
            "manager",
            "creating_application",
        ):
            setattr(result, name, decode_if_bytes(getattr(meta, name, None)))

        create_time = getattr(meta, "create_time", None)
        if isinstance(create_time, datetime):
            result.created = create_time.isoformat()

        last_saved_time = getattr(meta, "last_saved_time", None)
        if isinstance(last_saved_time, datetime):
            result.modified = last_saved_time.isoformat()

        for attr, field_name in (
            ("slides", "num_slides"),
            ("notes", "num_notes"),
            ("hidden_slides", "num_hidden_slides"),
        ):
            value = getattr(meta, attr, None)
            if value is not None:
                setattr(result, field_name, int(value))

    except Exception as e:
        logger.debug(e)

    return result
