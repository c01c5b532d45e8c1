# =============================================================================
# PPT Record Type Constants (from MS-PPT specification)
# =============================================================================

# Text atom records - these contain actual text content
RT_TEXT_CHARS_ATOM = 0x0FA0  # Unicode text (UTF-16LE encoded)
RT_TEXT_BYTES_ATOM = 0x0FA8  # ASCII/ANSI text (Latin-1 encoded)
RT_CSTRING = 0x0FBA  # Unicode string (used for titles and other strings)

# Text context record - indicates what type of text follows
RT_TEXT_HEADER_ATOM = 0x0F9F  # Contains text type (title, body, notes, etc.)

# Container record types - these are parent records that contain child records
RT_DOCUMENT_CONTAINER = 0x03E8  # Root container for entire document
RT_SLIDE_CONTAINER = 0x03EE  # Container for a single slide
RT_NOTES_CONTAINER = 0x03F0  # Container for speaker notes
RT_ENVIRONMENT = 0x03F2  # Document-wide defaults (fonts, text styles)
RT_MAIN_MASTER_CONTAINER = 0x03F8  # Container for master slide template

# Slide list containers - primary source for ordered slide text
RT_SLIDE_LIST_WITH_TEXT = 0x0FF0  # Contains all slide text in order
RT_SLIDE_PERSIST_ATOM = 0x03F3  # Marks slide boundaries within SlideListWithText

# Drawing containers - may contain text in shapes
RT_PP_DRAWING = 0x040C  # Drawing object container
RT_CLIENT_TEXTBOX = 0xF00D  # Escher client textbox holding a shape's text atoms

# Text formatting and styling records
RT_STYLE_TEXT_PROP_ATOM = 0x0FA1  # Paragraph and character style runs
RT_MASTER_TEXT_PROP_ATOM = 0x0FA2  # Indent levels for master text
RT_TEXT_RULER_ATOM = 0x0FA6  # Text ruler/formatting rules
RT_TEXT_SPEC_INFO_ATOM = 0x0FAA  # Text special info (language, spelling)
RT_TEXT_INTERACTIVE_INFO_ATOM = 0x0FDF  # Hyperlink info

# Outline text reference
RT_OUTLINE_TEXT_REF_ATOM = 0x0F9E  # Reference to outline text

# Fonts
RT_FONT_COLLECTION = 0x07D5  # Holds one FontEntityAtom per font in the deck
RT_FONT_ENTITY_ATOM = 0x0FB7  # A single font face, instance is its index

# A record whose version nibble is 0xF holds child records instead of data
CONTAINER_VERSION = 0x0F

# SlideListWithText instances
SLIDE_LIST_SLIDES = 0
SLIDE_LIST_MASTERS = 1
SLIDE_LIST_NOTES = 2

# Text placeholder types (from TextHeaderAtom)
TEXT_TYPE_TITLE = 0  # Title
TEXT_TYPE_BODY = 1  # Body
TEXT_TYPE_NOTES = 2  # Notes
TEXT_TYPE_OTHER = 4  # Other (not title/body/notes)
TEXT_TYPE_CENTER_BODY = 5  # Center body (subtitle)
TEXT_TYPE_CENTER_TITLE = 6  # Center title
TEXT_TYPE_HALF_BODY = 7  # Half body
TEXT_TYPE_QUARTER_BODY = 8  # Quarter body
