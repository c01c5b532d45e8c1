class SlideTextError(Exception):
    """Base class for all errors raised by slidetext."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Slide text processing failed"
        super().__init__(message)
        # Use exception chaining if cause is provided
        self.__cause__ = cause


class CorruptRecordError(SlideTextError):
    """Raised when a record header does not agree with the bytes around it."""

    def __init__(
        self,
        message: str = None,
        *,
        offset: int | None = None,
        cause: Exception = None,
    ):
        self.offset = offset
        if message is None:
            message = "Corrupt record"
        if offset is not None:
            message = f"{message} [offset {offset}]"
        super().__init__(message, cause=cause)


class OutOfRangeError(SlideTextError, IndexError):
    """Raised when a style lookup goes past the characters a table covers."""

    def __init__(self, offset: int, covered: int, message: str = None):
        self.offset = offset
        self.covered = covered
        if message is None:
            message = f"Offset {offset} is outside the {covered} characters covered"
        super().__init__(message)


class LegacyMicrosoftParsingError(SlideTextError):
    """Raised when a file is not a readable legacy PowerPoint container."""

    def __init__(self, message: str = None, *, cause: Exception = None):
        if message is None:
            message = "Failed to parse legacy PowerPoint file"
        super().__init__(message, cause=cause)
