"""
Exception hierarchy for the note graph engine
"""

from typing import Optional


class NoteGraphError(Exception):
    """Base class for all notegraph errors."""


class FormatError(NoteGraphError, ValueError):
    """A note record could not be decoded."""

    def __init__(self, message: str, source: Optional[str] = None, line: Optional[int] = None):
        self.message = message
        self.source = source
        self.line = line
        location = ""
        if source is not None:
            location = f"{source}:{line}: " if line is not None else f"{source}: "
        elif line is not None:
            location = f"line {line}: "
        super().__init__(f"{location}{message}")


class IndexBuildError(NoteGraphError):
    """The graph could not be built consistently. Fatal to the whole build."""


class DuplicateNoteError(IndexBuildError):
    pass


class DuplicateAliasError(IndexBuildError):
    pass


class DanglingReferenceError(IndexBuildError):
    """A parent/previous reference names a note that was not loaded."""


class UnknownNoteError(IndexBuildError):
    """An edge endpoint is not indexed."""


class DuplicateParentError(IndexBuildError):
    """A note would get a second incoming Own edge."""


class NotFoundError(NoteGraphError, LookupError):
    def __init__(self, key):
        self.key = key
        super().__init__(f"Note '{key}' not found")


class InvalidKeyError(NoteGraphError, ValueError):
    """An '@' key whose id part is not a number."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid note key '{key}': expected '@' followed by digits")


class AmbiguousKeyError(NoteGraphError, LookupError):
    def __init__(self, key: str, ids):
        self.key = key
        self.ids = list(ids)
        super().__init__(f"Key '{key}' matches several notes: {self.ids}")
