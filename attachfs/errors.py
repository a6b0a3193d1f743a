"""Exception hierarchy for attachfs.

Each failure mode of the virtual filesystem has its own exception type.
A missing file is not an error: lookups return ``None`` instead, and
callers who want an exception use ``FileAwait.exists``.
"""

from typing import Optional


class FilesystemError(Exception):
    """Base exception for all virtual filesystem failures.

    Facade operations annotate the error with the operation that raised
    it, e.g. ``FS_1.add("/a@0", ...) Cannot set version 0``.
    """

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message
        self.context: Optional[str] = None

    def annotate(self, context: str) -> "FilesystemError":
        """Prefix the message with *context*, unless already annotated."""
        if self.context is None:
            self.context = context
            self.args = (f"{context} {self.message}",)
        return self


class PathError(FilesystemError):
    """Error resolving a path."""


class NotADirectoryError(PathError):
    """A file sequence was found where a directory was expected."""


class NotAFileError(PathError):
    """A directory was found where a file was expected."""


class RootAccessError(PathError):
    """The path names no file (e.g. ``""`` or ``"/"``)."""


class ReadOnlyFilesystemError(FilesystemError):
    """Attempted to modify a read-only filesystem."""


class InvalidVersionError(FilesystemError):
    """A version token that cannot be used in this context."""


class VersionAssignmentError(InvalidVersionError):
    """The requested version cannot be assigned."""


class VirtualFileNotFound(FilesystemError):
    """The file was not found in the virtual filesystem.

    Only raised by ``FileAwait.exists``.
    """

    def __init__(self, message: str = "Virtual file not found"):
        super().__init__(message)
