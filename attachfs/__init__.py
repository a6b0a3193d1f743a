"""
attachfs - a versioned virtual filesystem for file attachments.

Main API:
    from attachfs import AFileSystem, VFile, RemoteFile

    fs = AFileSystem({
        "data": {
            # Lists hold the versions of a file.
            "table1": [
                RemoteFile("Table1.json", "https://example.com/Table1.json"),
                VFile("Table1.json", {"rows": []}),
            ],
        },
    })

    # Label version 1; the label stays put as versions are added.
    await fs.label("/data/table1@1", "release")
    table = await fs.find("/data/table1@release").json()

    # None when missing; .exists raises VirtualFileNotFound instead.
    missing = await fs.find("/nofile").json()

    # Follow changes.
    async for file in fs.watch("/data/table1"):
        print(await file.json())
"""

from .errors import (
    FilesystemError,
    PathError,
    NotADirectoryError,
    NotAFileError,
    RootAccessError,
    ReadOnlyFilesystemError,
    InvalidVersionError,
    VersionAssignmentError,
    VirtualFileNotFound,
)
from .vfile import VFile
from .remote import RemoteFile
from .vfs import AFileSystem, DirectoryNode, SlotSequence, FileAwait, file_entry, entry, versions, meta

__version__ = "0.1.0"
__all__ = [
    "AFileSystem",
    "VFile",
    "RemoteFile",
    "DirectoryNode",
    "SlotSequence",
    "FileAwait",
    "file_entry",
    "entry",
    "versions",
    "meta",
    "FilesystemError",
    "PathError",
    "NotADirectoryError",
    "NotAFileError",
    "RootAccessError",
    "ReadOnlyFilesystemError",
    "InvalidVersionError",
    "VersionAssignmentError",
    "VirtualFileNotFound",
]
