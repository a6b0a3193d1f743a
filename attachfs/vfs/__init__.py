"""Versioned virtual filesystem of file attachments.

Architecture:

    ```
    /                       # Root (DirectoryNode)
    ├── data/               # Directory (DirectoryNode)
    │   ├── table1          # Versions of a file (SlotSequence)
    │   │   ├── @1          #   version 1 (slot 0)
    │   │   ├── @2          #   version 2 (slot 1), also @latest and @-1
    │   │   └── @release    #   a label
    │   └── table2
    └── virtual/            # Children synthesized on demand
    ```

Components:

    - versions: version tokens (``3``, ``-1``, ``latest``, ``earliest``,
      labels) and get/set/delete on slot sequences
    - resolver: walks a path, synthesizing missing nodes, and hands the
      final file sequence to a Visitor
    - regenerator: generation counter that wakes watchers after writes
    - awaitable: FileAwait, the proxy returned by find()
    - filesystem: AFileSystem, tying the above together

Usage Example:

    ```python
    from attachfs import AFileSystem, VFile

    fs = AFileSystem({"data": {"table": [VFile("table", [[1, 2], [3, 4]])]}})

    rows = await fs.find("/data/table").json()
    await fs.add("/data/table", VFile("table", [[5, 6]]))
    await fs.label("/data/table@1", "first")
    rows = await fs.find("/data/table@first").json()
    ```
"""

from attachfs.vfs.base import (
    DirectoryNode,
    SlotSequence,
    NodeType,
)
from attachfs.vfs.versions import (
    canonicalize_version,
    get_version,
    set_version,
    delete_version,
    versions,
    file_entry,
    entry,
    meta,
)
from attachfs.vfs.resolver import Visitor, traverse
from attachfs.vfs.regenerator import Regenerator
from attachfs.vfs.awaitable import FileAwait
from attachfs.vfs.filesystem import AFileSystem

__all__ = [
    # Main entry point
    "AFileSystem",
    # Nodes
    "DirectoryNode",
    "SlotSequence",
    "NodeType",
    # Versions
    "canonicalize_version",
    "get_version",
    "set_version",
    "delete_version",
    "versions",
    "file_entry",
    "entry",
    "meta",
    # Traversal and notification
    "Visitor",
    "traverse",
    "Regenerator",
    "FileAwait",
]
