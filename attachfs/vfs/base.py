"""Node types for the virtual filesystem.

The namespace is a tree of two kinds of node:

    - DirectoryNode: maps names to child directories or file sequences,
      and may carry synthesis callbacks that create missing children
      on demand.
    - SlotSequence: the versions of one logical file. Slot 0 holds
      version 1; holes are allowed. Labels map names directly to
      files, independent of the slots.

A name, once bound in a directory, is permanently either a directory or
a file sequence.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Union


class NodeType(Enum):
    """Type of VFS node."""
    DIRECTORY = "directory"
    FILE = "file"


# A file synthesizer is called as (filesystem, path, name, version, rest, tree)
# and returns a SlotSequence (or list of versions), None, or an awaitable of either.
FileSynthesizer = Callable[..., Union[Optional["SlotSequence"], Awaitable[Optional["SlotSequence"]]]]

# A directory synthesizer is called as (filesystem, path, name, rest, tree)
# and returns a DirectoryNode (or dict literal), None, or an awaitable of either.
DirectorySynthesizer = Callable[..., Union[Optional["DirectoryNode"], Awaitable[Optional["DirectoryNode"]]]]


class SlotSequence:
    """The versions of a logical file.

    Versions are numbered from 1, but slots are indexed from 0, so the
    sequence ``SlotSequence([file1, file2])`` provides version 1
    (*file1*) and version 2 (*file2*).

    Attributes:
        slots: Files by slot index; ``None`` marks a hole
        labels: Files by label, independent of slot positions
        metadata: Metadata covering all versions, or None
    """

    node_type = NodeType.FILE

    def __init__(
        self,
        slots: Optional[List[Any]] = None,
        labels: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """Initialize a slot sequence.

        Args:
            slots: Initial versions, version 1 first
            labels: Initial label map
            metadata: Sequence-level metadata
        """
        self.slots: List[Any] = list(slots or [])
        self.labels: Dict[str, Any] = dict(labels or {})
        self.metadata = metadata

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.slots)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SlotSequence):
            return self.slots == other.slots and self.labels == other.labels
        if isinstance(other, list):
            return self.slots == other and not self.labels
        return NotImplemented

    def __repr__(self) -> str:
        labels = f", labels={sorted(self.labels)}" if self.labels else ""
        return f"SlotSequence({self.slots!r}{labels})"


class DirectoryNode:
    """A directory in the virtual filesystem.

    Children are either DirectoryNodes or SlotSequences. When a child
    is looked up and not found, the traversal consults the synthesis
    callbacks:

        - file_synthesizer(filesystem, path, name, version, rest, tree)
          for a missing file in this directory
        - directory_synthesizer(filesystem, path, name, rest, tree)
          for a missing subdirectory

    Either may return None to decline. A directory synthesizer that
    installs itself on the directory it returns creates an unbounded
    on-demand hierarchy.
    """

    node_type = NodeType.DIRECTORY

    def __init__(
        self,
        children: Optional[Dict[str, Any]] = None,
        file_synthesizer: Optional[FileSynthesizer] = None,
        directory_synthesizer: Optional[DirectorySynthesizer] = None,
    ):
        """Initialize a directory node.

        Args:
            children: Initial entries; dict and list literals are converted
            file_synthesizer: Callback creating missing files
            directory_synthesizer: Callback creating missing subdirectories
        """
        self.children: Dict[str, Union["DirectoryNode", SlotSequence]] = {}
        self.file_synthesizer = file_synthesizer
        self.directory_synthesizer = directory_synthesizer
        for name, child in (children or {}).items():
            self.children[name] = as_node(child)

    @classmethod
    def from_literal(cls, literal: Union["DirectoryNode", Dict[str, Any]]) -> "DirectoryNode":
        """Build a directory from a nested literal.

        Dicts become directories and lists become version sequences,
        so ``{"data": {"table": [v1, v2]}}`` holds two versions of
        ``/data/table``.
        """
        if isinstance(literal, DirectoryNode):
            return literal
        if not isinstance(literal, dict):
            raise TypeError(f"Expected a directory literal, got {type(literal).__name__}")
        return cls(literal)

    def get(self, name: str) -> Optional[Union["DirectoryNode", SlotSequence]]:
        return self.children.get(name)

    def __getitem__(self, name: str) -> Union["DirectoryNode", SlotSequence]:
        return self.children[name]

    def __setitem__(self, name: str, node: Any) -> None:
        self.children[name] = as_node(node)

    def __contains__(self, name: object) -> bool:
        return name in self.children

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[str]:
        return iter(self.children)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DirectoryNode):
            return self.children == other.children
        if isinstance(other, dict):
            return self.children == DirectoryNode(other).children
        return NotImplemented

    def __repr__(self) -> str:
        return f"DirectoryNode({sorted(self.children)})"


def as_node(value: Any) -> Union[DirectoryNode, SlotSequence]:
    """Convert a literal into a tree node.

    Args:
        value: DirectoryNode, SlotSequence, dict, or list

    Returns:
        The corresponding node

    Raises:
        TypeError: If the value is neither a directory nor a sequence
    """
    if isinstance(value, (DirectoryNode, SlotSequence)):
        return value
    if isinstance(value, dict):
        return DirectoryNode(value)
    if isinstance(value, list):
        return SlotSequence(value)
    raise TypeError(
        f"Tree entries must be directories or version lists, got {type(value).__name__}"
    )


def is_directory(node: Any) -> bool:
    return isinstance(node, (DirectoryNode, dict))


def is_sequence(node: Any) -> bool:
    return isinstance(node, (SlotSequence, list))
