"""Version tokens and slot sequence operations.

A version token is one of:

    - a nonzero int: 1-based from the start, or negative from the end
      (-1 is the latest version)
    - a numeral string such as ``"2"`` or ``"-1"``, treated as the int
    - ``"latest"`` or ``"earliest"``
    - ``"*"``, meaning every version (only valid for deletion)
    - any other string, which is a label

Version 0 is the state before any version exists, and is always absent.
"""

import logging
import re
from typing import Any, Dict, Optional, Union

from attachfs.errors import InvalidVersionError, VersionAssignmentError
from attachfs.vfile import VFile
from attachfs.vfs.base import SlotSequence

logger = logging.getLogger(__name__)

LATEST = "latest"
EARLIEST = "earliest"
ALL_VERSIONS = "*"

Version = Union[int, str]

_NUMERAL = re.compile(r"^[-+]?\d+$")


def canonicalize_version(version: Optional[Version], length: int) -> Optional[Version]:
    """Canonicalize a version token against a sequence length.

    Args:
        version: The requested version; None means the latest
        length: Number of slots, for negative and ``latest`` versions

    Returns:
        A slot index (int), a label (str), or None when no such
        version can exist

    Raises:
        InvalidVersionError: For ``"*"`` or a token of the wrong type
    """
    if version is None:
        version = -1
    if isinstance(version, str):
        if version == LATEST:
            return length - 1 if length > 0 else None
        if version == EARLIEST:
            return 0
        if version == ALL_VERSIONS:
            raise InvalidVersionError(f"Illegal version: {version}")
        if _NUMERAL.match(version):
            return canonicalize_version(int(version, 10), length)
        return version
    if isinstance(version, bool) or not isinstance(version, int):
        raise InvalidVersionError(f"Illegal version: {version!r}")
    if version == 0:
        return None
    if version < 0:
        index = length + version
        return index if index >= 0 else None
    return version - 1


def is_label(version: Optional[Version]) -> bool:
    """Check whether a token names a label rather than a position."""
    return (
        isinstance(version, str)
        and version != ""
        and "/" not in version
        and version not in (LATEST, EARLIEST, ALL_VERSIONS)
        and not _NUMERAL.match(version)
    )


def appends(version: Optional[Version]) -> bool:
    """Check whether writing at *version* adds a new version."""
    return version is None or version == LATEST


def get_version(files: SlotSequence, version: Optional[Version]) -> Any:
    """Get a version or label from a slot sequence.

    Args:
        files: The slot sequence
        version: Version number or label

    Returns:
        The file, or None if there is none at that version
    """
    index = canonicalize_version(version, len(files.slots))
    if index is None:
        return None
    if isinstance(index, str):
        return files.labels.get(index)
    if index < len(files.slots):
        return files.slots[index]
    return None


def set_version(files: SlotSequence, version: Optional[Version], new_file: Any) -> None:
    """Store a file at a specific version or label.

    Setting a version past the end extends the sequence, leaving holes
    for skipped versions.

    Args:
        files: The slot sequence
        version: Version number or label
        new_file: The file to store

    Raises:
        VersionAssignmentError: If the version can never hold a file
    """
    index = canonicalize_version(version, len(files.slots))
    if index is None:
        raise VersionAssignmentError(f"Cannot set version {version}")
    if isinstance(index, str):
        files.labels[index] = new_file
        logger.debug("Set label %s", index)
        return
    if index >= len(files.slots):
        files.slots.extend([None] * (index + 1 - len(files.slots)))
    files.slots[index] = new_file
    logger.debug("Set version %d", index + 1)


def append_version(files: SlotSequence, new_file: Any) -> int:
    """Add a file as a new latest version.

    Returns:
        The new version number
    """
    files.slots.append(new_file)
    logger.debug("Appended version %d", len(files.slots))
    return len(files.slots)


def delete_version(files: SlotSequence, version: Optional[Version]) -> None:
    """Delete a version or label from a slot sequence.

    Deleting a version leaves a hole; later versions keep their numbers.
    The special version ``"*"`` deletes every version and label, keeping
    the sequence-level metadata.

    Args:
        files: The slot sequence
        version: Version number, label, or ``"*"``
    """
    if version == ALL_VERSIONS:
        files.slots.clear()
        files.labels.clear()
        return
    index = canonicalize_version(version, len(files.slots))
    if index is None:
        return
    if isinstance(index, str):
        files.labels.pop(index, None)
    elif index < len(files.slots):
        files.slots[index] = None


def versions(file: Any, *version_list: Version) -> SlotSequence:
    """Wrap a file in a slot sequence under the given versions or labels.

    Args:
        file: The file
        version_list: Versions and labels; defaults to version 1

    Returns:
        A new SlotSequence
    """
    files = SlotSequence()
    for version in version_list or (1,):
        set_version(files, version, file)
    return files


def meta(obj: Any, metadata: Dict[str, Any]) -> Any:
    """Attach metadata to a slot sequence or a single file."""
    if obj is not None:
        obj.metadata = metadata
    return obj


def file_entry(
    name: str,
    data: Any,
    *version_list: Version,
    metadata: Optional[Union[Dict[str, Any], str]] = None,
) -> SlotSequence:
    """Build a tree entry for *data* without repeating its name.

    Usage:
        >>> fs = AFileSystem({
        ...     "myFile": file_entry("myFile", my_data),
        ...     "tested": file_entry("tested", other, 1, "tested",
        ...                          metadata={"creation_date": today}),
        ... })

    Args:
        name: Name of the file
        data: Data for a VFile
        version_list: Versions and labels; defaults to version 1
        metadata: Metadata for both the file and the sequence

    Returns:
        A SlotSequence holding a VFile with the data
    """
    file = VFile(name, data, metadata)
    return meta(versions(file, *version_list), {"name": name, **file.metadata})


def entry(
    name: str,
    data: Any,
    *version_list: Version,
    metadata: Optional[Union[Dict[str, Any], str]] = None,
) -> Dict[str, SlotSequence]:
    """Like file_entry, but returns ``{name: sequence}`` for splicing into a tree literal."""
    return {name: file_entry(name, data, *version_list, metadata=metadata)}
