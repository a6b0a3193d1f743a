"""Path traversal for the virtual filesystem.

Paths are slash-separated, with or without a leading ``/``. The final
segment names a file and may carry a version or label: ``/data/table@2``,
``/data/table@release``. Every other segment names a directory.

The walk itself is independent of what is done at the end of it: a
Visitor supplies the action to perform on the file found, and the
fallbacks to use when a directory or file is missing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union

from attachfs.errors import NotADirectoryError, NotAFileError, RootAccessError
from attachfs.utils import resolve
from attachfs.vfs.base import DirectoryNode, SlotSequence, as_node

logger = logging.getLogger(__name__)

# (path, name, version, files) -> result
FileAction = Callable[[str, str, Optional[str], SlotSequence], Any]
# (path, name, tree) -> None
DirectoryAction = Callable[[str, str, DirectoryNode], Any]
# (filesystem, path, name, version, tree) -> SlotSequence or None
CreateFilesAction = Callable[..., Union[Optional[SlotSequence], Awaitable[Optional[SlotSequence]]]]
# (filesystem, path, name, rest, tree) -> DirectoryNode or None
CreateDirectoryAction = Callable[..., Union[Optional[DirectoryNode], Awaitable[Optional[DirectoryNode]]]]


@dataclass
class Visitor:
    """Hooks invoked by traverse().

    Attributes:
        file: Called on the file sequence at the end of the path; its
            result is the result of the traversal
        directory: Called for each directory passed through
        create_files: Fallback when a file is missing and the directory's
            own file synthesizer declines
        create_directory: Fallback when a directory is missing and the
            parent's directory synthesizer declines
    """
    file: Optional[FileAction] = None
    directory: Optional[DirectoryAction] = None
    create_files: Optional[CreateFilesAction] = None
    create_directory: Optional[CreateDirectoryAction] = None


def split_name(segment: str) -> Tuple[str, Optional[str]]:
    """Split ``name@version`` into its parts.

    Args:
        segment: A path segment

    Returns:
        (name, version); version is None when absent or empty
    """
    name, sep, version = segment.partition("@")
    return name, (version if sep and version else None)


def with_version(path: str, version: str) -> str:
    """Replace any version or label on the final segment of *path*.

    ``with_version("/data/table@2", "release")`` is ``"/data/table@release"``.
    """
    head, sep, last = path.rpartition("/")
    name, _ = split_name(last)
    return f"{head}{sep}{name}@{version}"


async def traverse(filesystem: Any, path: str, tree: DirectoryNode, visitor: Visitor) -> Any:
    """Walk *path* from *tree*, performing the visitor's file action at the end.

    Missing directories and files are handled first by the synthesizers
    registered on the directory being searched, then by the visitor's
    create hooks. Whatever they create is stored in the tree. If nothing
    is created, the traversal yields None.

    Args:
        filesystem: The AFileSystem, passed through to callbacks
        path: Path to walk
        tree: Directory to start from
        visitor: Actions and fallbacks

    Returns:
        The result of the file action, or None if the path does not exist

    Raises:
        NotADirectoryError: A file sequence sits where a directory is needed
        NotAFileError: The path names a directory
        RootAccessError: The path names no file at all
    """
    parts = path.split("/")
    node = tree
    for position, head in enumerate(parts):
        rest = parts[position + 1:]
        if head == "":
            continue
        if not rest:
            return await _visit_file(filesystem, path, head, node, visitor)

        name, _ = split_name(head)
        child = node.get(name)
        if child is None:
            child = await _create_directory(filesystem, path, name, rest, node, visitor)
            if child is None:
                return None
            node.children[name] = child
        elif not isinstance(child, DirectoryNode):
            raise NotADirectoryError(f"{path}: {name} is not a directory.")

        if visitor.directory is not None:
            await resolve(visitor.directory(path, name, node))
        node = child

    raise RootAccessError("Accessing root as file.")


async def _visit_file(
    filesystem: Any,
    path: str,
    segment: str,
    tree: DirectoryNode,
    visitor: Visitor,
) -> Any:
    name, version = split_name(segment)
    files = tree.get(name)
    if isinstance(files, DirectoryNode):
        raise NotAFileError(f"{path} is a directory.")

    if files is None:
        created = None
        if tree.file_synthesizer is not None:
            created = await resolve(tree.file_synthesizer(filesystem, path, name, version, [], tree))
            if created is not None:
                logger.debug("Synthesized file %s", path)
        if created is None and visitor.create_files is not None:
            created = await resolve(visitor.create_files(filesystem, path, name, version, tree))
        if created is None:
            return None
        files = as_node(created)
        if isinstance(files, DirectoryNode):
            raise NotAFileError(f"{path}: file synthesis produced a directory.")
        tree.children[name] = files

    if visitor.file is None:
        return None
    return await resolve(visitor.file(path, name, version, files))


async def _create_directory(
    filesystem: Any,
    path: str,
    name: str,
    rest: List[str],
    tree: DirectoryNode,
    visitor: Visitor,
) -> Optional[DirectoryNode]:
    created = None
    if tree.directory_synthesizer is not None:
        created = await resolve(tree.directory_synthesizer(filesystem, path, name, rest, tree))
        if created is not None:
            logger.debug("Synthesized directory %s in %s", name, path)
    if created is None and visitor.create_directory is not None:
        created = await resolve(visitor.create_directory(filesystem, path, name, rest, tree))
    if created is None:
        return None
    node = as_node(created)
    if not isinstance(node, DirectoryNode):
        raise NotADirectoryError(f"{path}: directory synthesis for {name} produced a file.")
    return node
