"""Main AFileSystem class - entry point for the virtual filesystem."""

import asyncio
import itertools
import logging
from typing import Any, AsyncIterator, Awaitable, Dict, Optional, Union

import httpx

from attachfs.config import AttachFSConfig
from attachfs.errors import FilesystemError, InvalidVersionError, NotAFileError, ReadOnlyFilesystemError
from attachfs.remote import is_remote_file, metadata_from_headers
from attachfs.utils import describe_args, resolve
from attachfs.vfs.awaitable import FileAwait
from attachfs.vfs.base import DirectoryNode, SlotSequence, is_directory, is_sequence
from attachfs.vfs.regenerator import Regenerator
from attachfs.vfs.resolver import Visitor, traverse, with_version
from attachfs.vfs.versions import append_version, appends, get_version, is_label, set_version

logger = logging.getLogger(__name__)

_filesystem_numbers = itertools.count(1)

_NOTHING = object()


class AFileSystem:
    """A versioned virtual filesystem of file attachments.

    The tree passed in gives the initial content. Dicts (or DirectoryNodes)
    are directories; lists (or SlotSequences) hold the versions of a file.
    A file can be any value, but is normally a VFile or a RemoteFile.

    Versions are selected by appending ``@version`` to the path. No version
    is the same as ``@latest``, the highest numbered version.

    Usage:
        >>> fs = AFileSystem({
        ...     "data": {"table1": [VFile("table1", rows_v1), VFile("table1", rows_v2)]},
        ...     "test": {},
        ... })
        >>> await fs.copy("/data/table1@1", "/test/table1")
        >>> await fs.label("/data/table1@2", "release")
        >>> rows = await fs.find("/data/table1@release").json()
        >>> missing = await fs.find("/nofile").json()          # None
        >>> async for file in fs.watch("/data/table1"):
        ...     print(await file.json())

    Attributes:
        tree: Root directory
        name: Display name, used in error messages
        read_only: Whether add/copy/label are refused
        subscription: Notification channel, signalled after every write attempt
    """

    def __init__(
        self,
        tree: Union[DirectoryNode, Dict[str, Any]],
        read_only: Optional[bool] = None,
        name: Optional[str] = None,
        config: Optional[AttachFSConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the filesystem.

        Args:
            tree: Initial directories and files
            read_only: Refuse modifications; defaults to the configured value
            name: Display name; defaults to ``FS_<n>``
            config: Settings; defaults to AttachFSConfig()
            http_client: Client for metadata requests; one is created per
                request otherwise
        """
        if tree is None:
            raise ValueError("Missing tree.")
        self.config = config or AttachFSConfig()
        if read_only is None:
            read_only = self.config.filesystem.read_only
        self.read_only = bool(read_only)
        self.name = name or f"{self.config.filesystem.name_prefix}_{next(_filesystem_numbers)}"
        self.tree = DirectoryNode.from_literal(tree)
        self.subscription: Regenerator["AFileSystem"] = Regenerator(self)
        self._http_client = http_client
        self._metadata_fetches: Dict[int, asyncio.Future] = {}

    @property
    def update_count(self) -> int:
        """Number of write attempts signalled so far."""
        return self.subscription.generation

    def updated(self) -> None:
        self.subscription.updated()

    def errored(self, error: BaseException) -> None:
        self.subscription.errored(error)

    async def _guarded(self, operation: str, args: tuple, action: Awaitable[Any]) -> Any:
        """Await *action*, annotating filesystem errors with the operation."""
        try:
            return await action
        except FilesystemError as e:
            raise e.annotate(f"{self.name}.{operation}({describe_args(*args)})")

    def find(self, path: str) -> FileAwait:
        """Find the file at the given (possibly versioned) path.

        Nothing is created, but synthesizers registered on the tree are
        consulted, since that is how virtual entries come into being.

        Args:
            path: Full path to the file

        Returns:
            A FileAwait; awaiting it yields the file, or None if not found
        """
        def get_file(path: str, name: str, version: Optional[str], files: SlotSequence) -> Any:
            file = get_version(files, version)
            if file is None:
                return None
            if is_directory(file) or is_sequence(file):
                raise NotAFileError(f"{path} is a directory.")
            return file

        def lookup() -> Awaitable[Any]:
            return self._guarded("find", (path,), traverse(self, path, self.tree, Visitor(file=get_file)))

        return FileAwait(lookup, path=path)

    async def wait_for(self, path: str) -> AsyncIterator[Any]:
        """Wait for the file at *path* to exist.

        Yields the file once, as soon as it is present, then stops.

        Args:
            path: Path to the file
        """
        seen = self.subscription.generation
        file = await self.find(path)
        while file is None:
            seen = await self.subscription.wait(seen)
            file = await self.find(path)
        yield file

    async def watch(self, path: str, emit_absent: bool = False) -> AsyncIterator[Any]:
        """Follow the file at *path* as it changes.

        Yields the current file, then again whenever a write leaves a
        different file at the path. Never yields the same file twice in
        a row. Runs until the caller stops iterating.

        Args:
            path: Path to the file
            emit_absent: Yield None when the file does not exist, instead
                of skipping it
        """
        last = _NOTHING
        seen = self.subscription.generation
        while True:
            file = await self.find(path)
            if file is not last and (file is not None or emit_absent):
                last = file
                yield file
            seen = await self.subscription.wait(seen)

    async def metadata(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the metadata for the file at *path*.

        Metadata on the sequence as a whole, on the specific version, and
        (for remote files) from the server's headers are merged. Header
        metadata wins, then sequence metadata, then version metadata.

        Args:
            path: Path to the file

        Returns:
            The merged metadata, or None if the file is not found
        """
        async def get_metadata(path: str, name: str, version: Optional[str], files: SlotSequence) -> Any:
            file = get_version(files, version)
            if file is None:
                return None
            if is_directory(file) or is_sequence(file):
                raise NotAFileError(f"{path} is a directory.")
            if is_remote_file(file) and getattr(file, "cached_metadata", None) is None:
                await self._fetch_metadata(file)
            merged: Dict[str, Any] = {"name": name}
            merged.update(getattr(file, "metadata", None) or {})
            merged.update(files.metadata or {})
            merged.update(getattr(file, "cached_metadata", None) or {})
            return merged

        return await self._guarded(
            "metadata", (path,), traverse(self, path, self.tree, Visitor(file=get_metadata))
        )

    async def _fetch_metadata(self, file: Any) -> None:
        """Fetch and cache the header metadata of a remote file, once per file."""
        key = id(file)
        pending = self._metadata_fetches.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._head(file))
            self._metadata_fetches[key] = pending
        try:
            await pending
        finally:
            self._metadata_fetches.pop(key, None)

    async def _head(self, file: Any) -> None:
        url = await resolve(file.url())
        logger.debug("HEAD %s", url)
        if self._http_client is not None:
            response = await self._http_client.head(url)
        else:
            async with httpx.AsyncClient(
                timeout=self.config.http.timeout,
                follow_redirects=self.config.http.follow_redirects,
            ) as client:
                response = await client.head(url)
        response.raise_for_status()
        file.cached_metadata = {
            "name": getattr(file, "name", None),
            "url": url,
            **metadata_from_headers(response.headers),
        }

    async def add(self, path: str, file: Any) -> Any:
        """Add a file at *path*.

        With no version, or ``@latest``, the file becomes a new version.
        Otherwise it is stored at the given version or label. Missing
        directories are created.

        Watchers are signalled after every attempt, successful or not.

        Args:
            path: Where to store the file
            file: The file, normally a VFile or RemoteFile

        Returns:
            The file

        Raises:
            ReadOnlyFilesystemError: If the filesystem is read-only
            VersionAssignmentError: If the version cannot be set
        """
        if self.read_only:
            raise ReadOnlyFilesystemError("Read only filesystem.").annotate(
                f"{self.name}.add({describe_args(path, file)})"
            )
        def create_directory(filesystem: "AFileSystem", path: str, name: str, rest: list, tree: DirectoryNode):
            logger.debug("Creating directory %s for %s", name, path)
            return DirectoryNode()

        def create_files(filesystem: "AFileSystem", path: str, name: str, version: Optional[str], tree: DirectoryNode):
            return SlotSequence()

        def set_file(path: str, name: str, version: Optional[str], files: SlotSequence) -> Any:
            if appends(version):
                append_version(files, file)
            else:
                set_version(files, version, file)
            return file

        visitor = Visitor(file=set_file, create_files=create_files, create_directory=create_directory)
        try:
            if isinstance(file, FileAwait):
                file = await file
            return await self._guarded("add", (path, file), traverse(self, path, self.tree, visitor))
        except Exception as e:
            logger.warning(f"Write to {path} failed: {e}")
            self.errored(e)
            raise
        finally:
            self.updated()

    async def copy(self, source: str, destination: str) -> Any:
        """Copy the file at *source* to *destination*.

        Only the selected version is copied (the latest, if none is given).
        It is stored the way add() would store it.

        Returns:
            The file copied
        """
        return await self.add(destination, self.find(source))

    async def label(self, path: str, label: str) -> Any:
        """Label the version at *path*.

        A label selects a specific file; it is not a property of the
        version. Later versions added at *path* do not move it.

        Args:
            path: Path to the file, optionally versioned
            label: The label; must be non-empty, without "/", and not a
                numeral or a reserved version name

        Returns:
            The file labeled
        """
        if not is_label(label):
            raise InvalidVersionError(f"Not a usable label: {label!r}").annotate(
                f"{self.name}.label({describe_args(path, label)})"
            )
        return await self.copy(path, with_version(path, label))

    def __repr__(self) -> str:
        return f"AFileSystem(name='{self.name}', read_only={self.read_only})"
