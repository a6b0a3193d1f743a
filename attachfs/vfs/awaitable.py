"""Awaitable proxy for lookup results.

``AFileSystem.find`` returns a FileAwait rather than the file itself.
Awaiting it yields the file, or None if there is none. Its read methods
delegate to the file once found, and return None if it was not:

    >>> data = await fs.find("/nofile").json()      # None
    >>> data = await fs.find("/nofile").exists.json()
    Traceback (most recent call last):
    VirtualFileNotFound: Virtual file not found: /nofile
"""

import asyncio
from typing import Any, Awaitable, Callable, Generator, Optional

from attachfs.errors import VirtualFileNotFound
from attachfs.utils import resolve

UNRESOLVED = "(unresolved)"


class FileAwait:
    """Delegates the file read methods to the eventual result of a lookup.

    The lookup runs once, on first use; later awaits share its result.
    """

    def __init__(
        self,
        target: Callable[[], Awaitable[Any]],
        name: Optional[str] = None,
        path: Optional[str] = None,
    ):
        """Initialize the proxy.

        Args:
            target: Coroutine function performing the lookup
            name: Name of the file, if known in advance
            path: Path looked up, for error messages
        """
        self._target = target
        self.path = path
        self._future: Optional[asyncio.Future] = None
        self._name = name
        self._resolved_name = name is not None

    def _resolve(self) -> asyncio.Future:
        if self._future is None:
            self._future = asyncio.ensure_future(self._run())
        return self._future

    async def _run(self) -> Any:
        result = await self._target()
        if result is not None and not self._resolved_name:
            self._name = getattr(result, "name", self._name)
            self._resolved_name = True
        return result

    def __await__(self) -> Generator[Any, None, Any]:
        return self._resolve().__await__()

    @property
    def name(self) -> str:
        """The file's name, or ``"(unresolved)"`` until it is known."""
        return self._name if self._name is not None else UNRESOLVED

    @property
    def target(self) -> Awaitable[Any]:
        """Awaitable of the raw result, including None when not found."""
        return self._resolve()

    @property
    def exists(self) -> "FileAwait":
        """A proxy for the same file that raises VirtualFileNotFound if it is absent."""
        async def present() -> Any:
            result = await self
            if result is None:
                raise VirtualFileNotFound(f"Virtual file not found: {self.path or self.name}")
            return result

        return FileAwait(present, self._name, self.path)

    async def _call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        result = await self
        if result is None:
            return None
        return await getattr(result, method)(*args, **kwargs)

    async def url(self, *args: Any, **kwargs: Any) -> Optional[str]:
        result = await self
        if result is None:
            return None
        return await resolve(result.url(*args, **kwargs))

    async def json(self, *args: Any, **kwargs: Any) -> Any:
        return await self._call("json", *args, **kwargs)

    async def text(self, *args: Any, **kwargs: Any) -> Optional[str]:
        return await self._call("text", *args, **kwargs)

    async def array_buffer(self, *args: Any, **kwargs: Any) -> Optional[bytes]:
        return await self._call("array_buffer", *args, **kwargs)

    async def blob(self, *args: Any, **kwargs: Any) -> Any:
        return await self._call("blob", *args, **kwargs)

    async def csv(self, *args: Any, **kwargs: Any) -> Any:
        return await self._call("csv", *args, **kwargs)

    async def tsv(self, *args: Any, **kwargs: Any) -> Any:
        return await self._call("tsv", *args, **kwargs)

    def __repr__(self) -> str:
        return f"FileAwait(name='{self.name}')"
