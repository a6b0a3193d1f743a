"""Attachments fetched over HTTP.

A RemoteFile is the network counterpart of a VFile: the same read
methods, but the data lives at a URL. Its headers supply the metadata
returned by ``AFileSystem.metadata``.
"""

import io
import json
import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from attachfs.config import HttpConfig
from attachfs.vfile import VFile, decode, parse_dsv

logger = logging.getLogger(__name__)


def is_remote_file(obj: Any) -> bool:
    """Check whether *obj* is a remote attachment.

    Anything with callable ``json``, ``text``, ``blob`` and ``url``
    methods counts, except the local VFile wrapper.
    """
    if isinstance(obj, RemoteFile):
        return True
    if obj is None or isinstance(obj, (VFile, dict, list)):
        return False
    return all(callable(getattr(obj, method, None)) for method in ("json", "text", "blob", "url"))


def parse_modification_date(value: str) -> Optional[datetime]:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable last-modified header: %s", value)
        return None


def metadata_from_headers(headers: httpx.Headers) -> Dict[str, Any]:
    """Extract the metadata we track from HTTP response headers.

    Args:
        headers: Response headers

    Returns:
        Dict with any of: length, modification_date, etag, content_type
    """
    metadata: Dict[str, Any] = {}
    for key, value in headers.items():
        key = key.lower()
        if key == "content-length":
            try:
                metadata["length"] = int(value)
            except ValueError:
                logger.debug("Unparseable content-length header: %s", value)
        elif key == "last-modified":
            date = parse_modification_date(value)
            if date is not None:
                metadata["modification_date"] = date
        elif key == "etag":
            metadata["etag"] = value
        elif key == "content-type":
            metadata["content_type"] = value
    return metadata


async def _chunks(data: bytes) -> AsyncIterator[bytes]:
    yield data


class RemoteFile:
    """A file attachment retrieved from a URL.

    Attributes:
        name: Name of the file
        metadata: Per-version metadata supplied by the caller
        cached_metadata: Metadata fetched from the server, once retrieved
    """

    def __init__(
        self,
        name: str,
        url: str,
        metadata: Optional[Dict[str, Any]] = None,
        client: Optional[httpx.AsyncClient] = None,
        http: Optional[HttpConfig] = None,
    ):
        """Initialize a remote file.

        Args:
            name: Name of the file
            url: Where the data can be fetched
            metadata: Optional per-version metadata
            client: HTTP client to use; a new one is created per request otherwise
            http: HTTP settings for created clients
        """
        self.name = name
        self._url = url
        self.metadata: Dict[str, Any] = {**(metadata or {}), "name": name}
        self.cached_metadata: Optional[Dict[str, Any]] = None
        self._client = client
        self._http = http or HttpConfig()

    def url(self) -> str:
        return self._url

    async def array_buffer(self) -> bytes:
        """Fetch the data as bytes."""
        logger.debug("GET %s", self._url)
        if self._client is not None:
            response = await self._client.get(self._url)
        else:
            async with httpx.AsyncClient(
                timeout=self._http.timeout,
                follow_redirects=self._http.follow_redirects,
            ) as client:
                response = await client.get(self._url)
        response.raise_for_status()
        return response.content

    async def text(self) -> str:
        return decode(await self.array_buffer())

    async def json(self) -> Any:
        return json.loads(await self.text())

    async def blob(self) -> io.BytesIO:
        return io.BytesIO(await self.array_buffer())

    async def csv(self, array: bool = False, typed: bool = False) -> Any:
        return parse_dsv(await self.text(), ",", array=array, typed=typed)

    async def tsv(self, array: bool = False, typed: bool = False) -> Any:
        return parse_dsv(await self.text(), "\t", array=array, typed=typed)

    async def stream(self) -> AsyncIterator[bytes]:
        return _chunks(await self.array_buffer())

    def __repr__(self) -> str:
        return f"RemoteFile(name='{self.name}', url='{self._url}')"
