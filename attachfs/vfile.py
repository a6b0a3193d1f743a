"""Local file wrapper with the same read interface as remote attachments.

``VFile(name, data, metadata)`` accepts data in many forms:

    - str: parsed or encoded as the read method requires
    - bytes / bytearray
    - an async iterable of byte chunks (a stream)
    - JSON-compatible objects, returned unchanged by ``json()``
    - rows (lists of lists or dicts), returned unchanged by ``csv()``/``tsv()``
    - another VFile, whose data is used
    - an awaitable resolving to any of the above
    - a producer function ``producer(file, method, options)`` returning any
      of the above, or an awaitable of it. It is called on first read and
      its result cached, unless the result is a stream, which can only be
      consumed once; such producers are called again on every read.

All read methods are coroutines.
"""

import asyncio
import base64
import csv
import inspect
import io
import json
import logging
import math
import re
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Union

from attachfs.utils import resolve

logger = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain"
APPLICATION_JSON = "application/json"
APPLICATION_BINARY = "application/binary"

BINARY_TYPES = (bytes, bytearray, memoryview)


def is_stream(value: Any) -> bool:
    """Check whether *value* is an async iterable of chunks."""
    return hasattr(value, "__aiter__") and not isinstance(value, (str,) + BINARY_TYPES)


class CellState(Enum):
    """Evaluation state of a DataCell."""
    UNEVALUATED = "unevaluated"
    CACHED = "cached"
    UNCACHEABLE = "uncacheable"


class DataCell:
    """Holds a file's data, evaluating producers lazily.

    Transitions:
        UNEVALUATED --first read--> CACHED       (producer result, or awaited value)
        UNEVALUATED --first read--> UNCACHEABLE  (producer returned a stream)
        UNCACHEABLE --every read--> UNCACHEABLE  (producer called again)

    Plain values start out CACHED.
    """

    def __init__(self, data: Any):
        self._producer: Optional[Callable[..., Any]] = None
        self._awaitable: Any = None
        self._pending: Optional[asyncio.Future] = None
        self._value: Any = None
        if inspect.isawaitable(data):
            self.state = CellState.UNEVALUATED
            self._awaitable = data
        elif callable(data) and not isinstance(data, VFile):
            self.state = CellState.UNEVALUATED
            self._producer = data
        else:
            self.state = CellState.CACHED
            self._value = data

    async def get(self, file: "VFile", method: str, options: Dict[str, Any]) -> Any:
        """Get the data, evaluating the producer if needed."""
        if self.state is CellState.CACHED:
            return self._value
        if self._awaitable is not None:
            if self._pending is None:
                self._pending = asyncio.ensure_future(self._awaitable)
            value = await self._pending
            self._store(value)
            return value
        value = await resolve(self._producer(file, method, options))
        if is_stream(value):
            if self.state is CellState.UNEVALUATED:
                logger.debug("Data for %s is a stream; not caching", file.name)
            self.state = CellState.UNCACHEABLE
            return value
        self._store(value)
        self._producer = None
        return value

    def drained(self, data: bytes) -> None:
        """Replace a cached stream with the bytes read from it."""
        if self.state is CellState.CACHED and is_stream(self._value):
            self._value = data

    def _store(self, value: Any) -> None:
        self.state = CellState.CACHED
        self._value = value
        self._awaitable = None
        self._pending = None


def infer_content_type(data: Any) -> str:
    """Guess a MIME type from the data's Python type."""
    if isinstance(data, str):
        return TEXT_PLAIN
    if isinstance(data, (list, dict)):
        return APPLICATION_JSON
    return APPLICATION_BINARY


def decode(data: Union[bytes, bytearray, memoryview], utf8: bool = True) -> str:
    return bytes(data).decode("utf-8" if utf8 else "utf-16-le")


def encode(text: str, utf8: bool = True) -> bytes:
    return text.encode("utf-8" if utf8 else "utf-16-le")


_INTEGER = re.compile(r"^[-+]?\d+$")
_FLOAT = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")


def auto_type(value: str) -> Any:
    """Convert a CSV cell to None, bool, int, or float where it looks like one."""
    text = value.strip()
    if text == "":
        return None
    if text == "true":
        return True
    if text == "false":
        return False
    if text == "NaN":
        return math.nan
    if _INTEGER.match(text):
        return int(text)
    if _FLOAT.match(text):
        return float(text)
    return value


def parse_dsv(text: str, delimiter: str, array: bool = False, typed: bool = False) -> List[Any]:
    """Parse delimiter-separated text.

    Args:
        text: The text to parse
        delimiter: ``","`` or ``"\\t"``
        array: Return rows as lists instead of dicts keyed by the header
        typed: Convert numbers, booleans, and empty cells

    Returns:
        List of rows
    """
    convert = auto_type if typed else (lambda cell: cell)
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    if array:
        return [[convert(cell) for cell in row] for row in reader]
    rows = list(reader)
    if not rows:
        return []
    header = rows[0]
    return [
        {column: convert(cell) for column, cell in zip(header, row)}
        for row in rows[1:]
    ]


class VFile:
    """A named piece of data presenting the attachment read interface.

    Attributes:
        name: Name of the file
        content_type: MIME type, given or inferred from the data
        metadata: Per-version metadata, always including name and content_type
    """

    def __init__(
        self,
        name: str,
        data: Any,
        metadata: Optional[Union[Dict[str, Any], str]] = None,
    ):
        """Initialize a VFile.

        Args:
            name: Name of the file
            data: The data, in any of the supported forms
            metadata: Metadata mapping, or a MIME type string as shorthand
        """
        if isinstance(metadata, str):
            metadata = {"content_type": metadata}
        metadata = dict(metadata or {})
        self.name = name
        self.content_type = metadata.get("content_type") or infer_content_type(data)
        self.metadata: Dict[str, Any] = {**metadata, "name": name, "content_type": self.content_type}
        self._cell = DataCell(data)

    @property
    def data_state(self) -> CellState:
        return self._cell.state

    async def get_data(self, method: str, **options: Any) -> Any:
        """Get the underlying data, prepared for *method*.

        Streams are drained to bytes unless *method* is ``"stream"``.
        """
        data = await self._cell.get(self, method, options)
        if isinstance(data, VFile):
            return await data.get_data(method, **options)
        if is_stream(data) and method != "stream":
            chunks = [bytes(chunk) async for chunk in data]
            data = b"".join(chunks)
            self._cell.drained(data)
        return data

    async def json(self, utf8: bool = True) -> Any:
        """Return the data as a JSON value."""
        data = await self.get_data("json", utf8=utf8)
        if isinstance(data, BINARY_TYPES):
            return json.loads(decode(data, utf8))
        return data

    async def text(self, utf8: bool = True) -> str:
        """Return the data as a string.

        Binary data is decoded as UTF-8, or UTF-16 when *utf8* is false.
        Other non-string data is serialized as JSON.
        """
        data = await self.get_data("text", utf8=utf8)
        if isinstance(data, str):
            return data
        if isinstance(data, BINARY_TYPES):
            return decode(data, utf8)
        return json.dumps(data)

    async def array_buffer(self, utf8: bool = True) -> bytes:
        """Return the data as bytes."""
        data = await self.get_data("array_buffer", utf8=utf8)
        if isinstance(data, BINARY_TYPES):
            return bytes(data)
        return encode(await self.text(utf8=utf8), utf8)

    async def blob(self, utf8: bool = True) -> io.BytesIO:
        """Return the data as a binary file object."""
        return io.BytesIO(await self.array_buffer(utf8=utf8))

    async def url(self, utf8: bool = True) -> str:
        """Return a data URL holding the data."""
        data = await self.get_data("url", utf8=utf8)
        if isinstance(data, str):
            return f"data:{self.content_type};UTF-8,{data}"
        payload = base64.b64encode(await self.array_buffer(utf8=utf8)).decode("ascii")
        return f"data:{self.content_type};base64,{payload}"

    async def csv(self, array: bool = False, typed: bool = False, utf8: bool = True) -> Any:
        """Interpret the data as CSV."""
        data = await self.get_data("csv", array=array, typed=typed, utf8=utf8)
        if isinstance(data, (list, dict)):
            return data
        return parse_dsv(await self.text(utf8=utf8), ",", array=array, typed=typed)

    async def tsv(self, array: bool = False, typed: bool = False, utf8: bool = True) -> Any:
        """Interpret the data as TSV."""
        data = await self.get_data("tsv", array=array, typed=typed, utf8=utf8)
        if isinstance(data, (list, dict)):
            return data
        return parse_dsv(await self.text(utf8=utf8), "\t", array=array, typed=typed)

    async def stream(self, utf8: bool = True) -> AsyncIterator[bytes]:
        """Return the data as an async iterator of byte chunks."""
        data = await self.get_data("stream", utf8=utf8)
        if is_stream(data):
            return data
        return self._single_chunk(utf8)

    async def _single_chunk(self, utf8: bool) -> AsyncIterator[bytes]:
        yield await self.array_buffer(utf8=utf8)

    def __repr__(self) -> str:
        return f"VFile(name='{self.name}', content_type='{self.content_type}')"
