"""
Tests for VFile data forms and read methods.
"""

import asyncio
import base64
import math

import pytest

from attachfs.vfile import CellState, VFile, auto_type, infer_content_type, parse_dsv


async def chunks(*parts):
    for part in parts:
        yield part


class TestCreate:
    """Test construction and metadata."""

    def test_name(self):
        assert VFile("file1", "data1").name == "file1"

    @pytest.mark.parametrize("data,expected", [
        ("text", "text/plain"),
        ({"a": 1}, "application/json"),
        ([1, 2], "application/json"),
        (b"\x00", "application/binary"),
    ])
    def test_inferred_content_type(self, data, expected):
        assert infer_content_type(data) == expected
        assert VFile("f", data).content_type == expected

    def test_content_type_shorthand(self):
        file = VFile("f", "a,b", "text/csv")
        assert file.content_type == "text/csv"
        assert file.metadata == {"name": "f", "content_type": "text/csv"}

    def test_metadata_mapping(self):
        file = VFile("f", "x", {"owner": "ops"})
        assert file.metadata["owner"] == "ops"
        assert file.metadata["name"] == "f"


class TestReads:
    """Test read methods across data forms."""

    @pytest.mark.asyncio
    async def test_string_json_is_unchanged(self):
        assert await VFile("file1", "data1").json() == "data1"

    @pytest.mark.asyncio
    async def test_binary_json_is_parsed(self):
        file = VFile("file1", b'"data1"', "application/json")
        assert await file.json() == "data1"

    @pytest.mark.asyncio
    async def test_object_json_is_unchanged(self):
        value = {"a": [1, 2]}
        assert await VFile("f", value).json() is value

    @pytest.mark.asyncio
    async def test_text(self):
        assert await VFile("f", "hello").text() == "hello"
        assert await VFile("f", b"hello").text() == "hello"
        assert await VFile("f", {"a": 1}).text() == '{"a": 1}'

    @pytest.mark.asyncio
    async def test_utf16(self):
        data = "héllo".encode("utf-16-le")
        assert await VFile("f", data).text(utf8=False) == "héllo"
        assert await VFile("f", "héllo").array_buffer(utf8=False) == data

    @pytest.mark.asyncio
    async def test_array_buffer(self):
        assert await VFile("f", "abc").array_buffer() == b"abc"
        assert await VFile("f", bytearray(b"abc")).array_buffer() == b"abc"

    @pytest.mark.asyncio
    async def test_blob(self):
        blob = await VFile("f", "abc").blob()
        assert blob.read() == b"abc"

    @pytest.mark.asyncio
    async def test_string_url(self):
        assert await VFile("f", "hi there").url() == "data:text/plain;UTF-8,hi there"

    @pytest.mark.asyncio
    async def test_binary_url(self):
        url = await VFile("f", b"\x01\x02").url()
        assert url == "data:application/binary;base64," + base64.b64encode(b"\x01\x02").decode()

    @pytest.mark.asyncio
    async def test_nested_vfile(self):
        inner = VFile("inner", "payload")
        assert await VFile("outer", inner).text() == "payload"


class TestDelimited:
    """Test CSV and TSV parsing."""

    CSV = "name,count,ok\nalpha,1,true\nbeta,2.5,false\ngamma,,NaN\n"

    @pytest.mark.asyncio
    async def test_csv_records(self):
        rows = await VFile("t", self.CSV).csv()
        assert rows[0] == {"name": "alpha", "count": "1", "ok": "true"}
        assert len(rows) == 3

    @pytest.mark.asyncio
    async def test_csv_typed(self):
        rows = await VFile("t", self.CSV).csv(typed=True)
        assert rows[0] == {"name": "alpha", "count": 1, "ok": True}
        assert rows[1]["count"] == 2.5
        assert rows[1]["ok"] is False
        assert rows[2]["count"] is None
        assert math.isnan(rows[2]["ok"])

    @pytest.mark.asyncio
    async def test_csv_array(self):
        rows = await VFile("t", "a,b\n1,2\n").csv(array=True, typed=True)
        assert rows == [["a", "b"], [1, 2]]

    @pytest.mark.asyncio
    async def test_tsv(self):
        rows = await VFile("t", "a\tb\nx\ty\n").tsv()
        assert rows == [{"a": "x", "b": "y"}]

    @pytest.mark.asyncio
    async def test_quoted_fields(self):
        rows = await VFile("t", 'a,b\n"x, y",z\n').csv()
        assert rows == [{"a": "x, y", "b": "z"}]

    @pytest.mark.asyncio
    async def test_rows_returned_unchanged(self):
        rows = [{"a": 1}]
        assert await VFile("t", rows).csv() is rows

    def test_empty(self):
        assert parse_dsv("", ",") == []

    @pytest.mark.parametrize("cell,expected", [
        ("", None),
        ("42", 42),
        ("-3", -3),
        ("1e3", 1000.0),
        (".5", 0.5),
        ("true", True),
        ("text", "text"),
    ])
    def test_auto_type(self, cell, expected):
        assert auto_type(cell) == expected


class TestLazyData:
    """Test awaitable data and producers."""

    @pytest.mark.asyncio
    async def test_awaitable_data(self):
        future = asyncio.get_running_loop().create_future()
        future.set_result("later")
        file = VFile("f", future)
        assert file.data_state is CellState.UNEVALUATED
        assert await file.text() == "later"
        assert file.data_state is CellState.CACHED

    @pytest.mark.asyncio
    async def test_coroutine_data_is_awaited_once(self):
        calls = []

        async def load():
            calls.append(1)
            return "loaded"

        file = VFile("f", load())
        assert await file.text() == "loaded"
        assert await file.json() == "loaded"
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_producer_is_cached(self):
        calls = []

        def produce(file, method, options):
            calls.append((file.name, method))
            return "made"

        file = VFile("f", produce)
        assert await file.text() == "made"
        assert await file.json() == "made"
        assert calls == [("f", "text")]
        assert file.data_state is CellState.CACHED

    @pytest.mark.asyncio
    async def test_async_producer(self):
        async def produce(file, method, options):
            return {"method": method}

        assert await VFile("f", produce).json() == {"method": "json"}

    @pytest.mark.asyncio
    async def test_stream_producer_is_called_every_time(self):
        calls = []

        def produce(file, method, options):
            calls.append(method)
            return chunks(b"ab", b"cd")

        file = VFile("f", produce)
        assert await file.text() == "abcd"
        assert file.data_state is CellState.UNCACHEABLE
        assert await file.array_buffer() == b"abcd"
        assert calls == ["text", "array_buffer"]


class TestStreams:
    """Test stream data."""

    @pytest.mark.asyncio
    async def test_stream_is_drained_once(self):
        file = VFile("f", chunks(b"ab", b"cd"))
        assert await file.text() == "abcd"
        assert await file.text() == "abcd"

    @pytest.mark.asyncio
    async def test_stream_method(self):
        file = VFile("f", "abc")
        parts = [part async for part in await file.stream()]
        assert parts == [b"abc"]

    @pytest.mark.asyncio
    async def test_stream_passthrough(self):
        def produce(file, method, options):
            return chunks(b"a", b"b")

        parts = [part async for part in await VFile("f", produce).stream()]
        assert parts == [b"a", b"b"]
