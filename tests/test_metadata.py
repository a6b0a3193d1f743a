"""
Tests for metadata merging and remote attachments.

Remote requests go through httpx.MockTransport; nothing touches the network.
"""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from attachfs import AFileSystem, RemoteFile, VFile
from attachfs.errors import NotAFileError
from attachfs.remote import is_remote_file, metadata_from_headers
from attachfs.vfs.base import SlotSequence

URL = "https://files.example.com/table.csv"

HEADERS = {
    "content-length": "17",
    "last-modified": "Wed, 21 Oct 2015 07:28:00 GMT",
    "etag": '"abc123"',
    "content-type": "text/csv",
}


def mock_client(requests, body=b"a,b\n1,2\n", status=200):
    def handler(request):
        requests.append((request.method, str(request.url)))
        return httpx.Response(status, headers=HEADERS, content=body if request.method == "GET" else b"")
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHeaders:
    """Test mapping response headers to metadata."""

    def test_all_headers(self):
        metadata = metadata_from_headers(httpx.Headers(HEADERS))
        assert metadata == {
            "length": 17,
            "modification_date": datetime(2015, 10, 21, 7, 28, tzinfo=timezone.utc),
            "etag": '"abc123"',
            "content_type": "text/csv",
        }

    def test_unrelated_and_bad_headers(self):
        metadata = metadata_from_headers(httpx.Headers({
            "content-length": "many",
            "last-modified": "yesterday",
            "server": "test",
        }))
        assert metadata == {}


class TestLocalMetadata:
    """Test merging metadata for local files."""

    @pytest.mark.asyncio
    async def test_missing_file(self):
        fs = AFileSystem({})
        assert await fs.metadata("/nofile") is None

    @pytest.mark.asyncio
    async def test_version_metadata(self):
        fs = AFileSystem({"f": [VFile("f", "x", {"owner": "ops"})]})
        metadata = await fs.metadata("/f")
        assert metadata == {"name": "f", "owner": "ops", "content_type": "text/plain"}

    @pytest.mark.asyncio
    async def test_sequence_metadata_wins_over_version(self):
        files = SlotSequence(
            [VFile("f", "x", {"owner": "ops", "team": "data"})],
            metadata={"owner": "admin"},
        )
        metadata = await AFileSystem({"f": files}).metadata("/f")
        assert metadata["owner"] == "admin"
        assert metadata["team"] == "data"

    @pytest.mark.asyncio
    async def test_plain_values_get_a_name(self):
        metadata = await AFileSystem({"f": [42]}).metadata("/f")
        assert metadata == {"name": "f"}

    @pytest.mark.asyncio
    async def test_nested_structure_in_slot(self):
        fs = AFileSystem({"odd": SlotSequence([{"x": 1}])}, name="Odd")
        with pytest.raises(NotAFileError, match=r"^Odd\.metadata\(\"/odd\"\)"):
            await fs.metadata("/odd")

    @pytest.mark.asyncio
    async def test_selected_version(self):
        fs = AFileSystem({"f": [VFile("f", "x", {"v": 1}), VFile("f", "y", {"v": 2})]})
        assert (await fs.metadata("/f@1"))["v"] == 1
        assert (await fs.metadata("/f"))["v"] == 2


class TestRemoteMetadata:
    """Test header metadata for remote files."""

    @pytest.mark.asyncio
    async def test_head_request_is_made_once(self):
        requests = []
        async with mock_client(requests) as client:
            file = RemoteFile("table.csv", URL, metadata={"content_type": "text/plain", "owner": "ops"})
            fs = AFileSystem({"data": {"table": [file]}}, http_client=client)

            metadata = await fs.metadata("/data/table")
            again = await fs.metadata("/data/table")

        assert requests == [("HEAD", URL)]
        assert metadata == again
        assert metadata["url"] == URL
        assert metadata["name"] == "table.csv"
        assert metadata["length"] == 17
        assert metadata["etag"] == '"abc123"'
        assert metadata["content_type"] == "text/csv"
        assert metadata["owner"] == "ops"

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self):
        requests = []
        async with mock_client(requests) as client:
            fs = AFileSystem({"t": [RemoteFile("t", URL)]}, http_client=client)
            results = await asyncio.gather(fs.metadata("/t"), fs.metadata("/t"), fs.metadata("/t"))

        assert requests == [("HEAD", URL)]
        assert results[0] == results[1] == results[2]

    @pytest.mark.asyncio
    async def test_http_errors_propagate(self):
        requests = []
        async with mock_client(requests, status=404) as client:
            file = RemoteFile("t", URL)
            fs = AFileSystem({"t": [file]}, http_client=client)
            with pytest.raises(httpx.HTTPStatusError):
                await fs.metadata("/t")
        assert file.cached_metadata is None


class TestRemoteFile:
    """Test reading remote files."""

    @pytest.mark.asyncio
    async def test_reads(self):
        requests = []
        async with mock_client(requests) as client:
            file = RemoteFile("table.csv", URL, client=client)
            assert file.url() == URL
            assert await file.text() == "a,b\n1,2\n"
            assert await file.csv(typed=True) == [{"a": 1, "b": 2}]
            assert (await file.blob()).read() == b"a,b\n1,2\n"
        assert [method for method, _ in requests] == ["GET", "GET", "GET"]

    @pytest.mark.asyncio
    async def test_json(self):
        async with mock_client([], body=b'{"rows": 2}') as client:
            assert await RemoteFile("t.json", URL, client=client).json() == {"rows": 2}

    @pytest.mark.asyncio
    async def test_through_filesystem(self):
        async with mock_client([]) as client:
            fs = AFileSystem({"t": [RemoteFile("t", URL, client=client)]})
            assert await fs.find("/t").url() == URL
            assert await fs.find("/t").tsv(array=True) == [["a,b"], ["1,2"]]

    def test_is_remote_file(self):
        class Attachment:
            def json(self): ...
            def text(self): ...
            def blob(self): ...
            def url(self): ...

        assert is_remote_file(RemoteFile("t", URL))
        assert is_remote_file(Attachment())
        assert not is_remote_file(VFile("t", "x"))
        assert not is_remote_file("text")
        assert not is_remote_file(None)
