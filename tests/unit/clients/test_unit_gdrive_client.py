# tests/unit/clients/test_unit_gdrive_client.py — v1
"""Tests for clients/gdrive_client.py — listings, metadata, key rotation."""

from __future__ import annotations

import httpx
import pytest

from helpers import mock_client
from matingest.clients.gdrive_client import FOLDER_MIME_TYPE, GDriveClient, KeyRotation
from matingest.core.errors import LookupFailed

BASE = "https://drive.test/drive/v3"


class TestKeyRotation:
    def test_round_robin(self):
        rotation = KeyRotation(["a", "", "b"])
        assert len(rotation) == 2
        assert rotation.current == "a"
        rotation.rotate()
        assert rotation.current == "b"
        rotation.rotate()
        assert rotation.current == "a"

    def test_empty(self):
        assert KeyRotation([]).current is None


class TestListFolder:
    @pytest.mark.asyncio
    async def test_query_and_parse(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={
                "files": [
                    {"id": "sub", "name": "Week 1", "mimeType": FOLDER_MIME_TYPE},
                    {"id": "f1", "name": "slides.pdf", "mimeType": "application/pdf"},
                ],
                "nextPageToken": "p2",
            })

        client = GDriveClient(["k1"], base_url=BASE, http=mock_client(handler))
        contents = await client.list_folder("F1")

        params = seen[0].url.params
        assert seen[0].url.path == "/drive/v3/files"
        assert params["q"] == "'F1' in parents and trashed=false"
        assert params["orderBy"] == "folder,name"
        assert params["key"] == "k1"
        assert "pageToken" not in params
        assert [f.id for f in contents.files] == ["sub", "f1"]
        assert contents.files[0].is_folder
        assert not contents.files[1].is_folder
        assert contents.next_page_token == "p2"

    @pytest.mark.asyncio
    async def test_page_token_forwarded(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"files": []})

        client = GDriveClient(["k1"], base_url=BASE, http=mock_client(handler))
        contents = await client.list_folder("F1", page_token="p2")
        assert seen[0].url.params["pageToken"] == "p2"
        assert contents.files == []
        assert contents.next_page_token is None


class TestGetMetadata:
    @pytest.mark.asyncio
    async def test_metadata(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/drive/v3/files/F1"
            return httpx.Response(200, json={"id": "F1", "name": "Course Folder", "mimeType": FOLDER_MIME_TYPE})

        client = GDriveClient(["k1"], base_url=BASE, http=mock_client(handler))
        meta = await client.get_metadata("F1")
        assert meta.name == "Course Folder"
        assert meta.is_folder

    @pytest.mark.asyncio
    async def test_not_found(self):
        client = GDriveClient(["k1"], base_url=BASE, http=mock_client(lambda r: httpx.Response(404)))
        with pytest.raises(LookupFailed, match="not found"):
            await client.get_metadata("missing")


class TestKeyRotationOnErrors:
    @pytest.mark.asyncio
    async def test_rotates_on_rate_limit(self):
        keys_seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            key = request.url.params["key"]
            keys_seen.append(key)
            if key == "k1":
                return httpx.Response(429)
            return httpx.Response(200, json={"id": "X", "name": "Doc"})

        client = GDriveClient(["k1", "k2"], base_url=BASE, http=mock_client(handler))
        meta = await client.get_metadata("X")
        assert meta.name == "Doc"
        assert keys_seen == ["k1", "k2"]
        assert client.rotation.current == "k2"

    @pytest.mark.asyncio
    async def test_all_keys_exhausted(self):
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.params["key"])
            return httpx.Response(403)

        client = GDriveClient(["k1", "k2", "k3"], base_url=BASE, http=mock_client(handler))
        with pytest.raises(LookupFailed, match="rate limited"):
            await client.get_metadata("X")
        assert calls == ["k1", "k2", "k3"]

    @pytest.mark.asyncio
    async def test_transport_error_rotates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["key"] == "k1":
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"id": "X", "name": "Doc"})

        client = GDriveClient(["k1", "k2"], base_url=BASE, http=mock_client(handler))
        assert (await client.get_metadata("X")).name == "Doc"

    @pytest.mark.asyncio
    async def test_timeout_does_not_rotate(self):
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.params["key"])
            raise httpx.ReadTimeout("slow", request=request)

        client = GDriveClient(["k1", "k2"], base_url=BASE, http=mock_client(handler))
        with pytest.raises(LookupFailed, match="timeout"):
            await client.get_metadata("X")
        assert calls == ["k1"]

    @pytest.mark.asyncio
    async def test_no_keys(self):
        client = GDriveClient([], base_url=BASE, http=mock_client(lambda r: httpx.Response(200)))
        with pytest.raises(LookupFailed, match="no API keys"):
            await client.get_metadata("X")
