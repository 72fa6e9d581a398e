# tests/integration/api/test_int_session.py — v1
"""Integration tests for api/facade.py — parse, resolve, edit, upload.

Resolvers are stubs and the creation call is an in-process fake; the
rest of the pipeline is real.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from helpers import StubResolver
from matingest.api.facade import BatchSession
from matingest.config.settings import Settings
from matingest.core.errors import PreconditionViolation
from matingest.core.models import BatchDefaults, CreationRequest
from matingest.resolve.resolver_factory import ResolverRegistry

LINKS = (
    "Intro, https://youtu.be/abc12345678\n"
    "https://drive.google.com/drive/folders/F1\n"
)


class FakeCreate:
    def __init__(self, fail_titles: set[str] | None = None) -> None:
        self.fail_titles = fail_titles or set()
        self.requests: list[CreationRequest] = []

    async def __call__(self, request: CreationRequest) -> str:
        self.requests.append(request)
        if request.title in self.fail_titles:
            raise httpx.ReadTimeout("timed out")
        return f"m-{len(self.requests)}"


def _registry(**folder_kwargs) -> ResolverRegistry:
    return ResolverRegistry([
        StubResolver(["video-embed"], title="Ignored", preview_url="https://img.youtube.com/vi/abc12345678/hqdefault.jpg"),
        StubResolver(["cloud-folder"], **{"title": "Week 1 Folder", **folder_kwargs}),
        StubResolver(["generic-link"], title="Example"),
    ])


@pytest.fixture
def session_settings() -> Settings:
    return Settings(_env_file=None, max_batch_links=3, max_batch_files=2)


class TestLinkSession:
    @pytest.mark.asyncio
    async def test_parse_resolve_upload(self, session_settings):
        create = FakeCreate()
        async with BatchSession("links", session_settings, create=create, registry=_registry()) as session:
            report = session.add_links(LINKS)
            assert report.accepted_count == 2
            assert await session.wait_until_settled(timeout=5)

            intro, folder = session.items
            assert intro.title == "Intro"
            assert intro.title_origin == "input"
            assert intro.preview.url.endswith("hqdefault.jpg")
            assert folder.title == "Week 1 Folder"
            assert folder.title_origin == "lookup"
            assert session.snapshot().settled

            events = []
            result = await session.upload(
                BatchDefaults(target_course_id="C-1"),
                observer=_Recorder(events),
            )

        assert result.total_succeeded == 2
        assert [r.title for r in create.requests] == ["Intro", "Week 1 Folder"]
        assert create.requests[0].resource_address == "https://youtu.be/abc12345678"
        assert all(r.target_course_id == "C-1" for r in create.requests)
        assert events == [(1, 2), (2, 2)]

    @pytest.mark.asyncio
    async def test_terminal_items_discarded_after_upload(self, session_settings):
        create = FakeCreate(fail_titles={"Intro"})
        async with BatchSession("links", session_settings, create=create, registry=_registry()) as session:
            session.add_links(LINKS)
            await session.wait_until_settled(timeout=5)
            result = await session.upload()
            assert [o.success for o in result.results] == [False, True]
            assert "ReadTimeout" in result.results[0].error
            assert len(session.ledger) == 0

    @pytest.mark.asyncio
    async def test_upload_before_settled_is_rejected(self, session_settings):
        gate = asyncio.Event()
        create = FakeCreate()
        async with BatchSession(
            "links", session_settings, create=create, registry=_registry(gate=gate),
        ) as session:
            session.add_links(LINKS)
            await asyncio.sleep(0)
            with pytest.raises(PreconditionViolation):
                await session.upload()
            assert create.requests == []
            gate.set()
            assert await session.wait_until_settled(timeout=5)
            result = await session.upload()
        assert result.total_succeeded == 2

    @pytest.mark.asyncio
    async def test_update_url_discards_stale_lookup(self, session_settings):
        gate = asyncio.Event()
        registry = _registry(gate=gate)
        async with BatchSession("links", session_settings, create=FakeCreate(), registry=registry) as session:
            session.add_links("https://drive.google.com/drive/folders/F1\n")
            item_id = session.items[0].id
            await asyncio.sleep(0)

            session.update_url(item_id, "https://example.com/syllabus")
            gate.set()
            assert await session.wait_until_settled(timeout=5)

            item = session.ledger.get(item_id)
            assert item.locator == "https://example.com/syllabus"
            assert item.title == "Example"
            assert item.generation == 1
            assert item.status == "ready"

    @pytest.mark.asyncio
    async def test_remove_excludes_item_from_results(self, session_settings):
        events = []
        create = FakeCreate()
        async with BatchSession("links", session_settings, create=create, registry=_registry()) as session:
            session.add_links(LINKS + "Syllabus, https://example.com/syllabus\n")
            await session.wait_until_settled(timeout=5)
            removed = session.items[1]
            session.remove(removed.id)
            result = await session.upload(observer=_Recorder(events))

        assert result.total_requested == 2
        assert removed.id not in {o.item_id for o in result.results}
        assert [r.title for r in create.requests] == ["Intro", "Syllabus"]
        assert events == [(1, 2), (2, 2)]

    @pytest.mark.asyncio
    async def test_cap_counts_existing_items(self, session_settings):
        async with BatchSession("links", session_settings, create=FakeCreate(), registry=_registry()) as session:
            session.add_links(LINKS)
            report = session.add_links("https://example.com/a\nhttps://example.com/b\n")
            assert report.accepted_count == 1
            assert [r.reason for r in report.rejected] == ["over_limit"]
            assert len(session.ledger) == 3

    @pytest.mark.asyncio
    async def test_wrong_kind_rejected(self, session_settings, pdf_file):
        async with BatchSession("links", session_settings, create=FakeCreate(), registry=_registry()) as session:
            with pytest.raises(ValueError):
                session.add_files([pdf_file])

    def test_add_outside_event_loop_leaves_batch_untouched(self, session_settings):
        session = BatchSession("links", session_settings, create=FakeCreate(), registry=_registry())
        with pytest.raises(RuntimeError):
            session.add_links("A,https://example.com/a\nB,https://example.com/b\n")
        assert len(session.ledger) == 0

    @pytest.mark.asyncio
    async def test_update_url_outside_loop_keeps_item(self, session_settings):
        async with BatchSession("links", session_settings, create=FakeCreate(), registry=_registry()) as session:
            session.add_links("Syllabus, https://example.com/syllabus\n")
            await session.wait_until_settled(timeout=5)
            item_id = session.items[0].id

            def edit():
                session.update_url(item_id, "https://example.com/other")

            with pytest.raises(RuntimeError):
                await asyncio.to_thread(edit)
            item = session.ledger.get(item_id)
            assert item.status == "ready"
            assert item.locator == "https://example.com/syllabus"

    def test_unknown_kind(self, session_settings):
        with pytest.raises(ValueError):
            BatchSession("videos", session_settings, create=FakeCreate(), registry=_registry())


class TestFileSession:
    @pytest.mark.asyncio
    async def test_files_upload_as_multipart_items(self, session_settings, pdf_file, text_file):
        create = FakeCreate()
        async with BatchSession("files", session_settings, create=create, registry=ResolverRegistry()) as session:
            report = session.add_files([pdf_file, text_file, pdf_file])
            assert report.accepted_count == 2
            assert [r.reason for r in report.rejected] == ["over_limit"]
            assert await session.wait_until_settled(timeout=5)
            result = await session.upload()

        assert result.total_succeeded == 2
        assert [r.file.filename for r in create.requests] == [pdf_file.name, text_file.name]
        assert all(r.resource_address is None for r in create.requests)

    @pytest.mark.asyncio
    async def test_in_memory_file_released_on_close(self, session_settings):
        session = BatchSession("files", session_settings, create=FakeCreate(), registry=ResolverRegistry())
        session.add_file_bytes("notes.txt", b"hello")
        temp = session.items[0].source.handle.temp
        assert temp.path.exists()
        await session.aclose()
        assert temp.released
        assert not temp.path.exists()


class _Recorder:
    def __init__(self, events: list) -> None:
        self.events = events

    def on_progress(self, completed, total, outcome) -> None:
        self.events.append((completed, total))
