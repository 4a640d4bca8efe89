# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for CheckpointStore."""

import os

import pytest

from careerscout.agents.session import CrawlSession
from careerscout.agents.types import ActionHistoryEntry, ExtractedJob, ToolOutcome
from careerscout.storage.checkpoint_store import CheckpointStore, sanitize_company
from careerscout.storage.filesystem import FileSystemStore

URL = "https://careers.example.com"


@pytest.fixture
def store(tmp_path):
    return CheckpointStore(FileSystemStore(tmp_path))


def set_mtime(store, locator, mtime):
    os.utime(store.store.base_dir / locator, (mtime, mtime))


class TestSanitizeCompany:
    def test_lowercases_and_collapses(self):
        assert sanitize_company("Acme Corp.") == "acme_corp"
        assert sanitize_company("  Foo / Bar  ") == "foo_bar"
        assert sanitize_company("토스") == "토스"


class TestCheckpointStore:
    @pytest.mark.asyncio
    async def test_save_and_load(self, store):
        session = (
            CrawlSession.create(URL, "Acme Corp", extracted_jobs=[ExtractedJob("Engineer")])
            .add_history_entry(ActionHistoryEntry(1, "get_page_info", {}, ToolOutcome.SUCCESS))
            .suspend("page 2")
        )

        locator = await store.save(session)

        assert locator == f"acme_corp_{session.session_id}.json"
        assert await store.load(locator) == session

    @pytest.mark.asyncio
    async def test_load_accepts_a_path(self, store):
        session = CrawlSession.create(URL, "Acme")
        locator = await store.save(session)
        assert await store.load(f".cache/checkpoints/{locator}") == session

    @pytest.mark.asyncio
    async def test_load_missing_or_corrupt(self, store):
        assert await store.load("acme_missing.json") is None
        await store.store.write("acme_broken.json", "{not json")
        assert await store.load("acme_broken.json") is None

    @pytest.mark.asyncio
    async def test_find_latest_by_company(self, store):
        older = CrawlSession.create(URL, "Acme").fail("timeout")
        newer = CrawlSession.create(URL, "Acme").complete()
        other = CrawlSession.create(URL, "Globex").fail("timeout")
        set_mtime(store, await store.save(older), 1_000)
        set_mtime(store, await store.save(newer), 2_000)
        set_mtime(store, await store.save(other), 3_000)

        latest = await store.find_latest_by_company("Acme")

        assert latest.session_id == newer.session_id
        assert await store.find_latest_by_company("Initech") is None

    @pytest.mark.asyncio
    async def test_find_latest_ignores_companies_sharing_the_prefix(self, store):
        acme = CrawlSession.create(URL, "Acme").fail("timeout")
        acme_corp = CrawlSession.create("https://acmecorp.example.com", "Acme Corp").fail("timeout")
        set_mtime(store, await store.save(acme), 1_000)
        set_mtime(store, await store.save(acme_corp), 2_000)

        latest = await store.find_latest_by_company("Acme")

        assert latest.session_id == acme.session_id
        assert latest.company == "Acme"
        assert (await store.find_latest_by_company("Acme Corp")).session_id == acme_corp.session_id

    @pytest.mark.asyncio
    async def test_find_latest_skips_unreadable(self, store):
        session = CrawlSession.create(URL, "Acme").fail("timeout")
        set_mtime(store, await store.save(session), 1_000)
        await store.store.write("acme_zzzz.json", "{broken")
        set_mtime(store, "acme_zzzz.json", 2_000)

        latest = await store.find_latest_by_company("Acme")

        assert latest.session_id == session.session_id

    @pytest.mark.asyncio
    async def test_list_resumable(self, store):
        failed = CrawlSession.create(URL, "Acme", extracted_jobs=[ExtractedJob("A"), ExtractedJob("B")]).fail("x")
        suspended = CrawlSession.create(URL, "Globex").suspend("later")
        await store.save(failed)
        await store.save(suspended)
        await store.save(CrawlSession.create(URL, "Initech").complete())
        await store.save(CrawlSession.create(URL, "Umbrella"))

        resumable = sorted(await store.list_resumable(), key=lambda c: c.company)

        assert [(c.company, c.status, c.job_count) for c in resumable] == [
            ("Acme", "failed", 2),
            ("Globex", "suspended", 0),
        ]
        assert resumable[0].locator == CheckpointStore.locator_for(failed)

    @pytest.mark.asyncio
    async def test_delete(self, store):
        locator = await store.save(CrawlSession.create(URL, "Acme"))
        assert await store.delete(locator) is True
        assert await store.load(locator) is None
