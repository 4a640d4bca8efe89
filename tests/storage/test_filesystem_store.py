# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for FileSystemStore."""

import asyncio

import pytest

from careerscout.exceptions import StorageError


class TestFileSystemStore:
    @pytest.mark.asyncio
    async def test_write_and_read(self, kv_store):
        await kv_store.write("session.json", '{"a": 1}')
        assert await kv_store.read("session.json") == '{"a": 1}'

        await kv_store.write("session.json", '{"a": 2}')
        assert await kv_store.read("session.json") == '{"a": 2}'

    @pytest.mark.asyncio
    async def test_read_missing_key(self, kv_store):
        assert await kv_store.read("missing.json") is None

    @pytest.mark.asyncio
    async def test_write_leaves_no_temporary_files(self, kv_store):
        await kv_store.write("session.json", "{}")
        assert sorted(p.name for p in kv_store.base_dir.iterdir()) == ["session.json"]

    @pytest.mark.asyncio
    async def test_append_line(self, kv_store):
        await kv_store.append_line("log.jsonl", "first")
        await kv_store.append_line("log.jsonl", "second\n")
        assert await kv_store.read("log.jsonl") == "first\nsecond\n"

    @pytest.mark.asyncio
    async def test_concurrent_appends_keep_whole_lines(self, kv_store):
        lines = [f'{{"n": {i}, "pad": "{"x" * 200}"}}' for i in range(50)]
        await asyncio.gather(*(kv_store.append_line("log.jsonl", line) for line in lines))

        written = (await kv_store.read("log.jsonl")).splitlines()
        assert sorted(written) == sorted(lines)

    @pytest.mark.asyncio
    async def test_list_keys_with_prefix(self, kv_store):
        await kv_store.write("acme_1.json", "{}")
        await kv_store.write("acme_2.json", "{}")
        await kv_store.write("globex_1.json", "{}")

        keys = await kv_store.list_keys("acme_")

        assert sorted(k.key for k in keys) == ["acme_1.json", "acme_2.json"]
        assert all(k.modified_at > 0 for k in keys)

    @pytest.mark.asyncio
    async def test_delete(self, kv_store):
        await kv_store.write("a.json", "{}")
        assert await kv_store.delete("a.json") is True
        assert await kv_store.delete("a.json") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "..", "../escape.json", "nested/key.json"])
    async def test_invalid_keys(self, kv_store, key):
        with pytest.raises(StorageError):
            await kv_store.write(key, "{}")
