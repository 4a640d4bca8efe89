# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for MemoryManager."""

import pytest

from careerscout.agents.memory import BlockSpec, MemoryBlock, MemoryManager, estimate_tokens
from careerscout.exceptions import MemoryCompressionError


def make_memory(**options):
    return MemoryManager.create(
        [
            BlockSpec("persona", "You are a job crawler.", max_tokens=100, priority=1),
            BlockSpec("current_task", "Collect every job", max_tokens=300, priority=2),
            BlockSpec("collected_data", "", max_tokens=1000, priority=3),
            BlockSpec("recent_actions", "", max_tokens=500, priority=4),
        ],
        **options,
    )


class TestEstimateTokens:
    def test_rounds_up(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("a") == 1
        assert estimate_tokens("abc") == 1
        assert estimate_tokens("abcd") == 2

    def test_block_over_capacity(self):
        block = MemoryBlock("notes", "x" * 31, max_tokens=10, priority=3)
        assert block.estimated_tokens == 11
        assert block.is_over_capacity()
        assert not block.with_content("x" * 30).is_over_capacity()


class TestMemoryManager:
    def test_blocks_are_fixed_at_construction(self):
        memory = make_memory()
        assert memory.block_count == 4
        with pytest.raises(KeyError):
            memory.get("unknown")
        with pytest.raises(KeyError):
            memory.update("unknown", "text")

    def test_duplicate_names_are_rejected(self):
        with pytest.raises(ValueError):
            MemoryManager.create(
                [BlockSpec("a", "", 10, 1), BlockSpec("a", "", 10, 2)]
            )

    def test_update_returns_new_instance(self):
        memory = make_memory()
        updated = memory.update("recent_actions", "navigate(success)")
        assert memory.get("recent_actions").content == ""
        assert updated.get("recent_actions").content == "navigate(success)"
        assert updated.max_total_tokens == memory.max_total_tokens

    def test_append(self):
        memory = make_memory().update("recent_actions", "a").append("recent_actions", " -> b")
        assert memory.get("recent_actions").content == "a -> b"

    def test_total_and_usage(self):
        memory = make_memory(max_total_tokens=100).update("collected_data", "x" * 30)
        expected = sum(estimate_tokens(b.content) for b in memory.blocks)
        assert memory.total_estimated_tokens == expected
        assert memory.usage_percentage == pytest.approx(expected)

    def test_build_context_orders_by_priority(self):
        memory = MemoryManager.create(
            [BlockSpec("low", "L", 10, 4), BlockSpec("high", "H", 10, 1), BlockSpec("mid", "M", 10, 2)]
        )
        assert memory.build_context() == "## high\nH\n\n## mid\nM\n\n## low\nL"

    def test_needs_compression_at_threshold(self):
        memory = MemoryManager.create([BlockSpec("a", "", 100, 2)], max_total_tokens=10, compression_threshold=0.5)
        assert not memory.update("a", "x" * 12).needs_compression()
        assert memory.update("a", "x" * 15).needs_compression()

    def test_compression_candidates_least_critical_first(self):
        memory = make_memory()
        names = [block.name for block in memory.get_compression_candidates()]
        assert names == ["recent_actions", "collected_data", "current_task", "persona"]
        assert memory.next_compressible().name == "recent_actions"

    def test_compress_keeps_metadata(self):
        memory = make_memory().update("recent_actions", "a very long history " * 20)
        compressed = memory.compress("recent_actions", "Recent: short")
        block = compressed.get("recent_actions")
        assert block.content == "Recent: short"
        assert block.priority == 4
        assert block.max_tokens == 500
        assert compressed.total_estimated_tokens < memory.total_estimated_tokens
        for name in ("persona", "current_task", "collected_data"):
            assert compressed.get(name) == memory.get(name)

    def test_protected_block_cannot_be_compressed(self):
        memory = make_memory()
        with pytest.raises(MemoryCompressionError):
            memory.compress("persona", "")

    def test_protection_can_be_disabled(self):
        memory = make_memory(protected_priority=None)
        assert memory.compress("persona", "crawler").get("persona").content == "crawler"

    def test_next_compressible_none_when_everything_protected(self):
        memory = MemoryManager.create([BlockSpec("persona", "p", 10, 1)])
        assert memory.next_compressible() is None

    def test_dict_roundtrip(self):
        memory = make_memory(max_total_tokens=2000, compression_threshold=0.8).update("collected_data", "3 jobs")
        restored = MemoryManager.from_dict(memory.to_dict())
        assert restored.blocks == memory.blocks
        assert restored.max_total_tokens == 2000
        assert restored.compression_threshold == 0.8
        assert memory.to_dict()["blocks"][0]["maxTokens"] == 100
