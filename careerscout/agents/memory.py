# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Block-based working memory for the crawler agent.

The agent's working context is a fixed set of named blocks, each with a
token budget and a priority (lower value = more critical). The manager
estimates the token cost of the whole set, reports when it crosses the
compression threshold, and lists blocks least-critical first so the caller
can replace their content with shorter summaries.

Both MemoryBlock and MemoryManager are immutable: every update returns a
new instance.

Example:
    >>> memory = MemoryManager.create(
    ...     [
    ...         BlockSpec("persona", "You are a job crawler.", max_tokens=100, priority=1),
    ...         BlockSpec("recent_actions", "", max_tokens=500, priority=4),
    ...     ],
    ...     max_total_tokens=4000,
    ... )
    >>> memory = memory.update("recent_actions", "navigate(success)")
    >>> if memory.needs_compression():
    ...     block = memory.next_compressible()
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from careerscout.exceptions import MemoryCompressionError

logger = logging.getLogger(__name__)

#: Characters per estimated token. Content mixes Latin and CJK text, so the
#: ratio sits below the usual English figure of four.
CHARS_PER_TOKEN = 3


def estimate_tokens(text: str) -> int:
    """Deterministic token estimate: ``ceil(len(text) / 3)``."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass(frozen=True)
class BlockSpec:
    """Construction arguments for one memory block."""

    name: str
    content: str
    max_tokens: int
    priority: int


@dataclass(frozen=True)
class MemoryBlock:
    """One named, prioritized, token-budgeted slice of working context."""

    name: str
    content: str
    max_tokens: int
    priority: int

    @property
    def estimated_tokens(self) -> int:
        return estimate_tokens(self.content)

    def is_over_capacity(self) -> bool:
        """True when the content is estimated above the block's own budget."""
        return self.estimated_tokens > self.max_tokens

    def with_content(self, content: str) -> MemoryBlock:
        return replace(self, content=content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "content": self.content,
            "maxTokens": self.max_tokens,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MemoryBlock:
        return cls(
            name=data["name"],
            content=data.get("content", ""),
            max_tokens=int(data["maxTokens"]),
            priority=int(data["priority"]),
        )


class MemoryManager:
    """
    Fixed set of memory blocks with a global token budget.

    Blocks are established at construction and never added or removed;
    only their content changes. Referring to an unknown block name raises
    ``KeyError``.

    Blocks whose priority is less than or equal to ``protected_priority``
    cannot be compressed: ``compress`` raises ``MemoryCompressionError``.
    Set ``protected_priority`` to ``None`` to allow compressing any block.
    """

    DEFAULT_MAX_TOTAL_TOKENS = 4000
    DEFAULT_COMPRESSION_THRESHOLD = 0.9

    def __init__(
        self,
        blocks: Iterable[MemoryBlock],
        max_total_tokens: int = DEFAULT_MAX_TOTAL_TOKENS,
        compression_threshold: float = DEFAULT_COMPRESSION_THRESHOLD,
        protected_priority: Optional[int] = 1,
    ) -> None:
        self._blocks: Tuple[MemoryBlock, ...] = tuple(blocks)
        names = [block.name for block in self._blocks]
        if len(set(names)) != len(names):
            raise ValueError(f"Memory block names must be unique: {names}")
        if max_total_tokens <= 0:
            raise ValueError("max_total_tokens must be positive")
        self.max_total_tokens = max_total_tokens
        self.compression_threshold = compression_threshold
        self.protected_priority = protected_priority

    @classmethod
    def create(
        cls,
        specs: Iterable[BlockSpec],
        max_total_tokens: int = DEFAULT_MAX_TOTAL_TOKENS,
        compression_threshold: float = DEFAULT_COMPRESSION_THRESHOLD,
        protected_priority: Optional[int] = 1,
    ) -> MemoryManager:
        blocks = [MemoryBlock(s.name, s.content, s.max_tokens, s.priority) for s in specs]
        return cls(blocks, max_total_tokens, compression_threshold, protected_priority)

    def _with_blocks(self, blocks: Iterable[MemoryBlock]) -> MemoryManager:
        return MemoryManager(
            blocks,
            max_total_tokens=self.max_total_tokens,
            compression_threshold=self.compression_threshold,
            protected_priority=self.protected_priority,
        )

    def _replace_content(self, name: str, content: str) -> MemoryManager:
        self.get(name)
        return self._with_blocks(
            block.with_content(content) if block.name == name else block
            for block in self._blocks
        )

    @property
    def blocks(self) -> List[MemoryBlock]:
        """Blocks in declaration order."""
        return list(self._blocks)

    @property
    def block_count(self) -> int:
        return len(self._blocks)

    @property
    def total_estimated_tokens(self) -> int:
        return sum(block.estimated_tokens for block in self._blocks)

    @property
    def usage_percentage(self) -> float:
        """Estimated usage of the global budget, 0-100 (can exceed 100)."""
        return self.total_estimated_tokens / self.max_total_tokens * 100

    def get(self, name: str) -> MemoryBlock:
        for block in self._blocks:
            if block.name == name:
                return block
        raise KeyError(f"Unknown memory block: {name}")

    def update(self, name: str, content: str) -> MemoryManager:
        """Replace a block's content."""
        return self._replace_content(name, content)

    def append(self, name: str, more_content: str) -> MemoryManager:
        """Append text to a block's content."""
        return self._replace_content(name, self.get(name).content + more_content)

    def build_context(self) -> str:
        """Render every block, most critical first, as ``## name`` plus content."""
        ordered = sorted(self._blocks, key=lambda block: block.priority)
        return "\n\n".join(f"## {block.name}\n{block.content}" for block in ordered)

    def needs_compression(self) -> bool:
        return self.total_estimated_tokens / self.max_total_tokens >= self.compression_threshold

    def get_compression_candidates(self) -> List[MemoryBlock]:
        """All blocks, least critical (highest priority value) first."""
        return sorted(self._blocks, key=lambda block: -block.priority)

    def is_protected(self, block: MemoryBlock) -> bool:
        return self.protected_priority is not None and block.priority <= self.protected_priority

    def next_compressible(self) -> Optional[MemoryBlock]:
        """First compression candidate that is not protected, if any."""
        for block in self.get_compression_candidates():
            if not self.is_protected(block):
                return block
        return None

    def compress(self, name: str, new_content: str) -> MemoryManager:
        """
        Replace a block's content with a shorter summary.

        Name, priority and budget are unchanged.

        Raises:
            KeyError: Unknown block name
            MemoryCompressionError: The block is protected
        """
        block = self.get(name)
        if self.is_protected(block):
            raise MemoryCompressionError(
                f"Memory block '{name}' is protected from compression",
                details={"priority": block.priority, "protected_priority": self.protected_priority},
            )
        logger.debug(
            f"Compressing memory block {name}: "
            f"{block.estimated_tokens} -> {estimate_tokens(new_content)} tokens"
        )
        return self._replace_content(name, new_content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blocks": [block.to_dict() for block in self._blocks],
            "options": {
                "maxTotalTokens": self.max_total_tokens,
                "compressionThreshold": self.compression_threshold,
                "protectedPriority": self.protected_priority,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MemoryManager:
        options = data.get("options", {})
        return cls(
            [MemoryBlock.from_dict(block) for block in data.get("blocks", [])],
            max_total_tokens=int(options.get("maxTotalTokens", cls.DEFAULT_MAX_TOTAL_TOKENS)),
            compression_threshold=float(
                options.get("compressionThreshold", cls.DEFAULT_COMPRESSION_THRESHOLD)
            ),
            protected_priority=options.get("protectedPriority", 1),
        )
