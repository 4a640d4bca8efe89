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
Append-only failure case log.

Each failure case is one JSON line. ``append`` never rewrites existing
lines, so the log survives crashes and concurrent writers.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from careerscout.agents.failure_case import FailureCase
from careerscout.storage.base import KeyValueStore
from careerscout.utils.logger import logger

DEFAULT_FAILURE_CASES_KEY = "failure_cases.jsonl"
DEFAULT_FEW_SHOT_LIMIT = 5
NO_EXAMPLES_PLACEHOLDER = "# No failure cases collected yet."


@dataclass
class FailureCaseStats:
    """Aggregate counts over the failure case log."""

    total: int = 0
    resolved: int = 0
    unresolved: int = 0
    resolution_rate: float = 0.0
    by_tool: Dict[str, int] = field(default_factory=dict)
    by_company: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "resolved": self.resolved,
            "unresolved": self.unresolved,
            "resolutionRate": self.resolution_rate,
            "byTool": dict(self.by_tool),
            "byCompany": dict(self.by_company),
        }


class FailureCaseStore:
    """Failure case log on top of a key/value store."""

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_FAILURE_CASES_KEY) -> None:
        self.store = store
        self.key = key

    async def append(self, failure_case: FailureCase) -> None:
        """Append one case as a JSON line.

        Raises:
            StorageError: The backing store rejected the write
        """
        await self.store.append_line(
            self.key, json.dumps(failure_case.to_dict(), ensure_ascii=False, default=str)
        )

    async def load_all(self) -> List[FailureCase]:
        """Every readable case in append order; malformed lines are skipped."""
        raw = await self.store.read(self.key)
        if not raw:
            return []

        cases = []
        for line_number, line in enumerate(raw.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                cases.append(FailureCase.from_dict(json.loads(line)))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed failure case at {self.key}:{line_number}: {e}")
        return cases

    async def load_by_company(self, company: str) -> List[FailureCase]:
        return [case for case in await self.load_all() if case.company == company]

    async def load_by_tool(self, tool_name: str) -> List[FailureCase]:
        return [case for case in await self.load_all() if case.tool_name == tool_name]

    async def load_unresolved(self) -> List[FailureCase]:
        return [case for case in await self.load_all() if not case.resolved]

    async def load_recent(self, limit: int) -> List[FailureCase]:
        """The last ``limit`` cases in append order."""
        if limit <= 0:
            return []
        return (await self.load_all())[-limit:]

    async def get_stats(self) -> FailureCaseStats:
        cases = await self.load_all()
        resolved = sum(1 for case in cases if case.resolved)
        return FailureCaseStats(
            total=len(cases),
            resolved=resolved,
            unresolved=len(cases) - resolved,
            resolution_rate=FailureCase.get_resolution_rate(cases),
            by_tool=FailureCase.get_tool_stats(cases),
            by_company=dict(Counter(case.company for case in cases)),
        )

    async def to_few_shot_examples(self, limit: Optional[int] = None) -> str:
        """
        Render resolved cases as few-shot examples, most recent first.

        Returns a placeholder line when no resolved case exists.
        """
        if limit is None:
            limit = DEFAULT_FEW_SHOT_LIMIT
        resolved = [case for case in await self.load_all() if case.resolved]
        selected = list(reversed(resolved[-limit:])) if limit > 0 else []
        if not selected:
            return NO_EXAMPLES_PLACEHOLDER

        examples = "\n\n".join(case.to_few_shot() for case in selected)
        return f"# Previous failure cases and their resolutions\n\n{examples}"
