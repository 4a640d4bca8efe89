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

"""Failure case records: one failed tool call with its reflection and resolution."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from careerscout.agents.types import ReflectionResult, utc_now


@dataclass(frozen=True)
class FailureCase:
    """
    A durable record of one failed action.

    Independent of any session; ``company`` and ``url`` tag it for later
    correlation. The only permitted change after creation is attaching a
    resolution, which returns a new value.
    """

    timestamp: str
    url: str
    company: str
    tool_name: str
    tool_input: Any
    error: str
    page_context: str
    reflection: Optional[ReflectionResult] = None
    resolution: Optional[str] = None

    @classmethod
    def create(
        cls,
        url: str,
        company: str,
        tool_name: str,
        tool_input: Any,
        error: str,
        page_context: str,
        reflection: Optional[ReflectionResult] = None,
        timestamp: Optional[datetime] = None,
    ) -> FailureCase:
        return cls(
            timestamp=(timestamp or utc_now()).isoformat(),
            url=url,
            company=company,
            tool_name=tool_name,
            tool_input=tool_input,
            error=error,
            page_context=page_context,
            reflection=reflection,
        )

    @property
    def resolved(self) -> bool:
        return self.resolution is not None

    def add_resolution(self, resolution: str) -> FailureCase:
        return replace(self, resolution=resolution)

    def to_few_shot(self) -> str:
        """Render as a compact narrative block for few-shot prompting."""
        tool_input = json.dumps(self.tool_input, ensure_ascii=False, default=str)
        lines = [
            f"### Failure case ({self.timestamp})",
            f"URL: {self.url}",
            f"Company: {self.company}",
            f"Page state: {self.page_context}",
            f"Attempt: {self.tool_name}({tool_input})",
            f"Result: failed - {self.error}",
        ]
        if self.reflection is not None:
            lines.append(f"Analysis: {self.reflection.analysis}")
            lines.append(f"Suggestion: {self.reflection.suggestion}")
        lines.append(f"Resolution: {self.resolution or 'unresolved'}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "url": self.url,
            "company": self.company,
            "toolName": self.tool_name,
            "toolInput": self.tool_input,
            "error": self.error,
            "pageContext": self.page_context,
        }
        if self.reflection is not None:
            data["reflection"] = self.reflection.to_dict()
        if self.resolution is not None:
            data["resolution"] = self.resolution
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FailureCase:
        reflection = data.get("reflection")
        return cls(
            timestamp=str(data["timestamp"]),
            url=str(data.get("url", "")),
            company=str(data.get("company", "")),
            tool_name=str(data["toolName"]),
            tool_input=data.get("toolInput"),
            error=str(data.get("error", "")),
            page_context=str(data.get("pageContext", "")),
            reflection=ReflectionResult.from_dict(reflection) if isinstance(reflection, dict) else None,
            resolution=data.get("resolution"),
        )

    @staticmethod
    def get_tool_stats(cases: Iterable[FailureCase]) -> Dict[str, int]:
        """Failure count per tool name."""
        return dict(Counter(case.tool_name for case in cases))

    @staticmethod
    def get_resolution_rate(cases: Iterable[FailureCase]) -> float:
        """Resolved / total, 0.0 for an empty collection."""
        cases = list(cases)
        if not cases:
            return 0.0
        return sum(1 for case in cases if case.resolved) / len(cases)
