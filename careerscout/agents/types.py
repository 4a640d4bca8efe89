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
Core types shared by the crawler agent components.

Key Components:
- ToolResult: Standardized result returned by the browser driver
- ExtractedJob: A job card collected during a session
- ReflectionResult: Structured diagnosis of a failed action
- ActionHistoryEntry: One recorded step of the control loop
- JobPosting: Output record handed back to the caller
- SessionStatus / ToolOutcome: lifecycle and step outcome enums

Values that are persisted (checkpoints, failure cases) serialize with
camelCase keys so files written by earlier crawler versions stay readable.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utc_now() -> datetime:
    """Timezone-aware current time, used for every persisted timestamp."""
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """Lifecycle states of a crawl session."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SUSPENDED = "suspended"


class ToolOutcome(str, Enum):
    """Outcome of one tool execution."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class ToolResult:
    """
    Standardized result from tool execution.

    The browser driver never raises; every failure comes back as a
    ToolResult with ``success=False`` and an error message.
    """

    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def success_result(cls, data: Any = None) -> ToolResult:
        """Create a successful tool result."""
        return cls(success=True, data=data)

    @classmethod
    def error_result(cls, error: str, data: Any = None) -> ToolResult:
        """Create an error tool result with optional context data."""
        return cls(success=False, error=error, data=data)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class ExtractedJob:
    """A job card as collected from a listing page."""

    title: str
    location: Optional[str] = None
    department: Optional[str] = None
    detail_url: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        """Case-insensitive identity of a job within a session."""
        return f"{self.title.lower()}:{(self.location or '').lower()}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"title": self.title}
        if self.location is not None:
            data["location"] = self.location
        if self.department is not None:
            data["department"] = self.department
        if self.detail_url is not None:
            data["detailUrl"] = self.detail_url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExtractedJob:
        return cls(
            title=str(data.get("title") or ""),
            location=data.get("location") or None,
            department=data.get("department") or None,
            detail_url=data.get("detailUrl") or data.get("detail_url") or None,
        )


@dataclass(frozen=True)
class AlternativeAction:
    """A tool call proposed by reflection in place of the failed one."""

    tool_name: str
    tool_input: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"toolName": self.tool_name, "toolInput": self.tool_input}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional[AlternativeAction]:
        tool_name = data.get("toolName") or data.get("tool_name")
        if not tool_name:
            return None
        return cls(tool_name=str(tool_name), tool_input=data.get("toolInput", data.get("tool_input")))


@dataclass(frozen=True)
class ReflectionResult:
    """Diagnosis of a failed tool call and what to try next."""

    analysis: str
    suggestion: str
    should_retry: bool = True
    alternative_action: Optional[AlternativeAction] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "analysis": self.analysis,
            "suggestion": self.suggestion,
            "shouldRetry": self.should_retry,
        }
        if self.alternative_action is not None:
            data["alternativeAction"] = self.alternative_action.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ReflectionResult:
        alternative = data.get("alternativeAction")
        return cls(
            analysis=str(data.get("analysis") or ""),
            suggestion=str(data.get("suggestion") or ""),
            should_retry=bool(data.get("shouldRetry", True)),
            alternative_action=(
                AlternativeAction.from_dict(alternative) if isinstance(alternative, dict) else None
            ),
        )


@dataclass(frozen=True)
class ActionHistoryEntry:
    """
    One step of the control loop.

    Attributes:
        step: 1-based step number, strictly increasing within a session
        tool_name: Tool invoked at this step
        tool_input: Raw tool input as produced by the model
        outcome: success or failed
        reasoning: Text the model produced alongside the tool call
        observation: Short description of the result
        reflection: Reflection attached when the step failed
    """

    step: int
    tool_name: str
    tool_input: Any
    outcome: ToolOutcome
    reasoning: Optional[str] = None
    observation: Optional[str] = None
    reflection: Optional[ReflectionResult] = None

    @property
    def failed(self) -> bool:
        return self.outcome == ToolOutcome.FAILED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "step": self.step,
            "toolName": self.tool_name,
            "toolInput": self.tool_input,
            "result": self.outcome.value,
        }
        if self.reasoning:
            data["thought"] = self.reasoning
        if self.observation:
            data["observation"] = self.observation
        if self.reflection is not None:
            data["reflection"] = self.reflection.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ActionHistoryEntry:
        reflection = data.get("reflection")
        return cls(
            step=int(data["step"]),
            tool_name=str(data["toolName"]),
            tool_input=data.get("toolInput"),
            outcome=ToolOutcome(data.get("result", ToolOutcome.SUCCESS.value)),
            reasoning=data.get("thought"),
            observation=data.get("observation"),
            reflection=ReflectionResult.from_dict(reflection) if isinstance(reflection, dict) else None,
        )


@dataclass
class JobPosting:
    """Output record for one job collected by the agent."""

    title: str
    company: str
    source_url: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    source_platform: str = "agent"
    crawled_at: datetime = field(default_factory=utc_now)
    location: Optional[str] = None
    department: Optional[str] = None

    @classmethod
    def from_extracted(cls, job: ExtractedJob, company: str, fallback_url: str) -> JobPosting:
        return cls(
            title=job.title,
            company=company,
            source_url=job.detail_url or fallback_url,
            location=job.location,
            department=job.department,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "sourcePlatform": self.source_platform,
            "company": self.company,
            "sourceUrl": self.source_url,
            "crawledAt": self.crawled_at.isoformat(),
        }
        if self.location is not None:
            data["location"] = self.location
        if self.department is not None:
            data["department"] = self.department
        return data


def jobs_from_payload(payload: Any) -> List[ExtractedJob]:
    """Read the ``jobs`` list of an extract_jobs result, skipping untitled cards."""
    if not isinstance(payload, dict):
        return []
    jobs = []
    for item in payload.get("jobs") or []:
        if isinstance(item, dict) and item.get("title"):
            jobs.append(ExtractedJob.from_dict(item))
    return jobs
