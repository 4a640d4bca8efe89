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
Crawl session state machine.

A CrawlSession is created ``in_progress`` and moves to exactly one of
``completed``, ``failed`` or ``suspended``. Failed and suspended sessions
can be resumed; resuming starts a fresh ``in_progress`` session that carries
the extracted jobs forward.

Sessions are immutable values. Every transition returns a new instance,
which is what the checkpoint store persists.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from careerscout.agents.types import (
    ActionHistoryEntry,
    ExtractedJob,
    SessionStatus,
    ToolOutcome,
    utc_now,
)

RESUMABLE_STATUSES = frozenset({SessionStatus.FAILED, SessionStatus.SUSPENDED})

_STATUS_TEXT = {
    SessionStatus.IN_PROGRESS: "in progress",
    SessionStatus.COMPLETED: "completed",
    SessionStatus.FAILED: "failed",
    SessionStatus.SUSPENDED: "suspended (resumable)",
}


def new_session_id() -> str:
    """Short opaque session identifier: the first 8 hex chars of a uuid4."""
    return uuid.uuid4().hex[:8]


@dataclass(frozen=True)
class CrawlSession:
    """Snapshot of one crawl target's progress."""

    session_id: str
    url: str
    company: str
    status: SessionStatus = SessionStatus.IN_PROGRESS
    created_at: str = field(default_factory=lambda: utc_now().isoformat())
    updated_at: Optional[str] = None
    extracted_jobs: Tuple[ExtractedJob, ...] = ()
    history: Tuple[ActionHistoryEntry, ...] = ()
    failure_reason: Optional[str] = None
    resume_hint: Optional[str] = None

    @classmethod
    def create(
        cls,
        url: str,
        company: str,
        session_id: Optional[str] = None,
        extracted_jobs: Iterable[ExtractedJob] = (),
        created_at: Optional[datetime] = None,
    ) -> CrawlSession:
        session = cls(
            session_id=session_id or new_session_id(),
            url=url,
            company=company,
            created_at=(created_at or utc_now()).isoformat(),
        )
        return session.add_extracted_jobs(extracted_jobs)

    @property
    def job_count(self) -> int:
        return len(self.extracted_jobs)

    def _finish(self, status: SessionStatus, now: Optional[datetime] = None, **changes: Any) -> CrawlSession:
        return replace(
            self,
            status=status,
            updated_at=(now or utc_now()).isoformat(),
            failure_reason=changes.get("failure_reason"),
            resume_hint=changes.get("resume_hint"),
        )

    def complete(self, now: Optional[datetime] = None) -> CrawlSession:
        return self._finish(SessionStatus.COMPLETED, now)

    def fail(self, reason: str, now: Optional[datetime] = None) -> CrawlSession:
        return self._finish(SessionStatus.FAILED, now, failure_reason=reason)

    def suspend(self, resume_hint: str, now: Optional[datetime] = None) -> CrawlSession:
        return self._finish(SessionStatus.SUSPENDED, now, resume_hint=resume_hint)

    def add_history_entry(self, entry: ActionHistoryEntry) -> CrawlSession:
        """
        Append one step to the history.

        Raises:
            ValueError: The step number does not follow the last recorded step
        """
        expected = self.history[-1].step + 1 if self.history else 1
        if entry.step != expected:
            raise ValueError(f"History step {entry.step} out of order, expected {expected}")
        return replace(self, history=self.history + (entry,))

    def add_extracted_jobs(self, jobs: Iterable[ExtractedJob]) -> CrawlSession:
        """Merge jobs, skipping any whose (title, location) key is already present."""
        seen = {job.dedup_key for job in self.extracted_jobs}
        merged = list(self.extracted_jobs)
        for job in jobs:
            if job.dedup_key not in seen:
                seen.add(job.dedup_key)
                merged.append(job)
        if len(merged) == len(self.extracted_jobs):
            return self
        return replace(self, extracted_jobs=tuple(merged))

    def can_resume(self) -> bool:
        return self.status in RESUMABLE_STATUSES

    def generate_summary(self) -> str:
        """Markdown progress summary for logs and the CLI."""
        total = len(self.history)
        succeeded = sum(1 for entry in self.history if entry.outcome == ToolOutcome.SUCCESS)
        failed = total - succeeded

        summary = (
            "## Crawl session summary\n\n"
            f"**Company**: {self.company}\n"
            f"**URL**: {self.url}\n"
            f"**Status**: {_STATUS_TEXT[self.status]}\n\n"
            "### Progress\n"
            f"- Jobs collected: {self.job_count}\n"
            f"- Steps executed: {total} (success: {succeeded}, failed: {failed})\n"
        )
        if self.failure_reason:
            summary += f"\n### Failure reason\n{self.failure_reason}\n"
        if self.resume_hint:
            summary += f"\n### Resume hint\n{self.resume_hint}\n"
        if self.history:
            last = self.history[-1]
            summary += f"\n### Last action\n- Tool: {last.tool_name}\n- Result: {last.outcome.value}\n"
        return summary

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "sessionId": self.session_id,
            "url": self.url,
            "company": self.company,
            "status": self.status.value,
            "createdAt": self.created_at,
            "extractedJobs": [job.to_dict() for job in self.extracted_jobs],
            "history": [entry.to_dict() for entry in self.history],
        }
        if self.updated_at:
            data["updatedAt"] = self.updated_at
        if self.failure_reason:
            data["failureReason"] = self.failure_reason
        if self.resume_hint:
            data["resumeHint"] = self.resume_hint
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CrawlSession:
        """
        Rebuild a session from its checkpoint form.

        Raises:
            KeyError / ValueError: Required fields are missing or malformed
        """
        return cls(
            session_id=str(data["sessionId"]),
            url=str(data["url"]),
            company=str(data["company"]),
            status=SessionStatus(data["status"]),
            created_at=str(data["createdAt"]),
            updated_at=data.get("updatedAt"),
            extracted_jobs=tuple(ExtractedJob.from_dict(job) for job in data.get("extractedJobs", [])),
            history=tuple(ActionHistoryEntry.from_dict(entry) for entry in data.get("history", [])),
            failure_reason=data.get("failureReason"),
            resume_hint=data.get("resumeHint"),
        )
