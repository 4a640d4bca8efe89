# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for the CrawlSession state machine."""

from datetime import datetime, timezone

import pytest

from careerscout.agents.session import CrawlSession
from careerscout.agents.types import (
    ActionHistoryEntry,
    ExtractedJob,
    ReflectionResult,
    SessionStatus,
    ToolOutcome,
)

URL = "https://careers.example.com"


def step(number, outcome=ToolOutcome.SUCCESS, **extra):
    return ActionHistoryEntry(step=number, tool_name="get_page_info", tool_input={}, outcome=outcome, **extra)


class TestLifecycle:
    def test_create(self):
        session = CrawlSession.create(URL, "Acme")
        assert session.status == SessionStatus.IN_PROGRESS
        assert len(session.session_id) == 8
        assert session.history == ()
        assert session.job_count == 0
        assert not session.can_resume()

    def test_transitions(self):
        session = CrawlSession.create(URL, "Acme")
        now = datetime(2026, 1, 2, tzinfo=timezone.utc)

        completed = session.complete(now)
        assert completed.status == SessionStatus.COMPLETED
        assert completed.updated_at == now.isoformat()
        assert not completed.can_resume()

        failed = session.fail("network down")
        assert failed.failure_reason == "network down"
        assert failed.can_resume()

        suspended = session.suspend("continue from page 3")
        assert suspended.resume_hint == "continue from page 3"
        assert suspended.can_resume()

        assert session.status == SessionStatus.IN_PROGRESS

    def test_history_must_be_gapless(self):
        session = CrawlSession.create(URL, "Acme").add_history_entry(step(1))
        with pytest.raises(ValueError):
            session.add_history_entry(step(3))
        with pytest.raises(ValueError):
            session.add_history_entry(step(1))
        assert len(session.add_history_entry(step(2)).history) == 2


class TestExtractedJobs:
    def test_dedup_is_case_insensitive_on_title_and_location(self):
        session = CrawlSession.create(URL, "Acme").add_extracted_jobs(
            [
                ExtractedJob("Engineer", "Seoul"),
                ExtractedJob("ENGINEER", "seoul"),
                ExtractedJob("Engineer", "Tokyo"),
                ExtractedJob("Engineer"),
            ]
        )
        assert [(j.title, j.location) for j in session.extracted_jobs] == [
            ("Engineer", "Seoul"),
            ("Engineer", "Tokyo"),
            ("Engineer", None),
        ]

    def test_adding_only_known_jobs_keeps_the_same_value(self):
        session = CrawlSession.create(URL, "Acme", extracted_jobs=[ExtractedJob("Engineer")])
        assert session.add_extracted_jobs([ExtractedJob("engineer")]) is session


class TestSummaryAndSerialization:
    def test_summary(self):
        session = (
            CrawlSession.create(URL, "Acme", extracted_jobs=[ExtractedJob("Engineer")])
            .add_history_entry(step(1))
            .add_history_entry(step(2, ToolOutcome.FAILED))
            .suspend("retry pagination")
        )
        summary = session.generate_summary()
        assert "**Company**: Acme" in summary
        assert "**Status**: suspended (resumable)" in summary
        assert "- Jobs collected: 1" in summary
        assert "- Steps executed: 2 (success: 1, failed: 1)" in summary
        assert "### Resume hint\nretry pagination" in summary
        assert "- Result: failed" in summary

    def test_dict_roundtrip(self):
        reflection = ReflectionResult("bad selector", "use another", True)
        session = (
            CrawlSession.create(URL, "Acme", extracted_jobs=[ExtractedJob("Engineer", "Seoul", detail_url=f"{URL}/1")])
            .add_history_entry(step(1, ToolOutcome.FAILED, reasoning="look", reflection=reflection))
            .fail("model unavailable")
        )
        data = session.to_dict()
        assert data["sessionId"] == session.session_id
        assert data["status"] == "failed"
        assert data["failureReason"] == "model unavailable"
        assert data["extractedJobs"] == [{"title": "Engineer", "location": "Seoul", "detailUrl": f"{URL}/1"}]
        assert data["history"][0]["result"] == "failed"
        assert data["history"][0]["thought"] == "look"
        assert CrawlSession.from_dict(data) == session

    def test_from_dict_requires_core_fields(self):
        with pytest.raises(KeyError):
            CrawlSession.from_dict({"url": URL, "company": "Acme", "status": "completed"})
