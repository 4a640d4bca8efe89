# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for FailureCase records."""

from datetime import datetime, timezone

import pytest

from careerscout.agents.failure_case import FailureCase
from careerscout.agents.types import AlternativeAction, ReflectionResult


def make_case(tool_name="click", resolution=None, **overrides):
    fields = dict(
        url="https://careers.example.com",
        company="Acme",
        tool_name=tool_name,
        tool_input={"selector": ".next"},
        error="Element not found",
        page_context="Step 2, collected jobs: 5",
        timestamp=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    case = FailureCase.create(**fields)
    return case.add_resolution(resolution) if resolution else case


class TestFailureCase:
    def test_create_is_unresolved(self):
        case = make_case()
        assert case.timestamp == "2026-03-01T09:30:00+00:00"
        assert case.resolution is None
        assert not case.resolved

    def test_add_resolution_returns_new_value(self):
        case = make_case()
        resolved = case.add_resolution("Used a.next-page")
        assert resolved.resolved
        assert not case.resolved
        assert resolved.error == case.error

    def test_to_few_shot(self):
        reflection = ReflectionResult("Stale selector", "Re-read the page", True)
        text = make_case(reflection=reflection, resolution="Used a.next-page").to_few_shot()
        assert 'Attempt: click({"selector": ".next"})' in text
        assert "Result: failed - Element not found" in text
        assert "Analysis: Stale selector" in text
        assert text.endswith("Resolution: Used a.next-page")

    def test_to_few_shot_unresolved(self):
        assert make_case().to_few_shot().endswith("Resolution: unresolved")

    def test_dict_roundtrip(self):
        reflection = ReflectionResult(
            "Stale selector", "Re-read the page", False, AlternativeAction("get_page_info", {})
        )
        case = make_case(reflection=reflection, resolution="fixed")
        data = case.to_dict()
        assert data["toolName"] == "click"
        assert data["pageContext"] == "Step 2, collected jobs: 5"
        assert data["reflection"]["alternativeAction"] == {"toolName": "get_page_info", "toolInput": {}}
        assert FailureCase.from_dict(data) == case

    def test_unresolved_dict_has_no_resolution_key(self):
        assert "resolution" not in make_case().to_dict()

    def test_tool_stats(self):
        cases = [make_case("click"), make_case("click"), make_case("scroll")]
        assert FailureCase.get_tool_stats(cases) == {"click": 2, "scroll": 1}

    def test_resolution_rate(self):
        assert FailureCase.get_resolution_rate([]) == 0.0
        cases = [make_case(resolution="ok"), make_case(), make_case(), make_case(resolution="ok")]
        assert FailureCase.get_resolution_rate(cases) == 0.5
        three = [make_case(resolution="ok"), make_case(resolution="ok"), make_case()]
        assert FailureCase.get_resolution_rate(three) == pytest.approx(2 / 3)
