# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for the tool catalogue and tool input validation."""

import pytest

from careerscout.agents.tools.schemas import (
    TOOL_CATALOGUE,
    BrowserDriver,
    ExtractJobsInput,
    ScrollInput,
    ToolName,
    parse_tool_input,
    scroll_position,
)
from careerscout.exceptions import ToolInputError

from conftest import ScriptedDriver


class TestToolCatalogue:
    def test_nine_tools_in_stable_order(self):
        assert [tool.name for tool in TOOL_CATALOGUE] == [name.value for name in ToolName]
        assert len(TOOL_CATALOGUE) == 9

    def test_schemas_are_objects_without_titles(self):
        for tool in TOOL_CATALOGUE:
            assert tool.input_schema["type"] == "object"
            assert "properties" in tool.input_schema
            assert "title" not in tool.input_schema
            assert tool.description

    def test_required_fields_use_wire_names(self):
        schemas = {tool.name: tool.input_schema for tool in TOOL_CATALOGUE}
        assert schemas["navigate"]["required"] == ["url"]
        assert schemas["extract_jobs"]["required"] == ["jobCardSelector"]
        assert "containerSelector" in schemas["extract_job_detail"]["properties"]
        assert "required" not in schemas["get_page_info"]
        assert schemas["scroll"]["properties"]["direction"]["enum"] == ["down", "up"]


class TestParseToolInput:
    def test_defaults(self):
        params = parse_tool_input("scroll", {})
        assert isinstance(params, ScrollInput)
        assert params.direction == "down"
        assert params.amount == 500
        assert parse_tool_input("wait", None).ms == 1000
        assert parse_tool_input("extract_job_detail", {}).container_selector == "body"

    def test_alias(self):
        params = parse_tool_input("extract_jobs", {"jobCardSelector": "li.job"})
        assert isinstance(params, ExtractJobsInput)
        assert params.job_card_selector == "li.job"

    def test_done_reason_is_optional(self):
        assert parse_tool_input("done", {}).reason == ""

    def test_unknown_keys_are_ignored(self):
        assert parse_tool_input("click", {"selector": ".a", "force": True}).selector == ".a"

    def test_unknown_tool(self):
        with pytest.raises(ToolInputError, match="Unknown tool: hover"):
            parse_tool_input("hover", {})

    @pytest.mark.parametrize(
        "tool_name,raw",
        [
            ("navigate", {}),
            ("click", {"selector": ""}),
            ("scroll", {"direction": "left"}),
            ("wait", {"ms": -1}),
            ("input_text", {"selector": "#q"}),
            ("click", ["not", "an", "object"]),
        ],
    )
    def test_invalid_input(self, tool_name, raw):
        with pytest.raises(ToolInputError):
            parse_tool_input(tool_name, raw)


class TestHelpers:
    def test_scroll_position(self):
        assert scroll_position({"current_position": 1200.0}) == 1200
        assert scroll_position({"message": "ok"}) is None
        assert scroll_position(None) is None

    def test_scripted_driver_satisfies_protocol(self):
        assert isinstance(ScriptedDriver(), BrowserDriver)
