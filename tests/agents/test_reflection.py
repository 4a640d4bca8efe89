# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for the reflection engine."""

import pytest

from careerscout.agents.reflection import (
    DEFAULT_SUGGESTION,
    ReflectionEngine,
    build_reflection_prompt,
    count_trailing_failures,
    parse_reflection,
)
from careerscout.agents.types import ActionHistoryEntry, ToolOutcome
from careerscout.exceptions import LLMProviderError

from conftest import VALID_REFLECTION, RecordingLog, ScriptedLLM


def entry(step, outcome=ToolOutcome.SUCCESS, tool_name="click"):
    return ActionHistoryEntry(step=step, tool_name=tool_name, tool_input={}, outcome=outcome)


FAILED = ToolOutcome.FAILED


class TestTrailingFailures:
    def test_counts_until_first_success(self):
        history = [entry(1, FAILED), entry(2), entry(3, FAILED), entry(4, FAILED)]
        assert count_trailing_failures(history) == 2

    def test_empty_history(self):
        assert count_trailing_failures([]) == 0


class TestPrompt:
    def test_contains_failed_call(self):
        prompt = build_reflection_prompt("click", {"selector": ".next"}, "not found", [])
        assert "**Failed tool**: click" in prompt
        assert '"selector": ".next"' in prompt
        assert "**Error message**: not found" in prompt
        assert "Recent history" not in prompt

    def test_history_window_is_bounded(self):
        history = [entry(i, tool_name=f"tool{i}") for i in range(1, 9)]
        prompt = build_reflection_prompt("click", {}, "err", history, history_window=5)
        assert "## Recent history (last 5)" in prompt
        assert "Step 3:" not in prompt
        assert "- Step 4: tool4 OK" in prompt
        assert "- Step 8: tool8 OK" in prompt

    def test_escalation_after_three_trailing_failures(self):
        history = [entry(1), entry(2, FAILED), entry(3, FAILED)]
        assert "WARNING" not in build_reflection_prompt("click", {}, "err", history)

        history.append(entry(4, FAILED))
        prompt = build_reflection_prompt("click", {}, "err", history)
        assert "WARNING: 3 consecutive failures" in prompt


class TestParseReflection:
    def test_fenced_json(self):
        text = f"Here is my analysis:\n```json\n{VALID_REFLECTION}\n```"
        result = parse_reflection(text)
        assert result.analysis == "The selector does not match any element"
        assert result.should_retry is True
        assert result.alternative_action.tool_name == "get_page_info"

    def test_bare_json_with_defaults(self):
        result = parse_reflection('{"shouldRetry": false}')
        assert result.analysis == "Analysis unavailable"
        assert result.suggestion == "Retry with the default approach"
        assert result.should_retry is False
        assert result.alternative_action is None

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            parse_reflection("[1, 2]")
        with pytest.raises(ValueError):
            parse_reflection("no json here")


class TestReflectionEngine:
    @pytest.mark.asyncio
    async def test_reflect_uses_generate(self):
        llm = ScriptedLLM()
        log = RecordingLog()
        engine = ReflectionEngine(llm, max_tokens=512, agent_log=log)

        result = await engine.reflect("click", {"selector": ".next"}, "not found", [entry(1)])

        assert result.suggestion.startswith("Call get_page_info")
        assert llm.generate_calls[0]["max_tokens"] == 512
        assert "**Failed tool**: click" in llm.generate_calls[0]["prompt"]
        assert log.contains("[Reflection] Analysis complete")

    @pytest.mark.asyncio
    async def test_malformed_answer_falls_back(self):
        engine = ReflectionEngine(ScriptedLLM(reflections=["```json\n{not json}\n```"]))

        result = await engine.reflect("scroll", {}, "timeout", [])

        assert result.analysis == "scroll tool execution failed: timeout"
        assert result.suggestion == DEFAULT_SUGGESTION
        assert result.should_retry is True

    @pytest.mark.asyncio
    async def test_model_failure_falls_back(self):
        engine = ReflectionEngine(ScriptedLLM(reflections=[LLMProviderError("rate limited")]))

        result = await engine.reflect("click", {}, "not found", [])

        assert result.analysis == "click tool execution failed: not found"
