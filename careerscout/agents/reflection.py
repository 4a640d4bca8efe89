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
Reflection engine for failed tool calls.

When a tool call fails, the engine asks the language model to diagnose the
failure from the failed call, the error text and the most recent steps, and
to suggest what to try next. The answer is parsed into a ReflectionResult.

Reflection never raises on bad model output: malformed or missing JSON, or
a failing model call, degrades to a default result with ``should_retry``
set so the control loop keeps going.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Sequence

from careerscout.agents import prompts
from careerscout.agents.types import ActionHistoryEntry, AlternativeAction, ReflectionResult
from careerscout.exceptions import LLMProviderError
from careerscout.llm.base import BaseLLMProvider
from careerscout.utils.logger import AgentLog, logger

_JSON_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

DEFAULT_SUGGESTION = "Try a different selector or method"


def count_trailing_failures(history: Sequence[ActionHistoryEntry]) -> int:
    """Number of failed entries at the end of the history, stopping at the first success."""
    count = 0
    for entry in reversed(history):
        if not entry.failed:
            break
        count += 1
    return count


def build_reflection_prompt(
    tool_name: str,
    tool_input: Any,
    error: str,
    history: Sequence[ActionHistoryEntry],
    history_window: int = 5,
    escalation_threshold: int = 3,
) -> str:
    """Render the bounded reflection request for one failed call."""
    failures = count_trailing_failures(history)
    recent = list(history[-history_window:]) if history_window > 0 else []

    escalation = ""
    if failures >= escalation_threshold:
        escalation = prompts.REFLECTION_ESCALATION.format(count=failures)

    history_text = ""
    if recent:
        history_text = prompts.REFLECTION_HISTORY_HEADER.format(count=len(recent))
        for entry in recent:
            mark = "FAILED" if entry.failed else "OK"
            history_text += f"- Step {entry.step}: {entry.tool_name} {mark}\n"
        history_text += "\n"

    return prompts.REFLECTION_REQUEST.format(
        tool_name=tool_name,
        tool_input=json.dumps(tool_input, indent=2, ensure_ascii=False, default=str),
        error=error,
        escalation=escalation,
        history=history_text,
    )


def parse_reflection(text: str) -> ReflectionResult:
    """
    Parse the model's reflection answer.

    Accepts bare JSON or JSON inside a fenced code block.

    Raises:
        ValueError: The text does not contain a JSON object
    """
    match = _JSON_FENCE.search(text)
    payload = match.group(1).strip() if match else text.strip()
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError(f"Reflection answer is not a JSON object: {type(data).__name__}")

    should_retry = data.get("shouldRetry")
    alternative = data.get("alternativeAction")
    return ReflectionResult(
        analysis=str(data.get("analysis") or "Analysis unavailable"),
        suggestion=str(data.get("suggestion") or "Retry with the default approach"),
        should_retry=True if should_retry is None else bool(should_retry),
        alternative_action=(
            AlternativeAction.from_dict(alternative) if isinstance(alternative, dict) else None
        ),
    )


def fallback_reflection(tool_name: str, error: str) -> ReflectionResult:
    return ReflectionResult(
        analysis=f"{tool_name} tool execution failed: {error}",
        suggestion=DEFAULT_SUGGESTION,
        should_retry=True,
    )


class ReflectionEngine:
    """
    Diagnoses failed tool calls with a model call.

    Holds no state between calls aside from its configuration.

    Example:
        >>> engine = ReflectionEngine(llm)
        >>> result = await engine.reflect("click", {"selector": ".next"}, "not found", history)
        >>> result.should_retry
        True
    """

    def __init__(
        self,
        llm: BaseLLMProvider,
        history_window: int = 5,
        escalation_threshold: int = 3,
        max_tokens: int = 1024,
        agent_log: Optional[AgentLog] = None,
    ) -> None:
        self.llm = llm
        self.history_window = history_window
        self.escalation_threshold = escalation_threshold
        self.max_tokens = max_tokens
        self.agent_log = agent_log

    def _log(self, message: str) -> None:
        if self.agent_log is not None:
            self.agent_log.log(message)
        else:
            logger.info(message)

    async def reflect(
        self,
        tool_name: str,
        tool_input: Any,
        error: str,
        history: Sequence[ActionHistoryEntry],
    ) -> ReflectionResult:
        """Ask the model why ``tool_name`` failed and what to do next."""
        self._log("[Reflection] Analyzing failure...")
        prompt = build_reflection_prompt(
            tool_name,
            tool_input,
            error,
            history,
            history_window=self.history_window,
            escalation_threshold=self.escalation_threshold,
        )

        try:
            response = await self.llm.generate(
                prompt,
                system_prompt=prompts.REFLECTION_SYSTEM,
                max_tokens=self.max_tokens,
            )
            result = parse_reflection(response.content)
        except (ValueError, TypeError, LLMProviderError) as e:
            # json.JSONDecodeError is a ValueError
            self._log(f"[Reflection] Could not parse reflection: {e}")
            return fallback_reflection(tool_name, error)

        self._log("[Reflection] Analysis complete")
        self._log(f"  - Cause: {result.analysis}")
        self._log(f"  - Suggestion: {result.suggestion}")
        self._log(f"  - Retry: {'yes' if result.should_retry else 'no'}")
        if result.alternative_action is not None:
            self._log(f"  - Alternative tool: {result.alternative_action.tool_name}")
        return result
