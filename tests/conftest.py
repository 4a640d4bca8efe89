# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""
Shared test fixtures for the CareerScout test suite.

This module provides common fixtures used across all test categories:
- A scripted LLM provider that replays tool-calling responses
- A scripted browser driver that replays tool results
- A recording session log
- Filesystem-backed checkpoint and failure case stores
"""

from __future__ import annotations

import itertools
import json
import os
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

from careerscout.agents.crawler_agent import CrawlerAgent
from careerscout.agents.types import ToolResult
from careerscout.config import AgentConfig
from careerscout.exceptions import StorageError
from careerscout.llm.base import (
    AgentResponse,
    BaseLLMProvider,
    LLMResponse,
    MessageResponse,
    ToolCall,
    ToolCallResponse,
    UnknownResponse,
)
from careerscout.storage.base import KeyValueStore, StoredKey
from careerscout.storage.checkpoint_store import CheckpointStore
from careerscout.storage.failure_case_store import FailureCaseStore
from careerscout.storage.filesystem import FileSystemStore


# ==================== Environment Setup ====================

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    os.environ.setdefault("CAREERSCOUT_LOG_LEVEL", "warning")
    yield


# ==================== Response Helpers ====================

_call_ids = itertools.count(1)

VALID_REFLECTION = json.dumps(
    {
        "analysis": "The selector does not match any element",
        "suggestion": "Call get_page_info and pick a selector from the candidates",
        "shouldRetry": True,
        "alternativeAction": {"toolName": "get_page_info", "toolInput": {}},
    }
)


def tool_call(name: str, tool_input: Optional[Dict[str, Any]] = None, reasoning: Optional[str] = None) -> ToolCallResponse:
    """Build a tool-call response with a unique call id."""
    return ToolCallResponse(
        tool_call=ToolCall(id=f"call_{next(_call_ids)}", name=name, arguments=tool_input or {}),
        reasoning_text=reasoning,
    )


def message(text: str = "Let me think about the page.") -> MessageResponse:
    return MessageResponse(text=text)


def unknown(stop_reason: str = "max_tokens") -> UnknownResponse:
    return UnknownResponse(stop_reason=stop_reason)


def jobs_result(*jobs: Union[str, Dict[str, Any]]) -> ToolResult:
    """extract_jobs result; plain strings become jobs without a location."""
    cards = [{"title": job} if isinstance(job, str) else job for job in jobs]
    return ToolResult.success_result({"count": len(cards), "jobs": cards})


def scroll_result(position: int, max_position: int = 5000) -> ToolResult:
    return ToolResult.success_result(
        {
            "message": "Scrolled down by 500px",
            "current_position": position,
            "max_position": max_position,
            "at_bottom": position >= max_position - 10,
        }
    )


# ==================== Scripted LLM Provider ====================

ScriptItem = Union[AgentResponse, BaseException]


class ScriptedLLM(BaseLLMProvider):
    """LLM provider that replays scripted responses and records every call."""

    provider_name = "scripted"

    def __init__(
        self,
        responses: Optional[Sequence[ScriptItem]] = None,
        reflections: Optional[Sequence[Union[str, BaseException]]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(model=kwargs.pop("model", None) or "scripted-model", **kwargs)
        self.responses: List[ScriptItem] = list(responses or [])
        self.reflections: List[Union[str, BaseException]] = list(reflections or [])
        self.complete_calls: List[Dict[str, Any]] = []
        self.generate_calls: List[Dict[str, Any]] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        self.generate_calls.append(
            {"prompt": prompt, "system_prompt": system_prompt, "max_tokens": max_tokens}
        )
        item = self.reflections.pop(0) if self.reflections else VALID_REFLECTION
        if isinstance(item, BaseException):
            raise item
        return LLMResponse(content=item, model=self.model, finish_reason="end_turn")

    async def complete(
        self,
        system_prompt: str,
        tools,
        transcript,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> AgentResponse:
        self.complete_calls.append(
            {"system_prompt": system_prompt, "tools": list(tools), "transcript": list(transcript)}
        )
        if not self.responses:
            return tool_call("done", {"reason": "script exhausted"})
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


# ==================== Scripted Browser Driver ====================

class ScriptedDriver:
    """
    Browser driver that replays queued results per tool.

    Tools without queued results succeed with a generic payload. A queued
    callable receives the tool input and returns the result.
    """

    def __init__(self, url: str = "https://careers.example.com") -> None:
        self.current_url = url
        self.calls: List[tuple] = []
        self._results: Dict[str, List[Union[ToolResult, Callable[[Any], ToolResult]]]] = {}

    def queue(self, tool_name: str, *results: Union[ToolResult, Callable[[Any], ToolResult]]) -> "ScriptedDriver":
        self._results.setdefault(tool_name, []).extend(results)
        return self

    def calls_to(self, tool_name: str) -> List[Any]:
        return [tool_input for name, tool_input in self.calls if name == tool_name]

    async def execute(self, tool_name: str, tool_input: Any) -> ToolResult:
        self.calls.append((tool_name, tool_input))
        queued = self._results.get(tool_name)
        if queued:
            result = queued.pop(0)
            return result(tool_input) if callable(result) else result
        if tool_name == "done":
            return ToolResult.success_result({"completed": True, "reason": tool_input.get("reason")})
        return ToolResult.success_result({"message": f"{tool_name} ok"})


# ==================== Session Log ====================

class RecordingLog:
    """In-memory session log."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.closed = False
        self.close_calls = 0

    def log(self, message: str) -> None:
        self.lines.append(message)

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    def contains(self, fragment: str) -> bool:
        return any(fragment in line for line in self.lines)


# ==================== Storage ====================

class FailingStore(KeyValueStore):
    """Key/value store whose writes always fail."""

    async def write(self, key: str, value: str) -> None:
        raise StorageError(f"disk full while writing {key}")

    async def read(self, key: str) -> Optional[str]:
        return None

    async def append_line(self, key: str, line: str) -> None:
        raise StorageError(f"disk full while appending to {key}")

    async def list_keys(self, prefix: str = "") -> List[StoredKey]:
        return []

    async def delete(self, key: str) -> bool:
        return False


@pytest.fixture
def kv_store(tmp_path) -> FileSystemStore:
    return FileSystemStore(tmp_path / "store")


@pytest.fixture
def checkpoint_store(tmp_path) -> CheckpointStore:
    return CheckpointStore(FileSystemStore(tmp_path / "checkpoints"))


@pytest.fixture
def failure_store(tmp_path) -> FailureCaseStore:
    return FailureCaseStore(FileSystemStore(tmp_path / "failures"))


# ==================== Agent Fixtures ====================

@pytest.fixture
def driver() -> ScriptedDriver:
    return ScriptedDriver()


@pytest.fixture
def session_log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def make_agent(driver, checkpoint_store, failure_store, session_log):
    """Factory building a CrawlerAgent around a ScriptedLLM."""

    def _make(
        llm: ScriptedLLM,
        company: str = "Acme",
        checkpoints: Optional[CheckpointStore] = None,
        failures: Optional[FailureCaseStore] = None,
        **overrides: Any,
    ) -> CrawlerAgent:
        config = AgentConfig()
        config.navigate_retry_delay_seconds = 0.0
        for key, value in overrides.items():
            setattr(config, key, value)
        return CrawlerAgent(
            llm,
            driver,
            company,
            checkpoints or checkpoint_store,
            failures or failure_store,
            config=config,
            log_factory=lambda _company: session_log,
        )

    return _make
