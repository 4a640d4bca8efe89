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
ReAct crawler agent for career sites.

The agent alternates model turns and browser actions until the model calls
``done``, extraction stops producing new jobs, or the step budget runs out.
Failed actions are diagnosed by the ReflectionEngine and recorded in the
failure case log; every run ends by checkpointing its CrawlSession so a
failed or suspended crawl can be resumed later.

Example:
    >>> agent = CrawlerAgent(llm, driver, "Acme", checkpoints, failures)
    >>> result = await agent.run("https://careers.acme.com")
    >>> print(result.session.status, len(result.jobs))
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from careerscout.agents import prompts
from careerscout.agents.failure_case import FailureCase
from careerscout.agents.memory import BlockSpec, MemoryManager
from careerscout.agents.reflection import ReflectionEngine
from careerscout.agents.session import CrawlSession
from careerscout.agents.tools.schemas import TOOL_CATALOGUE, BrowserDriver, ToolName, scroll_position
from careerscout.agents.types import (
    ActionHistoryEntry,
    ExtractedJob,
    JobPosting,
    ReflectionResult,
    ToolOutcome,
    ToolResult,
    jobs_from_payload,
)
from careerscout.config import AgentConfig
from careerscout.exceptions import CheckpointError, LLMProviderError, StorageError
from careerscout.llm.base import (
    BaseLLMProvider,
    MessageResponse,
    ToolCallResponse,
    TranscriptMessage,
)
from careerscout.storage.checkpoint_store import CheckpointStore
from careerscout.storage.failure_case_store import NO_EXAMPLES_PLACEHOLDER, FailureCaseStore
from careerscout.utils.logger import AgentLog, SessionLogger, logger

BANNER = "=" * 70
DATA_LOG_LIMIT = 1000
DATA_PREVIEW_LENGTH = 500
MESSAGE_PREVIEW_LENGTH = 200


class StopReason(str, Enum):
    """Why the control loop stopped."""

    DONE = "done"
    MAX_STEPS = "max_steps"
    DEADLINE = "deadline"
    UNEXPECTED_RESPONSE = "unexpected_response"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"
    LLM_ERROR = "llm_error"
    ERROR = "error"


@dataclass
class CrawlResult:
    """Outcome of one agent run."""

    jobs: List[JobPosting]
    session: CrawlSession
    stop_reason: StopReason
    checkpoint_locator: Optional[str] = None
    storage_warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session.session_id,
            "company": self.session.company,
            "status": self.session.status.value,
            "stopReason": self.stop_reason.value,
            "jobCount": len(self.jobs),
            "checkpoint": self.checkpoint_locator,
            "storageWarnings": list(self.storage_warnings),
            "failureReason": self.session.failure_reason,
            "resumeHint": self.session.resume_hint,
        }


@dataclass
class _LoopState:
    """Counters owned by a single run of the control loop."""

    done: bool = False
    consecutive_no_new_jobs: int = 0
    last_action: Optional[Tuple[str, str]] = None
    consecutive_same_action: int = 0
    last_scroll_position: int = 0
    consecutive_scroll_no_progress: int = 0


def _action_signature(tool_name: str, tool_input: Any) -> Tuple[str, str]:
    return tool_name, json.dumps(tool_input, sort_keys=True, ensure_ascii=False, default=str)


def _to_json(value: Any, indent: Optional[int] = None) -> str:
    return json.dumps(value, ensure_ascii=False, default=str, indent=indent)


def _summarize_actions(history: Sequence[ActionHistoryEntry], count: int) -> str:
    return " -> ".join(f"{entry.tool_name}({entry.outcome.value})" for entry in history[-count:])


class CrawlerAgent:
    """
    Job-posting crawler driven by a tool-calling language model.

    The agent owns its working memory and action history for the duration
    of a run. The browser driver, checkpoint store and failure case store
    are injected so they can be shared or replaced in tests.

    Attributes:
        llm: Model used for both the action loop and reflection
        driver: Browser driver executing tool calls
        company: Company tag used for checkpoints, logs and output records
        config: Loop limits and component configuration
    """

    def __init__(
        self,
        llm: BaseLLMProvider,
        driver: BrowserDriver,
        company: str,
        checkpoint_store: CheckpointStore,
        failure_store: FailureCaseStore,
        config: Optional[AgentConfig] = None,
        log_factory: Optional[Callable[[str], AgentLog]] = None,
        log_dir: str = "output/logs",
    ) -> None:
        self.llm = llm
        self.driver = driver
        self.company = company
        self.checkpoint_store = checkpoint_store
        self.failure_store = failure_store
        self.config = config or AgentConfig()
        self._log_factory = log_factory or (lambda name: SessionLogger(name, log_dir=log_dir))

        self._agent_log: Optional[AgentLog] = None
        self._session: Optional[CrawlSession] = None
        self._memory: Optional[MemoryManager] = None
        self._suspend_hint: Optional[str] = None
        self.last_result: Optional[CrawlResult] = None

    @property
    def session(self) -> Optional[CrawlSession]:
        """The session of the current or most recent run."""
        return self._session

    @property
    def memory(self) -> Optional[MemoryManager]:
        return self._memory

    def suspend(self, resume_hint: str) -> None:
        """Ask the running loop to stop at the next step boundary and finish as suspended."""
        self._suspend_hint = resume_hint

    def _log(self, message: str) -> None:
        if self._agent_log is not None:
            self._agent_log.log(message)
        else:
            logger.info(message)

    # -- public entry points -------------------------------------------------

    async def run(self, url: str) -> CrawlResult:
        """
        Crawl ``url`` from a fresh session.

        Returns:
            CrawlResult with the deduplicated jobs and the finalized session

        Raises:
            LLMProviderError: The model became unavailable. The session is
                finalized as failed and checkpointed before the error
                propagates; the partial result is kept in ``last_result``.
        """
        return await self._run(url)

    async def resume(self, locator: str) -> CrawlResult:
        """
        Resume a failed or suspended session from its checkpoint.

        The crawl restarts from the session's original URL with the
        previously extracted jobs carried forward.

        Raises:
            CheckpointError: No checkpoint at ``locator`` or it is not resumable
        """
        previous = await self.checkpoint_store.load(locator)
        if previous is None:
            raise CheckpointError(f"Checkpoint not found: {locator}")
        if not previous.can_resume():
            raise CheckpointError(
                f"Checkpoint cannot be resumed (status: {previous.status.value})",
                details={"locator": locator},
            )
        return await self._run(previous.url, previous=previous)

    async def resume_latest(self) -> Optional[CrawlResult]:
        """Resume the latest checkpoint for this company, or return None if it is not resumable."""
        previous = await self.checkpoint_store.find_latest_by_company(self.company)
        if previous is None or not previous.can_resume():
            logger.info(f"No resumable checkpoint for {self.company}")
            return None
        logger.info(f"Latest checkpoint found: {previous.session_id}")
        return await self._run(previous.url, previous=previous)

    # -- control loop --------------------------------------------------------

    def _initial_memory(self, url: str, jobs: Sequence[ExtractedJob]) -> MemoryManager:
        memory_config = self.config.memory
        task = prompts.CURRENT_TASK_TEMPLATE.format(company=self.company, url=url, goal=prompts.GOAL)
        memory = MemoryManager.create(
            [
                BlockSpec("persona", prompts.PERSONA, max_tokens=100, priority=1),
                BlockSpec("current_task", task, max_tokens=300, priority=2),
                BlockSpec("collected_data", "Collected jobs: none", max_tokens=1000, priority=3),
                BlockSpec("recent_actions", "Recent actions: none", max_tokens=500, priority=4),
            ],
            max_total_tokens=memory_config.max_total_tokens,
            compression_threshold=memory_config.compression_threshold,
        )
        if jobs:
            memory = memory.update("collected_data", self._collected_summary(jobs))
        return memory

    def _collected_summary(self, jobs: Sequence[ExtractedJob]) -> str:
        recent = ", ".join(job.title for job in jobs[-self.config.memory.recent_job_titles:])
        return f"Collected jobs: {len(jobs)}\nRecent: {recent}"

    def _system_prompt(self, few_shot: Optional[str]) -> str:
        system = prompts.CRAWLER_SYSTEM
        if self._memory is not None:
            system += prompts.WORKING_MEMORY_SECTION.format(context=self._memory.build_context())
        if few_shot:
            system += prompts.FEW_SHOT_SECTION.format(examples=few_shot)
        return system

    async def _load_few_shot(self, warnings: List[str]) -> Optional[str]:
        try:
            examples = await self.failure_store.to_few_shot_examples()
        except StorageError as e:
            self._storage_warning(warnings, f"Could not load failure cases: {e}")
            return None
        return None if examples == NO_EXAMPLES_PLACEHOLDER else examples

    def _storage_warning(self, warnings: List[str], message: str) -> None:
        logger.warning(message)
        self._log(f"[Warning] {message}")
        warnings.append(message)

    async def _run(self, url: str, previous: Optional[CrawlSession] = None) -> CrawlResult:
        carried = previous.extracted_jobs if previous is not None else ()
        session = CrawlSession.create(url, self.company, extracted_jobs=carried)
        self._session = session
        self._memory = self._initial_memory(url, session.extracted_jobs)
        self._suspend_hint = None
        self._agent_log = self._log_factory(self.company)

        state = _LoopState()
        warnings: List[str] = []
        stop_reason = StopReason.MAX_STEPS
        error: Optional[BaseException] = None
        step = 0

        kickoff = prompts.KICKOFF_PROMPT.format(url=url, company=self.company)
        if previous is not None:
            self._log(f"[Agent] Resuming session {previous.session_id}")
            self._log(f"[Agent] Previously collected jobs: {previous.job_count}")
            if previous.resume_hint:
                self._log(f"[Agent] Resume hint: {previous.resume_hint}")
            kickoff += prompts.RESUME_SECTION.format(
                job_count=previous.job_count, resume_hint=previous.resume_hint or "none"
            )
        transcript: List[TranscriptMessage] = [TranscriptMessage.user(kickoff)]

        max_steps = self.config.max_steps
        deadline = (
            time.monotonic() + self.config.deadline_seconds
            if self.config.deadline_seconds is not None
            else None
        )

        try:
            self._log(f"[Agent] Loading page: {url}")
            self._log(f"[Agent] Session ID: {session.session_id}")
            self._log(f"[Agent] Memory usage: {self._memory.usage_percentage:.1f}%")
            navigation = await self._execute_with_retry(ToolName.NAVIGATE.value, {"url": url})
            if not navigation.success:
                self._log(f"[Agent] Initial navigation failed: {navigation.error}")
            few_shot = await self._load_few_shot(warnings)

            for step in range(1, max_steps + 1):
                if self._suspend_hint is not None:
                    stop_reason = StopReason.SUSPENDED
                    break
                if deadline is not None and time.monotonic() >= deadline:
                    self._log("[Agent] Deadline reached, finishing")
                    stop_reason = StopReason.DEADLINE
                    break

                self._log(BANNER)
                self._log(f"[Agent] Step {step}/{max_steps}")
                self._log(BANNER)

                response = await self.llm.complete(
                    self._system_prompt(few_shot),
                    TOOL_CATALOGUE,
                    transcript,
                    temperature=self.config.llm.temperature,
                    max_tokens=self.config.llm.max_tokens,
                )

                if isinstance(response, MessageResponse):
                    self._log(f"[Agent] Message: {response.text[:MESSAGE_PREVIEW_LENGTH]}")
                    # Anthropic rejects an assistant turn with empty content
                    if response.text.strip():
                        transcript.append(TranscriptMessage.assistant(response.text))
                    transcript.append(TranscriptMessage.user(prompts.STEERING_PROMPT))
                    continue

                if not isinstance(response, ToolCallResponse):
                    self._log(f"[Agent] Unexpected stop reason: {response.stop_reason}")
                    stop_reason = StopReason.UNEXPECTED_RESPONSE
                    break

                session = await self._run_tool_step(step, response, session, state, transcript, warnings)
                self._session = session

                if state.done:
                    stop_reason = StopReason.DONE
                    break

        except LLMProviderError as e:
            error = e
            stop_reason = StopReason.LLM_ERROR
            logger.error(f"Model unavailable at step {step}: {e}")
            self._log(f"[Agent] Model unavailable: {e.message}")
        except asyncio.CancelledError as e:
            error = e
            stop_reason = StopReason.CANCELLED
            self._log(f"[Agent] Cancelled at step {step}")
        except Exception as e:
            error = e
            stop_reason = StopReason.ERROR
            logger.exception(f"Crawl failed at step {step}: {e}")
            self._log(f"[Agent] Crawl failed: {e}")

        session = self._session or session
        if stop_reason == StopReason.LLM_ERROR:
            session = session.fail(error.message)
        elif stop_reason == StopReason.ERROR:
            session = session.fail(str(error) or type(error).__name__)
        elif stop_reason == StopReason.SUSPENDED:
            session = session.suspend(self._suspend_hint or "")
        elif stop_reason == StopReason.CANCELLED:
            session = session.suspend(f"Cancelled at step {step}")
        else:
            session = session.complete()

        result = await self._finalize(session, stop_reason, warnings)
        if isinstance(error, LLMProviderError):
            error.details.setdefault("checkpoint", result.checkpoint_locator)
        if error is not None:
            raise error
        return result

    async def _run_tool_step(
        self,
        step: int,
        response: ToolCallResponse,
        session: CrawlSession,
        state: _LoopState,
        transcript: List[TranscriptMessage],
        warnings: List[str],
    ) -> CrawlSession:
        tool_name = response.tool_name
        tool_input = response.tool_input

        if response.reasoning_text:
            self._log("[Thought]")
            self._log(response.reasoning_text)
        self._log(f"[Action] {tool_name}")
        self._log(f"[Input] {_to_json(tool_input, indent=2)}")

        signature = _action_signature(tool_name, tool_input)
        if signature == state.last_action:
            state.consecutive_same_action += 1
            if state.consecutive_same_action >= self.config.max_consecutive_same_action:
                self._log(
                    f"[Warning] Same action repeated {state.consecutive_same_action} times in a row, "
                    "possible loop"
                )
        else:
            state.consecutive_same_action = 1
        state.last_action = signature

        if tool_name == ToolName.NAVIGATE.value:
            result = await self._execute_with_retry(tool_name, tool_input)
        else:
            result = await self.driver.execute(tool_name, tool_input)
        self._log_observation(tool_name, result)

        if tool_name == ToolName.DONE.value:
            state.done = True
        if result.success:
            session = self._apply_bookkeeping(tool_name, result, session, state)

        payload = result.to_dict()
        reflection: Optional[ReflectionResult] = None
        if not result.success and tool_name != ToolName.DONE.value:
            error = result.error or "Unknown error"
            reflection = await self._reflection_engine().reflect(
                tool_name, tool_input, error, session.history
            )
            await self._record_failure(step, tool_name, tool_input, error, reflection, session, warnings)
            payload["reflection"] = reflection.to_dict()

        entry = ActionHistoryEntry(
            step=len(session.history) + 1,
            tool_name=tool_name,
            tool_input=tool_input,
            outcome=ToolOutcome.SUCCESS if result.success else ToolOutcome.FAILED,
            reasoning=response.reasoning_text,
            observation=_to_json(result.data if result.data is not None else result.error),
            reflection=reflection,
        )
        session = session.add_history_entry(entry)
        self._update_memory(session)

        transcript.append(TranscriptMessage.assistant(response.reasoning_text or "", [response.tool_call]))
        transcript.append(TranscriptMessage.tool_result(response.tool_call_id, _to_json(payload)))

        if self.config.checkpoint_every_step:
            await self._save_checkpoint(session, warnings)
        return session

    def _reflection_engine(self) -> ReflectionEngine:
        reflection_config = self.config.reflection
        return ReflectionEngine(
            self.llm,
            history_window=reflection_config.history_window,
            escalation_threshold=reflection_config.escalation_threshold,
            max_tokens=reflection_config.max_tokens,
            agent_log=self._agent_log,
        )

    async def _execute_with_retry(self, tool_name: str, tool_input: Any) -> ToolResult:
        """Execute a navigation, retrying a bounded number of times with a fixed delay."""
        result = await self.driver.execute(tool_name, tool_input)
        retries = self.config.max_navigate_retries
        for attempt in range(1, retries + 1):
            if result.success:
                break
            self._log(f"[Retry] {tool_name} {attempt}/{retries}...")
            await asyncio.sleep(self.config.navigate_retry_delay_seconds)
            result = await self.driver.execute(tool_name, tool_input)
            if result.success:
                self._log(f"[Retry] Succeeded on attempt {attempt}")
        return result

    def _apply_bookkeeping(
        self, tool_name: str, result: ToolResult, session: CrawlSession, state: _LoopState
    ) -> CrawlSession:
        if tool_name == ToolName.SCROLL.value:
            self._track_scroll(result, state)
        elif tool_name == ToolName.EXTRACT_JOBS.value:
            before = session.job_count
            session = session.add_extracted_jobs(jobs_from_payload(result.data))
            added = session.job_count - before
            if added > 0:
                state.consecutive_no_new_jobs = 0
                self._log(f"[Agent] Added {added} new jobs (total {session.job_count})")
                self._memory = self._memory.update(
                    "collected_data", self._collected_summary(session.extracted_jobs)
                )
            else:
                state.consecutive_no_new_jobs += 1
                self._log(f"[Agent] No new jobs ({state.consecutive_no_new_jobs} in a row)")
            if state.consecutive_no_new_jobs >= self.config.max_consecutive_no_new_jobs:
                self._log(
                    f"[Agent] No new jobs {state.consecutive_no_new_jobs} times in a row, stopping"
                )
                state.done = True
        elif tool_name == ToolName.DONE.value:
            reason = result.data.get("reason") if isinstance(result.data, dict) else None
            self._log(f"[Agent] Done: {reason}")
        return session

    def _track_scroll(self, result: ToolResult, state: _LoopState) -> None:
        position = scroll_position(result.data)
        if position is None:
            return
        if position == state.last_scroll_position:
            state.consecutive_scroll_no_progress += 1
            self._log(
                f"[Scroll] Position unchanged ({state.consecutive_scroll_no_progress} in a row)"
            )
        else:
            state.consecutive_scroll_no_progress = 0
        state.last_scroll_position = position

        if result.data.get("at_bottom"):
            self._log("[Scroll] Reached the bottom of the page")
        if state.consecutive_scroll_no_progress >= self.config.max_scroll_no_progress:
            self._log(
                f"[Warning] No scroll progress {state.consecutive_scroll_no_progress} times in a row, "
                "infinite scroll may have ended or content is slow to load"
            )

    async def _record_failure(
        self,
        step: int,
        tool_name: str,
        tool_input: Any,
        error: str,
        reflection: ReflectionResult,
        session: CrawlSession,
        warnings: List[str],
    ) -> None:
        failure_case = FailureCase.create(
            url=self.driver.current_url,
            company=self.company,
            tool_name=tool_name,
            tool_input=tool_input,
            error=error,
            page_context=f"Step {step}, collected jobs: {session.job_count}",
            reflection=reflection,
        )
        try:
            await self.failure_store.append(failure_case)
        except StorageError as e:
            self._storage_warning(warnings, f"Could not record failure case: {e}")
            return
        self._log(f"[Failure] Recorded failure case for {tool_name}")

    def _update_memory(self, session: CrawlSession) -> None:
        memory_config = self.config.memory
        recent = _summarize_actions(session.history, memory_config.recent_action_count)
        self._memory = self._memory.update("recent_actions", f"Recent actions: {recent}")

        if not self._memory.needs_compression():
            return
        self._log(f"[Memory] Compression needed (usage: {self._memory.usage_percentage:.1f}%)")
        target = self._memory.next_compressible()
        if target is None:
            self._log("[Memory] Every block is protected, nothing to compress")
            return
        compressed = _summarize_actions(session.history, memory_config.compressed_action_count)
        self._memory = self._memory.compress(target.name, f"Recent: {compressed}")
        self._log(
            f"[Memory] Compressed {target.name} (usage: {self._memory.usage_percentage:.1f}%)"
        )

    def _log_observation(self, tool_name: str, result: ToolResult) -> None:
        self._log(f"[Observation] {'success' if result.success else 'failed'}")
        if result.error:
            self._log(f"[Error] {result.error}")
        if result.data is None:
            return

        data_str = _to_json(result.data, indent=2)
        if len(data_str) <= DATA_LOG_LIMIT:
            self._log(f"[Data] {data_str}")
            return

        self._log(f"[Data] ({len(data_str)} chars, summarized)")
        if tool_name == ToolName.GET_PAGE_INFO.value and isinstance(result.data, dict):
            self._log_page_info(result.data)
        else:
            self._log(data_str[:DATA_PREVIEW_LENGTH] + "...")

    def _log_page_info(self, info: Dict[str, Any]) -> None:
        pagination = info.get("pagination_type") or {}
        job_links = info.get("job_links") or []
        self._log(f"  - URL: {info.get('url')}")
        self._log(f"  - Title: {info.get('title')}")
        self._log(f"  - Selector candidates: {len(info.get('selector_candidates') or [])}")
        self._log(f"  - Job links: {len(job_links)}")
        self._log(f"  - Buttons: {len(info.get('visible_buttons') or [])}")
        self._log(f"  - Pagination: {info.get('pagination_info') or 'none'}")
        self._log(f"  - Pagination type: {pagination.get('type', 'unknown')}")
        for key, label in (
            ("next_selector", "Next selector"),
            ("load_more_selector", "Load more selector"),
            ("url_pattern", "URL pattern"),
        ):
            if pagination.get(key):
                self._log(f"    - {label}: {pagination[key]}")
        self._log(f"  - Result count: {info.get('result_count') or 'not shown'}")
        for index, link in enumerate(job_links[:3], start=1):
            self._log(f"    {index}. {str(link.get('text', ''))[:50]}")

    # -- finalization --------------------------------------------------------

    async def _save_checkpoint(self, session: CrawlSession, warnings: List[str]) -> Optional[str]:
        try:
            return await self.checkpoint_store.save(session)
        except StorageError as e:
            self._storage_warning(warnings, f"Could not save checkpoint: {e}")
            return None

    async def _finalize(
        self, session: CrawlSession, stop_reason: StopReason, warnings: List[str]
    ) -> CrawlResult:
        self._session = session
        locator = await self._save_checkpoint(session, warnings)

        self._log(BANNER)
        self._log(f"[Agent] Crawl finished ({stop_reason.value})")
        self._log(BANNER)
        self._log(session.generate_summary())
        if locator:
            self._log(f"Checkpoint saved: {locator}")
        log_file = getattr(self._agent_log, "log_file", None)
        if log_file:
            self._log(f"Log file: {log_file}")
        self._log(BANNER)
        if self._agent_log is not None:
            self._agent_log.close()
            self._agent_log = None

        jobs = [
            JobPosting.from_extracted(job, company=self.company, fallback_url=session.url)
            for job in session.extracted_jobs
        ]
        result = CrawlResult(
            jobs=jobs,
            session=session,
            stop_reason=stop_reason,
            checkpoint_locator=locator,
            storage_warnings=warnings,
        )
        self.last_result = result
        return result
