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
Crawler agent components.

- crawler_agent: CrawlerAgent, the ReAct control loop, and CrawlResult
- reflection: ReflectionEngine for diagnosing failed tool calls
- memory: MemoryManager with priority-based compression
- session: CrawlSession, the resumable checkpoint state
- failure_case: FailureCase records for the failure case log
- types: shared value types (ToolResult, ExtractedJob, JobPosting, ...)
"""

from careerscout.agents.crawler_agent import CrawlerAgent, CrawlResult, StopReason
from careerscout.agents.failure_case import FailureCase
from careerscout.agents.memory import BlockSpec, MemoryBlock, MemoryManager, estimate_tokens
from careerscout.agents.reflection import ReflectionEngine
from careerscout.agents.session import CrawlSession
from careerscout.agents.types import (
    ActionHistoryEntry,
    AlternativeAction,
    ExtractedJob,
    JobPosting,
    ReflectionResult,
    SessionStatus,
    ToolOutcome,
    ToolResult,
)

__all__ = [
    "ActionHistoryEntry",
    "AlternativeAction",
    "BlockSpec",
    "CrawlResult",
    "CrawlSession",
    "CrawlerAgent",
    "ExtractedJob",
    "FailureCase",
    "JobPosting",
    "MemoryBlock",
    "MemoryManager",
    "ReflectionEngine",
    "ReflectionResult",
    "SessionStatus",
    "StopReason",
    "ToolOutcome",
    "ToolResult",
    "estimate_tokens",
]
