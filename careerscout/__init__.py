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
CareerScout - a ReAct crawler agent that collects job postings from career sites.

A tool-calling language model drives a Playwright page through a small set
of browser tools. Failed actions are diagnosed by a reflection step and
logged as failure cases, and every session is checkpointed so interrupted
crawls can be resumed.
"""

__version__ = "26.02.01"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache-2.0"

from careerscout.agents import CrawlerAgent, CrawlResult, CrawlSession, JobPosting
from careerscout.config import AgentConfig, StorageSettings, load_agent_config
from careerscout.exceptions import CareerScoutError
from careerscout.llm import LLMProviderFactory

__all__ = [
    "AgentConfig",
    "CareerScoutError",
    "CrawlResult",
    "CrawlSession",
    "CrawlerAgent",
    "JobPosting",
    "LLMProviderFactory",
    "StorageSettings",
    "load_agent_config",
]
