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
Browser tools exposed to the crawler agent.

- schemas: ToolName, typed inputs, the tool catalogue and the BrowserDriver protocol
- playwright_executor: PlaywrightToolExecutor, the Playwright-backed driver
"""

from careerscout.agents.tools.schemas import (
    TOOL_CATALOGUE,
    BrowserDriver,
    ToolInput,
    ToolName,
    build_tool_catalogue,
    parse_tool_input,
    scroll_position,
)
from careerscout.agents.tools.playwright_executor import PlaywrightToolExecutor

__all__ = [
    "TOOL_CATALOGUE",
    "BrowserDriver",
    "PlaywrightToolExecutor",
    "ToolInput",
    "ToolName",
    "build_tool_catalogue",
    "parse_tool_input",
    "scroll_position",
]
