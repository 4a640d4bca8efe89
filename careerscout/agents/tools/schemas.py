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
Tool catalogue and typed tool inputs.

Each tool the model may call has one pydantic input model. The JSON schema
sent to the model is generated from that model, and the browser driver
validates raw model output against it with ``parse_tool_input`` before
executing anything. The control loop itself never inspects tool inputs
beyond passing them through.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Protocol, Type, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from careerscout.agents.types import ToolResult
from careerscout.exceptions import ToolInputError
from careerscout.llm.base import ToolDefinition


class ToolName(str, Enum):
    """Names of the tools exposed to the model."""

    NAVIGATE = "navigate"
    CLICK = "click"
    SCROLL = "scroll"
    INPUT_TEXT = "input_text"
    WAIT = "wait"
    GET_PAGE_INFO = "get_page_info"
    EXTRACT_JOBS = "extract_jobs"
    EXTRACT_JOB_DETAIL = "extract_job_detail"
    DONE = "done"


class ToolInput(BaseModel):
    """Base class for tool inputs. Unknown keys from the model are ignored."""

    model_config = {"populate_by_name": True, "extra": "ignore"}


class NavigateInput(ToolInput):
    url: str = Field(..., min_length=1, description="URL to navigate to")


class ClickInput(ToolInput):
    selector: str = Field(..., min_length=1, description="CSS selector of the element to click")


class ScrollInput(ToolInput):
    direction: Literal["down", "up"] = Field("down", description="Scroll direction (default: down)")
    amount: int = Field(500, ge=1, description="Pixels to scroll (default: 500)")


class InputTextInput(ToolInput):
    selector: str = Field(..., min_length=1, description="CSS selector of the input field")
    text: str = Field(..., description="Text to type")


class WaitInput(ToolInput):
    ms: int = Field(1000, ge=0, le=60000, description="Wait time in milliseconds (default: 1000)")


class GetPageInfoInput(ToolInput):
    pass


class ExtractJobsInput(ToolInput):
    job_card_selector: str = Field(
        ...,
        min_length=1,
        alias="jobCardSelector",
        description="CSS selector matching each individual job card",
    )


class ExtractJobDetailInput(ToolInput):
    container_selector: str = Field(
        "body",
        alias="containerSelector",
        description="CSS selector of the container holding the job detail (optional)",
    )


class DoneInput(ToolInput):
    reason: str = Field(
        "",
        description='Why the crawl is finished (e.g. "visited every page", "no new jobs")',
    )


TOOL_INPUT_MODELS: Dict[ToolName, Type[ToolInput]] = {
    ToolName.NAVIGATE: NavigateInput,
    ToolName.CLICK: ClickInput,
    ToolName.SCROLL: ScrollInput,
    ToolName.INPUT_TEXT: InputTextInput,
    ToolName.WAIT: WaitInput,
    ToolName.GET_PAGE_INFO: GetPageInfoInput,
    ToolName.EXTRACT_JOBS: ExtractJobsInput,
    ToolName.EXTRACT_JOB_DETAIL: ExtractJobDetailInput,
    ToolName.DONE: DoneInput,
}

TOOL_DESCRIPTIONS: Dict[ToolName, str] = {
    ToolName.NAVIGATE: (
        "Navigate to the given URL. Use it when you landed on the wrong page "
        "or need to move to another page."
    ),
    ToolName.CLICK: (
        "Click the element matched by a CSS selector. Use it for buttons, links and tabs."
    ),
    ToolName.SCROLL: (
        "Scroll the page. Use it to load more content on infinite-scroll pages "
        "or to reach elements that are not visible yet."
    ),
    ToolName.INPUT_TEXT: "Type text into an input field, such as a search box or filter.",
    ToolName.WAIT: "Wait for the given time. Use it while dynamic content is loading.",
    ToolName.GET_PAGE_INFO: (
        "Collect the current page state: URL, title, selector candidates, job links, "
        "buttons and pagination hints. Use it whenever you need to re-read the page."
    ),
    ToolName.EXTRACT_JOBS: (
        "Extract the job list from the current page. Call it while job cards are visible."
    ),
    ToolName.EXTRACT_JOB_DETAIL: (
        "Extract the job detail currently shown, after a modal opened or a detail page loaded."
    ),
    ToolName.DONE: (
        "Call when the goal is reached: no more jobs to collect or every page has been visited."
    ),
}


def _strip_titles(schema: Any) -> Any:
    # pydantic adds a "title" to every node; the model does not need them
    if isinstance(schema, dict):
        return {k: _strip_titles(v) for k, v in schema.items() if k != "title"}
    if isinstance(schema, list):
        return [_strip_titles(item) for item in schema]
    return schema


def input_schema_for(model: Type[ToolInput]) -> Dict[str, Any]:
    """JSON object schema for a tool input model, using the wire aliases."""
    schema = _strip_titles(model.model_json_schema(by_alias=True))
    schema.setdefault("properties", {})
    schema["type"] = "object"
    return schema


def build_tool_catalogue() -> List[ToolDefinition]:
    """The nine tool definitions offered to the model, in a stable order."""
    return [
        ToolDefinition(
            name=name.value,
            description=TOOL_DESCRIPTIONS[name],
            input_schema=input_schema_for(model),
        )
        for name, model in TOOL_INPUT_MODELS.items()
    ]


TOOL_CATALOGUE: List[ToolDefinition] = build_tool_catalogue()


def parse_tool_input(tool_name: str, raw: Any) -> ToolInput:
    """
    Validate raw model output for one tool.

    Raises:
        ToolInputError: Unknown tool name or invalid input
    """
    try:
        name = ToolName(tool_name)
    except ValueError as e:
        raise ToolInputError(f"Unknown tool: {tool_name}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ToolInputError(
            f"Input for {tool_name} must be an object", details={"input": repr(raw)}
        )

    try:
        return TOOL_INPUT_MODELS[name].model_validate(raw)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}" for err in e.errors()
        )
        raise ToolInputError(f"Invalid input for {tool_name}: {errors}") from e


@runtime_checkable
class BrowserDriver(Protocol):
    """
    Executes tool calls against a browser.

    ``execute`` never raises: failures come back as ``ToolResult`` values
    with ``success=False``.
    """

    @property
    def current_url(self) -> str: ...

    async def execute(self, tool_name: str, tool_input: Any) -> ToolResult: ...


def scroll_position(data: Any) -> Optional[int]:
    """Read the reported scroll offset from a scroll result payload."""
    if isinstance(data, dict) and isinstance(data.get("current_position"), (int, float)):
        return int(data["current_position"])
    return None
