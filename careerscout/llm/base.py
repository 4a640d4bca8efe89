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
Base LLM provider interface.

This module defines the abstract base class for the language-model
collaborators used by the crawler agent, together with the
provider-neutral data types that cross that boundary:

- ToolDefinition: a named, schema-described capability the model may invoke
- TranscriptMessage: one turn of the agent conversation (user text,
  assistant text plus tool call, or a tool result)
- AgentResponse: the interpreted answer to a tool-calling request, one of
  ToolCallResponse, MessageResponse or UnknownResponse
- LLMResponse: a plain text completion, used by the reflection engine

Providers translate transcripts into their own wire format and map their
stop reasons onto the three response variants.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Union

from careerscout.utils.logger import logger


class ModelCapability(str, Enum):
    """Capabilities that a model may support."""

    TEXT_GENERATION = "text_generation"
    STREAMING = "streaming"
    TOOL_CALLING = "tool_calling"
    STRUCTURED_OUTPUT = "structured_output"


@dataclass
class ToolDefinition:
    """
    Definition of a tool that can be called by the LLM.

    Attributes:
        name: Name of the tool
        description: Description of what the tool does
        input_schema: JSON schema (an object schema) for the tool input
    """

    name: str
    description: str
    input_schema: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


@dataclass
class ToolCall:
    """
    Represents a tool call made by the LLM.

    Attributes:
        id: Provider-assigned identifier for this tool call
        name: Name of the tool being called
        arguments: Arguments passed to the tool (as dict)
    """

    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelInfo:
    """Information about a model's capabilities and limits."""

    name: str
    provider: str
    capabilities: List[ModelCapability] = field(default_factory=list)
    context_window: int = 128000
    max_output_tokens: int = 8192


@dataclass
class LLMResponse:
    """
    Standardized text response from an LLM provider.

    Attributes:
        content: The generated text content from the LLM
        model: Name of the model that generated the response
        usage: Token usage statistics (prompt_tokens, completion_tokens, total_tokens)
        tool_calls: Tool calls made by the model, if any
        finish_reason: Provider stop reason (e.g. "end_turn", "tool_use", "stop")
    """

    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    tool_calls: Optional[List[ToolCall]] = None
    finish_reason: Optional[str] = None


class MessageRole(str, Enum):
    """Roles a transcript message can take."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class TranscriptMessage:
    """
    One turn of the agent conversation in provider-neutral form.

    Assistant turns may carry tool calls; tool turns carry the id of the
    call they answer and the serialized result.
    """

    role: MessageRole
    content: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_call_id: Optional[str] = None

    @classmethod
    def user(cls, content: str) -> "TranscriptMessage":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str = "", tool_calls: Optional[Iterable[ToolCall]] = None
    ) -> "TranscriptMessage":
        return cls(
            role=MessageRole.ASSISTANT,
            content=content,
            tool_calls=list(tool_calls or []),
        )

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> "TranscriptMessage":
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id)


class ResponseKind(str, Enum):
    """Shape of an interpreted tool-calling response."""

    TOOL_CALL = "tool_call"
    MESSAGE = "message"
    UNKNOWN = "unknown"


@dataclass
class ToolCallResponse:
    """The model asked for a tool to be executed."""

    tool_call: ToolCall
    reasoning_text: Optional[str] = None
    kind: ClassVar[ResponseKind] = ResponseKind.TOOL_CALL

    @property
    def tool_name(self) -> str:
        return self.tool_call.name

    @property
    def tool_input(self) -> Dict[str, Any]:
        return self.tool_call.arguments

    @property
    def tool_call_id(self) -> str:
        return self.tool_call.id


@dataclass
class MessageResponse:
    """The model ended its turn with text only and no action."""

    text: str = ""
    kind: ClassVar[ResponseKind] = ResponseKind.MESSAGE


@dataclass
class UnknownResponse:
    """Any other response shape (length cut-off, refusal, missing tool block)."""

    stop_reason: Optional[str] = None
    kind: ClassVar[ResponseKind] = ResponseKind.UNKNOWN


AgentResponse = Union[ToolCallResponse, MessageResponse, UnknownResponse]


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Subclasses must implement:
    - generate(): plain text generation
    - complete(): one tool-calling turn over a full transcript

    Attributes:
        model: Model name/identifier
        api_key: API key for the provider

    Example:
        >>> class MyLLMProvider(BaseLLMProvider):
        ...     async def generate(self, prompt, **kwargs):
        ...         ...
        ...     async def complete(self, system_prompt, tools, transcript, **kwargs):
        ...         ...
    """

    provider_name: ClassVar[str] = "base"

    #: Provider stop reasons that mean "the model requested a tool".
    TOOL_STOP_REASONS: ClassVar[tuple] = ()
    #: Provider stop reasons that mean "the model ended its turn with text".
    END_STOP_REASONS: ClassVar[tuple] = ()

    def __init__(self, model: str, api_key: Optional[str] = None, **kwargs: Any) -> None:
        """
        Initialize the LLM provider.

        Args:
            model: Model name/identifier
            api_key: API key for the provider. When omitted, the SDK falls back
                to its own environment variable.
            **kwargs: Additional provider-specific configuration
        """
        self.model = model
        self.api_key = api_key
        self.extra_config = kwargs
        self._session_usage: Dict[str, int] = {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
            "calls": 0,
        }

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a plain text response from the LLM.

        Args:
            prompt: User prompt
            system_prompt: System prompt for context
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional generation parameters

        Returns:
            LLMResponse object

        Raises:
            LLMProviderError: If the provider cannot be reached or fails
        """

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        tools: List[ToolDefinition],
        transcript: List[TranscriptMessage],
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> AgentResponse:
        """
        Run one tool-calling turn over the full conversation transcript.

        Args:
            system_prompt: System instructions
            tools: Tool catalogue the model may choose from
            transcript: Conversation so far, oldest first
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            ToolCallResponse, MessageResponse or UnknownResponse

        Raises:
            LLMProviderError: If the provider cannot be reached or fails
        """

    def interpret(self, response: LLMResponse) -> AgentResponse:
        """
        Map a raw provider response onto the agent response variants.

        A tool stop reason without any tool call is treated as an unknown
        shape, as is any stop reason the provider does not list.
        """
        reason = response.finish_reason
        if reason in self.TOOL_STOP_REASONS:
            if not response.tool_calls:
                logger.warning(f"[{self.provider_name}] tool stop reason without a tool call")
                return UnknownResponse(stop_reason=reason)
            return ToolCallResponse(
                tool_call=response.tool_calls[0],
                reasoning_text=response.content or None,
            )
        if reason in self.END_STOP_REASONS:
            return MessageResponse(text=response.content)
        return UnknownResponse(stop_reason=reason)

    def get_model_info(self) -> ModelInfo:
        """Get information about the current model."""
        return ModelInfo(
            name=self.model,
            provider=self.provider_name,
            capabilities=[ModelCapability.TEXT_GENERATION, ModelCapability.TOOL_CALLING],
        )

    def get_session_usage(self) -> Dict[str, int]:
        """Token usage accumulated by this provider instance."""
        return dict(self._session_usage)

    def reset_session_usage(self) -> None:
        for key in self._session_usage:
            self._session_usage[key] = 0

    def _track_usage(self, response: LLMResponse) -> None:
        self._session_usage["calls"] += 1
        if not response.usage:
            return
        for key in ("prompt_tokens", "completion_tokens", "total_tokens"):
            self._session_usage[key] += int(response.usage.get(key, 0) or 0)
