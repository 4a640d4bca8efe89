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
OpenAI LLM provider implementation.

This module provides the OpenAIProvider class which implements the
BaseLLMProvider interface for OpenAI chat-completion models, including the
reasoning models (o1, o3) that expect ``max_completion_tokens``.

OpenAI finish reasons are mapped onto the agent response variants:
``tool_calls`` becomes a tool call, ``stop`` a plain message, and anything
else (``length``, ``content_filter``) an unknown response.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from careerscout.exceptions import LLMProviderError, ResponseFormatError
from careerscout.llm.base import (
    AgentResponse,
    BaseLLMProvider,
    LLMResponse,
    MessageRole,
    ToolCall,
    ToolDefinition,
    TranscriptMessage,
)
from careerscout.utils.logger import logger

DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"


class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI LLM provider implementation using the Chat Completions API.

    Attributes:
        client: AsyncOpenAI client instance for API calls
        model: OpenAI model name
        api_key: OpenAI API key for authentication
    """

    provider_name = "openai"
    TOOL_STOP_REASONS = ("tool_calls", "function_call")
    END_STOP_REASONS = ("stop",)

    def __init__(self, model: str = DEFAULT_OPENAI_MODEL, api_key: Optional[str] = None, **kwargs: Any) -> None:
        """
        Initialize OpenAI provider with API credentials.

        Args:
            model: OpenAI model name
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY when omitted.
            **kwargs: Additional configuration passed to BaseLLMProvider
        """
        super().__init__(model, api_key, **kwargs)
        self.client = AsyncOpenAI(api_key=api_key)

        # Track if this is a reasoning model (o1, o3)
        self._is_reasoning_model = self._detect_reasoning_model()

    def _detect_reasoning_model(self) -> bool:
        """Check if the model is a reasoning model (o1, o3)."""
        model_lower = self.model.lower()
        return model_lower.startswith("o1") or model_lower.startswith("o3")

    def _add_max_tokens_param(self, api_kwargs: Dict[str, Any], max_tokens: int) -> None:
        """
        Add the appropriate max tokens parameter to API kwargs based on model type.

        OpenAI's reasoning models (o1, o3) require 'max_completion_tokens' parameter
        instead of 'max_tokens', and reject a custom temperature.
        """
        if self._is_reasoning_model:
            api_kwargs["max_completion_tokens"] = max_tokens
            api_kwargs.pop("temperature", None)
        else:
            api_kwargs["max_tokens"] = max_tokens

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a text response using OpenAI's Chat Completions API.

        Raises:
            LLMProviderError: If API call fails
        """
        messages: List[Dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        api_kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            **kwargs,
        }
        self._add_max_tokens_param(api_kwargs, max_tokens or 1024)

        try:
            response = await self.client.chat.completions.create(**api_kwargs)
            llm_response = self._to_llm_response(response)
        except Exception as e:
            logger.error(f"OpenAI generation error: {e}")
            raise LLMProviderError(f"OpenAI generation failed: {e}") from e

        self._track_usage(llm_response)
        return llm_response

    async def complete(
        self,
        system_prompt: str,
        tools: List[ToolDefinition],
        transcript: List[TranscriptMessage],
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> AgentResponse:
        """Run one tool-calling turn over the conversation transcript."""
        openai_tools = [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.input_schema,
                },
            }
            for tool in tools
        ]

        api_kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": self.to_messages(system_prompt, transcript),
            "temperature": temperature,
            "tools": openai_tools,
            **kwargs,
        }
        self._add_max_tokens_param(api_kwargs, max_tokens or 4096)

        try:
            response = await self.client.chat.completions.create(**api_kwargs)
        except Exception as e:
            logger.error(f"OpenAI tool calling error: {e}")
            raise LLMProviderError(f"OpenAI tool calling failed: {e}") from e

        llm_response = self._to_llm_response(response)
        self._track_usage(llm_response)
        return self.interpret(llm_response)

    @staticmethod
    def to_messages(system_prompt: str, transcript: List[TranscriptMessage]) -> List[Dict[str, Any]]:
        """Convert a transcript into chat-completion message dicts, system first."""
        messages: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        for message in transcript:
            if message.role == MessageRole.TOOL:
                messages.append({
                    "role": "tool",
                    "tool_call_id": message.tool_call_id,
                    "content": message.content,
                })
            elif message.role == MessageRole.ASSISTANT:
                entry: Dict[str, Any] = {"role": "assistant", "content": message.content or None}
                if message.tool_calls:
                    entry["tool_calls"] = [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": json.dumps(call.arguments, ensure_ascii=False),
                            },
                        }
                        for call in message.tool_calls
                    ]
                messages.append(entry)
            else:
                messages.append({"role": "user", "content": message.content})
        return messages

    @staticmethod
    def _to_llm_response(response: Any) -> LLMResponse:
        choice = response.choices[0]
        tool_calls = None
        if choice.message.tool_calls:
            tool_calls = []
            for tc in choice.message.tool_calls:
                try:
                    arguments = json.loads(tc.function.arguments or "{}")
                except json.JSONDecodeError as e:
                    raise ResponseFormatError(
                        f"OpenAI returned invalid JSON arguments for tool {tc.function.name}",
                        details={"arguments": tc.function.arguments},
                    ) from e
                tool_calls.append(ToolCall(id=tc.id, name=tc.function.name, arguments=arguments))

        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
                "total_tokens": response.usage.total_tokens if response.usage else 0,
            },
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason,
        )
