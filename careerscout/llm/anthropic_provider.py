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
Anthropic LLM provider implementation.

This module provides the AnthropicProvider class which implements the
BaseLLMProvider interface for Anthropic's Claude models using the Messages API.

Supported models include:
- Claude Haiku 4.5 (default): Fastest model, good enough for tool selection
- Claude Sonnet 4.5: Smart model for harder career sites
- Claude Opus 4.5: Premium model with maximum intelligence

The provider handles:
- Text generation with system prompts (used by reflection)
- Multi-turn tool calling over a provider-neutral transcript
- Token usage tracking
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from anthropic import AsyncAnthropic

from careerscout.exceptions import LLMProviderError
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

DEFAULT_ANTHROPIC_MODEL = "claude-haiku-4-5-20251001"


class AnthropicProvider(BaseLLMProvider):
    """
    Anthropic LLM provider implementation using Messages API.

    Attributes:
        client: AsyncAnthropic client instance for API calls
        model: Anthropic model name (e.g., "claude-haiku-4-5-20251001")
        api_key: Anthropic API key for authentication

    Example:
        >>> provider = AnthropicProvider(api_key="sk-ant-...")
        >>> response = await provider.complete(system_prompt, tools, transcript)
    """

    provider_name = "anthropic"
    TOOL_STOP_REASONS = ("tool_use",)
    END_STOP_REASONS = ("end_turn",)

    def __init__(
        self, model: str = DEFAULT_ANTHROPIC_MODEL, api_key: Optional[str] = None, **kwargs: Any
    ) -> None:
        """
        Initialize Anthropic provider with API credentials.

        Args:
            model: Anthropic model name
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY when omitted.
            **kwargs: Additional configuration passed to BaseLLMProvider
        """
        super().__init__(model, api_key, **kwargs)
        self.client = AsyncAnthropic(api_key=api_key)

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a text response using Anthropic's Messages API.

        Args:
            prompt: User prompt/message to send to the model
            system_prompt: Optional system prompt to set model behavior
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum tokens to generate. Defaults to 1024.
            **kwargs: Additional parameters for Anthropic API

        Returns:
            LLMResponse with the concatenated text blocks

        Raises:
            LLMProviderError: If API call fails
        """
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or 1024,
                temperature=temperature,
                system=system_prompt or "",
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
            llm_response = self._to_llm_response(response)
            self._track_usage(llm_response)
            return llm_response
        except Exception as e:
            logger.error(f"Anthropic generation error: {e}")
            raise LLMProviderError(f"Anthropic generation failed: {e}") from e

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
        try:
            anthropic_tools = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.input_schema,
                }
                for tool in tools
            ]

            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or 4096,
                temperature=temperature,
                system=system_prompt,
                messages=self.to_messages(transcript),
                tools=anthropic_tools,
                **kwargs,
            )
            llm_response = self._to_llm_response(response)
        except Exception as e:
            logger.error(f"Anthropic tool calling error: {e}")
            raise LLMProviderError(f"Anthropic tool calling failed: {e}") from e

        self._track_usage(llm_response)
        return self.interpret(llm_response)

    @staticmethod
    def to_messages(transcript: List[TranscriptMessage]) -> List[Dict[str, Any]]:
        """
        Convert a transcript into Anthropic message dicts.

        Tool results become ``tool_result`` blocks inside a user message, and
        assistant tool calls become ``tool_use`` blocks after any text.
        """
        messages: List[Dict[str, Any]] = []
        for message in transcript:
            if message.role == MessageRole.TOOL:
                messages.append({
                    "role": "user",
                    "content": [{
                        "type": "tool_result",
                        "tool_use_id": message.tool_call_id,
                        "content": message.content,
                    }],
                })
            elif message.role == MessageRole.ASSISTANT:
                blocks: List[Dict[str, Any]] = []
                if message.content:
                    blocks.append({"type": "text", "text": message.content})
                for call in message.tool_calls:
                    blocks.append({
                        "type": "tool_use",
                        "id": call.id,
                        "name": call.name,
                        "input": call.arguments,
                    })
                if blocks:
                    messages.append({"role": "assistant", "content": blocks})
            else:
                messages.append({"role": "user", "content": message.content})
        return messages

    @staticmethod
    def _to_llm_response(response: Any) -> LLMResponse:
        tool_calls = None
        texts: List[str] = []
        for block in response.content:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                texts.append(block.text)
            elif block_type == "tool_use":
                if tool_calls is None:
                    tool_calls = []
                arguments = block.input
                if isinstance(arguments, str):
                    arguments = json.loads(arguments or "{}")
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=dict(arguments or {})))

        return LLMResponse(
            content="\n".join(texts),
            model=response.model,
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            },
            tool_calls=tool_calls,
            finish_reason=response.stop_reason,
        )
