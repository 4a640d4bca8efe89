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

"""Factory for creating LLM provider instances."""

from typing import Any, Dict, List, Optional

from careerscout.exceptions import ConfigurationError
from careerscout.llm.anthropic_provider import DEFAULT_ANTHROPIC_MODEL, AnthropicProvider
from careerscout.llm.base import BaseLLMProvider
from careerscout.llm.openai_provider import DEFAULT_OPENAI_MODEL, OpenAIProvider
from careerscout.utils.logger import logger


class LLMProviderFactory:
    """Factory for creating LLM provider instances."""

    _providers = {
        "anthropic": AnthropicProvider,
        "claude": AnthropicProvider,  # Alias for anthropic
        "openai": OpenAIProvider,
    }

    _default_models = {
        AnthropicProvider: DEFAULT_ANTHROPIC_MODEL,
        OpenAIProvider: DEFAULT_OPENAI_MODEL,
    }

    @classmethod
    def create(
        cls,
        provider: str,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        **kwargs: Any,
    ) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Args:
            provider: Provider name (anthropic, openai, or a registered name)
            model: Model name (optional, uses provider default if not specified)
            api_key: API key for the provider
            **kwargs: Additional provider-specific configuration

        Returns:
            BaseLLMProvider instance

        Raises:
            ConfigurationError: If provider is not supported
        """
        provider_lower = provider.lower()

        if provider_lower not in cls._providers:
            raise ConfigurationError(
                f"Unsupported LLM provider: {provider}. "
                f"Supported providers: {', '.join(cls._providers.keys())}"
            )

        provider_class = cls._providers[provider_lower]

        if not model:
            model = cls._default_models.get(provider_class)

        logger.debug(f"Creating LLM provider {provider_lower} with model {model or 'default'}")
        if model:
            return provider_class(model=model, api_key=api_key, **kwargs)
        return provider_class(api_key=api_key, **kwargs)

    @classmethod
    def register_provider(cls, name: str, provider_class: type) -> None:
        """
        Register a custom LLM provider.

        Args:
            name: Provider name
            provider_class: Provider class (must inherit from BaseLLMProvider)
        """
        if not isinstance(provider_class, type) or not issubclass(provider_class, BaseLLMProvider):
            raise ConfigurationError(
                f"Provider class must inherit from BaseLLMProvider, got {provider_class}"
            )
        cls._providers[name.lower()] = provider_class

    @classmethod
    def list_providers(cls, include_aliases: bool = True) -> List[str]:
        """List all registered provider names."""
        if include_aliases:
            return list(cls._providers.keys())

        seen_classes = set()
        providers = []
        for name, provider_class in cls._providers.items():
            if provider_class not in seen_classes:
                seen_classes.add(provider_class)
                providers.append(name)
        return providers

    @classmethod
    def get_aliases(cls) -> Dict[str, str]:
        """Map alias names to their canonical provider names."""
        seen_classes: Dict[type, str] = {}
        aliases: Dict[str, str] = {}
        for name, provider_class in cls._providers.items():
            if provider_class in seen_classes:
                aliases[name] = seen_classes[provider_class]
            else:
                seen_classes[provider_class] = name
        return aliases
