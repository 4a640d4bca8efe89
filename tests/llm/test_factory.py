# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for LLMProviderFactory."""

import pytest

from careerscout.exceptions import ConfigurationError
from careerscout.llm.anthropic_provider import DEFAULT_ANTHROPIC_MODEL, AnthropicProvider
from careerscout.llm.factory import LLMProviderFactory
from careerscout.llm.openai_provider import OpenAIProvider

from conftest import ScriptedLLM


@pytest.fixture
def isolated_registry(monkeypatch):
    monkeypatch.setattr(LLMProviderFactory, "_providers", dict(LLMProviderFactory._providers))


class TestLLMProviderFactory:
    def test_create_default_model(self):
        provider = LLMProviderFactory.create("anthropic", api_key="test-key")
        assert isinstance(provider, AnthropicProvider)
        assert provider.model == DEFAULT_ANTHROPIC_MODEL

    def test_alias_and_case(self):
        assert isinstance(LLMProviderFactory.create("Claude", api_key="test-key"), AnthropicProvider)
        provider = LLMProviderFactory.create("OPENAI", model="gpt-4.1", api_key="test-key")
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4.1"

    def test_unsupported_provider(self):
        with pytest.raises(ConfigurationError, match="Unsupported LLM provider: gemini"):
            LLMProviderFactory.create("gemini")

    def test_register_provider(self, isolated_registry):
        LLMProviderFactory.register_provider("Scripted", ScriptedLLM)
        assert "scripted" in LLMProviderFactory.list_providers()
        assert isinstance(LLMProviderFactory.create("scripted"), ScriptedLLM)

    def test_register_rejects_non_providers(self, isolated_registry):
        with pytest.raises(ConfigurationError):
            LLMProviderFactory.register_provider("bad", dict)

    def test_aliases(self):
        assert LLMProviderFactory.get_aliases() == {"claude": "anthropic"}
        assert LLMProviderFactory.list_providers(include_aliases=False) == ["anthropic", "openai"]
