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
Configuration for CareerScout.

Two layers:

- ``AgentConfig``: a dataclass tree with the control-loop limits, memory
  budget, reflection window and model selection. Loaded from YAML/JSON or
  built in code, with ``CAREERSCOUT_<SECTION>_<KEY>`` environment overrides.
- ``StorageSettings``: filesystem locations and API keys, read from the
  environment by pydantic-settings.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

from careerscout.exceptions import ConfigurationError


@dataclass
class LLMConfig:
    """Model selection for the agent loop."""

    provider: str = "anthropic"
    model: Optional[str] = None  # None -> provider default
    max_tokens: int = 4096
    temperature: float = 0.0


@dataclass
class ReflectionConfig:
    """Configuration for failure reflection."""

    history_window: int = 5  # Recent steps shown to the model
    escalation_threshold: int = 3  # Trailing failures before asking for a new strategy
    max_tokens: int = 1024


@dataclass
class MemoryConfig:
    """Working-context budget and the summaries kept in it."""

    max_total_tokens: int = 4000
    compression_threshold: float = 0.9
    compressed_action_count: int = 3
    recent_action_count: int = 5
    recent_job_titles: int = 10


@dataclass
class AgentConfig:
    """
    Configuration for the crawler agent.

    Aggregates the component configurations and supports YAML/JSON loading
    and environment variable overrides.
    """

    llm: LLMConfig = field(default_factory=LLMConfig)
    reflection: ReflectionConfig = field(default_factory=ReflectionConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)

    # Loop limits
    max_steps: int = 30
    max_consecutive_no_new_jobs: int = 3
    max_consecutive_same_action: int = 3
    max_scroll_no_progress: int = 3
    max_navigate_retries: int = 3
    navigate_retry_delay_seconds: float = 2.0

    # Optional wall-clock cancellation, same exit path as step exhaustion
    deadline_seconds: Optional[float] = None

    # Write a checkpoint after every recorded step, not only at finalization
    checkpoint_every_step: bool = False

    _SECTIONS = ("llm", "reflection", "memory")
    _OPTIONAL_FLOATS = ("deadline_seconds",)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentConfig":
        """Create config from dictionary."""
        config = cls()

        for key in ["max_steps", "max_consecutive_no_new_jobs", "max_consecutive_same_action",
                    "max_scroll_no_progress", "max_navigate_retries",
                    "navigate_retry_delay_seconds", "deadline_seconds", "checkpoint_every_step"]:
            if key in data:
                setattr(config, key, data[key])

        try:
            if "llm" in data:
                config.llm = LLMConfig(**data["llm"])
            if "reflection" in data:
                config.reflection = ReflectionConfig(**data["reflection"])
            if "memory" in data:
                config.memory = MemoryConfig(**data["memory"])
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration section: {e}") from e

        return config

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "AgentConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            max_steps: 40
            llm:
              provider: openai
              model: gpt-4.1-mini
            memory:
              max_total_tokens: 6000
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, json_path: Union[str, Path]) -> "AgentConfig":
        """Load configuration from JSON file."""
        path = Path(json_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {json_path}")

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides.

        Environment variables follow pattern: CAREERSCOUT_<SECTION>_<KEY>
        Examples:
            CAREERSCOUT_LLM_PROVIDER=openai
            CAREERSCOUT_MEMORY_MAX_TOTAL_TOKENS=6000
            CAREERSCOUT_MAX_STEPS=50
        """
        prefix = "CAREERSCOUT_"

        for env_var, value in os.environ.items():
            if not env_var.startswith(prefix):
                continue

            # CAREERSCOUT_MEMORY_MAX_TOTAL_TOKENS -> memory.max_total_tokens
            parts = env_var[len(prefix):].lower().split("_")
            section = parts[0]
            key = "_".join(parts[1:])

            try:
                if section in self._SECTIONS and len(parts) > 1:
                    target = getattr(self, section)
                    if hasattr(target, key):
                        setattr(target, key, self._parse_env_value(value, getattr(target, key)))
                    continue

                full_key = "_".join(parts)
                if full_key in self._OPTIONAL_FLOATS:
                    setattr(self, full_key, float(value) if value else None)
                elif hasattr(self, full_key) and not full_key.startswith("_"):
                    setattr(self, full_key, self._parse_env_value(value, getattr(self, full_key)))
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {env_var}: {value!r}", details={"env_var": env_var}
                ) from e

    @staticmethod
    def _parse_env_value(value: str, current_value: Any) -> Any:
        """Parse environment variable value based on current type."""
        if isinstance(current_value, bool):
            return value.lower() in ("true", "1", "yes", "on")
        elif isinstance(current_value, int):
            return int(value)
        elif isinstance(current_value, float):
            return float(value)
        else:
            return value


class StorageSettings(BaseSettings):
    """Filesystem locations and credentials, loaded from environment variables.

    Environment variables are prefixed with CAREERSCOUT_ and use uppercase.

    Example:
        CAREERSCOUT_CHECKPOINT_DIR=/var/lib/careerscout/checkpoints
        CAREERSCOUT_ANTHROPIC_API_KEY=sk-ant-...
    """

    cache_dir: str = Field(default=".cache", description="Root cache directory")
    checkpoint_dir: str = Field(default=".cache/checkpoints", description="Checkpoint directory")
    failure_cases_file: str = Field(
        default=".cache/failure_cases.jsonl", description="Append-only failure case log"
    )
    log_dir: str = Field(default="output/logs", description="Per-session agent log directory")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")

    model_config = {
        "env_prefix": "CAREERSCOUT_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def api_key_for(self, provider: str) -> Optional[str]:
        """Return the configured key for a provider name, if any."""
        provider = provider.lower()
        if provider in ("anthropic", "claude"):
            return self.anthropic_api_key
        if provider == "openai":
            return self.openai_api_key
        return None


def load_agent_config(path: Optional[Union[str, Path]] = None) -> AgentConfig:
    """Build an AgentConfig from an optional YAML/JSON file plus env overrides."""
    if path is None:
        config = AgentConfig()
    elif str(path).endswith(".json"):
        config = AgentConfig.from_json(path)
    else:
        config = AgentConfig.from_yaml(path)
    config.apply_env_overrides()
    return config
