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
Exception hierarchy for CareerScout.

Every error raised by the package derives from :class:`CareerScoutError` so
callers can catch the whole family at once. Errors that cross the browser
driver boundary are converted to failed tool results instead of being
raised; errors from the language-model interface always propagate.
"""

from typing import Any, Dict, Optional


class CareerScoutError(Exception):
    """Base exception for all CareerScout errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ConfigurationError(CareerScoutError):
    """Invalid or unsupported configuration."""


class LLMProviderError(CareerScoutError):
    """The language-model interface is unavailable or the call failed."""


class ResponseFormatError(LLMProviderError):
    """The model returned a response shape that cannot be interpreted."""


class BrowserError(CareerScoutError):
    """Browser lifecycle or page-level failure."""


class ToolInputError(CareerScoutError):
    """Tool input failed validation at the browser driver boundary."""


class CheckpointError(CareerScoutError):
    """A checkpoint is missing or cannot be resumed."""


class StorageError(CareerScoutError):
    """Durable storage read or write failed."""


class MemoryCompressionError(CareerScoutError):
    """Compression was requested for a protected memory block."""
