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

"""Key-addressable durable storage interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class StoredKey:
    """A stored key and its last modification time (epoch seconds)."""

    key: str
    modified_at: float


class KeyValueStore(ABC):
    """Abstract base class for durable key/value storage backends.

    Values are text. Implementations must keep ``append_line`` safe under
    concurrent writers from independent processes: a line is either written
    whole or not at all, and existing data is never rewritten.
    """

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        """Write a whole value, replacing any previous one.

        Raises:
            StorageError: The value could not be written
        """
        pass

    @abstractmethod
    async def read(self, key: str) -> Optional[str]:
        """Read a whole value, or None when the key does not exist.

        Raises:
            StorageError: The value exists but could not be read
        """
        pass

    @abstractmethod
    async def append_line(self, key: str, line: str) -> None:
        """Append one line to the value, creating it when missing.

        Raises:
            StorageError: The line could not be written
        """
        pass

    @abstractmethod
    async def list_keys(self, prefix: str = "") -> List[StoredKey]:
        """List keys starting with ``prefix``."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key. Returns False when it did not exist."""
        pass
