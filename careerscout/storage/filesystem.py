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

"""Local filesystem storage backend."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from careerscout.exceptions import StorageError
from careerscout.storage.base import KeyValueStore, StoredKey
from careerscout.utils.logger import logger


class FileSystemStore(KeyValueStore):
    """Local filesystem storage backend.

    Each key is a file directly under ``base_dir``. Whole-value writes go to a
    temporary file first and are moved into place with ``os.replace``, so a
    reader never sees a half-written value. Appends use a single ``O_APPEND``
    write per line so independent writers never interleave partial lines.

    All file I/O runs in a worker thread.
    """

    def __init__(self, base_dir: Union[str, Path] = ".cache") -> None:
        """Initialize filesystem storage.

        Args:
            base_dir: Directory holding one file per key
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"FileSystemStore initialized at {self.base_dir}")

    def _path(self, key: str) -> Path:
        if not key or key in (".", "..") or "/" in key or "\\" in key or "\x00" in key:
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.base_dir / key

    async def write(self, key: str, value: str) -> None:
        path = self._path(key)

        def _write() -> None:
            fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Failed to write {key}: {e}") from e

    async def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(f"Failed to read {key}: {e}") from e

    async def append_line(self, key: str, line: str) -> None:
        path = self._path(key)
        data = (line.rstrip("\n") + "\n").encode("utf-8")

        def _append() -> None:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o644)
            try:
                os.write(fd, data)
            finally:
                os.close(fd)

        try:
            await asyncio.to_thread(_append)
        except OSError as e:
            logger.error(f"Failed to append to {path}: {e}")
            raise StorageError(f"Failed to append to {key}: {e}") from e

    async def list_keys(self, prefix: str = "") -> List[StoredKey]:
        def _list() -> List[StoredKey]:
            keys = []
            for entry in os.scandir(self.base_dir):
                # Skip in-flight temporary files
                if not entry.is_file() or entry.name.startswith("."):
                    continue
                if not entry.name.startswith(prefix):
                    continue
                try:
                    keys.append(StoredKey(entry.name, entry.stat().st_mtime))
                except FileNotFoundError:
                    continue
            return keys

        return await asyncio.to_thread(_list)

    async def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            await asyncio.to_thread(path.unlink)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            return False
