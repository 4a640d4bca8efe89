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
Checkpoint store for crawl sessions.

One JSON value per session, keyed ``<sanitized company>_<session id>.json``
so concurrent saves for different sessions never collide. The store reads
and writes sessions but never changes them.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from typing import List, Optional

from careerscout.agents.session import CrawlSession
from careerscout.storage.base import KeyValueStore
from careerscout.utils.logger import logger

_UNSAFE = re.compile(r"[^a-z0-9가-힣]+")


def sanitize_company(name: str) -> str:
    """Lowercase and replace runs of unsafe characters with a single ``_``."""
    return _UNSAFE.sub("_", name.lower()).strip("_")


@dataclass(frozen=True)
class ResumableCheckpoint:
    """Listing entry for a checkpoint that can be resumed."""

    company: str
    locator: str
    status: str
    job_count: int


class CheckpointStore:
    """Durable storage of CrawlSession snapshots."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    @staticmethod
    def locator_for(session: CrawlSession) -> str:
        return f"{sanitize_company(session.company)}_{session.session_id}.json"

    @staticmethod
    def _normalize(locator: str) -> str:
        # Accept a file path as printed by older runs as well as a bare key
        return os.path.basename(locator)

    async def save(self, session: CrawlSession) -> str:
        """Persist a session and return its locator.

        Raises:
            StorageError: The backing store rejected the write
        """
        locator = self.locator_for(session)
        await self.store.write(locator, json.dumps(session.to_dict(), indent=2, ensure_ascii=False))
        logger.debug(f"Checkpoint saved: {locator} ({session.status.value})")
        return locator

    async def load(self, locator: str) -> Optional[CrawlSession]:
        """Load a session, or None when missing or unreadable."""
        key = self._normalize(locator)
        try:
            raw = await self.store.read(key)
            if raw is None:
                return None
            return CrawlSession.from_dict(json.loads(raw))
        except Exception as e:
            logger.warning(f"Failed to load checkpoint {key}: {e}")
            return None

    async def find_latest_by_company(self, company: str) -> Optional[CrawlSession]:
        """Most recently modified readable checkpoint for a company.

        Keys of other companies can share the prefix ("acme_" also matches
        "acme_corp_..."), so every candidate is checked against its own
        company name.
        """
        wanted = sanitize_company(company)
        prefix = f"{wanted}_"
        keys = [k for k in await self.store.list_keys(prefix) if k.key.endswith(".json")]
        keys.sort(key=lambda k: k.modified_at, reverse=True)
        for stored in keys:
            session = await self.load(stored.key)
            if session is not None and sanitize_company(session.company) == wanted:
                return session
        return None

    async def list_resumable(self) -> List[ResumableCheckpoint]:
        """Every failed or suspended checkpoint; unreadable entries are skipped."""
        results = []
        for stored in await self.store.list_keys():
            if not stored.key.endswith(".json"):
                continue
            session = await self.load(stored.key)
            if session is not None and session.can_resume():
                results.append(
                    ResumableCheckpoint(
                        company=session.company,
                        locator=stored.key,
                        status=session.status.value,
                        job_count=session.job_count,
                    )
                )
        return results

    async def delete(self, locator: str) -> bool:
        return await self.store.delete(self._normalize(locator))
