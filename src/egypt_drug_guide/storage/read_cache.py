# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Short-lived snapshot of the processed drug list."""

import json
import time
from collections.abc import Callable, Sequence
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.exceptions import StorageError
from egypt_drug_guide.models import CacheSnapshot, Drug
from egypt_drug_guide.storage.local_storage import LocalStorage


class ReadCache:
    """
    Drug-list cache with read-through expiry.

    A snapshot is served only while ``now - timestamp < ttl``. Expired or
    unreadable entries are deleted on read. No method raises.
    """

    def __init__(
        self,
        storage: LocalStorage,
        ttl: float = GuideConfig.CACHE_TTL,
        key: str = GuideConfig.KEY_CACHE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage
        self.ttl = ttl
        self.key = key
        self.clock = clock

    def set(self, drugs: Sequence[Drug], last_updated: str) -> None:
        """Persist a snapshot stamped with the current time, replacing any previous one."""
        snapshot = CacheSnapshot(drugs=list(drugs), last_updated=last_updated, timestamp=self.clock())
        try:
            self.storage.set_item(self.key, snapshot.model_dump_json(by_alias=True, exclude_none=True))
        except StorageError as e:
            logger.warning(f"Failed to cache data: {e}")

    def get(self) -> Optional[CacheSnapshot]:
        """Return the cached snapshot while it is fresh, otherwise purge it and return None."""
        try:
            raw = self.storage.get_item(self.key)
            if raw is None:
                return None
            snapshot = CacheSnapshot.model_validate(json.loads(raw))
        except (StorageError, ValueError, ValidationError) as e:
            logger.warning(f"Failed to get cached data: {e}")
            self.clear()
            return None

        if self.clock() - snapshot.timestamp >= self.ttl:
            logger.debug("Drug cache expired")
            self.clear()
            return None

        return snapshot

    def clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except StorageError as e:
            logger.warning(f"Failed to clear cache: {e}")
