# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Drug shortage reports stored under ``shortages``."""

import uuid
from collections.abc import Iterable
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from egypt_drug_guide.exceptions import RemoteStoreError
from egypt_drug_guide.models import Shortage, ShortageStatus
from egypt_drug_guide.remote import RemoteStore, as_mapping
from egypt_drug_guide.utils.dates import utc_now_iso


def parse_shortages(data: Any) -> list[Shortage]:
    """Flatten the ``shortages`` document into records, attaching each key as ``id``."""
    shortages = []
    for key, value in as_mapping(data).items():
        if not isinstance(value, dict):
            continue
        try:
            shortages.append(Shortage.model_validate({**value, "id": key}))
        except ValidationError as e:
            logger.warning(f"Skipping malformed shortage {key}: {e.error_count()} error(s)")
    return shortages


def count_critical(shortages: Iterable[Shortage]) -> int:
    return sum(1 for s in shortages if s.status == "critical")


class ShortageService:
    """Admin and public access to shortage reports. Writes are not retried."""

    def __init__(self, store: RemoteStore) -> None:
        self.store = store

    def add_shortage(
        self,
        drug_name: str,
        reason: str,
        status: ShortageStatus,
        reported_by: Optional[str] = None,
    ) -> bool:
        """
        Report a shortage for ``drug_name``.

        The drug is identified by free text only; ``drugId`` is a fresh
        identifier for the report itself.
        """
        now = utc_now_iso()
        shortage = Shortage(
            drug_id=str(uuid.uuid4()),
            drug_name=drug_name,
            reason=reason,
            status=status,
            report_date=now,
            last_update_date=now,
            reported_by=reported_by,
        )
        try:
            self.store.post("shortages", shortage.to_wire())
            return True
        except RemoteStoreError as e:
            logger.error(f"Error adding shortage: {e}")
            return False

    def get_shortages(self) -> list[Shortage]:
        try:
            return parse_shortages(self.store.get("shortages"))
        except RemoteStoreError as e:
            logger.error(f"Error getting shortages: {e}")
            return []

    def update_shortage(self, shortage_id: str, updates: dict[str, Any]) -> bool:
        """Patch fields of one shortage; ``lastUpdateDate`` is always refreshed."""
        payload = {key: value for key, value in updates.items() if key not in ("id", "reportDate")}
        payload["lastUpdateDate"] = utc_now_iso()
        try:
            self.store.patch(f"shortages/{shortage_id}", payload)
            return True
        except RemoteStoreError as e:
            logger.error(f"Error updating shortage: {e}")
            return False

    def delete_shortage(self, shortage_id: str) -> bool:
        try:
            self.store.delete(f"shortages/{shortage_id}")
            return True
        except RemoteStoreError as e:
            logger.error(f"Error deleting shortage: {e}")
            return False
