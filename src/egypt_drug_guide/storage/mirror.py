# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Long-lived local copy of drugs and shortages used for export, import and backup."""

import json
import threading
from collections.abc import Sequence
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.exceptions import StorageError
from egypt_drug_guide.models import LocalDrug, LocalShortage, MirrorSnapshot, MirrorStats
from egypt_drug_guide.storage.local_storage import LocalStorage
from egypt_drug_guide.utils.dates import utc_now_iso


class LocalMirror:
    """
    Whole-snapshot store for the local dataset.

    Every mutation loads the snapshot, transforms one collection and saves the
    whole snapshot back. Mutations on one instance are serialized by a
    re-entrant lock; separate processes sharing a directory can still
    overwrite each other's changes (last writer wins).

    The mirror never expires. Public methods report failure through their
    return value and never raise.
    """

    def __init__(self, storage: LocalStorage, key: str = GuideConfig.KEY_MIRROR) -> None:
        self.storage = storage
        self.key = key
        self._lock = threading.RLock()

    def load_data(self) -> Optional[MirrorSnapshot]:
        """
        Load the persisted snapshot.

        Returns:
            The snapshot, or None if it is missing, corrupt, has no ``drugs``
            list, or its records fail validation.
        """
        try:
            return self._read()
        except StorageError as e:
            logger.error(f"Failed to load local data: {e}")
            return None

    def _read(self) -> Optional[MirrorSnapshot]:
        """
        Load the snapshot for a mutation.

        Raises:
            StorageError: If the storage cannot be read, or a stored snapshot
                has the right shape but its records fail validation.
        """
        raw = self.storage.get_item(self.key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error(f"Failed to load local data: {e}")
            return None

        if not isinstance(data, dict) or not isinstance(data.get("drugs"), list):
            logger.warning("Invalid local data structure")
            return None

        try:
            return MirrorSnapshot.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Stored local data failed validation: {e}") from e

    def save_data(self, data: MirrorSnapshot) -> bool:
        """Stamp version and last-updated time, then persist the full snapshot."""
        snapshot = data.model_copy(update={"version": GuideConfig.MIRROR_VERSION, "last_updated": utc_now_iso()})
        try:
            self.storage.set_item(self.key, snapshot.model_dump_json(by_alias=True, exclude_none=True))
            return True
        except StorageError as e:
            logger.error(f"Failed to save local data: {e}")
            return False

    def _current(self) -> MirrorSnapshot:
        return self._read() or MirrorSnapshot(drugs=[], shortages=[])

    def save_drugs(self, drugs: Sequence[LocalDrug]) -> bool:
        """Replace the drug collection, keeping shortages."""
        with self._lock:
            logger.debug(f"Saving {len(drugs)} drugs to local storage")
            try:
                current = self._current()
            except StorageError as e:
                logger.error(f"Refusing to overwrite local data: {e}")
                return False
            snapshot = current.model_copy(update={"drugs": list(drugs)})
            result = self.save_data(snapshot)
            logger.debug(f"Save drugs result: {result}")
            return result

    def save_shortages(self, shortages: Sequence[LocalShortage]) -> bool:
        """Replace the shortage collection, keeping drugs."""
        with self._lock:
            try:
                current = self._current()
            except StorageError as e:
                logger.error(f"Refusing to overwrite local data: {e}")
                return False
            snapshot = current.model_copy(update={"shortages": list(shortages)})
            return self.save_data(snapshot)

    def get_drugs(self) -> list[LocalDrug]:
        data = self.load_data()
        return list(data.drugs) if data else []

    def get_shortages(self) -> list[LocalShortage]:
        data = self.load_data()
        return list(data.shortages) if data else []

    def add_drug(self, drug: LocalDrug) -> bool:
        with self._lock:
            return self.save_drugs([*self.get_drugs(), drug])

    def update_drug(self, drug_id: str, updated: LocalDrug) -> bool:
        """Merge ``updated`` over every drug whose id equals ``drug_id``."""
        with self._lock:
            drugs = [_merged(drug, updated) if drug.id == drug_id else drug for drug in self.get_drugs()]
            return self.save_drugs(drugs)

    def delete_drug(self, drug_id: str) -> bool:
        with self._lock:
            return self.save_drugs([drug for drug in self.get_drugs() if drug.id != drug_id])

    def add_shortage(self, shortage: LocalShortage) -> bool:
        with self._lock:
            return self.save_shortages([*self.get_shortages(), shortage])

    def update_shortage(self, shortage_id: str, updated: LocalShortage) -> bool:
        with self._lock:
            shortages = [
                _merged(shortage, updated) if shortage.id == shortage_id else shortage
                for shortage in self.get_shortages()
            ]
            return self.save_shortages(shortages)

    def delete_shortage(self, shortage_id: str) -> bool:
        with self._lock:
            return self.save_shortages([s for s in self.get_shortages() if s.id != shortage_id])

    def clear_all_data(self) -> bool:
        with self._lock:
            try:
                self.storage.remove_item(self.key)
                return True
            except StorageError as e:
                logger.error(f"Failed to clear data: {e}")
                return False

    def export_data(self) -> Optional[dict[str, Any]]:
        """
        Build an export document from the snapshot.

        Returns:
            The snapshot in wire form plus ``exportDate``, ``totalDrugs`` and
            ``totalShortages``; None when there is no snapshot.
        """
        data = self.load_data()
        if data is None:
            return None
        exported = data.model_dump(by_alias=True, exclude_none=True)
        exported.update(
            {
                "exportDate": utc_now_iso(),
                "totalDrugs": len(data.drugs),
                "totalShortages": len(data.shortages),
            }
        )
        return exported

    def import_data(self, imported: Any) -> bool:
        """
        Replace the whole mirror with ``imported``.

        ``imported["drugs"]`` must be a list; shortages default to an empty list.
        """
        with self._lock:
            if not isinstance(imported, dict) or not isinstance(imported.get("drugs"), list):
                logger.error("Failed to import data: Invalid data format")
                return False
            try:
                snapshot = MirrorSnapshot.model_validate(
                    {"drugs": imported["drugs"], "shortages": imported.get("shortages") or []}
                )
            except ValidationError as e:
                logger.error(f"Failed to import data: {e}")
                return False
            return self.save_data(snapshot)

    def get_stats(self) -> Optional[MirrorStats]:
        data = self.load_data()
        if data is None:
            return None
        return MirrorStats(
            total_drugs=len(data.drugs),
            total_shortages=len(data.shortages),
            last_updated=data.last_updated,
            version=data.version,
        )


def _merged(current: Any, updated: Any) -> Any:
    """Shallow merge of two records of the same model; fields set on ``updated`` win."""
    values = current.model_dump(by_alias=True, exclude_none=True)
    values.update(updated.model_dump(by_alias=True, exclude_unset=True, exclude_none=True))
    return type(current).model_validate(values)
