# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Import pipeline: validate external drug data and write it to the remote store."""

import json
from pathlib import Path
from typing import Any, Literal, Optional

from loguru import logger
from pydantic import ValidationError

from egypt_drug_guide.catalog.validation import safe_price, validate_import_entry
from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.exceptions import ImportFormatError, RemoteHTTPError, RemoteStoreError
from egypt_drug_guide.importer.csv_import import csv_to_json, validate_csv
from egypt_drug_guide.messages import Messages
from egypt_drug_guide.models import ImportResult, LocalDrug
from egypt_drug_guide.remote import RemoteStore, as_mapping
from egypt_drug_guide.storage.mirror import LocalMirror
from egypt_drug_guide.utils.dates import utc_now_iso

ImportMode = Literal["replace", "merge"]


def normalize_import_shape(data: Any) -> dict[str, Any]:
    """
    Bring any accepted input shape to a key -> record mapping.

    Accepted shapes:
        - a list of drug objects: keyed by index; entries that are not objects
          or have no name are dropped without being counted;
        - an object with a ``drugs`` field (export format): that field;
        - an already keyed mapping: used as-is.
    """
    if isinstance(data, list):
        return {
            str(index): drug
            for index, drug in enumerate(data)
            if isinstance(drug, dict) and drug.get("name")
        }
    if isinstance(data, dict) and isinstance(data.get("drugs"), (dict, list)):
        drugs = data["drugs"]
        return normalize_import_shape(drugs) if isinstance(drugs, list) else as_mapping(drugs)
    if isinstance(data, dict):
        return data
    return {}


def _failure(message: str, errors: list[str]) -> ImportResult:
    return ImportResult(success=False, message=message, imported_count=0, error_count=1, errors=errors)


def process_import_data(
    data: Any,
    store: RemoteStore,
    mode: ImportMode = "replace",
    imported_by: str = GuideConfig.IMPORTED_BY,
) -> tuple[ImportResult, dict[str, Any]]:
    """
    Validate a batch of drug records and write the valid ones to ``drugs``.

    Validation is per record: invalid entries are counted, described and left
    out of the write. The write itself is one PUT of the whole ``drugs``
    document, performed only when at least one entry is valid.

    Args:
        data: Parsed JSON (list, export document, or keyed mapping).
        store: Remote store client.
        mode: ``replace`` writes only the imported entries; ``merge`` overlays
            them on the current remote document, entry by entry.
        imported_by: Value recorded in ``importedBy``.

    Returns:
        The import result and the mapping of valid entries that was imported.
    """
    drugs = normalize_import_shape(data)
    valid: dict[str, Any] = {}
    errors: list[str] = []

    for key, entry in drugs.items():
        error = validate_import_entry(str(key), entry)
        if error:
            errors.append(error)
            continue
        valid[str(key)] = entry

    imported_count = len(valid)
    error_count = len(errors)

    if imported_count > 0:
        try:
            payload = _merge_with_remote(store, valid) if mode == "merge" else dict(valid)
            payload["lastImport"] = utc_now_iso()
            payload["importedBy"] = imported_by
            store.put("drugs", payload)
        except RemoteHTTPError as e:
            logger.error(f"Import write failed: {e}")
            errors = [Messages.IMPORT_SAVE_FAILED.format(status=e.status_code)]
            return _failure(Messages.IMPORT_PROCESS_FAILED, errors), {}
        except RemoteStoreError as e:
            logger.error(f"Import write failed: {e}")
            return _failure(Messages.IMPORT_PROCESS_FAILED, [str(e)]), {}

    message = Messages.IMPORT_SUCCESS.format(count=imported_count)
    if error_count > 0:
        message += Messages.IMPORT_WITH_ERRORS.format(count=error_count)
    logger.info(f"Import finished: {imported_count} imported, {error_count} rejected (mode={mode})")

    result = ImportResult(
        success=imported_count > 0,
        message=message,
        imported_count=imported_count,
        error_count=error_count,
        errors=errors[: GuideConfig.IMPORT_ERROR_LIMIT],
    )
    return result, valid


def _merge_with_remote(store: RemoteStore, entries: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``entries`` on the current remote document; imported fields win per entry."""
    current = as_mapping(store.get("drugs"))
    merged = dict(current)
    for key, entry in entries.items():
        existing = current.get(key)
        merged[key] = {**existing, **entry} if isinstance(existing, dict) else entry
    return merged


class DataImporter:
    """File, remote and mirror entry points around ``process_import_data``."""

    def __init__(self, store: RemoteStore, mirror: Optional[LocalMirror] = None) -> None:
        self.store = store
        self.mirror = mirror

    def import_data(self, data: Any, mode: ImportMode = "replace", backup_to_mirror: bool = False) -> ImportResult:
        """Run the pipeline on parsed data, optionally copying valid rows to the local mirror."""
        if not isinstance(data, (dict, list)):
            return _failure(Messages.INVALID_FILE, [Messages.INVALID_FORMAT])

        result, valid = process_import_data(data, self.store, mode=mode)
        if result.success and backup_to_mirror and self.mirror is not None:
            self._backup(valid)
        return result

    def import_from_file(
        self,
        path: Path,
        mode: ImportMode = "replace",
        backup_to_mirror: bool = False,
    ) -> ImportResult:
        """
        Import a ``.csv`` or JSON file.

        CSV files are validated first; a file that fails validation is
        reported without touching the store.
        """
        try:
            text = Path(path).read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read import file {path}: {e}")
            return _failure(Messages.FILE_READ_ERROR, [str(e)])

        if Path(path).suffix.lower() == ".csv":
            validation = validate_csv(text)
            if not validation.valid:
                return ImportResult(
                    success=False,
                    message=Messages.INVALID_CSV,
                    imported_count=0,
                    error_count=len(validation.errors),
                    errors=validation.errors,
                )
            try:
                data: Any = csv_to_json(text)
            except ImportFormatError as e:
                return _failure(Messages.INVALID_CSV, [str(e)])
        else:
            try:
                data = json.loads(text)
            except ValueError as e:
                logger.error(f"Invalid JSON in {path}: {e}")
                return _failure(Messages.FILE_READ_ERROR, [str(e)])

        return self.import_data(data, mode=mode, backup_to_mirror=backup_to_mirror)

    def import_from_remote(self) -> ImportResult:
        """Re-validate the current remote ``drugs`` document and write it back."""
        try:
            data = self.store.get("drugs")
        except RemoteStoreError as e:
            logger.error(f"Remote sync failed: {e}")
            return _failure(Messages.REMOTE_UNREACHABLE, [str(e)])
        if not data:
            return ImportResult(success=False, message=Messages.REMOTE_EMPTY)
        if isinstance(data, dict):
            data = {key: value for key, value in data.items() if key not in ("updateDate", "lastImport", "importedBy")}
        return self.import_data(data)

    def export_to_dict(self) -> dict[str, Any]:
        """
        Snapshot the remote ``drugs`` document for download.

        Raises:
            RemoteStoreError: If the store cannot be read.
        """
        drugs = self.store.get("drugs") or {}
        return {
            "exportDate": utc_now_iso(),
            "drugCount": len(as_mapping(drugs)),
            "drugs": drugs,
        }

    def _backup(self, valid: dict[str, Any]) -> None:
        if self.mirror is None:
            return
        local: list[LocalDrug] = []
        for key, entry in valid.items():
            try:
                local.append(_to_local_drug(key, entry))
            except (ValidationError, TypeError, ValueError) as e:
                logger.warning(f"Skipping mirror copy of entry {key}: {e}")
        if not self.mirror.save_drugs(local):
            logger.warning("Imported drugs could not be copied to the local mirror")


def _to_local_drug(key: str, entry: dict[str, Any]) -> LocalDrug:
    discount = entry.get("averageDiscountPercent")
    ingredient = entry.get("activeIngredient")
    return LocalDrug(
        id=str(entry.get("id") or key),
        name=entry["name"].strip(),
        new_price=float(entry["newPrice"]),
        old_price=safe_price(entry.get("oldPrice")),
        no=str(entry.get("no") or key),
        update_date=str(entry.get("updateDate") or ""),
        active_ingredient=str(ingredient) if ingredient else None,
        average_discount_percent=safe_price(discount) if discount else None,
    )
