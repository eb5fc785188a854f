# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Client-side session state: admin flag, favorite drugs and the error report log."""

import hmac
import json
import time
import traceback
from collections.abc import Callable
from typing import Any, Optional

from loguru import logger

from egypt_drug_guide.config import GuideConfig, admin_credentials
from egypt_drug_guide.exceptions import StorageError
from egypt_drug_guide.storage.local_storage import LocalStorage
from egypt_drug_guide.utils.dates import utc_now_iso


class AdminSession:
    """
    Timestamped admin flag kept in local storage.

    This only gates the admin tooling on one client; it is not an access
    control mechanism for the remote store.
    """

    def __init__(
        self,
        storage: LocalStorage,
        credentials: Optional[tuple[str, str]] = None,
        ttl: float = GuideConfig.AUTH_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage
        self.credentials = credentials or admin_credentials()
        self.ttl = ttl
        self.clock = clock

    def login(self, email: str, password: str) -> bool:
        expected_email, expected_password = self.credentials
        if not expected_email or not expected_password:
            logger.warning("Admin credentials are not configured")
            return False
        matches = hmac.compare_digest(email.encode(), expected_email.encode()) and hmac.compare_digest(
            password.encode(), expected_password.encode()
        )
        if not matches:
            return False
        try:
            self.storage.set_item(
                GuideConfig.KEY_AUTH, json.dumps({"isAuthenticated": True, "timestamp": self.clock()})
            )
            return True
        except StorageError as e:
            logger.warning(f"Failed to save auth data: {e}")
            return False

    def is_authenticated(self) -> bool:
        try:
            raw = self.storage.get_item(GuideConfig.KEY_AUTH)
            if raw is None:
                return False
            data = json.loads(raw)
            if self.clock() - float(data["timestamp"]) > self.ttl:
                self.logout()
                return False
            return bool(data.get("isAuthenticated"))
        except (StorageError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to check auth: {e}")
            self.logout()
            return False

    def logout(self) -> None:
        try:
            self.storage.remove_item(GuideConfig.KEY_AUTH)
        except StorageError as e:
            logger.warning(f"Failed to logout: {e}")


class _JsonListKey:
    """A JSON list stored under one key; unreadable values read as empty."""

    def __init__(self, storage: LocalStorage, key: str) -> None:
        self.storage = storage
        self.key = key

    def _read(self) -> list[Any]:
        try:
            raw = self.storage.get_item(self.key)
            data = json.loads(raw) if raw else []
        except (StorageError, ValueError) as e:
            logger.warning(f"Failed to read {self.key}: {e}")
            return []
        return data if isinstance(data, list) else []

    def _write(self, items: list[Any]) -> bool:
        try:
            self.storage.set_item(self.key, json.dumps(items, ensure_ascii=False))
            return True
        except StorageError as e:
            logger.error(f"Failed to write {self.key}: {e}")
            return False


class Favorites(_JsonListKey):
    """Drug ids marked as favorite on this client."""

    def __init__(self, storage: LocalStorage) -> None:
        super().__init__(storage, GuideConfig.KEY_FAVORITES)

    def drug_ids(self) -> list[str]:
        return [str(item) for item in self._read()]

    def is_favorite(self, drug_id: str) -> bool:
        return drug_id in self.drug_ids()

    def toggle(self, drug_id: str) -> bool:
        """Add or remove ``drug_id``. Returns the new favorite state."""
        favorites = self.drug_ids()
        if drug_id in favorites:
            favorites = [item for item in favorites if item != drug_id]
            state = False
        else:
            favorites.append(drug_id)
            state = True
        self._write(favorites)
        return state


class ErrorReportLog(_JsonListKey):
    """Ring buffer of the most recent error reports."""

    def __init__(self, storage: LocalStorage, limit: int = GuideConfig.ERROR_LOG_LIMIT) -> None:
        super().__init__(storage, GuideConfig.KEY_ERRORS)
        self.limit = limit

    def record(self, error: BaseException, context: Optional[dict[str, Any]] = None) -> None:
        report = {
            "message": str(error),
            "type": type(error).__name__,
            "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            "timestamp": utc_now_iso(),
            **(context or {}),
        }
        entries = [*self._read(), report]
        self._write(entries[-self.limit :])

    def entries(self) -> list[dict[str, Any]]:
        return [item for item in self._read() if isinstance(item, dict)]

    def clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except StorageError as e:
            logger.warning(f"Failed to clear error reports: {e}")
