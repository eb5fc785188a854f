# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""File-backed key/value store used for everything persisted on the client."""

import os
import re
import shutil
from pathlib import Path
from typing import Final, Optional

from loguru import logger

from egypt_drug_guide.config import storage_dir
from egypt_drug_guide.exceptions import StorageError


class LocalStorage:
    """
    String values keyed by name, one file per key under a directory.

    Values are stored verbatim; callers own (de)serialization so that a corrupt
    value can be detected and purged by the layer that understands it.
    """

    SUFFIX: Final[str] = ".json"
    _KEY_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_.-]+$")

    def __init__(self, directory: Optional[Path] = None) -> None:
        self.directory = Path(directory) if directory is not None else storage_dir()

    def _path(self, key: str) -> Path:
        if not self._KEY_PATTERN.match(key) or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}{self.SUFFIX}"

    def get_item(self, key: str) -> Optional[str]:
        """
        Read the raw value stored under ``key``.

        Returns:
            The stored string, or None when the key does not exist.

        Raises:
            StorageError: If the file exists but cannot be read.
        """
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read storage key {key}: {e}")
            raise StorageError(f"Failed to read storage key {key}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        """
        Store ``value`` under ``key``, replacing any previous value.

        The write goes to a temporary file first and is renamed into place, so
        a failed write never leaves a truncated value behind.

        Raises:
            StorageError: If the value cannot be written (e.g. disk full).
        """
        path = self._path(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to write storage key {key}: {e}")
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write storage key {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        """Delete ``key``. Missing keys are ignored."""
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to remove storage key {key}: {e}")
            raise StorageError(f"Failed to remove storage key {key}: {e}") from e

    def keys(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{self.SUFFIX}"))

    def clear(self) -> None:
        """Remove every key by deleting the storage directory."""
        if not self.directory.exists():
            return
        try:
            shutil.rmtree(self.directory)
            logger.debug(f"Cleared local storage at {self.directory}")
        except OSError as e:
            logger.warning(f"Failed to clear local storage at {self.directory}: {e}")
