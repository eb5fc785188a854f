# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Configuration module for the Egyptian drug price guide."""

import os
from pathlib import Path
from typing import Final


class GuideConfig:
    """Configuration constants for the drug guide client."""

    # Remote store
    DEFAULT_REMOTE_URL: Final[str] = "https://dwalast-default-rtdb.firebaseio.com"
    REQUEST_TIMEOUT: Final[float] = 30.0
    FETCH_TIMEOUT: Final[float] = 15.0  # Primary drug-list fetch

    # Retry policy (primary list fetch only)
    FETCH_MAX_RETRIES: Final[int] = 2
    FETCH_RETRY_BASE_DELAY: Final[float] = 3.0  # 3s, 6s

    # Local storage
    DEFAULT_STORAGE_DIR: Final[Path] = Path("data/local")
    KEY_CACHE: Final[str] = "drugs_cache"
    KEY_MIRROR: Final[str] = "local_drugs_data"
    KEY_DEVICE_ID: Final[str] = "drug_app_device_id"
    KEY_AUTH: Final[str] = "admin_auth"
    KEY_FAVORITES: Final[str] = "favorite_drugs"
    KEY_ERRORS: Final[str] = "app_errors"

    # Lifetimes (seconds)
    CACHE_TTL: Final[float] = 5 * 60
    AUTH_TTL: Final[float] = 24 * 60 * 60

    # Local mirror
    MIRROR_VERSION: Final[str] = "1.0.0"
    ERROR_LOG_LIMIT: Final[int] = 10

    # Validation
    PLACEHOLDER_NAMES: Final[frozenset[str]] = frozenset({"aaa", "test", "تجربة"})
    BANNED_NAME_FRAGMENT: Final[str] = "illegal import"
    MIN_NAME_LENGTH: Final[int] = 2

    # Import
    IMPORT_ERROR_LIMIT: Final[int] = 10
    IMPORTED_BY: Final[str] = "admin"
    CSV_REQUIRED_HEADERS: Final[tuple[str, ...]] = ("name", "newPrice", "oldPrice")
    CSV_NUMERIC_FIELDS: Final[frozenset[str]] = frozenset(
        {"newPrice", "oldPrice", "averageDiscountPercent", "expiryWarning"}
    )
    CSV_BOOLEAN_FIELDS: Final[frozenset[str]] = frozenset({"isAvailable"})

    # Listing
    ITEMS_PER_PAGE: Final[int] = 16


def remote_url() -> str:
    """Return the remote store base URL, honouring DRUG_GUIDE_REMOTE_URL."""
    return os.getenv("DRUG_GUIDE_REMOTE_URL", GuideConfig.DEFAULT_REMOTE_URL).rstrip("/")


def storage_dir() -> Path:
    """Return the local storage directory, honouring DRUG_GUIDE_STORAGE_DIR."""
    value = os.getenv("DRUG_GUIDE_STORAGE_DIR")
    return Path(value) if value else GuideConfig.DEFAULT_STORAGE_DIR


def admin_credentials() -> tuple[str, str]:
    """Return the configured admin (email, password) pair."""
    return (
        os.getenv("DRUG_GUIDE_ADMIN_EMAIL", ""),
        os.getenv("DRUG_GUIDE_ADMIN_PASSWORD", ""),
    )
