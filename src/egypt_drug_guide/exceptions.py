# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Exception hierarchy for the drug guide client."""

from typing import Optional


class DrugGuideError(Exception):
    """Base class for all drug guide errors."""


class RemoteStoreError(DrugGuideError):
    """Raised when a call to the remote document store fails."""


class RemoteConnectionError(RemoteStoreError):
    """Raised when the remote store cannot be reached or returns an unreadable body."""


class RemoteTimeoutError(RemoteStoreError):
    """Raised when a remote call exceeds its timeout."""


class RemoteHTTPError(RemoteStoreError):
    """Raised when the remote store answers with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StorageError(DrugGuideError):
    """Raised when client-local storage cannot be read or written."""


class ImportFormatError(DrugGuideError):
    """Raised when an import file cannot be parsed."""


class CatalogLoadError(DrugGuideError):
    """Raised when the drug list cannot be loaded; carries the localized message."""
