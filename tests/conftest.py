# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Shared fixtures."""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Keep test runs from writing the JSON log file.
os.environ.setdefault("DRUG_GUIDE_LOG_FILE", "0")

from egypt_drug_guide.remote import RemoteStore  # noqa: E402
from egypt_drug_guide.storage.local_storage import LocalStorage  # noqa: E402
from egypt_drug_guide.storage.mirror import LocalMirror  # noqa: E402


@pytest.fixture(name="storage")
def storage(tmp_path: Path) -> LocalStorage:
    """Local storage rooted in a temporary directory."""
    return LocalStorage(tmp_path / "local")


@pytest.fixture(name="store")
def store() -> MagicMock:
    """Remote store double."""
    return MagicMock(spec=RemoteStore)


@pytest.fixture(name="mirror")
def mirror(storage: LocalStorage) -> LocalMirror:
    return LocalMirror(storage)
