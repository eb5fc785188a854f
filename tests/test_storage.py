# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Tests for local storage and the read cache."""

from pathlib import Path
from unittest.mock import patch

import pytest

from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.exceptions import StorageError
from egypt_drug_guide.models import Drug
from egypt_drug_guide.storage.local_storage import LocalStorage
from egypt_drug_guide.storage.read_cache import ReadCache


def _drug(drug_id: str = "1", name: str = "Panadol") -> Drug:
    return Drug(
        id=drug_id,
        name=name,
        new_price=15.0,
        old_price=12.0,
        no=drug_id,
        price_change=3.0,
        price_change_percent=25.0,
    )


class TestLocalStorage:
    def test_set_get_remove(self, storage: LocalStorage) -> None:
        assert storage.get_item("missing") is None

        storage.set_item("favorite_drugs", '["1"]')
        assert storage.get_item("favorite_drugs") == '["1"]'
        assert storage.keys() == ["favorite_drugs"]

        storage.remove_item("favorite_drugs")
        assert storage.get_item("favorite_drugs") is None
        # Removing twice is fine
        storage.remove_item("favorite_drugs")

    def test_overwrite_leaves_no_temp_file(self, storage: LocalStorage) -> None:
        storage.set_item("k", "one")
        storage.set_item("k", "two")
        assert storage.get_item("k") == "two"
        assert sorted(p.name for p in storage.directory.iterdir()) == ["k.json"]

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden"])
    def test_invalid_keys_rejected(self, storage: LocalStorage, key: str) -> None:
        with pytest.raises(StorageError, match="Invalid storage key"):
            storage.set_item(key, "x")

    def test_write_failure_raises_storage_error(self, storage: LocalStorage) -> None:
        with patch("egypt_drug_guide.storage.local_storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError, match="disk full"):
                storage.set_item("k", "value")
        assert storage.get_item("k") is None

    def test_clear(self, storage: LocalStorage) -> None:
        storage.set_item("a", "1")
        storage.set_item("b", "2")
        storage.clear()
        assert storage.keys() == []

    def test_default_directory_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("DRUG_GUIDE_STORAGE_DIR", str(tmp_path / "env"))
        assert LocalStorage().directory == tmp_path / "env"


class TestReadCache:
    """Expiry is evaluated on read against an injected clock."""

    def test_fresh_snapshot_is_served(self, storage: LocalStorage) -> None:
        now = [1000.0]
        cache = ReadCache(storage, clock=lambda: now[0])
        cache.set([_drug()], "١٩‏/١٠‏/٢٠٢٦")

        now[0] += GuideConfig.CACHE_TTL - 1
        snapshot = cache.get()

        assert snapshot is not None
        assert snapshot.drugs[0].name == "Panadol"
        assert snapshot.drugs[0].price_change_percent == 25.0
        assert snapshot.last_updated == "١٩‏/١٠‏/٢٠٢٦"

    def test_expired_snapshot_is_purged(self, storage: LocalStorage) -> None:
        now = [1000.0]
        cache = ReadCache(storage, clock=lambda: now[0])
        cache.set([_drug()], "")

        now[0] += GuideConfig.CACHE_TTL
        assert cache.get() is None
        assert storage.get_item(GuideConfig.KEY_CACHE) is None

    def test_corrupt_snapshot_is_purged(self, storage: LocalStorage) -> None:
        storage.set_item(GuideConfig.KEY_CACHE, "{not json")
        cache = ReadCache(storage)

        assert cache.get() is None
        assert storage.get_item(GuideConfig.KEY_CACHE) is None

    def test_set_replaces_previous(self, storage: LocalStorage) -> None:
        cache = ReadCache(storage)
        cache.set([_drug("1")], "a")
        cache.set([_drug("2", "Brufen")], "b")

        snapshot = cache.get()
        assert snapshot is not None
        assert [d.name for d in snapshot.drugs] == ["Brufen"]

    def test_set_swallows_storage_errors(self, storage: LocalStorage) -> None:
        cache = ReadCache(storage)
        with patch.object(storage, "set_item", side_effect=StorageError("quota")):
            cache.set([_drug()], "")
        assert cache.get() is None

    def test_clear(self, storage: LocalStorage) -> None:
        cache = ReadCache(storage)
        cache.set([_drug()], "")
        cache.clear()
        assert cache.get() is None
