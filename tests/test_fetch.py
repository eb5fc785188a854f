# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Tests for loading the drug list."""

import threading
import time
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from egypt_drug_guide.catalog.fetch import DrugCatalog, paginate, process_drug_mapping, search_and_sort
from egypt_drug_guide.exceptions import (
    CatalogLoadError,
    DrugGuideError,
    RemoteConnectionError,
    RemoteHTTPError,
    RemoteTimeoutError,
)
from egypt_drug_guide.messages import Messages
from egypt_drug_guide.models import Drug
from egypt_drug_guide.storage.local_storage import LocalStorage
from egypt_drug_guide.storage.read_cache import ReadCache

DRUGS_DOC = {
    "10": {"name": "Brufen", "newPrice": "30", "oldPrice": "35"},
    "2": {"name": "Panadol", "newPrice": "15", "oldPrice": "12"},
    "3": {"name": "test", "newPrice": "1", "oldPrice": "1"},
    "updateDate": "١٩‏/١٠‏/٢٠٢٦",
}
SHORTAGES_DOC = {
    "-Na": {"drugName": "Insulin", "status": "critical", "reason": "import delay"},
    "-Nb": {"drugName": "Heparin", "status": "moderate"},
}


def _routes(**responses: Any) -> Callable[..., Any]:
    """Build a ``store.get`` side effect answering by path; exceptions are raised."""

    def get(path: str, *args: Any, **kwargs: Any) -> Any:
        value = responses.get(path)
        if isinstance(value, Exception):
            raise value
        return value

    return get


class TestProcessDrugMapping:
    def test_numeric_order_and_filtering(self) -> None:
        drugs, last_updated = process_drug_mapping(DRUGS_DOC)

        assert [d.name for d in drugs] == ["Panadol", "Brufen"]
        assert [d.original_order for d in drugs] == [0, 1]
        assert last_updated == "١٩‏/١٠‏/٢٠٢٦"

    def test_array_document(self) -> None:
        drugs, _ = process_drug_mapping([None, {"name": "Panadol", "newPrice": 15}])
        assert [d.id for d in drugs] == ["1"]

    def test_non_numeric_keys_ignored(self) -> None:
        drugs, _ = process_drug_mapping({"lastImport": "x", "nan": {"name": "Ghost", "newPrice": 1}})
        assert drugs == []

    def test_unusable_document_raises(self) -> None:
        with pytest.raises(CatalogLoadError) as exc_info:
            process_drug_mapping("text")
        assert isinstance(exc_info.value, DrugGuideError)
        assert str(exc_info.value) == Messages.NO_DRUG_DATA


class TestDrugCatalog:
    @pytest.fixture(name="sleep")
    def sleep(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture(name="catalog")
    def catalog(self, store: MagicMock, storage: LocalStorage, sleep: MagicMock) -> DrugCatalog:
        return DrugCatalog(store, ReadCache(storage), sleep=sleep)

    def test_success_refills_cache(self, catalog: DrugCatalog, store: MagicMock, storage: LocalStorage) -> None:
        store.get.side_effect = _routes(drugs=DRUGS_DOC, shortages=SHORTAGES_DOC)

        result = catalog.fetch_drugs_and_shortages()

        assert result.success
        assert not result.from_cache
        assert len(result.drugs) == 2
        assert result.critical_shortages == 1
        assert result.attempts == 1
        assert ReadCache(storage).get() is not None
        store.get.assert_any_call("drugs", timeout=15.0, no_cache=True)

    def test_cache_hit(self, catalog: DrugCatalog, store: MagicMock) -> None:
        store.get.side_effect = _routes(drugs=DRUGS_DOC, shortages=SHORTAGES_DOC)
        catalog.fetch_drugs_and_shortages()
        store.get.reset_mock()
        store.get.side_effect = _routes(shortages={})

        result = catalog.fetch_drugs_and_shortages()

        assert result.success
        assert result.from_cache
        assert [d.name for d in result.drugs] == ["Panadol", "Brufen"]
        # Last known count; the refresh runs after the result is returned
        assert result.critical_shortages == 1
        assert catalog.shortage_refresh is not None
        catalog.shortage_refresh.join(timeout=5)
        store.get.assert_called_once_with("shortages", timeout=15.0)
        assert catalog.critical_shortages == 0

    def test_cache_hit_does_not_wait_for_shortages(self, catalog: DrugCatalog, store: MagicMock) -> None:
        store.get.side_effect = _routes(drugs=DRUGS_DOC, shortages=SHORTAGES_DOC)
        catalog.fetch_drugs_and_shortages()
        release = threading.Event()

        def slow_shortages(path: str, *args: Any, **kwargs: Any) -> Any:
            release.wait(5)
            return {}

        store.get.side_effect = slow_shortages
        try:
            result = catalog.fetch_drugs_and_shortages()
            assert result.from_cache
            assert catalog.shortage_refresh is not None
            assert catalog.shortage_refresh.is_alive()
        finally:
            release.set()
        catalog.shortage_refresh.join(timeout=5)

    def test_cache_hit_tolerates_shortage_failure(self, catalog: DrugCatalog, store: MagicMock) -> None:
        store.get.side_effect = _routes(drugs=DRUGS_DOC, shortages=SHORTAGES_DOC)
        catalog.fetch_drugs_and_shortages()
        store.get.side_effect = RemoteConnectionError("down")

        result = catalog.fetch_drugs_and_shortages()
        assert result.success
        assert catalog.shortage_refresh is not None
        catalog.shortage_refresh.join(timeout=5)
        assert catalog.critical_shortages == 0

    def test_force_refresh_skips_cache(self, catalog: DrugCatalog, store: MagicMock) -> None:
        store.get.side_effect = _routes(drugs=DRUGS_DOC, shortages=SHORTAGES_DOC)
        catalog.fetch_drugs_and_shortages()

        result = catalog.fetch_drugs_and_shortages(force_refresh=True)
        assert not result.from_cache

    def test_shortage_failure_is_tolerated(self, catalog: DrugCatalog, store: MagicMock) -> None:
        store.get.side_effect = _routes(drugs=DRUGS_DOC, shortages=RemoteTimeoutError("slow"))

        result = catalog.fetch_drugs_and_shortages()

        assert result.success
        assert result.critical_shortages == 0

    def test_retries_with_backoff(self, catalog: DrugCatalog, store: MagicMock, sleep: MagicMock) -> None:
        store.get.side_effect = _routes(drugs=RemoteTimeoutError("slow"), shortages={})

        result = catalog.fetch_drugs_and_shortages()

        assert not result.success
        assert result.error == Messages.TIMEOUT
        assert result.attempts == 3
        assert [c.args[0] for c in sleep.call_args_list] == [3.0, 6.0]

    def test_overall_deadline(self, store: MagicMock, storage: LocalStorage) -> None:
        """A response that never completes is abandoned at the deadline."""
        release = threading.Event()

        def trickle(path: str, *args: Any, **kwargs: Any) -> Any:
            release.wait(5)
            return DRUGS_DOC if path == "drugs" else {}

        store.get.side_effect = trickle
        catalog = DrugCatalog(store, ReadCache(storage), sleep=MagicMock(), timeout=0.1, max_retries=0)
        try:
            started = time.monotonic()
            result = catalog.fetch_drugs_and_shortages()
            elapsed = time.monotonic() - started
        finally:
            release.set()

        assert not result.success
        assert result.error == Messages.TIMEOUT
        assert elapsed < 2

    def test_retry_recovers(self, catalog: DrugCatalog, store: MagicMock, sleep: MagicMock) -> None:
        calls = {"drugs": 0}

        def get(path: str, *args: Any, **kwargs: Any) -> Any:
            if path == "drugs":
                calls["drugs"] += 1
                if calls["drugs"] == 1:
                    raise RemoteHTTPError("HTTP 503", status_code=503)
                return DRUGS_DOC
            return {}

        store.get.side_effect = get
        result = catalog.fetch_drugs_and_shortages()

        assert result.success
        assert result.attempts == 2
        sleep.assert_called_once_with(3.0)

    def test_offline_does_not_retry(self, store: MagicMock, storage: LocalStorage, sleep: MagicMock) -> None:
        catalog = DrugCatalog(store, ReadCache(storage), is_online=lambda: False, sleep=sleep)

        result = catalog.fetch_drugs_and_shortages()

        assert not result.success
        assert result.error == Messages.OFFLINE_CHECK
        assert result.attempts == 1
        sleep.assert_not_called()
        store.get.assert_not_called()

    @pytest.mark.parametrize(
        "status, message",
        [
            (404, Messages.NOT_FOUND),
            (500, Messages.SERVER_ERROR),
            (503, Messages.SERVER_ERROR),
            (403, Messages.LOAD_ERROR.format(status=403)),
        ],
    )
    def test_http_errors_are_classified(
        self, store: MagicMock, storage: LocalStorage, status: int, message: str
    ) -> None:
        catalog = DrugCatalog(store, ReadCache(storage), sleep=MagicMock(), max_retries=0)
        store.get.side_effect = _routes(drugs=RemoteHTTPError("x", status_code=status), shortages={})

        result = catalog.fetch_drugs_and_shortages()
        assert result.error == message

    @pytest.mark.parametrize(
        "document, message",
        [
            (None, Messages.NO_DRUG_DATA),
            ("text", Messages.NO_DRUG_DATA),
            ({}, Messages.NO_VALID_DATA),
            ({"1": {"name": "aaa", "newPrice": "5"}}, Messages.NO_VALID_DATA),
        ],
    )
    def test_no_usable_data(self, store: MagicMock, storage: LocalStorage, document: Any, message: str) -> None:
        catalog = DrugCatalog(store, ReadCache(storage), sleep=MagicMock(), max_retries=0)
        store.get.side_effect = _routes(drugs=document, shortages=None)

        result = catalog.fetch_drugs_and_shortages()
        assert not result.success
        assert result.error == message


def _drug(drug_id: str, name: str, new: float, old: float, order: int) -> Drug:
    change = new - old
    return Drug(
        id=drug_id,
        name=name,
        new_price=new,
        old_price=old,
        no=drug_id,
        price_change=change,
        price_change_percent=round(change / old * 100, 2),
        original_order=order,
    )


class TestSearchAndSort:
    @pytest.fixture(name="drugs")
    def drugs(self) -> list[Drug]:
        return [
            _drug("1", "panadol", 15, 12, 0),
            _drug("2", "Augmentin", 90, 100, 1),
            _drug("33", "Brufen", 40, 20, 2),
        ]

    def test_filter_by_name_or_number(self, drugs: list[Drug]) -> None:
        assert [d.id for d in search_and_sort(drugs, "PANA")] == ["1"]
        assert [d.id for d in search_and_sort(drugs, "33")] == ["33"]

    def test_sort_orders(self, drugs: list[Drug]) -> None:
        assert [d.name for d in search_and_sort(drugs, sort_by="name")] == ["Augmentin", "Brufen", "panadol"]
        assert [d.id for d in search_and_sort(drugs, sort_by="price")] == ["1", "33", "2"]
        assert [d.id for d in search_and_sort(drugs, sort_by="change")] == ["33", "1", "2"]
        assert [d.id for d in search_and_sort(list(reversed(drugs)))] == ["1", "2", "33"]

    def test_paginate(self, drugs: list[Drug]) -> None:
        assert [d.id for d in paginate(drugs, 2, per_page=2)] == ["33"]
        assert [d.id for d in paginate(drugs, 0, per_page=2)] == ["1", "2"]
        assert paginate(drugs, 5, per_page=2) == []
