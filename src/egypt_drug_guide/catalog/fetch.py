# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Loading the drug price list: cache fast path, remote slow path with retry."""

import math
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Literal, Optional

from loguru import logger

from egypt_drug_guide.catalog.validation import is_valid_drug, normalize_drug
from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.exceptions import CatalogLoadError, RemoteHTTPError, RemoteStoreError, RemoteTimeoutError
from egypt_drug_guide.messages import Messages
from egypt_drug_guide.models import CatalogResult, Drug
from egypt_drug_guide.remote import RemoteStore, as_mapping
from egypt_drug_guide.shortages import count_critical, parse_shortages
from egypt_drug_guide.storage.read_cache import ReadCache

SortKey = Literal["original", "name", "price", "change"]


def process_drug_mapping(data: Any) -> tuple[list[Drug], str]:
    """
    Turn the raw ``drugs`` document into the ordered display list.

    Only numeric keys are records; they are visited in numeric order and each
    accepted record gets the next ``original_order``. Invalid records are
    skipped silently.

    Returns:
        The drugs and the global ``updateDate`` marker of the document.
    """
    if isinstance(data, list):
        data = as_mapping(data)
    if not isinstance(data, dict):
        raise CatalogLoadError(Messages.NO_DRUG_DATA)

    last_updated = data.get("updateDate") or ""
    if not isinstance(last_updated, str):
        last_updated = str(last_updated)

    numeric_keys = sorted((key for key in data if is_numeric_key(key)), key=float)
    drugs: list[Drug] = []
    for key in numeric_keys:
        raw = data[key]
        if not is_valid_drug(raw):
            continue
        try:
            drugs.append(normalize_drug(raw, key, len(drugs)))
        except (ValueError, TypeError) as e:
            logger.debug(f"Skipping drug {key}: {e}")
            continue
    return drugs, last_updated


def is_numeric_key(key: str) -> bool:
    try:
        value = float(key)
    except ValueError:
        return False
    return math.isfinite(value)


class DrugCatalog:
    """
    Read side of the price list.

    ``fetch_drugs_and_shortages`` serves from the read cache when it is fresh;
    otherwise it loads drugs and shortages concurrently from the store, retries
    the load a bounded number of times, and refills the cache on success.

    Each store load has an overall deadline of ``timeout`` seconds. A request
    still running at the deadline is abandoned, not interrupted: its worker
    thread ends when the transport's own timeout fires and the result is
    discarded.

    A cache hit reports the last known critical shortage count and refreshes
    it on a background thread (``shortage_refresh``).
    """

    def __init__(
        self,
        store: RemoteStore,
        cache: ReadCache,
        is_online: Callable[[], bool] = lambda: True,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        timeout: float = GuideConfig.FETCH_TIMEOUT,
        max_retries: int = GuideConfig.FETCH_MAX_RETRIES,
        retry_delay: float = GuideConfig.FETCH_RETRY_BASE_DELAY,
    ) -> None:
        self.store = store
        self.cache = cache
        self.is_online = is_online
        self.sleep = sleep
        self.clock = clock
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.critical_shortages = 0
        self.shortage_refresh: Optional[threading.Thread] = None

    def fetch_drugs_and_shortages(self, force_refresh: bool = False) -> CatalogResult:
        """
        Load the drug list for display.

        Args:
            force_refresh: Skip the cache and go to the store.

        Returns:
            A CatalogResult. Failures are reported through ``success`` and a
            localized ``error``; this method does not raise.
        """
        if not force_refresh:
            cached = self.cache.get()
            if cached is not None:
                logger.debug(f"Serving {len(cached.drugs)} drugs from cache")
                return CatalogResult(
                    success=True,
                    drugs=cached.drugs,
                    last_updated=cached.last_updated,
                    from_cache=True,
                    critical_shortages=self.critical_shortages,
                )
                self._refresh_in_background()

        attempt = 0
        while True:
            attempt += 1
            try:
                result = self._load_from_store()
                result.attempts = attempt
                return result
            except CatalogLoadError as e:
                message = str(e)

            online = self.is_online()
            if not online:
                message = Messages.OFFLINE_CHECK
            if attempt > self.max_retries or not online:
                logger.error(f"Drug list load failed after {attempt} attempt(s): {message}")
                return CatalogResult(success=False, error=message, attempts=attempt)

            delay = self.retry_delay * attempt
            logger.warning(f"Drug list load failed ({message}). Retrying in {delay:.0f}s...")
            self.sleep(delay)

    def refresh_critical_count(self) -> int:
        """Best-effort count of critical shortages. Failures count as zero and are not retried."""
        try:
            count = count_critical(parse_shortages(self.store.get("shortages", timeout=self.timeout)))
        except RemoteStoreError as e:
            logger.debug(f"Background shortage refresh failed: {e}")
            count = 0
        self.critical_shortages = count
        return count

    def _refresh_in_background(self) -> None:
        if self.shortage_refresh is not None and self.shortage_refresh.is_alive():
            return
        self.shortage_refresh = threading.Thread(
            target=self.refresh_critical_count, name="shortage-refresh", daemon=True
        )
        self.shortage_refresh.start()

    def _load_from_store(self) -> CatalogResult:
        if not self.is_online():
            raise CatalogLoadError(Messages.OFFLINE)

        deadline = self.clock() + self.timeout
        pool = ThreadPoolExecutor(max_workers=2)
        try:
            drugs_future = pool.submit(self.store.get, "drugs", timeout=self.timeout, no_cache=True)
            shortages_future = pool.submit(self.store.get, "shortages", timeout=self.timeout, no_cache=True)

            try:
                drugs_data = drugs_future.result(timeout=max(deadline - self.clock(), 0))
            except (FutureTimeoutError, RemoteTimeoutError) as e:
                raise CatalogLoadError(Messages.TIMEOUT) from e
            except RemoteHTTPError as e:
                raise CatalogLoadError(_status_message(e.status_code)) from e
            except RemoteStoreError as e:
                raise CatalogLoadError(Messages.LOAD_FAILED) from e

            try:
                shortages_data: Optional[Any] = shortages_future.result(timeout=max(deadline - self.clock(), 0))
            except (FutureTimeoutError, RemoteStoreError) as e:
                logger.warning(f"Shortage fetch failed, continuing without shortage data: {e!r}")
                shortages_data = None
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        if drugs_data is None or not isinstance(drugs_data, (dict, list)):
            raise CatalogLoadError(Messages.NO_DRUG_DATA)

        drugs, last_updated = process_drug_mapping(drugs_data)
        if not drugs:
            raise CatalogLoadError(Messages.NO_VALID_DATA)

        critical = count_critical(parse_shortages(shortages_data)) if shortages_data else 0
        self.critical_shortages = critical
        self.cache.set(drugs, last_updated)
        logger.info(f"Loaded {len(drugs)} drugs from the store")

        return CatalogResult(
            success=True,
            drugs=drugs,
            last_updated=last_updated,
            critical_shortages=critical,
        )


def _status_message(status: Optional[int]) -> str:
    if status == 404:
        return Messages.NOT_FOUND
    if status is not None and status >= 500:
        return Messages.SERVER_ERROR
    return Messages.LOAD_ERROR.format(status=status)


def search_and_sort(drugs: Sequence[Drug], term: str = "", sort_by: SortKey = "original") -> list[Drug]:
    """
    Filter by name or drug number (case-insensitive substring) and sort.

    ``change`` sorts by absolute percent change, largest first.
    """
    filtered = list(drugs)
    if term:
        needle = term.lower()
        filtered = [d for d in filtered if needle in d.name.lower() or needle in d.no.lower()]

    if sort_by == "price":
        return sorted(filtered, key=lambda d: d.new_price)
    if sort_by == "change":
        return sorted(filtered, key=lambda d: abs(d.price_change_percent), reverse=True)
    if sort_by == "name":
        return sorted(filtered, key=lambda d: d.name.casefold())
    return sorted(filtered, key=lambda d: d.original_order)


def paginate(drugs: Sequence[Drug], page: int, per_page: int = GuideConfig.ITEMS_PER_PAGE) -> list[Drug]:
    """Return the 1-based ``page`` of ``drugs``."""
    start = (max(page, 1) - 1) * per_page
    return list(drugs[start : start + per_page])
