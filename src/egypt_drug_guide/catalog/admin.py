# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Admin maintenance of individual drug records and full backups."""

import uuid
from typing import Any, Optional

from loguru import logger

from egypt_drug_guide.catalog.fetch import is_numeric_key
from egypt_drug_guide.catalog.validation import safe_price
from egypt_drug_guide.exceptions import RemoteStoreError
from egypt_drug_guide.models import LocalDrug
from egypt_drug_guide.pages import PageContentService
from egypt_drug_guide.ratings import RatingService
from egypt_drug_guide.remote import RemoteStore, as_mapping
from egypt_drug_guide.storage.mirror import LocalMirror
from egypt_drug_guide.storage.read_cache import ReadCache
from egypt_drug_guide.utils.dates import localized_date, utc_now_iso


class DrugAdmin:
    """
    Single-record writes against the remote ``drugs`` document.

    Writes go straight to the store without retry. Successful writes that
    change the listed drugs clear the read cache so the next load sees them.
    """

    def __init__(self, store: RemoteStore, cache: ReadCache) -> None:
        self.store = store
        self.cache = cache

    def list_drugs(self) -> list[LocalDrug]:
        """
        List every numeric-keyed record for editing, sorted by id.

        Parsing is lenient: no validity filter, unparseable prices read as 0.

        Raises:
            RemoteStoreError: If the store cannot be read.
        """
        data = as_mapping(self.store.get("drugs"))
        drugs = []
        for key, raw in data.items():
            if not is_numeric_key(key) or not isinstance(raw, dict):
                continue
            discount = raw.get("averageDiscountPercent")
            drugs.append(
                LocalDrug(
                    id=key,
                    name=str(raw.get("name") or ""),
                    new_price=safe_price(raw.get("newPrice")),
                    old_price=safe_price(raw.get("oldPrice")),
                    no=str(raw.get("no") or key),
                    update_date=str(raw.get("updateDate") or ""),
                    active_ingredient=str(raw.get("activeIngredient") or ""),
                    average_discount_percent=safe_price(discount) if discount else None,
                )
            )
        return sorted(drugs, key=lambda drug: float(drug.id))

    def next_id(self) -> str:
        """One past the largest numeric key currently in the store."""
        ids = [float(drug.id) for drug in self.list_drugs()]
        return str(int(max(ids, default=0)) + 1)

    def save_drug(self, data: dict[str, Any], drug_id: Optional[str] = None) -> bool:
        """
        Create or overwrite ``drugs/{drug_id}``.

        Without ``drug_id`` the next numeric id is used. The record and the
        document-level ``updateDate`` are stamped with today's localized date.
        """
        try:
            target = drug_id or self.next_id()
            today = localized_date()
            record = {**data, "updateDate": today}
            if not record.get("activeIngredient"):
                record.pop("activeIngredient", None)
            discount = record.get("averageDiscountPercent")
            if discount:
                record["averageDiscountPercent"] = safe_price(discount)
            else:
                record.pop("averageDiscountPercent", None)

            self.store.put(f"drugs/{target}", record)
            self.store.put("drugs/updateDate", today)
        except RemoteStoreError as e:
            logger.error(f"Error saving drug: {e}")
            return False

        self.cache.clear()
        logger.info(f"Saved drug {target}")
        return True

    def delete_drug(self, drug_id: str) -> bool:
        try:
            self.store.delete(f"drugs/{drug_id}")
        except RemoteStoreError as e:
            logger.error(f"Error deleting drug: {e}")
            return False
        self.cache.clear()
        return True

    def update_drug_info(self, drug_id: str, updates: dict[str, Any]) -> bool:
        """Patch selected fields of one drug, stamping ``lastModified``."""
        try:
            self.store.patch(f"drugs/{drug_id}", {**updates, "lastModified": utc_now_iso()})
            return True
        except RemoteStoreError as e:
            logger.error(f"Error updating drug: {e}")
            return False

    def add_drug(self, data: dict[str, Any]) -> Optional[str]:
        """
        Append a drug under a store-generated key.

        Returns:
            The generated key, or None on failure.
        """
        now = utc_now_iso()
        record = {**data, "id": str(uuid.uuid4()), "createdAt": now, "lastModified": now}
        try:
            return self.store.post("drugs", record)
        except RemoteStoreError as e:
            logger.error(f"Error adding drug: {e}")
            return None


def build_full_backup(
    mirror: LocalMirror,
    pages: PageContentService,
    ratings: RatingService,
) -> Optional[dict[str, Any]]:
    """
    Combine the local mirror export with page content and every rating.

    Returns:
        The backup document, or None when the mirror holds no data.
    """
    exported = mirror.export_data()
    if exported is None:
        logger.warning("No local data available for backup")
        return None

    product_ratings = [r.to_wire() for r in ratings.get_all_product_ratings_for_admin()]
    website_ratings = [r.to_wire() for r in ratings.get_website_ratings()]
    return {
        **exported,
        "aboutContent": pages.get_page_content("about"),
        "contactContent": pages.get_page_content("contact"),
        "ratings": {
            "productRatings": product_ratings,
            "websiteRatings": website_ratings,
        },
        "backupDate": utc_now_iso(),
        "totalProductRatings": len(product_ratings),
        "totalWebsiteRatings": len(website_ratings),
    }
