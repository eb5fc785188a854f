# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Product and website ratings with one-rating-per-device deduplication."""

import uuid
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.exceptions import RemoteStoreError, StorageError
from egypt_drug_guide.models import Rating, RatingSubmission, RatingTarget, StoredRating
from egypt_drug_guide.remote import RemoteStore, as_mapping
from egypt_drug_guide.storage.local_storage import LocalStorage
from egypt_drug_guide.utils.dates import utc_now_iso

WEBSITE_RATINGS = "website_ratings"


def _collection(target: RatingTarget, item_id: Optional[str]) -> str:
    if target == "drug":
        return f"drugs/{item_id}/ratings"
    return WEBSITE_RATINGS


def _stored_rating(record: dict[str, Any]) -> StoredRating:
    try:
        return StoredRating.model_validate(record)
    except ValidationError as e:
        invalid = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
        logger.warning(f"Rating {record['id']} has invalid fields {sorted(invalid)}; reading without them")
        return StoredRating.model_validate({k: v for k, v in record.items() if k not in invalid})


def _flatten(data: Any, drug_id: Optional[str] = None) -> list[StoredRating]:
    ratings = []
    for key, value in as_mapping(data).items():
        if not isinstance(value, dict):
            continue
        record = {**value, "id": str(key)}
        if drug_id is not None:
            record["drugId"] = drug_id
        ratings.append(_stored_rating(record))
    return ratings


class RatingService:
    """
    Ratings for drugs and for the website.

    A device may rate each item once: the device identifier is generated on
    first use, kept in local storage, and stored with every rating so the
    store can be queried for an existing submission.
    """

    def __init__(self, store: RemoteStore, storage: LocalStorage) -> None:
        self.store = store
        self.storage = storage
        self._device_id: Optional[str] = None

    def get_device_id(self) -> str:
        """Return this client's identifier, creating and persisting it on first call."""
        if self._device_id:
            return self._device_id
        try:
            device_id = self.storage.get_item(GuideConfig.KEY_DEVICE_ID)
        except StorageError:
            device_id = None
        if not device_id:
            device_id = str(uuid.uuid4())
            try:
                self.storage.set_item(GuideConfig.KEY_DEVICE_ID, device_id)
            except StorageError as e:
                logger.warning(f"Device id could not be persisted: {e}")
        self._device_id = device_id.strip()
        return self._device_id

    def has_user_rated(self, item_id: Optional[str], target: RatingTarget) -> bool:
        """
        Check whether this device already rated the item.

        Any failure answers False so the user can still submit.
        """
        device_id = self.get_device_id()
        params = {"orderBy": '"deviceId"', "equalTo": f'"{device_id}"'}
        try:
            data = self.store.get(_collection(target, item_id), params=params)
        except RemoteStoreError as e:
            logger.error(f"Error checking existing rating: {e}")
            return False
        return len(as_mapping(data)) > 0

    def _submit(self, path: str, submission: RatingSubmission) -> bool:
        rating = Rating(
            **submission.model_dump(),
            timestamp=utc_now_iso(),
            device_id=self.get_device_id(),
            is_verified=False,
        )
        try:
            self.store.post(path, rating.to_wire())
            return True
        except RemoteStoreError as e:
            logger.error(f"Error adding rating to {path}: {e}")
            return False

    def add_product_rating(self, drug_id: str, submission: RatingSubmission) -> bool:
        return self._submit(_collection("drug", drug_id), submission)

    def add_website_rating(self, submission: RatingSubmission) -> bool:
        return self._submit(WEBSITE_RATINGS, submission)

    def get_product_ratings(self, drug_id: str) -> list[StoredRating]:
        try:
            return _flatten(self.store.get(_collection("drug", drug_id)), drug_id=drug_id)
        except RemoteStoreError as e:
            logger.error(f"Error getting product ratings: {e}")
            return []

    def get_website_ratings(self) -> list[StoredRating]:
        try:
            return _flatten(self.store.get(WEBSITE_RATINGS))
        except RemoteStoreError as e:
            logger.error(f"Error getting website ratings: {e}")
            return []

    def get_all_product_ratings_for_admin(self) -> list[StoredRating]:
        """Collect the ratings nested under every drug."""
        try:
            drugs = as_mapping(self.store.get("drugs"))
        except RemoteStoreError as e:
            logger.error(f"Error getting all product ratings for admin: {e}")
            return []

        ratings: list[StoredRating] = []
        for drug_id, drug in drugs.items():
            if isinstance(drug, dict) and drug.get("ratings"):
                ratings.extend(_flatten(drug["ratings"], drug_id=drug_id))
        return ratings

    def update_rating(
        self,
        target: RatingTarget,
        item_id: Optional[str],
        rating_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Patch one rating, e.g. ``{"isVerified": True}``."""
        if target == "drug" and not item_id:
            logger.error("Invalid parameters for update_rating")
            return False
        try:
            self.store.patch(f"{_collection(target, item_id)}/{rating_id}", updates)
            return True
        except RemoteStoreError as e:
            logger.error(f"Error updating {target} rating: {e}")
            return False

    def delete_rating(self, target: RatingTarget, item_id: Optional[str], rating_id: str) -> bool:
        if target == "drug" and not item_id:
            logger.error("Invalid parameters for delete_rating")
            return False
        try:
            self.store.delete(f"{_collection(target, item_id)}/{rating_id}")
            return True
        except RemoteStoreError as e:
            logger.error(f"Error deleting {target} rating: {e}")
            return False
