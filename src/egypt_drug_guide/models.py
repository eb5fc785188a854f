# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Pydantic models for drugs, shortages, ratings and local snapshots."""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from egypt_drug_guide.config import GuideConfig

ShortageStatus = Literal["critical", "moderate", "resolved"]
RatingTarget = Literal["drug", "website"]


class WireModel(BaseModel):
    """
    Base model for records stored remotely or locally.

    Attributes are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump using wire (camelCase) names, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Drug(WireModel):
    """
    Normalized drug record as displayed in the price list.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Remote store key or generated identifier")
    name: str = Field(min_length=1)
    new_price: float = Field(ge=0)
    old_price: float = Field(ge=0)
    no: str = Field(description="Drug number, defaults to the id")
    update_date: str = ""
    price_change: float = Field(description="new_price - old_price")
    price_change_percent: float = Field(description="Percent change over old_price, 0 when old_price is 0")
    original_order: int = Field(default=0, description="Stable insertion index")
    active_ingredient: Optional[str] = None
    average_discount_percent: Optional[float] = None

    # Extended descriptive fields
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    dosage: Optional[str] = None
    side_effects: Optional[str] = None
    contraindications: Optional[str] = None
    interactions: Optional[str] = None
    storage_conditions: Optional[str] = None
    expiry_warning: Optional[float] = Field(default=None, description="Days before expiry")
    image_url: Optional[str] = None
    barcode: Optional[str] = None
    is_available: Optional[bool] = None
    pharmacy_notes: Optional[str] = None


class DrugValidation(BaseModel):
    """Outcome of checking one raw record: a normalized drug or a list of errors."""

    drug: Optional[Drug] = None
    errors: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.drug is not None and not self.errors


class LocalDrug(WireModel):
    """Drug entry as kept in the local mirror. Unknown fields are preserved."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = ""
    name: str = ""
    new_price: float = 0
    old_price: float = 0
    no: str = ""
    update_date: str = ""
    active_ingredient: Optional[str] = None
    average_discount_percent: Optional[float] = None


class LocalShortage(WireModel):
    """Shortage entry as kept in the local mirror."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = ""
    drug_name: str = ""
    reason: str = ""
    status: str = "moderate"
    report_date: str = ""
    last_update_date: str = ""


class MirrorSnapshot(WireModel):
    """Full local copy of drugs and shortages."""

    drugs: list[LocalDrug]
    shortages: list[LocalShortage] = Field(default_factory=list)
    last_updated: str = ""
    version: str = GuideConfig.MIRROR_VERSION


class MirrorStats(WireModel):
    total_drugs: int
    total_shortages: int
    last_updated: str
    version: str


class CacheSnapshot(WireModel):
    """Short-lived snapshot of the processed drug list."""

    drugs: list[Drug]
    last_updated: str = ""
    timestamp: float = Field(description="Epoch seconds at write time")


class Shortage(WireModel):
    """
    Reported drug shortage.

    ``drug_name`` is free text; shortages are not keyed to drug records.
    """

    id: Optional[str] = None
    drug_id: Optional[str] = Field(default=None, description="Generated report identifier, not a drug key")
    drug_name: str
    reason: str = ""
    status: ShortageStatus
    report_date: str = ""
    last_update_date: str = ""
    reported_by: Optional[str] = None


class RatingSubmission(WireModel):
    """Fields a user fills in when rating a drug or the website."""

    rating: int = Field(ge=1, le=5)
    comment: str = ""
    user_name: str
    governorate: str = ""
    is_pharmacist: bool = False
    pharmacy_name: Optional[str] = None
    profile_picture_url: Optional[str] = None


class Rating(RatingSubmission):
    """Stored rating with server-side stamps."""

    id: Optional[str] = None
    drug_id: Optional[str] = None
    timestamp: str
    device_id: str
    is_verified: bool = False


class StoredRating(WireModel):
    """
    Rating as read back from the store.

    Every field but ``id`` is optional and numbers are read as text where a
    string is expected, so partial or legacy records stay visible to admins.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    drug_id: Optional[str] = None
    rating: Optional[Union[int, float]] = None
    comment: Optional[str] = None
    user_name: Optional[str] = None
    governorate: Optional[str] = None
    is_pharmacist: Optional[bool] = None
    pharmacy_name: Optional[str] = None
    profile_picture_url: Optional[str] = None
    timestamp: Optional[str] = None
    device_id: Optional[str] = None
    is_verified: Optional[bool] = None


class ImportResult(WireModel):
    success: bool
    message: str
    imported_count: int = 0
    error_count: int = 0
    errors: list[str] = Field(default_factory=list)


class CSVValidation(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class CatalogResult(BaseModel):
    """Result of loading the drug list for display."""

    success: bool
    drugs: list[Drug] = Field(default_factory=list)
    last_updated: str = ""
    from_cache: bool = False
    critical_shortages: int = 0
    error: Optional[str] = None
    attempts: int = 1


class CommandResult(BaseModel):
    success: bool
    message: str
    data: Optional[dict[str, Any]] = None
