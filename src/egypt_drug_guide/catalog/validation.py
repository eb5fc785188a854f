# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Validation and normalization of raw drug records."""

import math
from typing import Any, Literal, Optional

from pydantic import ValidationError

from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.messages import Messages
from egypt_drug_guide.models import Drug, DrugValidation

PriceTrend = Literal["increase", "decrease", "unchanged"]

_EXTENDED_FIELDS = (
    "manufacturer",
    "category",
    "description",
    "dosage",
    "sideEffects",
    "contraindications",
    "interactions",
    "storageConditions",
    "imageUrl",
    "barcode",
    "pharmacyNotes",
)


def parse_price(value: Any, decimal_comma: bool = True) -> float:
    """
    Parse a price the way the store's data entry produces them.

    Falsy values count as 0 and, unless ``decimal_comma`` is False, a comma is
    accepted as the decimal separator. Leading numeric text is used when
    trailing characters follow (``"12.5 EGP"``).

    Returns:
        The parsed number, or NaN when no leading number can be read.
    """
    if isinstance(value, bool):
        return math.nan if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value or "0").strip()
    if decimal_comma:
        text = text.replace(",", ".", 1)
    end = 0
    seen_digit = seen_dot = False
    for i, ch in enumerate(text):
        if ch.isdigit():
            seen_digit = True
            end = i + 1
        elif ch == "." and not seen_dot:
            seen_dot = True
        elif ch in "+-" and i == 0:
            continue
        else:
            break
    if not seen_digit:
        return math.nan
    return float(text[:end])


def safe_price(value: Any) -> float:
    price = parse_price(value)
    return 0.0 if math.isnan(price) else price


def price_change(new_price: float, old_price: float) -> tuple[float, float]:
    """
    Compute absolute and percent change from ``old_price`` to ``new_price``.

    The percent is rounded to two decimals and is 0 when ``old_price`` is 0.
    """
    change = new_price - old_price
    percent = (change / old_price) * 100 if old_price > 0 else 0.0
    return change, round(percent, 2)


def price_trend(drug: Drug) -> PriceTrend:
    if drug.price_change > 0:
        return "increase"
    if drug.price_change < 0:
        return "decrease"
    return "unchanged"


def is_valid_drug(raw: Any) -> bool:
    """
    Decide whether a raw record may be listed.

    The name must be a real name (at least two characters, not a placeholder or
    test value) and at least one price must be positive with neither unparseable.
    """
    return not _drug_errors(raw)


def _drug_errors(raw: Any) -> list[str]:
    if not isinstance(raw, dict):
        return ["record is not an object"]
    name = raw.get("name")
    if not name or not isinstance(name, str):
        return ["name: missing"]

    errors = []
    lowered = name.strip().lower()
    if (
        lowered in GuideConfig.PLACEHOLDER_NAMES
        or GuideConfig.BANNED_NAME_FRAGMENT in lowered
        or len(lowered) < GuideConfig.MIN_NAME_LENGTH
    ):
        errors.append(f"name: rejected value {name!r}")

    new_price = parse_price(raw.get("newPrice"))
    old_price = parse_price(raw.get("oldPrice"))
    if math.isnan(new_price) or math.isnan(old_price):
        errors.append("price: not a number")
    elif not (new_price > 0 or old_price > 0):
        errors.append("price: newPrice or oldPrice must be positive")
    return errors


def normalize_drug(raw: dict[str, Any], key: str, index: int) -> Drug:
    """
    Build the display record for a raw entry that passed ``is_valid_drug``.

    A missing price is backfilled from the other one.

    Args:
        raw: Raw record from the store.
        key: Store key, used as ``id`` and as the fallback drug number.
        index: Position among accepted records.
    """
    new_price = safe_price(raw.get("newPrice"))
    old_price = safe_price(raw.get("oldPrice"))
    final_new = new_price if new_price > 0 else old_price
    final_old = old_price if old_price > 0 else new_price
    change, percent = price_change(final_new, final_old)

    number = raw.get("no")
    discount = raw.get("averageDiscountPercent")
    extended = {field: raw[field] for field in _EXTENDED_FIELDS if isinstance(raw.get(field), str) and raw[field]}

    return Drug.model_validate(
        {
            "id": key,
            "name": raw["name"].strip(),
            "newPrice": final_new,
            "oldPrice": final_old,
            "no": str(number) if number not in (None, "") else key,
            "updateDate": str(raw.get("updateDate") or ""),
            "priceChange": change,
            "priceChangePercent": percent,
            "originalOrder": index,
            "activeIngredient": str(raw["activeIngredient"]) if raw.get("activeIngredient") else None,
            "averageDiscountPercent": _optional_number(discount) if discount else None,
            "expiryWarning": _optional_number(raw.get("expiryWarning")),
            "isAvailable": raw.get("isAvailable") if isinstance(raw.get("isAvailable"), bool) else None,
            **extended,
        }
    )


def _optional_number(value: Any) -> Optional[float]:
    if value in (None, "") or isinstance(value, bool):
        return None
    parsed = parse_price(value)
    return None if math.isnan(parsed) else parsed


def check_drug(raw: Any, key: str, index: int = 0) -> DrugValidation:
    """
    Validate and normalize one raw record without raising.

    Returns:
        A DrugValidation holding either the normalized drug or the field-level errors.
    """
    errors = _drug_errors(raw)
    if errors:
        return DrugValidation(errors=errors)
    try:
        return DrugValidation(drug=normalize_drug(raw, key, index))
    except (ValidationError, TypeError, ValueError) as e:
        return DrugValidation(errors=[f"record: {e}"])


def validate_import_entry(key: str, entry: Any) -> Optional[str]:
    """
    Check one entry of an import batch.

    Returns:
        A localized error message naming ``key``, or None when the entry is acceptable.
    """
    if not isinstance(entry, dict):
        return Messages.ROW_INVALID.format(key=key)
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        return Messages.ROW_NAME_REQUIRED.format(key=key)
    new_price = entry.get("newPrice")
    if isinstance(new_price, bool) or not isinstance(new_price, (int, float)) or math.isnan(new_price) or new_price < 0:
        return Messages.ROW_PRICE_INVALID.format(key=key)
    return None
