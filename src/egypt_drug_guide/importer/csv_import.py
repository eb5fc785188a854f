# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""CSV pre-pass for the import pipeline using Polars."""

import io
import math
import uuid
from typing import Any

import polars as pl
from loguru import logger

from egypt_drug_guide.catalog.validation import parse_price, price_change
from egypt_drug_guide.config import GuideConfig
from egypt_drug_guide.exceptions import ImportFormatError
from egypt_drug_guide.messages import Messages
from egypt_drug_guide.models import CSVValidation
from egypt_drug_guide.utils.dates import localized_date


def _non_blank_lines(csv_text: str) -> list[str]:
    return [line.rstrip("\r") for line in csv_text.split("\n") if line.strip()]


def validate_csv(csv_text: str) -> CSVValidation:
    """
    Check that a CSV has a header and at least one data row.

    The header must contain ``name``, ``newPrice`` and ``oldPrice`` as exact,
    case-sensitive column names.
    """
    lines = _non_blank_lines(csv_text)
    errors: list[str] = []

    if len(lines) < 2:
        errors.append(Messages.CSV_TOO_SHORT)

    headers = [h.strip() for h in lines[0].split(",")] if lines else []
    missing = [h for h in GuideConfig.CSV_REQUIRED_HEADERS if h not in headers]
    if missing:
        errors.append(Messages.CSV_MISSING_HEADERS.format(columns=", ".join(missing)))

    return CSVValidation(valid=not errors, errors=errors)


def _read_frame(csv_text: str) -> pl.DataFrame:
    """
    Tokenize the CSV with every column read as a string.

    Quoted fields may contain commas. Empty fields read as empty strings.
    """
    lines = _non_blank_lines(csv_text)
    if len(lines) < 2:
        return pl.DataFrame()
    try:
        df = pl.read_csv(
            io.BytesIO("\n".join(lines).encode("utf-8")),
            has_header=True,
            infer_schema_length=0,
            missing_utf8_is_empty_string=True,
            truncate_ragged_lines=True,
        )
    except pl.exceptions.PolarsError as e:
        logger.error(f"Failed to read CSV: {e}")
        raise ImportFormatError(f"Failed to read CSV: {e}") from e
    # Normalize column names
    return df.rename({col: col.strip() for col in df.columns})


def _coerce(header: str, value: str) -> Any:
    if header in GuideConfig.CSV_NUMERIC_FIELDS:
        number = parse_price(value, decimal_comma=False)
        return 0.0 if math.isnan(number) else number
    if header in GuideConfig.CSV_BOOLEAN_FIELDS:
        return value.lower() == "true"
    return value


def csv_to_json(csv_text: str) -> list[dict[str, Any]]:
    """
    Convert CSV rows into raw drug objects ready for ``process_import_data``.

    Known numeric columns are parsed as floats (0 when unparseable) and
    ``isAvailable`` is true only for ``"true"`` in any case. Missing ``id``,
    ``no`` and ``updateDate`` are generated, and the price change is computed
    from the coerced prices.

    Raises:
        ImportFormatError: If Polars cannot tokenize the text.
    """
    df = _read_frame(csv_text)
    if df.is_empty():
        return []

    today = localized_date()
    records: list[dict[str, Any]] = []
    for index, row in enumerate(df.iter_rows(named=True)):
        record: dict[str, Any] = {"originalOrder": index}
        for header, value in row.items():
            text = (value or "").strip().strip('"')
            record[header] = _coerce(header, text)

        if not record.get("id"):
            record["id"] = str(uuid.uuid4())
        if not record.get("no"):
            record["no"] = str(index + 1)
        if not record.get("updateDate"):
            record["updateDate"] = today

        change, percent = price_change(record.get("newPrice") or 0.0, record.get("oldPrice") or 0.0)
        record["priceChange"] = change
        record["priceChangePercent"] = percent
        records.append(record)

    logger.info(f"Converted {len(records)} CSV rows")
    return records
