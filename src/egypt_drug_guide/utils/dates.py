"""Date helpers shared by the cache, mirror and import layers."""

from datetime import date, datetime, timezone
from typing import Optional

_ARABIC_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")
_RLM = "‏"


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def localized_date(value: Optional[date] = None) -> str:
    """
    Format a date the way the storefront displays it (Egyptian Arabic locale).

    Day and month are unpadded, digits are Arabic-Indic and each separator is
    preceded by a right-to-left mark, e.g. ``١٩‏/١٠‏/٢٠٢٦``.
    """
    value = value or date.today()
    text = f"{value.day}{_RLM}/{value.month}{_RLM}/{value.year}"
    return text.translate(_ARABIC_DIGITS)


def localized_from_iso(value: Optional[str]) -> Optional[str]:
    """Convert an ISO timestamp to the localized date, or None if it cannot be parsed."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return localized_date(parsed.date())
