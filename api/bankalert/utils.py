import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "INR"

CURRENCY_REGEX = re.compile(r"^[A-Z]{3}$", re.ASCII)
DATE_YMD_REGEX = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")
DATE_DMY_REGEX = re.compile(r"^([0-9]{2})/([0-9]{2})/([0-9]{4})$")
_NUMBER_NOISE = re.compile(r"[,\s]")


def to_number(value: Any) -> Optional[float]:
    """Parse `2,82,218.66`-style amounts; anything non-numeric becomes None."""
    if value is None or isinstance(value, bool):
        return None
    s = _NUMBER_NOISE.sub("", str(value))
    # float() would accept "1_000"; alert amounts never carry underscores
    if not s or "_" in s:
        return None
    try:
        n = float(s)
    except ValueError:
        return None
    return n if math.isfinite(n) else None


def normalize_date(value: Any) -> Optional[str]:
    """Accept YYYY-MM-DD or DD/MM/YYYY and return YYYY-MM-DD."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    m = DATE_YMD_REGEX.match(s)
    if m:
        return f"{m.group(1)}-{m.group(2)}-{m.group(3)}"
    m = DATE_DMY_REGEX.match(s)
    if m:
        return f"{m.group(3)}-{m.group(2)}-{m.group(1)}"
    return None


def normalize_currency(value: Any) -> str:
    if value is None:
        return DEFAULT_CURRENCY
    code = str(value).strip().upper()
    return code if CURRENCY_REGEX.match(code) else DEFAULT_CURRENCY


def now_iso(tz_name: Optional[str] = None) -> str:
    """Batch timestamp for callers that do not supply one."""
    tz = timezone.utc
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, stamping batch in UTC", tz_name)
    return datetime.now(tz).isoformat()


def check_iso_timestamp(value: str) -> str:
    """Return `value` unchanged if it is an ISO-8601 date-time, else raise ValueError."""
    s = value.strip()
    # fromisoformat only learned the Z suffix in 3.11
    if s[-1:] in ("Z", "z"):
        s = s[:-1] + "+00:00"
    try:
        datetime.fromisoformat(s)
    except ValueError:
        raise ValueError(f"not an ISO-8601 timestamp: {value!r}") from None
    return value
