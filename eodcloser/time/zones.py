"""
Timezone resolution.

Accepts IANA names (``America/New_York``) and the Windows zone ids the
closer's users tend to copy from their trading platform
(``Eastern Standard Time``). Resolution goes through ``zoneinfo`` first and
falls back to ``pytz`` for hosts without a system tz database.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytz


DEFAULT_TIMEZONE = "America/New_York"

# Windows display ids -> IANA names
WINDOWS_ZONE_IDS: Dict[str, str] = {
    "Eastern Standard Time": "America/New_York",
    "Central Standard Time": "America/Chicago",
    "Mountain Standard Time": "America/Denver",
    "Pacific Standard Time": "America/Los_Angeles",
    "GMT Standard Time": "Europe/London",
    "Romance Standard Time": "Europe/Paris",
    "W. Europe Standard Time": "Europe/Berlin",
    "Central Europe Standard Time": "Europe/Budapest",
    "Tokyo Standard Time": "Asia/Tokyo",
    "China Standard Time": "Asia/Shanghai",
    "Singapore Standard Time": "Asia/Singapore",
    "AUS Eastern Standard Time": "Australia/Sydney",
    "E. Australia Standard Time": "Australia/Brisbane",
    "UTC": "UTC",
}


class UnknownTimezoneError(KeyError):
    """Timezone identifier could not be resolved."""
    pass


def resolve_timezone(timezone_id: str) -> tzinfo:
    """
    Resolve a timezone identifier to a DST-aware tzinfo.

    Raises:
        UnknownTimezoneError: if neither zoneinfo nor pytz knows the zone
    """
    name = (timezone_id or "").strip()
    if not name:
        raise UnknownTimezoneError("empty timezone identifier")

    iana = WINDOWS_ZONE_IDS.get(name, name)
    try:
        return ZoneInfo(iana)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        # directory names such as "America" surface as IsADirectoryError
        pass

    try:
        return pytz.timezone(iana)
    except (pytz.UnknownTimeZoneError, OSError, ValueError) as e:
        raise UnknownTimezoneError(timezone_id) from e


def zone_name(tz: tzinfo) -> str:
    """IANA key of a zoneinfo/pytz zone, str() otherwise."""
    return getattr(tz, "key", None) or getattr(tz, "zone", None) or str(tz)


def is_dst(local_dt: datetime) -> bool:
    """True if daylight saving time is in effect for an aware local datetime."""
    offset = local_dt.dst()
    return bool(offset)


def localize(tz: tzinfo, naive: datetime) -> datetime:
    """Attach *tz* to a naive wall-clock datetime (pytz needs ``localize``)."""
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)
