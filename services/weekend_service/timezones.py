"""
Timezone helpers for user-facing weekend math.
"""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def resolve_timezone(name: Optional[str], fallback: str = "UTC", strict: bool = False) -> tzinfo:
    """
    Resolve an IANA timezone name.

    Unknown names fall back to `fallback` (then UTC) unless strict, in which
    case ValueError is raised.
    """
    for candidate in (name, fallback):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError) as e:
            if strict:
                raise ValueError(f"Unknown timezone: {candidate}") from e
            logger.warning(f"Unknown timezone '{candidate}', falling back")
    return timezone.utc


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Express value in tz; naive values are taken as wall-clock time in tz"""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)
