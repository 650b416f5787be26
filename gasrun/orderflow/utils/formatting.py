"""Money and time helpers shared by notifications and analytics."""
from __future__ import annotations

import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

LOCAL_TZ = ZoneInfo(os.getenv("LOCAL_TIMEZONE", "America/Los_Angeles"))


def cents_to_dollars(cents: int | None) -> float:
    return round((cents or 0) / 100, 2)


def cents_to_dollars_str(cents: int | None) -> str:
    return f"{cents_to_dollars(cents):.2f}"


def unix_to_datetime(ts: int | None) -> datetime | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def unix_to_full(ts: int | None) -> str:
    """Human readable local time, e.g. ``3:05 PM, Tue Oct 13``."""
    if ts is None:
        return ""
    local = datetime.fromtimestamp(ts, tz=LOCAL_TZ)
    return f"{local.strftime('%I:%M %p').lstrip('0')}, {local.strftime('%a %b')} {local.day}"
