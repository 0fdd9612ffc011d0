import calendar
from datetime import datetime, timezone
from typing import Optional

import bleach


def sanitize_text(value: Optional[str]) -> str:
    """Clean a user-supplied note before it is stored.

    - Removes NULL bytes
    - Strips HTML tags using bleach.clean(..., strip=True)
    - Trims whitespace
    """
    if value is None:
        return ""
    val = value.replace("\x00", "")
    val = bleach.clean(val, tags=set(), strip=True)
    return val.strip()


def months_before(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` earlier, clamped to the end of shorter months."""
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from SQLite; aware ones are converted."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
