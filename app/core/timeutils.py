# /smart-lms-backend/app/core/timeutils.py

"""
Every timestamp inside the application is a timezone-aware UTC datetime.

SQLite hands back naive datetimes even for `DateTime(timezone=True)` columns,
so values read from the database (or received from clients without an
offset) are normalized through `ensure_utc` before any arithmetic, before
they are bound as query filters, and before they leave the API.
"""

from datetime import datetime, timezone
from typing import Optional, Annotated

from pydantic import AfterValidator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treats naive datetimes as UTC and converts aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Field type for API models: whatever comes in, a UTC-aware datetime comes out.
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]
