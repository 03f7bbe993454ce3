"""Timezone utilities."""

from datetime import datetime

import pytz

UTC = pytz.UTC


def now_utc() -> datetime:
    """Return current time in UTC."""
    return datetime.now(UTC)

