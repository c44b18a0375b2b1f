"""
Clock used for "today" (submission date checks) and decision timestamps.
"""
from datetime import datetime, date
import pytz

from leave_api.core.config import settings

DEFAULT_TIMEZONE = "UTC"


class Clock:
    """Wall clock. `now()` is UTC; `today()` is the calendar date in the configured timezone."""

    def __init__(self, timezone_str: str = DEFAULT_TIMEZONE):
        try:
            self.tz = pytz.timezone(timezone_str)
        except pytz.UnknownTimeZoneError:
            self.tz = pytz.utc

    def now(self) -> datetime:
        return datetime.now(pytz.utc)

    def today(self) -> date:
        return self.now().astimezone(self.tz).date()


def get_clock() -> Clock:
    return Clock(settings.TIMEZONE)
