"""Wall-clock readings in the configured timezone."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def is_valid_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def format_iso_timestamp(moment: datetime) -> str:
    """Format an aware datetime as UTC with millisecond precision and a ``Z`` suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TimeSource:
    """Reads the current date and time.

    Subclass and override ``current`` to pin the clock in tests.
    """

    def current(self) -> datetime:
        return datetime.now(UTC)

    def today(self, timezone: str) -> str:
        """Today's ISO date in the given timezone."""
        return self.current().astimezone(ZoneInfo(timezone)).date().isoformat()

    def now_hhmm(self, timezone: str) -> str:
        """Current 24h ``HH:MM`` time of day in the given timezone."""
        return self.current().astimezone(ZoneInfo(timezone)).strftime("%H:%M")

    def now_iso(self) -> str:
        return format_iso_timestamp(self.current())
