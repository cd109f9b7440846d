"""Calendar arithmetic for subscription due dates.

All functions take and return ISO calendar dates (``YYYY-MM-DD``). Dates are
handled as ``datetime.date`` values, which carry no time of day or timezone,
so daylight-saving transitions cannot shift a result.
"""

import calendar as cal
import re
from datetime import MAXYEAR, MINYEAR, date, timedelta

from nebula.models.subscription import PaymentCycle

_ISO_DATE_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")


class InvalidDateError(ValueError):
    """Raised for malformed or impossible calendar dates."""


class InvalidCustomDaysError(ValueError):
    """Raised when a custom_days interval is not a positive integer."""


def _parse(iso: str) -> date:
    match = _ISO_DATE_RE.fullmatch(iso) if isinstance(iso, str) else None
    if not match:
        raise InvalidDateError(f"Invalid date: {iso!r}")
    year, month, day = (int(part) for part in match.groups())
    if not MINYEAR <= year <= MAXYEAR or not 1 <= month <= 12:
        raise InvalidDateError(f"Invalid date: {iso!r}")
    if not 1 <= day <= cal.monthrange(year, month)[1]:
        raise InvalidDateError(f"Invalid date: {iso!r}")
    return date(year, month, day)


def _format(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def is_valid_iso_date(value: str) -> bool:
    """Check that a string is ``YYYY-MM-DD`` and names a real calendar day."""
    try:
        _parse(value)
    except InvalidDateError:
        return False
    return True


def add_days(iso: str, days: int) -> str:
    d = _parse(iso)
    try:
        return _format(d + timedelta(days=days))
    except OverflowError as exc:
        raise InvalidDateError(f"Date out of range: {iso!r} + {days} days") from exc


def add_months(iso: str, months: int) -> str:
    """Add months to a date, clamping to last day of month."""
    d = _parse(iso)
    month = d.month - 1 + months
    year = d.year + month // 12
    month = month % 12 + 1
    if not MINYEAR <= year <= MAXYEAR:
        raise InvalidDateError(f"Date out of range: {iso!r} + {months} months")
    max_day = cal.monthrange(year, month)[1]
    return _format(date(year, month, min(d.day, max_day)))


def add_years(iso: str, years: int) -> str:
    return add_months(iso, years * 12)


def diff_days(start: str, end: str) -> int:
    """Signed number of whole days from ``start`` to ``end``."""
    return (_parse(end) - _parse(start)).days


def compute_next_due_date(
    start_date: str,
    payment_cycle: str,
    custom_days: int | None = None,
    explicit_next_due_date: str | None = None,
) -> str:
    """Compute the next due date of a subscription from its cycle.

    Args:
        start_date: The first billing date.
        payment_cycle: One of monthly, yearly, custom_days.
        custom_days: Interval length for the custom_days cycle.
        explicit_next_due_date: A caller-supplied due date. When given it is
            returned as is, without checking it against the cycle.

    Returns:
        The next due date as an ISO date string.

    Raises:
        InvalidDateError: If start_date or the explicit date is not a valid date.
        InvalidCustomDaysError: If the custom interval is not a positive integer.
        ValueError: If the payment cycle is unknown.
    """
    if not is_valid_iso_date(start_date):
        raise InvalidDateError(f"Invalid start date: {start_date!r}")

    if explicit_next_due_date:
        if not is_valid_iso_date(explicit_next_due_date):
            raise InvalidDateError(f"Invalid next due date: {explicit_next_due_date!r}")
        return explicit_next_due_date

    if payment_cycle == PaymentCycle.MONTHLY.value:
        return add_months(start_date, 1)
    elif payment_cycle == PaymentCycle.YEARLY.value:
        return add_years(start_date, 1)
    elif payment_cycle == PaymentCycle.CUSTOM_DAYS.value:
        if isinstance(custom_days, bool) or not isinstance(custom_days, int) or custom_days <= 0:
            raise InvalidCustomDaysError(f"Invalid custom days: {custom_days!r}")
        return add_days(start_date, custom_days)
    raise ValueError(f"Unknown payment cycle: {payment_cycle}")
