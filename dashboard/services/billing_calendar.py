"""
Billing calendar - next billing month/date, contract expiry and contract period.

Every function here is pure and UI-facing: bad or missing dates never raise,
they degrade to one of the display sentinels below.
"""
import calendar
import enum
import logging
import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, NamedTuple, Optional, Union

from dashboard.database.models import PaymentType

DASH = "—"
ENDED = "Ended"
NOT_AVAILABLE = "N/A"

DateLike = Union[date, datetime, str, None]


class DateStatus(str, enum.Enum):
    ok = "ok"
    missing = "missing"
    invalid = "invalid"


class ParsedDate(NamedTuple):
    """Result of parsing a date field; value is set only when status is ok"""
    status: DateStatus
    value: Optional[date] = None

    @property
    def ok(self) -> bool:
        return self.status == DateStatus.ok


def parse_date(value: Any) -> ParsedDate:
    """Parse a date, datetime or ISO string into a tagged result."""
    if value is None or value == "":
        return ParsedDate(DateStatus.missing)
    if isinstance(value, datetime):
        return ParsedDate(DateStatus.ok, value.date())
    if isinstance(value, date):
        return ParsedDate(DateStatus.ok, value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return ParsedDate(DateStatus.missing)
        try:
            return ParsedDate(DateStatus.ok, date.fromisoformat(text))
        except ValueError:
            pass
        try:
            return ParsedDate(DateStatus.ok, datetime.fromisoformat(text).date())
        except ValueError:
            logging.debug(f"Unparsable date value: {value!r}")
            return ParsedDate(DateStatus.invalid)
    logging.debug(f"Unsupported date type: {type(value).__name__}")
    return ParsedDate(DateStatus.invalid)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _payment_type(record: Any) -> Optional[str]:
    value = _field(record, "payment_type")
    if isinstance(value, PaymentType):
        return value.value
    return value


def _as_of(as_of: DateLike) -> date:
    if as_of is None:
        return date.today()
    parsed = parse_date(as_of)
    if not parsed.ok:
        raise ValueError(f"Invalid as_of date: {as_of!r}")
    return parsed.value


def _clamped(year: int, month: int, day: int) -> date:
    """Build a date, pulling day back to the month's last day when it overflows."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def is_ended(record: Any, as_of: DateLike = None) -> bool:
    """True when the contract end date is strictly before as_of (same day is still active)."""
    if record is None:
        return False
    end = parse_date(_field(record, "end_date"))
    if not end.ok:
        return False
    return _as_of(as_of) > end.value


def next_billing_month(record: Any, as_of: DateLike = None) -> str:
    """
    Next billing month as YYYY-MM.

    Ended contracts give "Ended". Monthly contracts always bill in the
    current month; annual contracts bill in the month of their end date.
    due_day / due_month are not consulted.
    Raises ValueError only for an unparsable as_of.
    """
    if record is None:
        return DASH
    today = _as_of(as_of)

    if is_ended(record, today):
        return ENDED

    payment_type = _payment_type(record)
    if payment_type == PaymentType.one_time.value:
        return DASH

    if payment_type == PaymentType.monthly.value:
        return f"{today.year}-{today.month:02d}"

    if payment_type == PaymentType.annually.value:
        end = parse_date(_field(record, "end_date"))
        if not end.ok:
            return DASH
        return f"{end.value.year}-{end.value.month:02d}"

    return DASH


def next_billing_date(record: Any, as_of: DateLike = None) -> str:
    """
    Next billing date as YYYY-MM-DD.

    Unlike next_billing_month, an ended contract gives the dash sentinel.
    Monthly: the end date's day-of-month in the current month, or in the
    following month once that day has come. Annually: one month before the
    end date. Days past the end of a short month are clamped to its last day.
    Raises ValueError only for an unparsable as_of.
    """
    if record is None:
        return DASH
    today = _as_of(as_of)

    if is_ended(record, today):
        return DASH

    payment_type = _payment_type(record)
    if payment_type == PaymentType.one_time.value:
        return DASH

    end = parse_date(_field(record, "end_date"))

    if payment_type == PaymentType.monthly.value:
        if not end.ok:
            return DASH
        end_day = end.value.day
        candidate = _clamped(today.year, today.month, end_day)
        if candidate <= today:
            year, month = _shift_month(today.year, today.month, 1)
            candidate = _clamped(year, month, end_day)
        return candidate.isoformat()

    if payment_type == PaymentType.annually.value:
        if not end.ok:
            return DASH
        year, month = _shift_month(end.value.year, end.value.month, -1)
        return _clamped(year, month, end.value.day).isoformat()

    return DASH


def contract_period(start_date: DateLike, end_date: DateLike) -> str:
    """'<N> months (<M> days)' between two dates, or 'N/A'. Months ignore the day of month."""
    start = parse_date(start_date)
    end = parse_date(end_date)
    if not (start.ok and end.ok):
        return NOT_AVAILABLE
    if end.value < start.value:
        return NOT_AVAILABLE

    months = (end.value.year - start.value.year) * 12 + (end.value.month - start.value.month)
    days = math.ceil((end.value - start.value).total_seconds() / 86400)
    return f"{months} months ({days} days)"


def total_devices(record: Any) -> int:
    """Sum of quantities in the record's device contract."""
    contract = _field(record, "device_contract") or []
    total = 0
    for item in contract:
        quantity = _field(item, "quantity")
        if isinstance(quantity, (int, float)) and not isinstance(quantity, bool):
            total += int(quantity)
    return total
