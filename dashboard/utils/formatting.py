from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, List, Optional

from dashboard.database.models import Language, PaymentType

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December"
]


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def format_date(value) -> Optional[str]:
    """ISO date string for date/datetime values, None stays None"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def format_contact_name(first_name: str, last_name: str, language: str) -> str:
    """Japanese contacts are shown family name first"""
    first_name = first_name or ""
    last_name = last_name or ""
    if language == Language.japanese.value:
        return f"{last_name} {first_name}".strip()
    return f"{first_name} {last_name}".strip()


def format_payment_settings(record: Any) -> str:
    """Payment type plus its due day / due month, e.g. "Annually | Due Day: 15 | Due Month: March"."""
    if record is None:
        return "N/A"
    payment_type = _get(record, "payment_type")
    if isinstance(payment_type, PaymentType):
        payment_type = payment_type.value
    settings = f"{payment_type or 'N/A'}"

    due_day = _get(record, "due_day")
    if payment_type in (PaymentType.monthly.value, PaymentType.annually.value) and due_day:
        settings += f" | Due Day: {due_day}"

    due_month = _get(record, "due_month")
    if payment_type == PaymentType.annually.value and due_month:
        if isinstance(due_month, int) and 1 <= due_month <= 12:
            due_month = MONTH_NAMES[due_month - 1]
        settings += f" | Due Month: {due_month}"

    return settings


def format_device_contract(contract: Optional[List[Any]]) -> str:
    """Comma-separated "type: quantity" pairs"""
    if not contract:
        return ""
    return ", ".join(f"{_get(item, 'type')}: {_get(item, 'quantity')}" for item in contract)


def format_device_summary(contract: Optional[List[Any]]) -> str:
    """Total plus per-type breakdown, or "No devices" for an empty contract"""
    if not contract:
        return "No devices"
    total = sum(_get(item, "quantity") or 0 for item in contract)
    summary = ", ".join(f"{_get(item, 'type')} ({_get(item, 'quantity')})" for item in contract)
    return f"{total} Devices: {summary}"
