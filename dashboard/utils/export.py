import csv
import io
import logging
from typing import Any, Dict, List, Optional, Sequence

from dashboard.services.query_engine import get_field


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        return ", ".join(f"{key}: {item}" for key, item in value.items())
    return value


def to_csv(rows: Sequence[Dict], headers: Optional[List[str]] = None) -> str:
    """
    Render rows as CSV text. Headers may be dot paths into nested rows
    ("contact.email"); without headers the first row's keys are used.
    Strings are always quoted, numbers never.
    """
    if not rows:
        return ""
    headers = headers or list(rows[0].keys())

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(get_field(row, header)) for header in headers])
    return buffer.getvalue()


def export_to_csv(rows: Sequence[Dict], path: str, headers: Optional[List[str]] = None) -> bool:
    if not rows:
        logging.warning(f"No data to export to {path}")
        return False

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(to_csv(rows, headers))

    logging.info(f"Exported {len(rows)} rows to {path}")
    return True
