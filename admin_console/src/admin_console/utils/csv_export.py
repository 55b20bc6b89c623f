"""
CSV export of the submissions currently visible in the console.

The header row carries the bare key names; every data value is wrapped in
double quotes with embedded quotes doubled.
"""

import csv
import io
from typing import Any, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from admin_console.models import Submission
from admin_console.utils.dates import DEFAULT_DATE_FORMAT, humanize_date

CSV_MIME_TYPE = "text/csv"

EXPORT_COLUMNS = ["id", "name", "email", "message", "date", "read"]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def export_to_csv(rows: Sequence[Mapping[str, Any]]) -> Optional[bytes]:
    """
    Serialize rows to UTF-8 CSV bytes.

    Args:
        rows: Row mappings; the first row's keys define the columns

    Returns:
        The CSV document, or None when there is nothing to export
    """
    if not rows:
        return None

    keys = list(rows[0].keys())
    buffer = io.StringIO()

    # Header is the bare key names, never quoted
    buffer.write(",".join(str(key) for key in keys) + "\n")

    body = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        body.writerow([_cell(row.get(key)) for key in keys])

    # Lines are joined, not terminated
    document = buffer.getvalue()[:-1]
    logger.debug(f"Exported {len(rows)} rows to CSV")
    return document.encode("utf-8")


def submission_export_rows(
    submissions: Sequence[Submission],
    date_format: str = DEFAULT_DATE_FORMAT,
    tz: str = "UTC",
) -> List[Dict[str, Any]]:
    """Flatten submissions into the column set offered for download."""
    return [
        {
            "id": submission.id,
            "name": submission.name or "",
            "email": submission.email or "",
            "message": submission.message or "",
            "date": humanize_date(submission.submitted_at, date_format, tz),
            "read": bool(submission.read),
        }
        for submission in submissions
    ]
