import logging
from io import BytesIO
from typing import Any, Dict, Iterable, Sequence

from openpyxl import Workbook

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ACCEPTED_COLUMNS = ("reviewerName", "track", "authorEmail", "contactNumber")


def encode_rows(
    rows: Iterable[Dict[str, Any]],
    columns: Sequence[str],
    sheet_title: str = "Sheet1",
) -> bytes:
    """
    Encode rows as a single-sheet xlsx workbook.

    The first row holds the column keys in the given order. Missing values
    are written as empty strings.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title

    ws.append(list(columns))
    count = 0
    for row in rows:
        ws.append(["" if row.get(col) is None else row.get(col) for col in columns])
        count += 1

    buffer = BytesIO()
    wb.save(buffer)
    logger.debug(f"Encoded {count} rows into sheet '{sheet_title}'")
    return buffer.getvalue()
