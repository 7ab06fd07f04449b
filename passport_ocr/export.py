from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .errors import ExportError
from .models import STATUS_ERROR, STATUS_PROCESSING, FileRecord

log = logging.getLogger(__name__)

SHEET_NAME = "Passport Data"
FILENAME_PREFIX = "LDB_Passport_OCR_"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, record field, column width in characters)
EXPORT_COLUMNS: Tuple[Tuple[str, Optional[str], int], ...] = (
    ("No", None, 5),
    ("File Name", None, 25),
    ("Passport No", "passportNo", 15),
    ("Full Name", "fullName", 25),
    ("Date of Birth", "dateOfBirth", 15),
    ("Place of Birth", "placeOfBirth", 20),
    ("Date of Issue", "dateOfIssue", 15),
    ("Date of Expiry", "dateOfExpiry", 15),
    ("Nationality", "nationality", 12),
    ("Gender", "gender", 10),
    ("Issuing Authority", "issuingAuthority", 30),
    ("Status", None, 15),
)

EXPORT_HEADERS = tuple(header for header, _field, _width in EXPORT_COLUMNS)


def status_label(record: FileRecord) -> str:
    if record.status == STATUS_ERROR:
        return f"ERROR: {record.error}"
    if record.status == STATUS_PROCESSING:
        return "Processing"
    return "Success"


def build_export_rows(records: Sequence[FileRecord]) -> List[Dict[str, Union[int, str]]]:
    rows: List[Dict[str, Union[int, str]]] = []
    for index, record in enumerate(records, start=1):
        row: Dict[str, Union[int, str]] = {"No": index, "File Name": record.file_name}
        for header, field_name, _width in EXPORT_COLUMNS:
            if field_name is not None:
                row[header] = record.data.get(field_name) or ""
        row["Status"] = status_label(record)
        rows.append({header: row[header] for header in EXPORT_HEADERS})
    return rows


def export_filename(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return f"{FILENAME_PREFIX}{moment.strftime('%Y-%m-%d_%H-%M-%S')}.xlsx"


def export_workbook(records: Sequence[FileRecord], now: Optional[datetime] = None) -> Tuple[str, bytes]:
    """Build the passport spreadsheet and return ``(filename, xlsx_bytes)``."""
    if not records:
        raise ExportError("No data to export")

    try:
        from openpyxl import Workbook
        from openpyxl.utils import get_column_letter
    except ImportError as exc:
        raise ExportError("Excel library not loaded. Please reinstall openpyxl.") from exc

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME

    ws.append(list(EXPORT_HEADERS))
    for row in build_export_rows(records):
        ws.append([row[header] for header in EXPORT_HEADERS])

    for col, (_header, _field, width) in enumerate(EXPORT_COLUMNS, 1):
        ws.column_dimensions[get_column_letter(col)].width = width

    output = io.BytesIO()
    wb.save(output)
    filename = export_filename(now)
    log.info("Excel exported: %s (%s records)", filename, len(records))
    return filename, output.getvalue()
