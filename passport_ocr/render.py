"""Project the record list onto table rows for the results view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from markupsafe import Markup

from .models import PASSPORT_FIELDS, STATUS_ERROR, STATUS_PROCESSING, STATUS_SUCCESS, FileRecord

_BADGES = {
    STATUS_PROCESSING: ("badge-processing", "⏳ Processing"),
    STATUS_SUCCESS: ("badge-success", "✅ Success"),
    STATUS_ERROR: ("badge-error", "❌ Failed"),
}

_ROW_CLASSES = {
    STATUS_PROCESSING: "row-processing",
    STATUS_ERROR: "row-error",
}


@dataclass(frozen=True)
class TableRow:
    index: int
    file_name: str
    status: str
    status_note: str
    fields: Tuple[str, ...]
    row_class: str
    badge_class: str
    badge_label: str


def build_rows(records: Sequence[FileRecord]) -> List[TableRow]:
    rows: List[TableRow] = []
    for index, record in enumerate(records, start=1):
        if record.status == STATUS_PROCESSING:
            note = "Processing..."
        elif record.status == STATUS_ERROR:
            note = record.error or ""
        else:
            note = ""
        badge_class, badge_label = _BADGES.get(record.status, ("", ""))
        rows.append(
            TableRow(
                index=index,
                file_name=record.file_name,
                status=record.status,
                status_note=note,
                fields=tuple(record.data.get(name, "") for name in PASSPORT_FIELDS),
                row_class=_ROW_CLASSES.get(record.status, ""),
                badge_class=badge_class,
                badge_label=badge_label,
            )
        )
    return rows


def _render_row(row: TableRow) -> str:
    passport_no, *rest = row.fields
    note = ""
    if row.status_note:
        note = Markup('<span class="file-status {}">{}</span>').format(row.status, row.status_note)

    cells = [
        Markup('<td class="td-center">{}</td>').format(row.index),
        Markup(
            '<td class="td-file"><div class="file-info">'
            '<span class="file-name">{}</span>{}</div></td>'
        ).format(row.file_name, note),
        Markup('<td class="td-passport"><span class="passport-badge">{}</span></td>').format(
            passport_no
        ),
    ]
    cells.extend(Markup("<td>{}</td>").format(value) for value in rest)
    if row.badge_class:
        cells.append(
            Markup('<td class="td-status"><span class="badge {}">{}</span></td>').format(
                row.badge_class, row.badge_label
            )
        )
    else:
        cells.append(Markup('<td class="td-status"></td>'))

    return Markup('<tr class="{}">{}</tr>').format(row.row_class, Markup("").join(cells))


def render_table_body(records: Sequence[FileRecord]) -> str:
    """Render ``<tr>`` markup for *records*; every user-supplied string is escaped."""
    return str(Markup("\n").join(_render_row(row) for row in build_rows(records)))
