from __future__ import annotations

from passport_ocr import build_rows, normalize_record, render_table_body
from passport_ocr.models import FileRecord


def _records():
    ok = FileRecord(file_name="ok.png")
    ok.mark_success(normalize_record({"passportNo": "AB1234567", "fullName": "DOE, JANE"}))
    failed = FileRecord(file_name="bad.png")
    failed.mark_error("Invalid API key")
    pending = FileRecord(file_name="wait.png")
    return [ok, failed, pending]


class TestBuildRows:
    def test_one_row_per_record_with_index(self):
        rows = build_rows(_records())
        assert [row.index for row in rows] == [1, 2, 3]
        assert [row.file_name for row in rows] == ["ok.png", "bad.png", "wait.png"]

    def test_status_notes_and_badges(self):
        ok, failed, pending = build_rows(_records())
        assert ok.status_note == ""
        assert ok.badge_class == "badge-success"
        assert failed.status_note == "Invalid API key"
        assert failed.row_class == "row-error"
        assert pending.status_note == "Processing..."
        assert pending.badge_label.endswith("Processing")

    def test_nine_field_columns(self):
        row = build_rows(_records())[0]
        assert len(row.fields) == 9
        assert row.fields[0] == "AB1234567"
        assert row.fields[1] == "DOE, JANE"


class TestRenderTableBody:
    def test_escapes_user_text(self):
        record = FileRecord(file_name='<img src=x onerror="alert(1)">.png')
        record.mark_error("<script>alert('x')</script>")
        html = render_table_body([record])
        assert "<img" not in html
        assert "<script>" not in html
        assert "&lt;img src=x" in html
        assert "&lt;script&gt;" in html

    def test_escapes_extracted_fields(self):
        record = FileRecord(file_name="a.png")
        record.mark_success(normalize_record({"fullName": "A & B <C>"}))
        assert "A &amp; B &lt;C&gt;" in render_table_body([record])

    def test_idempotent(self):
        records = _records()
        assert render_table_body(records) == render_table_body(records)

    def test_one_tr_per_record(self):
        html = render_table_body(_records())
        assert html.count("<tr") == 3
        assert html.count("<td") == 3 * 12

    def test_empty_list(self):
        assert render_table_body([]) == ""
