"""Passport OCR: Gemini-backed passport field extraction with Excel export.

Re-exports the stable public surface so ``from passport_ocr import X`` works.
"""

__version__ = "2.0.0"

from .errors import BatchRejected, ExportError, ExtractionError, PassportOcrError
from .export import EXPORT_HEADERS, build_export_rows, export_filename, export_workbook
from .extraction import build_client, extract_passport, friendly_error_message, request_extraction
from .imaging import preprocess_image
from .models import PASSPORT_FIELDS, FileRecord, ImageUpload
from .parsing import fallback_extract, normalize_record, parse_response
from .processing import FileQueue, accept_batch
from .render import build_rows, render_table_body
from .settings import Settings, SettingsStore

__all__ = [
    "__version__",
    # Models
    "PASSPORT_FIELDS",
    "FileRecord",
    "ImageUpload",
    # Errors
    "PassportOcrError",
    "ExtractionError",
    "BatchRejected",
    "ExportError",
    # Pipeline
    "preprocess_image",
    "build_client",
    "request_extraction",
    "extract_passport",
    "friendly_error_message",
    "parse_response",
    "fallback_extract",
    "normalize_record",
    # Queue
    "accept_batch",
    "FileQueue",
    # Output
    "build_rows",
    "render_table_body",
    "EXPORT_HEADERS",
    "build_export_rows",
    "export_filename",
    "export_workbook",
    # Settings
    "Settings",
    "SettingsStore",
]
