"""Shared data models for passport extraction."""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

PASSPORT_FIELDS = (
    "passportNo",
    "fullName",
    "dateOfBirth",
    "placeOfBirth",
    "dateOfIssue",
    "dateOfExpiry",
    "nationality",
    "gender",
    "issuingAuthority",
)

STATUS_PROCESSING = "processing"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def empty_passport_data() -> Dict[str, str]:
    return {name: "" for name in PASSPORT_FIELDS}


def generate_id() -> str:
    """Return an opaque record id: millisecond timestamp plus a random base-36 tail."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True)
class ImageUpload:
    file_name: str
    mime_type: str
    data: bytes

    @property
    def is_image(self) -> bool:
        return bool(self.mime_type) and self.mime_type.lower().startswith("image/")

    @property
    def size_kb(self) -> float:
        return len(self.data) / 1024


@dataclass
class FileRecord:
    """Tracks one uploaded image through the extraction pipeline."""

    file_name: str
    id: str = field(default_factory=generate_id)
    status: str = STATUS_PROCESSING
    data: Dict[str, str] = field(default_factory=empty_passport_data)
    error: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status in (STATUS_SUCCESS, STATUS_ERROR)

    def mark_success(self, data: Dict[str, str]) -> None:
        if self.is_finished:
            raise ValueError(f"Record {self.id} already finished with status {self.status!r}")
        self.data = data
        self.status = STATUS_SUCCESS

    def mark_error(self, message: str) -> None:
        if self.is_finished:
            raise ValueError(f"Record {self.id} already finished with status {self.status!r}")
        self.error = message
        self.status = STATUS_ERROR

    def copy(self) -> "FileRecord":
        return FileRecord(
            file_name=self.file_name,
            id=self.id,
            status=self.status,
            data=dict(self.data),
            error=self.error,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "status": self.status,
            "data": dict(self.data),
            "error": self.error,
        }
