"""Exception types raised across the passport OCR app."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class PassportOcrError(Exception):
    """Base class for errors surfaced to the user as a notice."""


class ExtractionError(PassportOcrError):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reasons: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reasons: Tuple[str, ...] = tuple(reason for reason in reasons if reason)


class BatchRejected(PassportOcrError):
    """A whole upload batch was refused before any record was created."""

    def __init__(self, message: str, needs_settings: bool = False) -> None:
        super().__init__(message)
        self.needs_settings = needs_settings


class ExportError(PassportOcrError):
    pass
