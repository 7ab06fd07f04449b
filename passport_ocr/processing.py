"""Upload acceptance and the sequential extraction queue.

The queue runs on a single worker so at most one Gemini request is in flight.
Files are processed in submission order, and each record reaches ``success``
or ``error`` before the next one starts.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .errors import BatchRejected
from .models import FileRecord, ImageUpload

log = logging.getLogger(__name__)

Extractor = Callable[[ImageUpload], Dict[str, str]]
Listener = Callable[[FileRecord], None]


def accept_batch(
    uploads: Sequence[ImageUpload], api_key: Optional[str]
) -> Tuple[List[ImageUpload], List[str]]:
    """Validate an upload batch before any record is created.

    Returns the accepted images and the names of the files that were skipped.
    """
    if not api_key:
        raise BatchRejected("Please configure API key first", needs_settings=True)

    accepted = [upload for upload in uploads if upload.is_image]
    rejected = [upload.file_name for upload in uploads if not upload.is_image]
    if not accepted:
        raise BatchRejected("Please upload image files (JPG, PNG, WebP)")

    if rejected:
        log.info("Skipped %s non-image file(s): %s", len(rejected), ", ".join(rejected))
    return accepted, rejected


def rejection_notice(rejected: Sequence[str]) -> Optional[str]:
    if not rejected:
        return None
    return f"Skipped {len(rejected)} non-image file(s): {', '.join(rejected)}"


class FileQueue:
    """Owns the record list and feeds it through one extraction worker."""

    def __init__(self, extractor: Extractor, listener: Optional[Listener] = None) -> None:
        self._extractor = extractor
        self._listener = listener
        self._records: List[FileRecord] = []
        self._jobs: List[Future] = []
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="passport-ocr")

    def submit(self, uploads: Sequence[ImageUpload]) -> List[FileRecord]:
        created: List[FileRecord] = []
        with self._lock:
            for upload in uploads:
                record = FileRecord(file_name=upload.file_name)
                self._records.append(record)
                self._jobs.append(self._executor.submit(self._process, record, upload))
                created.append(record.copy())
        log.info("Queued %s file(s)", len(created))
        return created

    def _process(self, record: FileRecord, upload: ImageUpload) -> None:
        try:
            data = self._extractor(upload)
        except Exception as exc:
            log.error("Extraction error for %s: %s", record.file_name, exc, exc_info=True)
            with self._lock:
                record.mark_error(str(exc) or "Failed to extract")
        else:
            with self._lock:
                record.mark_success(data)

        if self._listener is not None:
            self._listener(record.copy())

    def records(self) -> List[FileRecord]:
        with self._lock:
            return [record.copy() for record in self._records]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def busy(self) -> bool:
        with self._lock:
            self._jobs = [job for job in self._jobs if not job.done()]
            return bool(self._jobs)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued job has finished. Returns False on timeout."""
        with self._lock:
            jobs = list(self._jobs)
        _done, not_done = wait(jobs, timeout=timeout)
        return not not_done

    def reset(self) -> int:
        """Drop all records. Jobs that have not started yet are cancelled."""
        with self._lock:
            cleared = len(self._records)
            cancelled = sum(1 for job in self._jobs if job.cancel())
            self._records = []
            self._jobs = [job for job in self._jobs if not job.done()]
        log.info("Cleared %s record(s), cancelled %s pending job(s)", cleared, cancelled)
        return cleared

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
