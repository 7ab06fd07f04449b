"""Tests for batch acceptance and the sequential file queue."""

from __future__ import annotations

import threading
from typing import Dict, List

import pytest

from passport_ocr import BatchRejected, FileQueue, ImageUpload, accept_batch
from passport_ocr.models import PASSPORT_FIELDS, STATUS_ERROR, STATUS_PROCESSING, STATUS_SUCCESS, FileRecord
from passport_ocr.parsing import normalize_record
from passport_ocr.processing import rejection_notice
from tests.helpers import make_upload


def _text_file(name: str = "notes.txt") -> ImageUpload:
    return ImageUpload(file_name=name, mime_type="text/plain", data=b"hello")


# =========================================================================
# 1. Batch acceptance
# =========================================================================


class TestAcceptBatch:
    def test_missing_key_rejects_whole_batch(self):
        with pytest.raises(BatchRejected) as info:
            accept_batch([make_upload()], api_key="")
        assert info.value.needs_settings is True

    def test_filters_non_images(self):
        uploads = [make_upload("a.png"), _text_file(), make_upload("b.png")]
        accepted, rejected = accept_batch(uploads, api_key="AIzaTest")
        assert [u.file_name for u in accepted] == ["a.png", "b.png"]
        assert rejected == ["notes.txt"]

    def test_all_rejected(self):
        with pytest.raises(BatchRejected, match="Please upload image files") as info:
            accept_batch([_text_file(), ImageUpload("blank", "", b"")], api_key="AIzaTest")
        assert info.value.needs_settings is False

    def test_empty_batch_rejected(self):
        with pytest.raises(BatchRejected):
            accept_batch([], api_key="AIzaTest")

    def test_rejection_notice(self):
        assert rejection_notice([]) is None
        assert rejection_notice(["a.pdf", "b.txt"]) == "Skipped 2 non-image file(s): a.pdf, b.txt"


# =========================================================================
# 2. FileRecord state machine
# =========================================================================


class TestFileRecord:
    def test_defaults(self):
        record = FileRecord(file_name="x.png")
        assert record.status == STATUS_PROCESSING
        assert tuple(record.data) == PASSPORT_FIELDS
        assert set(record.data.values()) == {""}
        assert record.error is None
        assert record.id

    def test_ids_are_unique(self):
        assert len({FileRecord(file_name="x").id for _ in range(200)}) == 200

    def test_no_transition_out_of_terminal_state(self):
        record = FileRecord(file_name="x.png")
        record.mark_error("boom")
        with pytest.raises(ValueError):
            record.mark_success(normalize_record({}))
        assert record.status == STATUS_ERROR

    def test_to_dict_shape(self):
        payload = FileRecord(file_name="x.png").to_dict()
        assert set(payload) == {"id", "fileName", "status", "data", "error"}


# =========================================================================
# 3. Queue
# =========================================================================


class RecordingExtractor:
    """Fake extractor that records what the queue looked like at each call."""

    def __init__(self, failing: tuple = ()) -> None:
        self.queue: FileQueue = None  # set after construction
        self.calls: List[str] = []
        self.snapshots: List[Dict[str, str]] = []
        self.active = 0
        self.max_active = 0
        self.failing = failing
        self._lock = threading.Lock()

    def __call__(self, upload: ImageUpload) -> Dict[str, str]:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.calls.append(upload.file_name)
            self.snapshots.append({r.file_name: r.status for r in self.queue.records()})
            if upload.file_name in self.failing:
                raise RuntimeError(f"cannot read {upload.file_name}")
            return normalize_record({"passportNo": upload.file_name.split(".")[0]})
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def recording():
    extractor = RecordingExtractor(failing=("two.png",))
    queue = FileQueue(extractor)
    extractor.queue = queue
    yield extractor, queue
    queue.shutdown()


class TestFileQueue:
    def test_sequential_in_submission_order(self, recording):
        extractor, queue = recording
        names = ["one.png", "two.png", "three.png"]
        created = queue.submit([make_upload(name) for name in names])
        assert [r.file_name for r in created] == names
        assert all(r.status == STATUS_PROCESSING for r in created)

        assert queue.wait(timeout=10)
        assert extractor.calls == names
        assert extractor.max_active == 1

        # When file N starts, every earlier file is already terminal.
        for position, snapshot in enumerate(extractor.snapshots):
            for earlier in names[:position]:
                assert snapshot[earlier] in (STATUS_SUCCESS, STATUS_ERROR)
            for later in names[position:]:
                assert snapshot[later] == STATUS_PROCESSING

    def test_failure_isolated_to_its_record(self, recording):
        _extractor, queue = recording
        queue.submit([make_upload(n) for n in ("one.png", "two.png", "three.png")])
        queue.wait(timeout=10)

        records = queue.records()
        assert [r.status for r in records] == [STATUS_SUCCESS, STATUS_ERROR, STATUS_SUCCESS]
        assert records[0].data["passportNo"] == "ONE"
        assert records[1].error == "cannot read two.png"
        assert records[1].data == normalize_record({})
        assert records[2].error is None

    def test_empty_error_message_gets_default(self):
        def extractor(upload):
            raise RuntimeError()

        queue = FileQueue(extractor)
        queue.submit([make_upload()])
        queue.wait(timeout=10)
        assert queue.records()[0].error == "Failed to extract"
        queue.shutdown()

    def test_listener_called_per_file(self):
        seen = []
        queue = FileQueue(lambda upload: normalize_record({}), listener=seen.append)
        queue.submit([make_upload("a.png"), make_upload("b.png")])
        queue.wait(timeout=10)
        assert [r.file_name for r in seen] == ["a.png", "b.png"]
        assert all(r.status == STATUS_SUCCESS for r in seen)
        queue.shutdown()

    def test_records_returns_copies(self, recording):
        _extractor, queue = recording
        queue.submit([make_upload("one.png")])
        queue.wait(timeout=10)
        snapshot = queue.records()
        snapshot[0].data["passportNo"] = "TAMPERED"
        assert queue.records()[0].data["passportNo"] == "ONE"

    def test_busy_until_done(self):
        release = threading.Event()

        def extractor(upload):
            release.wait(timeout=10)
            return normalize_record({})

        queue = FileQueue(extractor)
        queue.submit([make_upload()])
        assert queue.busy is True
        release.set()
        assert queue.wait(timeout=10)
        assert queue.busy is False
        queue.shutdown()

    def test_reset_clears_everything_and_cancels_pending(self):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def extractor(upload):
            calls.append(upload.file_name)
            started.set()
            release.wait(timeout=10)
            return normalize_record({})

        queue = FileQueue(extractor)
        queue.submit([make_upload("a.png"), make_upload("b.png"), make_upload("c.png")])
        assert started.wait(timeout=10)

        assert queue.reset() == 3
        assert queue.records() == []
        release.set()
        queue.wait(timeout=10)
        queue.shutdown()

        assert calls == ["a.png"]
        assert queue.records() == []

    def test_submit_after_reset_starts_fresh(self, recording):
        _extractor, queue = recording
        queue.submit([make_upload("one.png")])
        queue.wait(timeout=10)
        queue.reset()
        queue.submit([make_upload("three.png")])
        queue.wait(timeout=10)
        assert [r.file_name for r in queue.records()] == ["three.png"]
        assert len(queue) == 1
