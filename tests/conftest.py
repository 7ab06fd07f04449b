"""Shared fixtures for the passport OCR test suite.

Gemini is never contacted: tests use fake clients that replay canned
responses, and images are generated in memory with Pillow.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from passport_ocr.models import ImageUpload
from tests.helpers import PASSPORT_JSON, make_upload

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("PASSPORT_OCR_MODEL", raising=False)
    monkeypatch.delenv("PASSPORT_OCR_CONFIG_DIR", raising=False)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "configs"


@pytest.fixture
def png_upload() -> ImageUpload:
    return make_upload()


@pytest.fixture
def passport_json() -> str:
    return PASSPORT_JSON
