"""Fake Gemini client and in-memory image builders shared by the tests."""

from __future__ import annotations

import io
from types import SimpleNamespace
from typing import Any, List, Optional

from PIL import Image

from passport_ocr.models import ImageUpload

PASSPORT_JSON = (
    '{"passportNo":"ab1234567","fullName":"DOE, JANE","dateOfBirth":"05 JAN 1990",'
    '"placeOfBirth":"LONDON","dateOfIssue":"01 MAR 2020","dateOfExpiry":"01 MAR 2030",'
    '"nationality":"GBR","gender":"Female","issuingAuthority":"HMPO"}'
)


def make_image_bytes(width: int = 64, height: int = 40, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def make_upload(name: str = "passport.png", width: int = 64, height: int = 40) -> ImageUpload:
    return ImageUpload(file_name=name, mime_type="image/png", data=make_image_bytes(width, height))


def make_response(text: Optional[str] = None, finish_reason: Any = None) -> SimpleNamespace:
    parts = [SimpleNamespace(text=text)] if text is not None else []
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts), finish_reason=finish_reason)
    return SimpleNamespace(candidates=[candidate])


class FakeModels:
    def __init__(self, replies: List[Any]) -> None:
        self._replies = list(replies)
        self.calls: List[dict] = []

    def generate_content(self, model: str, contents: Any, config: Any) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeClient:
    """Stands in for ``google.genai.Client`` and replays *replies* in order."""

    def __init__(self, *replies: Any) -> None:
        self.models = FakeModels(list(replies))
