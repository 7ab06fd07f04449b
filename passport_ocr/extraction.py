"""Gemini round-trip for one passport image."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .errors import ExtractionError
from .imaging import DEFAULT_MAX_WIDTH, preprocess_image
from .models import ImageUpload
from .parsing import parse_response

log = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

EXTRACTION_PROMPT = """Extract passport data. Respond with ONLY valid JSON, NO markdown:

{"passportNo":"","fullName":"","dateOfBirth":"DD MMM YYYY","placeOfBirth":"","dateOfIssue":"DD MMM YYYY","dateOfExpiry":"DD MMM YYYY","nationality":"","gender":"","issuingAuthority":""}

Read MRZ (bottom). Use "" for missing."""

_RELAXED_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)

GENERATION_CONFIG = types.GenerateContentConfig(
    temperature=0.05,
    top_p=0.1,
    top_k=20,
    max_output_tokens=4096,
    safety_settings=[
        types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
        for category in _RELAXED_CATEGORIES
    ],
)

MSG_INVALID_KEY = "Invalid API key"
MSG_QUOTA = "Quota exceeded. Please wait or try tomorrow."
MSG_FORBIDDEN = "API access forbidden"
MSG_MODEL_NOT_FOUND = "Model not found"
MSG_SAFETY = "Image blocked by safety filters"
MSG_INVALID_RESPONSE = "Invalid response from Gemini AI"


def resolve_model() -> str:
    return os.environ.get("PASSPORT_OCR_MODEL", "").strip() or DEFAULT_MODEL


def build_client(api_key: str) -> "genai.Client":
    if not api_key:
        raise ExtractionError("Please configure API key first")
    return genai.Client(api_key=api_key)


# ---------- Error mapping ----------


def _describe_api_error(exc: "genai_errors.APIError") -> ExtractionError:
    details = exc.details if isinstance(exc.details, dict) else {}
    error_body = details.get("error")
    if not isinstance(error_body, dict) and "code" in details:
        error_body = details

    if isinstance(error_body, dict):
        message = error_body.get("message") or details.get("message") or f"HTTP {exc.code}"
        reasons: List[str] = [str(error_body.get("status") or "")]
        for item in error_body.get("details") or []:
            if isinstance(item, dict) and item.get("reason"):
                reasons.append(str(item["reason"]))
    else:
        # Body was not JSON; the SDK hands back the raw text as the message.
        raw = str(details.get("message") or exc.message or "")
        message = f"API Error {exc.code}: {raw[:200]}"
        reasons = [str(exc.status or "")]

    return ExtractionError(str(message), status_code=exc.code, reasons=reasons)


def friendly_error_message(exc: BaseException) -> Optional[str]:
    """Map a failure onto one of the fixed user-facing messages, if it matches."""
    text = str(exc)
    status_code = getattr(exc, "status_code", None)
    markers = " ".join([text, *getattr(exc, "reasons", ())])

    if status_code == 401 or "401" in text or "API_KEY_INVALID" in markers:
        return MSG_INVALID_KEY
    if (
        status_code == 429
        or "429" in text
        or "quota" in markers
        or "RESOURCE_EXHAUSTED" in markers
    ):
        return MSG_QUOTA
    if status_code == 403 or "403" in text:
        return MSG_FORBIDDEN
    if status_code == 404 or "404" in text:
        return MSG_MODEL_NOT_FOUND
    if "SAFETY" in markers:
        return MSG_SAFETY
    return None


# ---------- Request ----------


def _finish_reason_name(candidate: Any) -> str:
    reason = getattr(candidate, "finish_reason", None)
    if reason is None:
        return ""
    return str(getattr(reason, "name", reason))


def _first_text(response: Any) -> str:
    candidates = getattr(response, "candidates", None) or []
    first = candidates[0] if candidates else None
    content = getattr(first, "content", None)
    parts = getattr(content, "parts", None) or []
    text = getattr(parts[0], "text", None) if parts else None

    if not text:
        log.error("Invalid response: %r", response)
        if _finish_reason_name(first) == "SAFETY":
            raise ExtractionError(MSG_SAFETY, reasons=["SAFETY"])
        raise ExtractionError(MSG_INVALID_RESPONSE)
    return text.strip()


def _build_contents(image: ImageUpload) -> List[Dict[str, Any]]:
    return [
        {
            "role": "user",
            "parts": [
                {"text": EXTRACTION_PROMPT},
                {"inline_data": {"mime_type": image.mime_type or "image/jpeg", "data": image.data}},
            ],
        }
    ]


def request_extraction(client: Any, image: ImageUpload, model: str = DEFAULT_MODEL) -> str:
    """Send *image* to Gemini and return the raw text of the first candidate."""
    log.info("Sending %s to %s", image.file_name, model)
    try:
        response = client.models.generate_content(
            model=model,
            contents=_build_contents(image),
            config=GENERATION_CONFIG,
        )
    except genai_errors.APIError as exc:
        log.error("API error for %s: %s", image.file_name, exc)
        raise _describe_api_error(exc) from exc

    content = _first_text(response)
    log.debug("AI response length=%s raw=%s", len(content), content[:300])
    return content


def extract_passport(
    upload: ImageUpload,
    client: Any,
    model: str = DEFAULT_MODEL,
    max_width: int = DEFAULT_MAX_WIDTH,
) -> Dict[str, str]:
    """Run the full pipeline for one image: preprocess, call Gemini, parse, normalize."""
    try:
        image = preprocess_image(upload, max_width=max_width)
        raw = request_extraction(client, image, model=model)
        return parse_response(raw)
    except Exception as exc:
        friendly = friendly_error_message(exc)
        if friendly is None:
            raise
        log.info("Mapped extraction error for %s: %s -> %s", upload.file_name, exc, friendly)
        raise ExtractionError(
            friendly,
            status_code=getattr(exc, "status_code", None),
            reasons=getattr(exc, "reasons", ()),
        ) from exc
