"""Turn Gemini's raw reply into a fixed-shape passport record.

Strict JSON is tried first. When the model wraps the object in prose, markdown
fences, or produces something that does not parse, the fallback table below
recovers what it can field by field. The fallback is a best-effort heuristic:
a field it cannot find is left empty, it never raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .models import PASSPORT_FIELDS

log = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_DATE = r"([0-9]{1,2}\s+[A-Z]{3}\s+[0-9]{4})"

# (field, patterns tried in order, characters stripped from the match)
FALLBACK_RULES: List[Tuple[str, Tuple[re.Pattern[str], ...], str]] = [
    (
        "passportNo",
        (
            re.compile(r'passport[^:]*:\s*"?([A-Z0-9]{6,12})', re.IGNORECASE),
            re.compile(r"[A-Z]{1,2}[0-9]{7,9}"),
        ),
        '",',
    ),
    (
        "fullName",
        (re.compile(r'(?:name|surname)[^:]*:\s*"?([^"\n,]+(?:,\s*[^"\n,]+)?)', re.IGNORECASE),),
        '"',
    ),
    ("dateOfBirth", (re.compile(r'birth[^:]*:\s*"?' + _DATE, re.IGNORECASE),), '",'),
    ("placeOfBirth", (re.compile(r'place[^:]*:\s*"?([^"\n,]+)', re.IGNORECASE),), '",'),
    ("dateOfIssue", (re.compile(r'issue[^:]*:\s*"?' + _DATE, re.IGNORECASE),), '",'),
    ("dateOfExpiry", (re.compile(r'expir[^:]*:\s*"?' + _DATE, re.IGNORECASE),), '",'),
    ("nationality", (re.compile(r'nationality[^:]*:\s*"?([A-Z]{2,3})', re.IGNORECASE),), '",'),
    ("gender", (re.compile(r'gender[^:]*:\s*"?(Male|Female)', re.IGNORECASE),), '",'),
    (
        "issuingAuthority",
        (re.compile(r'(?:authority|issued by)[^:]*:\s*"?([^"\n,]+)', re.IGNORECASE),),
        '",',
    ),
]


def normalize_record(data: Any) -> Dict[str, str]:
    """Coerce *data* into exactly the nine passport fields as trimmed strings."""
    source = data if isinstance(data, dict) else {}
    record: Dict[str, str] = {}
    for name in PASSPORT_FIELDS:
        value = source.get(name)
        record[name] = str(value if value else "").strip()
    record["passportNo"] = record["passportNo"].upper()
    return record


def _extract_pattern(text: str, patterns: Tuple[re.Pattern[str], ...], strip_chars: str) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        value = match.group(1) if pattern.groups else match.group(0)
        for char in strip_chars:
            value = value.replace(char, "")
        return value.strip()
    return ""


def fallback_extract(text: str) -> Dict[str, str]:
    return {
        name: _extract_pattern(text, patterns, strip_chars)
        for name, patterns, strip_chars in FALLBACK_RULES
    }


def locate_json_text(raw: str) -> str:
    """Return the most likely JSON object text inside a model reply."""
    content = raw.strip()
    if "```" in content:
        fenced = _FENCE_RE.search(content)
        if fenced:
            content = fenced.group(1).strip()

    match = _OBJECT_RE.search(content)
    if match:
        content = match.group(0)
    return content


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_response(raw: Optional[str]) -> Dict[str, str]:
    content = locate_json_text(raw or "")
    structured = _load_object(content)
    if structured is None:
        log.warning("JSON parse failed, using fallback extraction")
        log.debug("Failed content: %s", content[:300])
        structured = fallback_extract(content)
    else:
        log.debug("JSON parsed successfully")
    return normalize_record(structured)
