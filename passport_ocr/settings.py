"""Persisted settings: a single JSON entry holding the Gemini API key."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

SETTINGS_KEY = "passportOcrSettings"
DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent / "configs"
API_KEY_PREFIX = "AIza"


def resolve_config_dir() -> Path:
    env_dir = os.environ.get("PASSPORT_OCR_CONFIG_DIR")
    if env_dir and env_dir.strip():
        return Path(env_dir.strip()).expanduser()
    return DEFAULT_CONFIG_DIR


@dataclass
class Settings:
    api_key: str = ""


class SettingsStore:
    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = config_dir or resolve_config_dir()

    @property
    def path(self) -> Path:
        return self.config_dir / f"{SETTINGS_KEY}.json"

    def load(self) -> Settings:
        env_key = os.environ.get("GOOGLE_API_KEY")
        if env_key and env_key.strip():
            return Settings(api_key=env_key.strip())

        if not self.path.exists():
            return Settings()
        try:
            saved = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log.error("Failed to load settings from %s: %s", self.path, exc)
            return Settings()

        if not isinstance(saved, dict):
            return Settings()
        return Settings(api_key=str(saved.get("apiKey") or ""))

    def save(self, settings: Settings) -> Path:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"apiKey": settings.api_key}), encoding="utf-8")
        return self.path


def api_key_warning(api_key: str) -> Optional[str]:
    if api_key and not api_key.startswith(API_KEY_PREFIX):
        return f'Google AI key should start with "{API_KEY_PREFIX}..."'
    return None
