from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

LOGGER = logging.getLogger(__name__)

APP_DIR = Path.home() / "Library" / "Application Support" / "TranscribeTray"
CONFIG_PATH = APP_DIR / "config.json"
API_KEY_ENV = "TRANSCRIBE_API_KEY"


@dataclass
class AppConfig:
    api_base_url: str = "http://127.0.0.1:8000"
    transcribe_language: str = "en"
    transcribe_model: str = "whisper-large-v3"
    request_timeout_ms: int = 30000
    pause_media_while_recording: bool = True
    media_app_name: str = "Spotify"
    audio_channels: int = 1
    hotkeys_enabled: bool = True
    toggle_hotkey: str = "cmd+shift+space"
    polish_hotkey: str = "cmd+shift+p"
    trigger_workers: int = 4

    def validate(self) -> None:
        if not self.api_base_url.startswith(("http://", "https://")):
            raise ValueError(f"Unsupported api_base_url: {self.api_base_url}")
        if not self.transcribe_language.strip():
            raise ValueError("transcribe_language cannot be empty")
        if not self.transcribe_model.strip():
            raise ValueError("transcribe_model cannot be empty")
        if self.request_timeout_ms < 1000:
            raise ValueError("request_timeout_ms must be >= 1000")
        if not self.media_app_name.strip():
            raise ValueError("media_app_name cannot be empty")
        if self.audio_channels not in {1, 2}:
            raise ValueError("audio_channels must be 1 or 2")
        if not self.toggle_hotkey.strip() or not self.polish_hotkey.strip():
            raise ValueError("hotkeys cannot be empty")
        if self.toggle_hotkey.strip().lower() == self.polish_hotkey.strip().lower():
            raise ValueError("toggle_hotkey and polish_hotkey must differ")
        if self.trigger_workers < 1 or self.trigger_workers > 16:
            raise ValueError("trigger_workers must be between 1 and 16")

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000.0


def api_key_from_env() -> str | None:
    value = os.getenv(API_KEY_ENV, "").strip()
    return value or None


class ConfigStore:
    def __init__(self, path: Path = CONFIG_PATH) -> None:
        self.path = path

    def ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> AppConfig:
        self.ensure_dir()
        try:
            raw_text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            cfg = AppConfig()
            self.save(cfg)
            return cfg

        try:
            raw = json.loads(raw_text)
            known_keys = {f.name for f in fields(AppConfig)}
            cfg = AppConfig(**{k: v for k, v in raw.items() if k in known_keys})
            cfg.validate()
            return cfg
        except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as exc:
            LOGGER.warning("Config file corrupt or invalid, using defaults: %s", exc)
            return AppConfig()

    def save(self, config: AppConfig) -> None:
        config.validate()
        self.ensure_dir()
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(
            json.dumps(asdict(config), indent=2, sort_keys=True),
            encoding="utf-8",
        )
        os.replace(str(tmp_path), str(self.path))
