from __future__ import annotations

import logging
import subprocess
from enum import Enum

LOGGER = logging.getLogger(__name__)


class Notification(Enum):
    START_POLISHING = ("Polishing", "Polishing the text in your clipboard...")
    POLISH_SUCCESS = ("Polished", "The polished text is in your clipboard")
    TRANSCRIBE_SUCCESS = ("Transcribed", "The transcription is in your clipboard")
    API_ERROR = ("Something went wrong", "The transcription service could not be reached")
    EMPTY_CLIPBOARD = ("Empty clipboard", "We couldn't find any text in your clipboard to polish")

    @property
    def title(self) -> str:
        return self.value[0]

    @property
    def body(self) -> str:
        return self.value[1]


def _applescript_string(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class Notifier:
    """Posts macOS user notifications; never raises."""

    def __init__(self, app_title: str = "TranscribeTray", timeout_seconds: float = 2.0) -> None:
        self.app_title = app_title
        self.timeout_seconds = timeout_seconds

    def notify(self, kind: Notification) -> None:
        script = (
            f"display notification {_applescript_string(kind.body)} "
            f"with title {_applescript_string(self.app_title)} "
            f"subtitle {_applescript_string(kind.title)}"
        )
        try:
            completed = subprocess.run(
                ["osascript", "-e", script],
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except (OSError, subprocess.SubprocessError):
            LOGGER.warning("Unable to show notification %s", kind.name, exc_info=True)
            return

        if completed.returncode != 0:
            LOGGER.warning("Notification %s failed: %s", kind.name, completed.stderr.strip())
