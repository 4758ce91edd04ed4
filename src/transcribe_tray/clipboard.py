from __future__ import annotations

import logging
import subprocess

from transcribe_tray.errors import ClipboardError

LOGGER = logging.getLogger(__name__)


class Clipboard:
    def __init__(self, timeout_seconds: float = 10.0) -> None:
        self.timeout_seconds = timeout_seconds

    def read_text(self) -> str:
        result = self._run(["pbpaste"])
        if result.returncode != 0:
            raise ClipboardError(f"pbpaste failed: {result.stderr.strip()}")
        return result.stdout

    def write_text(self, text: str) -> None:
        result = self._run(["pbcopy"], input_text=text)
        if result.returncode != 0:
            raise ClipboardError(f"pbcopy failed: {result.stderr.strip()}")

    def _run(self, cmd: list[str], input_text: str | None = None) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                cmd,
                input=input_text,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise ClipboardError(f"{cmd[0]} unavailable: {exc}") from exc
