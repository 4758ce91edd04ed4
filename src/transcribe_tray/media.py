from __future__ import annotations

import logging
import subprocess

LOGGER = logging.getLogger(__name__)


class MediaPlayer:
    """Pauses an AppleScript-controllable player while recording and resumes it afterwards.

    Only the local task handler calls this, one toggle at a time, so it keeps no lock.
    """

    def __init__(self, app_name: str = "Spotify", enabled: bool = True, timeout_seconds: float = 2.0) -> None:
        self.app_name = app_name
        self.enabled = enabled
        self.timeout_seconds = max(timeout_seconds, 0.2)
        self.was_playing = False

    def pause(self) -> bool:
        if not self.enabled:
            return False
        if not self._is_running():
            return False

        state = self._run_osascript(f'tell application "{self.app_name}" to player state')
        if state is None or state.strip() != "playing":
            return False

        if self._run_osascript(f'tell application "{self.app_name}" to pause', warn_on_error=True) is None:
            return False

        self.was_playing = True
        LOGGER.info("Paused %s for recording", self.app_name)
        return True

    def resume(self) -> bool:
        if not self.was_playing:
            return False

        self.was_playing = False
        if self._run_osascript(f'tell application "{self.app_name}" to play', warn_on_error=True) is None:
            return False

        LOGGER.info("Resumed %s", self.app_name)
        return True

    def _is_running(self) -> bool:
        # Asking a closed player for its state would launch it.
        result = self._run_osascript(
            f'tell application "System Events" to (name of processes) contains "{self.app_name}"'
        )
        return result is not None and result.strip() == "true"

    def _run_osascript(self, script: str, warn_on_error: bool = False) -> str | None:
        try:
            completed = subprocess.run(
                ["osascript", "-e", script],
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError:
            LOGGER.debug("osascript command not found; media control unavailable")
            return None
        except subprocess.SubprocessError:
            LOGGER.debug("osascript command failed unexpectedly", exc_info=True)
            return None

        if completed.returncode != 0:
            if warn_on_error:
                LOGGER.warning("Media control command failed: %s", completed.stderr.strip())
            else:
                LOGGER.debug("Media state query failed: %s", completed.stderr.strip())
            return None

        return completed.stdout
