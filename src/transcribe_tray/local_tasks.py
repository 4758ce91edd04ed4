"""The thread that owns the microphone, the keystroke injector and the media player.

Neither the capture stream nor the Quartz event source may be used from more
than one thread, so both are created on, and only ever touched from, the
``local-task-handler`` thread. Everything else reaches them by sending a
``Task`` through the ``TaskChannel``; tasks are handled one at a time in the
order they were sent.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from transcribe_tray.config import AppConfig
from transcribe_tray.errors import ChannelClosed, RecordingError
from transcribe_tray.indicator import Icon, TrayIndicator
from transcribe_tray.keyboard import KeystrokeInjector
from transcribe_tray.media import MediaPlayer
from transcribe_tray.tasks import (
    PasteFromClipboard,
    Task,
    TaskChannel,
    ToggleRecording,
    UndoText,
    fail_reply,
    send_reply,
)

LOGGER = logging.getLogger(__name__)

RECV_POLL_SECONDS = 0.25
SHUTDOWN_GRACE_SECONDS = 5.0
# pause: running check, state query, pause; resume: play
MEDIA_CALLS_PER_TOGGLE = 4


def _default_recorder(config: AppConfig) -> Any:
    from transcribe_tray.audio import AudioConfig, AudioRecorder

    return AudioRecorder(AudioConfig(channels=config.audio_channels))


def _default_media_player(config: AppConfig) -> MediaPlayer:
    return MediaPlayer(app_name=config.media_app_name, enabled=config.pause_media_while_recording)


class LocalTaskHandler:
    def __init__(
        self,
        channel: TaskChannel,
        indicator: TrayIndicator,
        config: AppConfig | None = None,
        recorder_factory: Callable[[AppConfig], Any] | None = None,
        injector_factory: Callable[[], Any] | None = None,
        media_player_factory: Callable[[AppConfig], Any] | None = None,
    ) -> None:
        self.channel = channel
        self.indicator = indicator
        self.config = config or AppConfig()
        self._recorder_factory = recorder_factory or _default_recorder
        self._injector_factory = injector_factory or KeystrokeInjector
        self._media_player_factory = media_player_factory or _default_media_player

        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._startup_error: BaseException | None = None

        self._recorder: Any = None
        self._injector: Any = None
        self._media_player: Any = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, timeout: float = 10.0) -> None:
        """Start the owner thread and wait until its resources exist.

        Raises whatever the resource constructors raised; the application
        cannot run without a microphone or keystroke injection.
        """
        if self.is_alive:
            return

        self._ready.clear()
        self._startup_error = None
        self._thread = threading.Thread(target=self._run, name="local-task-handler", daemon=True)
        self._thread.start()

        if not self._ready.wait(timeout):
            self.channel.close()
            raise RuntimeError(f"Local task handler did not start within {timeout:.1f}s")
        if self._startup_error is not None:
            raise self._startup_error

    @property
    def shutdown_timeout(self) -> float:
        """Long enough for a toggle whose media commands all time out."""
        media_timeout = float(getattr(self._media_player, "timeout_seconds", 0.0))
        return SHUTDOWN_GRACE_SECONDS + MEDIA_CALLS_PER_TOGGLE * media_timeout

    def submit(self, task: Task, timeout: float | None = None) -> bool:
        return self.channel.send(task, timeout=timeout)

    def shutdown(self, timeout: float | None = None) -> None:
        if timeout is None:
            timeout = self.shutdown_timeout
        self.channel.close()
        thread = self._thread
        if thread is not None and thread.is_alive():
            thread.join(timeout=timeout)
            if thread.is_alive():
                LOGGER.warning("Local task handler did not stop within %.1fs", timeout)
        self._thread = None

    def _run(self) -> None:
        try:
            self._recorder = self._recorder_factory(self.config)
            self._injector = self._injector_factory()
            self._media_player = self._media_player_factory(self.config)
        except Exception as exc:
            LOGGER.exception("Unable to initialise local resources")
            self._startup_error = exc
            self._ready.set()
            return

        self._ready.set()
        LOGGER.info("Local task handler running")

        task: Task | None = None
        try:
            while True:
                task = self.channel.recv(timeout=RECV_POLL_SECONDS)
                if task is None:
                    if self.channel.closed:
                        break
                    continue
                self._dispatch(task)
                task = None
        finally:
            self._abandon_pending(task)
            self._release_resources()
            LOGGER.info("Local task handler stopped")

    def _abandon_pending(self, current: Task | None) -> None:
        # Nothing is handled after this point; callers must not wait on replies.
        self.channel.close()
        if current is not None:
            fail_reply(current, ChannelClosed("Local task handler stopped"))
        while True:
            queued = self.channel.recv(timeout=0)
            if queued is None:
                break
            LOGGER.warning("Dropping %s: local task handler stopped", type(queued).__name__)
            fail_reply(queued, ChannelClosed("Local task handler stopped"))

    def _dispatch(self, task: Task) -> None:
        try:
            if isinstance(task, ToggleRecording):
                self._toggle_recording(task)
            elif isinstance(task, PasteFromClipboard):
                self._paste_from_clipboard()
            elif isinstance(task, UndoText):
                self._undo_text(task)
            else:
                LOGGER.warning("Ignoring unknown task: %r", task)
        except Exception as exc:
            LOGGER.exception("Local task %s failed", type(task).__name__)
            fail_reply(task, exc)
        except BaseException as exc:
            LOGGER.critical("Local task %s aborted the handler: %r", type(task).__name__, exc)
            fail_reply(task, ChannelClosed(f"Local task handler stopped: {exc!r}"))
            raise

    def _toggle_recording(self, task: ToggleRecording) -> None:
        recorder = self._recorder

        if not recorder.is_recording:
            self._pause_media()
            self.indicator.set(Icon.RECORDING)
            try:
                recorder.start_recording()
            except Exception:
                self.indicator.set(Icon.DEFAULT)
                self._resume_media()
                raise
            send_reply(task.reply, b"")
            return

        self.indicator.set(Icon.DEFAULT)
        try:
            recording = recorder.stop_recording_and_get_bytes()
        finally:
            self._resume_media()

        if not recording:
            LOGGER.error("Failed to stop recording: no audio captured")
            fail_reply(task, RecordingError("No audio captured"))
            return

        if not send_reply(task.reply, recording):
            LOGGER.error("Failed to deliver recording: requester stopped waiting")

    def _paste_from_clipboard(self) -> None:
        try:
            self._injector.paste()
        except Exception:
            LOGGER.warning("Paste keystroke failed", exc_info=True)

    def _undo_text(self, task: UndoText) -> None:
        try:
            self._injector.undo()
        except Exception:
            LOGGER.warning("Undo keystroke failed", exc_info=True)
        send_reply(task.reply, None)

    def _pause_media(self) -> None:
        try:
            self._media_player.pause()
        except Exception:
            LOGGER.warning("Pausing media failed", exc_info=True)

    def _resume_media(self) -> None:
        try:
            self._media_player.resume()
        except Exception:
            LOGGER.warning("Resuming media failed", exc_info=True)

    def _release_resources(self) -> None:
        recorder = self._recorder
        if recorder is not None and recorder.is_recording:
            LOGGER.info("Discarding recording in progress at shutdown")
            try:
                recorder.stop_recording_and_get_bytes()
            except Exception:
                LOGGER.warning("Unable to stop recording at shutdown", exc_info=True)
        # no-op unless this handler paused the player
        self._resume_media()
        self.indicator.set(Icon.DEFAULT)


__all__ = ["LocalTaskHandler"]
