"""Recording and polishing flows, run on trigger worker threads.

These never touch the microphone or the keyboard directly: the steps that
need them are sent to the local task handler as tasks.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Protocol

from transcribe_tray.errors import ApiError, ChannelClosed, ClipboardError
from transcribe_tray.indicator import Icon, TrayIndicator
from transcribe_tray.notifications import Notification
from transcribe_tray.tasks import PasteFromClipboard, Task, TaskChannel, ToggleRecording, UndoText

LOGGER = logging.getLogger(__name__)


class TranscriptionService(Protocol):
    def fetch_transcription(self, audio: bytes) -> str:
        ...

    def clean_transcription(self, text: str) -> str:
        ...


class ClipboardLike(Protocol):
    def read_text(self) -> str:
        ...

    def write_text(self, text: str) -> None:
        ...


class NotifierLike(Protocol):
    def notify(self, kind: Notification) -> None:
        ...


class CleansingGuard:
    """Single-flight flag for the polish workflow."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active = False

    @property
    def is_held(self) -> bool:
        with self._lock:
            return self._active

    def try_acquire(self) -> bool:
        with self._lock:
            if self._active:
                return False
            self._active = True
            return True

    def release(self) -> None:
        with self._lock:
            self._active = False


@dataclass
class AppContext:
    tasks: TaskChannel
    client: TranscriptionService
    clipboard: ClipboardLike
    notifier: NotifierLike
    indicator: TrayIndicator
    cleansing_guard: CleansingGuard


def _submit(context: AppContext, task: Task) -> None:
    if not context.tasks.send(task):
        raise ChannelClosed(f"Unable to send {type(task).__name__}: task channel closed")


def toggle_recording(context: AppContext, paste_from_clipboard: bool = False) -> None:
    """Start a recording, or stop it and put its transcription on the clipboard.

    With ``paste_from_clipboard`` the transcription is pasted into the focused
    app instead of announced with a notification.
    """
    task = ToggleRecording()
    try:
        _submit(context, task)
    except ChannelClosed as exc:
        LOGGER.error("Failed to send 'ToggleRecording' task: %s", exc)
        return

    try:
        recording = task.reply.result()
    except Exception as exc:
        # RecordingError when nothing was captured, anything else if the handler failed
        LOGGER.error("Recording toggle failed: %s", exc)
        context.indicator.set(Icon.DEFAULT)
        return

    if not recording:
        LOGGER.info("Recording started")
        context.indicator.set(Icon.RECORDING)
        return

    try:
        _transcribe_to_clipboard(context, recording, paste_from_clipboard)
    finally:
        context.indicator.set(Icon.DEFAULT)


def _transcribe_to_clipboard(context: AppContext, recording: bytes, paste_from_clipboard: bool) -> None:
    context.indicator.set(Icon.TRANSCRIBING)

    try:
        text = context.client.fetch_transcription(recording)
    except ApiError as exc:
        LOGGER.error("Failed to fetch transcription: %s", exc)
        context.notifier.notify(Notification.API_ERROR)
        return

    LOGGER.info("Transcription text: %s", text)

    try:
        context.clipboard.write_text(text)
    except ClipboardError as exc:
        LOGGER.error("Failed to write transcription to clipboard: %s", exc)
        return

    if not paste_from_clipboard:
        context.notifier.notify(Notification.TRANSCRIBE_SUCCESS)
        return

    try:
        _submit(context, PasteFromClipboard())
    except ChannelClosed as exc:
        LOGGER.error("Failed to send 'PasteFromClipboard' task: %s", exc)


def cleanse_clipboard(context: AppContext, paste_after: bool = False) -> None:
    """Polish the clipboard text through the service and write the result back.

    With ``paste_after`` the previous insertion is undone and the polished text
    pasted in its place. The undo must have landed before the paste is sent,
    otherwise both key strokes reach the focused field interleaved.
    """
    try:
        clipboard_text = context.clipboard.read_text()
    except ClipboardError as exc:
        LOGGER.error("Failed to read from clipboard: %s", exc)
        clipboard_text = ""

    if not clipboard_text:
        context.notifier.notify(Notification.EMPTY_CLIPBOARD)
        return

    guard = context.cleansing_guard
    if not guard.try_acquire():
        LOGGER.warning("Already cleansing. Skipping.")
        return

    try:
        _cleanse(context, clipboard_text, paste_after)
    finally:
        context.indicator.set(Icon.DEFAULT)
        guard.release()
        LOGGER.info("Cleansing finished; guard released")


def _cleanse(context: AppContext, clipboard_text: str, paste_after: bool) -> None:
    context.indicator.set(Icon.CLEANSING)
    context.notifier.notify(Notification.START_POLISHING)
    LOGGER.info("Starting polish of %d chars", len(clipboard_text))

    try:
        cleansed = context.client.clean_transcription(clipboard_text)
    except ApiError as exc:
        LOGGER.error("Failed to polish clipboard text: %s", exc)
        context.notifier.notify(Notification.API_ERROR)
        return

    try:
        context.clipboard.write_text(cleansed)
    except ClipboardError as exc:
        LOGGER.error("Failed to write polished text to clipboard: %s", exc)
        return

    if not paste_after:
        context.notifier.notify(Notification.POLISH_SUCCESS)
        return

    undo = UndoText()
    try:
        _submit(context, undo)
        undo.reply.result()
    except Exception as exc:
        LOGGER.error("Undo before paste failed, not pasting: %s", exc)
        return

    try:
        _submit(context, PasteFromClipboard())
    except ChannelClosed as exc:
        LOGGER.error("Failed to send 'PasteFromClipboard' task: %s", exc)
