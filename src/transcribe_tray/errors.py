"""Exceptions shared across the pipeline."""

from __future__ import annotations


class RecordingError(RuntimeError):
    """The microphone is unavailable or a recording produced no audio."""


class InputInjectionError(RuntimeError):
    """Keystrokes could not be posted."""


class ClipboardError(RuntimeError):
    pass


class ApiError(RuntimeError):
    """Any failure talking to the transcription service."""


class ChannelClosed(RuntimeError):
    """The local task handler is gone, so a task or its reply cannot be delivered."""
