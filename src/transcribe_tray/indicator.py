from __future__ import annotations

import logging
import threading
from enum import Enum

LOGGER = logging.getLogger(__name__)


class Icon(str, Enum):
    DEFAULT = "Default"
    RECORDING = "Recording"
    TRANSCRIBING = "Transcribing"
    CLEANSING = "Cleansing"


ICON_TITLES = {
    Icon.DEFAULT: "🎙",
    Icon.RECORDING: "🔴",
    Icon.TRANSCRIBING: "⏳",
    Icon.CLEANSING: "💅",
}


class TrayIndicator:
    """Current phase shown in the menu bar.

    Written from any thread; the menu bar controller reads ``current`` on its
    own timer, so writers never touch AppKit.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._icon = Icon.DEFAULT

    @property
    def current(self) -> Icon:
        with self._lock:
            return self._icon

    def set(self, icon: Icon) -> None:
        with self._lock:
            changed = icon != self._icon
            self._icon = icon
        if changed:
            LOGGER.debug("Indicator -> %s", icon.value)
