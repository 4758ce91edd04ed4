from __future__ import annotations

import logging
import threading

from transcribe_tray.errors import InputInjectionError

LOGGER = logging.getLogger(__name__)

Z_KEYCODE = 6
V_KEYCODE = 9


class KeystrokeInjector:
    """Posts Cmd-modified key strokes through a Quartz event source.

    The event source belongs to the thread that created it; every stroke must
    be posted from that same thread.
    """

    def __init__(self) -> None:
        import Quartz

        self._quartz = Quartz
        self._source = Quartz.CGEventSourceCreate(Quartz.kCGEventSourceStateHIDSystemState)
        if self._source is None:
            raise InputInjectionError(
                "Unable to create keyboard event source. Check Accessibility permissions."
            )
        self._owner_thread = threading.get_ident()

    def paste(self) -> None:
        self._command_stroke(V_KEYCODE)

    def undo(self) -> None:
        self._command_stroke(Z_KEYCODE)

    def _command_stroke(self, keycode: int) -> None:
        if threading.get_ident() != self._owner_thread:
            raise InputInjectionError("Keystroke injector used outside its owning thread")

        Quartz = self._quartz
        down = Quartz.CGEventCreateKeyboardEvent(self._source, keycode, True)
        up = Quartz.CGEventCreateKeyboardEvent(self._source, keycode, False)
        if down is None or up is None:
            raise InputInjectionError(f"Unable to create key event for keycode {keycode}")

        Quartz.CGEventSetFlags(down, Quartz.kCGEventFlagMaskCommand)
        Quartz.CGEventSetFlags(up, Quartz.kCGEventFlagMaskCommand)
        Quartz.CGEventPost(Quartz.kCGHIDEventTap, down)
        Quartz.CGEventPost(Quartz.kCGHIDEventTap, up)
        LOGGER.debug("Posted Cmd+keycode %d", keycode)
