from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

import Quartz

LOGGER = logging.getLogger(__name__)

CMD_MASK = getattr(Quartz, "kCGEventFlagMaskCommand", 1 << 20)
OPTION_MASK = getattr(Quartz, "kCGEventFlagMaskAlternate", 1 << 19)
SHIFT_MASK = getattr(Quartz, "kCGEventFlagMaskShift", 1 << 17)
CONTROL_MASK = getattr(Quartz, "kCGEventFlagMaskControl", 1 << 18)
MODIFIER_MASK = CMD_MASK | OPTION_MASK | SHIFT_MASK | CONTROL_MASK

MODIFIERS = {
    "cmd": CMD_MASK,
    "command": CMD_MASK,
    "option": OPTION_MASK,
    "alt": OPTION_MASK,
    "shift": SHIFT_MASK,
    "ctrl": CONTROL_MASK,
    "control": CONTROL_MASK,
}

# ANSI virtual key codes
KEYCODES = {
    "a": 0, "s": 1, "d": 2, "f": 3, "h": 4, "g": 5, "z": 6, "x": 7, "c": 8, "v": 9,
    "b": 11, "q": 12, "w": 13, "e": 14, "r": 15, "y": 16, "t": 17,
    "1": 18, "2": 19, "3": 20, "4": 21, "6": 22, "5": 23, "9": 25, "7": 26, "8": 28, "0": 29,
    "o": 31, "u": 32, "i": 34, "p": 35, "l": 37, "j": 38, "k": 40, "n": 45, "m": 46,
    "space": 49,
}


@dataclass(frozen=True)
class HotkeyCombo:
    keycode: int
    modifiers: int

    def matches(self, keycode: int, flags: int) -> bool:
        return keycode == self.keycode and (flags & MODIFIER_MASK) == self.modifiers


@dataclass
class HotkeyBinding:
    combo: HotkeyCombo
    callback: Callable[[], None]
    name: str = ""


def parse_combo(text: str) -> HotkeyCombo:
    """Parse ``"cmd+shift+space"`` style combos; exactly one non-modifier key."""
    keycode: int | None = None
    modifiers = 0
    for token in (part.strip().lower() for part in text.split("+")):
        if token in MODIFIERS:
            modifiers |= MODIFIERS[token]
        elif token in KEYCODES:
            if keycode is not None:
                raise ValueError(f"Hotkey {text!r} names more than one key")
            keycode = KEYCODES[token]
        else:
            raise ValueError(f"Unsupported hotkey token {token!r} in {text!r}")
    if keycode is None:
        raise ValueError(f"Hotkey {text!r} has no key")
    if not modifiers:
        raise ValueError(f"Hotkey {text!r} needs at least one modifier")
    return HotkeyCombo(keycode=keycode, modifiers=modifiers)


class HotkeyListener:
    def __init__(self, bindings: list[HotkeyBinding]) -> None:
        self.bindings = bindings

        self._thread: threading.Thread | None = None
        self._running = threading.Event()

        self._event_tap = None
        self._source = None
        self._run_loop = None

        self._held: HotkeyBinding | None = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return

        self._running.set()
        self._thread = threading.Thread(target=self._run, name="hotkey-listener", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running.clear()

        if self._run_loop is not None:
            Quartz.CFRunLoopStop(self._run_loop)

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)

        self._thread = None
        self._event_tap = None
        self._source = None
        self._run_loop = None
        self._held = None

    def _run(self) -> None:
        mask = Quartz.CGEventMaskBit(Quartz.kCGEventKeyDown) | Quartz.CGEventMaskBit(Quartz.kCGEventKeyUp)

        self._event_tap = Quartz.CGEventTapCreate(
            Quartz.kCGSessionEventTap,
            Quartz.kCGHeadInsertEventTap,
            Quartz.kCGEventTapOptionListenOnly,
            mask,
            self._event_callback,
            None,
        )

        if not self._event_tap:
            LOGGER.error("Unable to create global keyboard event tap. Check Input Monitoring permissions.")
            return

        self._source = Quartz.CFMachPortCreateRunLoopSource(None, self._event_tap, 0)
        self._run_loop = Quartz.CFRunLoopGetCurrent()

        Quartz.CFRunLoopAddSource(self._run_loop, self._source, Quartz.kCFRunLoopCommonModes)
        Quartz.CGEventTapEnable(self._event_tap, True)
        Quartz.CFRunLoopRun()

    def _event_callback(self, proxy, event_type, event, refcon):  # type: ignore[no-untyped-def]
        if event_type in {
            Quartz.kCGEventTapDisabledByTimeout,
            Quartz.kCGEventTapDisabledByUserInput,
        }:
            LOGGER.warning("Event tap disabled (type=%s), re-enabling", event_type)
            if self._event_tap is not None:
                Quartz.CGEventTapEnable(self._event_tap, True)
            return event

        if not self._running.is_set():
            return event

        keycode = Quartz.CGEventGetIntegerValueField(event, Quartz.kCGKeyboardEventKeycode)

        if event_type == Quartz.kCGEventKeyUp:
            if self._held is not None and keycode == self._held.combo.keycode:
                self._held = None
            return event

        if event_type != Quartz.kCGEventKeyDown:
            return event
        if self._held is not None and keycode == self._held.combo.keycode:
            return event  # auto-repeat

        flags = Quartz.CGEventGetFlags(event)
        for binding in self.bindings:
            if binding.combo.matches(keycode, flags):
                self._held = binding
                try:
                    binding.callback()
                except Exception:
                    LOGGER.exception("Hotkey callback %s failed", binding.name or binding.combo)
                break
        return event
