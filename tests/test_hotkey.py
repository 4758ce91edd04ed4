import importlib
import sys

import pytest


class _FakeQuartz:
    kCGEventKeyDown = 10
    kCGEventKeyUp = 11
    kCGEventTapDisabledByTimeout = 0xFFFFFFFE
    kCGEventTapDisabledByUserInput = 0xFFFFFFFF

    kCGKeyboardEventKeycode = 9
    kCGEventFlagMaskCommand = 1 << 20
    kCGEventFlagMaskAlternate = 1 << 19
    kCGEventFlagMaskShift = 1 << 17
    kCGEventFlagMaskControl = 1 << 18

    kCGSessionEventTap = 1
    kCGHeadInsertEventTap = 0
    kCGEventTapOptionListenOnly = 1

    kCFRunLoopCommonModes = "common"

    def __init__(self) -> None:
        self.enabled_calls = []
        self.tap = object()
        self.tap_options = None
        self.run_loop = object()
        self.run_called = False

    @staticmethod
    def CGEventMaskBit(value):
        return 1 << value

    def CGEventTapCreate(self, _tap, _place, options, _mask, _callback, _refcon):
        self.tap_options = options
        return self.tap

    @staticmethod
    def CFMachPortCreateRunLoopSource(_a, _b, _c):
        return object()

    def CFRunLoopGetCurrent(self):
        return self.run_loop

    @staticmethod
    def CFRunLoopAddSource(_loop, _source, _mode):
        return None

    def CGEventTapEnable(self, tap, enabled):
        self.enabled_calls.append((tap, enabled))

    def CFRunLoopRun(self):
        self.run_called = True

    @staticmethod
    def CFRunLoopStop(_run_loop):
        return None

    @staticmethod
    def CGEventGetFlags(event):
        return event.get("flags", 0)

    @staticmethod
    def CGEventGetIntegerValueField(event, _field):
        return event.get("keycode", 0)


CMD = 1 << 20
SHIFT = 1 << 17
SPACE = 49
P = 35


@pytest.fixture
def fake_quartz(monkeypatch):
    quartz = _FakeQuartz()
    monkeypatch.setitem(sys.modules, "Quartz", quartz)
    return quartz


@pytest.fixture
def hotkey(monkeypatch, fake_quartz):
    monkeypatch.delitem(sys.modules, "transcribe_tray.hotkey", raising=False)
    module = importlib.import_module("transcribe_tray.hotkey")
    yield module
    sys.modules.pop("transcribe_tray.hotkey", None)


def _listener(hotkey, counter):
    return hotkey.HotkeyListener(
        [
            hotkey.HotkeyBinding(
                hotkey.parse_combo("cmd+shift+space"),
                lambda: counter.__setitem__("toggle", counter["toggle"] + 1),
                "toggle_recording",
            ),
            hotkey.HotkeyBinding(
                hotkey.parse_combo("cmd+shift+p"),
                lambda: counter.__setitem__("polish", counter["polish"] + 1),
                "polish_clipboard",
            ),
        ]
    )


def test_parse_combo(hotkey) -> None:
    combo = hotkey.parse_combo(" Cmd + Shift + Space ")

    assert combo.keycode == SPACE
    assert combo.modifiers == CMD | SHIFT


@pytest.mark.parametrize("text", ["cmd+shift", "space", "cmd+a+b", "cmd+f13", ""])
def test_parse_combo_rejects_invalid(hotkey, text) -> None:
    with pytest.raises(ValueError):
        hotkey.parse_combo(text)


def test_combo_requires_exact_modifiers(hotkey) -> None:
    combo = hotkey.parse_combo("cmd+shift+p")

    assert combo.matches(P, CMD | SHIFT)
    assert combo.matches(P, CMD | SHIFT | 0x100)
    assert not combo.matches(P, CMD)
    assert not combo.matches(P, CMD | SHIFT | (1 << 19))
    assert not combo.matches(SPACE, CMD | SHIFT)


def test_key_down_fires_matching_binding_once_per_press(hotkey, fake_quartz) -> None:
    counter = {"toggle": 0, "polish": 0}
    listener = _listener(hotkey, counter)
    listener._running.set()
    down = {"keycode": SPACE, "flags": CMD | SHIFT}

    returned = listener._event_callback(None, fake_quartz.kCGEventKeyDown, down, None)
    listener._event_callback(None, fake_quartz.kCGEventKeyDown, down, None)
    listener._event_callback(None, fake_quartz.kCGEventKeyUp, {"keycode": SPACE, "flags": CMD | SHIFT}, None)
    listener._event_callback(None, fake_quartz.kCGEventKeyDown, down, None)

    assert returned is down
    assert counter == {"toggle": 2, "polish": 0}


def test_key_down_routes_to_polish_binding(hotkey, fake_quartz) -> None:
    counter = {"toggle": 0, "polish": 0}
    listener = _listener(hotkey, counter)
    listener._running.set()

    listener._event_callback(None, fake_quartz.kCGEventKeyDown, {"keycode": P, "flags": CMD | SHIFT}, None)
    listener._event_callback(None, fake_quartz.kCGEventKeyDown, {"keycode": P, "flags": CMD}, None)

    assert counter == {"toggle": 0, "polish": 1}


def test_event_callback_ignores_when_not_running(hotkey, fake_quartz) -> None:
    counter = {"toggle": 0, "polish": 0}
    listener = _listener(hotkey, counter)

    listener._event_callback(None, fake_quartz.kCGEventKeyDown, {"keycode": SPACE, "flags": CMD | SHIFT}, None)

    assert counter == {"toggle": 0, "polish": 0}


def test_event_callback_reenables_tap_when_disabled(hotkey, fake_quartz) -> None:
    listener = _listener(hotkey, {"toggle": 0, "polish": 0})
    listener._event_tap = "tap"
    event = {"flags": 0}

    returned = listener._event_callback(None, fake_quartz.kCGEventTapDisabledByTimeout, event, None)

    assert returned is event
    assert fake_quartz.enabled_calls == [("tap", True)]


def test_failing_callback_is_logged(hotkey, fake_quartz, caplog) -> None:
    def broken() -> None:
        raise RuntimeError("boom")

    listener = hotkey.HotkeyListener([hotkey.HotkeyBinding(hotkey.parse_combo("cmd+shift+p"), broken, "polish")])
    listener._running.set()
    event = {"keycode": P, "flags": CMD | SHIFT}

    assert listener._event_callback(None, fake_quartz.kCGEventKeyDown, event, None) is event
    assert "Hotkey callback polish failed" in caplog.text


def test_run_creates_listen_only_tap(hotkey, fake_quartz) -> None:
    listener = _listener(hotkey, {"toggle": 0, "polish": 0})

    listener._run()

    assert fake_quartz.tap_options == fake_quartz.kCGEventTapOptionListenOnly
    assert fake_quartz.enabled_calls == [(fake_quartz.tap, True)]
    assert fake_quartz.run_called is True


def test_run_reports_missing_permission(hotkey, fake_quartz, caplog) -> None:
    fake_quartz.CGEventTapCreate = lambda *args: None
    listener = _listener(hotkey, {"toggle": 0, "polish": 0})

    listener._run()

    assert fake_quartz.run_called is False
    assert "Input Monitoring" in caplog.text
