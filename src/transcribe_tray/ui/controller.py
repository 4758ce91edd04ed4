from __future__ import annotations

import logging

import objc
from AppKit import (
    NSApp,
    NSApplication,
    NSEventMaskLeftMouseUp,
    NSEventMaskRightMouseUp,
    NSEventTypeRightMouseUp,
    NSMenu,
    NSMenuItem,
    NSStatusBar,
    NSVariableStatusItemLength,
)
from Foundation import NSObject, NSTimer

from transcribe_tray.app import Application
from transcribe_tray.config import AppConfig
from transcribe_tray.indicator import ICON_TITLES, Icon
from transcribe_tray.triggers import MENU_CLEANSE, MENU_TOGGLE_RECORDING

LOGGER = logging.getLogger(__name__)


class AppController(NSObject):
    def initWithConfig_(self, config: AppConfig):  # type: ignore[no-untyped-def]
        self = objc.super(AppController, self).init()
        if self is None:
            return None

        self.config = config
        self.application = Application(config)
        self.status_item = None
        self.menu = None
        self._ui_timer = None
        self._shown_icon: Icon | None = None
        return self

    # App lifecycle
    def applicationDidFinishLaunching_(self, _notification):  # type: ignore[no-untyped-def]
        try:
            self.application.start()
        except Exception:
            LOGGER.exception("Unable to start: local resources are unavailable")
            NSApp().terminate_(None)
            return

        self._build_status_item()
        self._ui_timer = NSTimer.scheduledTimerWithTimeInterval_target_selector_userInfo_repeats_(
            0.15,
            self,
            "tick:",
            None,
            True,
        )

    def applicationWillTerminate_(self, _notification):  # type: ignore[no-untyped-def]
        if self._ui_timer is not None:
            self._ui_timer.invalidate()
            self._ui_timer = None
        self.application.shutdown()
        if self.status_item is not None:
            NSStatusBar.systemStatusBar().removeStatusItem_(self.status_item)
            self.status_item = None

    def tick_(self, _timer):  # type: ignore[no-untyped-def]
        icon = self.application.indicator.current
        if icon == self._shown_icon or self.status_item is None:
            return
        self._shown_icon = icon
        button = self.status_item.button()
        button.setTitle_(ICON_TITLES[icon])
        button.setToolTip_(f"TranscribeTray: {icon.value}")

    # Builders
    def _build_status_item(self) -> None:
        self.status_item = NSStatusBar.systemStatusBar().statusItemWithLength_(NSVariableStatusItemLength)
        button = self.status_item.button()
        button.setTitle_(ICON_TITLES[Icon.DEFAULT])
        button.setTarget_(self)
        button.setAction_("statusItemClicked:")
        button.sendActionOn_(NSEventMaskLeftMouseUp | NSEventMaskRightMouseUp)

        self.menu = NSMenu.alloc().initWithTitle_("TranscribeTray")
        self._add_menu_item("Toggle Recording 🎤", "toggleRecording:")
        self._add_menu_item("Polish clipboard 💅", "polishClipboard:")
        self.menu.addItem_(NSMenuItem.separatorItem())
        quit_item = NSMenuItem.alloc().initWithTitle_action_keyEquivalent_("Quit ✌️", "terminate:", "q")
        self.menu.addItem_(quit_item)

    def _add_menu_item(self, title: str, action: str) -> None:
        item = NSMenuItem.alloc().initWithTitle_action_keyEquivalent_(title, action, "")
        item.setTarget_(self)
        self.menu.addItem_(item)

    # Status item / menu actions
    def statusItemClicked_(self, _sender):  # type: ignore[no-untyped-def]
        event = NSApp().currentEvent()
        if event is not None and event.type() == NSEventTypeRightMouseUp:
            LOGGER.info("Tray icon right clicked")
            self.status_item.popUpStatusItemMenu_(self.menu)
            return
        self.application.dispatcher.on_tray_click()

    def toggleRecording_(self, _sender):  # type: ignore[no-untyped-def]
        self.application.dispatcher.on_menu_item(MENU_TOGGLE_RECORDING)

    def polishClipboard_(self, _sender):  # type: ignore[no-untyped-def]
        self.application.dispatcher.on_menu_item(MENU_CLEANSE)


def run_app(config: AppConfig) -> None:
    app = NSApplication.sharedApplication()
    delegate = AppController.alloc().initWithConfig_(config)
    app.setDelegate_(delegate)
    app.run()


__all__ = ["run_app", "AppController"]
