from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from transcribe_tray.workflows import AppContext, cleanse_clipboard, toggle_recording

LOGGER = logging.getLogger(__name__)

MENU_TOGGLE_RECORDING = "toggle_recording"
MENU_CLEANSE = "cleanse"


class TriggerDispatcher:
    """Turns tray clicks, menu items and hotkeys into background workflow runs.

    Every trigger returns immediately; the workflow runs on the worker pool.
    """

    def __init__(self, context: AppContext, max_workers: int = 4) -> None:
        self.context = context
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="trigger")
        self._closed = False

    def on_tray_click(self) -> None:
        LOGGER.info("Tray icon clicked")
        self._spawn(toggle_recording, self.context, False)

    def on_menu_item(self, item_id: str) -> None:
        LOGGER.info("Menu event received: %s", item_id)
        if item_id == MENU_TOGGLE_RECORDING:
            self._spawn(toggle_recording, self.context, False)
        elif item_id == MENU_CLEANSE:
            self._spawn(cleanse_clipboard, self.context, False)
        else:
            LOGGER.warning("Unknown menu event: %s", item_id)

    def on_toggle_hotkey(self) -> None:
        self._spawn(toggle_recording, self.context, True)

    def on_polish_hotkey(self) -> None:
        self._spawn(cleanse_clipboard, self.context, True)

    def shutdown(self, wait: bool = True) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait)

    def _spawn(self, fn: Callable[..., None], *args: object) -> None:
        if self._closed:
            LOGGER.warning("Ignoring trigger for %s during shutdown", fn.__name__)
            return
        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError:
            LOGGER.warning("Ignoring trigger for %s during shutdown", fn.__name__)
            return
        future.add_done_callback(_log_failure)


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        LOGGER.error("Trigger workflow crashed", exc_info=exc)
