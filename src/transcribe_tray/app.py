from __future__ import annotations

import logging
from typing import Any, Callable

from transcribe_tray.clipboard import Clipboard
from transcribe_tray.client import TranscribeClient
from transcribe_tray.config import AppConfig, api_key_from_env
from transcribe_tray.indicator import TrayIndicator
from transcribe_tray.local_tasks import LocalTaskHandler
from transcribe_tray.notifications import Notifier
from transcribe_tray.tasks import TaskChannel
from transcribe_tray.triggers import TriggerDispatcher
from transcribe_tray.workflows import AppContext, CleansingGuard

LOGGER = logging.getLogger(__name__)

TASK_CHANNEL_CAPACITY = 1


def _default_hotkey_listener(config: AppConfig, dispatcher: TriggerDispatcher) -> Any:
    from transcribe_tray.hotkey import HotkeyBinding, HotkeyListener, parse_combo

    return HotkeyListener(
        [
            HotkeyBinding(parse_combo(config.toggle_hotkey), dispatcher.on_toggle_hotkey, "toggle_recording"),
            HotkeyBinding(parse_combo(config.polish_hotkey), dispatcher.on_polish_hotkey, "polish_clipboard"),
        ]
    )


class Application:
    """Builds the shared handles once and tears them down in a fixed order."""

    def __init__(
        self,
        config: AppConfig,
        client: Any = None,
        clipboard: Any = None,
        notifier: Any = None,
        task_handler_factory: Callable[[TaskChannel, TrayIndicator, AppConfig], Any] | None = None,
        hotkey_listener_factory: Callable[[AppConfig, TriggerDispatcher], Any] | None = None,
    ) -> None:
        self.config = config
        self.indicator = TrayIndicator()
        self.tasks = TaskChannel(capacity=TASK_CHANNEL_CAPACITY)
        self.context = AppContext(
            tasks=self.tasks,
            client=client
            or TranscribeClient(
                base_url=config.api_base_url,
                language=config.transcribe_language,
                model=config.transcribe_model,
                timeout_seconds=config.request_timeout_seconds,
                api_key=api_key_from_env(),
            ),
            clipboard=clipboard or Clipboard(),
            notifier=notifier or Notifier(),
            indicator=self.indicator,
            cleansing_guard=CleansingGuard(),
        )
        self._task_handler_factory = task_handler_factory or LocalTaskHandler
        self._hotkey_listener_factory = hotkey_listener_factory or _default_hotkey_listener

        self.task_handler: Any = None
        self.dispatcher: TriggerDispatcher | None = None
        self.hotkey_listener: Any = None

    def start(self) -> None:
        # Fatal when the microphone or keystroke injection is unavailable.
        self.task_handler = self._task_handler_factory(self.tasks, self.indicator, self.config)
        self.task_handler.start()

        self.dispatcher = TriggerDispatcher(self.context, max_workers=self.config.trigger_workers)

        if not self.config.hotkeys_enabled:
            LOGGER.info("Global hotkeys disabled in config")
            return
        try:
            self.hotkey_listener = self._hotkey_listener_factory(self.config, self.dispatcher)
            self.hotkey_listener.start()
        except Exception:
            LOGGER.exception("Global hotkeys unavailable; tray and menu still work")
            self.hotkey_listener = None

        LOGGER.info("Successfully started application services")

    def shutdown(self) -> None:
        if self.hotkey_listener is not None:
            self.hotkey_listener.stop()
            self.hotkey_listener = None
        if self.dispatcher is not None:
            self.dispatcher.shutdown(wait=True)
            self.dispatcher = None
        if self.task_handler is not None:
            self.task_handler.shutdown()
            self.task_handler = None
        LOGGER.info("Application services stopped")
