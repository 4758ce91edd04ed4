from __future__ import annotations

import logging
from pathlib import Path

from transcribe_tray.config import ConfigStore

LOG_DIR = Path.home() / "Library" / "Logs" / "TranscribeTray"
LOG_FILE = LOG_DIR / "transcribe_tray.log"


def configure_logging() -> None:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[
            logging.FileHandler(LOG_FILE, encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def run() -> None:
    configure_logging()
    config = ConfigStore().load()

    from AppKit import NSApplication, NSApplicationActivationPolicyAccessory

    from transcribe_tray.ui import run_app

    NSApplication.sharedApplication().setActivationPolicy_(NSApplicationActivationPolicyAccessory)
    run_app(config)


if __name__ == "__main__":
    run()
