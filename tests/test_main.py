import logging
import sys
import types
from pathlib import Path

import transcribe_tray.main as main
from transcribe_tray.config import AppConfig


def test_configure_logging_creates_log_dir_and_configures_handlers(monkeypatch, tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    log_file = log_dir / "transcribe_tray.log"

    monkeypatch.setattr(main, "LOG_DIR", log_dir)
    monkeypatch.setattr(main, "LOG_FILE", log_file)

    captured = {}

    def fake_basic_config(**kwargs):
        captured.update(kwargs)

    monkeypatch.setattr(main.logging, "basicConfig", fake_basic_config)

    main.configure_logging()

    assert log_dir.exists()
    assert captured["level"] == logging.INFO
    assert "%(asctime)s %(levelname)s" in captured["format"]
    assert len(captured["handlers"]) == 2
    for handler in captured["handlers"]:
        handler.close()


def test_run_configures_logging_then_starts_app(monkeypatch) -> None:
    calls = []
    config = AppConfig(transcribe_language="nl")

    class FakeConfigStore:
        def load(self):
            calls.append("config")
            return config

    class FakeSharedApp:
        def setActivationPolicy_(self, policy) -> None:
            calls.append(("policy", policy))

    fake_app = FakeSharedApp()
    appkit = types.SimpleNamespace(
        NSApplication=types.SimpleNamespace(sharedApplication=lambda: fake_app),
        NSApplicationActivationPolicyAccessory=1,
    )
    ui = types.SimpleNamespace(run_app=lambda cfg: calls.append(("run_app", cfg)))

    monkeypatch.setattr(main, "configure_logging", lambda: calls.append("logging"))
    monkeypatch.setattr(main, "ConfigStore", FakeConfigStore)
    monkeypatch.setitem(sys.modules, "AppKit", appkit)
    monkeypatch.setitem(sys.modules, "transcribe_tray.ui", ui)

    main.run()

    assert calls == ["logging", "config", ("policy", 1), ("run_app", config)]
