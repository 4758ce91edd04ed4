from transcribe_tray.ui.controller import AppController, run_app

__all__ = ["AppController", "run_app"]
