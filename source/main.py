# main.py
from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from app_meta import APP_NAME, detect_version
from audio_manager import AudioManager
from backend import PulseAudioBackend
from log_setup import setup_logging
from models import CATEGORY_HEADPHONE, CATEGORY_LABELS, CATEGORY_SPEAKER, KIND_INPUT, KIND_OUTPUT
from store_config import APP_DEFAULTS, ConfigStore, MemoryStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="apriority", description="Keep the preferred audio devices selected.")
    p.add_argument("--headless", action="store_true", help="run without window or tray")
    p.add_argument("--list", action="store_true", help="print devices in priority order and exit")
    p.add_argument("--debug", action="store_true", help="log at DEBUG level")
    p.add_argument("--config", metavar="PATH", type=Path, help="config file to use instead of the default")
    p.add_argument("--ephemeral", action="store_true", help="keep state in memory only")
    p.add_argument("--version", action="version", version=f"{APP_NAME} {detect_version()}")
    return p


class Settings:
    """[App] values, with defaults when the state lives in memory."""

    def __init__(self, store) -> None:
        self._store = store if isinstance(store, ConfigStore) else None

    def text(self, name: str) -> str:
        return self._store.app_setting(name) if self._store else APP_DEFAULTS[name]

    def integer(self, name: str) -> int:
        return self._store.app_int(name) if self._store else int(APP_DEFAULTS[name])

    def flag(self, name: str) -> bool:
        if self._store:
            return self._store.app_bool(name)
        return APP_DEFAULTS[name].lower() == "true"


def print_devices(manager: AudioManager, out=None) -> None:
    out = out or sys.stdout
    lists = manager.lists
    mode = "automatic" if manager.is_automatic else "manual"
    print(f"Mode: {CATEGORY_LABELS[manager.category]} ({mode})", file=out)

    groups = (
        ("Inputs", lists.for_kind(KIND_INPUT)),
        ("Speakers", lists.for_kind(KIND_OUTPUT, CATEGORY_SPEAKER)),
        ("Headphones", lists.for_kind(KIND_OUTPUT, CATEGORY_HEADPHONE)),
        ("Ignored", lists.ignored()),
    )
    for title, devices in groups:
        print(f"\n{title}:", file=out)
        if not devices:
            print("  (none)", file=out)
        for i, d in enumerate(devices, 1):
            marks = []
            if manager.is_current(d):
                marks.append("default")
            if manager.mute.is_muted(d):
                marks.append("muted")
            suffix = f"  [{', '.join(marks)}]" if marks else ""
            print(f"  {i}. {d.name}  <{d.uid}>{suffix}", file=out)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.ephemeral:
        store = MemoryStore()
        log_dir = None
    else:
        store = ConfigStore(path=args.config)
        log_dir = store.dir_path

    settings = Settings(store)
    setup_logging("DEBUG" if args.debug else settings.text("log_level"), log_dir)
    logger.info("%s %s starting", APP_NAME, detect_version())

    backend = PulseAudioBackend()

    if args.list:
        manager = AudioManager(backend, store, timer_factory=lambda _ms, _cb: _NullTimer())
        manager.scan()
        print_devices(manager)
        backend.close()
        return 0

    if args.headless:
        from PySide6.QtCore import QCoreApplication

        app = QCoreApplication(sys.argv[:1])
    else:
        from PySide6.QtWidgets import QApplication

        app = QApplication(sys.argv[:1])
        app.setQuitOnLastWindowClosed(False)
    app.setApplicationName(APP_NAME)

    from event_bridge import EventBridge

    manager = AudioManager(backend, store, blink_interval_ms=settings.integer("blink_interval_ms"))
    bridge = EventBridge()
    bridge.attach(manager)

    window = None
    if not args.headless:
        from main_window import MainWindow
        from theme import apply_dark_theme

        apply_dark_theme(app)
        window = MainWindow(
            manager,
            server_label=backend.server_label(),
            poll_interval_ms=settings.integer("poll_interval_ms"),
        )

    from PySide6.QtCore import QTimer

    # Ctrl+C: Qt only yields to Python signal handlers between timer ticks
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    wake = QTimer()
    wake.timeout.connect(lambda: None)
    wake.start(500)

    bridge.subscribe(backend)
    manager.start()

    if window is not None and not (settings.flag("start_hidden") and window.tray is not None):
        window.show()

    code = app.exec()

    manager.close()
    backend.close()
    logger.info("%s stopped", APP_NAME)
    return int(code)


class _NullTimer:
    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass


if __name__ == "__main__":
    sys.exit(main())
