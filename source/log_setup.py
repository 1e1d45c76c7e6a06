# log_setup.py
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "apriority.log"

_installed = False


def debug_requested() -> bool:
    return os.environ.get("APRIORITY_DEBUG", "0").strip() not in ("", "0")


def setup_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> None:
    """
    Configure the root logger once: console on stderr plus a rotating file in
    log_dir (when given and writable). Calling again only adjusts the level.
    """
    global _installed

    lvl = logging.DEBUG if debug_requested() else getattr(logging, (level or "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)

    if _installed:
        return

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(log_dir / LOG_FILENAME, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
            fh.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(fh)
        except OSError as e:
            root.warning("File logging disabled: %s", e)

    _installed = True
