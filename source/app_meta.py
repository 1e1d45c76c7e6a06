# app_meta.py
from __future__ import annotations

from importlib import metadata


APP_NAME = "aPriority"
DIST_NAME = "apriority"
FALLBACK_VERSION = "0.1.0"


def detect_version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return FALLBACK_VERSION
