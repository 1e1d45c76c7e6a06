# store_config.py
from __future__ import annotations

import configparser
import json
import logging
import os
import platform
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from app_meta import APP_NAME

logger = logging.getLogger(__name__)


INPUT_PRIORITIES_KEY = "inputPriorities"
SPEAKER_PRIORITIES_KEY = "speakerPriorities"
HEADPHONE_PRIORITIES_KEY = "headphonePriorities"
DEVICE_CATEGORIES_KEY = "deviceCategories"
CURRENT_MODE_KEY = "currentMode"
CUSTOM_MODE_KEY = "customMode"
HIDDEN_MICS_KEY = "hiddenMics"
HIDDEN_SPEAKERS_KEY = "hiddenSpeakers"
HIDDEN_HEADPHONES_KEY = "hiddenHeadphones"
NEVER_USE_KEY = "neverUse"
KNOWN_DEVICES_KEY = "knownDevices"

STATE_SECTION = "State"
APP_SECTION = "App"

APP_DEFAULTS = {
    "log_level": "INFO",
    "blink_interval_ms": "700",
    "poll_interval_ms": "0",
    "start_hidden": "false",
}

DEFAULT_CONFIG_TEXT = """\
[App]
log_level = INFO
blink_interval_ms = 700
poll_interval_ms = 0
start_hidden = false

[State]
"""


def _windows_appdata_dir() -> Path:
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata)
    return Path.home() / "AppData" / "Roaming"


def _linux_xdg_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def user_config_dir(app_name: str) -> Path:
    sysname = (platform.system() or "").lower()
    if sysname.startswith("windows"):
        return _windows_appdata_dir() / app_name
    if sysname.startswith("linux"):
        return _linux_xdg_config_dir() / app_name
    return Path.home() / ".config" / app_name


class StateStore:
    """
    Typed accessors over a flat string-keyed store.

    Every value is kept as JSON text. A value that does not decode, or decodes
    to the wrong shape, reads as empty and gets overwritten by the next write.
    """

    def _get_raw(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _set_raw(self, key: str, value: str) -> None:
        raise NotImplementedError

    @contextmanager
    def batch(self) -> Iterator[None]:
        yield

    def _decode(self, key: str) -> Any:
        raw = self._get_raw(key)
        if raw is None or raw == "":
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Stored value for %s is corrupt; treating it as empty", key)
            return None

    def _encode(self, key: str, value: Any) -> None:
        self._set_raw(key, json.dumps(value))

    def get_list(self, key: str) -> List[str]:
        v = self._decode(key)
        if v is None:
            return []
        if not isinstance(v, list):
            logger.warning("Stored value for %s is not a list; treating it as empty", key)
            return []
        return [x for x in v if isinstance(x, str)]

    def set_list(self, key: str, values: List[str]) -> None:
        self._encode(key, list(values))

    def get_map(self, key: str) -> Dict[str, str]:
        v = self._decode(key)
        if v is None:
            return {}
        if not isinstance(v, dict):
            logger.warning("Stored value for %s is not a map; treating it as empty", key)
            return {}
        return {str(k): x for k, x in v.items() if isinstance(x, str)}

    def set_map(self, key: str, values: Dict[str, str]) -> None:
        self._encode(key, dict(values))

    def get_str(self, key: str, default: str = "") -> str:
        v = self._decode(key)
        return v if isinstance(v, str) else default

    def set_str(self, key: str, value: str) -> None:
        self._encode(key, value)

    def get_bool(self, key: str, default: bool = False) -> bool:
        v = self._decode(key)
        return v if isinstance(v, bool) else default

    def set_bool(self, key: str, value: bool) -> None:
        self._encode(key, bool(value))

    def get_records(self, key: str) -> List[Dict[str, Any]]:
        v = self._decode(key)
        if v is None:
            return []
        if not isinstance(v, list):
            logger.warning("Stored value for %s is not a record list; treating it as empty", key)
            return []
        return [x for x in v if isinstance(x, dict)]

    def set_records(self, key: str, records: List[Dict[str, Any]]) -> None:
        self._encode(key, list(records))


class MemoryStore(StateStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})
        self.writes = 0
        self._depth = 0
        self._dirty = False

    def _get_raw(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def _set_raw(self, key: str, value: str) -> None:
        self.data[key] = value
        if self._depth:
            self._dirty = True
        else:
            self.writes += 1

    @contextmanager
    def batch(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            if self._depth == 0 and self._dirty:
                self._dirty = False
                self.writes += 1


class ConfigStore(StateStore):
    """
    I keep both the app settings ([App]) and the persisted engine state ([State])
    in one INI file. Each write is a read-modify-write of the whole file, except
    inside batch(), where the file is written once on exit.

    The parsed file is cached and only re-read when its mtime or size changes,
    so edits made by hand still show up.
    """

    def __init__(self, app_name: str = APP_NAME, filename: str = "apriority.cfg", path: Optional[Path] = None) -> None:
        self.app_name = app_name
        self.filename = filename
        self._path = Path(path).expanduser() if path else None
        self._pending: Optional[configparser.ConfigParser] = None
        self._depth = 0
        self._cached: Optional[configparser.ConfigParser] = None
        self._cached_sig: Optional[Tuple[int, int]] = None

    @property
    def dir_path(self) -> Path:
        if self._path is not None:
            return self._path.parent
        return user_config_dir(self.app_name)

    @property
    def file_path(self) -> Path:
        if self._path is not None:
            return self._path
        return self.dir_path / self.filename

    def ensure_exists(self) -> None:
        self.dir_path.mkdir(parents=True, exist_ok=True)
        if not self.file_path.exists():
            self.file_path.write_text(DEFAULT_CONFIG_TEXT, encoding="utf-8")

    def _new_parser(self) -> configparser.ConfigParser:
        cfg = configparser.ConfigParser(interpolation=None)
        cfg.optionxform = str  # type: ignore[assignment]
        return cfg

    def _signature(self) -> Optional[Tuple[int, int]]:
        try:
            st = self.file_path.stat()
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size

    def load(self) -> configparser.ConfigParser:
        if self._pending is not None:
            return self._pending

        sig = self._signature()
        if self._cached is not None and sig is not None and sig == self._cached_sig:
            return self._cached

        self.ensure_exists()
        cfg = self._new_parser()
        try:
            cfg.read(self.file_path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError) as e:
            logger.warning("Config file %s is unreadable (%s); starting from defaults", self.file_path, e)
            cfg = self._new_parser()

        if not cfg.has_section(APP_SECTION):
            cfg.add_section(APP_SECTION)
        for k, v in APP_DEFAULTS.items():
            cfg.set(APP_SECTION, k, cfg.get(APP_SECTION, k, fallback=v))

        if not cfg.has_section(STATE_SECTION):
            cfg.add_section(STATE_SECTION)

        self._cached, self._cached_sig = cfg, self._signature()
        return cfg

    def save(self, cfg: configparser.ConfigParser) -> None:
        if self._depth:
            self._pending = cfg
            return

        self.ensure_exists()
        fd, tmp = tempfile.mkstemp(prefix=".apriority-", dir=str(self.dir_path))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                cfg.write(f)
            os.replace(tmp, self.file_path)
        except OSError:
            self._cached = None
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
        self._cached, self._cached_sig = cfg, self._signature()

    @contextmanager
    def batch(self) -> Iterator[None]:
        if self._depth == 0:
            self._pending = self.load()
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            if self._depth == 0:
                cfg, self._pending = self._pending, None
                if cfg is not None:
                    self.save(cfg)

    def _get_raw(self, key: str) -> Optional[str]:
        return self.load().get(STATE_SECTION, key, fallback=None)

    def _set_raw(self, key: str, value: str) -> None:
        cfg = self.load()
        cfg.set(STATE_SECTION, key, value)
        self.save(cfg)

    def app_setting(self, name: str) -> str:
        return (self.load().get(APP_SECTION, name, fallback=APP_DEFAULTS.get(name, "")) or "").strip()

    def app_int(self, name: str) -> int:
        try:
            return int(self.app_setting(name))
        except ValueError:
            logger.warning("Setting [App] %s is not an integer; using %s", name, APP_DEFAULTS[name])
            return int(APP_DEFAULTS[name])

    def app_bool(self, name: str) -> bool:
        return self.app_setting(name).lower() in ("1", "true", "yes", "on")
