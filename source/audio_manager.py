# audio_manager.py
from __future__ import annotations

import functools
import logging
import threading
import time
from typing import Callable, Iterable, List, Optional, Set, Tuple

from device_registry import DeviceRegistry
from models import (
    CATEGORY_HEADPHONE,
    KIND_INPUT,
    KIND_OUTPUT,
    AudioDevice,
    check_category,
)
from mode_controller import ModeController
from mute_tracker import MuteTracker, TimerFactory
from priority_store import PriorityStore, priority_key
from selection import DeviceLists, SelectionEngine, SelfSetLedger
from store_config import StateStore
from visibility import VisibilityPolicy

logger = logging.getLogger(__name__)

BOTH_KINDS = (KIND_INPUT, KIND_OUTPUT)


def _serialized(fn):
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return fn(self, *args, **kwargs)

    return wrapper


class AudioManager:
    """
    I own the engine state and run every cycle to completion:
    enumerate -> remember -> filter/order -> mode -> select -> mute.

    All public entry points take the same re-entrant lock, so events coming
    from another thread can never interleave with a running cycle.
    """

    def __init__(
        self,
        backend,
        store: StateStore,
        *,
        clock: Callable[[], float] = time.time,
        blink_interval_ms: int = 700,
        timer_factory: Optional[TimerFactory] = None,
        on_blink: Optional[Callable[[bool], None]] = None,
        on_changed: Optional[Callable[[], None]] = None,
    ) -> None:
        self.backend = backend
        self.store = store
        self._clock = clock
        self._lock = threading.RLock()
        self._on_changed = on_changed

        self.registry = DeviceRegistry(store, clock)
        self.priorities = PriorityStore(store)
        self.visibility = VisibilityPolicy(store, self.priorities.category_of)
        self.ledger = SelfSetLedger()
        self.selection = SelectionEngine(backend, self.priorities, self.visibility, self.ledger)
        self.mode = ModeController(store, self.priorities.category_of, self.ledger, reapply=self._apply)
        self.mute = MuteTracker(backend, blink_interval_ms, timer_factory, on_blink)

        self.edit_mode = False
        self.connected: List[AudioDevice] = []
        self._connected_uids: Optional[Set[str]] = None
        self.current_input_id: Optional[int] = None
        self.current_output_id: Optional[int] = None
        self.volume = 0.0

    def set_listener(
        self,
        on_changed: Optional[Callable[[], None]],
        on_blink: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self._on_changed = on_changed
        if on_blink is not None:
            self.mute.set_blink_listener(on_blink)

    # ---- read side -------------------------------------------------------

    @property
    def lists(self) -> DeviceLists:
        return self.selection.lists

    @property
    def category(self) -> str:
        return self.mode.category

    @property
    def is_automatic(self) -> bool:
        return self.mode.is_automatic

    @property
    def active_output_devices(self) -> List[AudioDevice]:
        return self.lists.for_kind(KIND_OUTPUT, self.mode.category)

    @property
    def ignored_devices(self) -> List[AudioDevice]:
        return self.lists.ignored()

    @property
    def is_active_input_muted(self) -> bool:
        return self.mute.active_input_muted

    @property
    def is_active_output_muted(self) -> bool:
        return self.mute.active_output_muted

    def is_connected(self, device: AudioDevice) -> bool:
        return self._connected_uids is not None and device.uid in self._connected_uids

    def is_current(self, device: AudioDevice) -> bool:
        if device.ephemeral_id is None:
            return False
        cur = self.current_input_id if device.kind == KIND_INPUT else self.current_output_id
        return cur == device.ephemeral_id

    def volume_level(self) -> int:
        if self.volume <= 0:
            return 0
        if self.volume < 0.33:
            return 1
        if self.volume < 0.66:
            return 2
        return 3

    def tray_icon_name(self) -> str:
        if self.mute.blink_on:
            return "microphone-sensitivity-muted"
        if not self.is_automatic:
            return "audio-card"
        if self.mode.category == CATEGORY_HEADPHONE:
            return "audio-headphones"
        if self.is_active_output_muted:
            return "audio-volume-muted"
        return ("audio-volume-muted", "audio-volume-low", "audio-volume-medium", "audio-volume-high")[
            self.volume_level()
        ]

    def last_seen_label(self, uid: str) -> str:
        stored = self.registry.get(uid)
        return stored.last_seen_relative(self._clock()) if stored else ""

    # ---- cycle -----------------------------------------------------------

    def _notify(self) -> None:
        if self._on_changed is not None:
            self._on_changed()

    def _rebuild(self) -> None:
        placeholders: List[AudioDevice] = []
        if self.edit_mode:
            uids = self._connected_uids or set()
            placeholders = self.registry.placeholders(KIND_INPUT, uids) + self.registry.placeholders(KIND_OUTPUT, uids)
        self.selection.rebuild(self.connected, placeholders, self.edit_mode)

    def _refresh_devices(self) -> Set[str]:
        devices = self.backend.enumerate()
        uids = {d.uid for d in devices}
        newly = set() if self._connected_uids is None else uids - self._connected_uids

        self.connected = devices
        self._connected_uids = uids
        if devices:
            self.registry.remember_all(devices)
        self._rebuild()

        self.current_input_id = self.backend.get_default(KIND_INPUT)
        self.current_output_id = self.backend.get_default(KIND_OUTPUT)
        if newly:
            logger.info("Newly connected: %s", ", ".join(sorted(newly)))
        return newly

    def _refresh_mute(self) -> None:
        self.mute.refresh(self.connected, self.current_input_id, self.current_output_id)

    def _refresh_volume(self) -> None:
        self.volume = self.backend.get_output_volume()

    def _apply(self, kinds: Iterable[str]) -> None:
        kinds = tuple(kinds)
        if KIND_INPUT in kinds:
            dev = self.selection.apply_highest_priority(KIND_INPUT)
            if dev is not None:
                self.current_input_id = dev.ephemeral_id
        if KIND_OUTPUT in kinds:
            dev = self.selection.apply_highest_priority(KIND_OUTPUT, self.mode.category)
            if dev is not None:
                self.current_output_id = dev.ephemeral_id
            self._refresh_volume()
        self._refresh_mute()

    def _apply_if_automatic(self, kinds: Tuple[str, ...]) -> None:
        if self.is_automatic:
            self._apply(kinds)
        else:
            self._refresh_mute()

    @_serialized
    def start(self) -> None:
        self._refresh_devices()
        self._refresh_volume()
        self._apply_if_automatic(BOTH_KINDS)
        logger.info(
            "Started: %d devices, category=%s, mode=%s",
            len(self.connected),
            self.mode.category,
            "automatic" if self.is_automatic else "manual",
        )
        self._notify()

    @_serialized
    def scan(self) -> None:
        """Read devices, defaults, volume and mute state without selecting anything."""
        self._refresh_devices()
        self._refresh_volume()
        self._refresh_mute()

    @_serialized
    def close(self) -> None:
        self.mute.stop()

    # ---- OS events -------------------------------------------------------

    @_serialized
    def handle_devices_changed(self) -> None:
        newly = self._refresh_devices()
        if self.is_automatic:
            outputs = [d for d in self.connected if d.kind == KIND_OUTPUT]
            self.mode.on_device_list_changed(newly, outputs)
        self._apply_if_automatic(BOTH_KINDS)
        self._notify()

    @_serialized
    def handle_default_output_changed(self, reported_id: Optional[int] = None) -> None:
        if reported_id is None:
            reported_id = self.backend.get_default(KIND_OUTPUT)
        outputs = [d for d in self.connected if d.kind == KIND_OUTPUT]
        self.mode.on_external_default_output_changed(reported_id, outputs)

        self.current_output_id = reported_id
        self.current_input_id = self.backend.get_default(KIND_INPUT)
        self._refresh_volume()
        self._refresh_mute()
        self._notify()

    @_serialized
    def handle_mute_or_volume_changed(self) -> None:
        """Re-read the default input, volume and mute state. Never selects."""
        self.current_input_id = self.backend.get_default(KIND_INPUT)
        self._refresh_volume()
        self._refresh_mute()
        self._notify()

    # ---- user operations -------------------------------------------------

    @_serialized
    def refresh(self) -> None:
        self.handle_devices_changed()

    @_serialized
    def set_category_mode(self, category: str) -> None:
        self.mode.set_category(category)
        self._notify()

    @_serialized
    def toggle_category_mode(self) -> None:
        self.mode.toggle_category()
        self._notify()

    @_serialized
    def set_manual(self, flag: bool) -> None:
        self.mode.set_manual(flag)
        self._notify()

    @_serialized
    def toggle_edit_mode(self) -> None:
        self.edit_mode = not self.edit_mode
        self._rebuild()
        self._notify()

    @_serialized
    def set_device_category(self, device: AudioDevice, category: str) -> None:
        self.priorities.set_category(device.uid, check_category(category))
        self._rebuild()
        self._apply_if_automatic((KIND_OUTPUT,))
        self._notify()

    @_serialized
    def hide_device(self, device: AudioDevice, category: Optional[str] = None) -> None:
        self.visibility.hide(device, category)
        self._rebuild()
        self._apply_if_automatic((device.kind,))
        self._notify()

    @_serialized
    def hide_device_entirely(self, device: AudioDevice) -> None:
        self.visibility.hide_entirely(device)
        self._rebuild()
        self._apply_if_automatic((device.kind,))
        self._notify()

    @_serialized
    def unhide_device(self, device: AudioDevice, category: Optional[str] = None) -> None:
        self.visibility.unhide(device, category)
        self._rebuild()
        self._apply_if_automatic((device.kind,))
        self._notify()

    @_serialized
    def set_never_use(self, device: AudioDevice, flag: bool) -> None:
        self.visibility.set_never_use(device, flag)
        self._rebuild()
        self._apply_if_automatic((device.kind,))
        self._notify()

    @_serialized
    def forget_device(self, uid: str) -> None:
        with self.store.batch():
            self.registry.forget(uid)
            self.priorities.purge(uid)
            self.visibility.purge(uid)
        logger.info("Forgot device %s", uid)
        self._rebuild()
        self._notify()

    @_serialized
    def move_device(self, kind: str, category: Optional[str], from_index: int, to_index: int) -> None:
        cat = category if kind == KIND_OUTPUT else None
        current = self.lists.for_kind(kind, cat)
        self.priorities.move(current, from_index, to_index, priority_key(kind, cat))
        self._rebuild()
        if kind == KIND_INPUT or cat == self.mode.category:
            self._apply_if_automatic((kind,))
        self._notify()

    @_serialized
    def select_device(self, device: AudioDevice) -> None:
        if not self.is_automatic:
            chosen = self.selection.select(device)
            if chosen is not None:
                if device.kind == KIND_INPUT:
                    self.current_input_id = chosen.ephemeral_id
                else:
                    self.current_output_id = chosen.ephemeral_id
                    self._refresh_volume()
            self._refresh_mute()
            self._notify()
            return

        if device.kind == KIND_INPUT:
            self.priorities.move_to_top(self.lists.inputs, device.uid, priority_key(KIND_INPUT))
            self._rebuild()
            self._apply((KIND_INPUT,))
            self._notify()
            return

        cat = self.priorities.category_of(device)
        self.priorities.move_to_top(self.lists.for_kind(KIND_OUTPUT, cat), device.uid, priority_key(KIND_OUTPUT, cat))
        self._rebuild()
        if cat != self.mode.category:
            self.mode.set_category(cat)
        else:
            self._apply((KIND_OUTPUT,))
        self._notify()

    @_serialized
    def set_volume(self, volume: float) -> None:
        v = max(0.0, min(1.0, float(volume)))
        self.backend.set_output_volume(v)
        self.volume = v
        self._refresh_mute()
        self._notify()
