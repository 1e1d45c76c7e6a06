# mute_tracker.py
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Set, Tuple

from models import KIND_INPUT, KIND_OUTPUT, AudioDevice

logger = logging.getLogger(__name__)

TimerFactory = Callable[[int, Callable[[], None]], object]


def qt_timer(interval_ms: int, on_timeout: Callable[[], None]):
    from PySide6.QtCore import QTimer

    t = QTimer()
    t.setInterval(interval_ms)
    t.timeout.connect(on_timeout)
    return t


class MuteTracker:
    def __init__(
        self,
        backend,
        interval_ms: int = 700,
        timer_factory: Optional[TimerFactory] = None,
        on_blink: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self._backend = backend
        self._interval_ms = interval_ms
        self._timer_factory = timer_factory or qt_timer
        self._on_blink = on_blink

        self._timer = None
        # keyed by kind too: sinks and sources have separate index ranges
        self.muted: Set[Tuple[str, int]] = set()
        self.current_input_id: Optional[int] = None
        self.current_output_id: Optional[int] = None
        self.blink_on = False

    def set_blink_listener(self, on_blink: Optional[Callable[[bool], None]]) -> None:
        self._on_blink = on_blink

    @property
    def active_input_muted(self) -> bool:
        return self.current_input_id is not None and (KIND_INPUT, self.current_input_id) in self.muted

    @property
    def active_output_muted(self) -> bool:
        return self.current_output_id is not None and (KIND_OUTPUT, self.current_output_id) in self.muted

    @property
    def blinking(self) -> bool:
        return self._timer is not None

    def is_muted(self, device: AudioDevice) -> bool:
        return device.ephemeral_id is not None and (device.kind, device.ephemeral_id) in self.muted

    def refresh(
        self,
        devices: Iterable[AudioDevice],
        current_input_id: Optional[int],
        current_output_id: Optional[int],
    ) -> None:
        muted: Set[Tuple[str, int]] = set()
        for d in devices:
            if not d.connected or d.ephemeral_id is None:
                continue
            if self._backend.is_muted(d.ephemeral_id, d.kind):
                muted.add((d.kind, d.ephemeral_id))

        self.muted = muted
        self.current_input_id = current_input_id
        self.current_output_id = current_output_id
        self._update_blink()

    def _update_blink(self) -> None:
        if self.active_input_muted and self._timer is None:
            logger.debug("Active input muted; blink on")
            self._timer = self._timer_factory(self._interval_ms, self._tick)
            self._timer.start()
        elif not self.active_input_muted and self._timer is not None:
            self.stop()

    def _tick(self) -> None:
        self.blink_on = not self.blink_on
        if self._on_blink is not None:
            self._on_blink(self.blink_on)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        if self.blink_on:
            self.blink_on = False
            if self._on_blink is not None:
                self._on_blink(False)
