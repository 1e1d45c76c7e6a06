# pulse_events.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Set

import pulsectl

logger = logging.getLogger(__name__)

EVENT_DEVICES = "devices"
EVENT_LEVELS = "levels"
EVENT_SERVER = "server"


def classify_event(ev) -> Optional[str]:
    if ev.facility == "server":
        return EVENT_SERVER
    if ev.facility in ("sink", "source"):
        if ev.t in ("new", "remove"):
            return EVENT_DEVICES
        if ev.t == "change":
            return EVENT_LEVELS
    return None


class PulseEventListener(threading.Thread):
    """
    I run the pulsectl event loop on my own connection and thread.

    Callbacks are invoked from this thread; the receiver must hand them over to
    its own context. The loop polls with a short timeout and coalesces the
    events seen in each slice, so a burst of sink changes yields one callback.
    """

    def __init__(
        self,
        client_name: str,
        *,
        on_devices_changed: Callable[[], None],
        on_default_output_changed: Callable[[Optional[int]], None],
        on_mute_or_volume_changed: Callable[[], None],
        poll_timeout: float = 0.25,
        retry_delay: float = 2.0,
    ) -> None:
        super().__init__(name="pulse-events", daemon=True)
        self._client_name = client_name
        self._on_devices_changed = on_devices_changed
        self._on_default_output_changed = on_default_output_changed
        self._on_mute_or_volume_changed = on_mute_or_volume_changed
        self._poll_timeout = poll_timeout
        self._retry_delay = retry_delay

        self._stop_evt = threading.Event()
        self._lock = threading.Lock()
        self._pulse: Optional[pulsectl.Pulse] = None

    def stop(self) -> None:
        self._stop_evt.set()
        with self._lock:
            pulse = self._pulse
        if pulse is not None:
            try:
                pulse.event_listen_stop()
            except Exception:
                pass
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout=2.0)

    def run(self) -> None:
        while not self._stop_evt.is_set():
            try:
                self._listen()
            except Exception as e:
                if self._stop_evt.is_set():
                    break
                logger.warning("Audio server event stream lost (%s); retrying in %.0fs", e, self._retry_delay)
                self._stop_evt.wait(self._retry_delay)

    def _listen(self) -> None:
        pending: Set[str] = set()

        def on_event(ev) -> None:
            kind = classify_event(ev)
            if kind is not None:
                pending.add(kind)

        with pulsectl.Pulse(self._client_name) as pulse:
            with self._lock:
                self._pulse = pulse
            try:
                info = pulse.server_info()
                last_sink, last_source = info.default_sink_name, info.default_source_name

                pulse.event_mask_set("sink", "source", "server")
                pulse.event_callback_set(on_event)
                logger.debug("Listening for audio server events")

                while not self._stop_evt.is_set():
                    pulse.event_listen(timeout=self._poll_timeout)
                    if not pending or self._stop_evt.is_set():
                        continue

                    kinds = set(pending)
                    pending.clear()

                    if EVENT_SERVER in kinds:
                        info = pulse.server_info()
                        # a new default mic is only re-read, never re-selected
                        if info.default_source_name != last_source:
                            last_source = info.default_source_name
                            kinds.add(EVENT_LEVELS)
                        if info.default_sink_name != last_sink:
                            last_sink = info.default_sink_name
                            sink = next((s for s in pulse.sink_list() if s.name == last_sink), None)
                            self._on_default_output_changed(int(sink.index) if sink is not None else None)

                    if EVENT_DEVICES in kinds:
                        self._on_devices_changed()
                    if EVENT_LEVELS in kinds:
                        self._on_mute_or_volume_changed()
            finally:
                with self._lock:
                    self._pulse = None
