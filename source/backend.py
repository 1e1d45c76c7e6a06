# backend.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional

import pulsectl

from models import KIND_INPUT, KIND_OUTPUT, AudioDevice, check_kind
from pulse_events import PulseEventListener

logger = logging.getLogger(__name__)

# pulse uses this index for "no object"
PA_INVALID_INDEX = 0xFFFFFFFF

MUTED_VOLUME_FLOOR = 0.01


def is_monitor_source(src) -> bool:
    mon = getattr(src, "monitor_of_sink", PA_INVALID_INDEX)
    if mon is not None and mon != PA_INVALID_INDEX:
        return True
    return (getattr(src, "name", "") or "").endswith(".monitor")


def device_from_pulse(obj, kind: str) -> AudioDevice:
    name = getattr(obj, "description", "") or obj.name
    return AudioDevice(ephemeral_id=int(obj.index), uid=obj.name, name=name, kind=kind)


class PulseAudioBackend:
    """
    OS audio layer over pulsectl (PulseAudio or pipewire-pulse).

    Every query is best-effort: a failure is logged and turned into the
    documented fallback (no devices, no default, volume 0, not muted).
    """

    def __init__(self, client_name: str = "apriority") -> None:
        self._client_name = client_name
        self._pulse: Optional[pulsectl.Pulse] = None
        self._listener: Optional[PulseEventListener] = None

    def server_label(self) -> str:
        try:
            info = self._pulse_connect().server_info()
            return f"{info.server_name} {info.server_version}"
        except Exception as e:
            logger.warning("Server info unavailable: %s", e)
            return "PulseAudio (not connected)"

    def _pulse_connect(self) -> pulsectl.Pulse:
        if self._pulse is None:
            self._pulse = pulsectl.Pulse(self._client_name)
        return self._pulse

    def _drop_connection(self) -> None:
        if self._pulse is not None:
            try:
                self._pulse.close()
            except Exception:
                pass
        self._pulse = None

    def close(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        self._drop_connection()

    def enumerate(self) -> List[AudioDevice]:
        try:
            pulse = self._pulse_connect()
            outs = [device_from_pulse(s, KIND_OUTPUT) for s in pulse.sink_list()]
            ins = [device_from_pulse(s, KIND_INPUT) for s in pulse.source_list() if not is_monitor_source(s)]
        except Exception as e:
            logger.warning("Device enumeration failed: %s", e)
            self._drop_connection()
            return []
        return ins + outs

    def _default_name(self, kind: str) -> Optional[str]:
        info = self._pulse_connect().server_info()
        if kind == KIND_INPUT:
            return info.default_source_name
        return info.default_sink_name

    def _list(self, kind: str):
        pulse = self._pulse_connect()
        return pulse.source_list() if kind == KIND_INPUT else pulse.sink_list()

    def _lookup(self, ephemeral_id: int, kind: str):
        pulse = self._pulse_connect()
        if kind == KIND_INPUT:
            return pulse.source_info(ephemeral_id)
        return pulse.sink_info(ephemeral_id)

    def get_default(self, kind: str) -> Optional[int]:
        check_kind(kind)
        try:
            name = self._default_name(kind)
            if not name:
                return None
            obj = next((o for o in self._list(kind) if o.name == name), None)
        except Exception as e:
            logger.warning("Default %s lookup failed: %s", kind, e)
            self._drop_connection()
            return None
        return int(obj.index) if obj is not None else None

    def set_default(self, ephemeral_id: Optional[int], kind: str) -> bool:
        check_kind(kind)
        if ephemeral_id is None:
            return False
        try:
            pulse = self._pulse_connect()
            pulse.default_set(self._lookup(ephemeral_id, kind))
        except Exception as e:
            logger.warning("Setting default %s to %s failed: %s", kind, ephemeral_id, e)
            self._drop_connection()
            return False
        return True

    def _default_sink(self):
        name = self._default_name(KIND_OUTPUT)
        return next((s for s in self._pulse_connect().sink_list() if s.name == name), None)

    def get_output_volume(self) -> float:
        try:
            sink = self._default_sink()
            if sink is None:
                return 0.0
            v = float(self._pulse_connect().volume_get_all_chans(sink))
        except Exception as e:
            logger.warning("Output volume read failed: %s", e)
            self._drop_connection()
            return 0.0
        return max(0.0, min(1.0, v))

    def set_output_volume(self, volume: float) -> None:
        v = max(0.0, min(1.0, float(volume)))
        try:
            sink = self._default_sink()
            if sink is None:
                return
            self._pulse_connect().volume_set_all_chans(sink, v)
        except Exception as e:
            logger.warning("Output volume write failed: %s", e)
            self._drop_connection()

    def is_muted(self, ephemeral_id: int, kind: str) -> bool:
        check_kind(kind)
        try:
            obj = self._lookup(ephemeral_id, kind)
            if bool(obj.mute):
                return True
            if kind == KIND_OUTPUT:
                return float(self._pulse_connect().volume_get_all_chans(obj)) < MUTED_VOLUME_FLOOR
        except Exception as e:
            logger.debug("Mute state of %s %s unavailable: %s", kind, ephemeral_id, e)
        return False

    def subscribe(
        self,
        on_devices_changed: Callable[[], None],
        on_default_output_changed: Callable[[Optional[int]], None],
        on_mute_or_volume_changed: Callable[[], None],
    ) -> None:
        if self._listener is not None:
            self._listener.stop()
        self._listener = PulseEventListener(
            f"{self._client_name}-events",
            on_devices_changed=on_devices_changed,
            on_default_output_changed=on_default_output_changed,
            on_mute_or_volume_changed=on_mute_or_volume_changed,
        )
        self._listener.start()
