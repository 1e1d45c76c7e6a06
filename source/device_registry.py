# device_registry.py
from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional, Set

from models import AudioDevice, StoredDevice, check_kind
from store_config import KNOWN_DEVICES_KEY, StateStore

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Memory of every device ever seen, keyed by uid."""

    def __init__(self, store: StateStore, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock

    def known_devices(self) -> List[StoredDevice]:
        out: List[StoredDevice] = []
        for rec in self._store.get_records(KNOWN_DEVICES_KEY):
            d = StoredDevice.from_dict(rec)
            if d is not None:
                out.append(d)
        return out

    def get(self, uid: str) -> Optional[StoredDevice]:
        return next((d for d in self.known_devices() if d.uid == uid), None)

    def _save(self, devices: List[StoredDevice]) -> None:
        self._store.set_records(KNOWN_DEVICES_KEY, [d.to_dict() for d in devices])

    def _upsert(self, known: List[StoredDevice], uid: str, name: str, kind: str, now: float) -> None:
        fresh = StoredDevice(uid=uid, name=name, kind=check_kind(kind), last_seen=now)
        for i, d in enumerate(known):
            if d.uid == uid:
                known[i] = fresh
                return
        logger.info("New %s device remembered: %s (%s)", kind, name, uid)
        known.append(fresh)

    def remember(self, uid: str, name: str, kind: str) -> None:
        known = self.known_devices()
        self._upsert(known, uid, name, kind, self._clock())
        self._save(known)

    def remember_all(self, devices: Iterable[AudioDevice]) -> None:
        known = self.known_devices()
        now = self._clock()
        for d in devices:
            self._upsert(known, d.uid, d.name, d.kind, now)
        self._save(known)

    def forget(self, uid: str) -> None:
        known = self.known_devices()
        kept = [d for d in known if d.uid != uid]
        if len(kept) != len(known):
            self._save(kept)

    def placeholders(self, kind: str, connected_uids: Set[str]) -> List[AudioDevice]:
        return [
            AudioDevice.disconnected(d.uid, d.name, d.kind)
            for d in self.known_devices()
            if d.kind == kind and d.uid not in connected_uids
        ]
