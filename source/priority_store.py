# priority_store.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from models import (
    CATEGORY_HEADPHONE,
    CATEGORY_SPEAKER,
    KIND_INPUT,
    AudioDevice,
    check_category,
    check_kind,
)
from store_config import (
    DEVICE_CATEGORIES_KEY,
    HEADPHONE_PRIORITIES_KEY,
    INPUT_PRIORITIES_KEY,
    SPEAKER_PRIORITIES_KEY,
    StateStore,
)

logger = logging.getLogger(__name__)

PRIORITY_KEYS = (INPUT_PRIORITIES_KEY, SPEAKER_PRIORITIES_KEY, HEADPHONE_PRIORITIES_KEY)


def priority_key(kind: str, category: Optional[str] = None) -> str:
    if check_kind(kind) == KIND_INPUT:
        return INPUT_PRIORITIES_KEY
    if category is None or check_category(category) == CATEGORY_SPEAKER:
        return SPEAKER_PRIORITIES_KEY
    return HEADPHONE_PRIORITIES_KEY


def dedupe(uids: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for u in uids:
        if u not in seen:
            seen.add(u)
            out.append(u)
    return out


class PriorityStore:
    def __init__(self, store: StateStore) -> None:
        self._store = store

    def priorities(self, key: str) -> List[str]:
        return self._store.get_list(key)

    def sort_by_priority(self, devices: Iterable[AudioDevice], key: str) -> List[AudioDevice]:
        order = self.priorities(key)
        rank: Dict[str, int] = {}
        for i, uid in enumerate(order):
            rank.setdefault(uid, i)
        unlisted = len(order)
        # sorted() is stable: unlisted devices keep their arrival order
        return sorted(devices, key=lambda d: rank.get(d.uid, unlisted))

    def save_priorities(self, devices: Iterable[AudioDevice], key: str) -> None:
        uids = dedupe(d.uid for d in devices)
        self._store.set_list(key, uids)
        logger.debug("Saved %s: %s", key, uids)

    def move(self, devices: List[AudioDevice], from_index: int, to_index: int, key: str) -> List[AudioDevice]:
        out = list(devices)
        if not (0 <= from_index < len(out)):
            return out
        to_index = max(0, min(to_index, len(out) - 1))
        d = out.pop(from_index)
        out.insert(to_index, d)
        self.save_priorities(out, key)
        return out

    def move_to_top(self, devices: List[AudioDevice], uid: str, key: str) -> List[AudioDevice]:
        idx = next((i for i, d in enumerate(devices) if d.uid == uid), None)
        if idx is None:
            return list(devices)
        return self.move(devices, idx, 0, key)

    def category_of(self, device: AudioDevice) -> str:
        raw = self._store.get_map(DEVICE_CATEGORIES_KEY).get(device.uid)
        if raw in (CATEGORY_SPEAKER, CATEGORY_HEADPHONE):
            return raw
        return CATEGORY_SPEAKER

    def set_category(self, uid: str, category: str) -> None:
        cats = self._store.get_map(DEVICE_CATEGORIES_KEY)
        cats[uid] = check_category(category)
        self._store.set_map(DEVICE_CATEGORIES_KEY, cats)

    def purge(self, uid: str) -> None:
        for key in PRIORITY_KEYS:
            order = self.priorities(key)
            if uid in order:
                self._store.set_list(key, [u for u in order if u != uid])

        cats = self._store.get_map(DEVICE_CATEGORIES_KEY)
        if uid in cats:
            del cats[uid]
            self._store.set_map(DEVICE_CATEGORIES_KEY, cats)
