# visibility.py
from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Tuple

from models import CATEGORY_HEADPHONE, CATEGORY_SPEAKER, KIND_INPUT, AudioDevice, check_category
from store_config import (
    HIDDEN_HEADPHONES_KEY,
    HIDDEN_MICS_KEY,
    HIDDEN_SPEAKERS_KEY,
    NEVER_USE_KEY,
    StateStore,
)

HIDDEN_KEYS = (HIDDEN_MICS_KEY, HIDDEN_SPEAKERS_KEY, HIDDEN_HEADPHONES_KEY)


class VisibilityPolicy:
    """
    Hidden sets (global for inputs, per category for outputs) and the never-use
    set. Hidden devices drop out of the active view; never-use devices are only
    skipped by automatic selection and listed separately among the ignored ones.
    """

    def __init__(self, store: StateStore, category_of: Callable[[AudioDevice], str]) -> None:
        self._store = store
        self._category_of = category_of

    def _hidden_key(self, device: AudioDevice, category: Optional[str] = None) -> str:
        if device.kind == KIND_INPUT:
            return HIDDEN_MICS_KEY
        cat = check_category(category) if category is not None else self._category_of(device)
        return HIDDEN_HEADPHONES_KEY if cat == CATEGORY_HEADPHONE else HIDDEN_SPEAKERS_KEY

    def _add(self, key: str, uid: str) -> None:
        ids = self._store.get_list(key)
        if uid not in ids:
            ids.append(uid)
            self._store.set_list(key, ids)

    def _remove(self, key: str, uid: str) -> None:
        ids = self._store.get_list(key)
        if uid in ids:
            self._store.set_list(key, [u for u in ids if u != uid])

    def is_hidden(self, device: AudioDevice, category: Optional[str] = None) -> bool:
        return device.uid in self._store.get_list(self._hidden_key(device, category))

    def hide(self, device: AudioDevice, category: Optional[str] = None) -> None:
        self._add(self._hidden_key(device, category), device.uid)

    def unhide(self, device: AudioDevice, category: Optional[str] = None) -> None:
        self._remove(self._hidden_key(device, category), device.uid)

    def hide_entirely(self, device: AudioDevice) -> None:
        if device.kind == KIND_INPUT:
            self.hide(device)
            return
        with self._store.batch():
            self.hide(device, CATEGORY_SPEAKER)
            self.hide(device, CATEGORY_HEADPHONE)

    def is_never_use(self, device: AudioDevice) -> bool:
        return device.uid in self._store.get_list(NEVER_USE_KEY)

    def set_never_use(self, device: AudioDevice, flag: bool) -> None:
        if flag:
            self._add(NEVER_USE_KEY, device.uid)
        else:
            self._remove(NEVER_USE_KEY, device.uid)

    def is_excluded(self, device: AudioDevice, category: Optional[str] = None) -> bool:
        return self.is_hidden(device, category) or self.is_never_use(device)

    def split_ignored(
        self, devices: Iterable[AudioDevice], category: Optional[str] = None
    ) -> Tuple[List[AudioDevice], List[AudioDevice]]:
        hidden: List[AudioDevice] = []
        never: List[AudioDevice] = []
        for d in devices:
            if self.is_hidden(d, category):
                hidden.append(d)
            elif self.is_never_use(d):
                never.append(d)
        return hidden, never

    def purge(self, uid: str) -> None:
        for key in HIDDEN_KEYS + (NEVER_USE_KEY,):
            self._remove(key, uid)
