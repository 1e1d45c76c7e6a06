# mode_controller.py
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence, Tuple

from models import (
    CATEGORY_HEADPHONE,
    CATEGORY_SPEAKER,
    CATEGORIES,
    KIND_INPUT,
    KIND_OUTPUT,
    AudioDevice,
    check_category,
    other_category,
)
from selection import SelfSetLedger
from store_config import CURRENT_MODE_KEY, CUSTOM_MODE_KEY, StateStore

logger = logging.getLogger(__name__)

Reapply = Callable[[Tuple[str, ...]], None]


class ModeController:
    """
    Output category (speaker/headphone) x automatic/manual.

    The auto-switch reacts to transitions only: a headphone that stays plugged
    in never pulls the category back after the user picked speakers.
    """

    def __init__(
        self,
        store: StateStore,
        category_of: Callable[[AudioDevice], str],
        ledger: SelfSetLedger,
        reapply: Optional[Reapply] = None,
    ) -> None:
        self._store = store
        self._category_of = category_of
        self._ledger = ledger
        self._reapply = reapply

        raw = store.get_str(CURRENT_MODE_KEY, CATEGORY_SPEAKER)
        self._category = raw if raw in CATEGORIES else CATEGORY_SPEAKER
        self._manual = store.get_bool(CUSTOM_MODE_KEY, False)

    def set_reapply(self, reapply: Optional[Reapply]) -> None:
        self._reapply = reapply

    @property
    def category(self) -> str:
        return self._category

    @property
    def is_automatic(self) -> bool:
        return not self._manual

    def _switch(self, category: str) -> None:
        self._category = category
        self._store.set_str(CURRENT_MODE_KEY, category)

    def set_category(self, category: str) -> None:
        self._switch(check_category(category))
        logger.info("Output category -> %s", category)
        if self.is_automatic and self._reapply is not None:
            self._reapply((KIND_OUTPUT,))

    def toggle_category(self) -> None:
        self.set_category(other_category(self._category))

    def set_manual(self, flag: bool) -> None:
        was_manual = self._manual
        self._manual = bool(flag)
        self._store.set_bool(CUSTOM_MODE_KEY, self._manual)
        logger.info("Mode -> %s", "manual" if self._manual else "automatic")
        if was_manual and not self._manual and self._reapply is not None:
            self._reapply((KIND_INPUT, KIND_OUTPUT))

    def on_device_list_changed(
        self, newly_connected: Iterable[str], connected_outputs: Sequence[AudioDevice]
    ) -> Optional[str]:
        if not self.is_automatic:
            return None

        outputs = [d for d in connected_outputs if d.kind == KIND_OUTPUT and d.connected]
        headphone_uids = {d.uid for d in outputs if self._category_of(d) == CATEGORY_HEADPHONE}
        any_speaker = any(self._category_of(d) == CATEGORY_SPEAKER for d in outputs)

        # hidden or never-use headphones still count here
        if any(uid in headphone_uids for uid in newly_connected) and self._category != CATEGORY_HEADPHONE:
            self._switch(CATEGORY_HEADPHONE)
            logger.info("Headphones connected; category -> headphone")
            return CATEGORY_HEADPHONE

        if not headphone_uids and any_speaker and self._category == CATEGORY_HEADPHONE:
            self._switch(CATEGORY_SPEAKER)
            logger.info("No headphones left; category -> speaker")
            return CATEGORY_SPEAKER

        return None

    def on_external_default_output_changed(
        self, reported_id: Optional[int], connected_outputs: Sequence[AudioDevice]
    ) -> Optional[str]:
        if not self.is_automatic or reported_id is None:
            return None

        if self._ledger.is_echo(KIND_OUTPUT, reported_id):
            logger.debug("Default output change to %s is our own; ignoring", reported_id)
            return None

        device = next((d for d in connected_outputs if d.ephemeral_id == reported_id), None)
        if device is None:
            return None

        cat = self._category_of(device)
        if cat == self._category:
            return None

        self._switch(cat)
        self._ledger.record(KIND_OUTPUT, reported_id)
        logger.info("Default output moved to %s externally; category -> %s", device.name, cat)
        return cat
