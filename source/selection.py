# selection.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from models import (
    CATEGORY_HEADPHONE,
    CATEGORY_SPEAKER,
    KIND_INPUT,
    KIND_OUTPUT,
    AudioDevice,
    check_kind,
)
from priority_store import PriorityStore, priority_key
from visibility import VisibilityPolicy

logger = logging.getLogger(__name__)


class SelfSetLedger:
    """Last ephemeral id this engine made the default, per kind."""

    def __init__(self) -> None:
        self._last: Dict[str, Optional[int]] = {KIND_INPUT: None, KIND_OUTPUT: None}

    def last(self, kind: str) -> Optional[int]:
        return self._last[check_kind(kind)]

    def record(self, kind: str, ephemeral_id: Optional[int]) -> None:
        self._last[check_kind(kind)] = ephemeral_id

    def is_echo(self, kind: str, ephemeral_id: Optional[int]) -> bool:
        return ephemeral_id is not None and self.last(kind) == ephemeral_id


@dataclass
class DeviceLists:
    inputs: List[AudioDevice] = field(default_factory=list)
    speakers: List[AudioDevice] = field(default_factory=list)
    headphones: List[AudioDevice] = field(default_factory=list)
    hidden_inputs: List[AudioDevice] = field(default_factory=list)
    hidden_speakers: List[AudioDevice] = field(default_factory=list)
    hidden_headphones: List[AudioDevice] = field(default_factory=list)
    never_use: List[AudioDevice] = field(default_factory=list)

    def for_kind(self, kind: str, category: Optional[str] = None) -> List[AudioDevice]:
        if check_kind(kind) == KIND_INPUT:
            return self.inputs
        return self.headphones if category == CATEGORY_HEADPHONE else self.speakers

    def hidden(self) -> List[AudioDevice]:
        return self.hidden_inputs + self.hidden_speakers + self.hidden_headphones

    def ignored(self) -> List[AudioDevice]:
        return self.hidden() + self.never_use


class SelectionEngine:
    def __init__(
        self,
        backend,
        priorities: PriorityStore,
        visibility: VisibilityPolicy,
        ledger: SelfSetLedger,
    ) -> None:
        self._backend = backend
        self._priorities = priorities
        self._visibility = visibility
        self.ledger = ledger
        self.lists = DeviceLists()

    def rebuild(
        self,
        connected: Iterable[AudioDevice],
        placeholders: Iterable[AudioDevice] = (),
        edit_mode: bool = False,
    ) -> DeviceLists:
        devices = list(connected)
        if edit_mode:
            devices += list(placeholders)

        inputs = [d for d in devices if d.kind == KIND_INPUT]
        outputs = [d for d in devices if d.kind == KIND_OUTPUT]
        speakers = [d for d in outputs if self._priorities.category_of(d) == CATEGORY_SPEAKER]
        headphones = [d for d in outputs if self._priorities.category_of(d) == CATEGORY_HEADPHONE]

        lists = DeviceLists()
        if edit_mode:
            lists.inputs = self._priorities.sort_by_priority(inputs, priority_key(KIND_INPUT))
            lists.speakers = self._priorities.sort_by_priority(speakers, priority_key(KIND_OUTPUT, CATEGORY_SPEAKER))
            lists.headphones = self._priorities.sort_by_priority(
                headphones, priority_key(KIND_OUTPUT, CATEGORY_HEADPHONE)
            )
            self.lists = lists
            return lists

        vis = self._visibility

        lists.inputs = self._priorities.sort_by_priority(
            [d for d in inputs if not vis.is_excluded(d)], priority_key(KIND_INPUT)
        )
        lists.speakers = self._priorities.sort_by_priority(
            [d for d in speakers if not vis.is_excluded(d, CATEGORY_SPEAKER)],
            priority_key(KIND_OUTPUT, CATEGORY_SPEAKER),
        )
        lists.headphones = self._priorities.sort_by_priority(
            [d for d in headphones if not vis.is_excluded(d, CATEGORY_HEADPHONE)],
            priority_key(KIND_OUTPUT, CATEGORY_HEADPHONE),
        )

        lists.hidden_inputs, never_in = vis.split_ignored(inputs)
        lists.hidden_speakers, never_sp = vis.split_ignored(speakers, CATEGORY_SPEAKER)
        lists.hidden_headphones, never_hp = vis.split_ignored(headphones, CATEGORY_HEADPHONE)
        lists.never_use = never_in + never_sp + never_hp

        self.lists = lists
        return lists

    def candidates(self, kind: str, category: Optional[str] = None) -> List[AudioDevice]:
        cat = category if kind == KIND_OUTPUT else None
        return [
            d
            for d in self.lists.for_kind(kind, category)
            if d.connected and d.is_valid and not self._visibility.is_excluded(d, cat)
        ]

    def apply_highest_priority(self, kind: str, category: Optional[str] = None) -> Optional[AudioDevice]:
        cands = self.candidates(kind, category)
        if not cands:
            logger.debug("No eligible %s device (%s); default left unchanged", kind, category or "-")
            return None
        return self._apply(cands[0])

    def select(self, device: AudioDevice) -> Optional[AudioDevice]:
        if not device.connected or not device.is_valid:
            logger.info("Ignoring selection of disconnected device %s", device.uid)
            return None
        return self._apply(device)

    def _apply(self, device: AudioDevice) -> Optional[AudioDevice]:
        if self._backend.get_default(device.kind) == device.ephemeral_id:
            self.ledger.record(device.kind, device.ephemeral_id)
            return device

        if not self._backend.set_default(device.ephemeral_id, device.kind):
            logger.warning("Could not make %s the default %s device", device.name, device.kind)
            return None

        self.ledger.record(device.kind, device.ephemeral_id)
        logger.info("Default %s device -> %s", device.kind, device.name)
        return device
