# models.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


KIND_INPUT = "input"
KIND_OUTPUT = "output"
KINDS = (KIND_INPUT, KIND_OUTPUT)

CATEGORY_SPEAKER = "speaker"
CATEGORY_HEADPHONE = "headphone"
CATEGORIES = (CATEGORY_SPEAKER, CATEGORY_HEADPHONE)

CATEGORY_LABELS = {
    CATEGORY_SPEAKER: "Speakers",
    CATEGORY_HEADPHONE: "Headphones",
}


def check_kind(kind: str) -> str:
    if kind not in KINDS:
        raise ValueError(f"Unknown device kind: {kind!r}")
    return kind


def check_category(category: str) -> str:
    if category not in CATEGORIES:
        raise ValueError(f"Unknown output category: {category!r}")
    return category


def other_category(category: str) -> str:
    return CATEGORY_HEADPHONE if check_category(category) == CATEGORY_SPEAKER else CATEGORY_SPEAKER


@dataclass(frozen=True)
class AudioDevice:
    ephemeral_id: Optional[int]  # server index, None for placeholders
    uid: str                     # stable across reconnects
    name: str
    kind: str                    # "input" | "output"
    connected: bool = True

    @property
    def is_valid(self) -> bool:
        return self.ephemeral_id is not None

    @classmethod
    def disconnected(cls, uid: str, name: str, kind: str) -> "AudioDevice":
        return cls(ephemeral_id=None, uid=uid, name=name, kind=kind, connected=False)


@dataclass
class StoredDevice:
    uid: str
    name: str
    kind: str
    last_seen: float

    def last_seen_relative(self, now: Optional[float] = None) -> str:
        interval = (time.time() if now is None else now) - self.last_seen

        if interval < 60:
            return "now"
        if interval < 3600:
            return f"{int(interval / 60)}m ago"
        if interval < 86400:
            return f"{int(interval / 3600)}h ago"
        if interval < 604800:
            return f"{int(interval / 86400)}d ago"
        if interval < 2592000:
            return f"{int(interval / 604800)}w ago"
        return f"{int(interval / 2592000)}mo ago"

    def to_dict(self) -> Dict[str, Any]:
        return {"uid": self.uid, "name": self.name, "kind": self.kind, "last_seen": self.last_seen}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Optional["StoredDevice"]:
        try:
            uid = str(d["uid"])
            kind = str(d.get("kind") or "")
            if not uid or kind not in KINDS:
                return None
            return cls(uid=uid, name=str(d.get("name") or uid), kind=kind, last_seen=float(d.get("last_seen") or 0.0))
        except (KeyError, TypeError, ValueError):
            return None
