"""Shared pytest fixtures for aPriority tests."""
import sys
from pathlib import Path

# Modules live in source/, make them importable BEFORE any other imports
SOURCE_DIR = Path(__file__).parent.parent / "source"
sys.path.insert(0, str(SOURCE_DIR))

import pytest

from models import KIND_INPUT, KIND_OUTPUT, AudioDevice
from store_config import MemoryStore


def mic(idx, uid, name=None):
    return AudioDevice(ephemeral_id=idx, uid=uid, name=name or uid, kind=KIND_INPUT)


def out(idx, uid, name=None):
    return AudioDevice(ephemeral_id=idx, uid=uid, name=name or uid, kind=KIND_OUTPUT)


class FakeBackend:
    """In-memory audio server: devices, defaults, mute flags and one volume."""

    def __init__(self, devices=None):
        self.devices = list(devices or [])
        self.defaults = {KIND_INPUT: None, KIND_OUTPUT: None}
        self.muted = set()
        self.volume = 0.5
        self.set_calls = []
        self.fail_set = False
        self.closed = False

    def plug(self, device):
        self.devices.append(device)

    def unplug(self, uid):
        gone = [d for d in self.devices if d.uid == uid]
        self.devices = [d for d in self.devices if d.uid != uid]
        for d in gone:
            if self.defaults[d.kind] == d.ephemeral_id:
                self.defaults[d.kind] = None

    def enumerate(self):
        return list(self.devices)

    def get_default(self, kind):
        return self.defaults[kind]

    def set_default(self, ephemeral_id, kind):
        if self.fail_set or ephemeral_id is None:
            return False
        self.set_calls.append((kind, ephemeral_id))
        self.defaults[kind] = ephemeral_id
        return True

    def get_output_volume(self):
        return self.volume

    def set_output_volume(self, volume):
        self.volume = volume

    def is_muted(self, ephemeral_id, kind):
        return (kind, ephemeral_id) in self.muted

    def close(self):
        self.closed = True


class FakeTimer:
    def __init__(self, interval_ms, on_timeout):
        self.interval_ms = interval_ms
        self.on_timeout = on_timeout
        self.running = False

    def start(self):
        self.running = True

    def stop(self):
        self.running = False

    def fire(self):
        self.on_timeout()


@pytest.fixture
def store():
    """Fresh in-memory state store."""
    return MemoryStore()


@pytest.fixture
def backend():
    """Backend with no devices."""
    return FakeBackend()


@pytest.fixture
def timers():
    """Every FakeTimer created through timer_factory, in creation order."""
    return []


@pytest.fixture
def timer_factory(timers):
    def factory(interval_ms, on_timeout):
        t = FakeTimer(interval_ms, on_timeout)
        timers.append(t)
        return t

    return factory


@pytest.fixture
def make_manager(backend, store, timer_factory):
    """Build an AudioManager over the fake backend and the memory store."""
    from audio_manager import AudioManager

    def build(**kwargs):
        kwargs.setdefault("clock", lambda: 1_000_000.0)
        kwargs.setdefault("timer_factory", timer_factory)
        return AudioManager(backend, store, **kwargs)

    return build
