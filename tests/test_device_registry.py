"""
Device Registry Tests - memory of every device ever seen.

Run with: pytest tests/test_device_registry.py -v
"""
from conftest import mic, out

from device_registry import DeviceRegistry
from models import KIND_INPUT, KIND_OUTPUT
from store_config import KNOWN_DEVICES_KEY, MemoryStore


class TestRemember:
    def test_new_device_is_recorded(self, store):
        reg = DeviceRegistry(store, clock=lambda: 100.0)
        reg.remember("usb-mic", "USB Mic", KIND_INPUT)

        d = reg.get("usb-mic")
        assert d is not None
        assert d.name == "USB Mic"
        assert d.last_seen == 100.0

    def test_existing_device_is_updated_not_duplicated(self, store):
        """Remembering again refreshes name and last_seen in place."""
        now = [100.0]
        reg = DeviceRegistry(store, clock=lambda: now[0])
        reg.remember("usb-mic", "USB Mic", KIND_INPUT)
        now[0] = 200.0
        reg.remember("usb-mic", "USB Mic (renamed)", KIND_INPUT)

        known = reg.known_devices()
        assert len(known) == 1
        assert known[0].name == "USB Mic (renamed)"
        assert known[0].last_seen == 200.0

    def test_remember_all_is_one_write(self, store):
        reg = DeviceRegistry(store, clock=lambda: 1.0)
        reg.remember_all([mic(1, "a"), out(2, "b"), out(3, "c")])

        assert store.writes == 1
        assert {d.uid for d in reg.known_devices()} == {"a", "b", "c"}


class TestForget:
    def test_forget_removes_record(self, store):
        reg = DeviceRegistry(store)
        reg.remember("a", "A", KIND_OUTPUT)
        reg.forget("a")
        assert reg.get("a") is None

    def test_forget_unknown_does_not_write(self, store):
        reg = DeviceRegistry(store)
        reg.forget("nobody")
        assert store.writes == 0


class TestPlaceholders:
    def test_only_disconnected_devices_of_kind(self, store):
        """Connected devices and the other kind are not turned into placeholders."""
        reg = DeviceRegistry(store)
        reg.remember_all([mic(1, "mic-a"), mic(2, "mic-b"), out(3, "spk")])

        ph = reg.placeholders(KIND_INPUT, {"mic-a"})
        assert [d.uid for d in ph] == ["mic-b"]
        assert ph[0].connected is False
        assert ph[0].ephemeral_id is None

    def test_corrupt_records_are_skipped(self):
        store = MemoryStore({KNOWN_DEVICES_KEY: '[{"uid": "ok", "kind": "output"}, {"kind": "output"}, 5]'})
        reg = DeviceRegistry(store)
        assert [d.uid for d in reg.known_devices()] == ["ok"]
