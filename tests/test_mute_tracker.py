"""
Mute Tracker Tests - muted set and the blink timer for a muted microphone.

Run with: pytest tests/test_mute_tracker.py -v
"""
from conftest import FakeBackend, mic, out

from models import KIND_INPUT, KIND_OUTPUT
from mute_tracker import MuteTracker


class TestMutedSet:
    def test_collects_muted_devices(self, timer_factory):
        backend = FakeBackend()
        backend.muted = {(KIND_INPUT, 1), (KIND_OUTPUT, 3)}
        mt = MuteTracker(backend, timer_factory=timer_factory)

        mt.refresh([mic(1, "a"), mic(2, "b"), out(3, "c")], None, 3)
        assert mt.muted == {(KIND_INPUT, 1), (KIND_OUTPUT, 3)}
        assert mt.active_output_muted
        assert not mt.active_input_muted

    def test_sink_and_source_sharing_an_index_stay_apart(self, timer_factory, timers):
        """A muted speaker never marks the mic with the same server index as muted."""
        backend = FakeBackend()
        backend.muted = {(KIND_OUTPUT, 1)}
        mt = MuteTracker(backend, timer_factory=timer_factory)
        m1, s1 = mic(1, "alsa_input.pci"), out(1, "alsa_output.pci")

        mt.refresh([m1, s1], 1, 1)
        assert mt.active_output_muted
        assert not mt.active_input_muted
        assert mt.is_muted(s1)
        assert not mt.is_muted(m1)
        assert timers == []


class TestBlink:
    def test_muted_active_input_starts_one_timer(self, timer_factory, timers):
        """Repeated refreshes while muted never stack timers."""
        backend = FakeBackend()
        backend.muted = {(KIND_INPUT, 1)}
        mt = MuteTracker(backend, interval_ms=500, timer_factory=timer_factory)

        for _ in range(3):
            mt.refresh([mic(1, "a")], 1, None)

        assert len(timers) == 1
        assert timers[0].running
        assert timers[0].interval_ms == 500

    def test_tick_toggles_and_notifies(self, timer_factory, timers):
        seen = []
        backend = FakeBackend()
        backend.muted = {(KIND_INPUT, 1)}
        mt = MuteTracker(backend, timer_factory=timer_factory, on_blink=seen.append)

        mt.refresh([mic(1, "a")], 1, None)
        timers[0].fire()
        timers[0].fire()
        assert seen == [True, False]

    def test_unmute_stops_and_resets(self, timer_factory, timers):
        """The icon returns to its normal state when the mic is unmuted mid-blink."""
        seen = []
        backend = FakeBackend()
        backend.muted = {(KIND_INPUT, 1)}
        mt = MuteTracker(backend, timer_factory=timer_factory, on_blink=seen.append)

        mt.refresh([mic(1, "a")], 1, None)
        timers[0].fire()
        backend.muted = set()
        mt.refresh([mic(1, "a")], 1, None)

        assert not timers[0].running
        assert mt.blink_on is False
        assert not mt.blinking
        assert seen == [True, False]

    def test_switching_to_unmuted_input_stops_blink(self, timer_factory, timers):
        backend = FakeBackend()
        backend.muted = {(KIND_INPUT, 1)}
        mt = MuteTracker(backend, timer_factory=timer_factory)

        mt.refresh([mic(1, "a"), mic(2, "b")], 1, None)
        mt.refresh([mic(1, "a"), mic(2, "b")], 2, None)
        assert not mt.blinking

    def test_muted_non_default_input_does_not_blink(self, timer_factory, timers):
        backend = FakeBackend()
        backend.muted = {(KIND_INPUT, 2)}
        mt = MuteTracker(backend, timer_factory=timer_factory)

        mt.refresh([mic(1, "a"), mic(2, "b")], 1, None)
        assert timers == []
