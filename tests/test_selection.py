"""
Selection Tests - filtered, ordered lists and applying the default device.

Run with: pytest tests/test_selection.py -v
"""
from conftest import FakeBackend, mic, out

from models import CATEGORY_HEADPHONE, CATEGORY_SPEAKER, KIND_INPUT, KIND_OUTPUT, AudioDevice
from priority_store import PriorityStore
from selection import SelectionEngine, SelfSetLedger
from store_config import INPUT_PRIORITIES_KEY, SPEAKER_PRIORITIES_KEY
from visibility import VisibilityPolicy


def engine(store, backend):
    ps = PriorityStore(store)
    vis = VisibilityPolicy(store, ps.category_of)
    return SelectionEngine(backend, ps, vis, SelfSetLedger()), ps, vis


class TestSelfSetLedger:
    def test_echo_matches_last_recorded(self):
        ledger = SelfSetLedger()
        ledger.record(KIND_OUTPUT, 7)
        assert ledger.is_echo(KIND_OUTPUT, 7)
        assert not ledger.is_echo(KIND_OUTPUT, 8)
        assert not ledger.is_echo(KIND_INPUT, 7)

    def test_none_is_never_an_echo(self):
        assert not SelfSetLedger().is_echo(KIND_OUTPUT, None)


class TestRebuild:
    def test_lists_split_by_kind_and_category(self, store):
        e, ps, _ = engine(store, FakeBackend())
        ps.set_category("hp", CATEGORY_HEADPHONE)

        lists = e.rebuild([mic(1, "m"), out(2, "spk"), out(3, "hp")])
        assert [d.uid for d in lists.inputs] == ["m"]
        assert [d.uid for d in lists.speakers] == ["spk"]
        assert [d.uid for d in lists.headphones] == ["hp"]

    def test_hidden_and_never_use_move_to_ignored(self, store):
        """Ignored groups list hidden devices first, then never-use."""
        e, _, vis = engine(store, FakeBackend())
        a, b, c = out(1, "a"), out(2, "b"), out(3, "c")
        vis.set_never_use(a, True)
        vis.hide(b)

        lists = e.rebuild([a, b, c])
        assert [d.uid for d in lists.speakers] == ["c"]
        assert [d.uid for d in lists.ignored()] == ["b", "a"]

    def test_edit_mode_shows_everything_in_stored_position(self, store):
        """Hidden devices and placeholders keep their saved place while editing."""
        e, _, vis = engine(store, FakeBackend())
        store.set_list(SPEAKER_PRIORITIES_KEY, ["gone", "hidden", "live"])
        hidden, live = out(1, "hidden"), out(2, "live")
        vis.hide(hidden)
        gone = AudioDevice.disconnected("gone", "Gone", KIND_OUTPUT)

        lists = e.rebuild([hidden, live], [gone], edit_mode=True)
        assert [d.uid for d in lists.speakers] == ["gone", "hidden", "live"]
        assert lists.ignored() == []

    def test_placeholders_ignored_outside_edit_mode(self, store):
        e, _, _ = engine(store, FakeBackend())
        gone = AudioDevice.disconnected("gone", "Gone", KIND_OUTPUT)
        lists = e.rebuild([out(1, "live")], [gone], edit_mode=False)
        assert [d.uid for d in lists.speakers] == ["live"]


class TestApply:
    def test_highest_priority_becomes_default(self, store):
        backend = FakeBackend()
        e, _, _ = engine(store, backend)
        store.set_list(INPUT_PRIORITIES_KEY, ["usb", "builtin"])
        e.rebuild([mic(1, "builtin"), mic(2, "usb")])

        chosen = e.apply_highest_priority(KIND_INPUT)
        assert chosen.uid == "usb"
        assert backend.defaults[KIND_INPUT] == 2
        assert e.ledger.last(KIND_INPUT) == 2

    def test_never_use_is_skipped(self, store):
        backend = FakeBackend()
        e, _, vis = engine(store, backend)
        store.set_list(SPEAKER_PRIORITIES_KEY, ["tv", "desk"])
        tv = out(1, "tv")
        vis.set_never_use(tv, True)
        e.rebuild([tv, out(2, "desk")])

        assert e.apply_highest_priority(KIND_OUTPUT, CATEGORY_SPEAKER).uid == "desk"

    def test_already_default_is_not_set_again(self, store):
        """Applying the device the server already reports is a no-op on the server."""
        backend = FakeBackend()
        backend.defaults[KIND_OUTPUT] = 1
        e, _, _ = engine(store, backend)
        e.rebuild([out(1, "spk")])

        assert e.apply_highest_priority(KIND_OUTPUT, CATEGORY_SPEAKER).uid == "spk"
        assert backend.set_calls == []
        assert e.ledger.last(KIND_OUTPUT) == 1

    def test_empty_category_leaves_default_alone(self, store):
        backend = FakeBackend()
        backend.defaults[KIND_OUTPUT] = 1
        e, _, _ = engine(store, backend)
        e.rebuild([out(1, "spk")])

        assert e.apply_highest_priority(KIND_OUTPUT, CATEGORY_HEADPHONE) is None
        assert backend.set_calls == []
        assert backend.defaults[KIND_OUTPUT] == 1

    def test_failed_set_is_not_recorded(self, store):
        backend = FakeBackend()
        backend.fail_set = True
        e, _, _ = engine(store, backend)
        e.rebuild([mic(1, "m")])

        assert e.apply_highest_priority(KIND_INPUT) is None
        assert e.ledger.last(KIND_INPUT) is None

    def test_select_disconnected_is_ignored(self, store):
        backend = FakeBackend()
        e, _, _ = engine(store, backend)
        gone = AudioDevice.disconnected("gone", "Gone", KIND_OUTPUT)

        assert e.select(gone) is None
        assert backend.set_calls == []
