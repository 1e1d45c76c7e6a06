"""
Visibility Tests - hidden sets and never-use.

Run with: pytest tests/test_visibility.py -v
"""
from conftest import mic, out

from models import CATEGORY_HEADPHONE, CATEGORY_SPEAKER
from priority_store import PriorityStore
from store_config import (
    HIDDEN_HEADPHONES_KEY,
    HIDDEN_MICS_KEY,
    HIDDEN_SPEAKERS_KEY,
    NEVER_USE_KEY,
)
from visibility import VisibilityPolicy


def policy(store):
    return VisibilityPolicy(store, PriorityStore(store).category_of)


class TestHide:
    def test_input_hide_is_global(self, store):
        vis = policy(store)
        vis.hide(mic(1, "m"))
        assert store.get_list(HIDDEN_MICS_KEY) == ["m"]
        assert vis.is_hidden(mic(1, "m"))

    def test_output_hide_uses_its_category(self, store):
        """Without an explicit category the device's own category decides."""
        PriorityStore(store).set_category("hp", CATEGORY_HEADPHONE)
        vis = policy(store)

        vis.hide(out(1, "hp"))
        assert store.get_list(HIDDEN_HEADPHONES_KEY) == ["hp"]
        assert store.get_list(HIDDEN_SPEAKERS_KEY) == []

    def test_output_hide_in_explicit_category(self, store):
        vis = policy(store)
        vis.hide(out(1, "x"), CATEGORY_HEADPHONE)
        assert vis.is_hidden(out(1, "x"), CATEGORY_HEADPHONE)
        assert not vis.is_hidden(out(1, "x"), CATEGORY_SPEAKER)

    def test_hide_twice_is_idempotent(self, store):
        vis = policy(store)
        vis.hide(mic(1, "m"))
        vis.hide(mic(1, "m"))
        assert store.get_list(HIDDEN_MICS_KEY) == ["m"]

    def test_unhide(self, store):
        vis = policy(store)
        vis.hide(mic(1, "m"))
        vis.unhide(mic(1, "m"))
        assert not vis.is_hidden(mic(1, "m"))

    def test_hide_entirely_covers_both_categories_in_one_write(self, store):
        vis = policy(store)
        vis.hide_entirely(out(1, "x"))

        assert vis.is_hidden(out(1, "x"), CATEGORY_SPEAKER)
        assert vis.is_hidden(out(1, "x"), CATEGORY_HEADPHONE)
        assert store.writes == 1


class TestNeverUse:
    def test_set_and_clear(self, store):
        vis = policy(store)
        vis.set_never_use(out(1, "x"), True)
        assert vis.is_never_use(out(1, "x"))
        assert vis.is_excluded(out(1, "x"))

        vis.set_never_use(out(1, "x"), False)
        assert store.get_list(NEVER_USE_KEY) == []
        assert not vis.is_excluded(out(1, "x"))


class TestSplitIgnored:
    def test_hidden_wins_over_never_use(self, store):
        """A device that is both hidden and never-use is listed once, as hidden."""
        vis = policy(store)
        a, b, c = mic(1, "a"), mic(2, "b"), mic(3, "c")
        vis.hide(a)
        vis.set_never_use(a, True)
        vis.set_never_use(b, True)

        hidden, never = vis.split_ignored([a, b, c])
        assert hidden == [a]
        assert never == [b]

    def test_purge(self, store):
        vis = policy(store)
        vis.hide_entirely(out(1, "x"))
        vis.set_never_use(out(1, "x"), True)

        vis.purge("x")
        assert not vis.is_excluded(out(1, "x"), CATEGORY_SPEAKER)
        assert not vis.is_excluded(out(1, "x"), CATEGORY_HEADPHONE)
