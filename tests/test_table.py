"""Tests for eventfsm.table — the transition table builder."""

import pytest

from eventfsm.table import TransitionTable
from eventfsm.types import NONE_STATE, WILDCARD, EventSpec, InitialState


def _table(*events, initial=None) -> TransitionTable:
    return TransitionTable.build(list(events), initial)


# ── Building ───────────────────────────────────────────────────────────────────

class TestBuild:
    def test_simple_map(self):
        t = _table(EventSpec("start", "created", "running"))
        assert dict(t.transitions["start"]) == {"created": "running"}

    def test_many_sources(self):
        t = _table(EventSpec("stop", ["running", "paused"], "stopped"))
        assert dict(t.transitions["stop"]) == {"running": "stopped", "paused": "stopped"}

    def test_wildcard_source(self):
        t = _table(EventSpec("reset", to_state="created"))
        assert dict(t.transitions["reset"]) == {WILDCARD: "created"}

    def test_noop_stored_as_none(self):
        t = _table(EventSpec("ping", "running"))
        assert dict(t.transitions["ping"]) == {"running": None}

    def test_last_write_wins(self):
        t = _table(
            EventSpec("go", "a", "b"),
            EventSpec("go", "a", "c"),
        )
        assert t.transitions["go"]["a"] == "c"

    def test_same_event_accumulates_sources(self):
        t = _table(
            EventSpec("go", "a", "b"),
            EventSpec("go", "b", "c"),
        )
        assert dict(t.transitions["go"]) == {"a": "b", "b": "c"}

    def test_initial_synthesised_first(self):
        t = _table(EventSpec("start", "created", "running"), initial=InitialState("created"))
        assert t.event_names == ("startup", "start")
        assert dict(t.transitions["startup"]) == {NONE_STATE: "created"}

    def test_initial_custom_event(self):
        t = _table(initial=InitialState("idle", event="boot"))
        assert "boot" in t
        assert "startup" not in t

    def test_maps_are_read_only(self):
        t = _table(EventSpec("start", "created", "running"))
        with pytest.raises(TypeError):
            t.transitions["start"]["created"] = "stopped"
        with pytest.raises(TypeError):
            t.transitions["new"] = {}

    def test_every_event_has_a_source(self):
        t = _table(
            EventSpec("a"),
            EventSpec("b", ["x", "y"], "z"),
            initial=InitialState("x"),
        )
        assert all(len(m) >= 1 for m in t.transitions.values())


# ── Reachability index ─────────────────────────────────────────────────────────

class TestReachability:
    def test_index_by_state(self):
        t = _table(
            EventSpec("start", "created", "running"),
            EventSpec("stop", "running", "stopped"),
            EventSpec("pause", "running", "paused"),
        )
        assert t.reachability["running"] == ("stop", "pause")

    def test_duplicates_removed(self):
        t = _table(
            EventSpec("go", "a", "b"),
            EventSpec("go", "a", "c"),
        )
        assert t.reachability["a"] == ("go",)

    def test_wildcard_events_indexed_under_wildcard(self):
        t = _table(EventSpec("reset", to_state="created"))
        assert t.reachability[WILDCARD] == ("reset",)

    def test_events_from_includes_wildcard_events(self):
        t = _table(
            EventSpec("stop", "running", "stopped"),
            EventSpec("reset", to_state="created"),
        )
        assert t.events_from("running") == ["stop", "reset"]
        assert t.events_from("stopped") == ["reset"]

    def test_events_from_unknown_state(self):
        t = _table(EventSpec("stop", "running", "stopped"))
        assert t.events_from("nowhere") == []


# ── Lookups ────────────────────────────────────────────────────────────────────

class TestLookups:
    def test_permits_exact(self):
        t = _table(EventSpec("start", "created", "running"))
        assert t.permits("start", "created")
        assert not t.permits("start", "running")

    def test_permits_wildcard(self):
        t = _table(EventSpec("reset", to_state="created"))
        assert t.permits("reset", "anything")

    def test_permits_unknown_event(self):
        assert not _table().permits("missing", "created")

    def test_destination_exact_before_wildcard(self):
        t = _table(
            EventSpec("go", to_state="b"),
            EventSpec("go", "a", "c"),
        )
        assert t.destination("go", "a") == "c"
        assert t.destination("go", "x") == "b"

    def test_destination_noop_is_source(self):
        t = _table(EventSpec("ping", "running"))
        assert t.destination("ping", "running") == "running"

    def test_wildcard_noop_resolves_to_current_state(self):
        t = _table(EventSpec("touch"))
        assert t.destination("touch", "running") == "running"
        assert t.destination("touch", "stopped") == "stopped"

    def test_destination_unmatched_is_unchanged(self):
        t = _table(EventSpec("start", "created", "running"))
        assert t.destination("start", "stopped") == "stopped"

    def test_states_exclude_wildcard(self):
        t = _table(
            EventSpec("start", "created", "running"),
            EventSpec("reset", to_state="created"),
        )
        assert set(t.states) == {"created", "running"}
