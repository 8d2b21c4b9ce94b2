"""Tests for eventfsm.types."""

import pytest

from eventfsm.types import (
    DEFAULT_INITIAL_EVENT,
    NONE_STATE,
    WILDCARD,
    ErrorCode,
    EventSpec,
    InitialState,
    MachineConfig,
    Result,
    TransitionContext,
    TransitionRecord,
)


# ── Codes ──────────────────────────────────────────────────────────────────────

class TestCodes:
    def test_result_values(self):
        assert Result.SUCCEEDED.value == 1
        assert Result.NOTRANSITION.value == 2
        assert Result.CANCELLED.value == 3
        assert Result.PENDING.value == 4

    def test_error_code_values(self):
        assert ErrorCode.INVALID_TRANSITION.value == 100
        assert ErrorCode.PENDING_TRANSITION.value == 200
        assert ErrorCode.INVALID_CALLBACK.value == 300


# ── EventSpec ──────────────────────────────────────────────────────────────────

class TestEventSpec:
    def test_single_from_state_normalised_to_tuple(self):
        e = EventSpec("start", from_state="created", to_state="running")
        assert e.from_state == ("created",)

    def test_many_from_states(self):
        e = EventSpec("stop", from_state=["running", "paused"], to_state="stopped")
        assert e.from_state == ("running", "paused")

    def test_missing_from_state_is_wildcard(self):
        e = EventSpec("reset", to_state="created")
        assert e.from_state == ()
        assert e.sources == (WILDCARD,)

    def test_empty_list_is_wildcard(self):
        e = EventSpec("reset", from_state=[], to_state="created")
        assert e.sources == (WILDCARD,)

    def test_missing_to_state_allowed(self):
        e = EventSpec("ping", from_state="running")
        assert e.to_state is None

    def test_empty_name_raises(self):
        with pytest.raises(ValueError, match="name"):
            EventSpec("")

    def test_empty_from_state_raises(self):
        with pytest.raises(ValueError, match="from_state"):
            EventSpec("start", from_state=["a", ""])

    def test_empty_to_state_raises(self):
        with pytest.raises(ValueError, match="to_state"):
            EventSpec("start", from_state="a", to_state="")

    def test_from_dict(self):
        e = EventSpec.from_dict({"name": "start", "from": "created", "to": "running"})
        assert e == EventSpec("start", "created", "running")

    def test_from_dict_accepts_field_names(self):
        e = EventSpec.from_dict({"name": "start", "from_state": "a", "to_state": "b"})
        assert e.from_state == ("a",)
        assert e.to_state == "b"

    def test_from_dict_missing_name_raises(self):
        with pytest.raises(ValueError, match="name"):
            EventSpec.from_dict({"from": "a", "to": "b"})


# ── InitialState ───────────────────────────────────────────────────────────────

class TestInitialState:
    def test_defaults(self):
        i = InitialState("created")
        assert i.event == DEFAULT_INITIAL_EVENT
        assert i.defer is False

    def test_empty_state_raises(self):
        with pytest.raises(ValueError, match="state"):
            InitialState("")

    def test_as_event_leaves_none(self):
        e = InitialState("created", event="boot").as_event()
        assert e.name == "boot"
        assert e.from_state == (NONE_STATE,)
        assert e.to_state == "created"

    def test_coerce_string(self):
        assert InitialState.coerce("idle") == InitialState("idle")

    def test_coerce_dict(self):
        i = InitialState.coerce({"state": "idle", "event": "init", "defer": True})
        assert i == InitialState("idle", event="init", defer=True)

    def test_coerce_dict_without_state_raises(self):
        with pytest.raises(ValueError, match="state"):
            InitialState.coerce({"event": "init"})

    def test_coerce_none(self):
        assert InitialState.coerce(None) is None

    def test_coerce_unsupported_raises(self):
        with pytest.raises(TypeError):
            InitialState.coerce(42)


# ── MachineConfig ──────────────────────────────────────────────────────────────

class TestMachineConfig:
    def test_initial_string_coerced(self):
        c = MachineConfig(initial="created")
        assert isinstance(c.initial, InitialState)

    def test_event_dicts_coerced(self):
        c = MachineConfig(events=[{"name": "start", "from": "a", "to": "b"}])
        assert c.events == [EventSpec("start", "a", "b")]

    def test_terminal_single(self):
        assert MachineConfig(terminal="done").terminal_states == frozenset({"done"})

    def test_terminal_many(self):
        c = MachineConfig(terminal=["done", "failed"])
        assert c.terminal_states == frozenset({"done", "failed"})

    def test_terminal_none(self):
        assert MachineConfig().terminal_states == frozenset()

    def test_negative_history_raises(self):
        with pytest.raises(ValueError, match="history_size"):
            MachineConfig(history_size=-1)

    def test_from_dict_accepts_final_alias(self):
        c = MachineConfig.from_dict({"final": "stopped"})
        assert c.terminal_states == frozenset({"stopped"})

    def test_from_dict_full(self):
        handler = lambda *a: None
        c = MachineConfig.from_dict({
            "initial": {"state": "created", "defer": True},
            "terminal": ["stopped"],
            "events": [{"name": "start", "from": "created", "to": "running"}],
            "callbacks": {"on_start": handler},
            "error": handler,
        })
        assert c.initial.defer is True
        assert c.events[0].name == "start"
        assert c.callbacks == {"on_start": handler}
        assert c.error is handler


# ── TransitionContext / TransitionRecord ───────────────────────────────────────

class TestTransitionContext:
    def test_is_noop(self):
        assert TransitionContext("ping", "a", "a").is_noop
        assert not TransitionContext("go", "a", "b").is_noop

    def test_defaults(self):
        ctx = TransitionContext("go", "a", "b")
        assert ctx.args == ()
        assert ctx.kwargs == {}


class TestTransitionRecord:
    def test_succeeded(self):
        r = TransitionRecord("go", "a", "b", result=Result.SUCCEEDED)
        assert r.succeeded
        assert not r.failed

    def test_failed(self):
        r = TransitionRecord("go", "a", "a", error=ErrorCode.INVALID_TRANSITION)
        assert r.failed
        assert not r.succeeded

    def test_to_dict(self):
        r = TransitionRecord("go", "a", "b", result=Result.PENDING, timestamp=1.0)
        assert r.to_dict() == {
            "event": "go",
            "from_state": "a",
            "to_state": "b",
            "result": "PENDING",
            "error": None,
            "timestamp": 1.0,
        }
