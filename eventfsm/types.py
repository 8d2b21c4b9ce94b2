"""
State machine data types and structures.

Defines the core types used by the event-driven state machine:
- Result: Outcomes of firing an event
- ErrorCode: Failures reported to the error handler
- EventSpec: Declares an event and its allowed transitions
- InitialState: Describes how the machine enters its first state
- MachineConfig: Full declarative configuration for a machine
- TransitionContext: Runtime context passed to every hook
- TransitionRecord: Tracks dispatch history
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Collection, Dict, FrozenSet, Optional, Tuple, Union

WILDCARD = "*"
NONE_STATE = "none"
ASYNC = "async"
DEFAULT_INITIAL_EVENT = "startup"


class Result(Enum):
    """
    Result of firing an event.
    """

    SUCCEEDED = 1     # The event moved the machine from one state to another
    NOTRANSITION = 2  # The event was accepted but no state change was needed
    CANCELLED = 3     # A before/leave hook vetoed the event
    PENDING = 4       # A leave hook deferred the transition; caller must finalize


class ErrorCode(Enum):
    """Failure kinds reported through the machine's error handler."""

    INVALID_TRANSITION = 100  # Event not permitted from the current state
    PENDING_TRANSITION = 200  # Event fired while an async transition is pending
    INVALID_CALLBACK = 300    # A caller-supplied hook raised


def _as_states(value: Union[None, str, Collection[str]]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass
class EventSpec:
    """
    Declares one event and the transitions it allows.

    Args:
        name: Event name. Becomes a callable on the machine.
        from_state: Source state(s). None or empty means any state (wildcard).
        to_state: Destination state. None means the event is a no-op that
                  returns to whichever state it was fired from.

    Raises:
        ValueError: If the name or any state name is empty.
    """

    name: str
    from_state: Union[None, str, Collection[str]] = None
    to_state: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Event name must be a non-empty string")
        self.from_state = _as_states(self.from_state)
        for state in self.from_state:
            if not state:
                raise ValueError(f"Event '{self.name}' has an empty from_state")
        if self.to_state is not None and not self.to_state:
            raise ValueError(f"Event '{self.name}' has an empty to_state")

    @property
    def sources(self) -> Tuple[str, ...]:
        """Source states, with the wildcard substituted when none are given."""
        return self.from_state or (WILDCARD,)

    @classmethod
    def from_dict(cls, config: dict) -> "EventSpec":
        """
        Build an EventSpec from ``{"name", "from", "to"}``.

        ``from_state`` / ``to_state`` are accepted as aliases.

        Raises:
            ValueError: If ``name`` is missing.
        """
        if "name" not in config:
            raise ValueError(f"Event config {config!r} missing required 'name' field")
        return cls(
            name=config["name"],
            from_state=config.get("from", config.get("from_state")),
            to_state=config.get("to", config.get("to_state")),
        )


@dataclass
class InitialState:
    """
    How the machine enters its first state.

    Args:
        state: The state to enter.
        event: Name of the synthesized event that performs the entry.
        defer: If True, the entry event is not fired during construction
               and the caller must fire it.
    """

    state: str
    event: str = DEFAULT_INITIAL_EVENT
    defer: bool = False

    def __post_init__(self):
        if not self.state:
            raise ValueError("Initial state must be a non-empty string")
        if not self.event:
            raise ValueError("Initial event must be a non-empty string")

    def as_event(self) -> EventSpec:
        """The event that moves the machine out of the ``none`` state."""
        return EventSpec(self.event, from_state=NONE_STATE, to_state=self.state)

    @classmethod
    def coerce(cls, value: Union[None, str, dict, "InitialState"]) -> Optional["InitialState"]:
        """Accept a state name, a ``{"state", "event", "defer"}`` dict or an InitialState."""
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value)
        if isinstance(value, dict):
            if "state" not in value:
                raise ValueError(f"Initial config {value!r} missing required 'state' field")
            return cls(
                state=value["state"],
                event=value.get("event") or DEFAULT_INITIAL_EVENT,
                defer=bool(value.get("defer", False)),
            )
        raise TypeError(f"Unsupported initial state descriptor: {value!r}")


@dataclass
class MachineConfig:
    """
    Declarative configuration for a StateMachine.

    Args:
        events: Ordered event specifications.
        initial: Initial state descriptor or plain state name.
        terminal: One state name or a collection of them. Advisory only,
                  used by ``is_finished()``.
        callbacks: Hook key (a ``Hook`` or a convention name such as
                   ``on_enter_running``) to callable.
        error: Optional error handler called as ``(ctx, code, message, cause)``.
               The event name, source, destination and arguments are read
               from ``ctx``; the flat seven-argument form
               ``(name, from, to, args, code, message, cause)`` is not
               supported.
        history_size: Number of dispatch records kept.
    """

    events: list = field(default_factory=list)
    initial: Union[None, str, dict, InitialState] = None
    terminal: Union[None, str, Collection[str]] = None
    callbacks: Dict[Any, Callable] = field(default_factory=dict)
    error: Optional[Callable] = None
    history_size: int = 100

    def __post_init__(self):
        self.initial = InitialState.coerce(self.initial)
        self.events = [
            EventSpec.from_dict(e) if isinstance(e, dict) else e for e in self.events
        ]
        if self.history_size < 0:
            raise ValueError(f"history_size must be >= 0, got {self.history_size}")

    @property
    def terminal_states(self) -> FrozenSet[str]:
        return frozenset(_as_states(self.terminal))

    @classmethod
    def from_dict(cls, options: dict) -> "MachineConfig":
        """
        Build a config from plain options.

        Recognised keys: ``initial`` (name or ``{"state", "event", "defer"}``),
        ``terminal`` or ``final``, ``events`` (``[{"name", "from", "to"}]``),
        ``callbacks``, ``error`` and ``history_size``.
        """
        return cls(
            events=list(options.get("events") or []),
            initial=options.get("initial"),
            terminal=options.get("terminal", options.get("final")),
            callbacks=dict(options.get("callbacks") or {}),
            error=options.get("error"),
            history_size=options.get("history_size", 100),
        )


@dataclass
class TransitionContext:
    """
    Runtime context passed to every hook and to the error handler.

    Args:
        event: Name of the event being fired.
        from_state: State the machine was in when the event fired.
        to_state: Resolved destination state.
        args: Positional arguments given by the caller.
        kwargs: Keyword arguments given by the caller.
        machine: The machine dispatching the event.
        target: Host object the machine was built for.
    """

    event: str
    from_state: str
    to_state: str
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    machine: Any = None
    target: Any = None

    @property
    def is_noop(self) -> bool:
        """True if firing this event does not change state."""
        return self.from_state == self.to_state


@dataclass
class TransitionRecord:
    """Records the outcome of one dispatch, finalize or cancel."""

    event: str
    from_state: str
    to_state: str
    result: Optional[Result] = None
    error: Optional[ErrorCode] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def succeeded(self) -> bool:
        return self.result == Result.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        """Serialise to a plain dictionary."""
        return {
            "event": self.event,
            "from_state": self.from_state,
            "to_state": self.to_state,
            "result": self.result.name if self.result else None,
            "error": self.error.name if self.error else None,
            "timestamp": self.timestamp,
        }
