"""
eventfsm
~~~~~~~~

A lightweight, embeddable finite state machine built from a declarative
list of events, with lifecycle hooks and asynchronous transitions.

Quick start:
    from eventfsm import build, Result, ASYNC
    from eventfsm import MachineConfig, EventSpec, InitialState, Hook
"""

from eventfsm.errors import (
    InvalidCallbackError,
    InvalidTransitionError,
    PendingTransitionError,
    StaleTransitionError,
    TransitionError,
)
from eventfsm.helpers import (
    build_event_specs,
    build_transitions,
    create_event_spec,
    log_hook,
    parse_initial,
)
from eventfsm.hooks import Hook, HookPoint, HookTable
from eventfsm.machine import PendingTransition, StateMachine, build
from eventfsm.table import TransitionTable
from eventfsm.types import (
    ASYNC,
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

__version__ = "0.1.0"

__all__ = [
    "build",
    "StateMachine",
    "PendingTransition",
    "MachineConfig",
    "EventSpec",
    "InitialState",
    "TransitionContext",
    "TransitionRecord",
    "TransitionTable",
    "Hook",
    "HookPoint",
    "HookTable",
    "Result",
    "ErrorCode",
    "ASYNC",
    "WILDCARD",
    "NONE_STATE",
    "DEFAULT_INITIAL_EVENT",
    "TransitionError",
    "InvalidTransitionError",
    "PendingTransitionError",
    "InvalidCallbackError",
    "StaleTransitionError",
    "build_event_specs",
    "build_transitions",
    "create_event_spec",
    "log_hook",
    "parse_initial",
]
