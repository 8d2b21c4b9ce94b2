"""
Helper utilities for building state machines.

Provides convenience functions and decorators that reduce boilerplate
when declaring events and hooks.
"""

import logging
from functools import wraps
from typing import Collection, Dict, Iterable, List, Optional, Union

from eventfsm.types import (
    ASYNC,
    DEFAULT_INITIAL_EVENT,
    EventSpec,
    InitialState,
    Result,
    TransitionContext,
)

logger = logging.getLogger(__name__)


def create_event_spec(
    name: str,
    from_state: Union[None, str, Collection[str]] = None,
    to_state: Optional[str] = None,
) -> EventSpec:
    """
    Create an EventSpec.

    Args:
        name: Event name.
        from_state: Source state(s). Omit for a wildcard event.
        to_state: Destination state. Omit for a no-op event.

    Example:
        reset = create_event_spec("reset", to_state="idle")
    """
    return EventSpec(name=name, from_state=from_state, to_state=to_state)


def build_event_specs(configs: Iterable[dict]) -> List[EventSpec]:
    """
    Build event specifications from a compact configuration.

    Each entry is a plain dict with keys ``name`` (required), ``from`` and
    ``to``, mirroring the declarative ``events`` option.

    Raises:
        ValueError: If any entry is missing the required ``name`` key.

    Example:
        events = build_event_specs([
            {"name": "start", "from": "created", "to": "running"},
            {"name": "stop",  "from": ["running", "paused"], "to": "stopped"},
            {"name": "ping"},
        ])
    """
    return [EventSpec.from_dict(config) for config in configs]


def build_transitions(mapping: Dict[str, Dict[str, str]]) -> List[EventSpec]:
    """
    Build event specifications from ``{event: {from_state: to_state}}``.

    The wildcard ``"*"`` is accepted as a source state.

    Example:
        events = build_transitions({
            "start": {"created": "running"},
            "stop":  {"running": "stopped", "paused": "stopped"},
        })
    """
    return [
        EventSpec(name=event, from_state=source, to_state=dest)
        for event, by_source in mapping.items()
        for source, dest in by_source.items()
    ]


def parse_initial(
    value: Union[None, str, dict, InitialState],
    event: str = DEFAULT_INITIAL_EVENT,
) -> Optional[InitialState]:
    """
    Normalise an initial state option.

    Accepts a plain state name, a ``{"state", "event", "defer"}`` dict or an
    InitialState. ``event`` applies when a plain name is given.
    """
    if isinstance(value, str):
        return InitialState(state=value, event=event)
    return InitialState.coerce(value)


def log_hook(func):
    """
    Decorator that adds entry/result logging to lifecycle hooks.

    Logs the event, the transition and the hook's answer at DEBUG level.

    Usage:
        @log_hook
        def on_leave_running(self, ctx: TransitionContext):
            return ASYNC
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = next((a for a in args if isinstance(a, TransitionContext)), None)
        label = f"{func.__name__}[{ctx.event}: {ctx.from_state} → {ctx.to_state}]" if ctx else func.__name__
        logger.debug(f"{label}: Starting...")
        result = func(*args, **kwargs)
        if result is False:
            logger.debug(f"{label}: Vetoed")
        elif isinstance(result, str) and result == ASYNC:
            logger.debug(f"{label}: Deferred")
        elif isinstance(result, Result):
            logger.debug(f"{label}: {result.name}")
        else:
            logger.debug(f"{label}: Complete")
        return result

    return wrapper
