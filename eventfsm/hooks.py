"""
Lifecycle hooks — tagged lifecycle points and the table that maps them to
callables.

Each point in a transition (before, leave, enter, change, after) has a
specific variant keyed by an event or state name and a general variant that
applies to every event or state. Hooks are resolved once, when the machine
is built, from an explicit ``{Hook: callable}`` mapping, from convention
names such as ``on_enter_running``, and from methods of the host object
that follow the same naming convention.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class HookPoint(Enum):
    """Where in the transition protocol a hook runs."""

    BEFORE_EVENT = "before_event"
    LEAVE_STATE = "leave_state"
    ENTER_STATE = "enter_state"
    AFTER_EVENT = "after_event"
    CHANGE_STATE = "change_state"
    BEFORE_ANY_EVENT = "before_any_event"
    LEAVE_ANY_STATE = "leave_any_state"
    ENTER_ANY_STATE = "enter_any_state"
    AFTER_ANY_EVENT = "after_any_event"

    @property
    def is_specific(self) -> bool:
        """True if hooks at this point are keyed by an event or state name."""
        return self in _SPECIFIC_POINTS


_SPECIFIC_POINTS = frozenset({
    HookPoint.BEFORE_EVENT,
    HookPoint.LEAVE_STATE,
    HookPoint.ENTER_STATE,
    HookPoint.AFTER_EVENT,
})

# Convention name templates, most preferred first.
_CONVENTION_NAMES: Dict[HookPoint, Tuple[str, ...]] = {
    HookPoint.BEFORE_EVENT: ("on_before_{}",),
    HookPoint.LEAVE_STATE: ("on_leave_{}",),
    HookPoint.ENTER_STATE: ("on_enter_{}", "on_{}"),
    HookPoint.AFTER_EVENT: ("on_after_{}", "on_{}"),
    HookPoint.CHANGE_STATE: ("on_change_state",),
    HookPoint.BEFORE_ANY_EVENT: ("on_before_event",),
    HookPoint.LEAVE_ANY_STATE: ("on_leave_state",),
    HookPoint.ENTER_ANY_STATE: ("on_enter_state", "on_state"),
    HookPoint.AFTER_ANY_EVENT: ("on_after_event", "on_event"),
}


@dataclass(frozen=True)
class Hook:
    """
    A lifecycle point, optionally bound to an event or state name.

    Use the constructors rather than building these directly:
        Hook.before("start"), Hook.leave("idle"), Hook.enter("running"),
        Hook.after("start"), Hook.change(), Hook.before_any(),
        Hook.leave_any(), Hook.enter_any(), Hook.after_any()

    Raises:
        ValueError: If a specific point has no name, or a general one has one.
    """

    point: HookPoint
    name: Optional[str] = None

    def __post_init__(self):
        if self.point.is_specific and not self.name:
            raise ValueError(f"{self.point.name} hook requires an event or state name")
        if not self.point.is_specific and self.name is not None:
            raise ValueError(f"{self.point.name} hook does not take a name")

    @classmethod
    def before(cls, event: str) -> "Hook":
        return cls(HookPoint.BEFORE_EVENT, event)

    @classmethod
    def leave(cls, state: str) -> "Hook":
        return cls(HookPoint.LEAVE_STATE, state)

    @classmethod
    def enter(cls, state: str) -> "Hook":
        return cls(HookPoint.ENTER_STATE, state)

    @classmethod
    def after(cls, event: str) -> "Hook":
        return cls(HookPoint.AFTER_EVENT, event)

    @classmethod
    def change(cls) -> "Hook":
        return cls(HookPoint.CHANGE_STATE)

    @classmethod
    def before_any(cls) -> "Hook":
        return cls(HookPoint.BEFORE_ANY_EVENT)

    @classmethod
    def leave_any(cls) -> "Hook":
        return cls(HookPoint.LEAVE_ANY_STATE)

    @classmethod
    def enter_any(cls) -> "Hook":
        return cls(HookPoint.ENTER_ANY_STATE)

    @classmethod
    def after_any(cls) -> "Hook":
        return cls(HookPoint.AFTER_ANY_EVENT)

    def convention_names(self) -> Tuple[str, ...]:
        """Attribute / callback names that map to this hook, most preferred first."""
        templates = _CONVENTION_NAMES[self.point]
        if self.name is None:
            return templates
        return tuple(t.format(self.name) for t in templates)


class HookTable:
    """
    Explicit mapping of Hook → callable.

    Lookups are exact; the specific-then-general order of a transition
    phase is provided by ``before()``, ``leave()``, ``enter()`` and
    ``after()``, each returning a ``(specific, general)`` pair.
    """

    def __init__(self, hooks: Optional[Mapping[Hook, Callable]] = None):
        self._hooks: Dict[Hook, Callable] = dict(hooks or {})

    def register(self, hook: Hook, func: Callable) -> None:
        if not callable(func):
            raise TypeError(f"Hook {hook} must be callable, got {func!r}")
        self._hooks[hook] = func

    def get(self, hook: Hook) -> Optional[Callable]:
        return self._hooks.get(hook)

    def __contains__(self, hook: Hook) -> bool:
        return hook in self._hooks

    def __len__(self) -> int:
        return len(self._hooks)

    def __iter__(self):
        return iter(self._hooks)

    # ------------------------------------------------------------------
    # Transition phases
    # ------------------------------------------------------------------

    def before(self, event: str) -> Tuple[Optional[Callable], Optional[Callable]]:
        return self.get(Hook.before(event)), self.get(Hook.before_any())

    def leave(self, state: str) -> Tuple[Optional[Callable], Optional[Callable]]:
        return self.get(Hook.leave(state)), self.get(Hook.leave_any())

    def enter(self, state: str) -> Tuple[Optional[Callable], Optional[Callable]]:
        return self.get(Hook.enter(state)), self.get(Hook.enter_any())

    def after(self, event: str) -> Tuple[Optional[Callable], Optional[Callable]]:
        return self.get(Hook.after(event)), self.get(Hook.after_any())

    def change(self) -> Optional[Callable]:
        return self.get(Hook.change())

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @classmethod
    def resolve(
        cls,
        events: Iterable[str],
        states: Iterable[str],
        callbacks: Optional[Mapping[Any, Callable]] = None,
        target: Any = None,
    ) -> Tuple["HookTable", Dict[str, Callable]]:
        """
        Build a hook table for the given events and states.

        For each possible hook, an explicit ``Hook`` key in ``callbacks``
        wins; otherwise its convention names are tried in order, first as
        ``callbacks`` keys and then as callable attributes of ``target``.

        Returns:
            The table, and the string-keyed callbacks that matched no hook.
        """
        callbacks = dict(callbacks or {})
        explicit = {k: v for k, v in callbacks.items() if isinstance(k, Hook)}
        named = {k: v for k, v in callbacks.items() if isinstance(k, str)}
        unknown_keys = set(callbacks) - set(explicit) - set(named)
        if unknown_keys:
            raise TypeError(f"Callback keys must be Hook or str, got {sorted(map(repr, unknown_keys))}")

        candidates = []
        for event in events:
            candidates += [Hook.before(event), Hook.after(event)]
        for state in states:
            candidates += [Hook.leave(state), Hook.enter(state)]
        candidates += [
            Hook.before_any(), Hook.leave_any(), Hook.enter_any(),
            Hook.after_any(), Hook.change(),
        ]

        table = cls()
        used = set()
        for hook in candidates:
            if hook in explicit:
                table.register(hook, explicit[hook])
                continue
            func = _find_convention(hook, named, target, used)
            if func is not None:
                table.register(hook, func)

        # Explicit hooks for names the machine never declares are still kept.
        for hook, func in explicit.items():
            if hook not in table:
                logger.debug(f"Hook {hook} does not match any declared event or state")
                table.register(hook, func)

        extras = {name: func for name, func in named.items() if name not in used}
        return table, extras


def _find_convention(
    hook: Hook,
    named: Mapping[str, Callable],
    target: Any,
    used: set,
) -> Optional[Callable]:
    for name in hook.convention_names():
        if name in named:
            used.add(name)
            return named[name]
        if target is not None:
            attr = getattr(target, name, None)
            if callable(attr):
                return attr
    return None
