"""
StateMachine — an event-driven finite state machine built from a
declarative list of events.

Features:
- One callable per configured event (``machine.start()``)
- Before / leave / enter / change / after lifecycle hooks, specific then general
- Cancellation from before and leave hooks
- Asynchronous transitions: a leave hook returns ``ASYNC`` and the caller
  finalizes or cancels the pending transition later
- A single overridable error handler for every failure
- Bounded dispatch history for debugging and introspection

Usage:
    from eventfsm import ASYNC, Result, build

    fsm = build({
        "initial": "created",
        "final": "stopped",
        "events": [
            {"name": "start", "from": "created", "to": "running"},
            {"name": "stop",  "from": "running", "to": "stopped"},
            {"name": "reset", "to": "created"},
        ],
        "callbacks": {
            "on_enter_running": lambda ctx: print("running", ctx.args),
        },
    })

    fsm.start(42)       # Result.SUCCEEDED
    fsm.current         # "running"
    fsm.can("start")    # False
"""

import logging
from collections import deque
from typing import Any, Callable, Collection, Dict, List, Optional, Tuple, Union

from eventfsm.errors import StaleTransitionError, error_for
from eventfsm.hooks import HookTable
from eventfsm.table import TransitionTable
from eventfsm.types import (
    ASYNC,
    NONE_STATE,
    ErrorCode,
    MachineConfig,
    Result,
    TransitionContext,
    TransitionRecord,
)

logger = logging.getLogger(__name__)


def _is_async(value: Any) -> bool:
    return isinstance(value, str) and value == ASYNC


class PendingTransition:
    """
    A prepared state change, waiting to be finalized or cancelled.

    Returned from the fired event when a leave hook answers ``ASYNC``, and
    kept as ``StateMachine.pending`` until resolved. It compares equal to
    ``Result.PENDING``. Exactly one of ``finalize()`` or ``cancel()`` may be
    called; any later call raises StaleTransitionError. Calling the object
    itself is the same as ``finalize()``.
    """

    def __init__(self, machine: "StateMachine", context: TransitionContext):
        self._machine = machine
        self.context = context
        self.result: Optional[Result] = None

    def __repr__(self) -> str:
        status = self.result.name if self.result else "open"
        return (
            f"<PendingTransition {self.event}: "
            f"{self.from_state} → {self.to_state} ({status})>"
        )

    @property
    def event(self) -> str:
        return self.context.event

    @property
    def from_state(self) -> str:
        return self.context.from_state

    @property
    def to_state(self) -> str:
        return self.context.to_state

    @property
    def done(self) -> bool:
        """True once finalized, cancelled or discarded."""
        return self.result is not None

    def finalize(self) -> Result:
        """Commit the state change and run enter, change and after hooks."""
        self._claim("finalize")
        self.result = Result.SUCCEEDED
        return self._machine._finalize(self.context)

    def cancel(self) -> Result:
        """Abandon the state change. After hooks still run."""
        self._claim("cancel")
        self.result = Result.CANCELLED
        return self._machine._cancel(self.context)

    __call__ = finalize

    def __eq__(self, other):
        if isinstance(other, Result):
            return other is Result.PENDING
        return NotImplemented

    def __hash__(self):
        return id(self)

    def _claim(self, action: str) -> None:
        if self.done:
            raise StaleTransitionError(
                f"Cannot {action} transition '{self.event}': "
                f"already {self.result.name.lower()}",
                self.context,
            )
        self._machine._release(self)

    def _discard(self) -> None:
        if not self.done:
            self.result = Result.CANCELLED
            self._machine._release(self)


class StateMachine:
    """
    Event-driven state machine.

    Build one from a MachineConfig (or the equivalent plain dict), or
    subclass and override ``define_config()``. Hooks are resolved from the
    config callbacks and from ``on_*`` methods of the target, which
    defaults to the machine itself, so a subclass can declare hooks as
    methods.

    Every configured event is callable as ``machine.<event>(*args)`` or via
    ``machine.fire(event, *args)``.
    """

    def __init__(
        self,
        config: Union[None, dict, MachineConfig] = None,
        target: Any = None,
    ):
        if config is None:
            config = self.define_config()
        if isinstance(config, dict):
            config = MachineConfig.from_dict(config)

        self._config: MachineConfig = config
        self._target = self if target is None else target
        self._current: str = NONE_STATE
        self._pending: Optional[PendingTransition] = None
        self._history: deque = deque(maxlen=config.history_size)

        self._table = TransitionTable.build(config.events, config.initial)
        self._terminal = config.terminal_states
        self._dispatchers: Dict[str, Callable] = {}
        for name in self._table.event_names:
            if hasattr(type(self), name):
                logger.warning(
                    f"Event '{name}' is shadowed by {type(self).__name__}.{name} — "
                    f"fire it with fire('{name}')"
                )
            self._dispatchers[name] = self._make_dispatcher(name)

        states = self._table.states + tuple(self._terminal) + (NONE_STATE,)
        self._hooks, self._callbacks = HookTable.resolve(
            self._table.event_names, states, config.callbacks, self._target
        )

        logger.info(
            f"{type(self).__name__} built — "
            f"{len(self._table.event_names)} events, "
            f"{len(self._table.states)} states, "
            f"{len(self._hooks)} hooks"
        )

        initial = config.initial
        if initial is not None and not initial.defer:
            self.fire(initial.event)

    def define_config(self) -> MachineConfig:
        """Return the configuration when none is passed to the constructor."""
        raise NotImplementedError(
            f"{type(self).__name__} needs a config: pass one to the "
            f"constructor or override define_config()"
        )

    def __getattr__(self, name: str) -> Callable:
        # Only called for names not found normally: events, then extra callbacks.
        for registry in ("_dispatchers", "_callbacks"):
            found = self.__dict__.get(registry, {}).get(name)
            if found is not None:
                return found
        raise AttributeError(
            f"'{type(self).__name__}' object has no attribute or event '{name}'"
        )

    def _make_dispatcher(self, event: str) -> Callable:
        def dispatch(*args, **kwargs):
            return self.fire(event, *args, **kwargs)

        dispatch.__name__ = event
        dispatch.__qualname__ = f"{type(self).__name__}.{event}"
        dispatch.__doc__ = f"Fire the '{event}' event."
        return dispatch

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def fire(self, event: str, *args, **kwargs) -> Any:
        """
        Fire ``event`` with the given arguments.

        Returns:
            A Result; in the PENDING case the PendingTransition, which
            compares equal to Result.PENDING. On failure, whatever the error
            handler returns when the event is pending-blocked, not
            permitted, or a hook raises.
        """
        from_state = self._current
        ctx = TransitionContext(
            event=event,
            from_state=from_state,
            to_state=self._table.destination(event, from_state),
            args=args,
            kwargs=kwargs,
            machine=self,
            target=self._target,
        )

        if self._pending is not None:
            return self._report(
                ctx,
                ErrorCode.PENDING_TRANSITION,
                f"event {event} inappropriate because previous transition did not complete",
            )

        if not self._table.permits(event, from_state):
            return self._report(
                ctx,
                ErrorCode.INVALID_TRANSITION,
                f"event {event} inappropriate in current state {from_state}",
            )

        if self._before_event(ctx) is False:
            logger.debug(f"{event}: cancelled by before hook")
            return self._record(ctx, Result.CANCELLED)

        if ctx.is_noop:
            self._after_event(ctx)
            logger.debug(f"{event}: no transition from {from_state}")
            return self._record(ctx, Result.NOTRANSITION)

        # Installed before leave hooks run so nothing else can be fired meanwhile.
        pending = PendingTransition(self, ctx)
        self._pending = pending
        try:
            leave = self._leave_state(ctx)
        except BaseException:
            pending._discard()
            raise

        if pending.done:
            # A leave hook finalized or cancelled the transition itself.
            return pending.result

        if leave is False:
            pending._discard()
            logger.debug(f"{event}: cancelled by leave hook")
            return self._record(ctx, Result.CANCELLED)

        if _is_async(leave):
            logger.debug(f"{event}: pending {from_state} → {ctx.to_state}")
            self._record(ctx, Result.PENDING)
            return pending

        return pending.finalize()

    def _finalize(self, ctx: TransitionContext) -> Result:
        self._current = ctx.to_state
        logger.info(f"Transition: {ctx.from_state} → {ctx.to_state} ({ctx.event})")
        self._enter_state(ctx)
        self._call_hook(self._hooks.change(), ctx)
        self._after_event(ctx)
        return self._record(ctx, Result.SUCCEEDED)

    def _cancel(self, ctx: TransitionContext) -> Result:
        logger.debug(f"{ctx.event}: pending transition cancelled")
        self._after_event(ctx)
        return self._record(ctx, Result.CANCELLED)

    def _release(self, pending: PendingTransition) -> None:
        if self._pending is pending:
            self._pending = None

    # ------------------------------------------------------------------
    # Hook phases
    # ------------------------------------------------------------------

    def _before_event(self, ctx: TransitionContext) -> Optional[bool]:
        specific, general = self._hooks.before(ctx.event)
        if self._call_hook(specific, ctx) is False:
            return False
        if self._call_hook(general, ctx) is False:
            return False
        return None

    def _leave_state(self, ctx: TransitionContext) -> Any:
        specific, general = self._hooks.leave(ctx.from_state)
        results = (self._call_hook(specific, ctx), self._call_hook(general, ctx))
        if any(r is False for r in results):
            return False
        if any(_is_async(r) for r in results):
            return ASYNC
        return None

    def _enter_state(self, ctx: TransitionContext) -> None:
        for hook in self._hooks.enter(ctx.to_state):
            self._call_hook(hook, ctx)

    def _after_event(self, ctx: TransitionContext) -> None:
        for hook in self._hooks.after(ctx.event):
            self._call_hook(hook, ctx)

    def _call_hook(self, hook: Optional[Callable], ctx: TransitionContext) -> Any:
        """Invoke a hook, reporting anything it raises as INVALID_CALLBACK."""
        if hook is None:
            return None
        try:
            return hook(ctx)
        except Exception as e:
            return self._report(
                ctx,
                ErrorCode.INVALID_CALLBACK,
                f"an exception occurred in a caller-provided callback function: {e!r}",
                e,
            )

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def _report(
        self,
        ctx: TransitionContext,
        code: ErrorCode,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> Any:
        logger.warning(f"{ctx.event} ({ctx.from_state} → {ctx.to_state}): {code.name} — {message}")
        self._record(ctx, error=code)
        handler = self._config.error or self.handle_error
        return handler(ctx, code, message, cause)

    def handle_error(
        self,
        ctx: TransitionContext,
        code: ErrorCode,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> Any:
        """
        Default error handler: raise the TransitionError matching ``code``.

        Override this, or pass ``error=`` in the config, to return a value
        from the failed call instead of raising. For INVALID_CALLBACK the
        returned value stands in for the hook's return value.

        Reusing a finalized or cancelled PendingTransition raises
        StaleTransitionError directly; that rejection does not pass through
        this handler.
        """
        raise error_for(code, message, ctx, cause) from cause

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def current(self) -> str:
        """The current state. ``"none"`` until the initial event has fired."""
        return self._current

    @property
    def pending(self) -> Optional[PendingTransition]:
        """The outstanding asynchronous transition, if any."""
        return self._pending

    @property
    def target(self) -> Any:
        return self._target

    @property
    def table(self) -> TransitionTable:
        return self._table

    @property
    def hooks(self) -> HookTable:
        return self._hooks

    @property
    def callbacks(self) -> Dict[str, Callable]:
        """Configured callbacks that matched no lifecycle hook."""
        return dict(self._callbacks)

    @property
    def events(self) -> Tuple[str, ...]:
        return self._table.event_names

    def is_state(self, state: Union[str, Collection[str]]) -> bool:
        """True if the current state is ``state`` (or one of ``state``)."""
        if isinstance(state, str):
            return self._current == state
        return self._current in state

    def can(self, event: str) -> bool:
        """True if ``event`` may be fired now."""
        return self._pending is None and self._table.permits(event, self._current)

    def cannot(self, event: str) -> bool:
        return not self.can(event)

    def transitions(self) -> List[str]:
        """Events declared for the current state, including wildcard events."""
        return self._table.events_from(self._current)

    def is_finished(self) -> bool:
        """True if the current state is one of the terminal states."""
        return self._current in self._terminal

    def get_history(self, last_n: Optional[int] = None) -> List[TransitionRecord]:
        """
        Return dispatch history.

        Args:
            last_n: If provided, return only the last N entries.
        """
        history = list(self._history)
        if last_n is None:
            return history
        return history[len(history) - last_n:] if last_n > 0 else []

    def _record(
        self,
        ctx: TransitionContext,
        result: Optional[Result] = None,
        error: Optional[ErrorCode] = None,
    ) -> Optional[Result]:
        self._history.append(
            TransitionRecord(
                event=ctx.event,
                from_state=ctx.from_state,
                to_state=ctx.to_state,
                result=result,
                error=error,
            )
        )
        return result


def build(config: Union[dict, MachineConfig], target: Any = None) -> StateMachine:
    """
    Build a StateMachine.

    Args:
        config: A MachineConfig or the equivalent plain dict.
        target: Host object whose ``on_*`` methods are used as hooks and
                which is exposed to hooks as ``ctx.target``. Defaults to the
                machine itself.
    """
    return StateMachine(config, target)
