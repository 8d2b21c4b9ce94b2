"""
Transition table — the event → (source → destination) map and the
state → events reachability index.

Built once from the configured events and never mutated afterwards.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from eventfsm.types import WILDCARD, EventSpec, InitialState

logger = logging.getLogger(__name__)


class TransitionTable:
    """
    Immutable lookup tables for a set of events.

    ``transitions[event][source]`` is the destination state, or None for a
    no-op entry (the destination is whichever state the event matched).
    ``reachability[state]`` lists the events declared for that state;
    wildcard events are listed under ``WILDCARD``.
    """

    def __init__(
        self,
        transitions: Dict[str, Dict[str, Optional[str]]],
        reachability: Dict[str, List[str]],
    ):
        self._transitions = MappingProxyType(
            {name: MappingProxyType(dict(m)) for name, m in transitions.items()}
        )
        self._reachability = MappingProxyType(
            {state: tuple(names) for state, names in reachability.items()}
        )

    @classmethod
    def build(
        cls,
        events: Iterable[EventSpec],
        initial: Optional[InitialState] = None,
    ) -> "TransitionTable":
        """
        Build the table from event specifications.

        The initial state descriptor, if given, is added as the first event
        (``none`` → initial state). When two specs declare the same
        ``(event, source)`` pair the later one wins.
        """
        specs: List[EventSpec] = []
        if initial is not None:
            specs.append(initial.as_event())
        specs.extend(events)

        transitions: Dict[str, Dict[str, Optional[str]]] = {}
        reachability: Dict[str, List[str]] = {}

        for spec in specs:
            by_source = transitions.setdefault(spec.name, {})
            for source in spec.sources:
                if source in by_source and by_source[source] != spec.to_state:
                    logger.debug(
                        f"Event '{spec.name}' from '{source}' redefined: "
                        f"{by_source[source]} → {spec.to_state}"
                    )
                by_source[source] = spec.to_state
                names = reachability.setdefault(source, [])
                if spec.name not in names:
                    names.append(spec.name)

        return cls(transitions, reachability)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def transitions(self) -> Mapping[str, Mapping[str, Optional[str]]]:
        return self._transitions

    @property
    def reachability(self) -> Mapping[str, Tuple[str, ...]]:
        return self._reachability

    @property
    def event_names(self) -> Tuple[str, ...]:
        """Every event name, in registration order."""
        return tuple(self._transitions)

    @property
    def states(self) -> Tuple[str, ...]:
        """Every state named as a source or destination, excluding the wildcard."""
        seen: Dict[str, None] = {}
        for by_source in self._transitions.values():
            for source, dest in by_source.items():
                if source != WILDCARD:
                    seen.setdefault(source)
                if dest is not None:
                    seen.setdefault(dest)
        return tuple(seen)

    def __contains__(self, event: str) -> bool:
        return event in self._transitions

    def permits(self, event: str, state: str) -> bool:
        """True if ``event`` has an entry for ``state`` or a wildcard entry."""
        by_source = self._transitions.get(event)
        if by_source is None:
            return False
        return state in by_source or WILDCARD in by_source

    def destination(self, event: str, state: str) -> str:
        """
        Resolve where ``event`` leads when fired from ``state``.

        Exact source match first, then the wildcard entry. No-op entries and
        events with no matching entry resolve to ``state`` itself.
        """
        by_source = self._transitions.get(event, {})
        if state in by_source:
            dest = by_source[state]
        else:
            dest = by_source.get(WILDCARD)
        return dest if dest is not None else state

    def events_from(self, state: str) -> List[str]:
        """Events declared for ``state`` followed by wildcard events."""
        names = list(self._reachability.get(state, ()))
        for name in self._reachability.get(WILDCARD, ()):
            if name not in names:
                names.append(name)
        return names
