"""Minimal observer cells for recompute-on-change derived values.

A ``Source`` holds a value pushed by a collaborator (a chain snapshot, the
favorites list, the filter text). A ``Derived`` declares the cells it reads
and recomputes wholesale whenever any of them changes. While a required
input is still ``None`` the derived value is withheld (stays ``None``) rather
than computed from partial data.

Changes propagate in dependency order: a derived cell recomputes only after
every cell it reads has settled, and at most once per change. ``assign``
publishes several sources as one change.

Everything runs synchronously on the caller's event; there is no scheduler.
"""

import heapq
import itertools
import logging
from typing import Any, Callable, Generic, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[Any], None]

_order = itertools.count()


class Cell(Generic[T]):
    """Base cell: a current value plus change listeners."""

    level = 0

    def __init__(self, name: str = ""):
        self.name = name
        self._value: T | None = None
        self._listeners: list[Listener] = []
        self._dependents: list["Derived[Any]"] = []

    @property
    def value(self) -> T | None:
        return self._value

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns an unsubscribe function."""
        self._listeners = [*self._listeners, listener]

        def unsubscribe() -> None:
            self._listeners = [fn for fn in self._listeners if fn is not listener]

        return unsubscribe

    def _store(self, value: T | None) -> None:
        self._value = value
        # Iterate over a snapshot so listeners may (un)subscribe while notified
        for listener in tuple(self._listeners):
            listener(value)


def _propagate(changed: Iterable[Cell[Any]]) -> None:
    queue: list[tuple[int, int, Derived[Any]]] = []
    queued: set[int] = set()

    def schedule(cell: Cell[Any]) -> None:
        for dependent in cell._dependents:
            if id(dependent) not in queued:
                queued.add(id(dependent))
                heapq.heappush(queue, (dependent.level, next(_order), dependent))

    for cell in changed:
        schedule(cell)
    while queue:
        _, _, derived = heapq.heappop(queue)
        queued.discard(id(derived))
        if derived._recompute():
            schedule(derived)


def assign(*updates: tuple["Source[Any]", Any]) -> None:
    """Set several sources, then recompute their dependents once."""
    changed = []
    for source, value in updates:
        if value is source.value:
            continue
        source._store(value)
        changed.append(source)
    _propagate(changed)


class Source(Cell[T]):
    """A settable input cell."""

    def __init__(self, value: T | None = None, name: str = ""):
        super().__init__(name)
        self._value = value

    def set(self, value: T | None) -> None:
        assign((self, value))


class Derived(Cell[T]):
    """A value recomputed from its inputs every time one of them changes.

    Args:
        compute: called with the current input values, in declaration order
        inputs: cells this value depends on
        required: how many leading inputs must be non-None before computing;
            defaults to all of them
    """

    def __init__(
        self,
        compute: Callable[..., T],
        inputs: Iterable[Cell[Any]],
        required: int | None = None,
        name: str = "",
    ):
        super().__init__(name)
        self._compute = compute
        self._inputs = tuple(inputs)
        self._required = len(self._inputs) if required is None else required
        self.level = 1 + max((cell.level for cell in self._inputs), default=0)
        self.recompute_count = 0
        for cell in self._inputs:
            cell._dependents = [*cell._dependents, self]
        self._recompute()

    def _recompute(self) -> bool:
        """Recompute from current inputs; True if the published value changed."""
        values = [cell.value for cell in self._inputs]
        if any(v is None for v in values[: self._required]):
            if self._value is None:
                return False
            logger.debug(f"{self.name or 'derived'}: input withdrawn, output withheld")
            self._store(None)
            return True
        self.recompute_count += 1
        self._store(self._compute(*values))
        return True
