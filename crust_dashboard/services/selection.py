"""Checked-row tracking against a selectable universe."""

from typing import Callable, Iterable


class SelectionSet:
    """Selection of row keys.

    ``universe`` is a callable so "all selected" is always judged against the
    live list of selectable rows. Every change swaps in a new frozenset.
    """

    def __init__(
        self,
        universe: Callable[[], Iterable[str]],
        selected: Iterable[str] = (),
    ):
        self._universe = universe
        self._selected: frozenset[str] = frozenset(selected)

    @property
    def selected(self) -> frozenset[str]:
        return self._selected

    def is_selected(self, key: str) -> bool:
        return key in self._selected

    def toggle_one(self, key: str) -> frozenset[str]:
        if key in self._selected:
            self._selected = self._selected - {key}
        elif key in frozenset(self._universe()):
            self._selected = self._selected | {key}
        return self._selected

    def toggle_all(self) -> frozenset[str]:
        if self.is_all_selected():
            self._selected = frozenset()
        else:
            self._selected = frozenset(self._universe())
        return self._selected

    def is_all_selected(self) -> bool:
        universe = frozenset(self._universe())
        return bool(universe) and universe == self._selected

    def clear(self) -> None:
        self._selected = frozenset()

    def retain(self, keys: Iterable[str]) -> frozenset[str]:
        """Drop selected keys that are no longer selectable."""
        self._selected = self._selected & frozenset(keys)
        return self._selected
