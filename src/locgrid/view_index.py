"""Visible-row projection of a localization store.

A *view order* is a list of underlying row indices: which rows an
editor shows and in what order.  Building one never touches the store.
Committing a reorder goes back through
:meth:`LocalizationStore.reorder_rows`, and is only allowed when the view
shows every row; a filtered view cannot be reordered because rows hidden
by the filter would have no defined position.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from locgrid.errors import ReorderError
from locgrid.store import LANGUAGE_REMOVED

if TYPE_CHECKING:
    from locgrid.store import LocalizationStore, StoreEvent

Predicate = Callable[[str], bool]


def substring_predicate(text: str | None, case_sensitive: bool = False) -> Predicate | None:
    """Return a predicate matching cells that contain *text*.

    *text* is trimmed first; a blank filter means "no filter" and
    yields ``None``.
    """
    needle = (text or "").strip()
    if not needle:
        return None
    if case_sensitive:
        return lambda value: needle in (value or "")
    folded = needle.casefold()
    return lambda value: folded in (value or "").casefold()


def build_view_order(
    store: LocalizationStore,
    predicate: Predicate | None = None,
    filter_language: int = 0,
) -> list[int]:
    """Underlying row indices visible under *predicate*, ascending.

    Without a predicate every row is visible in storage order.  The
    predicate is applied to the cells of *filter_language*, which falls
    back to the default language when out of range.
    """
    rows = store.row_count
    if predicate is None:
        return list(range(rows))
    if not 0 <= filter_language < store.language_count:
        filter_language = 0
    return [r for r in range(rows) if predicate(store.cell(filter_language, r))]


def apply_reorder(
    store: LocalizationStore,
    view_order: Sequence[int],
    new_view_order: Sequence[int],
) -> None:
    """Commit *new_view_order*, a rearrangement of *view_order*, to the store.

    Raises:
        ReorderError: if *new_view_order* invents, drops or repeats an
            index, or if *view_order* does not cover every row.
    """
    new_order = list(new_view_order)
    if len(set(new_order)) != len(new_order):
        raise ReorderError("Reordered view contains duplicate rows")
    if sorted(new_order) != sorted(view_order):
        raise ReorderError("Reordered view must contain exactly the visible rows")
    if sorted(view_order) != list(range(store.row_count)):
        raise ReorderError("Rows can only be reordered in an unfiltered view")
    store.reorder_rows(new_order)


def moved_order(
    view_order: Sequence[int], positions: Iterable[int], destination: int
) -> list[int]:
    """Return *view_order* with the rows at *positions* moved as a block.

    *destination* is the visible position the block is inserted before
    (``len(view_order)`` appends).  Positions refer to the view, not to
    the store.
    """
    picked = sorted(set(positions))
    size = len(view_order)
    if any(not 0 <= p < size for p in picked):
        raise ReorderError(f"Row positions out of range for a view of {size} rows")
    destination = max(0, min(destination, size))

    block = [view_order[p] for p in picked]
    skip = set(picked)
    result: list[int] = []
    for pos, row in enumerate(view_order):
        if pos == destination:
            result.extend(block)
        if pos not in skip:
            result.append(row)
    if destination == size:
        result.extend(block)
    return result


class ViewIndex:
    """Filter state plus the operations an editor needs on top of it."""

    def __init__(
        self,
        filter_text: str = "",
        filter_language: int = 0,
        case_sensitive: bool = False,
    ) -> None:
        self.filter_text = filter_text
        self.filter_language = filter_language
        self.case_sensitive = case_sensitive
        self._attached: LocalizationStore | None = None

    # ── Filter state ────────────────────────────────────────────

    @property
    def is_filtered(self) -> bool:
        return bool((self.filter_text or "").strip())

    @property
    def reorder_allowed(self) -> bool:
        """Dragging rows is disabled whenever a filter string is set."""
        return not self.is_filtered

    def predicate(self) -> Predicate | None:
        return substring_predicate(self.filter_text, self.case_sensitive)

    def build(self, store: LocalizationStore) -> list[int]:
        return build_view_order(store, self.predicate(), self.filter_language)

    def sync(self, store: LocalizationStore) -> None:
        """Clamp the filter language after languages were removed."""
        last = max(0, store.language_count - 1)
        self.filter_language = max(0, min(self.filter_language, last))

    # ── Store wiring ────────────────────────────────────────────

    def attach(self, store: LocalizationStore) -> None:
        """Keep the filter language valid as *store* changes."""
        self.detach()
        self._attached = store
        store.add_listener(self._on_store_event)
        self.sync(store)

    def detach(self) -> None:
        if self._attached is not None:
            self._attached.remove_listener(self._on_store_event)
            self._attached = None

    def _on_store_event(self, event: StoreEvent) -> None:
        if self._attached is None:
            return
        # Keep filtering the same language, or the default if it was removed
        if event.kind == LANGUAGE_REMOVED and event.language >= 0:
            if event.language == self.filter_language:
                self.filter_language = 0
            elif event.language < self.filter_language:
                self.filter_language -= 1
        self.sync(self._attached)

    # ── Reordering ──────────────────────────────────────────────

    def apply_reorder(
        self,
        store: LocalizationStore,
        view_order: Sequence[int],
        new_view_order: Sequence[int],
    ) -> None:
        """Commit a reorder of the visible rows.

        Raises:
            ReorderError: while a filter is active, or when
                *new_view_order* is not a permutation of *view_order*.
        """
        if not self.reorder_allowed:
            raise ReorderError("Rows cannot be reordered while a filter is active")
        apply_reorder(store, view_order, new_view_order)

    def move_rows(
        self,
        store: LocalizationStore,
        view_order: Sequence[int],
        positions: Iterable[int],
        destination: int,
    ) -> list[int]:
        """Drag the rows at visible *positions* to *destination* and commit.

        Returns the view order after the move.
        """
        if not self.reorder_allowed:
            raise ReorderError("Rows cannot be reordered while a filter is active")
        new_order = moved_order(view_order, positions, destination)
        apply_reorder(store, view_order, new_order)
        return self.build(store)
