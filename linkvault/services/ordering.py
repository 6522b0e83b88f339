"""Sibling ordering: keeps ``sort_order`` a dense ``0..n-1`` permutation.

Pure functions over anything with a ``sort_order`` attribute (ORM rows in
practice). They never touch the session; callers flush and commit.
"""

from typing import Dict, Iterable, List, Sequence, Tuple, TypeVar

from ..exceptions import ValidationError

T = TypeVar("T")


def next_sort_order(existing: Iterable[int]) -> int:
    """Position for an item appended after ``existing``."""
    orders = list(existing)
    return max(orders) + 1 if orders else 0


def is_dense(orders: Iterable[int]) -> bool:
    """True when ``orders`` is exactly ``{0, ..., n-1}`` with no repeats."""
    ordered = sorted(orders)
    return ordered == list(range(len(ordered)))


def compact(items: Sequence[T]) -> List[T]:
    """Renumber ``items`` to ``0..n-1`` keeping their current relative order.

    Ties on ``sort_order`` keep the order in which they were passed.
    Returns the items in their new order.
    """
    ordered = sorted(items, key=lambda item: item.sort_order)
    for position, item in enumerate(ordered):
        if item.sort_order != position:
            item.sort_order = position
    return ordered


def unshift(items: Sequence[T]) -> List[T]:
    """Make room at position 0 by shifting every item one place back.

    The siblings are compacted first so the group stays dense once the new
    item takes position 0.
    """
    ordered = compact(items)
    for item in ordered:
        item.sort_order += 1
    return ordered


def apply_reorder(current: Dict[str, int], updates: Sequence[Tuple[str, int]]) -> Dict[str, int]:
    """Compute the dense order that results from applying ``updates``.

    ``current`` maps every member of one sibling group to its sort_order.
    ``updates`` is a list of ``(id, requested_order)`` pairs. Items that are
    not mentioned keep their current position; when a moved item and an
    unmoved item ask for the same slot the moved one goes first. The result
    maps every member of the group to its new position in ``0..n-1``.

    Raises:
        ValidationError: Empty update, duplicate id, negative order, or an
            id that is not part of the group.
    """
    if not updates:
        raise ValidationError("Reorder requires at least one item", field="items")

    requested: Dict[str, int] = {}
    for item_id, order in updates:
        if item_id in requested:
            raise ValidationError(f"Duplicate id in reorder: {item_id}", field="items")
        if order is None or order < 0:
            raise ValidationError(
                f"sort_order must be a non-negative integer (got {order} for {item_id})",
                field="items",
            )
        if item_id not in current:
            raise ValidationError(
                f"Item {item_id} is not part of this sibling group", field="items"
            )
        requested[item_id] = order

    def _key(item_id: str):
        moved = item_id in requested
        return (
            requested.get(item_id, current[item_id]),
            0 if moved else 1,
            current[item_id],
            item_id,
        )

    ordered_ids = sorted(current, key=_key)
    return {item_id: position for position, item_id in enumerate(ordered_ids)}
